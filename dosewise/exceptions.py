"""Domain errors raised by the scheduling services.

The HTTP layer maps these onto status codes in ``main.py``; services never
raise ``HTTPException`` themselves.
"""


class DosewiseError(Exception):
    """Base class for every error the core surfaces to callers"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DosewiseError):
    """Entity does not exist or belongs to another owner"""

    status_code = 404


class ValidationError(DosewiseError):
    """Malformed rule, out-of-window timestamp, unknown status code"""

    status_code = 422


class InvalidStateError(DosewiseError):
    """Operation not allowed in the entity's current state"""

    status_code = 409
