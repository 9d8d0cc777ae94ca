"""
Appointment service - Lifecycle of a single scheduled dose

Status workflow: PENDING -> TAKEN (via complete) | CANCELLED (via cancel).
Both end states are terminal.
"""

import logging
from datetime import datetime, time
from typing import Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import InvalidStateError, NotFoundError, ValidationError
from ...models import (
    AlertType,
    Appointment,
    AppointmentStatus,
    MedicationHistory,
    Treatment,
    TreatmentStatus,
)
from ...shared.validators import validate_period
from ..history.service import HistoryService
from ..treatments.repository import TreatmentRepository
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)


def treatment_window(treatment: Treatment) -> tuple[datetime, datetime]:
    """Inclusive [start 00:00, end 23:59:59.999999] window of a treatment"""
    return (
        datetime.combine(treatment.start_date, time.min),
        datetime.combine(treatment.end_date, time.max),
    )


def ensure_within_window(treatment: Treatment, scheduled_at: datetime) -> None:
    window_start, window_end = treatment_window(treatment)
    if not window_start <= scheduled_at <= window_end:
        raise ValidationError(
            f"Appointment time {scheduled_at.isoformat()} is outside the treatment period "
            f"{treatment.start_date.isoformat()} - {treatment.end_date.isoformat()}"
        )


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, treatment_service=None):
        self.db = db
        self.repo = AppointmentRepository()
        self.treatment_repo = TreatmentRepository()
        self.history = HistoryService(db)
        self._treatment_service = treatment_service

    @property
    def treatments(self):
        # Treatment and appointment services call each other
        if self._treatment_service is None:
            from ..treatments.service import TreatmentService

            self._treatment_service = TreatmentService(self.db, appointment_service=self)
        return self._treatment_service

    def list_appointments(
        self,
        owner_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        include_cancelled: bool = False,
    ) -> list[Appointment]:
        """Appointments of an owner, oldest first; cancelled ones only on request"""
        validate_period(start, end)
        return self.repo.get_appointments(self.db, owner_id, start, end, include_cancelled)

    def get_appointment(self, appointment_id: int, owner_id: int) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id, owner_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def create(self, treatment: Treatment, scheduled_at: datetime, alert_type, owner_id: int) -> Appointment:
        """
        Add a PENDING appointment to a treatment.

        Raises:
            NotFoundError: If the treatment belongs to another owner
            ValidationError: If scheduled_at is outside the treatment period or
                the alert type code is unknown. Nothing is written.
        """
        if treatment.owner_id != owner_id:
            raise NotFoundError("Treatment not found")
        alert = AlertType.from_code(alert_type)
        ensure_within_window(treatment, scheduled_at)

        with unit_of_work(self.db):
            appointment = Appointment(
                owner_id=owner_id,
                scheduled_at=scheduled_at,
                alert_type=alert.value,
                status=AppointmentStatus.PENDING.value,
            )
            treatment.appointments.append(appointment)
            self.repo.save_appointment(self.db, appointment)
        return appointment

    def create_for_treatment(
        self, treatment_id: int, owner_id: int, scheduled_at: datetime, alert_type=None
    ) -> Appointment:
        """Add a single extra appointment to one of the owner's active treatments"""
        with unit_of_work(self.db):
            treatment = self.treatment_repo.get_treatment_by_id(self.db, treatment_id, owner_id)
            if not treatment:
                raise NotFoundError("Treatment not found")
            if treatment.status != TreatmentStatus.ACTIVE.value:
                raise InvalidStateError(
                    f"Cannot schedule doses on a {treatment.status.lower()} treatment"
                )
            appointment = self.create(
                treatment,
                scheduled_at,
                alert_type if alert_type is not None else treatment.alert_type,
                owner_id,
            )
        logger.info(
            f"Appointment {appointment.id} added to treatment {treatment_id} for {scheduled_at.isoformat()}"
        )
        return appointment

    def complete(
        self,
        appointment_id: int,
        owner_id: int,
        dose_taken=None,
        used_at: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> MedicationHistory:
        """
        Mark a PENDING appointment as taken and record the dose.

        Dose defaults to the treatment's dose amount and the usage time to the
        scheduled time. After the write the parent treatment is checked for
        completion. Returns the new history record.
        """
        with unit_of_work(self.db):
            appointment = self.get_appointment(appointment_id, owner_id)

            if appointment.status != AppointmentStatus.PENDING.value:
                logger.warning(
                    f"Refusing to complete appointment {appointment_id}: status is {appointment.status}"
                )
                raise InvalidStateError(
                    f"Appointment must be pending to complete (current status: {appointment.status})"
                )

            treatment = appointment.treatment
            record = self.history.record(
                appointment,
                dose_taken if dose_taken is not None else treatment.dose_amount,
                used_at or appointment.scheduled_at,
                note,
                owner_id,
            )

            appointment.status = AppointmentStatus.TAKEN.value
            appointment.history_id = record.id
            self.repo.save_appointment(self.db, appointment)

            self.treatments.check_and_complete(appointment.treatment_id, owner_id)

        logger.info(f"Appointment {appointment_id} taken by owner {owner_id}")
        return record

    def reschedule(self, appointment_id: int, owner_id: int, new_scheduled_at: datetime) -> Appointment:
        """Move a PENDING appointment; the new time must stay inside the treatment period"""
        with unit_of_work(self.db):
            appointment = self.get_appointment(appointment_id, owner_id)

            if appointment.status != AppointmentStatus.PENDING.value:
                raise InvalidStateError(
                    f"Only pending appointments can be rescheduled (current status: {appointment.status})"
                )
            ensure_within_window(appointment.treatment, new_scheduled_at)

            appointment.scheduled_at = new_scheduled_at
            self.repo.save_appointment(self.db, appointment)
        return appointment

    def cancel(self, appointment_id: int, owner_id: int) -> Appointment:
        """
        Logical delete: status -> CANCELLED, the row stays.
        Cancelling twice is a no-op; a TAKEN appointment cannot be cancelled.
        """
        with unit_of_work(self.db):
            appointment = self.get_appointment(appointment_id, owner_id)

            if appointment.status == AppointmentStatus.CANCELLED.value:
                return appointment
            if appointment.status == AppointmentStatus.TAKEN.value:
                raise InvalidStateError("A taken appointment cannot be cancelled")

            appointment.status = AppointmentStatus.CANCELLED.value
            self.repo.save_appointment(self.db, appointment)

            # The last pending dose may just have gone away
            self.treatments.check_and_complete(appointment.treatment_id, owner_id)

        logger.info(f"Appointment {appointment_id} cancelled by owner {owner_id}")
        return appointment
