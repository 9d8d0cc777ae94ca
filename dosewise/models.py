import enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .exceptions import ValidationError

TREATMENT_REMOVED_LABEL = "Treatment removed"
MEDICATION_REMOVED_LABEL = "Medication removed"
NO_MEDICATION_LABEL = "-"


class CodedEnum(str, enum.Enum):
    """String enum that also accepts the small integer codes used by clients.

    Codes are 1-based and follow declaration order, so members must only ever
    be appended.
    """

    @classmethod
    def from_code(cls, code):
        if isinstance(code, cls):
            return code
        if isinstance(code, int) and not isinstance(code, bool):
            members = list(cls)
            if 1 <= code <= len(members):
                return members[code - 1]
        elif isinstance(code, str):
            key = code.strip().upper()
            if key in cls.__members__:
                return cls[key]
            if key.isdigit():
                return cls.from_code(int(key))
        raise ValidationError(f"Unknown {cls.__name__} code: {code!r}")


class RecordStatus(CodedEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TreatmentStatus(CodedEnum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AppointmentStatus(CodedEnum):
    PENDING = "PENDING"
    TAKEN = "TAKEN"
    CANCELLED = "CANCELLED"


class FrequencyType(CodedEnum):
    HOUR_INTERVAL = "HOUR_INTERVAL"
    SPECIFIC_TIMES = "SPECIFIC_TIMES"


class AlertType(CodedEnum):
    PUSH_NOTIFICATION = "PUSH_NOTIFICATION"
    ALARM = "ALARM"


class UnitOfMeasure(CodedEnum):
    MG = "MG"
    ML = "ML"
    DROPS = "DROPS"
    TABLET = "TABLET"
    CAPSULE = "CAPSULE"


class Medication(Base):
    """Medication registered by a user; referenced by treatments"""

    __tablename__ = "medications"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)

    name = Column(String(120), nullable=False)
    active_ingredient = Column(String(120), nullable=True)
    manufacturer = Column(String(120), nullable=True)
    unit_of_measure = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    # ACTIVE / INACTIVE (logical deletion)
    status = Column(String(20), default=RecordStatus.ACTIVE.value, nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    treatments = relationship("Treatment", back_populates="medication")


class Treatment(Base):
    """Dosing plan: a frequency rule applied over an inclusive date range"""

    __tablename__ = "treatments"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    medication_id = Column(
        Integer, ForeignKey("medications.id", ondelete="SET NULL"), nullable=True, index=True
    )

    name = Column(String(120), nullable=False)
    dose_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive

    # Frequency rule: exactly one of interval_hours / specific_times is set
    frequency_type = Column(String(20), nullable=False)
    interval_hours = Column(Integer, nullable=True)
    specific_times = Column(String(255), nullable=True)  # "HH:MM, HH:MM"
    alert_type = Column(String(30), default=AlertType.PUSH_NOTIFICATION.value, nullable=False)

    # Status workflow: ACTIVE -> COMPLETED (automatic) | CANCELLED (explicit)
    status = Column(String(20), default=TreatmentStatus.ACTIVE.value, nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    medication = relationship("Medication", back_populates="treatments")
    appointments = relationship(
        "Appointment",
        back_populates="treatment",
        cascade="all, delete-orphan",
        order_by="Appointment.scheduled_at",
    )


class Appointment(Base):
    """One scheduled dose generated from a treatment"""

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    treatment_id = Column(
        Integer, ForeignKey("treatments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    scheduled_at = Column(DateTime, nullable=False, index=True)
    alert_type = Column(String(30), default=AlertType.PUSH_NOTIFICATION.value, nullable=False)

    # Status workflow: PENDING -> TAKEN | CANCELLED, both terminal
    status = Column(String(20), default=AppointmentStatus.PENDING.value, nullable=False, index=True)

    # Weak link to the history record written on completion (lookup only, no FK)
    history_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    treatment = relationship("Treatment", back_populates="appointments")
    history_records = relationship("MedicationHistory", back_populates="appointment")


class MedicationHistory(Base):
    """Dose actually taken. Append-only, logically deletable."""

    __tablename__ = "medication_history"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    # Becomes NULL when the appointment's pending row is removed
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True, index=True
    )

    used_at = Column(DateTime, nullable=False, index=True)
    dose_taken = Column(Numeric(10, 2), nullable=False)
    note = Column(Text, nullable=True)

    # ACTIVE / INACTIVE (logical deletion)
    status = Column(String(20), default=RecordStatus.ACTIVE.value, nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointment = relationship("Appointment", back_populates="history_records")

    @property
    def treatment(self):
        if self.appointment is None:
            return None
        return self.appointment.treatment

    @property
    def treatment_id(self):
        treatment = self.treatment
        return treatment.id if treatment is not None else None

    @property
    def treatment_name(self) -> str:
        treatment = self.treatment
        if treatment is None:
            return TREATMENT_REMOVED_LABEL
        return treatment.name

    @property
    def medication_name(self) -> str:
        treatment = self.treatment
        if treatment is None:
            return NO_MEDICATION_LABEL
        if treatment.medication is None:
            return MEDICATION_REMOVED_LABEL
        return treatment.medication.name
