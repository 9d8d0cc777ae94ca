"""Treatment repository - Database operations for treatments"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ...models import Appointment, AppointmentStatus, Treatment, TreatmentStatus


class TreatmentRepository:
    """Repository for treatment database operations"""

    @staticmethod
    def get_treatments(
        db: Session, owner_id: int, status: Optional[TreatmentStatus] = None
    ) -> list[Treatment]:
        """Get all treatments for an owner with optional status filter"""
        query = db.query(Treatment).filter(Treatment.owner_id == owner_id)

        if status is not None:
            query = query.filter(Treatment.status == status.value)

        return query.order_by(Treatment.start_date.desc(), Treatment.id.desc()).all()

    @staticmethod
    def get_treatment_by_id(db: Session, treatment_id: int, owner_id: int) -> Optional[Treatment]:
        """Get a specific treatment by ID, appointments included"""
        return (
            db.query(Treatment)
            .options(selectinload(Treatment.appointments))
            .filter(Treatment.id == treatment_id, Treatment.owner_id == owner_id)
            .first()
        )

    @staticmethod
    def add_treatment(db: Session, owner_id: int, **treatment_data) -> Treatment:
        """Stage a new treatment and assign its id"""
        treatment = Treatment(owner_id=owner_id, **treatment_data)
        db.add(treatment)
        db.flush()
        return treatment

    @staticmethod
    def save_treatment(db: Session, treatment: Treatment) -> Treatment:
        db.add(treatment)
        db.flush()
        return treatment

    @staticmethod
    def count_appointments(db: Session, treatment_id: int, status: AppointmentStatus) -> int:
        """Count a treatment's appointments in the given status"""
        return (
            db.query(func.count(Appointment.id))
            .filter(Appointment.treatment_id == treatment_id, Appointment.status == status.value)
            .scalar()
        )

    @staticmethod
    def remove_pending_appointments(db: Session, treatment: Treatment) -> int:
        """
        Physically delete the treatment's PENDING appointments.
        TAKEN and CANCELLED rows are kept. Returns the number removed.
        """
        pending = [a for a in treatment.appointments if a.status == AppointmentStatus.PENDING.value]
        for appointment in pending:
            treatment.appointments.remove(appointment)

        db.flush()
        return len(pending)
