"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, AppointmentStatus


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointments(
        db: Session,
        owner_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        include_cancelled: bool = False,
    ) -> list[Appointment]:
        """Get appointments for an owner, optionally within [start, end]"""
        query = db.query(Appointment).filter(Appointment.owner_id == owner_id)

        if not include_cancelled:
            query = query.filter(Appointment.status != AppointmentStatus.CANCELLED.value)

        if start:
            query = query.filter(Appointment.scheduled_at >= start)

        if end:
            query = query.filter(Appointment.scheduled_at <= end)

        return query.order_by(Appointment.scheduled_at, Appointment.id).all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int, owner_id: int) -> Optional[Appointment]:
        """Get a specific appointment by ID"""
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.owner_id == owner_id)
            .first()
        )

    @staticmethod
    def save_appointment(db: Session, appointment: Appointment) -> Appointment:
        db.add(appointment)
        db.flush()
        return appointment
