"""History repository - Database operations for dose history"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, MedicationHistory, RecordStatus, Treatment


def _with_labels(query):
    # Labels walk history -> appointment -> treatment -> medication
    return query.options(
        joinedload(MedicationHistory.appointment)
        .joinedload(Appointment.treatment)
        .joinedload(Treatment.medication)
    )


class HistoryRepository:
    """Repository for medication history database operations"""

    @staticmethod
    def get_history(
        db: Session,
        owner_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[MedicationHistory]:
        """Get active history records, most recent use first"""
        query = _with_labels(db.query(MedicationHistory)).filter(
            MedicationHistory.owner_id == owner_id,
            MedicationHistory.status == RecordStatus.ACTIVE.value,
        )

        if start:
            query = query.filter(MedicationHistory.used_at >= start)

        if end:
            query = query.filter(MedicationHistory.used_at <= end)

        return query.order_by(MedicationHistory.used_at.desc(), MedicationHistory.id.desc()).all()

    @staticmethod
    def get_history_by_id(
        db: Session, history_id: int, owner_id: int, active_only: bool = True
    ) -> Optional[MedicationHistory]:
        """Get a specific history record by ID"""
        query = _with_labels(db.query(MedicationHistory)).filter(
            MedicationHistory.id == history_id, MedicationHistory.owner_id == owner_id
        )
        if active_only:
            query = query.filter(MedicationHistory.status == RecordStatus.ACTIVE.value)
        return query.first()

    @staticmethod
    def add_history(db: Session, owner_id: int, **history_data) -> MedicationHistory:
        """Stage a new history record and assign its id"""
        record = MedicationHistory(owner_id=owner_id, **history_data)
        db.add(record)
        db.flush()
        return record

    @staticmethod
    def update_history(db: Session, record: MedicationHistory, **updates) -> MedicationHistory:
        """Update a history record with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(record, key):
                setattr(record, key, value)

        db.flush()
        return record
