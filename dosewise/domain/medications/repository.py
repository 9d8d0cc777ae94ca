"""Medication repository - Database operations for medications"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Medication, RecordStatus


class MedicationRepository:
    """Repository for medication database operations"""

    @staticmethod
    def get_medications(db: Session, owner_id: int, status: Optional[RecordStatus] = RecordStatus.ACTIVE) -> list[Medication]:
        """Get medications for an owner, active ones unless a status is given"""
        query = db.query(Medication).filter(Medication.owner_id == owner_id)

        if status is not None:
            query = query.filter(Medication.status == status.value)

        return query.order_by(Medication.name).all()

    @staticmethod
    def get_medication_by_id(
        db: Session, medication_id: int, owner_id: int, active_only: bool = True
    ) -> Optional[Medication]:
        """Get a specific medication by ID"""
        query = db.query(Medication).filter(
            Medication.id == medication_id, Medication.owner_id == owner_id
        )
        if active_only:
            query = query.filter(Medication.status == RecordStatus.ACTIVE.value)
        return query.first()

    @staticmethod
    def add_medication(db: Session, owner_id: int, **medication_data) -> Medication:
        """Stage a new medication and assign its id"""
        medication = Medication(owner_id=owner_id, **medication_data)
        db.add(medication)
        db.flush()
        return medication

    @staticmethod
    def update_medication(db: Session, medication: Medication, **updates) -> Medication:
        """Update a medication with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(medication, key):
                setattr(medication, key, value)

        db.flush()
        return medication
