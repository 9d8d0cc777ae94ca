"""Medication service - Business logic for the medication catalogue"""

import logging

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import NotFoundError
from ...models import Medication, RecordStatus, UnitOfMeasure
from .repository import MedicationRepository
from .schemas import MedicationCreate, MedicationUpdate

logger = logging.getLogger(__name__)


class MedicationService:
    """Service layer for medication business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MedicationRepository()

    def list_medications(self, owner_id: int) -> list[Medication]:
        """Active medications of an owner"""
        return self.repo.get_medications(self.db, owner_id)

    def list_inactive(self, owner_id: int) -> list[Medication]:
        return self.repo.get_medications(self.db, owner_id, status=RecordStatus.INACTIVE)

    def get_medication(self, medication_id: int, owner_id: int) -> Medication:
        medication = self.repo.get_medication_by_id(self.db, medication_id, owner_id)
        if not medication:
            raise NotFoundError("Medication not found")
        return medication

    def create_medication(self, data: MedicationCreate, owner_id: int) -> Medication:
        with unit_of_work(self.db):
            medication = self.repo.add_medication(
                self.db,
                owner_id,
                name=data.name,
                active_ingredient=data.activeIngredient,
                manufacturer=data.manufacturer,
                unit_of_measure=(
                    UnitOfMeasure.from_code(data.unitOfMeasure).value
                    if data.unitOfMeasure is not None
                    else None
                ),
                notes=data.notes,
                status=RecordStatus.ACTIVE.value,
            )
        logger.info(f"Medication {medication.id} created for owner {owner_id}")
        return medication

    def update_medication(self, medication_id: int, data: MedicationUpdate, owner_id: int) -> Medication:
        with unit_of_work(self.db):
            medication = self.get_medication(medication_id, owner_id)

            updates = {}
            if data.name is not None:
                updates["name"] = data.name.strip()
            if data.activeIngredient is not None:
                updates["active_ingredient"] = data.activeIngredient
            if data.manufacturer is not None:
                updates["manufacturer"] = data.manufacturer
            if data.unitOfMeasure is not None:
                updates["unit_of_measure"] = UnitOfMeasure.from_code(data.unitOfMeasure).value
            if data.notes is not None:
                updates["notes"] = data.notes

            medication = self.repo.update_medication(self.db, medication, **updates)
        return medication

    def delete_medication(self, medication_id: int, owner_id: int) -> Medication:
        """Logical delete: the row stays, status flips to INACTIVE"""
        with unit_of_work(self.db):
            medication = self.repo.get_medication_by_id(
                self.db, medication_id, owner_id, active_only=False
            )
            if not medication:
                raise NotFoundError("Medication not found")
            medication.status = RecordStatus.INACTIVE.value
            self.db.flush()
        logger.info(f"Medication {medication_id} deactivated for owner {owner_id}")
        return medication
