"""Medication router - FastAPI endpoints for the medication catalogue"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_owner_id
from ...database import get_db
from ...models import Medication
from .schemas import MedicationCreate, MedicationResponse, MedicationUpdate
from .service import MedicationService

router = APIRouter(prefix="/medications", tags=["Medications"])


def get_medication_service(db: Session = Depends(get_db)) -> MedicationService:
    """Dependency injection for MedicationService"""
    return MedicationService(db)


def to_response(m: Medication) -> MedicationResponse:
    return MedicationResponse(
        id=m.id,
        name=m.name,
        activeIngredient=m.active_ingredient,
        manufacturer=m.manufacturer,
        unitOfMeasure=m.unit_of_measure,
        notes=m.notes,
        status=m.status,
        createdAt=m.created_at,
    )


@router.get("", response_model=list[MedicationResponse])
async def list_medications(
    owner_id: int = Depends(get_current_owner_id),
    service: MedicationService = Depends(get_medication_service),
):
    """Active medications of the current user"""
    return [to_response(m) for m in service.list_medications(owner_id)]


@router.get("/inactive", response_model=list[MedicationResponse])
async def list_inactive_medications(
    owner_id: int = Depends(get_current_owner_id),
    service: MedicationService = Depends(get_medication_service),
):
    return [to_response(m) for m in service.list_inactive(owner_id)]


@router.post("", response_model=MedicationResponse, status_code=201)
async def create_medication(
    data: MedicationCreate,
    owner_id: int = Depends(get_current_owner_id),
    service: MedicationService = Depends(get_medication_service),
):
    return to_response(service.create_medication(data, owner_id))


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
    medication_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: MedicationService = Depends(get_medication_service),
):
    return to_response(service.get_medication(medication_id, owner_id))


@router.patch("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: int,
    data: MedicationUpdate,
    owner_id: int = Depends(get_current_owner_id),
    service: MedicationService = Depends(get_medication_service),
):
    return to_response(service.update_medication(medication_id, data, owner_id))


@router.delete("/{medication_id}", response_model=MedicationResponse)
async def delete_medication(
    medication_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: MedicationService = Depends(get_medication_service),
):
    """Logical delete - the medication moves to the inactive list"""
    return to_response(service.delete_medication(medication_id, owner_id))
