"""Treatment router - FastAPI endpoints for treatments"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_owner_id
from ...database import get_db
from ...models import Treatment
from .schemas import AppointmentSummary, TreatmentCreate, TreatmentResponse, TreatmentUpdate
from .service import TreatmentService

router = APIRouter(prefix="/treatments", tags=["Treatments"])


def get_treatment_service(db: Session = Depends(get_db)) -> TreatmentService:
    """Dependency injection for TreatmentService"""
    return TreatmentService(db)


def to_response(t: Treatment, include_appointments: bool = True) -> TreatmentResponse:
    return TreatmentResponse(
        id=t.id,
        medicationId=t.medication_id,
        medicationName=t.medication.name if t.medication else None,
        name=t.name,
        doseAmount=t.dose_amount,
        startDate=t.start_date,
        endDate=t.end_date,
        frequencyType=t.frequency_type,
        intervalHours=t.interval_hours,
        specificTimes=t.specific_times,
        alertType=t.alert_type,
        status=t.status,
        notes=t.notes,
        pendingCount=TreatmentService.pending_count(t),
        appointments=(
            [
                AppointmentSummary(
                    id=a.id,
                    scheduledAt=a.scheduled_at,
                    status=a.status,
                    alertType=a.alert_type,
                    historyId=a.history_id,
                )
                for a in t.appointments
            ]
            if include_appointments
            else []
        ),
    )


@router.get("", response_model=list[TreatmentResponse])
async def list_treatments(
    status: Optional[Union[int, str]] = Query(None),
    owner_id: int = Depends(get_current_owner_id),
    service: TreatmentService = Depends(get_treatment_service),
):
    """Treatments of the current user, optionally filtered by status"""
    return [to_response(t, include_appointments=False) for t in service.list_treatments(owner_id, status)]


@router.post("", response_model=TreatmentResponse, status_code=201)
async def create_treatment(
    data: TreatmentCreate,
    owner_id: int = Depends(get_current_owner_id),
    service: TreatmentService = Depends(get_treatment_service),
):
    """Create a treatment and generate its appointments"""
    return to_response(service.create_treatment(owner_id, data))


@router.get("/{treatment_id}", response_model=TreatmentResponse)
async def get_treatment(
    treatment_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: TreatmentService = Depends(get_treatment_service),
):
    return to_response(service.get_treatment(treatment_id, owner_id))


@router.patch("/{treatment_id}", response_model=TreatmentResponse)
async def update_treatment(
    treatment_id: int,
    data: TreatmentUpdate,
    owner_id: int = Depends(get_current_owner_id),
    service: TreatmentService = Depends(get_treatment_service),
):
    return to_response(service.update_treatment(treatment_id, owner_id, data))


@router.delete("/{treatment_id}", response_model=TreatmentResponse)
async def cancel_treatment(
    treatment_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: TreatmentService = Depends(get_treatment_service),
):
    """Cancel a treatment; pending appointments are removed"""
    return to_response(service.cancel_treatment(treatment_id, owner_id))


@router.post("/{treatment_id}/check-completion", response_model=TreatmentResponse)
async def check_treatment_completion(
    treatment_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: TreatmentService = Depends(get_treatment_service),
):
    return to_response(service.check_and_complete(treatment_id, owner_id))
