"""Appointment router - FastAPI endpoints for scheduled doses"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_owner_id
from ...database import get_db
from ...models import Appointment
from ...shared.validators import as_naive
from ..history.router import to_response as history_to_response
from ..history.schemas import HistoryResponse
from .schemas import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    CompleteAppointmentRequest,
)
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def to_response(a: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=a.id,
        treatmentId=a.treatment_id,
        treatmentName=a.treatment.name if a.treatment else None,
        scheduledAt=a.scheduled_at,
        status=a.status,
        alertType=a.alert_type,
        historyId=a.history_id,
    )


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    includeCancelled: bool = Query(False),
    owner_id: int = Depends(get_current_owner_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments of the current user, optionally within a period"""
    start, end = as_naive(start), as_naive(end)
    appointments = service.list_appointments(owner_id, start, end, includeCancelled)
    return [to_response(a) for a in appointments]


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    owner_id: int = Depends(get_current_owner_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.create_for_treatment(
        data.treatmentId, owner_id, data.scheduledAt, data.alertType
    )
    return to_response(appointment)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    return to_response(service.get_appointment(appointment_id, owner_id))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: int,
    data: AppointmentReschedule,
    owner_id: int = Depends(get_current_owner_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    return to_response(service.reschedule(appointment_id, owner_id, data.scheduledAt))


@router.delete("/{appointment_id}", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Logical delete - the appointment is kept with status CANCELLED"""
    return to_response(service.cancel(appointment_id, owner_id))


@router.post("/{appointment_id}/complete", response_model=HistoryResponse, status_code=201)
async def complete_appointment(
    appointment_id: int,
    data: Optional[CompleteAppointmentRequest] = None,
    owner_id: int = Depends(get_current_owner_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Mark an appointment as taken; returns the history record it produced"""
    data = data or CompleteAppointmentRequest()
    record = service.complete(appointment_id, owner_id, data.doseTaken, data.usedAt, data.note)
    return history_to_response(record)
