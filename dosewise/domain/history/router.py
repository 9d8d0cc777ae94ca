"""History router - FastAPI endpoints for dose history"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_owner_id
from ...database import get_db
from ...exceptions import ValidationError
from ...models import MedicationHistory
from ...shared.validators import as_naive
from .schemas import (
    DoseLogCreate,
    HistoryResponse,
    HistoryUpdate,
    MedicationTotalResponse,
    PeriodReportResponse,
)
from .service import HistoryService, month_bounds

router = APIRouter(prefix="/history", tags=["History"])


def get_history_service(db: Session = Depends(get_db)) -> HistoryService:
    """Dependency injection for HistoryService"""
    return HistoryService(db)


def to_response(h: MedicationHistory) -> HistoryResponse:
    return HistoryResponse(
        id=h.id,
        usedAt=h.used_at,
        doseTaken=h.dose_taken,
        note=h.note,
        status=h.status,
        appointmentId=h.appointment_id,
        treatmentId=h.treatment_id,
        treatmentName=h.treatment_name,
        medicationName=h.medication_name,
    )


@router.get("", response_model=list[HistoryResponse])
async def list_history(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    owner_id: int = Depends(get_current_owner_id),
    service: HistoryService = Depends(get_history_service),
):
    """Active history of the current user, most recent first"""
    start, end = as_naive(start), as_naive(end)
    if start is None and end is None:
        records = service.list_by_owner(owner_id)
    else:
        records = service.list_by_owner_and_period(owner_id, start, end)
    return [to_response(h) for h in records]


@router.post("", response_model=HistoryResponse, status_code=201)
async def log_dose(
    data: DoseLogCreate,
    owner_id: int = Depends(get_current_owner_id),
    service: HistoryService = Depends(get_history_service),
):
    """Log a dose against an existing appointment without changing its status"""
    record = service.log_dose(owner_id, data.appointmentId, data.doseTaken, data.usedAt, data.note)
    return to_response(record)


@router.get("/report", response_model=PeriodReportResponse)
async def period_report(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    owner_id: int = Depends(get_current_owner_id),
    service: HistoryService = Depends(get_history_service),
):
    """Report data for [start, end], or for a calendar month given as year + month"""
    start, end = as_naive(start), as_naive(end)
    if year is not None and month is not None:
        start, end = month_bounds(year, month)
    elif start is None or end is None:
        raise ValidationError("Provide either start and end, or year and month")

    report = service.period_report(owner_id, start, end)
    return PeriodReportResponse(
        start=report.start,
        end=report.end,
        totalDoses=report.total_doses,
        byMedication=[
            MedicationTotalResponse(
                medicationName=t.medication_name, doses=t.doses, totalDose=t.total_dose
            )
            for t in report.by_medication
        ],
        entries=[to_response(h) for h in report.entries],
    )


@router.get("/{history_id}", response_model=HistoryResponse)
async def get_history(
    history_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: HistoryService = Depends(get_history_service),
):
    return to_response(service.get(history_id, owner_id))


@router.patch("/{history_id}", response_model=HistoryResponse)
async def update_history(
    history_id: int,
    data: HistoryUpdate,
    owner_id: int = Depends(get_current_owner_id),
    service: HistoryService = Depends(get_history_service),
):
    record = service.update(history_id, owner_id, data.usedAt, data.doseTaken, data.note)
    return to_response(record)


@router.delete("/{history_id}", response_model=HistoryResponse)
async def delete_history(
    history_id: int,
    owner_id: int = Depends(get_current_owner_id),
    service: HistoryService = Depends(get_history_service),
):
    """Logical delete - the record is kept with status INACTIVE"""
    return to_response(service.logical_delete(history_id, owner_id))
