"""History domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import as_naive


class DoseLogCreate(BaseModel):
    """Schema for logging an ad-hoc dose against an existing appointment"""

    appointmentId: int
    usedAt: datetime
    doseTaken: Decimal
    note: Optional[str] = None

    @field_validator("usedAt")
    @classmethod
    def validate_used_at(cls, v):
        return as_naive(v)


class HistoryUpdate(BaseModel):
    """Schema for correcting a history record; absent fields are left untouched"""

    usedAt: Optional[datetime] = None
    doseTaken: Optional[Decimal] = None
    note: Optional[str] = None

    @field_validator("usedAt")
    @classmethod
    def validate_used_at(cls, v):
        return as_naive(v)


class HistoryResponse(BaseModel):
    """Schema for history record response"""

    id: int
    usedAt: datetime
    doseTaken: Decimal
    note: Optional[str]
    status: str
    appointmentId: Optional[int]
    treatmentId: Optional[int]
    treatmentName: str
    medicationName: str


class MedicationTotalResponse(BaseModel):
    medicationName: str
    doses: int
    totalDose: Decimal


class PeriodReportResponse(BaseModel):
    """Plain report data for a period; formatting is left to the caller"""

    start: datetime
    end: datetime
    totalDoses: int
    byMedication: list[MedicationTotalResponse]
    entries: list[HistoryResponse]
