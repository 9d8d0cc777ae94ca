"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, field_validator

from ...shared.validators import as_naive


class AppointmentCreate(BaseModel):
    """Schema for adding a single appointment to a treatment"""

    treatmentId: int
    scheduledAt: datetime
    alertType: Optional[Union[int, str]] = None  # defaults to the treatment's

    @field_validator("scheduledAt")
    @classmethod
    def validate_scheduled_at(cls, v):
        return as_naive(v)


class AppointmentReschedule(BaseModel):
    scheduledAt: datetime

    @field_validator("scheduledAt")
    @classmethod
    def validate_scheduled_at(cls, v):
        return as_naive(v)


class CompleteAppointmentRequest(BaseModel):
    """Schema for marking an appointment as taken; every field is optional"""

    doseTaken: Optional[Decimal] = None
    usedAt: Optional[datetime] = None
    note: Optional[str] = None

    @field_validator("usedAt")
    @classmethod
    def validate_used_at(cls, v):
        return as_naive(v)


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    treatmentId: int
    treatmentName: Optional[str]
    scheduledAt: datetime
    status: str
    alertType: str
    historyId: Optional[int]
