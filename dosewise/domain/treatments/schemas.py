"""Treatment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, field_validator


class TreatmentCreate(BaseModel):
    """Schema for creating a treatment and its appointments"""

    medicationId: int
    name: str
    doseAmount: Decimal
    startDate: date
    endDate: date
    frequencyType: Union[int, str]  # 1 = hour interval, 2 = specific times
    intervalHours: Optional[int] = None
    specificTimes: Optional[str] = None  # "09:00, 21:00"
    alertType: Union[int, str] = 1
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Treatment name is required")
        return v


class TreatmentUpdate(BaseModel):
    """
    Schema for partial treatment updates.

    Changing frequencyType, intervalHours, specificTimes, startDate or endDate
    regenerates the pending appointments.
    """

    medicationId: Optional[int] = None
    name: Optional[str] = None
    doseAmount: Optional[Decimal] = None
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    frequencyType: Optional[Union[int, str]] = None
    intervalHours: Optional[int] = None
    specificTimes: Optional[str] = None
    alertType: Optional[Union[int, str]] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Treatment name must not be blank")
        return v

    def changes_schedule(self) -> bool:
        return any(
            value is not None
            for value in (
                self.frequencyType,
                self.intervalHours,
                self.specificTimes,
                self.startDate,
                self.endDate,
            )
        )


class AppointmentSummary(BaseModel):
    id: int
    scheduledAt: datetime
    status: str
    alertType: str
    historyId: Optional[int] = None


class TreatmentResponse(BaseModel):
    """Schema for treatment response"""

    id: int
    medicationId: Optional[int]
    medicationName: Optional[str]
    name: str
    doseAmount: Decimal
    startDate: date
    endDate: date
    frequencyType: str
    intervalHours: Optional[int]
    specificTimes: Optional[str]
    alertType: str
    status: str
    notes: Optional[str]
    pendingCount: int
    appointments: list[AppointmentSummary] = []
