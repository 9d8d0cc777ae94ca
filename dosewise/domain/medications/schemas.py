"""Medication domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, field_validator


class MedicationCreate(BaseModel):
    """Schema for registering a medication"""

    name: str
    activeIngredient: Optional[str] = None
    manufacturer: Optional[str] = None
    unitOfMeasure: Optional[Union[int, str]] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Medication name is required")
        return v


class MedicationUpdate(BaseModel):
    """Schema for updating a medication; absent fields are left untouched"""

    name: Optional[str] = None
    activeIngredient: Optional[str] = None
    manufacturer: Optional[str] = None
    unitOfMeasure: Optional[Union[int, str]] = None
    notes: Optional[str] = None


class MedicationResponse(BaseModel):
    """Schema for medication response"""

    id: int
    name: str
    activeIngredient: Optional[str]
    manufacturer: Optional[str]
    unitOfMeasure: Optional[str]
    notes: Optional[str]
    status: str
    createdAt: Optional[datetime] = None
