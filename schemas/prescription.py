from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class MedicineIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    dosage: str | None = Field(default=None, max_length=120)
    frequency: str | None = Field(default=None, max_length=120)
    duration: str | None = Field(default=None, max_length=80)
    instructions: str | None = None


class PrescriptionCreate(BaseModel):
    doctor_name: str | None = None
    medicines: list[MedicineIn] = []
    notes: str | None = None
    is_current: bool = True


class PrescriptionUpdate(BaseModel):
    doctor_name: str | None = None
    medicines: list[MedicineIn] | None = None
    notes: str | None = None


class PrescriptionStatusUpdate(BaseModel):
    status: Literal["current", "archived", "completed"]


class PrescriptionOut(BaseModel):
    id: int
    user_id: int
    doctor_name: str | None
    status: str
    medicines: list[MedicineIn]
    notes: str | None
    created_at: datetime | None

    class Config:
        from_attributes = True
