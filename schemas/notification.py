from typing import Literal

from pydantic import BaseModel, Field


class ReminderTestRequest(BaseModel):
    medicine_name: str = Field(min_length=1, max_length=200)
    dosage: str = Field(min_length=1, max_length=120)
    time_slot: Literal["morning", "noon", "night"] = "morning"


class DeliveryResultOut(BaseModel):
    token: str
    status: Literal["SENT", "FAILED"]
    error: str | None = None
