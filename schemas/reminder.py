from datetime import datetime

from pydantic import BaseModel


class ReminderOut(BaseModel):
    id: int
    prescription_id: int
    medicine_name: str
    dosage: str
    duration: str | None
    morning: bool
    noon: bool
    night: bool
    timings: dict[str, str]
    is_active: bool
    start_date: datetime
    end_date: datetime | None
    last_notified_at: datetime | None

    class Config:
        from_attributes = True
