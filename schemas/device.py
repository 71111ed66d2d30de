from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class DeviceTokenRegister(BaseModel):
    token: str = Field(min_length=1, max_length=512)
    platform: Literal["android", "ios", "web"]
    device_id: str = Field(min_length=1, max_length=255)


class DeviceTokenOut(BaseModel):
    id: int
    device_id: str
    platform: str
    last_used: datetime
    is_active: bool

    class Config:
        from_attributes = True


class NotificationSettingsUpdate(BaseModel):
    enabled: bool | None = None
    medication_reminders: bool | None = None
    email_notifications: bool | None = None
    push_notifications: bool | None = None


class NotificationSettingsOut(BaseModel):
    enabled: bool
    medication_reminders: bool
    email_notifications: bool
    push_notifications: bool

    class Config:
        from_attributes = True
