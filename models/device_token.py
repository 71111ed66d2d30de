from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
import enum

from database import Base


class DevicePlatform(str, enum.Enum):
    android = "android"
    ios = "ios"
    web = "web"


class DeviceToken(Base):
    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    token = Column(String(512), nullable=False, index=True)
    platform = Column(SAEnum(DevicePlatform), nullable=False)
    device_id = Column(String(255), nullable=False)
    last_used = Column(DateTime, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    # One row per install; re-registration overwrites in place.
    __table_args__ = (UniqueConstraint("user_id", "device_id", name="uq_device_tokens_user_device"),)
