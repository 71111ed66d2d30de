from sqlalchemy import Column, Integer, Boolean, DateTime
from sqlalchemy.sql import func

from database import Base


class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, unique=True, nullable=False, index=True)
    enabled = Column(Boolean, default=True, nullable=False)
    medication_reminders = Column(Boolean, default=True, nullable=False)
    email_notifications = Column(Boolean, default=False, nullable=False)
    push_notifications = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def allows_push_reminders(self) -> bool:
        return bool(self.enabled and self.push_notifications and self.medication_reminders)
