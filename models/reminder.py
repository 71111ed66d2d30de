from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from config import REMINDER_TIME_MORNING, REMINDER_TIME_NOON, REMINDER_TIME_NIGHT
from database import Base


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    prescription_id = Column(
        Integer,
        ForeignKey("prescriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    medicine_name = Column(String(200), nullable=False)
    dosage = Column(String(120), nullable=False)
    duration = Column(String(80), nullable=True)

    morning = Column(Boolean, default=False, nullable=False)
    noon = Column(Boolean, default=False, nullable=False)
    night = Column(Boolean, default=False, nullable=False)

    morning_time = Column(String(5), default=REMINDER_TIME_MORNING, nullable=False)
    noon_time = Column(String(5), default=REMINDER_TIME_NOON, nullable=False)
    night_time = Column(String(5), default=REMINDER_TIME_NIGHT, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)  # None = open-ended course
    last_notified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_reminders_user_active_start", "user_id", "is_active", "start_date"),
    )

    @property
    def timings(self) -> dict[str, str]:
        return {"morning": self.morning_time, "noon": self.noon_time, "night": self.night_time}

    def is_scheduled_for(self, slot: str) -> bool:
        return bool(getattr(self, slot))
