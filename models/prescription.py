from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Enum as SAEnum
from sqlalchemy.sql import func
import enum

from database import Base


class PrescriptionStatus(str, enum.Enum):
    current = "current"
    archived = "archived"
    completed = "completed"


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    doctor_name = Column(String(150), nullable=True)
    status = Column(SAEnum(PrescriptionStatus), default=PrescriptionStatus.current, nullable=False)
    medicines = Column(JSON, nullable=False, default=list)  # [{name, dosage, frequency, duration, instructions}]
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def is_current(self) -> bool:
        return self.status == PrescriptionStatus.current
