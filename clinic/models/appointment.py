from sqlalchemy import Column, Integer, ForeignKey, Date, DateTime, Boolean, Numeric, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class TreatmentType(str, enum.Enum):
    ONE_TIME = "one-time"
    ONGOING = "ongoing"

class Frequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)

    # Appointment details
    appointment_date = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False, default=30)
    status = Column(
        SQLEnum(AppointmentStatus, values_callable=_enum_values),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    notes = Column(Text, nullable=True)
    cost = Column(Numeric(12, 2), nullable=False, default=0)

    # Recurrence
    treatment_type = Column(
        SQLEnum(TreatmentType, values_callable=_enum_values),
        nullable=False,
        default=TreatmentType.ONE_TIME,
    )
    frequency = Column(SQLEnum(Frequency, values_callable=_enum_values), nullable=True)
    end_date = Column(Date, nullable=True)

    # Reminder tracking
    is_reminded = Column(Boolean, nullable=False, default=False)

    created_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, date='{self.appointment_date}')>"
