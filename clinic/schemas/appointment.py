from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.appointment import AppointmentStatus, Frequency, TreatmentType

def local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive local time; aware input is converted to match."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)

class AppointmentBase(BaseModel):
    patient_id: int
    appointment_date: datetime
    duration_minutes: int = Field(default=30, gt=0, le=24 * 60)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None
    cost: Decimal = Field(default=Decimal("0"), ge=0)
    treatment_type: TreatmentType = TreatmentType.ONE_TIME
    frequency: Optional[Frequency] = None
    end_date: Optional[date] = None

    @field_validator("appointment_date")
    @classmethod
    def naive_appointment_date(cls, value: datetime) -> datetime:
        return local_naive(value)

class AppointmentCreate(AppointmentBase):
    @model_validator(mode="after")
    def check_recurrence(self):
        if self.treatment_type == TreatmentType.ONGOING:
            if self.frequency is None or self.end_date is None:
                raise ValueError("Ongoing treatment requires frequency and end_date")
            if self.end_date < self.appointment_date.date():
                raise ValueError("end_date must not precede the appointment date")
        else:
            # Recurrence fields only apply to ongoing treatment
            self.frequency = None
            self.end_date = None
        return self

class AppointmentUpdate(BaseModel):
    patient_id: Optional[int] = None
    appointment_date: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=24 * 60)
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    cost: Optional[Decimal] = Field(default=None, ge=0)
    treatment_type: Optional[TreatmentType] = None
    frequency: Optional[Frequency] = None
    end_date: Optional[date] = None

    @field_validator("appointment_date")
    @classmethod
    def naive_appointment_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return local_naive(value)

class PatientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None
    email: Optional[str] = None

class AppointmentResponse(AppointmentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_reminded: bool = False
    patient: Optional[PatientSummary] = None
    created_at: Optional[datetime] = None

class AppointmentOccurrence(BaseModel):
    """One calendar instance of a stored appointment."""
    source_id: int
    occurrence_id: str
    start_at: datetime
    patient_id: int
    duration_minutes: Optional[int] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    cost: Optional[Decimal] = None
    treatment_type: Optional[TreatmentType] = None
    # Stored rows may carry a frequency this service does not expand
    frequency: Optional[str] = None
    end_date: Optional[date] = None
    patient: Optional[PatientSummary] = None

class ReminderResult(BaseModel):
    sent: int
    skipped: int
    failed: int
