from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from ..core.security import UserRole
from ..models.appointment import AppointmentStatus
from .appointment import local_naive

class ExportFilters(BaseModel):
    # Patients
    search: Optional[str] = None
    date_order: Literal["newest", "oldest"] = "newest"
    # Appointments
    status: Optional[AppointmentStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    # Users
    role: Optional[UserRole] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_bounds(cls, value: Optional[datetime]) -> Optional[datetime]:
        return local_naive(value)

class ExportRequest(BaseModel):
    entity: Literal["patients", "appointments", "users", "all"]
    filters: ExportFilters = Field(default_factory=ExportFilters)
