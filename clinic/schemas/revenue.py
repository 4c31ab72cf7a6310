from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.revenue import PaymentMethod, RevenueStatus
from .appointment import AppointmentResponse, local_naive

class RevenueBase(BaseModel):
    amount: Decimal = Field(gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: RevenueStatus = RevenueStatus.COMPLETED
    transaction_date: datetime
    notes: Optional[str] = None
    appointment_id: Optional[int] = None

    @field_validator("transaction_date")
    @classmethod
    def naive_transaction_date(cls, value: datetime) -> datetime:
        return local_naive(value)

class RevenueCreate(RevenueBase):
    pass

class RevenueUpdate(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0)
    payment_method: Optional[PaymentMethod] = None
    status: Optional[RevenueStatus] = None
    transaction_date: Optional[datetime] = None
    notes: Optional[str] = None
    appointment_id: Optional[int] = None

    @field_validator("transaction_date")
    @classmethod
    def naive_transaction_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return local_naive(value)

class RevenueResponse(RevenueBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None

class DailyRevenue(BaseModel):
    day: date
    amount: Decimal

class RevenueSummary(BaseModel):
    total: Decimal
    completed: Decimal
    pending: Decimal
    estimated: Decimal
    by_payment_method: Dict[str, Decimal]
    daily: List[DailyRevenue]

class DashboardStats(BaseModel):
    patient_count: int
    appointment_count: int
    total_revenue: Decimal
    expected_revenue: Decimal
    upcoming_appointments: List[AppointmentResponse]
