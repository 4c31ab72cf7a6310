from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFound
from ..models.appointment import Appointment, AppointmentStatus
from ..models.patient import Patient
from ..models.profile import Profile
from ..models.revenue import Revenue, RevenueStatus
from ..schemas.appointment import AppointmentResponse, local_naive
from ..schemas.revenue import (
    DailyRevenue, DashboardStats, RevenueCreate, RevenueSummary, RevenueUpdate
)

CHART_DAYS = 30

def detach_revenue(db: Session, appointment_ids: List[int]) -> None:
    """Unlink revenue entries from appointments about to be deleted."""
    db.query(Revenue).filter(Revenue.appointment_id.in_(appointment_ids)).update(
        {Revenue.appointment_id: None}, synchronize_session=False
    )

def _sum(amounts: Iterable) -> Decimal:
    return sum((Decimal(amount or 0) for amount in amounts), Decimal("0"))

def summarize(
    revenues: List[Revenue], appointments: List[Appointment], today: Optional[date] = None
) -> RevenueSummary:
    """Revenue totals combining manual entries with appointment costs.

    total: all entries plus completed appointments.
    completed: completed entries plus completed appointments.
    pending: pending entries.
    estimated: completed entries plus every non-cancelled appointment.
    """
    completed_entries = _sum(r.amount for r in revenues if r.status == RevenueStatus.COMPLETED)
    completed_costs = _sum(a.cost for a in appointments if a.status == AppointmentStatus.COMPLETED)
    expected_costs = _sum(a.cost for a in appointments if a.status != AppointmentStatus.CANCELLED)

    by_method = defaultdict(Decimal)
    for revenue in revenues:
        method = getattr(revenue.payment_method, "value", revenue.payment_method)
        by_method[method] += Decimal(revenue.amount or 0)

    today = today or date.today()
    first_day = today - timedelta(days=CHART_DAYS - 1)
    per_day = defaultdict(Decimal)
    for revenue in revenues:
        day = revenue.transaction_date.date()
        if first_day <= day <= today:
            per_day[day] += Decimal(revenue.amount or 0)

    return RevenueSummary(
        total=_sum(r.amount for r in revenues) + completed_costs,
        completed=completed_entries + completed_costs,
        pending=_sum(r.amount for r in revenues if r.status == RevenueStatus.PENDING),
        estimated=completed_entries + expected_costs,
        by_payment_method=dict(by_method),
        daily=[
            DailyRevenue(day=day, amount=per_day[day])
            for day in sorted(per_day)
            if per_day[day] > 0
        ],
    )

class RevenueService:
    def __init__(self, db: Session):
        self.db = db

    def list_revenue(
        self,
        status: Optional[RevenueStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Revenue]:
        start, end = local_naive(start), local_naive(end)
        query = self.db.query(Revenue)
        if status is not None:
            query = query.filter(Revenue.status == status)
        if start is not None:
            query = query.filter(Revenue.transaction_date >= start)
        if end is not None:
            query = query.filter(Revenue.transaction_date <= end)
        return query.order_by(Revenue.transaction_date.desc()).offset(skip).limit(limit).all()

    def get_revenue(self, revenue_id: int) -> Revenue:
        revenue = self.db.get(Revenue, revenue_id)
        if revenue is None:
            raise NotFound("Revenue entry not found")
        return revenue

    def create_revenue(self, data: RevenueCreate, created_by: Profile) -> Revenue:
        self._require_appointment(data.appointment_id)
        revenue = Revenue(**data.model_dump(), created_by=created_by.id)
        self.db.add(revenue)
        self.db.commit()
        self.db.refresh(revenue)
        return revenue

    def update_revenue(self, revenue_id: int, data: RevenueUpdate) -> Revenue:
        revenue = self.get_revenue(revenue_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("appointment_id") is not None:
            self._require_appointment(changes["appointment_id"])
        for field, value in changes.items():
            setattr(revenue, field, value)
        self.db.commit()
        self.db.refresh(revenue)
        return revenue

    def delete_revenue(self, revenue_id: int) -> None:
        revenue = self.get_revenue(revenue_id)
        self.db.delete(revenue)
        self.db.commit()

    def summary(self, today: Optional[date] = None) -> RevenueSummary:
        return summarize(
            self.db.query(Revenue).all(),
            self.db.query(Appointment).all(),
            today=today,
        )

    def dashboard(self, upcoming: List[Appointment]) -> DashboardStats:
        appointments = self.db.query(Appointment).all()
        completed_entries = _sum(
            amount for (amount,) in
            self.db.query(Revenue.amount).filter(Revenue.status == RevenueStatus.COMPLETED)
        )
        return DashboardStats(
            patient_count=self.db.query(Patient).count(),
            appointment_count=len(appointments),
            total_revenue=completed_entries + _sum(
                a.cost for a in appointments if a.status == AppointmentStatus.COMPLETED
            ),
            expected_revenue=_sum(
                a.cost for a in appointments if a.status != AppointmentStatus.CANCELLED
            ),
            upcoming_appointments=[
                AppointmentResponse.model_validate(appointment) for appointment in upcoming
            ],
        )

    def _require_appointment(self, appointment_id: Optional[int]) -> None:
        if appointment_id is not None and self.db.get(Appointment, appointment_id) is None:
            raise NotFound("Appointment not found")
