from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_staff_user
from ...models.profile import Profile
from ...models.revenue import RevenueStatus
from ...schemas.auth import MessageResponse
from ...schemas.revenue import (
    DashboardStats, RevenueCreate, RevenueResponse, RevenueSummary, RevenueUpdate
)
from ...services.appointment_service import AppointmentService
from ...services.revenue_service import RevenueService

router = APIRouter(tags=["Revenue"])

@router.get("/dashboard", response_model=DashboardStats)
def dashboard(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Headline counts, revenue totals and the next ten appointments."""
    upcoming = AppointmentService(db).upcoming(limit=10)
    return RevenueService(db).dashboard(upcoming)

@router.get("/revenue", response_model=List[RevenueResponse])
def list_revenue(
    status: Optional[RevenueStatus] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return RevenueService(db).list_revenue(status, start, end, skip, limit)

@router.get("/revenue/summary", response_model=RevenueSummary)
def revenue_summary(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Totals from revenue entries and appointment costs, with a 30-day chart."""
    return RevenueService(db).summary()

@router.post("/revenue", response_model=RevenueResponse, status_code=status.HTTP_201_CREATED)
def create_revenue(
    data: RevenueCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return RevenueService(db).create_revenue(data, current_user)

@router.get("/revenue/{revenue_id}", response_model=RevenueResponse)
def get_revenue(
    revenue_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return RevenueService(db).get_revenue(revenue_id)

@router.patch("/revenue/{revenue_id}", response_model=RevenueResponse)
def update_revenue(
    revenue_id: int,
    data: RevenueUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return RevenueService(db).update_revenue(revenue_id, data)

@router.delete("/revenue/{revenue_id}", response_model=MessageResponse)
def delete_revenue(
    revenue_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    RevenueService(db).delete_revenue(revenue_id)
    return {"message": "Revenue entry deleted successfully"}
