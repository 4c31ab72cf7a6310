from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Literal, Optional

from ...core.database import get_db
from ...api.deps import get_staff_user
from ...models.profile import Profile
from ...schemas.auth import MessageResponse
from ...schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from ...services.patient_service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.get("", response_model=List[PatientResponse])
def list_patients(
    search: Optional[str] = None,
    order: Literal["newest", "oldest"] = "newest",
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """List patients, searching name, email and phone."""
    return PatientService(db).list_patients(search, order, skip, limit)

@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(
    data: PatientCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return PatientService(db).create_patient(data, current_user)

@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return PatientService(db).get_patient(patient_id)

@router.patch("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    data: PatientUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    return PatientService(db).update_patient(patient_id, data)

@router.delete("/{patient_id}", response_model=MessageResponse)
def delete_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_staff_user)
):
    """Delete a patient and all of their appointments."""
    PatientService(db).delete_patient(patient_id)
    return {"message": "Patient deleted successfully"}
