from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.exceptions import NotFound
from ..models.patient import Patient
from ..models.profile import Profile
from ..schemas.patient import PatientCreate, PatientUpdate
from .revenue_service import detach_revenue

def search_patients(db: Session, search: Optional[str] = None, order: str = "newest"):
    """Patient query filtered by name, email or phone."""
    query = db.query(Patient)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Patient.first_name.ilike(pattern),
            Patient.last_name.ilike(pattern),
            Patient.email.ilike(pattern),
            Patient.phone.ilike(pattern),
        ))
    if order == "oldest":
        return query.order_by(Patient.created_at.asc(), Patient.id.asc())
    return query.order_by(Patient.created_at.desc(), Patient.id.desc())

class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def list_patients(
        self, search: Optional[str] = None, order: str = "newest", skip: int = 0, limit: int = 100
    ) -> List[Patient]:
        return search_patients(self.db, search, order).offset(skip).limit(limit).all()

    def get_patient(self, patient_id: int) -> Patient:
        patient = self.db.get(Patient, patient_id)
        if patient is None:
            raise NotFound("Patient not found")
        return patient

    def create_patient(self, data: PatientCreate, created_by: Profile) -> Patient:
        patient = Patient(**data.model_dump(), created_by=created_by.id)
        self.db.add(patient)
        self.db.commit()
        self.db.refresh(patient)
        return patient

    def update_patient(self, patient_id: int, data: PatientUpdate) -> Patient:
        patient = self.get_patient(patient_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(patient, field, value)
        self.db.commit()
        self.db.refresh(patient)
        return patient

    def delete_patient(self, patient_id: int) -> None:
        """Delete a patient together with their appointments."""
        patient = self.get_patient(patient_id)
        appointment_ids = [appointment.id for appointment in patient.appointments]
        if appointment_ids:
            detach_revenue(self.db, appointment_ids)
        self.db.delete(patient)
        self.db.commit()
