"""Spreadsheet export of patients, appointments and users."""
from datetime import datetime
from io import BytesIO
from typing import Tuple

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..models.appointment import Appointment
from ..models.patient import Patient
from ..models.profile import Profile
from ..schemas.export import ExportFilters, ExportRequest
from .patient_service import search_patients

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

PATIENT_COLUMNS = [
    ("First Name", 20), ("Last Name", 20), ("Email", 28), ("Phone", 18),
    ("Date of Birth", 18), ("Gender", 10), ("Address", 30), ("Created At", 22),
]
APPOINTMENT_COLUMNS = [
    ("Patient", 25), ("Date", 24), ("Duration (minutes)", 15), ("Status", 16),
    ("Notes", 32), ("Cost", 14), ("Treatment Type", 18), ("Frequency", 14),
    ("End Date", 20),
]
USER_COLUMNS = [
    ("Name", 25), ("Email", 28), ("Clinic", 28), ("Phone", 18), ("Role", 14),
    ("Approved", 14), ("Created At", 22),
]


def _value(value):
    return getattr(value, "value", value)


def _fmt_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _fmt_datetime(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def _add_sheet(workbook: Workbook, title: str, columns):
    sheet = workbook.create_sheet(title)
    sheet.append([header for header, _ in columns])
    for index, (_, width) in enumerate(columns, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width
    return sheet


class ExportService:
    def __init__(self, db: Session):
        self.db = db
        self.limit = settings.EXPORT_ROW_LIMIT

    def export(self, request: ExportRequest) -> Tuple[bytes, str]:
        """Build the workbook; returns its bytes and a download filename."""
        workbook = Workbook()
        workbook.remove(workbook.active)

        entities = ["patients", "appointments", "users"] if request.entity == "all" else [request.entity]
        for entity in entities:
            getattr(self, f"_add_{entity}")(workbook, request.filters)

        buffer = BytesIO()
        workbook.save(buffer)
        file_name = f"export-{request.entity}-{datetime.now():%Y%m%d%H%M%S}.xlsx"
        return buffer.getvalue(), file_name

    def _add_patients(self, workbook: Workbook, filters: ExportFilters) -> None:
        sheet = _add_sheet(workbook, "Patients", PATIENT_COLUMNS)
        for patient in search_patients(self.db, filters.search, filters.date_order).limit(self.limit):
            sheet.append([
                patient.first_name,
                patient.last_name,
                patient.email or "",
                patient.phone,
                _fmt_date(patient.date_of_birth),
                patient.gender or "",
                patient.address or "",
                _fmt_datetime(patient.created_at),
            ])

    def _add_appointments(self, workbook: Workbook, filters: ExportFilters) -> None:
        sheet = _add_sheet(workbook, "Appointments", APPOINTMENT_COLUMNS)

        query = (
            self.db.query(Appointment)
            .join(Appointment.patient)
            .options(joinedload(Appointment.patient))
        )
        if filters.status is not None:
            query = query.filter(Appointment.status == filters.status)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            query = query.filter(or_(
                Appointment.notes.ilike(pattern),
                Patient.first_name.ilike(pattern),
                Patient.last_name.ilike(pattern),
            ))
        if filters.start_date is not None:
            query = query.filter(Appointment.appointment_date >= filters.start_date)
        if filters.end_date is not None:
            query = query.filter(Appointment.appointment_date <= filters.end_date)

        for appointment in query.order_by(Appointment.appointment_date.asc()).limit(self.limit):
            sheet.append([
                appointment.patient.full_name,
                _fmt_datetime(appointment.appointment_date),
                appointment.duration_minutes,
                _value(appointment.status),
                appointment.notes or "",
                float(appointment.cost or 0),
                _value(appointment.treatment_type),
                _value(appointment.frequency) or "",
                _fmt_date(appointment.end_date),
            ])

    def _add_users(self, workbook: Workbook, filters: ExportFilters) -> None:
        sheet = _add_sheet(workbook, "Users", USER_COLUMNS)

        query = self.db.query(Profile)
        if filters.role is not None:
            query = query.filter(Profile.role == filters.role)

        for profile in query.order_by(Profile.created_at.desc(), Profile.id.desc()).limit(self.limit):
            sheet.append([
                profile.full_name,
                profile.email,
                profile.clinic_name or "",
                profile.phone or "",
                _value(profile.role),
                "Yes" if profile.approved else "No",
                _fmt_datetime(profile.created_at),
            ])
