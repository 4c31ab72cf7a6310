"""Expansion of ongoing (recurring) appointments into calendar occurrences."""
from datetime import date, datetime
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from ..models.appointment import Appointment, Frequency, TreatmentType
from ..schemas.appointment import AppointmentOccurrence, PatientSummary

# Upper bound on generated repeats per appointment. A daily series with a
# multi-year end date stops here; widen the horizon by querying again from a
# later anchor.
MAX_GENERATED_OCCURRENCES = 100

PERIODS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.YEARLY: relativedelta(years=1),
}


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _period_for(frequency) -> Optional[relativedelta]:
    try:
        return PERIODS.get(Frequency(frequency))
    except ValueError:
        return None


def _occurrence(appointment: Appointment, start_at: datetime, occurrence_id: str) -> AppointmentOccurrence:
    patient = getattr(appointment, "patient", None)
    return AppointmentOccurrence(
        source_id=appointment.id,
        occurrence_id=occurrence_id,
        start_at=start_at,
        patient_id=appointment.patient_id,
        duration_minutes=appointment.duration_minutes,
        status=appointment.status,
        notes=appointment.notes,
        cost=appointment.cost,
        treatment_type=appointment.treatment_type,
        frequency=getattr(appointment.frequency, "value", appointment.frequency),
        end_date=appointment.end_date,
        patient=PatientSummary.model_validate(patient) if patient is not None else None,
    )


def occurrence_dates(anchor: datetime, frequency, end_date) -> List[datetime]:
    """Repeat start times of a series anchored at ``anchor``, anchor excluded.

    Only the date part is compared with ``end_date``; the time of day is kept.
    Repeats on or after ``end_date`` are never produced.
    """
    period = _period_for(frequency)
    if period is None or end_date is None or anchor is None:
        return []

    end = _as_date(end_date)
    repeats = []
    current = anchor
    for _ in range(MAX_GENERATED_OCCURRENCES):
        if current.date() >= end:
            break
        # relativedelta clamps month ends, so Jan 31 steps to Feb 29 and then Mar 29
        current = current + period
        if current.date() < end:
            repeats.append(current)
    return repeats


def expand(
    appointments: Iterable[Appointment],
    window_start: datetime,
    window_end: datetime,
) -> List[AppointmentOccurrence]:
    """Turn stored appointments into calendar occurrences.

    Every appointment yields its own occurrence, even when it falls outside
    the window. Ongoing appointments with a frequency and an end date also
    yield their repeats. The result is not sorted.
    """
    if window_start > window_end:
        return []

    occurrences = []
    for appointment in appointments:
        occurrences.append(
            _occurrence(appointment, appointment.appointment_date, str(appointment.id))
        )

        if appointment.treatment_type != TreatmentType.ONGOING:
            continue

        for start_at in occurrence_dates(
            appointment.appointment_date, appointment.frequency, appointment.end_date
        ):
            occurrences.append(
                _occurrence(appointment, start_at, f"{appointment.id}-{start_at:%Y%m%dT%H%M%S}")
            )

    return occurrences
