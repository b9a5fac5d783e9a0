"""
Doctor appointments, weekly availability and patient booking

Availability always comes back as seven days, Monday first. Days the
backend does not know about default to 09:00-17:00 and unavailable; times
are cut to HH:MM.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel

from ..api_client import ApiClient
from ..errors import ValidationFailed

logger = logging.getLogger(__name__)

DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
DEFAULT_START = "09:00"
DEFAULT_END = "17:00"

APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled", "no_show")


class AvailabilitySlot(BaseModel):
    day_of_week: str
    start_time: str = DEFAULT_START
    end_time: str = DEFAULT_END
    is_available: bool = False

    @property
    def label(self) -> str:
        return self.day_of_week.capitalize()


def _hhmm(value, default: str) -> str:
    return str(value)[:5] if value else default


def normalize_availability(slots: Optional[list]) -> List[AvailabilitySlot]:
    """Seven AvailabilitySlots in DAYS_OF_WEEK order."""
    by_day = {day: AvailabilitySlot(day_of_week=day) for day in DAYS_OF_WEEK}
    for slot in slots or []:
        if not isinstance(slot, dict) or slot.get("day_of_week") not in by_day:
            continue
        by_day[slot["day_of_week"]] = AvailabilitySlot(
            day_of_week=slot["day_of_week"],
            start_time=_hhmm(slot.get("start_time"), DEFAULT_START),
            end_time=_hhmm(slot.get("end_time"), DEFAULT_END),
            is_available=bool(slot.get("is_available")),
        )
    return [by_day[day] for day in DAYS_OF_WEEK]


def get_availability(client: ApiClient, doctor_id: int) -> List[AvailabilitySlot]:
    return normalize_availability(client.get(f"/appointments/doctor/{doctor_id}/availability"))


def save_availability(client: ApiClient, doctor_id: int, schedule: List[AvailabilitySlot]) -> dict:
    logger.info(f"Saving availability for doctor {doctor_id}")
    body = {"availability_schedule": [slot.model_dump() for slot in schedule]}
    return client.put(f"/appointments/doctor/{doctor_id}/availability", json=body) or {}


def list_doctor_appointments(client: ApiClient, doctor_id: int, day: Optional[str] = None,
                             status: Optional[str] = None) -> List[dict]:
    """Appointments for a doctor, optionally filtered to one date (YYYY-MM-DD) and status."""
    params = {"date": day, "status": None if status == "all" else status}
    return client.get(f"/appointments/doctor/{doctor_id}", params=params) or []


def update_status(client: ApiClient, appointment_id: int, status: str) -> dict:
    if status not in APPOINTMENT_STATUSES:
        raise ValidationFailed(f"Unknown appointment status: {status}")
    session = client.session.current
    return client.put(f"/appointments/{appointment_id}/status", json={
        "status": status,
        "updated_by": session.user_id if session else None,
    }) or {}


def get_stats(client: ApiClient, period: str = "today") -> dict:
    return client.get("/appointments/stats", params={"period": period}) or {}


# =============================================================================
# PATIENT BOOKING
# =============================================================================

def list_doctors(client: ApiClient) -> List[dict]:
    """Doctors a patient can book with."""
    return client.get("/appointments/doctors") or []


def available_slots(client: ApiClient, doctor_id: int, day: str) -> List[str]:
    """Free start times for `doctor_id` on `day` (YYYY-MM-DD)."""
    if not doctor_id or not day:
        return []
    data = client.get(f"/appointments/available-slots/{doctor_id}/{day}") or {}
    return list(data.get("available_slots") or [])


def book_appointment(client: ApiClient, doctor_id: Optional[int], appointment_date: str,
                     appointment_time: str, reason: str = "") -> dict:
    if not doctor_id or not appointment_date or not appointment_time:
        raise ValidationFailed("Please fill in all required fields")
    session = client.session.current
    logger.info(f"Booking appointment with doctor {doctor_id} on {appointment_date} {appointment_time}")
    return client.post("/appointments/book", json={
        "patient_id": session.user_id if session else None,
        "doctor_id": doctor_id,
        "appointment_date": appointment_date,
        "appointment_time": appointment_time,
        "reason": reason,
    }) or {}


def list_patient_appointments(client: ApiClient, patient_id: Optional[int] = None) -> List[dict]:
    """A patient's appointments (default: signed-in user)."""
    if patient_id is None:
        session = client.session.current
        patient_id = session.user_id if session else None
    if patient_id is None:
        return []
    return client.get(f"/appointments/patient/{patient_id}") or []


def cancel_appointment(client: ApiClient, appointment_id: int, reason: str = "Cancelled by patient") -> dict:
    session = client.session.current
    return client.put(f"/appointments/{appointment_id}/status", json={
        "status": "cancelled",
        "updated_by": session.user_id if session else None,
        "cancellation_reason": reason,
    }) or {}
