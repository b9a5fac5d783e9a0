"""
Doctor Practice Report

Per-doctor analytics rendered as HTML and printed to PDF with WeasyPrint.

Sections:
- Practice overview stat cards
- Appointment status breakdown
- Monthly trends
- Weekly patterns
- Peak hours
- Patient demographics
- Recent patients
"""

import calendar
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from ..api_client import ApiClient
from .components import data_table, esc, info_list, section, stat_grid, two_column
from .html_base import HtmlReport

logger = logging.getLogger(__name__)

PERIODS = ("today", "week", "month", "year")
RECENT_PATIENTS_FETCH = 10
RECENT_PATIENTS_SHOWN = 15

STATUS_ROWS = [
    ("Completed", "completed_appointments"),
    ("Pending", "pending_appointments"),
    ("Cancelled", "cancelled_appointments"),
    ("No Show", "no_show_appointments"),
]


def trends_params(period: Optional[str], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Query parameters for the trends endpoint.

    today/week/month/year map to a start_date/end_date window (weeks start
    on Sunday). Anything else asks for the last six months.
    """
    today = today or date.today()

    if period == "today":
        start, end = today, today
    elif period == "week":
        # date.weekday(): Monday=0; shift so Sunday starts the week
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        end = start + timedelta(days=6)
    elif period == "month":
        start = today.replace(day=1)
        end = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    elif period == "year":
        start, end = date(today.year, 1, 1), date(today.year, 12, 31)
    else:
        return {"months": 6}

    return {"start_date": start.isoformat(), "end_date": end.isoformat()}


def _pct(part: Any, whole: Any) -> str:
    try:
        part, whole = float(part or 0), float(whole or 0)
    except (TypeError, ValueError):
        return "0.0%"
    if whole <= 0:
        return "0.0%"
    return f"{part / whole * 100:.1f}%"


def _as_list(value: Any) -> List[dict]:
    if isinstance(value, dict):
        value = value.get("trends")
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


class DoctorReport(HtmlReport):
    """
    Practice report for one doctor.

    Args:
        client: API client (the session decides what the backend returns)
        doctor_id: Doctor's user id
        period: today, week, month, year, or anything else for the default window
    """

    def __init__(self, client: ApiClient, doctor_id: int, period: str = "month", **kwargs):
        super().__init__(**kwargs)
        self.client = client
        self.doctor_id = doctor_id
        self.period = period

    def get_title(self) -> str:
        return "DOCTOR PRACTICE REPORT"

    def get_subtitle(self, data: dict, **params) -> str:
        doctor = data.get("doctor_name")
        label = f"Period: {self.period.capitalize() if self.period in PERIODS else 'Last 6 Months'}"
        return f"{doctor} | {label}" if doctor else label

    # =========================================================================
    # DATA
    # =========================================================================

    def get_data(self, **params) -> dict:
        base = f"/doctor-reports/{self.doctor_id}"
        logger.info(f"Building doctor report for {self.doctor_id} ({self.period})")

        stats = _as_dict(self.client.get(f"{base}/stats", params={"period": self.period}))
        trends = _as_list(self.client.get(f"{base}/trends", params=trends_params(self.period, params.get("today"))))
        demographics = _as_dict(self.client.get(f"{base}/demographics"))
        patterns = _as_list(self.client.get(f"{base}/patterns"))
        peak_hours = _as_list(self.client.get(f"{base}/peak-hours"))
        patients = _as_list(self.client.get(f"{base}/recent-patients", params={"limit": RECENT_PATIENTS_FETCH}))

        session = self.client.session.current
        doctor_name = stats.get("doctor_name") or stats.get("name") or (session.display_name if session else "")
        return {
            "doctor_name": doctor_name,
            "stats": stats,
            "trends": trends,
            "demographics": demographics,
            "patterns": patterns,
            "peak_hours": peak_hours,
            "recent_patients": patients,
        }

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render_body(self, data: dict, **params) -> str:
        stats = data["stats"]
        total = stats.get("total_appointments") or 0

        overview = stat_grid([
            {"value": total, "label": "Total Appointments", "highlight": True},
            {"value": f"{stats.get('completion_rate') or 0}%", "label": "Completion Rate"},
            {"value": stats.get("unique_patients") or 0, "label": "Unique Patients"},
            {"value": f"{stats.get('cancellation_rate') or 0}%", "label": "Cancellation Rate"},
        ], self.colors)

        status_rows = [
            [name, stats.get(key) or 0, _pct(stats.get(key), total)]
            for name, key in STATUS_ROWS
            if stats.get(key)
        ]
        status_table = data_table(["Status", "Count", "Percentage"], status_rows, colors=self.colors,
                                  empty_message="No appointment data available")

        trend_rows = [
            [t.get("month_name"), t.get("total_appointments"), t.get("completed_appointments"),
             _pct(t.get("completed_appointments"), t.get("total_appointments"))]
            for t in data["trends"]
        ]
        trends_table = data_table(["Month", "Total Appointments", "Completed", "Success Rate"], trend_rows,
                                  colors=self.colors, empty_message="No trend data available")

        pattern_rows = [
            [p.get("day_of_week"), p.get("total_appointments"), f"{p.get('completion_rate') or 0}%"]
            for p in data["patterns"]
        ]
        patterns_table = data_table(["Day of Week", "Total Appointments", "Completion Rate"], pattern_rows,
                                    colors=self.colors, empty_message="No pattern data available")

        peak_rows = [
            [h.get("hour_display"), h.get("appointment_count"), f"{h.get('completion_rate') or 0}%"]
            for h in data["peak_hours"]
        ]
        peak_table = data_table(["Hour", "Appointments", "Completion Rate"], peak_rows,
                                colors=self.colors, empty_message="No peak hours data available")

        demo = data["demographics"]
        demographics = info_list([
            {"label": "Total Unique Patients", "value": demo.get("total_unique_patients") or 0},
            {"label": "Average Age", "value": f"{demo.get('average_age') or 0} years"},
            {"label": "Pediatric (0-17)", "value": demo.get("pediatric_patients") or 0},
            {"label": "Adults (18-64)", "value": demo.get("adult_patients") or 0},
            {"label": "Seniors (65+)", "value": demo.get("senior_patients") or 0},
            {"label": "Gender", "value": f"M:{demo.get('male_patients') or 0} F:{demo.get('female_patients') or 0}"},
        ], self.colors)

        patient_rows = [
            [p.get("patient_name"), p.get("last_visit_formatted"), f"{p.get('total_visits') or 0} visits",
             f"{p.get('age') or 'N/A'} years", f"{p.get('completed_visits') or 0}/{p.get('total_visits') or 0} completed"]
            for p in data["recent_patients"][:RECENT_PATIENTS_SHOWN]
        ]
        patients_table = data_table(
            ["Patient Name", "Last Visit Date", "Total Visits", "Patient Age", "Visit Status"], patient_rows,
            colors=self.colors, empty_message="No recent patients",
        )

        return f'''
            {section("Practice Overview", overview)}
            {two_column(section("Appointment Status", status_table), section("Patient Demographics", demographics))}
            {section("Monthly Trends", trends_table)}
            {two_column(section("Weekly Patterns", patterns_table), section("Peak Hours", peak_table))}
            {section("Recent Patients Overview", patients_table)}
            <p class="section-description">{esc("Report generated from the MedConnect practice data for the selected period.")}</p>
        '''
