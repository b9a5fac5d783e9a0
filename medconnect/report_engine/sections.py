"""
Section builders

Pure functions mapping a report payload to an ordered list of blocks:
StatsBlock (a row of stat cards) and TableBlock (headers + rows).
Both the HTML components and the PDF assembler render these blocks, so the
screen and the document always show the same sections in the same order.

Builders are registered per report kind in SECTION_BUILDERS.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from .payloads import (
    AppointmentsAnalyticsPayload,
    CommunityEngagementPayload,
    DoctorAvailabilityPayload,
    ReportPayload,
    UserOverviewPayload,
)
from .query import ReportKind

_MARKUP_RE = re.compile(r"<[^>]*>")

RECENT_USERS_LIMIT = 15
POPULAR_TOPICS_LIMIT = 5


# =============================================================================
# BLOCK TYPES
# =============================================================================

@dataclass(frozen=True)
class StatCard:
    label: str
    value: Any

    @property
    def display_value(self) -> str:
        if isinstance(self.value, bool):
            return str(self.value)
        if isinstance(self.value, int):
            return f"{self.value:,}"
        return clean_cell(self.value)


@dataclass(frozen=True)
class StatsBlock:
    title: str
    cards: List[StatCard] = field(default_factory=list)


@dataclass(frozen=True)
class TableBlock:
    title: str
    headers: List[str]
    rows: List[List[Any]] = field(default_factory=list)
    description: str = ""

    def clean_rows(self) -> List[List[str]]:
        """Rows as display strings; empty rows are dropped."""
        cleaned = [[clean_cell(cell) for cell in row] for row in self.rows]
        return [row for row in cleaned if row]


Block = Union[StatsBlock, TableBlock]


# =============================================================================
# CELL HELPERS
# =============================================================================

def clean_cell(value: Any) -> str:
    """
    Display text for a cell.

    None becomes the empty string. Markup-like text is removed by pattern,
    which is a display cleanup only and not an HTML sanitizer.
    """
    if value is None:
        return ""
    return _MARKUP_RE.sub("", str(value)).strip()


def truncate_text(text: str, limit: int, keep: Optional[int] = None) -> str:
    """Cut `text` to `keep` characters plus '...' when it is longer than `limit`."""
    keep = limit if keep is None else keep
    if len(text) > limit:
        return text[:keep] + "..."
    return text


def _num(value: Any) -> Union[int, float]:
    """Coerce a count from the backend (may arrive as a string) to a number."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return 0
        return int(number) if number.is_integer() else number
    return 0


def _count(value: Any) -> str:
    number = _num(value)
    return f"{number:,}" if isinstance(number, int) else f"{number:,.1f}"


def _share(part: Any, total: Union[int, float]) -> str:
    if not total:
        return "0.0%"
    return f"{_num(part) / total * 100:.1f}%"


def _rate(part: Any, whole: Any) -> str:
    whole = _num(whole)
    if whole <= 0:
        return "0%"
    return f"{round(_num(part) / whole * 100)}%"


def _percent_text(value: Any) -> str:
    return "" if value is None else f"{value}%"


def _capitalize(value: Any) -> str:
    text = clean_cell(value)
    return text[:1].upper() + text[1:]


def format_date(value: Any) -> str:
    """ISO timestamp -> MM/DD/YYYY; anything unparseable passes through."""
    if not value:
        return ""
    text = str(value)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    return parsed.strftime("%m/%d/%Y")


# =============================================================================
# BUILDERS
# =============================================================================

def _user_overview(payload: UserOverviewPayload) -> List[Block]:
    blocks: List[Block] = []

    if payload.users_by_role is not None:
        roles = payload.users_by_role
        total = sum(_num(r.get("count")) for r in roles)
        cards = [StatCard("Total Users", total)]
        cards += [StatCard(f"{_capitalize(r.get('role'))}s", _num(r.get("count"))) for r in roles]
        blocks.append(StatsBlock("User Summary", cards))

        blocks.append(TableBlock(
            title="User Role Distribution",
            headers=["Role", "Count", "Percentage", "Status"],
            rows=[
                [r.get("role"), _count(r.get("count")), _share(r.get("count"), total),
                 "Active" if _num(r.get("count")) > 0 else "Inactive"]
                for r in roles
            ],
            description="Overview of user distribution across different system roles and their current status.",
        ))

    if payload.recent_users is not None:
        blocks.append(TableBlock(
            title="Recent User Registrations",
            headers=["Name", "Email", "Role", "Registration Date", "Status"],
            rows=[
                [u.get("name"), u.get("email"), u.get("role"), format_date(u.get("created_at")), "Active"]
                for u in payload.recent_users[:RECENT_USERS_LIMIT]
            ],
            description=f"Latest user registrations in the system, showing the most recent {RECENT_USERS_LIMIT} entries.",
        ))

    if payload.complete_doctor_profiles is not None:
        rows = []
        for doctor in payload.complete_doctor_profiles:
            score = _num(doctor.get("completeness_score"))
            if score >= 3:
                status = "Complete"
            elif score >= 2:
                status = "Partial"
            else:
                status = "Incomplete"
            rows.append([
                doctor.get("name"),
                doctor.get("specialization") or "Not specified",
                f"{round(score / 4 * 100)}%",
                f"{score}/4",
                status,
            ])
        blocks.append(TableBlock(
            title="Doctor Profile Completeness Analysis",
            headers=["Doctor Name", "Specialization", "Completeness", "Score", "Status"],
            rows=rows,
            description="Analysis of doctor profile completeness based on required information fields.",
        ))

    return blocks


def _appointments_analytics(payload: AppointmentsAnalyticsPayload) -> List[Block]:
    blocks: List[Block] = []

    if payload.doctor_stats is not None:
        doctors = payload.doctor_stats
        blocks.append(StatsBlock("Appointment Summary", [
            StatCard("Total Appointments", sum(_num(d.get("appointment_count")) for d in doctors)),
            StatCard("Completed", sum(_num(d.get("completed_count")) for d in doctors)),
            StatCard("Doctors", len(doctors)),
        ]))
        blocks.append(TableBlock(
            title="Doctor Performance Metrics",
            headers=["Doctor Name", "Specialization", "Total Appointments", "Completed", "Completion Rate"],
            rows=[
                [d.get("doctor_name"), d.get("specialization"), d.get("appointment_count"),
                 d.get("completed_count"), _percent_text(d.get("completion_rate"))]
                for d in doctors
            ],
            description="Performance analysis showing appointment volumes and completion rates by doctor.",
        ))

    if payload.specialization_stats is not None:
        specs = payload.specialization_stats
        total = sum(_num(s.get("appointment_count")) for s in specs)
        blocks.append(TableBlock(
            title="Appointments by Medical Specialization",
            headers=["Specialization", "Total Appointments", "Percentage of Total"],
            rows=[
                [s.get("specialization"), s.get("appointment_count"), _share(s.get("appointment_count"), total)]
                for s in specs
            ],
            description="Distribution of appointments across different medical specializations.",
        ))

    return blocks


def _doctor_availability(payload: DoctorAvailabilityPayload) -> List[Block]:
    blocks: List[Block] = []

    if payload.doctor_availability is not None:
        doctors = payload.doctor_availability
        blocks.append(StatsBlock("Availability Summary", [
            StatCard("Doctors", len(doctors)),
            StatCard("Available Slots", sum(_num(d.get("available_slots")) for d in doctors)),
            StatCard("Total Slots", sum(_num(d.get("availability_slots")) for d in doctors)),
        ]))
        blocks.append(TableBlock(
            title="Doctor Availability Overview",
            headers=["Doctor Name", "Specialization", "Available Slots", "Total Slots", "Availability Rate"],
            rows=[
                [d.get("name"), d.get("specialization"), d.get("available_slots"), d.get("availability_slots"),
                 _rate(d.get("available_slots"), d.get("availability_slots"))]
                for d in doctors
            ],
            description="Current availability status for all doctors showing open and total appointment slots.",
        ))

    if payload.availability_by_day is not None:
        blocks.append(TableBlock(
            title="Weekly Availability Pattern",
            headers=["Day of Week", "Total Slots", "Available Slots", "Availability Rate"],
            rows=[
                [_capitalize(day.get("day_of_week")), day.get("total_slots"), day.get("available_slots"),
                 _rate(day.get("available_slots"), day.get("total_slots"))]
                for day in payload.availability_by_day
            ],
            description="Weekly availability patterns showing slot distribution across different days.",
        ))

    return blocks


def _community_engagement(payload: CommunityEngagementPayload) -> List[Block]:
    blocks: List[Block] = []

    if payload.forum_activity is not None:
        activity = payload.forum_activity
        blocks.append(StatsBlock("Forum Activity", [
            StatCard("Total Topics", _num(activity.get("total_topics"))),
            StatCard("Total Posts", _num(activity.get("total_posts"))),
            StatCard("Active Users", _num(activity.get("active_users"))),
        ]))

    if payload.most_engaged_users is not None:
        blocks.append(TableBlock(
            title="Most Engaged Community Members",
            headers=["User Name", "Role", "Total Posts", "Topics Participated"],
            rows=[
                [u.get("name"), u.get("role"), u.get("post_count"), u.get("topics_participated")]
                for u in payload.most_engaged_users
            ],
            description="Top community contributors based on post count and topic participation.",
        ))

    if payload.success_stories is not None:
        stories = payload.success_stories
        blocks.append(TableBlock(
            title="Success Stories Statistics",
            headers=["Metric", "Count", "Status"],
            rows=[
                ["Total Stories", stories.get("total_stories") or 0, "All"],
                ["Approved Stories", stories.get("approved_stories") or 0, "Approved"],
                ["Pending Stories", stories.get("pending_stories") or 0, "Pending"],
                ["Anonymous Stories", stories.get("anonymous_stories") or 0, "Anonymous"],
            ],
            description="Overview of success stories in the community platform by approval status.",
        ))

    if payload.popular_topics is not None:
        blocks.append(TableBlock(
            title="Popular Discussion Topics",
            headers=["Topic", "Posts", "Last Activity"],
            rows=[
                [t.get("title"), t.get("post_count"), format_date(t.get("last_activity"))]
                for t in payload.popular_topics[:POPULAR_TOPICS_LIMIT]
            ],
        ))

    return blocks


SECTION_BUILDERS: Dict[ReportKind, Callable[..., List[Block]]] = {
    ReportKind.USER_OVERVIEW: _user_overview,
    ReportKind.APPOINTMENTS_ANALYTICS: _appointments_analytics,
    ReportKind.DOCTOR_AVAILABILITY: _doctor_availability,
    ReportKind.COMMUNITY_ENGAGEMENT: _community_engagement,
}

_missing = set(ReportKind) - set(SECTION_BUILDERS)
if _missing:
    raise RuntimeError(f"No section builder for report kinds: {sorted(k.value for k in _missing)}")


def build_sections(payload: ReportPayload) -> List[Block]:
    """Blocks for `payload`, in the fixed order for its report kind."""
    return SECTION_BUILDERS[payload.kind](payload)


def block_to_dict(block: Block) -> dict:
    """JSON-friendly form of a block (used by the web API)."""
    if isinstance(block, StatsBlock):
        return {
            "type": "stats",
            "title": block.title,
            "cards": [{"label": c.label, "value": c.display_value} for c in block.cards],
        }
    return {
        "type": "table",
        "title": block.title,
        "headers": list(block.headers),
        "rows": block.clean_rows(),
        "description": block.description,
    }
