"""
Report payload variants

One class per report kind, each carrying only the sections that kind uses.
The backend owns the shapes; parsing never fails. A key that is missing,
null, or of the wrong type becomes None, and non-dict records inside a list
are dropped.

A section that is None is skipped by the section builders. An empty list is
kept so the document can show its "no data" placeholder.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, List, Optional, Union

from .query import ReportKind

logger = logging.getLogger(__name__)

Records = Optional[List[Dict[str, Any]]]
Summary = Optional[Dict[str, Any]]


def _records(data: dict, key: str) -> Records:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        logger.warning(f"Expected a list for '{key}', got {type(value).__name__}; section skipped")
        return None
    return [r for r in value if isinstance(r, dict)]


def _summary(data: dict, key: str) -> Summary:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        logger.warning(f"Expected an object for '{key}', got {type(value).__name__}; section skipped")
        return None
    return value


class _Payload:
    kind: ClassVar[ReportKind]

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class UserOverviewPayload(_Payload):
    kind: ClassVar[ReportKind] = ReportKind.USER_OVERVIEW

    users_by_role: Records = None
    recent_users: Records = None
    complete_doctor_profiles: Records = None

    @classmethod
    def from_json(cls, data: dict) -> "UserOverviewPayload":
        return cls(
            users_by_role=_records(data, "usersByRole"),
            recent_users=_records(data, "recentUsers"),
            complete_doctor_profiles=_records(data, "completeDoctorProfiles"),
        )


@dataclass(frozen=True)
class AppointmentsAnalyticsPayload(_Payload):
    kind: ClassVar[ReportKind] = ReportKind.APPOINTMENTS_ANALYTICS

    doctor_stats: Records = None
    specialization_stats: Records = None

    @classmethod
    def from_json(cls, data: dict) -> "AppointmentsAnalyticsPayload":
        return cls(
            doctor_stats=_records(data, "doctorStats"),
            specialization_stats=_records(data, "specializationStats"),
        )


@dataclass(frozen=True)
class DoctorAvailabilityPayload(_Payload):
    kind: ClassVar[ReportKind] = ReportKind.DOCTOR_AVAILABILITY

    doctor_availability: Records = None
    availability_by_day: Records = None

    @classmethod
    def from_json(cls, data: dict) -> "DoctorAvailabilityPayload":
        return cls(
            doctor_availability=_records(data, "doctorAvailability"),
            availability_by_day=_records(data, "availabilityByDay"),
        )


@dataclass(frozen=True)
class CommunityEngagementPayload(_Payload):
    kind: ClassVar[ReportKind] = ReportKind.COMMUNITY_ENGAGEMENT

    forum_activity: Summary = None
    most_engaged_users: Records = None
    success_stories: Summary = None
    popular_topics: Records = None

    @classmethod
    def from_json(cls, data: dict) -> "CommunityEngagementPayload":
        return cls(
            forum_activity=_summary(data, "forumActivity"),
            most_engaged_users=_records(data, "mostEngagedUsers"),
            success_stories=_summary(data, "successStories"),
            popular_topics=_records(data, "popularTopics"),
        )


ReportPayload = Union[
    UserOverviewPayload,
    AppointmentsAnalyticsPayload,
    DoctorAvailabilityPayload,
    CommunityEngagementPayload,
]

PAYLOAD_TYPES = {
    cls.kind: cls
    for cls in (
        UserOverviewPayload,
        AppointmentsAnalyticsPayload,
        DoctorAvailabilityPayload,
        CommunityEngagementPayload,
    )
}

_missing = set(ReportKind) - set(PAYLOAD_TYPES)
if _missing:
    raise RuntimeError(f"No payload type for report kinds: {sorted(k.value for k in _missing)}")


def parse_payload(kind: ReportKind, data: Any) -> ReportPayload:
    """Build the payload variant for `kind` from decoded JSON."""
    payload_cls = PAYLOAD_TYPES[ReportKind(kind)]
    if not isinstance(data, dict):
        if data is not None:
            logger.warning(f"Report '{kind}' payload is {type(data).__name__}, expected an object")
        data = {}
    return payload_cls.from_json(data)


def empty_payload(kind: ReportKind) -> ReportPayload:
    return parse_payload(kind, None)
