"""
Report query model

A ReportQuery is immutable. Editing a filter produces a new query, and a new
query means a new fetch.
"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

MAX_SEARCH_LENGTH = 200


class ReportKind(str, Enum):
    USER_OVERVIEW = "user-overview"
    APPOINTMENTS_ANALYTICS = "appointments-analytics"
    DOCTOR_AVAILABILITY = "doctor-availability"
    COMMUNITY_ENGAGEMENT = "community-engagement"


class ReportQuery(BaseModel):
    """Parameters for GET /reports/{kind}"""
    model_config = ConfigDict(frozen=True)

    kind: ReportKind
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = Field(None, max_length=MAX_SEARCH_LENGTH)

    def to_params(self) -> Dict[str, str]:
        """Query string parameters; unset filters are left out."""
        params = {}
        if self.start_date:
            params["startDate"] = self.start_date.isoformat()
        if self.end_date:
            params["endDate"] = self.end_date.isoformat()
        if self.search:
            params["search"] = self.search
        return params

    @property
    def path(self) -> str:
        return f"/reports/{self.kind.value}"

    def filter_lines(self) -> List[str]:
        """Human-readable filter summary for report headers."""
        lines = []
        if self.start_date and self.end_date:
            lines.append(f"Date Range: {self.start_date.isoformat()} to {self.end_date.isoformat()}")
        elif self.start_date:
            lines.append(f"Date Range: From {self.start_date.isoformat()}")
        elif self.end_date:
            lines.append(f"Date Range: Until {self.end_date.isoformat()}")
        if self.search:
            lines.append(f'Search Filter: "{self.search}"')
        return lines
