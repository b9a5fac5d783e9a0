"""
Healthcare analytics dashboard
"""

import logging
from typing import Any, Dict

from ..api_client import ApiClient

logger = logging.getLogger(__name__)


def get_dashboard(client: ApiClient) -> Dict[str, Any]:
    """Summary plus headline stats in one dict."""
    summary = client.get("/dashboard") or {}
    stats = client.get("/dashboard/stats") or {}
    return {"summary": summary, "stats": stats}


def format_number(value: Any) -> str:
    """1234567 -> '1,234,567'; empty values show as '0'."""
    if not value:
        return "0"
    try:
        return f"{int(value):,}"
    except (TypeError, ValueError):
        return str(value)


def calculate_growth(current: Any, previous: Any) -> Dict[str, Any]:
    """Percent change from previous to current, one decimal."""
    if not previous:
        return {"value": 0.0, "is_positive": True}
    growth = (float(current or 0) - float(previous)) / float(previous) * 100
    return {"value": round(abs(growth), 1), "is_positive": growth >= 0}
