"""Shared fixtures: sample backend payloads and HTTP clients over httpx.MockTransport."""

import io
from datetime import datetime

import httpx
import pytest

from medconnect.api_client import ApiClient, AsyncApiClient
from medconnect.report_engine.document import DocumentAssembler
from medconnect.session import SessionStore

API_URL = "http://backend.test/api"



@pytest.fixture
def user_overview_json():
    return {
        "usersByRole": [
            {"role": "doctor", "count": 3},
            {"role": "patient", "count": "7"},
        ],
        "recentUsers": [
            {"name": "Alice Uwase", "email": "alice@example.rw", "role": "patient",
             "created_at": "2024-01-15T10:00:00"},
            {"name": None, "email": "ghost@example.rw", "role": "patient", "created_at": None},
        ],
        "completeDoctorProfiles": [
            {"name": "Dr. Jean Habimana", "specialization": "Cardiology", "completeness_score": 4},
            {"name": "Dr. Grace Mukamana", "specialization": None, "completeness_score": 1},
        ],
    }


@pytest.fixture
def community_json():
    return {
        "forumActivity": {"total_topics": 12, "total_posts": 340, "active_users": 25},
        "mostEngagedUsers": [
            {"name": "Eric N.", "role": "patient", "post_count": 40, "topics_participated": 9},
        ],
        "successStories": {"total_stories": 5, "approved_stories": 3, "pending_stories": 2,
                           "anonymous_stories": None},
        "popularTopics": [
            {"title": "<b>Managing diabetes</b>", "post_count": 30, "last_activity": "2024-01-20T08:30:00"},
        ],
    }


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 1, 31, 9, 30, 0)


@pytest.fixture
def assembler(fixed_clock):
    """Assembler with no logo configured (placeholder logo)."""
    return DocumentAssembler(logo_source=None, clock=fixed_clock)


@pytest.fixture
def make_client():
    """Factory: blocking ApiClient whose requests go to `handler`."""
    def factory(handler, session=None):
        return ApiClient(API_URL, session=session or SessionStore(), transport=httpx.MockTransport(handler))
    return factory


@pytest.fixture
def make_async_client():
    """Factory: AsyncApiClient whose requests go to `handler` (sync or async)."""
    def factory(handler, session=None):
        return AsyncApiClient(API_URL, session=session or SessionStore(), transport=httpx.MockTransport(handler))
    return factory


@pytest.fixture
def png_bytes():
    """A small real PNG for logo tests."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (0, 77, 64)).save(buffer, "PNG")
    return buffer.getvalue()
