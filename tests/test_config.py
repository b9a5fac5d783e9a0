"""
Tests for settings loading and user-facing banners.
"""

from datetime import datetime, timedelta

from medconnect.banner import Banner, banner_for_error
from medconnect.config import DEFAULT_SETTINGS, get_settings
from medconnect.errors import ApplicationError, NetworkError


class TestGetSettings:
    """Tests for get_settings()."""

    def test_defaults(self):
        settings = get_settings({})
        assert settings == DEFAULT_SETTINGS
        assert settings["notification_interval"] == 30.0
        assert settings["logo_timeout"] == 5.0

    def test_environment_overrides_are_typed(self):
        settings = get_settings({
            "MEDCONNECT_API_URL": "https://medconnect.example.rw/api/",
            "MEDCONNECT_REQUEST_TIMEOUT": "3",
            "MEDCONNECT_GENERATED_BY": "Records Office",
        })
        assert settings["api_url"] == "https://medconnect.example.rw/api"
        assert settings["request_timeout"] == 3.0
        assert settings["generated_by"] == "Records Office"

    def test_bad_number_keeps_default(self):
        settings = get_settings({"MEDCONNECT_LOGO_TIMEOUT": "soon"})
        assert settings["logo_timeout"] == 5.0

    def test_empty_override_is_ignored(self):
        assert get_settings({"MEDCONNECT_OUTPUT_DIR": ""})["output_dir"] == "."


class TestBanner:
    """Tests for Banner expiry and error banners."""

    def test_expires_after_four_seconds(self):
        created = datetime(2024, 1, 31, 12, 0, 0)
        banner = Banner("Saved", created_at=created)
        assert banner.is_visible(created + timedelta(seconds=3))
        assert not banner.is_visible(created + timedelta(seconds=4))

    def test_dismiss(self):
        banner = Banner("Saved")
        banner.dismiss()
        assert not banner.is_visible()

    def test_application_error_shows_backend_message(self):
        error = ApplicationError(404, "User not found", {"message": "User not found"})
        banner = banner_for_error(error, "Something went wrong")
        assert banner.text == "User not found"
        assert banner.kind == "error"

    def test_network_error_shows_fallback(self):
        banner = banner_for_error(NetworkError("refused"), "Something went wrong")
        assert banner.text == "Something went wrong"
