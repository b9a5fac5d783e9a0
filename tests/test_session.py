"""
Tests for the client session context.
"""

import json

from medconnect.session import SessionContext, SessionStore


class TestSessionStore:
    """Tests for SessionStore persistence and headers."""

    def test_starts_signed_out(self):
        store = SessionStore()
        assert store.current is None
        assert not store.is_authenticated
        assert store.auth_headers() == {}

    def test_establish_persists(self, tmp_path):
        path = tmp_path / "session.json"
        store = SessionStore(path)
        store.establish("tok-123", "doctor", {"id": 4, "name": "Dr. Jean"})

        reloaded = SessionStore(path)
        assert reloaded.current == SessionContext("tok-123", "doctor", {"id": 4, "name": "Dr. Jean"})
        assert reloaded.current.user_id == 4
        assert reloaded.current.display_name == "Dr. Jean"

    def test_auth_header(self):
        store = SessionStore()
        store.establish("tok-123", "admin")
        assert store.auth_headers() == {"Authorization": "Bearer tok-123"}

    def test_invalidate_clears_memory_and_disk(self, tmp_path):
        path = tmp_path / "session.json"
        store = SessionStore(path)
        store.establish("tok-123", "patient", {"id": 9})

        store.invalidate()

        assert store.current is None
        assert not path.exists()
        assert SessionStore(path).current is None

    def test_unreadable_file_is_ignored(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")
        assert SessionStore(path).current is None

    def test_file_without_token_is_ignored(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"role": "admin"}), encoding="utf-8")
        assert SessionStore(path).current is None

    def test_display_name_falls_back_to_username(self):
        context = SessionContext("t", "patient", {"username": "aline"})
        assert context.display_name == "aline"
