"""
Client session context

Holds the authentication token, role and user profile returned by login.
The store is the only place that reads or writes the persisted session blob;
components receive the store and read identity through `current`.
Logout goes through `invalidate()`, which clears memory and disk together.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Identity of the signed-in user."""
    token: str
    role: str
    user: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> Optional[int]:
        return self.user.get("id")

    @property
    def display_name(self) -> str:
        return self.user.get("name") or self.user.get("username") or ""

    def to_dict(self) -> dict:
        return {"token": self.token, "role": self.role, "user": dict(self.user)}


class SessionStore:
    """
    Owns the session blob.

    Args:
        path: JSON file the session is persisted to. None keeps it in memory.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._current: Optional[SessionContext] = None
        self._load()

    @property
    def current(self) -> Optional[SessionContext]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def establish(self, token: str, role: str, user: Optional[dict] = None) -> SessionContext:
        """Replace the session after a successful login."""
        self._current = SessionContext(token=token, role=role, user=dict(user or {}))
        self._save()
        return self._current

    def invalidate(self) -> None:
        """Forget the session in memory and on disk."""
        self._current = None
        if self.path and self.path.exists():
            try:
                self.path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove session file {self.path}: {e}")

    def auth_headers(self) -> Dict[str, str]:
        if not self._current:
            return {}
        return {"Authorization": f"Bearer {self._current.token}"}

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load(self) -> None:
        if not self.path or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return
        if not isinstance(data, dict) or not data.get("token"):
            return
        user = data.get("user") if isinstance(data.get("user"), dict) else {}
        self._current = SessionContext(token=data["token"], role=data.get("role") or "", user=user)

    def _save(self) -> None:
        if not self.path or not self._current:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._current.to_dict()), encoding="utf-8")
