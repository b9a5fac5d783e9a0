"""
User-facing status messages

Network and application errors are shown the same way: a dismissible
message that expires after a few seconds.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .errors import ApplicationError

BANNER_LIFETIME = timedelta(seconds=4)


@dataclass
class Banner:
    text: str
    kind: str = "success"           # success, error
    created_at: datetime = field(default_factory=datetime.now)
    dismissed: bool = False

    @property
    def expires_at(self) -> datetime:
        return self.created_at + BANNER_LIFETIME

    def is_visible(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        return not self.dismissed and now < self.expires_at

    def dismiss(self) -> None:
        self.dismissed = True


def banner_for_error(exc: Exception, fallback: str) -> Banner:
    """
    Build the error banner for a failed request.

    ApplicationError carries the backend's own message. Anything else
    (including NetworkError) shows the screen's fallback text.
    """
    if isinstance(exc, ApplicationError) and exc.payload.get("message"):
        return Banner(text=exc.message, kind="error")
    return Banner(text=fallback, kind="error")
