"""
Error taxonomy for MedConnect clients and report generation.

NetworkError and ApplicationError come from the HTTP layer and are shown to
the user as a banner. RenderError and AssetError never leave the report
engine: a failed table degrades to the fallback renderer and a failed logo
degrades to the placeholder.
"""

from typing import Optional


class MedConnectError(Exception):
    """Base class for all MedConnect errors."""


class NetworkError(MedConnectError):
    """The request never completed (connect failure, timeout, DNS)."""


class ApplicationError(MedConnectError):
    """The backend answered with a non-success status."""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class RenderError(MedConnectError):
    """A document layout primitive failed for one section."""


class AssetError(MedConnectError):
    """A document asset (logo image) could not be loaded or decoded."""


class RequestSuperseded(MedConnectError):
    """A newer request replaced this one before its response arrived."""


class ValidationFailed(MedConnectError):
    """Input rejected on the client before any request was sent."""


class FlowStateError(MedConnectError):
    """An operation was requested from a state that does not allow it."""
