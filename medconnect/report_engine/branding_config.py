"""
Branding Configuration for MedConnect Reports

Palette, brand text and report names shared by the PDF assembler and the
HTML renderers, plus the logo loader.

Logo loading is bounded by a fixed timeout. Any failure (timeout, fetch
error, undecodable image) raises AssetError and the caller draws the
placeholder logo instead.
"""

import base64
import io
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, Optional, Union

import httpx
from reportlab.lib.utils import ImageReader

from ..errors import AssetError
from .query import ReportKind

logger = logging.getLogger(__name__)

# =============================================================================
# DEFAULT BRANDING
# RGB tuples in 0-255
# =============================================================================

DEFAULT_BRANDING = {
    "brand_name": "MedConnect",
    "system_name": "MedConnect Healthcare System",
    "subtitle": "MedConnect Report",

    "colors": {
        "primary": (0, 77, 64),          # Headers, borders, section titles
        "secondary": (26, 121, 99),
        "accent": (46, 125, 50),
        "light": (165, 214, 167),
        "lighter": (200, 230, 201),      # Empty-section placeholder fill
        "dark": (0, 60, 48),
        "text": (33, 37, 41),
        "muted": (108, 117, 125),
        "white": (255, 255, 255),
        "background": (248, 249, 250),
        "table_header": (0, 77, 64),
        "table_border": (165, 214, 167),
        "table_alt_row": (232, 245, 233),
    },
}

REPORT_NAMES = {
    ReportKind.USER_OVERVIEW: "HEALTHCARE MANAGEMENT SYSTEM",
    ReportKind.APPOINTMENTS_ANALYTICS: "APPOINTMENT MANAGEMENT SYSTEM",
    ReportKind.DOCTOR_AVAILABILITY: "DOCTOR AVAILABILITY SYSTEM",
    ReportKind.COMMUNITY_ENGAGEMENT: "COMMUNITY MANAGEMENT SYSTEM",
}

LOGO_TIMEOUT = 5.0  # seconds


def get_branding(overrides: Optional[dict] = None) -> dict:
    """
    Branding config with optional overrides merged over the defaults.

    Color overrides are merged key by key so a partial palette is allowed.
    """
    branding = dict(DEFAULT_BRANDING)
    branding["colors"] = dict(DEFAULT_BRANDING["colors"])
    for key, value in (overrides or {}).items():
        if key == "colors" and isinstance(value, dict):
            branding["colors"].update(value)
        else:
            branding[key] = value
    return branding


def get_report_name(kind: ReportKind) -> str:
    return REPORT_NAMES.get(kind, "HEALTHCARE SYSTEM")


def rgb_to_hex(rgb) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


# =============================================================================
# LOGO LOADING
# =============================================================================

LogoSource = Union[str, Path, bytes, Callable[[], bytes]]


def _read_source(source: LogoSource, timeout: float) -> bytes:
    if callable(source):
        return source()
    if isinstance(source, bytes):
        return source
    text = str(source)
    if text.startswith(("http://", "https://")):
        response = httpx.get(text, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        return response.content
    return Path(text).read_bytes()


def read_logo_bytes(source: Optional[LogoSource], timeout: float = LOGO_TIMEOUT) -> bytes:
    """
    Read the raw logo bytes within `timeout` seconds.

    Args:
        source: File path, http(s) URL, raw bytes, or a zero-arg callable returning bytes

    Raises:
        AssetError: on a missing source, timeout or fetch failure
    """
    if not source:
        raise AssetError("No logo configured")

    pool = ThreadPoolExecutor(max_workers=1)
    future = pool.submit(_read_source, source, timeout)
    try:
        data = future.result(timeout=timeout)
    except FutureTimeout:
        raise AssetError(f"Logo load timed out after {timeout:.1f}s")
    except Exception as e:
        raise AssetError(f"Logo load failed: {e}") from e
    finally:
        # A timed-out read keeps running in its worker thread; nothing waits on it.
        pool.shutdown(wait=False)

    if not data:
        raise AssetError("Logo source was empty")
    return data


def load_logo(source: Optional[LogoSource], timeout: float = LOGO_TIMEOUT) -> ImageReader:
    """
    Load and decode the report logo within `timeout` seconds.

    Returns:
        reportlab ImageReader ready for drawImage()

    Raises:
        AssetError: on a missing source, timeout, fetch or decode failure
    """
    data = read_logo_bytes(source, timeout)
    try:
        image = ImageReader(io.BytesIO(data))
        image.getSize()
    except Exception as e:
        raise AssetError(f"Logo could not be decoded: {e}") from e
    return image


def _logo_mime_type(data: bytes) -> str:
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if data.lstrip().startswith((b"<svg", b"<?xml")):
        return "image/svg+xml"
    return "application/octet-stream"


def get_logo_data_url(source: Optional[LogoSource], timeout: float = LOGO_TIMEOUT) -> Optional[str]:
    """
    Logo as a data URL for embedding in HTML.

    Returns:
        Data URL string, or None when the logo cannot be loaded
    """
    try:
        data = read_logo_bytes(source, timeout)
    except AssetError as e:
        logger.info(f"No logo for HTML report: {e}")
        return None
    return f"data:{_logo_mime_type(data)};base64,{base64.b64encode(data).decode('ascii')}"
