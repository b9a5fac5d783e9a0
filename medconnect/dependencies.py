"""
FastAPI dependencies

Each request gets its own session context built from the caller's bearer
token, and its own API clients bound to that session.
"""

from typing import AsyncIterator, Iterator, Optional

from fastapi import Depends, Header

from .api_client import ApiClient, AsyncApiClient
from .config import get_settings
from .report_engine.branding_config import get_branding
from .report_engine.document import DocumentAssembler
from .session import SessionStore


def get_app_settings() -> dict:
    return get_settings()


def get_session(authorization: Optional[str] = Header(None)) -> SessionStore:
    """In-memory session carrying the caller's token through to the backend."""
    store = SessionStore()
    if authorization and authorization.lower().startswith("bearer "):
        store.establish(authorization[7:].strip(), role="")
    return store


async def get_async_client(
    settings: dict = Depends(get_app_settings),
    session: SessionStore = Depends(get_session),
) -> AsyncIterator[AsyncApiClient]:
    client = AsyncApiClient(settings["api_url"], session=session, timeout=settings["request_timeout"])
    try:
        yield client
    finally:
        await client.aclose()


def get_client(
    settings: dict = Depends(get_app_settings),
    session: SessionStore = Depends(get_session),
) -> Iterator[ApiClient]:
    client = ApiClient(settings["api_url"], session=session, timeout=settings["request_timeout"])
    try:
        yield client
    finally:
        client.close()


def get_assembler(settings: dict = Depends(get_app_settings)) -> DocumentAssembler:
    return DocumentAssembler(
        branding=get_branding(),
        logo_source=settings["logo_source"] or None,
        logo_timeout=settings["logo_timeout"],
        generated_by=settings["generated_by"],
    )
