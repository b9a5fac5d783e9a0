"""
HTTP clients for the MedConnect REST backend

Sync client for request/response flows (auth, users, forum, appointments),
async client for the report fetcher and notification poller.

Both map failures the same way:
    - request never completed  -> NetworkError
    - non-2xx response         -> ApplicationError (message from body "message")
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import ApplicationError, NetworkError
from .session import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Drop unset query parameters so they never reach the query string."""
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None and v != ""}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return f"Request failed with status {response.status_code}"


def _handle_response(response: httpx.Response) -> Any:
    """Return decoded JSON for a success response, raise ApplicationError otherwise."""
    if not response.is_success:
        message = _error_message(response)
        logger.warning(f"{response.request.method} {response.request.url} -> {response.status_code}: {message}")
        payload = None
        try:
            payload = response.json()
        except ValueError:
            pass
        raise ApplicationError(response.status_code, message, payload if isinstance(payload, dict) else None)

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        raise ApplicationError(response.status_code, "Backend returned invalid JSON")


class ApiClient:
    """
    Blocking client.

    Args:
        base_url: API root, e.g. http://localhost:5000/api
        session: Session store supplying the Authorization header
        timeout: Seconds per request
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[SessionStore] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or SessionStore()
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def request(self, method: str, path: str, params: Optional[dict] = None, json: Any = None) -> Any:
        try:
            response = self._client.request(
                method,
                path,
                params=_clean_params(params),
                json=json,
                headers=self.session.auth_headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out")
            raise NetworkError(f"Request to {path} timed out") from e
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError(f"Could not reach the server: {e}") from e
        return _handle_response(response)

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class AsyncApiClient:
    """Non-blocking counterpart of ApiClient."""

    def __init__(
        self,
        base_url: str,
        session: Optional[SessionStore] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or SessionStore()
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def request(self, method: str, path: str, params: Optional[dict] = None, json: Any = None) -> Any:
        try:
            response = await self._client.request(
                method,
                path,
                params=_clean_params(params),
                json=json,
                headers=self.session.auth_headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out")
            raise NetworkError(f"Request to {path} timed out") from e
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError(f"Could not reach the server: {e}") from e
        return _handle_response(response)

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()
