"""
Report Data Fetcher

One GET /reports/{kind} per query, with the date range and search text as
query parameters.

Every fetch carries a RequestToken. Starting a new fetch cancels the token
of the one in flight; when the older response arrives it is discarded with
RequestSuperseded and never replaces the newer payload.
"""

import logging
from typing import Optional

from ..api_client import AsyncApiClient
from ..errors import ApplicationError, NetworkError, RequestSuperseded
from ..report_engine.payloads import ReportPayload, parse_payload
from ..report_engine.query import ReportQuery

logger = logging.getLogger(__name__)


async def fetch_report(client: AsyncApiClient, query: ReportQuery) -> ReportPayload:
    """Single network read for `query`, parsed into its payload variant."""
    data = await client.get(query.path, params=query.to_params())
    return parse_payload(query.kind, data)


class RequestToken:
    """Marks one in-flight fetch; cancelled when a newer fetch starts."""

    def __init__(self, query: ReportQuery):
        self.query = query
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ReportFetcher:
    """
    Holds the payload for the most recent query.

    On a network or application error the error is logged and kept in
    `last_error`, `payload` stays as it was, and the error is re-raised so
    the caller can move to its failed state. No retry.
    """

    def __init__(self, client: AsyncApiClient):
        self.client = client
        self.payload: Optional[ReportPayload] = None
        self.query: Optional[ReportQuery] = None
        self.last_error: Optional[Exception] = None
        self._token: Optional[RequestToken] = None

    @property
    def in_flight(self) -> Optional[RequestToken]:
        return self._token

    def begin(self, query: ReportQuery) -> RequestToken:
        """Cancel the fetch in flight (if any) and issue a token for `query`."""
        if self._token is not None:
            self._token.cancel()
        self._token = RequestToken(query)
        return self._token

    async def fetch(self, query: ReportQuery) -> ReportPayload:
        token = self.begin(query)
        logger.info(f"Fetching report {query.kind.value} {query.to_params()}")

        try:
            payload = await fetch_report(self.client, query)
        except (NetworkError, ApplicationError) as e:
            if token.cancelled:
                raise RequestSuperseded(f"Report {query.kind.value} request was superseded") from e
            logger.error(f"Report {query.kind.value} fetch failed: {e}")
            self.last_error = e
            self._token = None
            raise

        if token.cancelled:
            logger.info(f"Discarding superseded response for {query.kind.value}")
            raise RequestSuperseded(f"Report {query.kind.value} request was superseded")

        self.payload = payload
        self.query = query
        self.last_error = None
        self._token = None
        return payload
