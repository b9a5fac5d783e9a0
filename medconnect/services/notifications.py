"""
Notifications

Fetch, mark-read and delete calls, plus a poller that refreshes the signed-in
user's notifications on a fixed interval.

The poller's lifetime is its owner's scope:

    async with NotificationPoller(client, user_id) as poller:
        ...
    # task cancelled here; no request is issued after exit

A failed poll is logged and the next tick tries again.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from ..api_client import AsyncApiClient
from ..errors import ApplicationError, NetworkError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 30.0  # seconds


async def fetch_notifications(client: AsyncApiClient, user_id: int) -> List[dict]:
    data = await client.get(f"/notifications/user/{user_id}")
    if not isinstance(data, list):
        return []
    return [n for n in data if isinstance(n, dict)]


async def mark_read(client: AsyncApiClient, notification_id: int) -> None:
    await client.put(f"/notifications/{notification_id}/read")


async def delete_notification(client: AsyncApiClient, notification_id: int) -> None:
    await client.delete(f"/notifications/{notification_id}")


def unread_count(notifications: List[dict]) -> int:
    return sum(1 for n in notifications if not n.get("is_read"))


class NotificationPoller:
    """
    Repeating notification fetch.

    Args:
        client: Async API client
        user_id: Whose notifications to poll
        interval: Seconds between polls
        on_update: Called with the notification list after each successful poll
    """

    def __init__(
        self,
        client: AsyncApiClient,
        user_id: int,
        interval: float = POLL_INTERVAL,
        on_update: Optional[Callable[[List[dict]], None]] = None,
    ):
        self.client = client
        self.user_id = user_id
        self.interval = interval
        self.on_update = on_update
        self.notifications: List[dict] = []
        self.poll_count = 0
        self._task: Optional[asyncio.Task] = None
        self._stopped: Optional[asyncio.Event] = None

    @property
    def unread_count(self) -> int:
        return unread_count(self.notifications)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self) -> List[dict]:
        """One poll. Network and backend errors keep the previous list."""
        try:
            notifications = await fetch_notifications(self.client, self.user_id)
        except (NetworkError, ApplicationError) as e:
            logger.warning(f"Notification poll failed for user {self.user_id}: {e}")
            self.poll_count += 1
            return self.notifications

        self.poll_count += 1
        self.notifications = notifications
        if self.on_update:
            try:
                self.on_update(notifications)
            except Exception as e:
                logger.error(f"Notification update handler failed for user {self.user_id}: {e}", exc_info=True)
        return notifications

    async def mark_read(self, notification_id: int) -> None:
        await mark_read(self.client, notification_id)
        for n in self.notifications:
            if n.get("id") == notification_id:
                n["is_read"] = True

    async def delete(self, notification_id: int) -> None:
        await delete_notification(self.client, notification_id)
        self.notifications = [n for n in self.notifications if n.get("id") != notification_id]

    async def _run(self) -> None:
        try:
            while not self._stopped.is_set():
                await self.refresh()
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    continue
        except asyncio.CancelledError:
            logger.debug(f"Notification poller for user {self.user_id} cancelled")
            raise

    def start(self) -> None:
        if self.running:
            return
        self._stopped = asyncio.Event()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Polling notifications for user {self.user_id} every {self.interval:.0f}s")

    async def stop(self) -> None:
        if self._stopped is not None:
            self._stopped.set()
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, *exc):
        await self.stop()
