"""Reservation change stream read from the API's WebSocket"""

import asyncio
import json
from typing import Any, Callable, Optional

import httpx
import structlog
import websockets
from websockets.exceptions import InvalidHandshake, WebSocketException

from foodai.realtime.hub import ReservationChange, ReservationChangeHub, Subscription

logger = structlog.get_logger()


def changes_url(base_url: str, token: str) -> str:
    """ws(s)://.../ws/reservations?token=... for an http(s) API base URL"""
    url = httpx.URL(base_url)
    scheme = "wss" if url.scheme == "https" else "ws"
    return str(
        url.copy_with(
            scheme=scheme,
            path=url.path.rstrip("/") + "/ws/reservations",
            params={"token": token},
        )
    )


class WebSocketChangeStream(ReservationChangeHub):
    """
    Same subscribe()/unsubscribe() surface as the in-process hub, fed by
    /ws/reservations. The connection opens with the first subscriber, is
    re-established after drops, and closes when the last one leaves. A
    rejected handshake (bad or expired token) stops the stream.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        connect: Optional[Callable[[str], Any]] = None,
        reconnect_seconds: float = 2.0,
    ):
        super().__init__()
        self.url = changes_url(base_url, token)
        self.reconnect_seconds = reconnect_seconds
        self._connect = connect or websockets.connect
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: Callable[[ReservationChange], Any]) -> Subscription:
        subscription = super().subscribe(callback)
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._listen())
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        super()._remove(subscription)
        if not self._subscriptions and self._task is not None:
            self._task.cancel()

    async def wait_closed(self) -> None:
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        await self.wait_closed()

    async def handle_message(self, message: str) -> None:
        if message == "pong":
            return
        try:
            data = json.loads(message)
        except ValueError:
            logger.warning("Unreadable reservation change", message=message[:200])
            return

        await self.publish(
            ReservationChange(
                event_type=data.get("eventType", ""),
                new=data.get("new"),
                old=data.get("old"),
            )
        )

    async def _listen(self) -> None:
        while self._subscriptions:
            try:
                async with self._connect(self.url) as connection:
                    logger.info("Reservation change stream connected")
                    async for message in connection:
                        await self.handle_message(message)
            except InvalidHandshake as e:
                logger.error("Reservation change stream rejected", error=str(e))
                return
            except (WebSocketException, OSError) as e:
                logger.warning("Reservation change stream dropped", error=str(e) or type(e).__name__)

            if self._subscriptions:
                await asyncio.sleep(self.reconnect_seconds)
