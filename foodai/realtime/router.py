"""WebSocket stream of reservation changes"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from foodai.api.auth import get_user_from_token
from foodai.database import get_db
from foodai.models.user import User, UserRole
from foodai.realtime.hub import ReservationChange, ReservationChangeHub, get_change_hub

logger = structlog.get_logger()

router = APIRouter()


def visible_to(user: User, change: ReservationChange, owned_restaurants: set) -> bool:
    """Admins see everything, owners their restaurants, clients their own rows"""
    if user.role == UserRole.ADMIN:
        return True
    row = change.row
    if user.role == UserRole.RESTAURANT:
        return row.get("restaurant_id") in owned_restaurants
    return row.get("user_id") == str(user.id)


async def authenticate(token: Optional[str], db: AsyncSession) -> Optional[User]:
    if not token:
        return None
    user = await get_user_from_token(token, db)
    if user is not None and user.role == UserRole.RESTAURANT:
        await db.refresh(user, ["restaurants"])
    return user


async def relay(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """
    Send queued changes and answer pings until either side stops. A client
    disconnect ends quietly; a failed send is raised to the caller.
    """
    async def send_changes():
        while True:
            change = await queue.get()
            await websocket.send_json(change.to_dict())

    async def answer_pings():
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")

    tasks = {asyncio.create_task(send_changes()), asyncio.create_task(answer_pings())}
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()

    for task in done:
        error = task.exception()
        if error is not None and not isinstance(error, WebSocketDisconnect):
            raise error


@router.websocket("/ws/reservations")
async def reservation_changes(
    websocket: WebSocket,
    token: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    hub: ReservationChangeHub = Depends(get_change_hub),
):
    """
    Push INSERT/UPDATE events as JSON. Clients authenticate with
    ?token=<access token> and may send "ping" to get "pong" back.
    """
    user = await authenticate(token, db)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    owned = {str(restaurant.id) for restaurant in user.restaurants} if user.role == UserRole.RESTAURANT else set()
    queue: asyncio.Queue = asyncio.Queue()

    def enqueue(change: ReservationChange) -> None:
        if visible_to(user, change, owned):
            queue.put_nowait(change)

    subscription = hub.subscribe(enqueue)
    logger.info("Realtime subscriber connected", user_id=str(user.id), role=user.role.value)

    try:
        await relay(websocket, queue)
    except Exception as e:
        logger.warning("Realtime connection failed", user_id=str(user.id), error=str(e) or type(e).__name__)
    finally:
        subscription.unsubscribe()
        logger.info("Realtime subscriber disconnected", user_id=str(user.id))
