"""Async HTTP client for the FoodAI API"""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import httpx
from pydantic import ValidationError as SchemaError
import structlog

from foodai.client.changes import WebSocketChangeStream
from foodai.errors import ValidationError
from foodai.reservations.repository import validate_create
from foodai.schemas.reservation import ReservationCreate

logger = structlog.get_logger()

Id = Union[str, UUID]


class APIError(Exception):
    """Non-2xx answer from the API"""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _slot(value: Union[date, time, str]) -> str:
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


class FoodAIClient:
    """Thin wrapper over the HTTP API used by the dashboard surfaces"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        max_party_size: int = 12,
    ):
        self.base_url = base_url
        self.token = token
        self.max_party_size = max_party_size
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("API request failed", method=method, path=path, error=str(e))
            raise APIError(0, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise APIError(response.status_code, str(detail))

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Auth

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        tokens = await self._request("POST", "/auth/login", data={"username": email, "password": password})
        self.token = tokens["access_token"]
        return tokens

    async def register(self, **user) -> Dict[str, Any]:
        return await self._request("POST", "/auth/register", json=user)

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me")

    def change_stream(self, **options) -> WebSocketChangeStream:
        """Live reservation changes for the signed-in user"""
        if not self.token:
            raise APIError(401, "Sign in before subscribing to changes")
        return WebSocketChangeStream(self.base_url, self.token, **options)

    # Restaurants

    async def list_restaurants(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"search": search} if search else None
        return await self._request("GET", "/restaurants", params=params)

    async def my_restaurants(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/restaurants/mine")

    async def get_ai_insights(self, restaurant_id: Id) -> Dict[str, Any]:
        return await self._request("GET", f"/restaurants/{restaurant_id}/ai-insights")

    # Reservations

    async def create_reservation(self, **fields) -> Dict[str, Any]:
        """Validated locally first; a bad form never reaches the network"""
        try:
            payload = ReservationCreate(**fields)
        except SchemaError as e:
            raise ValidationError(str(e)) from e
        validate_create(payload, self.max_party_size, datetime.now())
        return await self._request("POST", "/reservations", json=payload.model_dump(mode="json", exclude_none=True))

    async def my_reservations(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/reservations/mine")

    async def restaurant_reservations(self, restaurant_id: Id) -> Dict[str, Any]:
        return await self._request("GET", f"/reservations/restaurant/{restaurant_id}")

    async def all_reservations(self) -> Dict[str, Any]:
        return await self._request("GET", "/reservations/all")

    async def pending_count(self, restaurant_id: Optional[Id] = None) -> int:
        params = {"restaurant_id": str(restaurant_id)} if restaurant_id else None
        data = await self._request("GET", "/reservations/pending-count", params=params)
        return data["count"]

    async def update_status(self, reservation_id: Id, status: str, reason: Optional[str] = None) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/reservations/{reservation_id}/status",
            json={"status": status, "reason_cancellation": reason},
        )

    async def cancel_reservation(self, reservation_id: Id, reason: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("POST", f"/reservations/{reservation_id}/cancel", json={"reason": reason})

    async def check_availability(self, reservation_id: Id, slot_date, slot_time) -> Dict[str, Any]:
        return await self._request(
            "GET",
            f"/reservations/{reservation_id}/availability",
            params={"date": _slot(slot_date), "time": _slot(slot_time)},
        )

    async def reschedule_reservation(
        self,
        reservation_id: Id,
        slot_date,
        slot_time,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._request(
            "PUT",
            f"/reservations/{reservation_id}/reschedule",
            json={
                "reservation_date": _slot(slot_date),
                "reservation_time": _slot(slot_time),
                "reason": reason,
            },
        )
