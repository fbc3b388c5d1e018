"""Tests for the dashboard client: session, boards and the reschedule form"""

import asyncio
import json
from datetime import datetime, time, timedelta

import httpx
import pytest
from websockets.exceptions import InvalidHandshake

from foodai.client import (
    APIError,
    FoodAIClient,
    OptimisticList,
    ReservationBoard,
    RescheduleForm,
    SessionContext,
    SessionState,
)
from foodai.client.changes import WebSocketChangeStream, changes_url
from foodai.client.session import SessionNotReady
from foodai.errors import SlotUnavailableError, ValidationError
from foodai.models.user import UserRole
from foodai.realtime.hub import UPDATE, ReservationChange, ReservationChangeHub
from tests.conftest import FUTURE_DATE

TOKEN = "access-token"

PROFILES = {
    "client": {"id": "user-1", "email": "diner@example.com", "role": "client"},
    "restaurant": {"id": "owner-1", "email": "owner@example.com", "role": "restaurant"},
    "admin": {"id": "admin-1", "email": "admin@example.com", "role": "admin"},
}


def _reservation(reservation_id="res-1", status="pending", **fields):
    row = {
        "id": reservation_id,
        "user_id": "user-1",
        "restaurant_id": "rest-1",
        "reservation_date": FUTURE_DATE.isoformat(),
        "reservation_time": "20:00",
        "guests_count": 2,
        "status": status,
        "reason_cancellation": None,
    }
    row.update(fields)
    return row


class FakeAPI:
    """Canned FoodAI API behind httpx.MockTransport"""

    def __init__(self, role="client"):
        self.profile = PROFILES[role]
        self.reservations = [_reservation()]
        self.requests = []
        self.fail_writes_with = None
        self.fail_availability = False
        self.availability = {"available": True, "message": "Slot is available", "existing_reservations": 0, "verified": True}

    def paths(self, method=None):
        return [path for m, path in self.requests if method is None or m == method]

    def _find(self, reservation_id):
        return next(r for r in self.reservations if r["id"] == reservation_id)

    def _listing(self):
        counts = {}
        for row in self.reservations:
            counts[row["status"]] = counts.get(row["status"], 0) + 1
        return {"items": self.reservations, "total": len(self.reservations), "counts": counts}

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.requests.append((method, path))

        if path == "/auth/login":
            return httpx.Response(200, json={"access_token": TOKEN, "refresh_token": "r", "expires_in": 1800})
        if request.headers.get("Authorization") != f"Bearer {TOKEN}":
            return httpx.Response(401, json={"detail": "Could not validate credentials"})

        if path == "/auth/me":
            return httpx.Response(200, json=self.profile)
        if path == "/restaurants/mine":
            return httpx.Response(200, json=[{"id": "rest-1", "name": "La Casa de Sofía"}])
        if path == "/reservations/mine":
            return httpx.Response(200, json=self.reservations)
        if path in ("/reservations/all", "/reservations/restaurant/rest-1"):
            return httpx.Response(200, json=self._listing())
        if path == "/reservations/pending-count":
            count = sum(1 for r in self.reservations if r["status"] == "pending")
            return httpx.Response(200, json={"restaurant_id": None, "count": count})

        reservation_id = path.split("/")[2]
        if path.endswith("/availability"):
            if self.fail_availability:
                return httpx.Response(503, json={"detail": "storage down"})
            return httpx.Response(200, json=self.availability)

        if self.fail_writes_with:
            return httpx.Response(self.fail_writes_with, json={"detail": "Cannot move reservation"})

        body = json.loads(request.content) if request.content else {}
        row = self._find(reservation_id)
        if path.endswith("/status"):
            row["status"] = body["status"]
            return httpx.Response(200, json=row)
        if path.endswith("/cancel"):
            row.update(status="cancelled", reason_cancellation=body.get("reason"))
            return httpx.Response(200, json=row)
        if path.endswith("/reschedule"):
            row.update(reservation_date=body["reservation_date"], reservation_time=body["reservation_time"])
            return httpx.Response(
                200,
                json={"message": "Reservation rescheduled", "reservation": row, "emails_sent": {"customer": True}},
            )
        return httpx.Response(404, json={"detail": "Not Found"})


def _client(fake: FakeAPI) -> FoodAIClient:
    return FoodAIClient(base_url="http://api.test", transport=httpx.MockTransport(fake.handler))


async def _session(fake: FakeAPI) -> SessionContext:
    session = SessionContext(_client(fake))
    await session.sign_in(fake.profile["email"], "secret")
    return session


class TestOptimisticList:
    """Tentative state with rollback"""

    @pytest.mark.asyncio
    async def test_success_commits(self):
        items = OptimisticList([{"id": 1, "status": "pending"}])

        async def action():
            assert items.get(1)["status"] == "confirmed"
            return "ok"

        assert await items.patch(1, {"status": "confirmed"}, action) == "ok"
        assert items.snapshot == [{"id": 1, "status": "confirmed"}]

    @pytest.mark.asyncio
    async def test_failure_restores_snapshot(self):
        items = OptimisticList([{"id": 1, "status": "pending"}, {"id": 2, "status": "pending"}])

        async def action():
            raise APIError(409, "conflict")

        with pytest.raises(APIError):
            await items.apply(lambda rows: rows[:1], action)

        assert [item["id"] for item in items.items] == [1, 2]

    @pytest.mark.asyncio
    async def test_refresh_during_action_is_kept(self):
        items = OptimisticList([{"id": "a", "status": "pending"}, {"id": "b", "status": "pending"}])
        server_rows = [
            {"id": "a", "status": "confirmed"},
            {"id": "b", "status": "cancelled"},
            {"id": "c", "status": "pending"},
        ]

        async def confirm():
            items.replace(server_rows)
            return {"id": "a", "status": "confirmed", "guests_count": 4}

        await items.patch("a", {"status": "confirmed"}, confirm)

        expected = [
            {"id": "a", "status": "confirmed", "guests_count": 4},
            {"id": "b", "status": "cancelled"},
            {"id": "c", "status": "pending"},
        ]
        assert items.snapshot == expected
        assert items.items == expected

        async def rejected():
            raise APIError(409, "conflict")

        with pytest.raises(APIError):
            await items.patch("b", {"status": "confirmed"}, rejected)

        assert items.items == expected

    @pytest.mark.asyncio
    async def test_server_row_overrides_guess(self):
        items = OptimisticList([{"id": 1, "status": "pending", "reason_cancellation": None}])

        async def cancel():
            return {"id": 1, "status": "cancelled", "reason_cancellation": "Sin motivo"}

        await items.patch(1, {"status": "cancelled"}, cancel)

        assert items.items[0]["reason_cancellation"] == "Sin motivo"


class TestSession:
    """Session lifecycle"""

    @pytest.mark.asyncio
    async def test_sign_in(self):
        fake = FakeAPI()
        session = SessionContext(_client(fake))

        assert session.state == SessionState.UNINITIALIZED
        with pytest.raises(SessionNotReady):
            session.require_profile()

        await session.sign_in("diner@example.com", "secret")

        assert session.is_ready
        assert session.token == TOKEN
        assert session.role == UserRole.CLIENT
        assert session.user_id == "user-1"

    @pytest.mark.asyncio
    async def test_restore_with_stale_token(self):
        session = SessionContext(_client(FakeAPI()))

        with pytest.raises(APIError):
            await session.restore("expired")

        assert session.state == SessionState.ERROR
        assert session.error == "Could not validate credentials"

    @pytest.mark.asyncio
    async def test_sign_out(self):
        session = await _session(FakeAPI())

        session.sign_out()

        assert session.token is None
        assert session.state == SessionState.UNINITIALIZED


class TestBoard:
    """Role boards"""

    @pytest.mark.asyncio
    async def test_owner_board_loads_own_restaurant(self):
        fake = FakeAPI("restaurant")
        board = await ReservationBoard(await _session(fake)).open()

        assert board.restaurant_id == "rest-1"
        assert board.counts == {"pending": 1}
        assert [row["id"] for row in board.items] == ["res-1"]

    @pytest.mark.asyncio
    async def test_actions_by_role(self):
        owner_board = ReservationBoard(await _session(FakeAPI("restaurant")))
        client_board = ReservationBoard(await _session(FakeAPI("client")))

        assert owner_board.actions_for(_reservation()) == ["confirmed", "cancelled", "reschedule"]
        assert client_board.actions_for(_reservation()) == ["cancelled", "reschedule"]
        assert client_board.actions_for(_reservation(status="confirmed")) == ["reschedule"]
        assert owner_board.actions_for(_reservation(status="completed")) == []

    @pytest.mark.asyncio
    async def test_status_change_applies(self):
        fake = FakeAPI("restaurant")
        board = await ReservationBoard(await _session(fake)).open()

        await board.change_status("res-1", "confirmed")

        assert board.items[0]["status"] == "confirmed"
        assert board.reservations.snapshot[0]["status"] == "confirmed"

    @pytest.mark.asyncio
    async def test_rejected_change_rolls_back_and_reloads(self):
        fake = FakeAPI("restaurant")
        board = await ReservationBoard(await _session(fake)).open()
        fake.fail_writes_with = 409
        loads_before = fake.paths("GET").count("/reservations/restaurant/rest-1")

        with pytest.raises(APIError) as exc_info:
            await board.change_status("res-1", "confirmed")

        assert exc_info.value.status_code == 409
        assert board.items[0]["status"] == "pending"
        assert fake.paths("GET").count("/reservations/restaurant/rest-1") == loads_before + 1

    @pytest.mark.asyncio
    async def test_client_cancel(self):
        fake = FakeAPI("client")
        board = await ReservationBoard(await _session(fake)).open()

        await board.cancel("res-1", "Cambio de planes")

        assert board.items[0]["status"] == "cancelled"
        assert board.items[0]["reason_cancellation"] == "Cambio de planes"
        assert ("POST", "/reservations/res-1/cancel") in fake.requests

    @pytest.mark.asyncio
    async def test_admin_pending_badge(self):
        fake = FakeAPI("admin")
        fake.reservations.append(_reservation("res-2", status="confirmed"))

        board = await ReservationBoard(await _session(fake)).open()

        assert board.pending_count == 1
        assert board.counts == {"pending": 1, "confirmed": 1}

    @pytest.mark.asyncio
    async def test_change_stream_refetches(self):
        fake = FakeAPI("client")
        changes = ReservationChangeHub()
        board = await ReservationBoard(await _session(fake), changes=changes).open()

        fake.reservations[0]["status"] = "confirmed"
        await changes.publish(ReservationChange(event_type=UPDATE, new=fake.reservations[0]))

        assert board.items[0]["status"] == "confirmed"

        await board.close()
        assert changes.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_reschedule_form_for_unknown_row(self):
        board = await ReservationBoard(await _session(FakeAPI())).open()

        with pytest.raises(KeyError):
            board.reschedule_form("missing")


class TestRescheduleForm:
    """Debounced availability and submission"""

    def _form(self, fake):
        return RescheduleForm(_client(fake), _reservation(), debounce_seconds=0.01)

    @pytest.mark.asyncio
    async def test_debounce_checks_last_slot_only(self):
        fake = FakeAPI()
        client = _client(fake)
        client.token = TOKEN
        form = RescheduleForm(client, _reservation(), debounce_seconds=0.01)

        form.set_slot(FUTURE_DATE, "21:00")
        form.set_slot(FUTURE_DATE, "21:30")
        assert form.checking
        assert not form.can_submit

        result = await form.wait()

        assert result["available"] is True
        assert fake.paths("GET") == ["/reservations/res-1/availability"]
        assert not form.checking

    @pytest.mark.asyncio
    async def test_unchanged_slot_skips_check(self):
        fake = FakeAPI()
        form = self._form(fake)

        form.set_slot(FUTURE_DATE, time(20, 0))
        await form.wait()

        assert form.unchanged
        assert form.availability is None
        assert fake.requests == []
        assert await form.submit() is None

    @pytest.mark.asyncio
    async def test_full_slot_blocks_submit(self):
        fake = FakeAPI()
        fake.availability = {"available": False, "message": "Slot is fully booked", "existing_reservations": 5, "verified": True}
        form = self._form(fake)
        form.client.token = TOKEN

        form.set_slot(FUTURE_DATE, "21:00")

        with pytest.raises(SlotUnavailableError) as exc_info:
            await form.submit()

        assert exc_info.value.existing_reservations == 5
        assert fake.paths("PUT") == []

    @pytest.mark.asyncio
    async def test_failed_check_is_unverified(self):
        fake = FakeAPI()
        fake.fail_availability = True
        form = self._form(fake)
        form.client.token = TOKEN

        form.set_slot(FUTURE_DATE, "21:00")
        result = await form.wait()

        assert result["verified"] is False
        assert form.can_submit

    @pytest.mark.asyncio
    async def test_submit(self):
        fake = FakeAPI()
        form = self._form(fake)
        form.client.token = TOKEN
        new_date = FUTURE_DATE + timedelta(days=1)

        form.set_slot(new_date, "21:30")
        result = await form.submit("Tráfico")

        assert result["emails_sent"] == {"customer": True}
        assert form.reservation["reservation_time"] == "21:30"
        assert form.unchanged

    @pytest.mark.asyncio
    async def test_needs_warning_inside_a_day(self):
        form = self._form(FakeAPI())

        assert not form.needs_warning(datetime.combine(FUTURE_DATE - timedelta(days=2), time(12, 0)))
        assert form.needs_warning(datetime.combine(FUTURE_DATE, time(8, 0)))


class TestCreateValidation:
    """Local checks before the network"""

    @pytest.mark.asyncio
    async def test_party_too_large_never_sent(self):
        fake = FakeAPI()
        client = _client(fake)

        with pytest.raises(ValidationError):
            await client.create_reservation(
                restaurant_id="00000000-0000-0000-0000-000000000001",
                reservation_date=FUTURE_DATE,
                reservation_time=time(20, 0),
                guests_count=20,
            )

        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_malformed_form_never_sent(self):
        fake = FakeAPI()

        with pytest.raises(ValidationError):
            await _client(fake).create_reservation(restaurant_id="not-a-uuid", guests_count=2)

        assert fake.requests == []


class _Connection:
    """Scripted server side of /ws/reservations"""

    def __init__(self, messages):
        self.messages = messages
        self.hold = asyncio.Event()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.messages:
            yield message
        await self.hold.wait()


class TestChangeStream:
    """WebSocket change stream feeding a board"""

    def test_url_from_api_base(self):
        assert changes_url("https://api.foodai.app", "tok") == "wss://api.foodai.app/ws/reservations?token=tok"
        assert changes_url("http://localhost:8000/", "tok") == "ws://localhost:8000/ws/reservations?token=tok"

    @pytest.mark.asyncio
    async def test_requires_token(self):
        with pytest.raises(APIError):
            _client(FakeAPI()).change_stream()

    @pytest.mark.asyncio
    async def test_board_refetches_on_pushed_change(self):
        fake = FakeAPI("client")
        session = await _session(fake)
        urls = []
        changed = {"id": "res-1", "user_id": "user-1", "restaurant_id": "rest-1", "status": "confirmed"}

        def connect(url):
            urls.append(url)
            fake.reservations[0]["status"] = "confirmed"
            return _Connection(["pong", json.dumps({"eventType": UPDATE, "new": changed, "old": None})])

        stream = session.client.change_stream(connect=connect)
        board = await ReservationBoard(session, changes=stream).open()
        delivered = asyncio.Event()
        marker = stream.subscribe(lambda change: delivered.set())

        await asyncio.wait_for(delivered.wait(), timeout=1)

        assert urls == [f"ws://api.test/ws/reservations?token={TOKEN}"]
        assert board.items[0]["status"] == "confirmed"

        await board.close()
        assert stream.running
        marker.unsubscribe()
        await stream.wait_closed()
        assert not stream.running

    @pytest.mark.asyncio
    async def test_rejected_handshake_stops(self):
        attempts = []

        def connect(url):
            attempts.append(url)
            raise InvalidHandshake("server rejected WebSocket connection: HTTP 403")

        stream = WebSocketChangeStream("http://api.test", "expired", connect=connect, reconnect_seconds=0)
        stream.subscribe(lambda change: None)

        await asyncio.wait_for(stream.wait_closed(), timeout=1)

        assert len(attempts) == 1
        assert not stream.running

    @pytest.mark.asyncio
    async def test_unreadable_message_is_skipped(self):
        stream = WebSocketChangeStream("http://api.test", "tok", connect=lambda url: _Connection([]))
        seen = []
        stream.subscribe(seen.append)

        await stream.handle_message("not json")
        await stream.handle_message(json.dumps({"eventType": UPDATE, "new": {"id": "res-1"}}))
        await stream.close()

        assert [change.event_type for change in seen] == [UPDATE]
