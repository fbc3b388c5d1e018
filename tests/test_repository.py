"""Tests for the reservation repository"""

from datetime import date, datetime, time, timedelta
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from foodai.errors import BackendError, InvalidTransitionError, NotFoundError, ValidationError
from foodai.models.restaurant import RestaurantStatus
from foodai.realtime.hub import ReservationChangeHub
from foodai.reservations.repository import ReservationRepository, to_view
from foodai.schemas.reservation import ReservationCreate
from tests.conftest import DINNER, FUTURE_DATE


@pytest.fixture
def hub():
    return ReservationChangeHub()


@pytest.fixture
def repository(test_db, test_settings, hub):
    return ReservationRepository(test_db, hub=hub, settings=test_settings)


def _payload(restaurant, **overrides):
    fields = dict(
        restaurant_id=restaurant.id,
        reservation_date=FUTURE_DATE,
        reservation_time=DINNER,
        guests_count=2,
    )
    fields.update(overrides)
    return ReservationCreate(**fields)


async def test_create_is_pending_and_published(repository, hub, client_user, restaurant):
    changes = []
    hub.subscribe(changes.append)

    reservation = await repository.create_reservation(client_user.id, _payload(restaurant, special_request="Ventana"))

    assert reservation.status == "pending"
    assert reservation.restaurant.name == "La Casa de Sofía"
    assert len(changes) == 1
    assert changes[0].event_type == "INSERT"
    assert changes[0].new["id"] == str(reservation.id)


@pytest.mark.parametrize("guests", [0, 13])
async def test_party_size_out_of_range(repository, client_user, restaurant, guests):
    with pytest.raises(ValidationError):
        await repository.create_reservation(client_user.id, _payload(restaurant, guests_count=guests))


async def test_past_slot_rejected(repository, client_user, restaurant):
    with pytest.raises(ValidationError):
        await repository.create_reservation(
            client_user.id,
            _payload(restaurant, reservation_date=date.today() - timedelta(days=1)),
        )


async def test_validation_happens_before_storage(test_db, test_settings, client_user, monkeypatch):
    repository = ReservationRepository(test_db, settings=test_settings)

    async def boom(*args, **kwargs):
        raise AssertionError("storage should not be touched")

    monkeypatch.setattr(test_db, "get", boom)

    with pytest.raises(ValidationError):
        await repository.create_reservation(
            client_user.id,
            ReservationCreate(restaurant_id=uuid4(), reservation_date=FUTURE_DATE, reservation_time=DINNER, guests_count=20),
        )


async def test_unknown_or_inactive_restaurant(repository, client_user, restaurant, test_db):
    with pytest.raises(NotFoundError):
        await repository.create_reservation(
            client_user.id,
            ReservationCreate(restaurant_id=uuid4(), reservation_date=FUTURE_DATE, reservation_time=DINNER, guests_count=2),
        )

    restaurant.status = RestaurantStatus.SUSPENDED
    await test_db.commit()
    with pytest.raises(ValidationError):
        await repository.create_reservation(client_user.id, _payload(restaurant))


async def test_lists_are_ordered_most_recent_first(repository, make_reservation, client_user, restaurant):
    early = await make_reservation(reservation_date=FUTURE_DATE, reservation_time=time(13, 0))
    late = await make_reservation(reservation_date=FUTURE_DATE, reservation_time=time(21, 0))
    later_day = await make_reservation(reservation_date=FUTURE_DATE + timedelta(days=1))

    by_user = await repository.get_reservations_by_user_id(client_user.id)
    by_restaurant = await repository.get_reservations_by_restaurant_id(restaurant.id)

    expected = [later_day.id, late.id, early.id]
    assert [r.id for r in by_user] == expected
    assert [r.id for r in by_restaurant] == expected
    assert await repository.get_reservations_by_user_id(None) == []


async def test_cancel_keeps_slot_and_records_reason(repository, make_reservation):
    reservation = await make_reservation()

    cancelled = await repository.cancel_reservation(reservation.id, "Cambio de planes")

    assert cancelled.status == "cancelled"
    assert cancelled.reason_cancellation == "Cambio de planes"
    assert cancelled.reservation_date == FUTURE_DATE
    assert cancelled.reservation_time == DINNER


async def test_reason_dropped_for_other_statuses(repository, make_reservation):
    reservation = await make_reservation()

    confirmed = await repository.update_reservation_status(reservation.id, "confirmed", reason_cancellation="ignored")

    assert confirmed.reason_cancellation is None
    assert to_view(confirmed).reason_cancellation is None


async def test_status_update_publishes_before_and_after(repository, hub, make_reservation):
    reservation = await make_reservation()
    changes = []
    hub.subscribe(changes.append)

    await repository.update_reservation_status(reservation.id, "confirmed")

    assert changes[0].event_type == "UPDATE"
    assert changes[0].old["status"] == "pending"
    assert changes[0].new["status"] == "confirmed"


async def test_reschedule_keeps_status(repository, make_reservation):
    reservation = await make_reservation(status="confirmed")
    new_date = FUTURE_DATE + timedelta(days=1)

    moved = await repository.reschedule_reservation(reservation.id, new_date, time(21, 30), "Llegamos tarde")

    assert moved.status == "confirmed"
    assert moved.reservation_date == new_date
    assert moved.reservation_time == time(21, 30)
    assert moved.reschedule_reason == "Llegamos tarde"


async def test_reschedule_rejects_terminal_and_near_dates(repository, make_reservation):
    completed = await make_reservation(status="completed")
    with pytest.raises(InvalidTransitionError):
        await repository.reschedule_reservation(completed.id, FUTURE_DATE + timedelta(days=1), DINNER)

    pending = await make_reservation()
    with pytest.raises(ValidationError):
        await repository.reschedule_reservation(pending.id, date.today(), DINNER)


async def test_unknown_reservation(repository):
    with pytest.raises(NotFoundError):
        await repository.get_reservation(uuid4())


async def test_pending_count_and_summary(repository, make_reservation, restaurant):
    await make_reservation()
    await make_reservation()
    await make_reservation(status="confirmed")
    await make_reservation(status="cancelled")

    assert await repository.get_pending_reservations_count(restaurant.id) == 2
    assert await repository.get_pending_reservations_count() == 2
    assert await repository.get_status_summary(restaurant.id) == {
        "pending": 2,
        "confirmed": 1,
        "cancelled": 1,
        "completed": 0,
    }


async def test_restaurant_analytics(repository, make_reservation, restaurant):
    today = date(2025, 6, 11)  # Wednesday; week started Sunday the 8th
    await make_reservation(reservation_date=today)
    await make_reservation(reservation_date=today + timedelta(days=2), status="confirmed")
    await make_reservation(reservation_date=date(2025, 6, 9), status="completed")
    await make_reservation(reservation_date=date(2025, 6, 2), status="cancelled")
    await make_reservation(reservation_date=date(2025, 5, 30), status="completed")

    stats = await repository.get_restaurant_analytics(restaurant.id, today=today)

    assert stats["total_reservations"] == 5
    assert stats["pending_reservations"] == 1
    assert stats["confirmed_reservations"] == 1
    assert stats["completed_reservations"] == 2
    assert stats["cancelled_reservations"] == 1
    assert stats["upcoming_reservations"] == 2
    assert stats["today_reservations"] == 1
    assert stats["this_week_reservations"] == 3
    assert stats["this_month_reservations"] == 4


async def test_storage_failures_are_retried_then_wrapped(repository, test_db, monkeypatch):
    calls = []

    async def broken(*args, **kwargs):
        calls.append(1)
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(test_db, "execute", broken)

    with pytest.raises(BackendError):
        await repository.get_all_reservations()
    assert len(calls) == 2


async def test_writes_drop_seconds_from_the_slot(repository, client_user, restaurant):
    payload = ReservationCreate.model_construct(
        restaurant_id=restaurant.id,
        reservation_date=FUTURE_DATE,
        reservation_time=time(20, 0, 45),
        guests_count=2,
        special_request=None,
        selected_dishes=None,
    )

    reservation = await repository.create_reservation(client_user.id, payload)
    assert reservation.reservation_time == time(20, 0)

    moved = await repository.reschedule_reservation(
        reservation.id, FUTURE_DATE + timedelta(days=1), time(21, 30, 10, 500)
    )
    assert moved.reservation_time == time(21, 30)


def test_request_schemas_truncate_to_minute():
    payload = ReservationCreate(
        restaurant_id=uuid4(),
        reservation_date=FUTURE_DATE,
        reservation_time="20:00:30",
        guests_count=2,
    )

    assert payload.reservation_time == time(20, 0)
