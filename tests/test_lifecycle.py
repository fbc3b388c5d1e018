"""Tests for reservation status transitions"""

from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from foodai.errors import InvalidTransitionError, PermissionDeniedError
from foodai.models.reservation import ReservationStatus
from foodai.models.user import UserRole
from foodai.reservations.lifecycle import (
    available_actions,
    can_reschedule,
    can_reschedule_without_warning,
    ensure_transition,
    is_terminal,
    is_valid_transition,
)


@pytest.mark.parametrize(
    "current,target,role",
    [
        ("pending", "confirmed", UserRole.RESTAURANT),
        ("pending", "confirmed", UserRole.ADMIN),
        ("pending", "cancelled", UserRole.CLIENT),
        ("confirmed", "completed", UserRole.RESTAURANT),
        ("confirmed", "cancelled", UserRole.ADMIN),
    ],
)
def test_allowed_transitions(current, target, role):
    assert ensure_transition(current, target, role) == ReservationStatus(target)


@pytest.mark.parametrize(
    "current,target",
    [
        ("completed", "pending"),
        ("cancelled", "confirmed"),
        ("pending", "completed"),
        ("confirmed", "pending"),
    ],
)
def test_edges_outside_lifecycle_are_rejected(current, target):
    assert not is_valid_transition(current, target)
    with pytest.raises(InvalidTransitionError):
        ensure_transition(current, target, UserRole.ADMIN)


def test_client_cannot_confirm_or_cancel_confirmed():
    with pytest.raises(PermissionDeniedError):
        ensure_transition("pending", "confirmed", UserRole.CLIENT)
    with pytest.raises(PermissionDeniedError):
        ensure_transition("confirmed", "cancelled", UserRole.CLIENT)


def test_available_actions_per_role():
    assert available_actions("pending", UserRole.CLIENT) == [ReservationStatus.CANCELLED]
    assert set(available_actions("pending", UserRole.RESTAURANT)) == {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
    }
    assert set(available_actions("confirmed", UserRole.ADMIN)) == {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
    }
    assert available_actions("confirmed", UserRole.CLIENT) == []
    assert available_actions("completed", UserRole.ADMIN) == []


def test_terminal_and_reschedulable_states():
    assert is_terminal("cancelled")
    assert is_terminal("completed")
    assert not is_terminal("pending")
    assert can_reschedule("pending")
    assert can_reschedule("confirmed")
    assert not can_reschedule("cancelled")
    assert not can_reschedule("completed")


def test_reschedule_warning_inside_24_hours():
    reservation = SimpleNamespace(reservation_date=date(2025, 6, 2), reservation_time=time(20, 0))

    assert can_reschedule_without_warning(reservation, datetime(2025, 6, 1, 19, 0))
    assert not can_reschedule_without_warning(reservation, datetime(2025, 6, 1, 21, 0))
