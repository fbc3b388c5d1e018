"""Reservation status transitions and who may trigger them"""

from datetime import datetime, timedelta
from typing import Dict, FrozenSet, List, Tuple

from foodai.errors import InvalidTransitionError, PermissionDeniedError
from foodai.models.reservation import ReservationStatus
from foodai.models.user import UserRole

PENDING = ReservationStatus.PENDING
CONFIRMED = ReservationStatus.CONFIRMED
CANCELLED = ReservationStatus.CANCELLED
COMPLETED = ReservationStatus.COMPLETED

# (from, to) -> roles allowed to take the edge
TRANSITIONS: Dict[Tuple[ReservationStatus, ReservationStatus], FrozenSet[UserRole]] = {
    (PENDING, CONFIRMED): frozenset({UserRole.RESTAURANT, UserRole.ADMIN}),
    (PENDING, CANCELLED): frozenset({UserRole.CLIENT, UserRole.RESTAURANT, UserRole.ADMIN}),
    (CONFIRMED, COMPLETED): frozenset({UserRole.RESTAURANT, UserRole.ADMIN}),
    (CONFIRMED, CANCELLED): frozenset({UserRole.RESTAURANT, UserRole.ADMIN}),
}

TERMINAL_STATUSES = frozenset({CANCELLED, COMPLETED})
RESCHEDULABLE_STATUSES = frozenset({PENDING, CONFIRMED})


def is_valid_transition(current, target) -> bool:
    """Whether the edge exists for any role"""
    return (ReservationStatus(current), ReservationStatus(target)) in TRANSITIONS


def ensure_transition(current, target, role: UserRole) -> ReservationStatus:
    """
    Validate a status change for the given role.

    Raises InvalidTransitionError for edges outside the lifecycle and
    PermissionDeniedError when the role may not take an existing edge.
    """
    current = ReservationStatus(current)
    target = ReservationStatus(target)

    roles = TRANSITIONS.get((current, target))
    if roles is None:
        raise InvalidTransitionError(
            f"Cannot move reservation from {current.value} to {target.value}"
        )
    if role not in roles:
        raise PermissionDeniedError(
            f"Role {role.value} cannot move reservation from {current.value} to {target.value}"
        )
    return target


def available_actions(current, role: UserRole) -> List[ReservationStatus]:
    """Statuses a surface may offer for a reservation in `current`"""
    current = ReservationStatus(current)
    return [
        target
        for (source, target), roles in TRANSITIONS.items()
        if source == current and role in roles
    ]


def is_terminal(status) -> bool:
    return ReservationStatus(status) in TERMINAL_STATUSES


def can_reschedule(status) -> bool:
    return ReservationStatus(status) in RESCHEDULABLE_STATUSES


def can_reschedule_without_warning(reservation, now: datetime, warning_hours: int = 24) -> bool:
    """
    False when the visit is closer than `warning_hours`.

    Only a hint for the client surface; nothing is blocked on it.
    """
    visit = datetime.combine(reservation.reservation_date, reservation.reservation_time)
    return visit - now >= timedelta(hours=warning_hours)
