"""Python client for the dashboard surfaces"""

from foodai.client.api import APIError, FoodAIClient
from foodai.client.changes import WebSocketChangeStream
from foodai.client.board import ReservationBoard
from foodai.client.optimistic import OptimisticList
from foodai.client.reschedule import RescheduleForm
from foodai.client.session import SessionContext, SessionState

__all__ = [
    "APIError",
    "WebSocketChangeStream",
    "FoodAIClient",
    "ReservationBoard",
    "OptimisticList",
    "RescheduleForm",
    "SessionContext",
    "SessionState",
]
