"""Signed-in session shared by the dashboard surfaces"""

import enum
from typing import Any, Dict, Optional

import structlog

from foodai.client.api import APIError, FoodAIClient
from foodai.models.user import UserRole

logger = structlog.get_logger()


class SessionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class SessionNotReady(Exception):
    """A surface asked for the profile before the session was ready"""


class SessionContext:
    """
    Holds the access token and profile of the signed-in user.

    Created once and passed explicitly to each surface. Moves from
    uninitialized to loading, then to ready or error.
    """

    def __init__(self, client: FoodAIClient):
        self.client = client
        self.state = SessionState.UNINITIALIZED
        self.profile: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self.client.token

    @property
    def is_ready(self) -> bool:
        return self.state == SessionState.READY

    @property
    def role(self) -> UserRole:
        return UserRole(self.require_profile()["role"])

    @property
    def user_id(self) -> str:
        return self.require_profile()["id"]

    def require_profile(self) -> Dict[str, Any]:
        if self.state != SessionState.READY or self.profile is None:
            raise SessionNotReady(f"Session is {self.state.value}")
        return self.profile

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        self.state = SessionState.LOADING
        try:
            await self.client.login(email, password)
        except APIError as e:
            self._fail(e)
            raise
        return await self.load()

    async def restore(self, token: str) -> Dict[str, Any]:
        """Resume a session from a stored access token"""
        self.client.token = token
        self.state = SessionState.LOADING
        return await self.load()

    async def load(self) -> Dict[str, Any]:
        try:
            self.profile = await self.client.me()
        except APIError as e:
            self._fail(e)
            raise
        self.state = SessionState.READY
        self.error = None
        logger.info("Session ready", user_id=self.profile["id"], role=self.profile["role"])
        return self.profile

    def sign_out(self) -> None:
        self.client.token = None
        self.profile = None
        self.error = None
        self.state = SessionState.UNINITIALIZED

    def _fail(self, error: APIError) -> None:
        self.profile = None
        self.error = error.detail
        self.state = SessionState.ERROR
        logger.warning("Session failed", status_code=error.status_code, detail=error.detail)
