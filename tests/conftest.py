"""Test configuration and fixtures"""

import json
from datetime import date, time, timedelta
from typing import List, Optional
from uuid import uuid4

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from foodai.main import app
from foodai.config import Settings, get_settings
from foodai.database import Base, get_db
from foodai.api.auth import create_access_token, get_password_hash
from foodai.api.deps import get_mail_transport
from foodai.models.dish import Dish
from foodai.models.reservation import Reservation, ReservationStatus
from foodai.models.restaurant import Restaurant, RestaurantStatus
from foodai.models.user import User, UserRole


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FUTURE_DATE = date.today() + timedelta(days=3)
DINNER = time(20, 0)


class MailRecorder:
    """Stands in for the mail API behind httpx.MockTransport"""

    def __init__(self):
        self.sent: List[dict] = []
        self.calls = 0
        self.fail_with: Optional[int] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"detail": "mail backend down"})
        self.sent.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "sent"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def to(self, address: str) -> List[dict]:
        return [message for message in self.sent if message["to"] == address]


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def test_settings():
    """Settings without retry sleeps"""
    return Settings(
        mail_api_base_url="http://mail.test/api/v1",
        mail_retry_attempts=2,
        mail_retry_backoff_seconds=0,
        backend_retry_attempts=2,
        backend_retry_backoff_seconds=0,
        ai_insights_base_url="http://insights.test/api/v1",
    )


@pytest.fixture
def mail():
    return MailRecorder()


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


async def _create_user(db, email: str, role: UserRole, first_name: str, last_name: str = "") -> User:
    user = User(
        id=uuid4(),
        email=email,
        hashed_password=get_password_hash("testpass123"),
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def client_user(test_db):
    """A diner"""
    return await _create_user(test_db, "diner@example.com", UserRole.CLIENT, "Ana", "García")


@pytest.fixture
async def other_client_user(test_db):
    return await _create_user(test_db, "other@example.com", UserRole.CLIENT, "Luis")


@pytest.fixture
async def owner_user(test_db):
    """Owner of the test restaurant"""
    return await _create_user(test_db, "owner@example.com", UserRole.RESTAURANT, "Sofía", "Ramírez")


@pytest.fixture
async def other_owner_user(test_db):
    return await _create_user(test_db, "rival@example.com", UserRole.RESTAURANT, "Marco")


@pytest.fixture
async def admin_user(test_db):
    """Platform administrator"""
    return await _create_user(test_db, "admin@example.com", UserRole.ADMIN, "Admin")


@pytest.fixture
async def restaurant(test_db, owner_user):
    """An active restaurant owned by owner_user"""
    restaurant = Restaurant(
        id=uuid4(),
        owner_id=owner_user.id,
        name="La Casa de Sofía",
        email="reservas@casasofia.test",
        city="Madrid",
        cuisine_type="Mediterránea",
        status=RestaurantStatus.ACTIVE,
    )
    test_db.add(restaurant)
    await test_db.commit()
    return restaurant


@pytest.fixture
async def dishes(test_db, restaurant):
    """Menu of the test restaurant"""
    items = [
        Dish(restaurant_id=restaurant.id, name="Croquetas", category="Entradas", price_cents=850),
        Dish(restaurant_id=restaurant.id, name="Arroz meloso", category="Platos fuertes", price_cents=1800),
        Dish(restaurant_id=restaurant.id, name="Flan", category="Postres", price_cents=600, is_available=False),
    ]
    for item in items:
        test_db.add(item)
    await test_db.commit()
    return items


@pytest.fixture
def make_reservation(test_db, client_user, restaurant):
    """Insert a reservation row directly"""
    async def _make(**overrides) -> Reservation:
        fields = dict(
            id=uuid4(),
            user_id=client_user.id,
            restaurant_id=restaurant.id,
            reservation_date=FUTURE_DATE,
            reservation_time=DINNER,
            guests_count=2,
            status=ReservationStatus.PENDING.value,
        )
        fields.update(overrides)
        reservation = Reservation(**fields)
        test_db.add(reservation)
        await test_db.commit()
        return reservation

    return _make


@pytest.fixture
async def client(test_db, test_settings, mail):
    """Create test client with overridden database, settings and mail API"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_mail_transport] = lambda: mail.transport

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def authenticated_client(client, client_user):
    """Client signed in as the diner"""
    client.headers.update(auth_headers(client_user))
    return client


@pytest.fixture
async def owner_client(client, owner_user):
    """Client signed in as the restaurant owner"""
    client.headers.update(auth_headers(owner_user))
    return client


@pytest.fixture
async def admin_client(client, admin_user):
    """Create admin authenticated test client"""
    client.headers.update(auth_headers(admin_user))
    return client
