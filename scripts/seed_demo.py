#!/usr/bin/env python3
"""
Seed script to create demo users, restaurant, menu and reservations
"""

import asyncio
from datetime import date, time, timedelta

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def seed_demo_data():
    """Seed demo data for development"""
    from foodai.database import SessionLocal, engine, Base
    from foodai.models.dish import Dish
    from foodai.models.reservation import Reservation, ReservationStatus
    from foodai.models.restaurant import Restaurant, RestaurantStatus
    from foodai.models.user import User, UserRole

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo restaurant already exists
        from sqlalchemy import select
        result = await db.execute(
            select(Restaurant).where(Restaurant.name == "La Casa de Sofía")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo users...")

        admin = User(
            email="admin@foodai.app",
            hashed_password=pwd_context.hash("admin123"),
            first_name="Admin",
            last_name="FoodAI",
            role=UserRole.ADMIN,
        )
        owner = User(
            email="sofia@lacasadesofia.com",
            hashed_password=pwd_context.hash("sofia123"),
            first_name="Sofía",
            last_name="Ramírez",
            role=UserRole.RESTAURANT,
        )
        client = User(
            email="diego@example.com",
            hashed_password=pwd_context.hash("diego123"),
            first_name="Diego",
            last_name="Fernández",
            role=UserRole.CLIENT,
        )
        db.add_all([admin, owner, client])
        await db.flush()

        restaurant = Restaurant(
            owner_id=owner.id,
            name="La Casa de Sofía",
            email="reservas@lacasadesofia.com",
            phone="+34 910 000 000",
            description="Cocina de mercado con producto de temporada",
            address="Calle Mayor 12",
            city="Madrid",
            country="España",
            cuisine_type="Mediterránea",
            open_time=time(12, 0),
            close_time=time(23, 30),
            status=RestaurantStatus.ACTIVE,
            rating=4.6,
        )
        db.add(restaurant)
        await db.flush()

        print(f"Created restaurant: {restaurant.name} (ID: {restaurant.id})")

        # Create menu
        dishes = [
            {"name": "Croquetas de jamón", "category": "Entradas", "price_cents": 850},
            {"name": "Ensalada de tomate y burrata", "category": "Entradas", "price_cents": 1200},
            {"name": "Arroz meloso de setas", "category": "Platos fuertes", "price_cents": 1800},
            {"name": "Lubina a la sal", "category": "Platos fuertes", "price_cents": 2400},
            {"name": "Tarta de queso", "category": "Postres", "price_cents": 700},
        ]
        menu = []
        for dish_data in dishes:
            dish = Dish(restaurant_id=restaurant.id, **dish_data)
            db.add(dish)
            menu.append(dish)
        await db.flush()

        # A few reservations across the lifecycle
        today = date.today()
        db.add_all([
            Reservation(
                user_id=client.id,
                restaurant_id=restaurant.id,
                reservation_date=today + timedelta(days=2),
                reservation_time=time(20, 30),
                guests_count=4,
                status=ReservationStatus.PENDING.value,
                special_request="Mesa junto a la ventana",
                selected_dishes=[{"dish_id": str(menu[2].id), "quantity": 2}],
            ),
            Reservation(
                user_id=client.id,
                restaurant_id=restaurant.id,
                reservation_date=today + timedelta(days=5),
                reservation_time=time(14, 0),
                guests_count=2,
                status=ReservationStatus.CONFIRMED.value,
            ),
            Reservation(
                user_id=client.id,
                restaurant_id=restaurant.id,
                reservation_date=today - timedelta(days=7),
                reservation_time=time(21, 0),
                guests_count=3,
                status=ReservationStatus.COMPLETED.value,
            ),
        ])

        await db.commit()

        print(f"""
Demo data created successfully!

Restaurant: {restaurant.name}
  ID: {restaurant.id}

Users:
  Admin:
    Email: admin@foodai.app
    Password: admin123

  Restaurant owner:
    Email: sofia@lacasadesofia.com
    Password: sofia123

  Client:
    Email: diego@example.com
    Password: diego123

Menu: {len(menu)} dishes created
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
