"""Restaurant, menu and insights API endpoints"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from foodai.database import get_db
from foodai.errors import NotFoundError, PermissionDeniedError
from foodai.insights.client import AIInsightsClient, get_insights_client
from foodai.models.dish import Dish
from foodai.models.restaurant import Restaurant, RestaurantStatus
from foodai.models.user import User, UserRole
from foodai.schemas.insights import RestaurantAIInsights
from foodai.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantStatusUpdate,
    RestaurantResponse,
    DishCreate,
    DishUpdate,
    DishResponse,
)
from foodai.api.auth import get_current_active_user, require_role

logger = structlog.get_logger()

router = APIRouter()


async def get_restaurant_or_404(db: AsyncSession, restaurant_id: UUID) -> Restaurant:
    restaurant = await db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFoundError(f"Restaurant {restaurant_id} not found")
    return restaurant


async def ensure_restaurant_access(db: AsyncSession, restaurant_id: UUID, user: User) -> Restaurant:
    """Owner of the restaurant or an admin"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    if user.role == UserRole.ADMIN:
        return restaurant
    if user.role == UserRole.RESTAURANT and restaurant.owner_id == user.id:
        return restaurant
    raise PermissionDeniedError("Access denied to this restaurant")


@router.get("", response_model=List[RestaurantResponse])
async def list_restaurants(
    search: Optional[str] = None,
    cuisine_type: Optional[str] = None,
    city: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Public listing of active restaurants"""
    query = select(Restaurant).where(Restaurant.status == RestaurantStatus.ACTIVE)

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Restaurant.name.ilike(pattern),
                Restaurant.cuisine_type.ilike(pattern),
                Restaurant.city.ilike(pattern),
            )
        )
    if cuisine_type:
        query = query.where(Restaurant.cuisine_type.ilike(cuisine_type))
    if city:
        query = query.where(Restaurant.city.ilike(city))

    query = query.order_by(Restaurant.name).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/mine", response_model=List[RestaurantResponse])
async def list_my_restaurants(
    current_user: User = Depends(require_role(UserRole.RESTAURANT)),
    db: AsyncSession = Depends(get_db),
):
    """Restaurants owned by the current user, any status"""
    result = await db.execute(
        select(Restaurant)
        .where(Restaurant.owner_id == current_user.id)
        .order_by(Restaurant.created_at)
    )
    return result.scalars().all()


@router.get("/all", response_model=List[RestaurantResponse])
async def list_all_restaurants(
    status_filter: Optional[RestaurantStatus] = Query(None, alias="status"),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Every restaurant, for moderation (admin only)"""
    query = select(Restaurant)
    if status_filter:
        query = query.where(Restaurant.status == status_filter)
    result = await db.execute(query.order_by(Restaurant.created_at.desc()))
    return result.scalars().all()


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    restaurant_data: RestaurantCreate,
    current_user: User = Depends(require_role(UserRole.RESTAURANT)),
    db: AsyncSession = Depends(get_db),
):
    """Register a restaurant; it stays pending until an admin activates it"""
    restaurant = Restaurant(
        **restaurant_data.model_dump(),
        owner_id=current_user.id,
        status=RestaurantStatus.PENDING,
    )
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)

    logger.info("Restaurant created", restaurant_id=str(restaurant.id), owner_id=str(current_user.id))
    return restaurant


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(
    restaurant_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get restaurant details"""
    return await get_restaurant_or_404(db, restaurant_id)


@router.patch("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: UUID,
    restaurant_data: RestaurantUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Update restaurant profile (owner or admin)"""
    restaurant = await ensure_restaurant_access(db, restaurant_id, current_user)

    update_data = restaurant_data.model_dump(exclude_unset=True)
    if update_data.get("slot_capacity") is not None and update_data["slot_capacity"] < 1:
        raise HTTPException(status_code=422, detail="Slot capacity must be at least 1")

    for field, value in update_data.items():
        setattr(restaurant, field, value)

    await db.commit()
    await db.refresh(restaurant)
    return restaurant


@router.patch("/{restaurant_id}/status", response_model=RestaurantResponse)
async def update_restaurant_status(
    restaurant_id: UUID,
    status_data: RestaurantStatusUpdate,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Activate, suspend or park a restaurant (admin only)"""
    restaurant = await get_restaurant_or_404(db, restaurant_id)
    restaurant.status = status_data.status
    await db.commit()
    await db.refresh(restaurant)

    logger.info("Restaurant status changed", restaurant_id=str(restaurant_id), status=status_data.status.value)
    return restaurant


@router.get("/{restaurant_id}/ai-insights", response_model=RestaurantAIInsights)
async def get_ai_insights(
    restaurant_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    insights: AIInsightsClient = Depends(get_insights_client),
):
    """Precomputed AI indicators for the owner's dashboard"""
    await ensure_restaurant_access(db, restaurant_id, current_user)
    return await insights.get_restaurant_insights(restaurant_id)


# ----------------------------------------------------------------------
# Menu
# ----------------------------------------------------------------------

@router.get("/{restaurant_id}/dishes", response_model=List[DishResponse])
async def list_dishes(
    restaurant_id: UUID,
    category: Optional[str] = None,
    include_unavailable: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """Menu of a restaurant; unavailable dishes are hidden unless asked for"""
    await get_restaurant_or_404(db, restaurant_id)

    query = select(Dish).where(Dish.restaurant_id == restaurant_id)
    if category:
        query = query.where(Dish.category == category)
    if not include_unavailable:
        query = query.where(Dish.is_available == True)

    result = await db.execute(query.order_by(Dish.category, Dish.name))
    return result.scalars().all()


@router.post("/{restaurant_id}/dishes", response_model=DishResponse, status_code=201)
async def create_dish(
    restaurant_id: UUID,
    dish_data: DishCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a dish to the menu"""
    await ensure_restaurant_access(db, restaurant_id, current_user)
    if dish_data.price_cents < 0:
        raise HTTPException(status_code=422, detail="Price cannot be negative")

    dish = Dish(**dish_data.model_dump(), restaurant_id=restaurant_id)
    db.add(dish)
    await db.commit()
    await db.refresh(dish)
    return dish


async def _get_dish(db: AsyncSession, restaurant_id: UUID, dish_id: UUID) -> Dish:
    result = await db.execute(
        select(Dish).where(Dish.id == dish_id, Dish.restaurant_id == restaurant_id)
    )
    dish = result.scalar_one_or_none()
    if dish is None:
        raise NotFoundError(f"Dish {dish_id} not found")
    return dish


@router.patch("/{restaurant_id}/dishes/{dish_id}", response_model=DishResponse)
async def update_dish(
    restaurant_id: UUID,
    dish_id: UUID,
    dish_data: DishUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a dish"""
    await ensure_restaurant_access(db, restaurant_id, current_user)
    dish = await _get_dish(db, restaurant_id, dish_id)

    for field, value in dish_data.model_dump(exclude_unset=True).items():
        setattr(dish, field, value)
    dish.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(dish)
    return dish


@router.delete("/{restaurant_id}/dishes/{dish_id}", status_code=204)
async def delete_dish(
    restaurant_id: UUID,
    dish_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove a dish from the menu"""
    await ensure_restaurant_access(db, restaurant_id, current_user)
    dish = await _get_dish(db, restaurant_id, dish_id)
    await db.delete(dish)
    await db.commit()
