"""AI insights schemas (read-only, produced by the external insights service)"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel


class DemandCapacityPeak(BaseModel):
    datetime: str
    weekday: str
    hour: str
    expected_guests: float
    expected_occupancy: float
    insight: Optional[str] = None


class HourlyOccupancy(BaseModel):
    hour: str
    projected_guests: float
    expected_occupancy: float


class WeekdayDemand(BaseModel):
    weekday: str
    relative_to_avg: float
    insight: Optional[str] = None


class DemandCapacity(BaseModel):
    next_peak: Optional[DemandCapacityPeak] = None
    hourly_occupancy: List[HourlyOccupancy] = []
    weekday_demand: List[WeekdayDemand] = []


class CancellationRisk(BaseModel):
    reservation_id: str
    customer: str
    scheduled_for: str
    probability: float


class UserProneToCancel(BaseModel):
    customer: str
    cancel_rate: float


class LoyalCustomersForecast(BaseModel):
    expected_next_month: float
    trend_vs_last_month: float
    insight: Optional[str] = None


class Cancellations(BaseModel):
    cancellation_risk_by_reservation: List[CancellationRisk] = []
    users_prone_to_cancel: List[UserProneToCancel] = []
    loyal_customers_forecast: Optional[LoyalCustomersForecast] = None


class BookingWindow(BaseModel):
    hour: str
    percentage: float


class TimingBehavior(BaseModel):
    average_lead_time_days: Optional[float] = None
    lead_time_trend_vs_last_month: Optional[float] = None
    popular_booking_windows: List[BookingWindow] = []


class ExpectedRevenue(BaseModel):
    date: str
    projected_revenue: float


class EconomicCancellationRisk(BaseModel):
    projected_loss: float
    message: Optional[str] = None


class Economics(BaseModel):
    expected_revenue_next_days: List[ExpectedRevenue] = []
    expected_ticket: Optional[float] = None
    economic_cancellation_risk: Optional[EconomicCancellationRisk] = None


class Segmentation(BaseModel):
    customer_segments: Dict[str, float] = {}
    city_growth: List[Dict[str, Any]] = []


class LowDemandAlert(BaseModel):
    weekday: str
    hour: str
    expected_occupancy: float


class Operations(BaseModel):
    extra_capacity_recommendations: List[str] = []
    low_demand_alerts: List[LowDemandAlert] = []


class MaxExpectedSlot(BaseModel):
    weekday: str
    hour: str


class TrendSeasonality(BaseModel):
    monthly_trend_pct: Optional[float] = None
    seasonality_signal: Optional[str] = None
    max_expected_slot: Optional[MaxExpectedSlot] = None


class Indicators(BaseModel):
    demand_capacity: Optional[DemandCapacity] = None
    cancellations: Optional[Cancellations] = None
    timing_behavior: Optional[TimingBehavior] = None
    economics: Optional[Economics] = None
    segmentation: Optional[Segmentation] = None
    operations: Optional[Operations] = None
    trend_seasonality: Optional[TrendSeasonality] = None


class RestaurantAIInsights(BaseModel):
    """Precomputed demand, cancellation and economics indicators"""
    restaurant_id: str
    restaurant_name: str
    generated_at: str
    indicators: Indicators = Indicators()
