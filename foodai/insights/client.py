"""Client for the external AI insights service"""

from typing import Optional
from uuid import UUID

import httpx
from pydantic import ValidationError as SchemaError
import structlog

from foodai.config import Settings, settings as default_settings
from foodai.errors import InsightsUnavailableError
from foodai.schemas.insights import RestaurantAIInsights

logger = structlog.get_logger()


class AIInsightsClient:
    """Read-only access to precomputed restaurant indicators"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self.base_url = self.settings.ai_insights_base_url.rstrip("/")
        self.transport = transport

    async def get_restaurant_insights(self, restaurant_id: UUID) -> RestaurantAIInsights:
        url = f"{self.base_url}/restaurants/{restaurant_id}/ai-insights"

        logger.debug("AI insights request", restaurant_id=str(restaurant_id), url=url)

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.ai_insights_timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.get(url, headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "AI insights request failed",
                restaurant_id=str(restaurant_id),
                status_code=e.response.status_code,
            )
            raise InsightsUnavailableError(
                f"AI insights service returned {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("AI insights request failed", restaurant_id=str(restaurant_id), error=str(e))
            raise InsightsUnavailableError("AI insights service unreachable") from e

        try:
            return RestaurantAIInsights.model_validate(data)
        except SchemaError as e:
            logger.error("AI insights payload invalid", restaurant_id=str(restaurant_id), error=str(e))
            raise InsightsUnavailableError("AI insights payload could not be parsed") from e


def get_insights_client() -> AIInsightsClient:
    """FastAPI dependency; overridden in tests"""
    return AIInsightsClient()
