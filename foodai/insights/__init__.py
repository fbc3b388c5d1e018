"""AI insights service access"""

from foodai.insights.client import AIInsightsClient, get_insights_client

__all__ = ["AIInsightsClient", "get_insights_client"]
