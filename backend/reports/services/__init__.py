"""
Reports services package.

- OrderAnalyticsService: order dashboard rollups (summary, status histogram, trends, activity)
"""

from .order_analytics_service import OrderAnalyticsService

__all__ = ['OrderAnalyticsService']
