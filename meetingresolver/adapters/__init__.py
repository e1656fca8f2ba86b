"""
Adapters layer - Calendar sources (Microsoft Graph and mock data).
"""

from .graph_calendar import GraphCalendarSource
from .mock_calendar import MockCalendarSource

__all__ = ["GraphCalendarSource", "MockCalendarSource"]
