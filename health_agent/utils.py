"""
Utility functions for Health Agent.
"""

from datetime import datetime

from health_agent.config import TIMEZONE


def now_local() -> datetime:
    """Get current time in the configured timezone."""
    return datetime.now(TIMEZONE)


def today_str() -> str:
    """Calendar date label (YYYY-MM-DD) used for archived daily stats."""
    return now_local().strftime("%Y-%m-%d")
