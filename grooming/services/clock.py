"""
clock.py
--------
Time sources for the appointment engine.

Everything that compares an appointment against "now" takes the instant (or a
clock) as an argument. system_clock is only read at the edges: views, the
reconciler and management commands.
"""

from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current aware UTC instant."""
    return timezone.now()


def fixed_clock(instant: datetime) -> Clock:
    """Clock that always returns `instant` (tests, replays)."""
    return lambda: instant


def shop_timezone() -> ZoneInfo:
    """Zone the shop's appointment dates and times are written in."""
    return ZoneInfo(getattr(settings, "SHOP_TIME_ZONE", settings.TIME_ZONE))
