"""
POS Core Time — Public API
==========================
Injected clock. Stores never read wall-clock time directly.
"""

from poscore.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    TickingClock,
    get_default_clock,
    now_utc,
    set_default_clock,
    today_utc,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "TickingClock",
    "get_default_clock",
    "now_utc",
    "set_default_clock",
    "today_utc",
]
