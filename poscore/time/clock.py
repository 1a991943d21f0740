"""
POS Core Time — Injected Clock
==============================
Ledger timestamps, expiry windows and report dates all come from an
injected Clock. The process default is the system clock; tests install
a FixedClock (or a TickingClock when every append needs its own
timestamp) so ordering and ageing are deterministic.

All datetimes handed out are timezone-aware UTC.
"""

from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    def now_utc(self) -> datetime:
        ...  # pragma: no cover


def _require_aware(value: datetime, owner: str) -> datetime:
    if value.tzinfo is None:
        raise ValueError(f"{owner} requires timezone-aware datetime.")
    return value.astimezone(timezone.utc)


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Wall-clock UTC time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Stands still until moved.

        clock = FixedClock(datetime(2025, 6, 1, tzinfo=timezone.utc))
        clock.advance(90)            # seconds
        clock.advance(days=31)       # any timedelta keyword
        clock.set(other_datetime)
    """

    def __init__(self, fixed_dt: datetime) -> None:
        self._now = _require_aware(fixed_dt, "FixedClock")

    def now_utc(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = _require_aware(value, "FixedClock")

    def advance(self, seconds: float = 0, **delta) -> None:
        self._now = self._now + timedelta(seconds=seconds, **delta)


class TickingClock:
    """
    Moves forward by a fixed step on every read.

    Thread-safe: concurrent readers each get a distinct instant.
    """

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        if step <= timedelta(0):
            raise ValueError("TickingClock step must be positive.")
        self._next = _require_aware(start, "TickingClock")
        self._step = step
        self._lock = threading.Lock()

    def now_utc(self) -> datetime:
        with self._lock:
            current = self._next
            self._next = current + self._step
        return current


# ══════════════════════════════════════════════════════════════
# PROCESS DEFAULT
# ══════════════════════════════════════════════════════════════

_default_clock: Clock = SystemClock()


def set_default_clock(clock: Clock) -> None:
    global _default_clock
    _default_clock = clock


def get_default_clock() -> Clock:
    return _default_clock


def now_utc(clock: Optional[Clock] = None) -> datetime:
    return (clock or _default_clock).now_utc()


def today_utc(clock: Optional[Clock] = None) -> date:
    """Calendar date in UTC, used for expiry comparisons."""
    return now_utc(clock).date()
