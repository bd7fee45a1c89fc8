"""Auto-post schedule — parsing and due-checking.

Pure domain logic, no framework dependencies.
"""

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _log(msg: str):
    print(msg, file=sys.stderr)


@dataclass
class CycleSchedule:
    schedule_type: str  # "daily" | "weekday" | "interval"
    hour: Optional[int] = None  # daily/weekday: 0-23
    minute: Optional[int] = None  # daily/weekday: 0-59
    interval_minutes: Optional[int] = None  # interval: minutes
    tz: str = "UTC"

    def describe(self) -> str:
        if self.schedule_type == "interval":
            if self.interval_minutes % 60 == 0:
                return f"every {self.interval_minutes // 60}h"
            return f"every {self.interval_minutes}m"
        return f"{self.schedule_type} {self.hour:02d}:{self.minute:02d} ({self.tz})"


# Schedule string patterns
_DAILY_RE = re.compile(r"^daily\s+(\d{1,2}):(\d{2})$", re.IGNORECASE)
_WEEKDAY_RE = re.compile(r"^weekday\s+(\d{1,2}):(\d{2})$", re.IGNORECASE)
_INTERVAL_H_RE = re.compile(r"^every\s+(\d+)h$", re.IGNORECASE)
_INTERVAL_M_RE = re.compile(r"^every\s+(\d+)m$", re.IGNORECASE)
# Cron shorthands: "*/5 * * * *" and "0 */2 * * *"
_CRON_M_RE = re.compile(r"^\*/(\d+)\s+\*\s+\*\s+\*\s+\*$")
_CRON_H_RE = re.compile(r"^0\s+\*/(\d+)\s+\*\s+\*\s+\*$")

_MIN_INTERVAL_MINUTES = 1


def _interval(minutes: int, source: str) -> CycleSchedule:
    if minutes < _MIN_INTERVAL_MINUTES:
        raise ValueError(f"Interval must be at least {_MIN_INTERVAL_MINUTES} minute(s): {source!r}")
    return CycleSchedule(schedule_type="interval", interval_minutes=minutes)


def parse_schedule(schedule_str: str, tz: str = "UTC") -> CycleSchedule:
    """Parse a schedule string into a CycleSchedule."""
    s = schedule_str.strip()

    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, KeyError, ValueError):
        raise ValueError(f"Invalid timezone: {tz!r}")

    for pattern, schedule_type in ((_DAILY_RE, "daily"), (_WEEKDAY_RE, "weekday")):
        m = pattern.match(s)
        if m:
            hour, minute = int(m.group(1)), int(m.group(2))
            if not (0 <= hour <= 23 and 0 <= minute <= 59):
                raise ValueError(f"Invalid time: {s}")
            return CycleSchedule(schedule_type=schedule_type, hour=hour, minute=minute, tz=tz)

    m = _INTERVAL_H_RE.match(s) or _CRON_H_RE.match(s)
    if m:
        return _interval(int(m.group(1)) * 60, s)

    m = _INTERVAL_M_RE.match(s) or _CRON_M_RE.match(s)
    if m:
        return _interval(int(m.group(1)), s)

    raise ValueError(f"Invalid schedule format: {s!r}. "
                     f"Supported: every Nm, every Nh, daily HH:MM, weekday HH:MM, */N * * * *, 0 */N * * *")


def is_due(schedule: CycleSchedule, now_utc: datetime, last_run: Optional[datetime]) -> bool:
    """Check whether a cycle should start at now_utc."""
    if schedule.schedule_type == "interval":
        if last_run is None:
            return True
        elapsed = (now_utc - last_run).total_seconds() / 60
        return elapsed >= schedule.interval_minutes

    if schedule.schedule_type in ("daily", "weekday"):
        try:
            tz = ZoneInfo(schedule.tz)
        except (ZoneInfoNotFoundError, KeyError):
            _log(f"[schedule] bad tz {schedule.tz!r}")
            return False
        now_local = now_utc.astimezone(tz)

        # weekday: skip weekends (5=Saturday, 6=Sunday)
        if schedule.schedule_type == "weekday" and now_local.weekday() >= 5:
            return False

        scheduled_time = now_local.replace(
            hour=schedule.hour, minute=schedule.minute, second=0, microsecond=0
        )
        if now_local < scheduled_time:
            return False
        if last_run is not None and last_run.astimezone(tz).date() == now_local.date():
            return False
        return True

    return False
