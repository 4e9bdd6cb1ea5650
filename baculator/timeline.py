"""BAC-over-time samples for plotting, plus labels and markers for charts.

The sampling step widens with the span of the timeline, and every drink's
start and absorption-completion instants are always sampled so local maxima
show up even on a coarse grid.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import List, Optional, Sequence

from baculator.calculations import (
    absorbed_bac,
    as_utc,
    bac_at_time,
    exposure_start,
    hours_between,
    is_absorbing,
    minutes_between,
    utc_drinks,
)
from baculator.config import DEFAULT_CONFIG, EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile
from baculator.peak import critical_points

# (max span in hours, step in minutes), checked in order.
SAMPLING_STEPS = ((6.0, 5.0), (24.0, 15.0))
COARSEST_STEP_MINUTES = 30.0


@dataclass(frozen=True)
class BACSample:
    offset_hours: float  # from timeline start
    offset_from_now_hours: float  # negative = past, positive = predicted
    bac_value: float
    clock_time: str
    at: datetime

    @property
    def is_past(self) -> bool:
        return self.offset_from_now_hours < 0

    @property
    def is_future(self) -> bool:
        return self.offset_from_now_hours > 0

    def to_dict(self) -> dict:
        return {
            "offset_hours": round(self.offset_hours, 4),
            "offset_from_now_hours": round(self.offset_from_now_hours, 4),
            "bac": self.bac_value,
            "clock_time": self.clock_time,
            "at": self.at.isoformat(),
            "is_past": self.is_past,
            "is_future": self.is_future,
        }


def sampling_interval_minutes(span_hours: float) -> float:
    for limit, step in SAMPLING_STEPS:
        if span_hours <= limit:
            return step
    return COARSEST_STEP_MINUTES


def display_zone(now: datetime, config: EngineConfig = DEFAULT_CONFIG) -> Optional[tzinfo]:
    """Zone for clock labels: the configured one, else the caller's own."""
    return config.zone or now.tzinfo


def _floor_hour(at: datetime, zone: Optional[tzinfo] = None) -> datetime:
    if zone is None or at.tzinfo is None:
        return at.replace(minute=0, second=0, microsecond=0)
    local = at.astimezone(zone).replace(minute=0, second=0, microsecond=0)
    return as_utc(local)


def timeline_start(drinks: Sequence[DrinkRecord], zone: Optional[tzinfo] = None) -> datetime:
    """Earliest drink, rounded down to the hour on the display clock."""
    earliest = min(as_utc(d.consumed_complete_at) for d in drinks)
    return _floor_hour(earliest, zone)


def clock_time(at: datetime, config: EngineConfig = DEFAULT_CONFIG, zone: Optional[tzinfo] = None) -> str:
    zone = zone or config.zone
    if zone is not None and at.tzinfo is not None:
        at = at.astimezone(zone)
    return at.strftime("%H:%M")


def build_timeline(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    now: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
    post_now_hours: Optional[float] = None,
    interval_minutes: Optional[float] = None,
    zone: Optional[tzinfo] = None,
) -> List[BACSample]:
    """Samples from the hour of the first drink to `post_now_hours` past now.

    Aware instants are stepped in UTC, so a DST change shifts the clock
    labels but never the spacing of the samples.
    """
    if not drinks:
        return []
    if post_now_hours is None:
        post_now_hours = config.timeline_post_now_hours
    if interval_minutes is not None and interval_minutes <= 0:
        raise ValueError("interval_minutes must be > 0")

    zone = zone or display_zone(now, config)
    drinks = utc_drinks(drinks)
    now = as_utc(now)
    start = timeline_start(drinks, zone)
    end = max(now + timedelta(hours=post_now_hours), start)
    span_hours = hours_between(end, start)
    step = timedelta(minutes=interval_minutes or sampling_interval_minutes(span_hours))

    times = {start, end}
    n_steps = int((end - start) / step)
    for i in range(1, n_steps + 1):
        times.add(start + i * step)
    if start <= now <= end:
        times.add(now)
    for point in critical_points(drinks, config):
        if start <= point <= end:
            times.add(point)

    return [
        BACSample(
            offset_hours=hours_between(t, start),
            offset_from_now_hours=hours_between(t, now),
            bac_value=bac_at_time(drinks, profile, t, config),
            clock_time=clock_time(t, config, zone),
            at=t,
        )
        for t in sorted(times)
    ]


def format_time_from_start(hours: float) -> str:
    total_minutes = round(hours * 60)
    h, m = divmod(total_minutes, 60)
    if h == 0:
        return f"{m}m"
    if m == 0:
        return f"{h}h"
    return f"{h}h {m}m"


def format_time_relative(hours_from_now: float) -> str:
    total_minutes = abs(round(hours_from_now * 60))
    h, m = divmod(total_minutes, 60)
    if h == 0:
        text = f"{m} min"
    elif m == 0:
        text = f"{h}h"
    else:
        text = f"{h}h {m}m"
    if total_minutes == 0:
        return "now"
    if hours_from_now < 0:
        return f"{text} ago"
    return f"in {text}"


def hourly_labels(
    start: datetime,
    end: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
    zone: Optional[tzinfo] = None,
) -> List[str]:
    """Clock labels for each whole hour from `start` through `end`."""
    zone = zone or display_zone(start, config)
    base = _floor_hour(as_utc(start), zone)
    hours = math.ceil(hours_between(end, base))
    return [clock_time(base + timedelta(hours=h), config, zone) for h in range(max(hours, 0) + 1)]


def drink_markers(drinks: Sequence[DrinkRecord], start: datetime) -> List[dict]:
    """Chart markers D1, D2, ... in drinking order."""
    ordered = sorted(utc_drinks(drinks), key=lambda d: d.consumed_complete_at)
    markers = []
    for i, drink in enumerate(ordered):
        hours = hours_between(drink.consumed_complete_at, start)
        markers.append({
            "id": drink.drink_id,
            "hour": round(hours, 4),
            "label": f"D{i + 1}",
            "standards": drink.standards,
            "time_from_start": format_time_from_start(hours),
        })
    return markers


def timeline_events(samples: Sequence[BACSample], config: EngineConfig = DEFAULT_CONFIG) -> dict:
    """Current, peak, legal-crossing and sober points read off a sample list."""
    if not samples:
        return {"current": None, "peak": None, "legal_crossing": None, "sober": None}

    def point(s: BACSample) -> dict:
        return {"hour": round(s.offset_hours, 4), "bac": s.bac_value, "clock_time": s.clock_time}

    current = min(samples, key=lambda s: abs(s.offset_from_now_hours))
    peak = max(samples, key=lambda s: s.bac_value)
    ahead = [s for s in samples if s.offset_from_now_hours > 0]
    legal = next((s for s in ahead if s.bac_value <= config.legal_target), None)
    sober = next((s for s in ahead if s.bac_value <= config.sober_target), None)
    return {
        "current": point(current),
        "peak": point(peak),
        "legal_crossing": point(legal) if legal else None,
        "sober": point(sober) if sober else None,
    }


def drink_breakdown(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    now: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> List[dict]:
    """Per-drink status rows for a drink list view."""
    if not drinks:
        return []
    now = as_utc(now)
    ordered = sorted(utc_drinks(drinks), key=lambda d: d.consumed_complete_at)
    first = ordered[0].consumed_complete_at
    start = exposure_start(ordered, profile, now, config)
    cleared = bac_at_time(ordered, profile, now, config) <= 0
    rows = []
    for i, drink in enumerate(ordered):
        minutes_ago = round(minutes_between(now, drink.consumed_complete_at))
        if drink.consumed_complete_at > now:
            status = "not_started"
        elif is_absorbing(drink, now, config):
            status = "absorbing"
        elif cleared or drink.consumed_complete_at < start:
            status = "eliminated"
        else:
            status = "eliminating"
        rows.append({
            "index": i,
            "id": drink.drink_id,
            "standards": drink.standards,
            "minutes_ago": minutes_ago,
            "minutes_from_start": round(minutes_between(drink.consumed_complete_at, first)),
            "time_relative": format_time_relative(-minutes_ago / 60.0),
            "status": status,
            "absorbed_bac": round(absorbed_bac(drink, profile, now, config), config.bac_decimals),
        })
    return rows
