"""Time until BAC falls to a target and stays there.

The curve is only guaranteed non-increasing once every drink has finished
absorbing. Before that point the search walks minute by minute; after it,
bisection is enough.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from baculator.calculations import as_utc, bac_at_time, is_rising, minutes_between, utc_drinks
from baculator.config import DEFAULT_CONFIG, EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile
from baculator.peak import Peak, find_peak

logger = logging.getLogger(__name__)

# Returned when the target is not reached inside the search horizon.
HORIZON_EXCEEDED = -1.0


def display_hours(hours: float, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Map the horizon sentinel to the horizon itself for display."""
    if hours < 0:
        return config.search_horizon_hours
    return hours


def monotone_from_minutes(
    drinks: Sequence[DrinkRecord],
    now: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> float:
    """Minutes from `now` after which no drink is absorbing any more."""
    window = config.absorption_window_minutes
    latest = max(minutes_between(d.consumed_complete_at, now) + window for d in drinks)
    if latest < 0:
        return 0.0
    return math.floor(latest) + 1.0


def _first_minute_above(
    bac: Callable[[float], float], target: float, start: float, until: float
) -> Optional[float]:
    m = math.floor(start) + 1
    while m <= until:
        if bac(m) > target:
            return float(m)
        m += 1
    return None


def _last_minute_above(bac: Callable[[float], float], target: float, lo: float, hi: float) -> float:
    last = lo
    m = math.floor(lo) + 1
    while m <= hi:
        if bac(m) > target:
            last = float(m)
        m += 1
    return last


def find_time_to_target(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    now: datetime,
    target: float,
    config: EngineConfig = DEFAULT_CONFIG,
    peak: Optional[Peak] = None,
) -> float:
    """Hours from `now` until BAC is at or below `target` for good.

    Returns 0 when already there and not about to rise above it, and
    HORIZON_EXCEEDED when the crossing lies beyond the search horizon.
    A drink that is still absorbing counts as "about to rise", and then
    drinks planned past the peak lookahead are scanned as well.
    """
    if not drinks:
        return 0.0
    drinks = utc_drinks(drinks)
    now = as_utc(now)

    def bac(minutes: float) -> float:
        return bac_at_time(drinks, profile, now + timedelta(minutes=minutes), config)

    horizon = config.search_horizon_hours * 60.0
    settle = monotone_from_minutes(drinks, now, config)
    lo = 0.0
    if bac(0.0) <= target:
        if not is_rising(drinks, now, config):
            return 0.0
        if peak is None:
            peak = find_peak(drinks, profile, now, config)
        if peak.peak_bac > target:
            # Below target now but headed above it: answer with the later descent.
            peak_minutes = peak.time_to_peak_hours * 60.0
            first = _first_minute_above(bac, target, 0.0, peak_minutes)
            lo = peak_minutes if first is None else first
        else:
            lookahead = config.peak_lookahead_hours * 60.0
            first = _first_minute_above(bac, target, lookahead, min(settle, horizon))
            if first is None:
                return 0.0
            lo = first

    if settle > lo:
        edge = min(settle, horizon)
        if bac(edge) <= target:
            last = _last_minute_above(bac, target, lo, edge)
            return min(last + 1.0, edge) / 60.0
        if edge >= horizon:
            logger.debug("target %.4f not reached within %.0fh", target, config.search_horizon_hours)
            return HORIZON_EXCEEDED
        lo = edge

    hi = horizon
    if bac(hi) > target:
        logger.debug("target %.4f not reached within %.0fh", target, config.search_horizon_hours)
        return HORIZON_EXCEEDED
    while hi - lo > config.threshold_tolerance_minutes:
        mid = (lo + hi) / 2.0
        if bac(mid) > target:
            lo = mid
        else:
            hi = mid
    return hi / 60.0
