"""BAC calculations using Widmark-style absorption and zero-order elimination.

Model:
- Peak per drink: BAC = [grams / (body_weight_g * r)] * 100
- r = 0.68 (male), 0.55 (female)
- Absorption: peak * (1 - e^(-k * m / window)) while 0 <= m <= window, then peak
- Elimination: 0.015 BAC percentage points per hour since exposure started,
  subtracted once from the summed absorption of all drinks

Every function takes the query instant explicitly; nothing here reads a clock.
"""

import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from baculator.config import DEFAULT_CONFIG, POLICY_EPISODIC, EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile


def as_utc(at: datetime) -> datetime:
    """Aware instants move to UTC so arithmetic and ordering follow elapsed
    time, even across a DST change. Naive instants are returned unchanged."""
    if at.tzinfo is None or at.tzinfo is timezone.utc:
        return at
    return at.astimezone(timezone.utc)


def utc_drinks(drinks: Sequence[DrinkRecord]) -> List[DrinkRecord]:
    return [
        d if as_utc(d.consumed_complete_at) is d.consumed_complete_at
        else replace(d, consumed_complete_at=as_utc(d.consumed_complete_at))
        for d in drinks
    ]


def minutes_between(later: datetime, earlier: datetime) -> float:
    return (as_utc(later) - as_utc(earlier)).total_seconds() / 60.0


def hours_between(later: datetime, earlier: datetime) -> float:
    return (as_utc(later) - as_utc(earlier)).total_seconds() / 3600.0


def widmark_peak(standards: float, profile: SubjectProfile, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Peak BAC (%) one drink would reach if fully absorbed with nothing eliminated."""
    grams = standards * config.grams_per_standard
    body_g = profile.weight_kg * 1000.0
    r = config.distribution_ratio(profile.normalized_sex)
    return grams / (body_g * r) * 100.0


def absorbed_bac(
    drink: DrinkRecord,
    profile: SubjectProfile,
    at: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> float:
    """BAC (%) contributed by one drink at `at`, before any elimination."""
    minutes = minutes_between(at, drink.consumed_complete_at)
    if minutes < 0:
        return 0.0
    peak = widmark_peak(drink.standards, profile, config)
    window = config.absorption_window_minutes
    if minutes <= window:
        progress = minutes / window
        return peak * (1.0 - math.exp(-config.absorption_curve_sharpness * progress))
    return peak


def is_absorbing(drink: DrinkRecord, at: datetime, config: EngineConfig = DEFAULT_CONFIG) -> bool:
    minutes = minutes_between(at, drink.consumed_complete_at)
    return 0 <= minutes <= config.absorption_window_minutes


def _eliminated_since(start: Optional[datetime], at: datetime, config: EngineConfig) -> float:
    if start is None:
        return 0.0
    return config.elimination_rate_per_hour * max(0.0, hours_between(at, start))


def _absorbed_since(
    drinks: Sequence[DrinkRecord],
    start: datetime,
    profile: SubjectProfile,
    at: datetime,
    config: EngineConfig,
) -> float:
    return sum(
        absorbed_bac(d, profile, at, config)
        for d in drinks
        if d.consumed_complete_at >= start
    )


def exposure_start(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    at: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[datetime]:
    """Instant elimination is counted from when evaluating BAC at `at`.

    Continuous policy: the earliest drink, always. Episodic policy: the latest
    drink finished by `at` that was taken on a clear bloodstream (nothing
    left after elimination and nothing still absorbing).
    """
    if not drinks:
        return None
    at = as_utc(at)
    ordered = sorted(utc_drinks(drinks), key=lambda d: d.consumed_complete_at)
    start = ordered[0].consumed_complete_at
    if config.elimination_policy != POLICY_EPISODIC:
        return start

    for drink in ordered[1:]:
        t = drink.consumed_complete_at
        if t > at:
            break
        if t == start:
            continue
        episode = [d for d in ordered if start <= d.consumed_complete_at < t]
        if any(is_absorbing(d, t, config) for d in episode):
            continue
        remaining = _absorbed_since(episode, start, profile, t, config) - _eliminated_since(start, t, config)
        if remaining <= 0:
            start = t
    return start


def eliminated_bac(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    at: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> float:
    """BAC (%) removed between the start of exposure and `at` (>= 0)."""
    return _eliminated_since(exposure_start(drinks, profile, at, config), at, config)


def bac_at_time(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    at: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> float:
    """BAC (%) at `at`: summed absorption minus elimination, clamped at 0.

    Safe to call for any instant in any order.
    """
    if not drinks:
        return 0.0
    drinks = utc_drinks(drinks)
    at = as_utc(at)
    start = exposure_start(drinks, profile, at, config)
    absorbed = _absorbed_since(drinks, start, profile, at, config)
    eliminated = _eliminated_since(start, at, config)
    return round(max(0.0, absorbed - eliminated), config.bac_decimals)


def is_rising(drinks: Sequence[DrinkRecord], at: datetime, config: EngineConfig = DEFAULT_CONFIG) -> bool:
    """True while at least one drink is inside its absorption window."""
    return any(is_absorbing(d, at, config) for d in drinks)


def drink_status(drink: DrinkRecord, at: datetime, config: EngineConfig = DEFAULT_CONFIG) -> dict:
    """Absorption phase of one drink and minutes until it is fully absorbed."""
    minutes = minutes_between(at, drink.consumed_complete_at)
    window = config.absorption_window_minutes
    if minutes < 0:
        return {"status": "not_started", "minutes_to_peak": abs(minutes) + window}
    if minutes <= window:
        return {"status": "absorbing", "minutes_to_peak": window - minutes}
    return {"status": "absorbed", "minutes_to_peak": 0.0}
