"""Peak BAC forecast over the next couple of hours."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Sequence

from baculator.calculations import as_utc, bac_at_time, hours_between, utc_drinks
from baculator.config import DEFAULT_CONFIG, EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile

# A drink's absorbed term steps up to its full Widmark peak just after the
# absorption window closes, so that instant is checked as well.
ABSORPTION_SETTLE = timedelta(seconds=1)


@dataclass(frozen=True)
class Peak:
    peak_bac: float
    time_to_peak_hours: float  # 0 when the current BAC is the peak
    at: datetime


def critical_points(drinks: Sequence[DrinkRecord], config: EngineConfig = DEFAULT_CONFIG) -> List[datetime]:
    """Instants where a drink's absorbed term changes shape."""
    window = timedelta(minutes=config.absorption_window_minutes)
    points = []
    for drink in utc_drinks(drinks):
        done = drink.consumed_complete_at + window
        points.extend((drink.consumed_complete_at, done, done + ABSORPTION_SETTLE))
    return points


def peak_candidates(
    drinks: Sequence[DrinkRecord],
    now: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> List[datetime]:
    now = as_utc(now)
    end = now + timedelta(hours=config.peak_lookahead_hours)
    step = timedelta(minutes=config.peak_grid_minutes)
    candidates = {now, end}
    n_steps = int((end - now) / step)
    for i in range(1, n_steps + 1):
        candidates.add(now + i * step)
    for point in critical_points(drinks, config):
        if now <= point <= end:
            candidates.add(point)
    return sorted(candidates)


def find_peak(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    now: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Peak:
    """Highest BAC between `now` and the lookahead horizon, earliest on ties.

    Drinks planned to finish after the lookahead only count through their
    effect on the window; the threshold search looks further on its own.
    """
    if not drinks:
        return Peak(peak_bac=0.0, time_to_peak_hours=0.0, at=now)

    drinks = utc_drinks(drinks)
    now = as_utc(now)
    best_at = now
    best = bac_at_time(drinks, profile, now, config)
    for t in peak_candidates(drinks, now, config):
        bac = bac_at_time(drinks, profile, t, config)
        if bac > best:
            best, best_at = bac, t
    return Peak(peak_bac=best, time_to_peak_hours=hours_between(best_at, now), at=best_at)
