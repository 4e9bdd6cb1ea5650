"""Single entry point: validate inputs, then compose the BAC answers.

evaluate() is pure. It holds no state between calls and never reads the
clock; callers pass `now` and re-run it whenever the log or the time moves.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

from baculator.calculations import as_utc, bac_at_time, hours_between, is_rising
from baculator.config import DEFAULT_CONFIG, EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile
from baculator.errors import InvalidDrink, InvalidProfile
from baculator.peak import find_peak
from baculator.threshold import HORIZON_EXCEEDED, display_hours, find_time_to_target
from baculator.timeline import BACSample, build_timeline, display_zone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BACResult:
    current_bac: float
    time_to_sober_hours: float
    time_to_legal_hours: float
    peak_bac: float
    time_to_peak_hours: float
    is_rising: bool
    timeline: Tuple[BACSample, ...] = field(default_factory=tuple)
    sober_capped: bool = False  # True when the sober time hit the horizon ceiling
    legal_capped: bool = False
    drink_count: int = 0
    total_standards: float = 0.0
    drinking_duration_hours: float = 0.0

    def to_dict(self) -> dict:
        return {
            "current_bac": self.current_bac,
            "time_to_sober_hours": round(self.time_to_sober_hours, 4),
            "time_to_legal_hours": round(self.time_to_legal_hours, 4),
            "peak_bac": self.peak_bac,
            "time_to_peak_hours": round(self.time_to_peak_hours, 4),
            "is_rising": self.is_rising,
            "sober_capped": self.sober_capped,
            "legal_capped": self.legal_capped,
            "drink_count": self.drink_count,
            "total_standards": round(self.total_standards, 2),
            "drinking_duration_hours": round(self.drinking_duration_hours, 4),
            "timeline": [s.to_dict() for s in self.timeline],
        }


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_profile(profile: SubjectProfile) -> SubjectProfile:
    """Return the profile with its sex normalised, or raise InvalidProfile."""
    if not isinstance(profile, SubjectProfile):
        raise InvalidProfile("profile must be a SubjectProfile")
    if not _is_number(profile.weight_kg) or profile.weight_kg <= 0:
        raise InvalidProfile("weight_kg must be a positive number")
    sex = profile.normalized_sex
    if sex is None:
        raise InvalidProfile(f"unrecognised sex {profile.sex!r}; expected male or female")
    return SubjectProfile(weight_kg=float(profile.weight_kg), sex=sex)


def validate_drinks(drinks: Iterable[DrinkRecord], now: datetime) -> Tuple[DrinkRecord, ...]:
    """All-or-nothing check of the drink list against `now`.

    Aware timestamps come back in UTC so elapsed time is exact across DST.
    """
    if not isinstance(now, datetime):
        raise InvalidDrink("now must be a datetime")
    aware = now.tzinfo is not None
    checked = tuple(drinks or ())
    for i, drink in enumerate(checked):
        if not isinstance(drink, DrinkRecord):
            raise InvalidDrink(f"drink {i} is not a DrinkRecord")
        if not _is_number(drink.standards) or drink.standards <= 0:
            raise InvalidDrink(f"drink {i}: standards must be a positive number")
        if not isinstance(drink.consumed_complete_at, datetime):
            raise InvalidDrink(f"drink {i}: consumed_complete_at must be a datetime")
        if (drink.consumed_complete_at.tzinfo is not None) != aware:
            raise InvalidDrink(f"drink {i}: timestamp and now must both be naive or both timezone-aware")
    return tuple(replace(d, consumed_complete_at=as_utc(d.consumed_complete_at)) for d in checked)


def validate_inputs(
    drinks: Iterable[DrinkRecord],
    profile: SubjectProfile,
    now: datetime,
) -> Tuple[Tuple[DrinkRecord, ...], SubjectProfile, datetime]:
    return validate_drinks(drinks, now), validate_profile(profile), as_utc(now)


def empty_result() -> BACResult:
    return BACResult(
        current_bac=0.0,
        time_to_sober_hours=0.0,
        time_to_legal_hours=0.0,
        peak_bac=0.0,
        time_to_peak_hours=0.0,
        is_rising=False,
    )


def evaluate(
    drinks: Sequence[DrinkRecord],
    profile: SubjectProfile,
    now: datetime,
    config: Optional[EngineConfig] = None,
    include_timeline: bool = True,
) -> BACResult:
    """Current BAC, peak forecast, sober/legal times and the plotted curve.

    Raises InvalidProfile or InvalidDrink for unusable input; an empty drink
    list is valid and gives an all-zero result.
    """
    config = config or DEFAULT_CONFIG
    drinks, profile, utc_now = validate_inputs(drinks, profile, now)
    if not drinks:
        return empty_result()

    zone = display_zone(now, config)
    now = utc_now
    current = bac_at_time(drinks, profile, now, config)
    rising = is_rising(drinks, now, config)
    peak = find_peak(drinks, profile, now, config)
    to_sober = find_time_to_target(drinks, profile, now, config.sober_target, config, peak=peak)
    to_legal = find_time_to_target(drinks, profile, now, config.legal_target, config, peak=peak)
    timeline = tuple(build_timeline(drinks, profile, now, config, zone=zone)) if include_timeline else ()

    times = [d.consumed_complete_at for d in drinks]
    logger.debug(
        "evaluate: %d drinks, bac=%.4f peak=%.4f sober=%.2fh legal=%.2fh",
        len(drinks), current, peak.peak_bac, to_sober, to_legal,
    )
    return BACResult(
        current_bac=current,
        time_to_sober_hours=display_hours(to_sober, config),
        time_to_legal_hours=display_hours(to_legal, config),
        peak_bac=peak.peak_bac,
        time_to_peak_hours=peak.time_to_peak_hours,
        is_rising=rising,
        timeline=timeline,
        sober_capped=to_sober == HORIZON_EXCEEDED,
        legal_capped=to_legal == HORIZON_EXCEEDED,
        drink_count=len(drinks),
        total_standards=sum(d.standards for d in drinks),
        drinking_duration_hours=hours_between(max(times), min(times)),
    )
