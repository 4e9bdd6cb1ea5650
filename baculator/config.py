"""Engine constants gathered in one value object.

Every function in the simulation core receives an EngineConfig instead of
declaring its own constants. Defaults follow the AU convention
(10 g standard drink, 0.05 legal limit).
"""

import math
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from baculator.errors import InvalidConfig, InvalidProfile

# Widmark distribution ratio (r)
R_MALE = 0.68
R_FEMALE = 0.55

# Elimination rate (% BAC per hour)
ELIMINATION_PER_HOUR = 0.015

AU_STANDARD_DRINK_GRAMS = 10.0
US_STANDARD_DRINK_GRAMS = 14.0

POLICY_CONTINUOUS = "continuous"
POLICY_EPISODIC = "episodic"
ELIMINATION_POLICIES = (POLICY_CONTINUOUS, POLICY_EPISODIC)

SEXES = ("male", "female")

# Ceilings that keep every search loop and timedelta bounded.
MAX_SEARCH_HORIZON_HOURS = 168.0
MAX_PEAK_LOOKAHEAD_HOURS = 48.0
MAX_ABSORPTION_WINDOW_MINUTES = 24 * 60.0
MAX_TIMELINE_POST_NOW_HOURS = 168.0
MIN_PEAK_GRID_MINUTES = 1.0
MIN_THRESHOLD_TOLERANCE_MINUTES = 0.01
MAX_BAC_DECIMALS = 10


@dataclass(frozen=True)
class EngineConfig:
    grams_per_standard: float = AU_STANDARD_DRINK_GRAMS
    absorption_window_minutes: float = 30.0
    absorption_curve_sharpness: float = 3.0
    elimination_rate_per_hour: float = ELIMINATION_PER_HOUR
    ratio_male: float = R_MALE
    ratio_female: float = R_FEMALE
    elimination_policy: str = POLICY_CONTINUOUS
    sober_target: float = 0.0
    legal_target: float = 0.05
    search_horizon_hours: float = 48.0
    threshold_tolerance_minutes: float = 1.0
    peak_lookahead_hours: float = 2.0
    peak_grid_minutes: float = 5.0
    timeline_post_now_hours: float = 8.0
    display_timezone: Optional[str] = None
    bac_decimals: int = 4

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, float) and not math.isfinite(value):
                raise InvalidConfig(f"{f.name} must be a finite number")
        positive = (
            "grams_per_standard",
            "absorption_window_minutes",
            "absorption_curve_sharpness",
            "ratio_male",
            "ratio_female",
            "search_horizon_hours",
            "threshold_tolerance_minutes",
            "peak_lookahead_hours",
            "peak_grid_minutes",
        )
        for name in positive:
            if not getattr(self, name) > 0:
                raise InvalidConfig(f"{name} must be > 0")
        if self.elimination_rate_per_hour < 0:
            raise InvalidConfig("elimination_rate_per_hour must be >= 0")
        if self.timeline_post_now_hours < 0:
            raise InvalidConfig("timeline_post_now_hours must be >= 0")
        if self.sober_target < 0 or self.legal_target < 0:
            raise InvalidConfig("BAC targets must be >= 0")
        if self.elimination_policy not in ELIMINATION_POLICIES:
            raise InvalidConfig(
                f"elimination_policy must be one of {', '.join(ELIMINATION_POLICIES)}"
            )
        _check_at_most("search_horizon_hours", self.search_horizon_hours, MAX_SEARCH_HORIZON_HOURS)
        _check_at_most("peak_lookahead_hours", self.peak_lookahead_hours, MAX_PEAK_LOOKAHEAD_HOURS)
        _check_at_most("absorption_window_minutes", self.absorption_window_minutes, MAX_ABSORPTION_WINDOW_MINUTES)
        _check_at_most("timeline_post_now_hours", self.timeline_post_now_hours, MAX_TIMELINE_POST_NOW_HOURS)
        if self.peak_grid_minutes < MIN_PEAK_GRID_MINUTES:
            raise InvalidConfig(f"peak_grid_minutes must be >= {MIN_PEAK_GRID_MINUTES:g}")
        if self.threshold_tolerance_minutes < MIN_THRESHOLD_TOLERANCE_MINUTES:
            raise InvalidConfig(
                f"threshold_tolerance_minutes must be >= {MIN_THRESHOLD_TOLERANCE_MINUTES:g}"
            )
        if not 0 <= self.bac_decimals <= MAX_BAC_DECIMALS:
            raise InvalidConfig(f"bac_decimals must be between 0 and {MAX_BAC_DECIMALS}")
        if self.display_timezone is not None:
            try:
                ZoneInfo(self.display_timezone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise InvalidConfig(f"unknown display_timezone {self.display_timezone!r}") from exc

    def distribution_ratio(self, sex: str) -> float:
        """Widmark r for a normalised sex value."""
        if sex == "male":
            return self.ratio_male
        if sex == "female":
            return self.ratio_female
        raise InvalidProfile(f"sex must be one of {', '.join(SEXES)}")

    @property
    def zone(self) -> Optional[ZoneInfo]:
        if self.display_timezone is None:
            return None
        return ZoneInfo(self.display_timezone)

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "EngineConfig":
        """Copy with the given fields replaced; unknown keys are rejected."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidConfig(f"unknown config field(s): {', '.join(unknown)}")
        values = {}
        for key, value in overrides.items():
            values[key] = _coerce(key, value, getattr(self, key))
        return replace(self, **values)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from BAC_* environment variables."""
        env = os.environ if environ is None else environ
        overrides: dict = {}
        for var, name in _ENV_FIELDS.items():
            raw = env.get(var)
            if raw is not None and raw.strip() != "":
                overrides[name] = raw.strip()
        return cls().with_overrides(overrides)


_ENV_FIELDS = {
    "BAC_GRAMS_PER_STANDARD": "grams_per_standard",
    "BAC_ABSORPTION_WINDOW_MINUTES": "absorption_window_minutes",
    "BAC_ELIMINATION_RATE": "elimination_rate_per_hour",
    "BAC_ELIMINATION_POLICY": "elimination_policy",
    "BAC_LEGAL_TARGET": "legal_target",
    "BAC_DISPLAY_TIMEZONE": "display_timezone",
}


def _check_at_most(name: str, value: float, ceiling: float):
    if value > ceiling:
        raise InvalidConfig(f"{name} must be <= {ceiling:g}")


def _coerce(name: str, value: Any, current: Any) -> Any:
    if name == "display_timezone":
        return None if value in (None, "") else str(value)
    if name == "elimination_policy":
        return str(value).strip().lower()
    try:
        if isinstance(current, int) and not isinstance(current, bool):
            return int(value)
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfig(f"{name} must be a number") from exc


DEFAULT_CONFIG = EngineConfig()
