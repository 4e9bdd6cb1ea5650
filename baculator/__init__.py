"""
BAC estimation engine: Widmark absorption, zero-order elimination, peak and
threshold search, and plot-ready timelines.
Use from project root: python -m baculator
"""

from baculator.config import EngineConfig
from baculator.drinks import (
    DRINK_TYPES,
    DrinkRecord,
    SubjectProfile,
    list_drink_types,
    standards_from_drink,
    standards_from_volume_abv,
)
from baculator.errors import BACValidationError, InvalidConfig, InvalidDrink, InvalidProfile
from baculator.calculations import (
    absorbed_bac,
    bac_at_time,
    eliminated_bac,
    is_rising,
    widmark_peak,
)
from baculator.peak import Peak, find_peak
from baculator.threshold import HORIZON_EXCEEDED, find_time_to_target
from baculator.timeline import BACSample, build_timeline
from baculator.engine import BACResult, evaluate
from baculator.session import DrinkingSession
from baculator.refresh import RefreshTask
from baculator.graph import curve_data, save_bac_graph

__all__ = [
    "EngineConfig",
    "DrinkRecord",
    "SubjectProfile",
    "BACResult",
    "BACSample",
    "Peak",
    "evaluate",
    "absorbed_bac",
    "eliminated_bac",
    "bac_at_time",
    "is_rising",
    "widmark_peak",
    "find_peak",
    "find_time_to_target",
    "build_timeline",
    "HORIZON_EXCEEDED",
    "DrinkingSession",
    "RefreshTask",
    "curve_data",
    "save_bac_graph",
    "standards_from_drink",
    "standards_from_volume_abv",
    "list_drink_types",
    "DRINK_TYPES",
    "BACValidationError",
    "InvalidProfile",
    "InvalidDrink",
    "InvalidConfig",
]
