"""Drink and subject records handed to the engine, plus standards helpers.

A standard drink is a fixed mass of ethanol (10 g in AU/UK, 14 g in US).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from baculator.config import AU_STANDARD_DRINK_GRAMS, SEXES

# Ethanol density (g/mL) for volume x ABV -> grams.
ETHANOL_DENSITY = 0.789

GRAMS_PER_POUND = 454.0


@dataclass(frozen=True)
class DrinkRecord:
    """One finished drink. The engine reads it but never changes it."""

    standards: float
    consumed_complete_at: datetime  # when the drink was finished, not started
    drink_id: Optional[str] = None


@dataclass(frozen=True)
class SubjectProfile:
    weight_kg: float
    sex: str  # "male" or "female"

    @classmethod
    def from_pounds(cls, weight_lb: float, is_male: bool = True) -> "SubjectProfile":
        return cls(weight_kg=weight_lb * GRAMS_PER_POUND / 1000.0, sex="male" if is_male else "female")

    @property
    def normalized_sex(self) -> Optional[str]:
        """Lower-cased sex, or None when it is not one of the known values."""
        if not isinstance(self.sex, str):
            return None
        value = self.sex.strip().lower()
        return value if value in SEXES else None


@dataclass(frozen=True)
class DrinkType:
    """A drink category with default ABV and serving size."""

    key: str
    name: str
    abv: float  # e.g. 0.05 for 5%
    default_ml: float


# Common serves (AU sizes).
DRINK_TYPES = {
    "beer": DrinkType("beer", "Beer schooner (4.8%)", 0.048, 425.0),
    "wine": DrinkType("wine", "Wine glass (13%)", 0.13, 150.0),
    "spirit": DrinkType("spirit", "Spirit nip (40%)", 0.40, 30.0),
    "seltzer": DrinkType("seltzer", "Hard seltzer (4.5%)", 0.045, 330.0),
    "rtd": DrinkType("rtd", "Vodka soda RTD (5%)", 0.05, 375.0),
}


def grams_from_volume_abv(volume_ml: float, abv: float) -> float:
    """Convert millilitres and ABV (0 to 1) to grams of ethanol."""
    return volume_ml * abv * ETHANOL_DENSITY


def standards_from_volume_abv(
    volume_ml: float,
    abv: float,
    grams_per_standard: float = AU_STANDARD_DRINK_GRAMS,
) -> float:
    """Standard drinks in a serve of the given volume and strength."""
    return round(grams_from_volume_abv(volume_ml, abv) / grams_per_standard, 2)


def standards_from_drink(
    drink_key: str,
    count: float = 1.0,
    volume_ml: Optional[float] = None,
    grams_per_standard: float = AU_STANDARD_DRINK_GRAMS,
) -> float:
    """Standard drinks for `count` serves of a known drink type.

    Unknown keys count as one standard drink per serve.
    """
    dt = DRINK_TYPES.get(drink_key)
    if dt is None:
        return float(count)
    ml = dt.default_ml if volume_ml is None else volume_ml
    return round(count * grams_from_volume_abv(ml, dt.abv) / grams_per_standard, 2)


def list_drink_types():
    """Return list of (key, name) for UI dropdowns."""
    return [(d.key, d.name) for d in DRINK_TYPES.values()]
