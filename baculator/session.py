"""
Drinking session: profile plus drink log, owned by the calling application.
A session with no new drink for 12 hours counts as closed; its drinks then
drop out of scope for new BAC estimates.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, List, Optional

from baculator import engine
from baculator.calculations import as_utc
from baculator.config import EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile
from baculator.errors import InvalidDrink

AUTO_CLOSE_AFTER = timedelta(hours=12)


@dataclass
class DrinkingSession:
    profile: SubjectProfile
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    _drinks: List[DrinkRecord] = field(default_factory=list)

    @property
    def drinks(self) -> List[DrinkRecord]:
        return sorted(self._drinks, key=lambda d: d.consumed_complete_at)

    @property
    def last_drink_at(self) -> Optional[datetime]:
        return max((d.consumed_complete_at for d in self._drinks), default=None)

    @property
    def total_standards(self) -> float:
        return sum(d.standards for d in self._drinks)

    def add_drink(self, standards: float, consumed_complete_at: datetime, drink_id: Optional[str] = None) -> DrinkRecord:
        if self.closed_at is not None:
            raise ValueError("session is closed")
        if standards <= 0:
            raise InvalidDrink("standards must be > 0")
        consumed_complete_at = as_utc(consumed_complete_at)
        drink = DrinkRecord(standards=standards, consumed_complete_at=consumed_complete_at, drink_id=drink_id)
        self._drinks.append(drink)
        if self.opened_at is None or consumed_complete_at < self.opened_at:
            self.opened_at = consumed_complete_at
        return drink

    def add_drink_ago(self, hours_ago: float, standards: float, now: datetime, drink_id: Optional[str] = None) -> DrinkRecord:
        return self.add_drink(standards, as_utc(now) - timedelta(hours=hours_ago), drink_id=drink_id)

    def remove_drink(self, drink_id: str) -> bool:
        before = len(self._drinks)
        self._drinks = [d for d in self._drinks if d.drink_id != drink_id]
        return len(self._drinks) != before

    def auto_closes_at(self) -> Optional[datetime]:
        last = self.last_drink_at
        return None if last is None else last + AUTO_CLOSE_AFTER

    def is_active(self, now: datetime) -> bool:
        now = as_utc(now)
        if self.closed_at is not None and self.closed_at <= now:
            return False
        deadline = self.auto_closes_at()
        return deadline is None or now < deadline

    def close(self, now: datetime) -> None:
        now = as_utc(now)
        if self.closed_at is None:
            deadline = self.auto_closes_at()
            self.closed_at = min(now, deadline) if deadline is not None else now

    def drinks_in_scope(self, now: datetime) -> List[DrinkRecord]:
        return self.drinks if self.is_active(now) else []

    def evaluate(self, now: datetime, config: Optional[EngineConfig] = None, include_timeline: bool = True) -> engine.BACResult:
        return engine.evaluate(self.drinks_in_scope(now), self.profile, now, config, include_timeline=include_timeline)

    def to_dict(self) -> dict:
        return {
            "weight_kg": self.profile.weight_kg,
            "sex": self.profile.sex,
            "opened_at": self.opened_at.isoformat() if self.opened_at else None,
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "drinks": [
                {"id": d.drink_id, "standards": d.standards, "consumed_complete_at": d.consumed_complete_at.isoformat()}
                for d in self.drinks
            ],
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["DrinkingSession"]:
        """Rebuild a stored session; malformed drink rows are skipped."""
        if not isinstance(raw, dict):
            return None
        try:
            profile = SubjectProfile(weight_kg=float(raw.get("weight_kg")), sex=str(raw.get("sex", "")))
        except (TypeError, ValueError):
            return None

        model = cls(profile=profile, opened_at=_parse_time(raw.get("opened_at")))
        for row in raw.get("drinks") or []:
            if not isinstance(row, dict):
                continue
            at = _parse_time(row.get("consumed_complete_at"))
            try:
                standards = float(row.get("standards"))
            except (TypeError, ValueError):
                continue
            if at is None or standards <= 0:
                continue
            model._drinks.append(DrinkRecord(standards=standards, consumed_complete_at=at, drink_id=row.get("id")))
        model.closed_at = _parse_time(raw.get("closed_at"))
        return model


def _parse_time(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
