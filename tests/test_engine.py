"""evaluate() contract tests: validation, empty input and composed results."""
from datetime import datetime, timedelta, timezone

import pytest

from baculator.calculations import bac_at_time
from baculator.config import EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile
from baculator.engine import evaluate
from baculator.errors import BACValidationError, InvalidDrink, InvalidProfile

T0 = datetime(2026, 10, 17, 20, 0)
MALE_70 = SubjectProfile(weight_kg=70, sex="male")


def at(minutes):
    return T0 + timedelta(minutes=minutes)


def drink(standards=1.0, minutes=0):
    return DrinkRecord(standards=standards, consumed_complete_at=at(minutes))


def test_empty_drinks_all_zero():
    result = evaluate([], MALE_70, T0)
    assert result.current_bac == 0
    assert result.is_rising is False
    assert result.timeline == ()
    assert result.peak_bac == 0
    assert result.time_to_sober_hours == 0
    assert result.time_to_legal_hours == 0


def test_empty_drinks_still_validates_profile():
    with pytest.raises(InvalidProfile):
        evaluate([], SubjectProfile(weight_kg=0, sex="male"), T0)


@pytest.mark.parametrize("profile", [
    SubjectProfile(weight_kg=0, sex="male"),
    SubjectProfile(weight_kg=-70, sex="female"),
    SubjectProfile(weight_kg=True, sex="male"),
    SubjectProfile(weight_kg="70", sex="male"),
    SubjectProfile(weight_kg=70, sex="other"),
    SubjectProfile(weight_kg=70, sex=None),
])
def test_invalid_profile_rejected(profile):
    with pytest.raises(InvalidProfile):
        evaluate([drink()], profile, T0)


@pytest.mark.parametrize("standards", [0, -1, float("nan"), "2"])
def test_invalid_drink_rejects_whole_call(standards):
    drinks = [drink(1, 0), DrinkRecord(standards=standards, consumed_complete_at=at(10))]
    with pytest.raises(InvalidDrink):
        evaluate(drinks, MALE_70, at(30))


def test_mixed_naive_and_aware_timestamps_rejected():
    aware = DrinkRecord(standards=1, consumed_complete_at=datetime(2026, 10, 17, 9, tzinfo=timezone.utc))
    with pytest.raises(InvalidDrink):
        evaluate([aware], MALE_70, T0)


def test_validation_errors_are_value_errors():
    with pytest.raises(ValueError):
        evaluate([drink(0)], MALE_70, T0)
    assert issubclass(InvalidDrink, BACValidationError)


def test_sex_normalised_before_evaluation():
    upper = evaluate([drink()], SubjectProfile(weight_kg=70, sex=" Female "), at(45))
    lower = evaluate([drink()], SubjectProfile(weight_kg=70, sex="female"), at(45))
    assert upper == lower


def test_result_composes_components():
    drinks = [drink(2, 0), drink(1, 50)]
    now = at(60)
    result = evaluate(drinks, MALE_70, now)
    assert result.current_bac == bac_at_time(drinks, MALE_70, now)
    assert result.is_rising is True
    assert result.peak_bac >= result.current_bac
    assert 0 < result.time_to_peak_hours <= 2
    assert result.time_to_sober_hours > 0
    assert result.time_to_legal_hours == 0
    assert result.drink_count == 2
    assert result.total_standards == 3
    assert result.drinking_duration_hours == pytest.approx(50 / 60)
    assert len(result.timeline) > 0
    assert not result.sober_capped


def test_evaluate_is_repeatable():
    drinks = [drink(3, 0), drink(1, 25)]
    assert evaluate(drinks, MALE_70, at(40)) == evaluate(list(drinks), MALE_70, at(40))


def test_horizon_exceeded_maps_to_ceiling():
    config = EngineConfig(search_horizon_hours=1.0)
    result = evaluate([drink(6, 0)], MALE_70, at(45), config)
    assert result.sober_capped is True
    assert result.time_to_sober_hours == 1.0
    assert result.legal_capped is True


def test_without_timeline():
    result = evaluate([drink()], MALE_70, at(10), include_timeline=False)
    assert result.timeline == ()
    assert result.current_bac > 0


def test_to_dict_shape():
    payload = evaluate([drink()], MALE_70, at(10)).to_dict()
    for key in ("current_bac", "time_to_sober_hours", "time_to_legal_hours", "peak_bac",
                "time_to_peak_hours", "is_rising", "timeline"):
        assert key in payload
    sample = payload["timeline"][0]
    assert set(sample) >= {"offset_hours", "offset_from_now_hours", "bac", "clock_time", "at"}


def test_local_zone_and_utc_give_the_same_answers(sydney):
    local = [
        DrinkRecord(standards=2, consumed_complete_at=datetime(2026, 10, 4, 1, 0, tzinfo=sydney)),
        DrinkRecord(standards=1, consumed_complete_at=datetime(2026, 10, 4, 3, 10, tzinfo=sydney)),
    ]
    now = datetime(2026, 10, 4, 3, 20, tzinfo=sydney)
    utc = [DrinkRecord(standards=d.standards, consumed_complete_at=d.consumed_complete_at.astimezone(timezone.utc)) for d in local]

    a = evaluate(local, MALE_70, now)
    b = evaluate(utc, MALE_70, now.astimezone(timezone.utc))
    assert a.current_bac == b.current_bac
    assert a.peak_bac == b.peak_bac
    assert a.time_to_sober_hours == b.time_to_sober_hours
    assert a.drinking_duration_hours == pytest.approx(70 / 60)
    assert [s.bac_value for s in a.timeline] == [s.bac_value for s in b.timeline]
    # Labels follow the caller's own clock.
    assert a.timeline[0].clock_time == "01:00"
    assert b.timeline[0].clock_time == "15:00"
