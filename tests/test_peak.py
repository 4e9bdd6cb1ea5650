"""Peak forecast tests."""
from datetime import datetime, timedelta

import pytest

from baculator.calculations import bac_at_time
from baculator.config import EngineConfig
from baculator.drinks import DrinkRecord, SubjectProfile
from baculator.peak import find_peak, peak_candidates

T0 = datetime(2026, 10, 17, 20, 0)
MALE_70 = SubjectProfile(weight_kg=70, sex="male")


def at(minutes):
    return T0 + timedelta(minutes=minutes)


def drink(standards=1.0, minutes=0):
    return DrinkRecord(standards=standards, consumed_complete_at=at(minutes))


def test_empty_peak_is_zero():
    peak = find_peak([], MALE_70, T0)
    assert peak.peak_bac == 0.0
    assert peak.time_to_peak_hours == 0.0


def test_peak_right_after_absorption_window():
    peak = find_peak([drink()], MALE_70, at(0))
    assert peak.time_to_peak_hours == pytest.approx(0.5, abs=0.01)
    assert peak.peak_bac == bac_at_time([drink()], MALE_70, peak.at)
    assert peak.peak_bac == pytest.approx(0.0135, abs=1e-4)


def test_current_bac_is_peak_once_absorbed():
    drinks = [drink()]
    peak = find_peak(drinks, MALE_70, at(60))
    assert peak.time_to_peak_hours == 0.0
    assert peak.peak_bac == bac_at_time(drinks, MALE_70, at(60))


def test_critical_points_beat_coarse_grid():
    coarse = EngineConfig(peak_grid_minutes=45)
    candidates = peak_candidates([drink()], at(0), coarse)
    assert at(30) in candidates
    peak = find_peak([drink()], MALE_70, at(0), coarse)
    assert peak.peak_bac == pytest.approx(0.0135, abs=1e-4)
    assert peak.peak_bac > bac_at_time([drink()], MALE_70, at(45))


def test_candidates_stay_inside_lookahead():
    candidates = peak_candidates([drink(1, -300), drink(1, 500)], at(0))
    assert candidates[0] == at(0)
    assert candidates[-1] == at(120)
    assert candidates == sorted(set(candidates))


def test_overlapping_drinks_peak_above_single_drink():
    single = find_peak([drink(1, 0)], MALE_70, at(0))
    double = find_peak([drink(1, 0), drink(1, 20)], MALE_70, at(0))
    assert double.peak_bac > single.peak_bac
    assert double.time_to_peak_hours == pytest.approx(50 / 60, abs=0.01)


def test_peak_never_below_current():
    drinks = [drink(3, -20), drink(1, -5)]
    now = at(0)
    assert find_peak(drinks, MALE_70, now).peak_bac >= bac_at_time(drinks, MALE_70, now)
