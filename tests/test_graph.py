"""Plot export tests."""
from datetime import datetime, timedelta

import pytest

from baculator.drinks import DrinkRecord, SubjectProfile
from baculator.graph import curve_data, peak_sample, save_bac_graph, split_at_now
from baculator.timeline import build_timeline

T0 = datetime(2026, 10, 17, 20, 0)
DRINKS = [DrinkRecord(standards=2, consumed_complete_at=T0 + timedelta(minutes=10))]
PROFILE = SubjectProfile(weight_kg=80, sex="male")


def test_curve_data_pairs():
    timeline = build_timeline(DRINKS, PROFILE, T0 + timedelta(hours=1))
    points = curve_data(timeline)
    assert len(points) == len(timeline)
    assert points[0] == (0.0, 0.0)
    assert all(bac >= 0 for _, bac in points)


def test_save_bac_graph(tmp_path):
    pytest.importorskip("matplotlib")
    timeline = build_timeline(DRINKS, PROFILE, T0 + timedelta(hours=1))
    out = save_bac_graph(timeline, output_path=str(tmp_path / "plots" / "bac.png"))
    assert (tmp_path / "plots" / "bac.png").exists()
    assert out.endswith("bac.png")


def test_split_at_now_shares_the_now_point():
    timeline = build_timeline(DRINKS, PROFILE, T0 + timedelta(hours=1))
    history, predicted = split_at_now(timeline)
    assert history[-1][0] == 0.0
    assert predicted[0][0] == 0.0
    assert history[-1] == predicted[0]
    assert len(history) + len(predicted) == len(timeline) + 1


def test_peak_sample():
    timeline = build_timeline(DRINKS, PROFILE, T0 + timedelta(hours=1))
    peak = peak_sample(timeline)
    assert peak.bac_value == max(s.bac_value for s in timeline)
    assert peak_sample([]) is None


def test_save_bac_graph_empty_timeline(tmp_path):
    pytest.importorskip("matplotlib")
    out = save_bac_graph([], output_path=str(tmp_path / "empty.png"))
    assert (tmp_path / "empty.png").exists()
    assert out.endswith("empty.png")
