"""Tests for hydration summaries over decrypted trees."""

import pytest

from hydration.metrics import (
    UNASSIGNED,
    all_nurses,
    count_dehydrated,
    daily_amounts,
    hydration_status,
    nurse_rosters,
    summarize_patients,
)
from hydration.orchestrator import LeafFailure


@pytest.mark.parametrize(
    "three_day, status",
    [(0, "dehydrated"), (39.9, "dehydrated"), (40, "mild dehydration"),
     (119.9, "mild dehydration"), (120, "hydrated")],
)
def test_hydration_status_thresholds(three_day, status):
    assert hydration_status(three_day) == status


def test_daily_amounts_uses_first_reading():
    tree = {"p": {"d1": [["s", 5.0], ["s", 99.0]], "d2": []}}
    assert daily_amounts(tree) == {"p": [("d1", 5.0)]}


def test_daily_amounts_skips_failed_first_reading():
    tree = {"p": {"d1": [["s", 0.0]], "d2": [["s", 12.0]]}}
    failures = [LeafFailure("p", "d1", 0, "s", "authentication")]
    assert daily_amounts(tree, failures) == {"p": [("d2", 12.0)]}


def test_rolling_totals():
    tree = {"p": {f"2024-05-{d:02d}": [["s", float(d * 10)]] for d in range(1, 10)}}
    (s,) = summarize_patients(tree, {}, {}, {})
    assert s.dates[0] == "2024-05-09"
    assert s.today_ounces == 90.0
    assert s.three_day_ounces == 90 + 80 + 70
    assert s.seven_day_ounces == sum(range(30, 100, 10))
    assert s.average_ounces == pytest.approx(50.0)
    assert s.days_over_60oz == 4
    assert s.total_days == 9
    assert s.hydration_status == "hydrated"


def test_patient_without_readings():
    (s,) = summarize_patients({"p": {}}, {}, {}, {})
    assert s.total_days == 0
    assert s.today_ounces == 0.0
    assert s.hydration_status == "dehydrated"
    assert s.nurse == UNASSIGNED


def test_sorted_least_hydrated_first():
    tree = {
        "a": {"d": [["s", 100.0]]},
        "b": {"d": [["s", 10.0]]},
        "c": {"d": [["s", 50.0]]},
    }
    assert [s.patient_id for s in summarize_patients(tree, {}, {}, {})] == ["b", "c", "a"]


def test_assignments():
    tree = {"a": {}, "b": {}, "c": {}}
    nurses = {"a": ["N1", "N2"], "b": "N3", "c": []}
    rooms = {"a": "12", "b": [""]}
    by_id = {s.patient_id: s for s in summarize_patients(tree, {"a": "Al"}, nurses, rooms)}
    assert (by_id["a"].name, by_id["a"].nurse, by_id["a"].room) == ("Al", "N1", "12")
    assert (by_id["b"].name, by_id["b"].nurse, by_id["b"].room) == ("b", "N3", UNASSIGNED)
    assert by_id["c"].nurse == UNASSIGNED


def test_all_nurses_skips_metadata():
    nurses = {"a": ["N2", "N1", ""], "b": "N1", "status": "ok", "group": "ward"}
    assert all_nurses(nurses) == ["N1", "N2"]


def test_count_and_rosters():
    tree = {"a": {"d": [["s", 10.0]]}, "b": {"d": [["s", 200.0]]}}
    summaries = summarize_patients(tree, {}, {"a": "N1", "b": "N1"}, {})
    assert count_dehydrated(summaries) == 1
    assert [s.patient_id for s in nurse_rosters(summaries)["N1"]] == ["a", "b"]


def test_dates_sorted_by_calendar_value():
    tree = {
        "p": {
            "12/31/2023": [["s", 1.0]],
            "01/02/2024": [["s", 3.0]],
            "2024-01-01": [["s", 2.0]],
            "someday": [["s", 9.0]],
        }
    }
    (s,) = summarize_patients(tree, {}, {}, {})
    assert s.dates == ["01/02/2024", "2024-01-01", "12/31/2023", "someday"]
    assert s.today_ounces == 3.0
    assert s.three_day_ounces == 6.0
