"""
Tests for the weekly schedule (waking/work hours by day).

2026-02-23 is a Monday; 2026-02-27 a Friday; 2026-02-28 a Saturday.
"""

import json
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from timebalance.schedule import (
    TimePeriod,
    get_available_hours,
    get_default_schedule,
    get_schedule_for_date,
    get_time_period_datetimes,
    get_waking_hours,
    get_work_hours,
    is_work_day,
    load_schedule,
    parse_schedule,
)

MONDAY = date(2026, 2, 23)
TUESDAY = date(2026, 2, 24)
FRIDAY = date(2026, 2, 27)
SATURDAY = date(2026, 2, 28)
SUNDAY = date(2026, 3, 1)


@pytest.fixture
def custom_schedule():
    """Friday finishes early, Christmas is a holiday."""
    return parse_schedule(
        {
            "defaultSchedule": {
                "weekday": {"awakePeriod": {"start": 6, "end": 22}, "workPeriod": {"start": 9, "end": 17}},
                "weekend": {"awakePeriod": {"start": 8, "end": 23}, "workPeriod": None},
            },
            "overrides": {"friday": {"workPeriod": {"start": 9, "end": 13}}},
            "holidays": ["2026-12-25"],
        }
    )


def write_config(tmp_path, data) -> Path:
    path = tmp_path / "schedule.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


class TestDefaultSchedule:
    def test_weekday_defaults(self):
        schedule = get_default_schedule()
        weekday = schedule.default_schedule.weekday
        assert weekday.awake_period.as_tuple() == (6, 22)
        assert weekday.work_period.as_tuple() == (9, 17)

    def test_weekend_defaults(self):
        weekend = get_default_schedule().default_schedule.weekend
        assert weekend.awake_period.as_tuple() == (6, 22)
        assert weekend.work_period is None

    def test_no_overrides_or_holidays(self):
        schedule = get_default_schedule()
        assert schedule.overrides == {}
        assert schedule.holidays == []


class TestLoadSchedule:
    def test_loads_from_file(self, tmp_path):
        path = write_config(
            tmp_path,
            {
                "defaultSchedule": {
                    "weekday": {"awakePeriod": {"start": 7, "end": 23}, "workPeriod": {"start": 8, "end": 16}},
                    "weekend": {"awakePeriod": {"start": 9, "end": 23}, "workPeriod": None},
                },
                "overrides": {"Friday": {"workPeriod": None}},
            },
        )
        schedule = load_schedule(path)
        assert get_waking_hours(MONDAY, schedule).as_tuple() == (7, 23)
        assert get_work_hours(MONDAY, schedule).as_tuple() == (8, 16)
        assert get_waking_hours(SATURDAY, schedule).as_tuple() == (9, 23)
        # Override keys are matched case-insensitively
        assert is_work_day(FRIDAY, schedule) is False

    def test_missing_file_returns_default(self, tmp_path):
        assert load_schedule(tmp_path / "missing.json") == get_default_schedule()

    def test_invalid_json_returns_default(self, tmp_path, caplog):
        path = write_config(tmp_path, "{ not valid json")
        assert load_schedule(path) == get_default_schedule()
        assert "Failed to load schedule config" in caplog.text

    def test_missing_weekend_returns_default(self, tmp_path):
        path = write_config(tmp_path, {"defaultSchedule": {"weekday": {}}})
        assert load_schedule(path) == get_default_schedule()

    def test_invalid_period_returns_default(self, tmp_path):
        path = write_config(
            tmp_path,
            {"defaultSchedule": {"weekday": {"awakePeriod": {"start": 30, "end": 2}}, "weekend": {}}},
        )
        assert load_schedule(path) == get_default_schedule()

    def test_missing_periods_filled_from_defaults(self, tmp_path):
        path = write_config(tmp_path, {"defaultSchedule": {"weekday": {}, "weekend": {}}})
        schedule = load_schedule(path)
        assert schedule.default_schedule.weekday.awake_period.as_tuple() == (6, 22)
        assert schedule.default_schedule.weekday.work_period.as_tuple() == (9, 17)
        assert schedule.default_schedule.weekend.work_period is None

    def test_default_path_from_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TIMEBALANCE_HOME", str(tmp_path))
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "schedule.json").write_text(
            json.dumps(
                {
                    "defaultSchedule": {
                        "weekday": {"awakePeriod": {"start": 5, "end": 21}},
                        "weekend": {},
                    }
                }
            )
        )
        assert get_waking_hours(MONDAY, load_schedule()).as_tuple() == (5, 21)

    def test_loads_tab_indented_json(self, tmp_path):
        path = tmp_path / "schedule.json"
        path.write_text(
            json.dumps(
                {"defaultSchedule": {"weekday": {"awakePeriod": {"start": 7, "end": 23}}, "weekend": {}}},
                indent="\t",
            )
        )
        assert get_waking_hours(MONDAY, load_schedule(path)).as_tuple() == (7, 23)

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "schedule.yml"
        path.write_text(
            "defaultSchedule:\n"
            "  weekday:\n"
            "    workPeriod: {start: 10, end: 18}\n"
            "  weekend: {}\n"
        )
        assert get_work_hours(MONDAY, load_schedule(path)).as_tuple() == (10, 18)


class TestScheduleForDate:
    def test_monday_is_weekday(self, custom_schedule):
        assert get_schedule_for_date(MONDAY, custom_schedule).work_period.as_tuple() == (9, 17)

    def test_saturday_and_sunday_are_weekend(self, custom_schedule):
        for day in (SATURDAY, SUNDAY):
            day_schedule = get_schedule_for_date(day, custom_schedule)
            assert day_schedule.awake_period.as_tuple() == (8, 23)
            assert day_schedule.work_period is None

    def test_override_applies(self, custom_schedule):
        friday = get_schedule_for_date(FRIDAY, custom_schedule)
        assert friday.work_period.as_tuple() == (9, 13)
        # awake period falls back to the weekday base
        assert friday.awake_period.as_tuple() == (6, 22)

    def test_holiday_uses_weekend_schedule(self, custom_schedule):
        christmas = date(2026, 12, 25)  # Friday, but a holiday
        day_schedule = get_schedule_for_date(christmas, custom_schedule)
        assert day_schedule.work_period is None
        assert day_schedule.awake_period.as_tuple() == (8, 23)

    def test_accepts_datetime(self, custom_schedule):
        assert get_schedule_for_date(datetime(2026, 2, 27, 15), custom_schedule).work_period.end == 13

    def test_default_schedule_when_none(self):
        assert get_schedule_for_date(MONDAY).work_period.as_tuple() == (9, 17)


class TestQueries:
    def test_is_work_day(self, custom_schedule):
        assert is_work_day(MONDAY, custom_schedule) is True
        assert is_work_day(FRIDAY, custom_schedule) is True
        assert is_work_day(SATURDAY, custom_schedule) is False
        assert is_work_day(date(2026, 12, 25), custom_schedule) is False

    def test_work_hours_none_on_weekend(self, custom_schedule):
        assert get_work_hours(SUNDAY, custom_schedule) is None

    def test_available_hours_for_work_goal(self, custom_schedule):
        assert get_available_hours(TUESDAY, "work", custom_schedule).as_tuple() == (9, 17)

    def test_available_hours_for_personal_goal(self, custom_schedule):
        assert get_available_hours(TUESDAY, "personal", custom_schedule).as_tuple() == (6, 22)

    def test_available_hours_work_goal_on_weekend(self, custom_schedule):
        assert get_available_hours(SATURDAY, "work", custom_schedule).as_tuple() == (8, 23)

    def test_available_hours_any(self, custom_schedule):
        assert get_available_hours(MONDAY, "any", custom_schedule).as_tuple() == (6, 22)


class TestTimePeriodDatetimes:
    def test_naive(self):
        start, end = get_time_period_datetimes(MONDAY, TimePeriod(start=9, end=17))
        assert start == datetime(2026, 2, 23, 9)
        assert end == datetime(2026, 2, 23, 17)

    def test_end_24_is_next_midnight(self):
        _, end = get_time_period_datetimes(MONDAY, TimePeriod(start=6, end=24))
        assert end == datetime(2026, 2, 24, 0)

    def test_keeps_datetime_timezone(self):
        start, _ = get_time_period_datetimes(
            datetime(2026, 2, 23, 15, tzinfo=UTC), TimePeriod(start=9, end=17)
        )
        assert start == datetime(2026, 2, 23, 9, tzinfo=UTC)

    def test_period_must_not_end_before_start(self):
        with pytest.raises(ValueError):
            TimePeriod(start=17, end=9)
