"""Tests for projecting a medication's schedule onto a date."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from conftest import TODAY, make_med
from medtrack.models import FrequencyType, MedicationStatus
from medtrack.service.recurrence import is_active_on, project_day


class TestIsActiveOn:
    def test_start_date_inclusive(self):
        med = make_med(start_date=TODAY)
        assert is_active_on(med, TODAY)
        assert not is_active_on(med, TODAY - timedelta(days=1))

    def test_end_date_inclusive(self):
        med = make_med(start_date=TODAY - timedelta(days=3), end_date=TODAY)
        assert is_active_on(med, TODAY)
        assert not is_active_on(med, TODAY + timedelta(days=1))

    def test_open_ended(self):
        med = make_med(start_date=TODAY - timedelta(days=400))
        assert is_active_on(med, TODAY + timedelta(days=400))

    @pytest.mark.parametrize("status", [MedicationStatus.INACTIVE, MedicationStatus.SUSPENDED])
    def test_non_active_status(self, status):
        assert not is_active_on(make_med(status=status), TODAY)


class TestProjectDay:
    def test_returns_sorted_schedules(self):
        med = make_med(schedules=["20:00", "08:00", "14:30"])
        assert project_day(med, TODAY) == ["08:00", "14:30", "20:00"]

    def test_inactive_day_is_empty(self):
        med = make_med(end_date=TODAY - timedelta(days=1), start_date=TODAY - timedelta(days=5))
        assert project_day(med, TODAY) == []

    def test_frequency_fields_do_not_change_times(self):
        med = make_med(
            schedules=["09:00"],
            frequency_type=FrequencyType.EVERY_N_HOURS,
            frequency_value=4,
        )
        assert project_day(med, TODAY) == ["09:00"]

    def test_empty_schedules_means_no_doses(self):
        assert project_day(make_med(schedules=[]), TODAY) == []


class TestScheduleNormalization:
    def test_times_are_padded_deduplicated_and_sorted(self):
        med = make_med(schedules=["8:00", "08:00", "07:30"])
        assert med.schedules == ["07:30", "08:00"]

    @pytest.mark.parametrize("bad", ["24:00", "8am", "12:60", ""])
    def test_invalid_time_rejected(self, bad):
        with pytest.raises(ValidationError):
            make_med(schedules=[bad])
