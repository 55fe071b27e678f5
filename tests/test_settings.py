"""Tests for reminder preference updates."""

from __future__ import annotations

from datetime import date

import pytest

from habitkeeper.errors import NotFoundError, ValidationError
from habitkeeper.services.settings import SettingsService


@pytest.fixture
def settings_service(user_repo):
    return SettingsService(user_repo)


class TestUpdateReminders:
    def test_normalizes_times(self, settings_service, user):
        updated = settings_service.update_reminders(user.id, morning_time="7:05", evening_time="22:30")
        assert updated.morning_time == "07:05"
        assert updated.evening_time == "22:30"

    def test_switches_channels(self, settings_service, user):
        updated = settings_service.update_reminders(user.id, morning_enabled=False)
        assert updated.morning_enabled is False
        assert updated.evening_enabled is True

    def test_timezone_text_and_minutes(self, settings_service, user):
        assert settings_service.update_reminders(user.id, timezone="UTC-5").timezone_offset == -300
        assert settings_service.update_reminders(user.id, timezone=330).timezone_offset == 330

    @pytest.mark.parametrize(
        "kwargs",
        [{"morning_time": "25:00"}, {"evening_time": "9pm"}, {"timezone": "+20"}, {"timezone": 900}],
    )
    def test_rejects_invalid_values(self, settings_service, user, user_repo, kwargs):
        with pytest.raises(ValidationError):
            settings_service.update_reminders(user.id, **kwargs)
        stored = user_repo.get_by_id(user.id)
        assert stored.morning_time == "08:00"
        assert stored.timezone_offset == 180

    def test_keeps_todays_watermark(self, settings_service, user, user_repo):
        user_repo.set_watermark(user.id, "morning", date(2024, 3, 5))
        updated = settings_service.update_reminders(user.id, morning_time="09:00")
        assert updated.last_morning_reminder_date == date(2024, 3, 5)

    def test_no_changes_returns_user(self, settings_service, user):
        assert settings_service.update_reminders(user.id).id == user.id
        with pytest.raises(NotFoundError):
            settings_service.update_reminders(999)

    def test_location_sets_offset(self, settings_service, user):
        updated = settings_service.update_reminders(user.id, timezone="UTC-5", location=(40.7128, -74.0060))
        assert updated.timezone_offset in (-300, -240)
        assert settings_service.update_reminders(user.id, location="55.7558, 37.6173").timezone_offset == 180

    def test_location_at_sea_is_rejected(self, settings_service, user, user_repo):
        with pytest.raises(ValidationError):
            settings_service.update_reminders(user.id, morning_time="09:00", location=(0.0, -150.0))
        stored = user_repo.get_by_id(user.id)
        assert stored.timezone_offset == 180
        assert stored.morning_time == "08:00"
