"""Tests for the habit service: lifecycle, today view and statistics."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from habitkeeper.domain.recurrence import IntervalRule, WeekdaysRule
from habitkeeper.errors import NotFoundError, ValidationError


class TestCreateHabit:
    def test_creates_with_local_today(self, habit_service, user):
        habit = habit_service.create_habit(user.id, "  Read  ", emoji="📚")
        assert habit.id is not None
        assert habit.name == "Read"
        assert habit.frequency_type == "daily"
        assert habit.weekdays is None
        assert habit.created_at == habit_service.local_today(user)

    def test_interval_is_clamped(self, habit_service, user):
        habit = habit_service.create_habit(
            user.id, "Water plants", frequency_type="interval", frequency_days=900,
            created_on=date(2024, 1, 1),
        )
        assert habit.frequency_days == 365

    def test_weekdays_are_normalized(self, habit_service, user):
        habit = habit_service.create_habit(
            user.id, "Gym", frequency_type="weekdays", weekdays=[5, 1, 3],
            created_on="2024-01-01",
        )
        assert habit.weekdays == "1,3,5"
        assert habit.created_at == date(2024, 1, 1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": ""},
            {"name": "x" * 81},
            {"name": "Gym", "frequency_type": "weekdays", "weekdays": []},
            {"name": "Gym", "frequency_type": "weekdays", "weekdays": "8"},
            {"name": "Gym", "frequency_type": "monthly"},
        ],
    )
    def test_rejects_invalid_input(self, habit_service, user, kwargs):
        with pytest.raises(ValidationError):
            habit_service.create_habit(user.id, **kwargs)

    def test_unknown_user(self, habit_service):
        with pytest.raises(NotFoundError):
            habit_service.create_habit(999, "Read")

    def test_update_schedule(self, habit_service, habit_factory):
        habit = habit_factory()
        updated = habit_service.update_schedule(habit.id, frequency_type="interval", frequency_days=2)
        assert updated.frequency_type == "interval"
        assert updated.frequency_days == 2
        assert updated.weekdays is None

    def test_delete_is_soft(self, habit_service, habit_repo, habit_factory, log_factory):
        habit = habit_factory()
        log_factory(habit, [date(2024, 1, 2)])
        habit_service.delete_habit(habit.id)

        assert habit_repo.get_by_id(habit.id).is_active is False
        assert habit_repo.list_completions(habit.id) == [date(2024, 1, 2)]
        with pytest.raises(NotFoundError):
            habit_service.delete_habit(4242)


class TestCompletionMarks:
    def test_toggle_today_uses_local_date(self, habit_service, habit_repo, habit_factory, user):
        habit = habit_factory()
        # 22:30 UTC is already the next day at UTC+3.
        now = datetime(2024, 3, 5, 22, 30, tzinfo=timezone.utc)
        assert habit_service.toggle_today(habit.id, user, now) is True
        assert habit_repo.list_completions(habit.id) == [date(2024, 3, 6)]
        assert habit_service.toggle_today(habit.id, user, now) is False

    def test_mark_explicit_day(self, habit_service, habit_repo, habit_factory):
        habit = habit_factory()
        habit_service.mark(habit.id, "2024-01-04")
        habit_service.mark(habit.id, date(2024, 1, 4), completed=True)
        assert habit_repo.count_completions(habit.id) == 1
        habit_service.mark(habit.id, date(2024, 1, 4), completed=False)
        assert habit_repo.count_completions(habit.id) == 0


class TestTodayView:
    def test_due_and_not_due(self, habit_service, habit_factory, user):
        habit_factory(name="Daily")
        habit_factory(name="Mondays", frequency_type="weekdays", weekdays="1")
        tuesday = date(2024, 3, 5)

        statuses = habit_service.habits_with_today_status(user, tuesday)
        assert [(s.name, s.is_due_today) for s in statuses] == [("Daily", True), ("Mondays", False)]
        assert [s.name for s in habit_service.today_habits(user, tuesday)] == ["Daily"]

    def test_interval_anchored_on_last_completion(self, habit_service, habit_factory, log_factory, user):
        habit = habit_factory(frequency_type="interval", frequency_days=3)
        log_factory(habit, [date(2024, 1, 1), date(2024, 1, 7)])

        assert not habit_service.status_for(habit, date(2024, 1, 9)).is_due_today
        status = habit_service.status_for(habit, date(2024, 1, 10))
        assert status.is_due_today
        assert status.rule == IntervalRule(3)
        assert status.schedule == "every 3 days"

    def test_completed_today_still_listed(self, habit_service, habit_factory, log_factory, user):
        habit = habit_factory(frequency_type="weekdays", weekdays="1")
        tuesday = date(2024, 3, 5)
        log_factory(habit, [tuesday])

        [status] = habit_service.today_habits(user, tuesday)
        assert status.completed_today is True
        assert status.rule == WeekdaysRule(frozenset({1}))

    def test_not_due_before_creation(self, habit_service, habit_factory, user):
        habit_factory(created_at=date(2024, 3, 10))
        assert habit_service.today_habits(user, date(2024, 3, 9)) == []

    def test_inactive_habits_hidden(self, habit_service, habit_factory, user):
        habit_factory(is_active=False)
        assert habit_service.habits_with_today_status(user, date(2024, 3, 5)) == []


class TestStatistics:
    def test_compute_stats(self, habit_service, habit_factory, log_factory):
        habit = habit_factory(name="Walk")
        log_factory(habit, [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4), date(2024, 1, 5)])

        stats = habit_service.compute_stats(habit.id, today=date(2024, 1, 5))
        assert stats.total_completed == 4
        assert stats.current_streak == 2
        assert stats.max_streak == 2
        assert stats.completion_rate == 13

    def test_compute_stats_unknown_or_inactive(self, habit_service, habit_factory):
        assert habit_service.compute_stats(777) is None
        habit = habit_factory(is_active=False)
        assert habit_service.compute_stats(habit.id) is None

    def test_user_stats_totals(self, habit_service, habit_factory, log_factory, user):
        active = habit_factory(name="Active")
        retired = habit_factory(name="Retired", is_active=False)
        log_factory(active, [date(2024, 1, 1), date(2024, 1, 2)])
        log_factory(retired, [date(2023, 12, 1)])

        summary = habit_service.user_stats(user, today=date(2024, 1, 2))
        assert summary.total_habits == 2
        assert summary.active_habits == 1
        assert summary.total_completions == 3
        assert [stats.name for stats in summary.habit_stats] == ["Active"]
        assert summary.habit_stats[0].current_streak == 2
