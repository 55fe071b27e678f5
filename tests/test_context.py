"""Tests for application wiring and the log-only delivery channel."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from habitkeeper import create_app_context
from habitkeeper.config import TestConfig as InMemoryConfig
from habitkeeper.delivery import LoggingDelivery
from habitkeeper.domain.channels import ReminderChannel
from habitkeeper.scheduler import ReminderScheduler
from habitkeeper.services.reminders import MorningPayload, ReminderItem


def test_context_wires_shared_repositories():
    ctx = create_app_context(InMemoryConfig())
    assert ctx.habit_service.habit_repo is ctx.habit_repo
    assert ctx.sweep.user_repo is ctx.user_repo
    assert isinstance(ctx.sweep.delivery, LoggingDelivery)

    scheduler = ctx.create_scheduler()
    assert isinstance(scheduler, ReminderScheduler)
    assert scheduler.interval_seconds == ctx.config.SWEEP_INTERVAL_SECONDS


def test_in_memory_context_runs_a_sweep(caplog):
    ctx = create_app_context(InMemoryConfig())
    user = ctx.user_repo.get_or_create("memory-user")
    ctx.habit_service.create_habit(user.id, "Stretch", created_on=date(2024, 3, 1))

    with caplog.at_level(logging.INFO, logger="habitkeeper"):
        report = ctx.sweep.run_sweep_tick(
            datetime(2024, 3, 5, 5, 0, tzinfo=timezone.utc), ReminderChannel.MORNING
        )

    assert report.sent == 1
    assert "Stretch" in caplog.text


def test_logging_delivery_confirms(user, caplog):
    payload = MorningPayload(
        local_date=date(2024, 3, 5),
        items=[ReminderItem(name="Read", emoji="", schedule="daily")],
    )
    with caplog.at_level(logging.INFO, logger="habitkeeper.delivery"):
        assert LoggingDelivery().send(user, ReminderChannel.MORNING, payload) is True
    assert "chat-default" in caplog.text
    assert "- Read (daily)" in caplog.text
