"""Command line entry points for HabitKeeper."""

from __future__ import annotations

import signal
import threading
from datetime import datetime, timezone

import click

from .config import BaseConfig
from .domain.channels import ReminderChannel
from .domain.clock import format_date, to_date, week_start_monday
from .domain.recurrence import FrequencyType, rule_for_habit, schedule_label
from .errors import HabitKeeperError
from .logging_config import get_logger, setup_logging
from .services.reminders import next_reminder_time
from .services.stats import format_stats_summary
from .services.weekly import render_week

logger = get_logger("cli")


def _context():
    from .context import create_app_context

    config = BaseConfig()
    setup_logging(config)
    return create_app_context(config)


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@click.group()
def main() -> None:
    """Habit tracking and reminder scheduling."""


@main.command("init-db")
def init_db() -> None:
    """Create the database schema."""

    ctx = _context()
    click.echo(f"Database ready: {ctx.config.DATABASE_URL}")


@main.command("sweep")
@click.option(
    "--channel",
    type=click.Choice([channel.value for channel in ReminderChannel]),
    default=None,
    help="Only run one channel (default: both)",
)
@click.option("--now", "now_text", default=None, help="ISO timestamp to evaluate at (UTC if naive)")
def sweep(channel: str | None, now_text: str | None) -> None:
    """Run a single reminder pass."""

    ctx = _context()
    now = _parse_now(now_text)
    channels = [ReminderChannel(channel)] if channel else list(ReminderChannel)
    for selected in channels:
        report = ctx.sweep.run_sweep_tick(now, selected)
        click.echo(
            f"{selected.value}: checked={report.checked} sent={report.sent} "
            f"suppressed={report.suppressed} failed={report.failed} errors={report.errors}"
        )


@main.command("run-scheduler")
def run_scheduler() -> None:
    """Tick the reminder sweep until interrupted."""

    ctx = _context()
    scheduler = ctx.create_scheduler()
    done = threading.Event()

    def _shutdown(signum, _frame) -> None:
        logger.info(f"Received signal {signum}, stopping scheduler")
        done.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    scheduler.start()
    click.echo("Reminder scheduler running. Press Ctrl+C to stop.")
    try:
        done.wait()
    finally:
        scheduler.stop(wait=True)


@main.command("settings")
@click.argument("chat_id")
@click.option("--morning", "morning_time", default=None, help="Morning reminder time, HH:MM")
@click.option("--evening", "evening_time", default=None, help="Evening reminder time, HH:MM")
@click.option("--morning-on/--morning-off", "morning_enabled", default=None)
@click.option("--evening-on/--evening-off", "evening_enabled", default=None)
@click.option("--timezone", "tz_text", default=None, help='UTC offset in hours, e.g. "3" or "UTC-5"')
@click.option("--location", default=None, help='Coordinates "LAT,LON"; the offset is looked up from them')
def settings(chat_id: str, tz_text: str | None, location: str | None, **changes) -> None:
    """Show or change a user's reminder settings (creates the user if needed)."""

    ctx = _context()
    user = ctx.user_repo.get_or_create(chat_id)
    try:
        user = ctx.settings_service.update_reminders(
            user.id, timezone=tz_text, location=location, **changes
        )
    except HabitKeeperError as exc:
        raise click.ClickException(str(exc)) from exc

    offset = user.timezone_offset if user.timezone_offset is not None else ctx.config.TZ_OFFSET
    click.echo(f"timezone: UTC{offset / 60:+g}")
    for channel in ReminderChannel:
        at = next_reminder_time(user, channel)
        click.echo(f"{channel.value}: {at or 'off'}")


@main.command("add")
@click.argument("chat_id")
@click.argument("name")
@click.option("--emoji", default="")
@click.option("--every", "every_days", type=int, default=None, help="Repeat every N days")
@click.option("--weekdays", default=None, help="Comma separated weekdays, 0 = Sunday")
def add(chat_id: str, name: str, emoji: str, every_days: int | None, weekdays: str | None) -> None:
    """Create a habit (daily unless --every or --weekdays is given)."""

    if every_days is not None and weekdays is not None:
        raise click.UsageError("Use either --every or --weekdays, not both")
    ctx = _context()
    user = ctx.user_repo.get_or_create(chat_id)
    if every_days is not None:
        kind = FrequencyType.INTERVAL
    elif weekdays is not None:
        kind = FrequencyType.WEEKDAYS
    else:
        kind = FrequencyType.DAILY
    try:
        habit = ctx.habit_service.create_habit(
            user.id,
            name,
            emoji=emoji,
            frequency_type=kind,
            frequency_days=every_days or 1,
            weekdays=weekdays,
        )
    except HabitKeeperError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created habit {habit.id}: {habit.name} ({schedule_label(rule_for_habit(habit))})")


@main.command("stats")
@click.argument("chat_id")
def stats(chat_id: str) -> None:
    """Print streaks and completion rates for a user."""

    ctx = _context()
    user = ctx.user_repo.get_by_chat_id(chat_id)
    if user is None:
        raise click.ClickException(f"No user with chat id {chat_id}")
    summary = ctx.habit_service.user_stats(user)
    click.echo(format_stats_summary(summary, ctx.config.STATS_WINDOW_DAYS))


@main.command("week")
@click.argument("chat_id")
@click.option("--offset-weeks", type=int, default=0, help="0 = this week, -1 = last week")
def week(chat_id: str, offset_weeks: int) -> None:
    """Print the weekly done/missed grid for a user."""

    ctx = _context()
    user = ctx.user_repo.get_by_chat_id(chat_id)
    if user is None:
        raise click.ClickException(f"No user with chat id {chat_id}")
    today = ctx.habit_service.local_today(user)
    monday = week_start_monday(today, offset_weeks)
    rows = ctx.weekly_service.weekly_rows(user.id, monday, today)
    click.echo(render_week(rows, monday))


@main.command("toggle")
@click.argument("chat_id")
@click.argument("habit_id", type=int)
@click.option("--date", "day", default=None, help="YYYY-MM-DD (default: the user's today)")
def toggle(chat_id: str, habit_id: int, day: str | None) -> None:
    """Flip a habit's completion mark."""

    ctx = _context()
    user = ctx.user_repo.get_by_chat_id(chat_id)
    if user is None:
        raise click.ClickException(f"No user with chat id {chat_id}")
    habit = ctx.habit_repo.get_by_id(habit_id)
    if habit is None or habit.user_id != user.id:
        raise click.ClickException(f"User {chat_id} has no habit {habit_id}")
    try:
        if day is None:
            completed = ctx.habit_service.toggle_today(habit_id, user)
            day = format_date(ctx.habit_service.local_today(user))
        else:
            completed = ctx.habit_repo.toggle_completion(habit_id, to_date(day))
    except (HabitKeeperError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"{day}: {'done' if completed else 'not done'}")


if __name__ == "__main__":  # pragma: no cover
    main()
