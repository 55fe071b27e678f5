"""Reminder sweep: exactly-once-per-local-day morning and evening reminders.

Each tick evaluates every enabled (user, channel) pair independently:

* the watermark (last handled local date) equal to the user's local today
  means the channel is done for the day;
* otherwise the reminder goes out once local time has reached the configured
  ``HH:MM`` ("at or after", never "exactly at"), so late or missed ticks catch
  up on the next one before local midnight;
* the watermark is written only after delivery is confirmed.

Only one pass may run at a time; a tick that arrives while another pass holds
the lock is dropped.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from ..delivery import ReminderDelivery
from ..domain.channels import ReminderChannel
from ..domain.clock import (
    DEFAULT_OFFSET_MINUTES,
    format_date,
    local_date,
    local_minutes,
    minutes_of_day,
    resolve_offset,
    to_date,
    utc_now,
)
from ..domain.repositories import UserRepository
from ..errors import DeliveryError
from ..models.user import User
from .habits import HabitService, HabitStatus

logger = logging.getLogger("habitkeeper.services.reminders")


class SweepDecision(str, Enum):
    IDLE = "idle"
    SKIP = "skip"
    SEND = "send"


@dataclass(slots=True)
class ReminderItem:
    name: str
    emoji: str
    schedule: str
    completed: bool = False

    @classmethod
    def from_status(cls, status: HabitStatus) -> "ReminderItem":
        return cls(
            name=status.name,
            emoji=status.emoji,
            schedule=status.schedule,
            completed=status.completed_today,
        )

    @property
    def title(self) -> str:
        return f"{self.emoji} {self.name}".strip()


@dataclass(slots=True)
class MorningPayload:
    """Habits due today, sent at the start of the day."""

    local_date: date
    items: list[ReminderItem]

    def render(self) -> str:
        lines = ["Good morning!", "", "Here are your habits for today:", ""]
        lines.extend(f"- {item.title} ({item.schedule})" for item in self.items)
        lines.extend(["", "Have a great day!"])
        return "\n".join(lines)


@dataclass(slots=True)
class EveningPayload:
    """Today's due habits with their completion status, sent to close the day."""

    local_date: date
    items: list[ReminderItem]

    @property
    def all_completed(self) -> bool:
        return all(item.completed for item in self.items)

    def render(self) -> str:
        lines = ["Time to wrap up the day!", ""]
        if self.all_completed:
            lines.append("Every habit is done. Keep it up!")
        else:
            lines.append("Mark what you finished today:")
        lines.append("")
        lines.extend(f"[{'x' if item.completed else ' '}] {item.title}" for item in self.items)
        return "\n".join(lines)


ReminderPayload = Union[MorningPayload, EveningPayload]


@dataclass
class SweepReport:
    """Outcome counters for one pass over one channel."""

    channel: ReminderChannel
    now: datetime
    checked: int = 0
    sent: int = 0
    skipped: int = 0
    idle: int = 0
    suppressed: int = 0
    failed: int = 0
    errors: int = 0
    dropped: bool = False
    stopped: bool = False
    sent_to: list[int] = field(default_factory=list)


def decide(
    user: User,
    channel: Union[ReminderChannel, str],
    now: datetime,
    default_offset: int = DEFAULT_OFFSET_MINUTES,
) -> tuple[SweepDecision, date]:
    """Pure per-(user, channel) decision for the instant ``now``.

    Returns the decision together with the user's local today, which is the
    watermark value to record after a successful send.
    """

    channel = ReminderChannel.coerce(channel)
    offset = resolve_offset(user.timezone_offset, default_offset)
    today = local_date(now, offset)

    if not getattr(user, channel.enabled_field):
        return SweepDecision.IDLE, today
    watermark = getattr(user, channel.watermark_field)
    if watermark is not None and to_date(watermark) == today:
        return SweepDecision.SKIP, today

    target = minutes_of_day(getattr(user, channel.time_field))
    if local_minutes(now, offset) >= target:
        return SweepDecision.SEND, today
    return SweepDecision.SKIP, today


def next_reminder_time(user: User, channel: Union[ReminderChannel, str]) -> Optional[str]:
    """Configured ``HH:MM`` for a channel, or None when it is switched off."""

    channel = ReminderChannel.coerce(channel)
    if not getattr(user, channel.enabled_field):
        return None
    return getattr(user, channel.time_field)


class ReminderSweep:
    """Runs reminder passes against the user store and a delivery channel."""

    def __init__(
        self,
        user_repo: UserRepository,
        habit_service: HabitService,
        delivery: ReminderDelivery,
        *,
        default_offset: int = DEFAULT_OFFSET_MINUTES,
    ):
        self.user_repo = user_repo
        self.habit_service = habit_service
        self.delivery = delivery
        self.default_offset = default_offset
        self._lock = threading.Lock()
        self._stop = threading.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def request_stop(self) -> None:
        """Ask a running pass to stop before the next user."""
        self._stop.set()

    def resume(self) -> None:
        self._stop.clear()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------
    def run_sweep_tick(
        self,
        now: Optional[datetime] = None,
        channel: Union[ReminderChannel, str] = ReminderChannel.MORNING,
    ) -> SweepReport:
        """Evaluate every enabled user for ``channel`` at ``now``."""

        channel = ReminderChannel.coerce(channel)
        now = now or utc_now()
        report = SweepReport(channel=channel, now=now)

        if not self._lock.acquire(blocking=False):
            logger.warning(
                "Reminder sweep already running; dropping tick", extra={"channel": channel.value}
            )
            report.dropped = True
            return report

        try:
            try:
                users = self.user_repo.list_enabled_users(channel)
            except Exception as exc:
                logger.error(f"Could not load users for {channel.value} sweep: {exc}", exc_info=True)
                report.errors += 1
                return report

            for user in users:
                if self._stop.is_set():
                    report.stopped = True
                    logger.info("Reminder sweep stopped early", extra={"channel": channel.value})
                    break
                report.checked += 1
                try:
                    self._process_user(user, channel, now, report)
                except Exception as exc:
                    report.errors += 1
                    logger.error(
                        f"Reminder sweep failed for user {user.id}: {exc}",
                        exc_info=True,
                        extra={"user_id": user.id, "channel": channel.value},
                    )
        finally:
            self._lock.release()

        logger.debug(
            "Reminder sweep finished",
            extra={"channel": channel.value, "checked": report.checked, "sent": report.sent},
        )
        return report

    def _process_user(
        self, user: User, channel: ReminderChannel, now: datetime, report: SweepReport
    ) -> None:
        decision, today = decide(user, channel, now, self.default_offset)
        if decision is SweepDecision.IDLE:
            report.idle += 1
            return
        if decision is SweepDecision.SKIP:
            report.skipped += 1
            return

        payload = self.build_payload(user, channel, today)
        log_extra = {"user_id": user.id, "channel": channel.value, "local_date": format_date(today)}
        if payload is None:
            # Nothing due today: no message, but the day counts as handled.
            self.user_repo.set_watermark(user.id, channel, today)
            report.suppressed += 1
            logger.info("No habits due; reminder suppressed", extra=log_extra)
            return

        if not self._deliver(user, channel, payload):
            report.failed += 1
            return

        self.user_repo.set_watermark(user.id, channel, today)
        report.sent += 1
        report.sent_to.append(user.id)
        logger.info("Reminder sent", extra=log_extra)

    def build_payload(
        self, user: User, channel: Union[ReminderChannel, str], today: date
    ) -> Optional[ReminderPayload]:
        """Channel payload for ``today``, or None when no habit is due."""

        channel = ReminderChannel.coerce(channel)
        due = self.habit_service.today_habits(user, today)
        if not due:
            return None
        items = [ReminderItem.from_status(status) for status in due]
        if channel is ReminderChannel.MORNING:
            return MorningPayload(local_date=today, items=items)
        return EveningPayload(local_date=today, items=items)

    def _deliver(self, user: User, channel: ReminderChannel, payload: ReminderPayload) -> bool:
        try:
            delivered = self.delivery.send(user, channel, payload)
        except DeliveryError as exc:
            logger.warning(
                f"Delivery of {channel.value} reminder to user {user.id} failed: {exc}",
                extra={"user_id": user.id, "channel": channel.value},
            )
            return False
        if not delivered:
            logger.warning(
                f"Delivery of {channel.value} reminder to user {user.id} was not confirmed",
                extra={"user_id": user.id, "channel": channel.value},
            )
        return bool(delivered)


__all__ = [
    "EveningPayload",
    "MorningPayload",
    "ReminderItem",
    "ReminderPayload",
    "ReminderSweep",
    "SweepDecision",
    "SweepReport",
    "decide",
    "next_reminder_time",
]
