"""
Time & duration policy for NPC training and rentals.

Everything here is pure given ``now``; ``utcnow`` is the single clock
read used by callers that do not supply their own time.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from trainer_bot.training.models import NpcKind, ProgressEstimate

# Training duration in hours
TRAINING_DURATIONS = {
    NpcKind.C: 50,
    NpcKind.B: 75,
    NpcKind.A: 250,
}

# Hours between each progress gain
TRAINING_CYCLES = {
    NpcKind.C: 2,  # 4% every 2 hours
    NpcKind.B: 3,  # 4% every 3 hours
    NpcKind.A: 5,  # 2% every 5 hours
}

PERCENT_PER_CYCLE = {
    NpcKind.C: 4,
    NpcKind.B: 4,
    NpcKind.A: 2,
}

NPC_RENTAL_DAYS = 15
RENTAL_WARNING_HOURS = 24
SCHEDULER_INTERVAL_SECONDS = 2 * 60

# Test mode: minutes instead of hours
ACCELERATED_DURATIONS = {
    NpcKind.C: 1 / 60,
    NpcKind.B: 2 / 60,
    NpcKind.A: 3 / 60,
}

# Same number of cycles per session as the normal durations
ACCELERATED_CYCLES = {
    NpcKind.C: (1 / 60) / 25,
    NpcKind.B: (2 / 60) / 25,
    NpcKind.A: (3 / 60) / 50,
}

ACCELERATED_RENTAL_DAYS = 5 / (24 * 60)  # 5 minutes
ACCELERATED_WARNING_HOURS = 1 / 60  # 1 minute
ACCELERATED_INTERVAL_SECONDS = 10

FINISHED = "finished"


@dataclass(frozen=True)
class TimePolicy:
    """Durations and intervals for one timer mode (normal or accelerated)"""

    accelerated: bool = False

    def session_duration(self, kind: NpcKind) -> float:
        table = ACCELERATED_DURATIONS if self.accelerated else TRAINING_DURATIONS
        return float(table[kind])

    def cycle_interval(self, kind: NpcKind) -> float:
        table = ACCELERATED_CYCLES if self.accelerated else TRAINING_CYCLES
        return float(table[kind])

    def percent_per_cycle(self, kind: NpcKind) -> int:
        return PERCENT_PER_CYCLE[kind]

    @property
    def rental_days(self) -> float:
        return ACCELERATED_RENTAL_DAYS if self.accelerated else NPC_RENTAL_DAYS

    @property
    def rental_duration(self) -> timedelta:
        return timedelta(days=self.rental_days)

    @property
    def warning_lead_hours(self) -> float:
        return ACCELERATED_WARNING_HOURS if self.accelerated else RENTAL_WARNING_HOURS

    @property
    def tick_seconds(self) -> int:
        return ACCELERATED_INTERVAL_SECONDS if self.accelerated else SCHEDULER_INTERVAL_SECONDS

    @property
    def mode_name(self) -> str:
        return "TEST MODE" if self.accelerated else "NORMAL"

    def toggled(self) -> "TimePolicy":
        return TimePolicy(accelerated=not self.accelerated)

    def estimate_progress(self, kind: NpcKind, hours_available: float) -> ProgressEstimate:
        """Cycles (and percent) that complete within ``hours_available``"""
        cycles = max(0, math.floor(hours_available / self.cycle_interval(kind)))
        return ProgressEstimate(cycles=cycles, percent=cycles * self.percent_per_cycle(kind))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def end_time_for(start: datetime, duration_hours: float) -> datetime:
    return start + timedelta(hours=duration_hours)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def is_past(target: datetime, now: datetime) -> bool:
    return now >= target


def is_rental_active(record, now: datetime) -> bool:
    if not record.has_rental:
        return False
    return now < record.rental_end_time


def remaining_label(target: datetime, now: datetime) -> str:
    """
    Format remaining time like "2d 5h 30m", "12h 34m" or "45m".

    Zero units are dropped, but a minutes part is always kept when it is
    the only one left ("0m" under a minute). Past targets are "finished".
    """
    diff_seconds = (target - now).total_seconds()
    if diff_seconds <= 0:
        return FINISHED

    total_minutes = int(diff_seconds // 60)
    total_hours = total_minutes // 60
    days = total_hours // 24
    hours = total_hours % 24
    minutes = total_minutes % 60

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0 or not parts:
        parts.append(f"{minutes}m")

    return " ".join(parts)


def format_date(value) -> str:
    if value is None:
        return "N/A"
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def format_hours(hours: float, accelerated: bool = False) -> str:
    """Human duration for a number of hours, in minutes under test mode"""
    if accelerated or hours < 1:
        minutes = round(hours * 60, 2)
        return f"{minutes:g} minute" if minutes == 1 else f"{minutes:g} minutes"
    return f"{hours:g} hours"
