"""
Session lifecycle engine.

Applies the training and rental rules on top of the record store. All
operations take an optional ``now`` so callers (and the scheduler) can
evaluate them against a fixed clock.
"""

import logging
from dataclasses import replace

from trainer_bot.training.errors import InsufficientRentalTime, NotInitialized, RentalInactive
from trainer_bot.training.models import NpcKind, RecordStatus, TrainingRecord
from trainer_bot.training.policy import (
    TimePolicy,
    end_time_for,
    hours_between,
    is_rental_active,
    remaining_label,
    utcnow,
)

logger = logging.getLogger(__name__)


class TrainingEngine:
    """Start, stop and rent operations over the training store"""

    def __init__(self, store, policy: TimePolicy = None):
        self.store = store
        self.policy = policy or TimePolicy()

    def _require(self, user_id: int, kind: NpcKind) -> TrainingRecord:
        record = self.store.get(user_id, kind)
        if record is None:
            raise NotInitialized(user_id, kind)
        return record

    def init_user(self, user_id: int):
        self.store.upsert_defaults(user_id)

    def start_session(self, user_id: int, kind: NpcKind, now=None) -> TrainingRecord:
        now = now or utcnow()
        record = self._require(user_id, kind)

        if not is_rental_active(record, now):
            raise RentalInactive(kind)

        # At least one cycle must complete before the rental ends
        hours_left = hours_between(now, record.rental_end_time)
        cycle_hours = self.policy.cycle_interval(kind)
        if hours_left < cycle_hours:
            raise InsufficientRentalTime(kind, cycle_hours, hours_left)

        duration = self.policy.session_duration(kind)
        record = replace(
            record,
            start_time=now,
            duration_hours=duration,
            end_time=end_time_for(now, duration),
            is_active=True,
            last_notified_time=None,
        )
        self.store.write(record)

        estimate = self.estimate_interruption(record, now)
        if estimate is not None:
            logger.warning(
                f"⚠️ Training for NPC {kind.value} (user {user_id}) will be interrupted by rental expiry. "
                f"Estimated progress: {estimate.percent}%"
            )

        logger.info(f"   ✅ Training started: user {user_id} NPC {kind.value}")
        return record

    def stop_session(self, user_id: int, kind: NpcKind, now=None):
        record = self.store.get(user_id, kind)
        if record is None:
            logger.warning(f"Stop ignored: no NPC {kind.value} row for user {user_id}")
            return None

        if record.is_active:
            record = replace(record, is_active=False)
            self.store.write(record)

        logger.info(f"   ⏹️  Training stopped: user {user_id} NPC {kind.value}")
        return record

    def set_rental(self, user_id: int, kind: NpcKind, now=None) -> TrainingRecord:
        now = now or utcnow()
        record = self._require(user_id, kind)

        record = replace(
            record,
            rental_start_time=now,
            rental_end_time=now + self.policy.rental_duration,
            rental_expiry_notified_time=None,
        )
        self.store.write(record)

        logger.info(f"   🏠 Rental set: user {user_id} NPC {kind.value} ({self.policy.rental_days:g} days)")
        return record

    def mark_completion_notified(self, record: TrainingRecord, now=None) -> TrainingRecord:
        record = replace(record, last_notified_time=now or utcnow())
        self.store.write(record)
        return record

    def mark_rental_warning_sent(self, record: TrainingRecord, now=None) -> TrainingRecord:
        record = replace(record, rental_expiry_notified_time=now or utcnow())
        self.store.write(record)
        return record

    def estimate_interruption(self, record: TrainingRecord, now=None):
        """Progress expected before the rental cuts the session short, or None when it finishes first"""
        if record.end_time is None or record.rental_end_time is None:
            return None
        if record.end_time <= record.rental_end_time:
            return None

        now = now or utcnow()
        return self.policy.estimate_progress(record.kind, hours_between(now, record.rental_end_time))

    def status(self, user_id: int, now=None):
        now = now or utcnow()
        return [self._status_for(record, now) for record in self.store.get_for_user(user_id)]

    def _status_for(self, record: TrainingRecord, now) -> RecordStatus:
        rental_active = is_rental_active(record, now)
        status = RecordStatus(record=record, rental_active=rental_active)

        if rental_active:
            status.rental_remaining = remaining_label(record.rental_end_time, now)

            if not record.is_active:
                hours_left = hours_between(now, record.rental_end_time)
                cycle_hours = self.policy.cycle_interval(record.kind)
                if hours_left < cycle_hours:
                    status.insufficient_time = True
                    status.required_cycle_hours = cycle_hours
                elif hours_left < self.policy.session_duration(record.kind):
                    status.estimate = self.policy.estimate_progress(record.kind, hours_left)

        if record.is_active and record.end_time is not None:
            status.training_remaining = remaining_label(record.end_time, now)

        return status
