"""
Notification scheduler.

Sweeps every training row from a repeating python-telegram-bot JobQueue job
and decides which of the three notifications (rental expiry warning, rental
expired pause, training complete) a row needs. Idempotency markers are
written before the send is attempted, so each notification is delivered at
most once per state.
"""

import asyncio
import logging

from trainer_bot.training.errors import TrainerError
from trainer_bot.training.models import Notification, NotificationKind
from trainer_bot.training.policy import hours_between, is_past, is_rental_active, utcnow

logger = logging.getLogger(__name__)

JOB_NAME = "notification-sweep"


class NotificationScheduler:
    """Periodic sweep over all training rows, driven by the bot's JobQueue"""

    def __init__(self, engine, notifier, job_queue=None):
        self.engine = engine
        self.notifier = notifier
        self.job_queue = job_queue
        self.period_seconds = None
        self.last_sweep_at = None
        self.sweep_count = 0
        self._job = None
        self._sweep_lock = asyncio.Lock()

    @property
    def is_running(self):
        return self._job is not None and not self._job.removed

    def start(self):
        """Register the repeating sweep; the first one runs immediately"""
        if self.is_running:
            logger.info("Scheduler already running")
            return
        if self.job_queue is None:
            raise RuntimeError(
                "JobQueue is not available. Install python-telegram-bot[job-queue] to run the scheduler."
            )

        policy = self.engine.policy
        self.period_seconds = policy.tick_seconds
        self._job = self.job_queue.run_repeating(
            self._tick,
            interval=self.period_seconds,
            first=0,
            name=JOB_NAME,
        )
        logger.info(f"⏰ Starting scheduler [{policy.mode_name}] (checking every {self.period_seconds}s)")

    async def stop(self):
        """Cancel future ticks, letting an in-flight sweep finish"""
        if self._job is None:
            return

        self._job.schedule_removal()
        self._job = None
        async with self._sweep_lock:
            pass
        logger.info("Scheduler stopped")

    async def restart(self):
        await self.stop()
        self.start()

    async def _tick(self, context):
        try:
            await self.sweep()
        except Exception as e:
            logger.error(f"❌ Scheduler tick failed: {e}")

    async def sweep(self, now=None):
        """Run one tick over all rows and wait for every delivery it triggers"""
        async with self._sweep_lock:
            now = now or utcnow()
            self.last_sweep_at = now
            self.sweep_count += 1

            try:
                records = self.engine.store.get_all()
            except TrainerError as e:
                logger.error(f"❌ Error checking trainings: {e}")
                return []

            notifications = []
            deliveries = []
            for record in records:
                try:
                    decided = self._evaluate(record, now)
                except TrainerError as e:
                    logger.error(f"❌ Error checking user {record.user_id} NPC {record.kind.value}: {e}")
                    continue

                for notification in decided:
                    notifications.append(notification)
                    deliveries.append(asyncio.create_task(self._deliver(notification)))

            if deliveries:
                await asyncio.gather(*deliveries)

            return notifications

    def _evaluate(self, record, now):
        policy = self.engine.policy
        decided = []

        if record.rental_end_time is not None and record.rental_expiry_notified_time is None:
            hours_left = hours_between(now, record.rental_end_time)
            if 0 < hours_left <= policy.warning_lead_hours:
                logger.info(f"User {record.user_id} - NPC {record.kind.value} rental expiring soon - sending warning")
                record = self.engine.mark_rental_warning_sent(record, now)
                decided.append(Notification(
                    user_id=record.user_id,
                    kind=record.kind,
                    type=NotificationKind.RENTAL_EXPIRY_WARNING,
                    hours_remaining=hours_left,
                ))

        if not record.is_active:
            return decided

        if not is_rental_active(record, now):
            logger.info(f"User {record.user_id} - NPC {record.kind.value} rental expired - pausing training")
            self.engine.stop_session(record.user_id, record.kind, now)
            decided.append(Notification(
                user_id=record.user_id,
                kind=record.kind,
                type=NotificationKind.RENTAL_EXPIRED_PAUSE,
            ))
            return decided

        if record.end_time is None or not is_past(record.end_time, now):
            return decided

        if record.last_notified_time is not None:
            return decided

        self.engine.mark_completion_notified(record, now)
        decided.append(Notification(
            user_id=record.user_id,
            kind=record.kind,
            type=NotificationKind.SESSION_COMPLETE,
        ))
        logger.info(f"User {record.user_id} - NPC {record.kind.value} training finished - sending reminder")
        return decided

    async def _deliver(self, notification):
        try:
            await self.notifier.send(notification)
        except Exception as e:
            logger.error(
                f"❌ Failed to send {notification.type.value} to user {notification.user_id} "
                f"for NPC {notification.kind.value}: {e}"
            )

    def snapshot(self):
        return {
            "running": self.is_running,
            "mode": self.engine.policy.mode_name,
            "period_seconds": self.period_seconds,
            "sweep_count": self.sweep_count,
            "last_sweep_at": self.last_sweep_at.isoformat() if self.last_sweep_at else None,
        }
