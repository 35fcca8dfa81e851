from datetime import datetime, timezone

import pytest

from trainer_bot.core.database import TrainingStore
from trainer_bot.training.engine import TrainingEngine
from trainer_bot.training.errors import NotificationDeliveryError
from trainer_bot.training.policy import TimePolicy
from trainer_bot.training.scheduler import NotificationScheduler
from trainer_bot.training.service import TrainerService

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
USER_ID = 7172542482
OTHER_USER_ID = 7860400654


class RecordingNotifier:
    """Notifier double that records deliveries and fails for selected users"""

    def __init__(self):
        self.sent = []
        self.fail_for = set()
        self.attempts = 0

    async def send(self, notification):
        self.attempts += 1
        if notification.user_id in self.fail_for:
            raise NotificationDeliveryError(f"blocked by user {notification.user_id}")
        self.sent.append(notification)


class RecordedJob:
    def __init__(self, callback, interval, first, name):
        self.callback = callback
        self.interval = interval
        self.first = first
        self.name = name
        self.removed = False

    def schedule_removal(self):
        self.removed = True


class RecordingJobQueue:
    """JobQueue double that records repeating jobs instead of timing them"""

    def __init__(self):
        self.jobs = []

    def run_repeating(self, callback, interval, first=None, name=None):
        job = RecordedJob(callback, interval, first, name)
        self.jobs.append(job)
        return job

    @property
    def active_jobs(self):
        return [job for job in self.jobs if not job.removed]


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "training.db")


@pytest.fixture
def store(db_path):
    return TrainingStore(db_path)


@pytest.fixture
def engine(store):
    return TrainingEngine(store, TimePolicy())


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def job_queue():
    return RecordingJobQueue()


@pytest.fixture
def scheduler(engine, notifier, job_queue):
    return NotificationScheduler(engine, notifier, job_queue)


@pytest.fixture
def service(engine, scheduler):
    return TrainerService(engine, scheduler)
