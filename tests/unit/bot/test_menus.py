"""Tests for the message text builders."""

from datetime import timedelta

import pytest

from trainer_bot.bot import menus
from trainer_bot.training.engine import TrainingEngine
from trainer_bot.training.models import Notification, NotificationKind, NpcKind, ProgressEstimate, TrainingRecord
from trainer_bot.training.policy import TimePolicy

USER_ID = 9009


def test_welcome_marks_test_mode():
    assert "TEST MODE ACTIVE" in menus.welcome_text(TimePolicy(accelerated=True))
    assert "TEST MODE ACTIVE" not in menus.welcome_text(TimePolicy())


def test_status_text_for_active_training(engine, t0):
    engine.init_user(USER_ID)
    engine.set_rental(USER_ID, NpcKind.C, t0)
    engine.start_session(USER_ID, NpcKind.C, t0)

    text = menus.status_text(engine.status(USER_ID, t0 + timedelta(hours=1)))

    assert "NPC C:\n• Rental: ✅ Active" in text
    assert "• Rental expires in: 14d 23h" in text
    assert "• Training ends in: 2d 1h" in text
    assert "NPC A:\n• Rental: ❌ Expired/Not set" in text


def test_status_text_warns_about_short_rental(store, t0):
    engine = TrainingEngine(store)
    engine.init_user(USER_ID)
    engine.set_rental(USER_ID, NpcKind.A, t0 + timedelta(hours=4) - timedelta(days=15))

    text = menus.status_text(engine.status(USER_ID, t0))

    assert "needs 5h minimum" in text


def test_training_started_with_estimate(t0):
    record = TrainingRecord(
        user_id=USER_ID,
        kind=NpcKind.B,
        start_time=t0,
        duration_hours=75,
        end_time=t0 + timedelta(hours=75),
        is_active=True,
    )

    text = menus.training_started_text(record, ProgressEstimate(3, 12), t0, TimePolicy())

    assert "• Duration: 75 hours" in text
    assert "approximately 12% (3 cycles)" in text


def test_rental_set_in_test_mode_shows_minutes(t0):
    record = TrainingRecord(user_id=USER_ID, kind=NpcKind.C, rental_end_time=t0)

    text = menus.rental_set_text(record, TimePolicy(accelerated=True))

    assert "• Rental period: 5 minutes" in text


def test_welcome_lists_accelerated_durations():
    text = menus.welcome_text(TimePolicy(accelerated=True))

    assert "NPC C → Trains C-level pets (1 minute)" in text
    assert "NPC A → Trains A-level pets (3 minutes)" in text
    assert "• Duration: 5 minutes" in text
    assert "hours" not in text


def test_welcome_lists_normal_durations():
    text = menus.welcome_text(TimePolicy())

    assert "NPC B → Trains B-level pets (75 hours)" in text
    assert "• Duration: 15 days" in text


@pytest.mark.parametrize(
    "hours, expected",
    [
        (1 / 60, "Time remaining: 1 minute\n"),
        (0.5, "Time remaining: 30 minutes\n"),
        (1.2, "Time remaining: 1 hour\n"),
        (20.4, "Time remaining: 20 hours\n"),
    ],
)
def test_expiry_warning_units(hours, expected):
    notification = Notification(USER_ID, NpcKind.C, NotificationKind.RENTAL_EXPIRY_WARNING, hours)

    assert expected in menus.notification_text(notification)
