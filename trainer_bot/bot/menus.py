from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from trainer_bot.training.errors import (
    AcceleratedModeForbidden,
    InsufficientRentalTime,
    InvalidCallbackData,
    NotInitialized,
    RentalInactive,
)
from trainer_bot.training.models import CallbackAction, CallbackToken, NotificationKind, NpcKind
from trainer_bot.training.policy import (
    ACCELERATED_DURATIONS,
    ACCELERATED_INTERVAL_SECONDS,
    NPC_RENTAL_DAYS,
    SCHEDULER_INTERVAL_SECONDS,
    TRAINING_DURATIONS,
    format_date,
    format_hours,
    remaining_label,
)

RENTAL_COST = "140 FCOINS"

NOT_AUTHORIZED_TEXT = "❌ Sorry, you are not authorized to use this bot."
GENERIC_ERROR_TEXT = "❌ Error processing request. Please try again."


def _rental_period(policy):
    if policy.accelerated:
        return format_hours(policy.rental_days * 24, True)
    return f"{NPC_RENTAL_DAYS} days"


def _session_length(policy, kind):
    return format_hours(policy.session_duration(kind), policy.accelerated)


def welcome_text(policy):
    mode = "\n🧪 TEST MODE ACTIVE - Accelerated timers for testing\n" if policy.accelerated else ""
    rental = _rental_period(policy)

    return f"""
🎮 Welcome to Pet Training Bot!
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
{mode}
👋 Hello! I'll help you manage your NPC pet trainers and send you reminders when training completes.

📊 YOUR NPCs
Each NPC type trains different pet levels:
• NPC C → Trains C-level pets ({_session_length(policy, NpcKind.C)})
• NPC B → Trains B-level pets ({_session_length(policy, NpcKind.B)})
• NPC A → Trains A-level pets ({_session_length(policy, NpcKind.A)})

🏠 RENTAL SYSTEM
• Cost: {RENTAL_COST} per NPC
• Duration: {rental}
• You must rent an NPC before training!

⚡ QUICK START
1️⃣ Rent an NPC: /rental_c
2️⃣ Start training: /train_c
3️⃣ Wait for notification! 🔔

📝 COMMANDS

Training:
/train_c /train_b /train_a - Start training
/stop_c /stop_b /stop_a - Stop training

Rental:
/rental_c /rental_b /rental_a - Rent NPC ({rental})

Info:
/status - View all your trainings
/testmode - Toggle test mode
/start - Show this message

💡 TIP: I'll automatically pause training if your NPC rental expires!

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
Ready to train some pets? 🐾""".strip()


def status_text(statuses):
    if not statuses:
        return "📋 No training data found. Use /start to initialize."

    text = "📊 Training Status\n\n"

    for status in statuses:
        record = status.record
        rental_icon = "✅" if status.rental_active else "❌"

        text += f"NPC {record.kind.value}:\n"
        text += f"• Rental: {rental_icon} {'Active' if status.rental_active else 'Expired/Not set'}\n"

        if record.rental_end_time is not None:
            if status.rental_active:
                text += f"• Rental expires in: {status.rental_remaining}\n"
                if status.insufficient_time:
                    text += f"⚠️ Not enough time for training (needs {status.required_cycle_hours:g}h minimum)\n"
                elif status.estimate is not None:
                    text += (
                        f"ℹ️ Can gain {status.estimate.percent}% "
                        f"({status.estimate.cycles} cycles) before expiry\n"
                    )
            else:
                text += f"• Rental expired: {format_date(record.rental_end_time)}\n"

        text += f"• Training: {'Active' if record.is_active else 'Inactive'}\n"

        if record.is_active and record.end_time is not None:
            text += f"• Training ends in: {status.training_remaining}\n"
            text += f"• Training end time: {format_date(record.end_time)}\n"

        text += "\n"

    return text.strip()


def training_started_text(record, estimate, now, policy, reset=False):
    duration = format_hours(record.duration_hours, policy.accelerated)
    title = "reset" if reset else "started"

    text = f"✅ Training {title} for NPC {record.kind.value}!\n\n"
    text += f"• Duration: {duration}\n"
    text += f"• Ends in: {remaining_label(record.end_time, now)}\n"
    text += f"• End time: {format_date(record.end_time)}\n"

    if estimate is not None:
        text += "\n⚠️ Note: NPC rental expires before training completes.\n"
        text += (
            f"You will gain approximately {estimate.percent}% "
            f"({estimate.cycles} cycles) before expiration.\n"
        )

    text += "\nI'll remind you when training is complete! 🎉"
    return text


def training_stopped_text(kind):
    return f"✅ Training stopped for NPC {kind.value}."


def tracking_stopped_text(kind):
    return f"""
⏹️ Tracking stopped for NPC {kind.value}

Training has been deactivated.
Use /train_{kind.command_suffix} to start a new training session.""".strip()


def rental_set_text(record, policy):
    period = _rental_period(policy)

    return f"""
✅ NPC {record.kind.value} rental set!

• Rental period: {period}
• Expires: {format_date(record.rental_end_time)}
• Cost: {RENTAL_COST}

Make sure to renew before expiry! ⏰""".strip()


def test_mode_text(policy):
    if policy.accelerated:
        return f"""
🧪 TEST MODE ENABLED

Training durations:
• NPC C: {format_hours(ACCELERATED_DURATIONS[NpcKind.C])}
• NPC B: {format_hours(ACCELERATED_DURATIONS[NpcKind.B])}
• NPC A: {format_hours(ACCELERATED_DURATIONS[NpcKind.A])}

Scheduler: checks every {ACCELERATED_INTERVAL_SECONDS} seconds
Rental: {format_hours(policy.rental_days * 24)}

Perfect for testing reminders locally!
Use /testmode again to disable.""".strip()

    return f"""
✅ TEST MODE DISABLED

Back to normal durations:
• NPC C: {TRAINING_DURATIONS[NpcKind.C]} hours
• NPC B: {TRAINING_DURATIONS[NpcKind.B]} hours
• NPC A: {TRAINING_DURATIONS[NpcKind.A]} hours

Scheduler: checks every {SCHEDULER_INTERVAL_SECONDS // 60} minutes
Rental: {NPC_RENTAL_DAYS} days""".strip()


def error_message(error):
    """User-facing text for a training error"""
    if isinstance(error, NotInitialized):
        return "❌ Your NPCs are not set up yet. Use /start first."
    if isinstance(error, RentalInactive):
        return (
            f"❌ NPC {error.kind.value} rental is not active.\n"
            f"Use /rental_{error.kind.command_suffix} to rent it before training."
        )
    if isinstance(error, InsufficientRentalTime):
        return (
            f"❌ Not enough rental time left for NPC {error.kind.value}.\n"
            f"Training needs at least {error.required_hours:g}h of rental for one cycle.\n"
            f"Use /rental_{error.kind.command_suffix} to renew the rental."
        )
    if isinstance(error, InvalidCallbackData):
        return "❌ Invalid callback data"
    if isinstance(error, AcceleratedModeForbidden):
        return "⚠️ Test mode cannot be enabled in production environment."
    return GENERIC_ERROR_TEXT


def _expiry_time_text(hours):
    if hours < 1:
        value, unit = max(1, round(hours * 60)), "minute"
    else:
        value, unit = round(hours), "hour"
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def notification_text(notification):
    kind = notification.kind
    suffix = kind.command_suffix

    if notification.type == NotificationKind.RENTAL_EXPIRY_WARNING:
        return (
            f"⚠️ NPC {kind.value} rental expiring soon!\n\n"
            f"Time remaining: {_expiry_time_text(notification.hours_remaining or 0)}\n\n"
            f"Use /rental_{suffix} to renew before it expires."
        )

    if notification.type == NotificationKind.RENTAL_EXPIRED_PAUSE:
        return (
            f"⏸️ Training paused for NPC {kind.value}\n\n"
            f"Reason: NPC rental has expired.\n"
            f"Use /rental_{suffix} to renew the rental."
        )

    return f"🎉 Training finished for NPC {kind.value}!\n\nWhat would you like to do?"


def reminder_keyboard(kind):
    keyboard = [
        [
            InlineKeyboardButton("🔄 Reset training", callback_data=CallbackToken(kind, CallbackAction.RESET).encode()),
            InlineKeyboardButton("⏹️ Stop tracking", callback_data=CallbackToken(kind, CallbackAction.STOP).encode()),
        ]
    ]
    return InlineKeyboardMarkup(keyboard)


def notification_markup(notification):
    if notification.type == NotificationKind.SESSION_COMPLETE:
        return reminder_keyboard(notification.kind)
    return None
