from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from trainer_bot.training.errors import InvalidCallbackData


class NpcKind(str, Enum):
    """NPC trainer tiers, in display order"""

    C = "C"
    B = "B"
    A = "A"

    @property
    def command_suffix(self):
        return self.value.lower()

    @classmethod
    def ordered(cls):
        return [cls.C, cls.B, cls.A]


@dataclass
class TrainingRecord:
    user_id: int
    kind: NpcKind
    start_time: Optional[datetime] = None
    duration_hours: float = 0.0
    end_time: Optional[datetime] = None
    is_active: bool = False
    last_notified_time: Optional[datetime] = None
    rental_start_time: Optional[datetime] = None
    rental_end_time: Optional[datetime] = None
    rental_expiry_notified_time: Optional[datetime] = None

    @property
    def has_rental(self):
        return self.rental_start_time is not None and self.rental_end_time is not None


@dataclass(frozen=True)
class ProgressEstimate:
    """Advisory progress for a session cut short by rental expiry"""

    cycles: int
    percent: int


@dataclass
class RecordStatus:
    record: TrainingRecord
    rental_active: bool
    rental_remaining: Optional[str] = None
    training_remaining: Optional[str] = None
    insufficient_time: bool = False
    required_cycle_hours: Optional[float] = None
    estimate: Optional[ProgressEstimate] = None


class NotificationKind(str, Enum):
    RENTAL_EXPIRY_WARNING = "rental_expiry_warning"
    RENTAL_EXPIRED_PAUSE = "rental_expired_pause"
    SESSION_COMPLETE = "session_complete"


@dataclass(frozen=True)
class Notification:
    user_id: int
    kind: NpcKind
    type: NotificationKind
    hours_remaining: Optional[float] = None


class CallbackAction(str, Enum):
    RESET = "reset"
    STOP = "stop"


CALLBACK_PREFIX = "npc"


@dataclass(frozen=True)
class CallbackToken:
    """Inline button payload, wire format ``npc:<KIND>:<ACTION>``"""

    kind: NpcKind
    action: CallbackAction

    def encode(self):
        return f"{CALLBACK_PREFIX}:{self.kind.value}:{self.action.value}"

    @classmethod
    def parse(cls, data):
        if not data or not isinstance(data, str):
            raise InvalidCallbackData(data)

        parts = data.split(":")
        if len(parts) != 3 or parts[0] != CALLBACK_PREFIX:
            raise InvalidCallbackData(data)

        try:
            kind = NpcKind(parts[1])
            action = CallbackAction(parts[2])
        except ValueError:
            raise InvalidCallbackData(data) from None

        return cls(kind=kind, action=action)
