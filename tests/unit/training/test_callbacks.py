"""Tests for the inline button payload format."""

import pytest

from trainer_bot.training.errors import InvalidCallbackData
from trainer_bot.training.models import CallbackAction, CallbackToken, NpcKind


class TestEncode:
    def test_wire_format(self):
        assert CallbackToken(NpcKind.B, CallbackAction.RESET).encode() == "npc:B:reset"
        assert CallbackToken(NpcKind.A, CallbackAction.STOP).encode() == "npc:A:stop"

    @pytest.mark.parametrize("kind", list(NpcKind))
    @pytest.mark.parametrize("action", list(CallbackAction))
    def test_fits_telegram_limit(self, kind, action):
        assert len(CallbackToken(kind, action).encode().encode("utf-8")) <= 64


class TestParse:
    def test_valid_token(self):
        token = CallbackToken.parse("npc:C:stop")
        assert token.kind == NpcKind.C
        assert token.action == CallbackAction.STOP

    @pytest.mark.parametrize(
        "data",
        [
            "",
            None,
            "npc",
            "npc:C",
            "npc:D:reset",
            "npc:c:reset",
            "npc:C:pause",
            "npc:C:reset:extra",
            "pet:C:reset",
            "reset_C",
            42,
        ],
    )
    def test_malformed_tokens_are_rejected(self, data):
        with pytest.raises(InvalidCallbackData) as exc_info:
            CallbackToken.parse(data)
        assert exc_info.value.data == data

    def test_invalid_data_is_a_value_error(self):
        with pytest.raises(ValueError):
            CallbackToken.parse("npc:Z:stop")
