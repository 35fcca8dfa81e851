"""Tests for environment configuration."""

import pytest

from trainer_bot.core.config import Config, _parse_id_list, _parse_optional_int


@pytest.fixture
def valid_config(monkeypatch):
    monkeypatch.setattr(Config, "TELEGRAM_TOKEN", "123:abc")
    monkeypatch.setattr(Config, "OWNER_TELEGRAM_ID", 7172542482)
    monkeypatch.setattr(Config, "AUTHORIZED_USERS", [7860400654])
    monkeypatch.setattr(Config, "DATABASE_PATH", "data/training.db")
    monkeypatch.setattr(Config, "ENVIRONMENT", "development")
    monkeypatch.setattr(Config, "TEST_MODE", False)


class TestParsing:
    def test_id_list(self):
        assert _parse_id_list("1, 2,,3 ", "AUTHORIZED_USERS") == [1, 2, 3]

    def test_invalid_id_list_is_ignored(self):
        assert _parse_id_list("1,abc", "AUTHORIZED_USERS") == []

    def test_optional_int(self):
        assert _parse_optional_int(" 42 ", "OWNER_TELEGRAM_ID") == 42
        assert _parse_optional_int("", "OWNER_TELEGRAM_ID") is None
        assert _parse_optional_int("owner", "OWNER_TELEGRAM_ID") is None


class TestAuthorization:
    def test_owner_and_allow_list(self, valid_config):
        assert Config.is_authorized(7172542482) is True
        assert Config.is_authorized(7860400654) is True
        assert Config.is_authorized(1) is False
        assert Config.is_authorized(0) is False


class TestValidate:
    def test_valid(self, valid_config):
        assert Config.validate() is True

    def test_lists_every_problem(self, valid_config, monkeypatch):
        monkeypatch.setattr(Config, "TELEGRAM_TOKEN", "")
        monkeypatch.setattr(Config, "OWNER_TELEGRAM_ID", None)

        with pytest.raises(ValueError) as exc_info:
            Config.validate()

        assert "TELEGRAM_BOT_TOKEN is required" in str(exc_info.value)
        assert "OWNER_TELEGRAM_ID is required" in str(exc_info.value)


class TestTestMode:
    def test_enabled_outside_production(self, valid_config, monkeypatch):
        monkeypatch.setattr(Config, "TEST_MODE", True)
        assert Config.initial_test_mode() is True

    def test_ignored_in_production(self, valid_config, monkeypatch):
        monkeypatch.setattr(Config, "TEST_MODE", True)
        monkeypatch.setattr(Config, "ENVIRONMENT", "production")
        assert Config.initial_test_mode() is False
