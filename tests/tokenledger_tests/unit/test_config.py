"""
Tests for environment-driven configuration.
"""

import os

import pytest

from tokenledger.core import config
from tokenledger.core.config import ConfigurationError


class TestBoolEnv:
    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_truthy(self, monkeypatch, raw):
        monkeypatch.setenv("TOKENLEDGER_TEST_FLAG", raw)
        assert config._get_bool_env("TOKENLEDGER_TEST_FLAG", "0") is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", ""])
    def test_falsy(self, monkeypatch, raw):
        monkeypatch.setenv("TOKENLEDGER_TEST_FLAG", raw)
        assert config._get_bool_env("TOKENLEDGER_TEST_FLAG", "1") is False

    def test_default(self, monkeypatch):
        monkeypatch.delenv("TOKENLEDGER_TEST_FLAG", raising=False)
        assert config._get_bool_env("TOKENLEDGER_TEST_FLAG", "1") is True

    def test_invalid(self, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TEST_FLAG", "maybe")
        with pytest.raises(ConfigurationError):
            config._get_bool_env("TOKENLEDGER_TEST_FLAG", "1")


class TestLogLevel:
    def test_normalized(self, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TEST_LEVEL", "debug")
        assert config._get_log_level("TOKENLEDGER_TEST_LEVEL", "INFO") == "DEBUG"

    def test_warn_alias(self, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TEST_LEVEL", "warn")
        assert config._get_log_level("TOKENLEDGER_TEST_LEVEL", "INFO") == "WARNING"

    def test_blank_uses_default(self, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TEST_LEVEL", "  ")
        assert config._get_log_level("TOKENLEDGER_TEST_LEVEL", "INFO") == "INFO"

    def test_invalid(self, monkeypatch):
        monkeypatch.setenv("TOKENLEDGER_TEST_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            config._get_log_level("TOKENLEDGER_TEST_LEVEL", "INFO")


def test_default_state_db_path_is_under_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert config.default_state_db_path() == os.path.join(str(tmp_path), ".tokenledger", "world_state.db")


def test_wire_constants():
    assert config.ALLOWANCE_NAMESPACE == "insurance"
    assert config.TRANSFER_EVENT_NAME == "transferEvent"
