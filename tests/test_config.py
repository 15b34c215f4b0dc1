"""Tests for environment-driven settings."""

import logging

from booking_config import DEFAULT_WEB_PORT, env_int


class TestEnvInt:

    def test_reads_integer(self, monkeypatch):
        monkeypatch.setenv("BOOKING_WEB_PORT", "8080")
        assert env_int("BOOKING_WEB_PORT", DEFAULT_WEB_PORT) == 8080

    def test_unset_or_blank_uses_default(self, monkeypatch):
        monkeypatch.delenv("BOOKING_WEB_PORT", raising=False)
        assert env_int("BOOKING_WEB_PORT", DEFAULT_WEB_PORT) == 5000
        monkeypatch.setenv("BOOKING_WEB_PORT", "  ")
        assert env_int("BOOKING_WEB_PORT", DEFAULT_WEB_PORT) == 5000

    def test_non_numeric_falls_back_with_warning(self, monkeypatch, caplog):
        monkeypatch.setenv("BOOKING_WEB_PORT", "http")
        with caplog.at_level(logging.WARNING, logger="booking_config"):
            assert env_int("BOOKING_WEB_PORT", DEFAULT_WEB_PORT) == 5000
        assert "BOOKING_WEB_PORT" in caplog.text
