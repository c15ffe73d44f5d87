"""
Tests for settings and logging setup
"""
import logging

import pytest
from pydantic import ValidationError

from matchup_parser.config import Settings
from matchup_parser.logging_config import JsonFormatter, SensitiveDataFilter


def test_defaults():
    settings = Settings()
    assert settings.openai_model == "gpt-4o-mini"
    assert settings.history_capacity == 5
    assert settings.invalid_record_policy == "reject"
    assert settings.kv_backend == "memory"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("HISTORY_CAPACITY", "3")
    monkeypatch.setenv("INVALID_RECORD_POLICY", "skip")
    monkeypatch.setenv("UPSTASH_REDIS_REST_URL", "https://kv.example.com")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")

    settings = Settings()
    assert settings.history_capacity == 3
    assert settings.invalid_record_policy == "skip"
    assert settings.upstash_redis_rest_url == "https://kv.example.com"
    assert settings.log_level == "DEBUG"
    assert settings.origins == ["https://a.example", "https://b.example"]


def test_rejects_bad_values():
    with pytest.raises(ValidationError):
        Settings(history_capacity=0)
    with pytest.raises(ValidationError):
        Settings(invalid_record_policy="maybe")


def _record(msg, *args):
    return logging.LogRecord("matchup_parser.test", logging.INFO, __file__, 1, msg, args, None)


def test_sensitive_filter_masks_tokens():
    record = _record("calling kv with Bearer abc123 and %s", "api_key=sk-live-1234567890")
    SensitiveDataFilter().filter(record)
    message = record.getMessage()
    assert "abc123" not in message
    assert "1234567890" not in message


def test_json_formatter_includes_extra():
    record = _record("parsed %d", 3)
    record.week = 5
    formatted = JsonFormatter().format(record)
    assert '"message": "parsed 3"' in formatted
    assert '"week": 5' in formatted
