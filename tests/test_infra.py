"""
Tests for configuration, structured logging, and message schemas.
"""

import json
import logging

import pytest
from pydantic import ValidationError


class TestConfig:
    """Environment-driven settings and per-controller config."""

    def test_from_settings_parses_dictionary(self):
        from wordscreen.config import ScreeningConfig, Settings

        source = Settings(ENABLED=False, DICTIONARY=" 暴力, ,abc ,", DEBOUNCE_MS=250)
        config = ScreeningConfig.from_settings(source)
        assert config.enabled is False
        assert config.dictionary == ("暴力", "abc")
        assert config.debounce_ms == 250
        assert config.debounce_seconds == 0.25

    def test_negative_debounce_clamped(self):
        from wordscreen.config import ScreeningConfig, Settings

        config = ScreeningConfig.from_settings(Settings(DEBOUNCE_MS=-10))
        assert config.debounce_ms == 0

    def test_defaults(self):
        from wordscreen.config import ScreeningConfig

        config = ScreeningConfig()
        assert config.enabled is True
        assert config.dictionary == ()
        assert config.debounce_ms == 500


class TestLogging:
    """Structured logging tests."""

    def _record(self, msg="Test message"):
        return logging.LogRecord(
            name="wordscreen.test",
            level=logging.INFO,
            pathname="test.py",
            lineno=1,
            msg=msg,
            args=(),
            exc_info=None,
        )

    def test_json_formatter(self):
        from wordscreen.logging import JSONFormatter

        output = JSONFormatter().format(self._record())
        parsed = json.loads(output)
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Test message"
        assert "timestamp" in parsed

    def test_json_formatter_extra_fields(self):
        from wordscreen.logging import JSONFormatter

        record = self._record("Detect complete")
        record.request_id = 7
        record.match_count = 3
        output = JSONFormatter().format(record)
        parsed = json.loads(output)
        assert parsed["request_id"] == 7
        assert parsed["match_count"] == 3
        assert "word_count" not in parsed

    def test_json_formatter_keeps_unicode(self):
        from wordscreen.logging import JSONFormatter

        output = JSONFormatter().format(self._record("暴力"))
        assert "暴力" in output

    def test_get_logger(self):
        from wordscreen.logging import get_logger

        log = get_logger("executor")
        assert log.name == "wordscreen.executor"

    def test_setup_logging_text(self):
        from wordscreen.logging import TextFormatter, setup_logging

        root = setup_logging(level="debug", fmt="text")
        try:
            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[0].formatter, TextFormatter)
        finally:
            root.handlers.clear()
            root.setLevel(logging.NOTSET)


class TestMessages:
    """Wire models for the executor boundary."""

    def test_request_round_trip_through_dict(self):
        from wordscreen.schemas.messages import DetectRequest, parse_request

        raw = DetectRequest(text="abc", request_id=3).model_dump()
        assert raw == {"type": "detect", "text": "abc", "request_id": 3}
        assert parse_request(raw) == DetectRequest(text="abc", request_id=3)

    def test_unknown_type_rejected(self):
        from wordscreen.schemas.messages import parse_request

        with pytest.raises(ValidationError):
            parse_request({"type": "format_disk"})

    def test_extra_fields_rejected(self):
        from wordscreen.schemas.messages import parse_request

        with pytest.raises(ValidationError):
            parse_request({"type": "addWords", "words": [], "sneaky": True})

    def test_invalid_severity_rejected(self):
        from wordscreen.schemas.messages import SetSeverityRequest

        with pytest.raises(ValidationError):
            SetSeverityRequest(word="a", severity="critical")

    def test_match_payload_conversion(self):
        from wordscreen.dictionary import Match
        from wordscreen.schemas.messages import MatchPayload

        match = Match("暴力", 2, 4, "low")
        assert MatchPayload.from_match(match).to_match() == match
