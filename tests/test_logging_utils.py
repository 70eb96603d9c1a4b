"""Tests for logging helpers."""

import json
import logging

from common.logging_utils import (
    JsonFormatter,
    Timer,
    configure_logging,
    extra_context,
    is_debug_enabled,
    redact,
    safe_url,
)


class TestSafeUrl:
    def test_userinfo_redacted(self):
        assert safe_url("https://user:pw@registry.test/pkg") == "https://[REDACTED]@registry.test/pkg"

    def test_sensitive_query_redacted(self):
        url = safe_url("https://x.test/mod.ts?token=abc&v=1")
        assert "abc" not in url
        assert "v=1" in url

    def test_plain_url_unchanged(self):
        assert safe_url("https://jsr.io/@std/path/meta.json") == "https://jsr.io/@std/path/meta.json"


class TestRedact:
    def test_bearer_token(self):
        assert "secret" not in redact("Authorization: Bearer secret.token")

    def test_basic_auth_in_text(self):
        assert "pw" not in redact("fetching https://me:pw@x.test/a")


class TestStructuredLogging:
    def test_extra_context_drops_none(self):
        assert extra_context(event="x", target=None) == {"context_fields": {"event": "x"}}

    def test_json_formatter_includes_context(self):
        record = logging.LogRecord("modgate.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.context_fields = {"event": "cache_hit", "target": "jsr:@x/y@1.0.0"}
        payload = json.loads(JsonFormatter().format(record))
        assert payload["message"] == "hello world"
        assert payload["event"] == "cache_hit"
        assert payload["level"] == "INFO"

    def test_configure_logging_level_and_format(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MODGATE_LOG_FORMAT", "json")
        log_file = tmp_path / "modgate.log"
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            configure_logging("debug", str(log_file))
            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert len(root.handlers) == 2
            assert is_debug_enabled(logging.getLogger("modgate.test"))
        finally:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

    def test_timer(self):
        with Timer() as timer:
            pass
        assert timer.duration_ms() >= 0
