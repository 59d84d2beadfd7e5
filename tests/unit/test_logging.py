"""Unit tests for logging setup."""

import io
import json
import logging

from tmplcache.utils.logging import (
    HumanFormatter,
    JSONFormatter,
    LogMode,
    configure_from_cli,
    get_logger,
    setup_logging,
)


def _record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("tmplcache.test", level, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for log formatters."""

    def test_human_format(self) -> None:
        assert HumanFormatter().format(_record("hello")) == "[INFO] hello"

    def test_json_format(self) -> None:
        entry = json.loads(JSONFormatter().format(_record("hello", logging.WARNING)))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "tmplcache.test"
        assert entry["msg"] == "hello"
        assert "ts" in entry

    def test_json_extra_data(self) -> None:
        record = _record("rendered", extra_data={"template": "home.page.tmpl"})

        entry = json.loads(JSONFormatter().format(record))

        assert entry["template"] == "home.page.tmpl"


class TestSetup:
    """Tests for setup_logging and configure_from_cli."""

    def test_setup_logging_writes_to_stream(self) -> None:
        stream = io.StringIO()
        setup_logging(LogMode.HUMAN, logging.DEBUG, stream)

        get_logger("templates.store").debug("Using cached template home")

        assert stream.getvalue() == "[DEBUG] Using cached template home\n"

    def test_get_logger_namespaces_names(self) -> None:
        assert get_logger("cli").name == "tmplcache.cli"
        assert get_logger("tmplcache.cli").name == "tmplcache.cli"
        assert get_logger().name == "tmplcache"

    def test_quiet_sets_warning_level(self) -> None:
        configure_from_cli(quiet=True)

        assert logging.getLogger("tmplcache").level == logging.WARNING

    def test_verbose_sets_debug_level(self) -> None:
        configure_from_cli(verbose=True)

        assert logging.getLogger("tmplcache").level == logging.DEBUG

    def test_ci_uses_json(self) -> None:
        configure_from_cli(ci=True)

        handler = logging.getLogger("tmplcache").handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)
