from __future__ import annotations

import json
import logging
import sys

from contractdesk.utils.logging import ContextFormatter, _json_formatter

EXPECTED_ROWS = 10


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello %s",
        args=("world",),
        exc_info=None,
    )


def test_json_formatter_promotes_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.contract_id = "CT-1"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello world"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["contract_id"] == "CT-1"
    assert "pathname" not in payload


def test_json_formatter_renders_exceptions() -> None:
    record = _record()
    try:
        raise ValueError("boom")
    except ValueError:
        record.exc_info = sys.exc_info()

    payload = json.loads(_json_formatter(record))

    assert "ValueError: boom" in payload["exc_info"]


def test_console_formatter_appends_context() -> None:
    formatter = ContextFormatter(fmt="%(levelname)s | %(message)s")
    record = _record()
    record.contract_id = "CT-1"
    record.score = 82

    assert formatter.format(record) == "INFO | hello world | contract_id=CT-1 score=82"


def test_console_formatter_without_context() -> None:
    formatter = ContextFormatter(fmt="%(levelname)s | %(message)s")
    assert formatter.format(_record()) == "INFO | hello world"
