import json
import logging
import sys

from inbound_reply.services.logging_config import JsonFormatter, configure_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="inbound_reply.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=7,
        msg="Processed %s",
        args=("email",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_message_and_extras() -> None:
    data = json.loads(JsonFormatter().format(_record(event="email_processed", body_chars=5)))
    assert data["message"] == "Processed email"
    assert data["level"] == "INFO"
    assert data["logger"] == "inbound_reply.test"
    assert data["event"] == "email_processed"
    assert data["body_chars"] == 5
    assert "pathname" not in data


def test_json_formatter_includes_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    data = json.loads(JsonFormatter().format(record))
    assert "ValueError: boom" in data["exception"]


def test_configure_logging_sets_level_and_single_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
