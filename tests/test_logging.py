import json
import logging
import sys

from panelcraft.core.logging import ContextFilter, StructuredJsonFormatter, configure_logging
from panelcraft.core.request_context import get_panel_id, log_context, new_request_id


def _record(message="character_created name=Aria"):
    return logging.LogRecord("panelcraft.test", logging.INFO, __file__, 1, message, None, None)


def test_formatter_includes_context_ids():
    record = _record()
    with log_context(request_id="req-1", panel_id="p1", character_id="char_aria_1"):
        ContextFilter().filter(record)

    payload = json.loads(StructuredJsonFormatter().format(record))

    assert payload["message"] == "character_created name=Aria"
    assert payload["request_id"] == "req-1"
    assert payload["panel_id"] == "p1"
    assert payload["character_id"] == "char_aria_1"


def test_formatter_without_context():
    record = _record()
    ContextFilter().filter(record)
    payload = json.loads(StructuredJsonFormatter().format(record))
    assert payload["request_id"] == "unknown"
    assert "panel_id" not in payload


def test_payload_is_limited_to_known_fields():
    record = _record()
    record.model = "midjourney"
    ContextFilter().filter(record)
    payload = json.loads(StructuredJsonFormatter().format(record))
    assert set(payload) == {"timestamp", "level", "logger", "message", "request_id"}


def test_exception_is_formatted():
    try:
        raise ValueError("bad trait")
    except ValueError:
        record = logging.LogRecord(
            "panelcraft.test", logging.ERROR, __file__, 1, "character_update_failed", None, sys.exc_info()
        )
    payload = json.loads(StructuredJsonFormatter().format(record))
    assert "ValueError: bad trait" in payload["exc_info"]


def test_log_context_restores_previous_values():
    with log_context(panel_id="outer"):
        with log_context(panel_id="inner"):
            assert get_panel_id() == "inner"
        assert get_panel_id() == "outer"
    assert get_panel_id() is None


def test_configure_logging_writes_json_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "logs" / "panelcraft.log"
    try:
        configure_logging(level="debug", log_file=str(log_file))
        with log_context(request_id=new_request_id()):
            logging.getLogger("panelcraft.test").info("smoke_event")
        for handler in root.handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "smoke_event"
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
