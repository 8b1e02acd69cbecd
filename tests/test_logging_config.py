import json
import logging

from core.logging_config import JSONFormatter, setup_logging


def test_json_formatter_carries_place_context():
    record = logging.LogRecord("services.place_service", logging.INFO, __file__, 1, "Deleted place %s", ("p1",), None)
    record.place_id = "p1"
    record.user_id = "u1"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "Deleted place p1"
    assert payload["level"] == "INFO"
    assert payload["place_id"] == "p1"
    assert payload["user_id"] == "u1"
    assert "request_id" not in payload


def test_setup_logging_replaces_its_own_handler():
    root = logging.getLogger()
    before = len(root.handlers)

    setup_logging("DEBUG", "json")
    setup_logging("WARNING", "text")

    ours = [handler for handler in root.handlers if getattr(handler, "_places_handler", False)]
    assert len(ours) == 1
    assert len(root.handlers) <= before + 1
    assert root.level == logging.WARNING
