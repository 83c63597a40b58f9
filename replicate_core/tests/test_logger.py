import json
import logging

from replicate_core.infrastructure.logging.logger import JsonFormatter, log_event, logger


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("replicate_core", logging.INFO, __file__, 1, "Created prediction", None, None)
    record.extra = {"prediction_id": "p1", "version": "v1"}
    line = json.loads(JsonFormatter().format(record))
    assert line["msg"] == "Created prediction"
    assert line["level"] == "INFO"
    assert line["prediction_id"] == "p1"


def test_log_event_merges_context(caplog):
    with caplog.at_level(logging.INFO, logger="replicate_core"):
        log_event(logging.INFO, "Prediction finished", {"prediction_id": "p9"}, ok=True)
    record = caplog.records[-1]
    assert record.name == logger.name
    assert record.extra == {"prediction_id": "p9", "ok": True}
