# tests/test_observability.py
import json
import logging
import uuid

from heartline.core.observability import JSONFormatter


def test_json_formatter_surfaces_ids() -> None:
    conversation_id = uuid.uuid4()
    record = logging.LogRecord("heartline.test", logging.INFO, __file__, 1, "Match confirmed", None, None)
    record.conversation_id = conversation_id
    record.purged = 2

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "Match confirmed"
    assert payload["level"] == "INFO"
    assert payload["conversation_id"] == str(conversation_id)
    assert payload["purged"] == 2
    assert "user_id" not in payload
