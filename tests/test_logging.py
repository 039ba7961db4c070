import json
import logging

from page_cache.logging import JsonFormatter


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("page_cache.test", logging.INFO, __file__, 1, "Rendered %s", ("page",), None)
    record.page = 3
    out = json.loads(JsonFormatter().format(record))
    assert out["message"] == "Rendered page"
    assert out["level"] == "INFO"
    assert out["page"] == 3
    assert "args" not in out and "msg" not in out


def test_json_formatter_serializes_exceptions():
    try:
        raise ValueError("bad page")
    except ValueError:
        import sys

        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    out = json.loads(JsonFormatter().format(record))
    assert "ValueError: bad page" in out["exc_info"]
