import json
import logging

import pytest

from kdd.logs import log_event, parse_level, setup_logging


@pytest.mark.parametrize(
    "name,expected",
    [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("warning", logging.WARNING),
        ("error", logging.ERROR),
        ("panic", logging.CRITICAL),
        ("nonsense", logging.WARNING),
        ("", logging.WARNING),
        (None, logging.WARNING),
    ],
)
def test_parse_level(name, expected):
    assert parse_level(name) == expected


def test_text_output_has_fields(capsys):
    setup_logging(logging.DEBUG)
    log_event("INFO", "upstream configuration synchronized", upstream="web", created=["10.0.0.1:80"], removed=[])
    out = capsys.readouterr().out
    assert "INFO upstream configuration synchronized" in out
    assert "upstream=web" in out
    assert "created=[10.0.0.1:80]" in out


def test_level_filtering(capsys):
    setup_logging(logging.WARNING)
    log_event("DEBUG", "resolved container target", target="10.0.0.1:80")
    log_event("WARN", "no port exposed -> container ignored", container="abc")
    out = capsys.readouterr().out
    assert "resolved container target" not in out
    assert "WARNING no port exposed -> container ignored container=abc" in out


def test_json_output(capsys):
    setup_logging(logging.INFO, json_format=True)
    log_event("ERROR", "unable to clean orphan upstream", exc=RuntimeError("boom"), upstream="web")
    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["message"] == "unable to clean orphan upstream"
    assert record["level"] == "ERROR"
    assert record["upstream"] == "web"
    assert record["error"] == "RuntimeError: boom"
    assert "fields" not in record
    assert record["timestamp"]


def test_json_formatter_comes_from_current_module():
    from pythonjsonlogger.json import JsonFormatter

    from kdd.logs import JsonFieldsFormatter

    assert issubclass(JsonFieldsFormatter, JsonFormatter)
