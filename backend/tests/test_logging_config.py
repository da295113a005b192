import json
import logging

import pytest

from app.config import settings
from app.logging_config import setup_logging


@pytest.fixture
def root_logger(monkeypatch):
    """Restore the root handlers and level replaced by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def read_lines(capsys):
    return [line for line in capsys.readouterr().out.splitlines() if line]


def test_json_lines_survive_quotes_and_tracebacks(root_logger, capsys, monkeypatch):
    monkeypatch.setattr(settings, "LOG_FORMAT", "json")
    setup_logging()
    logger = logging.getLogger("app.routes.uploads")

    logger.info("Failed to complete upload for %s", 'a"b.pdf"}')
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("Data limit reached for %s", '1.2.3.4", "level": "DEBUG')

    lines = read_lines(capsys)
    assert len(lines) == 2
    records = [json.loads(line) for line in lines]

    assert records[0]["message"] == 'Failed to complete upload for a"b.pdf"}'
    assert records[0]["level"] == "INFO"
    assert records[0]["logger"] == "app.routes.uploads"
    assert "exc_info" not in records[0]

    assert records[1]["level"] == "ERROR"
    assert records[1]["message"].endswith('1.2.3.4", "level": "DEBUG')
    assert "RuntimeError: boom" in records[1]["exc_info"]


def test_text_format(root_logger, capsys, monkeypatch):
    monkeypatch.setattr(settings, "LOG_FORMAT", "text")
    setup_logging()

    logging.getLogger("app.test").warning("plain message")

    (line,) = read_lines(capsys)
    assert "[WARNING ] app.test: plain message" in line
