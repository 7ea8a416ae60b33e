import logging
from pathlib import Path

import pytest

from image_display.foundation.logging_utils import setup_logger


def test_setup_logger_writes_utf8_file(tmp_path: Path):
    log_path = tmp_path / "logs" / "site.log"
    logger = setup_logger("test.image_display.file", level="warning", log_file=str(log_path))

    logger.debug("Style → crop_16x9 with accents é")
    for handler in logger.handlers:
        handler.flush()

    content = log_path.read_text(encoding="utf-8")
    assert "Style → crop_16x9 with accents é" in content
    assert "| DEBUG |" in content


def test_setup_logger_is_idempotent():
    logger = setup_logger("test.image_display.repeat")
    logger = setup_logger("test.image_display.repeat")

    assert len(logger.handlers) == 1
    assert logger.propagate is False
    assert logger.handlers[0].level == logging.INFO


def test_setup_logger_rejects_unknown_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        setup_logger("test.image_display.bad", level="chatty")
