import logging
from pathlib import Path

import pytest

from taleflow.core.log import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_setup_logging_sets_level_and_file(restore_root_logger, tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"

    setup_logging("debug", log_file)
    logging.getLogger("taleflow.test").debug("hello from the test")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    assert "hello from the test" in log_file.read_text(encoding="utf-8")


def test_setup_logging_unknown_level_falls_back(restore_root_logger) -> None:
    setup_logging("chatty")

    assert restore_root_logger.level == logging.WARNING
    assert len(restore_root_logger.handlers) == 1
