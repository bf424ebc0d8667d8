import logging
from logging.handlers import RotatingFileHandler

import pytest

from rentshare.core.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_console_only():
    root = setup_logging(level="debug")

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0], RotatingFileHandler)


def test_file_handler_created(tmp_path):
    log_file = tmp_path / "logs" / "rentshare.log"
    root = setup_logging(log_file=log_file, level="INFO")

    assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
    logging.getLogger("rentshare.test").info("hello")
    for handler in root.handlers:
        handler.flush()
    assert "hello" in log_file.read_text(encoding="utf-8")


def test_repeated_setup_does_not_stack_handlers(tmp_path):
    setup_logging(log_file=tmp_path / "a.log")
    root = setup_logging(log_file=tmp_path / "a.log")

    assert len(root.handlers) == 2


def test_unknown_level_falls_back_to_info():
    assert setup_logging(level="chatty").level == logging.INFO
