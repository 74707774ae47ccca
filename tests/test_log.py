import logging

import pytest
from rich.logging import RichHandler

from log import LEVEL_ENV_VAR, configure_logging, get_logger


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_installs_rich_handler(restore_root_logger):
    configure_logging("DEBUG")

    assert restore_root_logger.level == logging.DEBUG
    assert any(isinstance(h, RichHandler) for h in restore_root_logger.handlers)
    assert logging.getLogger("httpx").level == logging.WARNING


def test_level_comes_from_environment(restore_root_logger, monkeypatch):
    monkeypatch.setenv(LEVEL_ENV_VAR, "ERROR")

    configure_logging()

    assert restore_root_logger.level == logging.ERROR


def test_get_logger_is_plain_logging():
    assert get_logger("deferred") is logging.getLogger("deferred")
