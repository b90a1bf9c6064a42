from __future__ import annotations

import logging

from civic_import.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    set_debug,
    setup_logging,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("x", level, __file__, 1, msg, None, None)


def test_labels():
    fmt = LabeledFormatter()
    assert fmt.format(_record(logging.INFO, "hello")) == "INFO hello"
    assert fmt.format(_record(logging.WARNING, "w")) == "WARN w"
    assert fmt.format(_record(logging.ERROR, "e")) == "ERROR e"
    assert fmt.format(_record(SUMMARY_LEVEL, "entity=state rows=0")) == "SUMMARY entity=state rows=0"


def test_setup_is_idempotent():
    reset_logging()
    a = setup_logging()
    b = setup_logging()
    assert a is b
    assert a.name == APP_LOGGER_NAME
    assert len(a.handlers) == 1
    assert a.propagate is False
    assert get_logger() is a


def test_module_loggers_reach_app_handler(capsys):
    reset_logging()
    setup_logging()
    logging.getLogger("civic_import.services.controller").info("loaded 3 rows")
    log_summary("entity=report rows=1")
    out = capsys.readouterr().out
    assert "INFO loaded 3 rows" in out
    assert "SUMMARY entity=report rows=1" in out


def test_debug_toggle(capsys):
    reset_logging()
    logger = setup_logging()
    logger.debug("hidden")
    set_debug(logger)
    logger.debug("shown")
    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "DEBUG shown" in out
    reset_logging()
