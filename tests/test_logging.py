"""
Tests for structured logging.
"""

import logging

from cosmosmind import config


def test_log_file_created(tmp_path):
    """setup() installs stderr and file handlers and marks itself configured."""
    import cosmosmind.log as log_mod
    old_configured = log_mod._configured
    log_mod._configured = False
    old_handlers = log_mod.log.handlers[:]
    log_mod.log.handlers = [logging.NullHandler()]
    try:
        log_mod.setup(log_file=tmp_path / "logs" / "cosmosmind.log")
        handler_types = [type(h).__name__ for h in log_mod.log.handlers]
        assert "StreamHandler" in handler_types
        assert "RotatingFileHandler" in handler_types
        assert (tmp_path / "logs" / "cosmosmind.log").exists()
        assert log_mod._configured is True
    finally:
        for handler in log_mod.log.handlers:
            if handler not in old_handlers:
                handler.close()
        log_mod.log.handlers = old_handlers
        log_mod._configured = old_configured


def test_setup_is_idempotent(tmp_path):
    import cosmosmind.log as log_mod
    old_configured = log_mod._configured
    log_mod._configured = False
    old_handlers = log_mod.log.handlers[:]
    log_mod.log.handlers = [logging.NullHandler()]
    try:
        log_mod.setup(log_file=tmp_path / "a.log")
        count = len(log_mod.log.handlers)
        log_mod.setup(log_file=tmp_path / "b.log")
        assert len(log_mod.log.handlers) == count
    finally:
        for handler in log_mod.log.handlers:
            if handler not in old_handlers:
                handler.close()
        log_mod.log.handlers = old_handlers
        log_mod._configured = old_configured


def test_timed_logs_duration(caplog):
    from cosmosmind.log import timed
    with caplog.at_level(logging.DEBUG, logger="cosmosmind"):
        with timed("unit op") as t:
            sum(range(1000))
    assert t.elapsed_ms >= 0
    assert any("unit op took" in r.message for r in caplog.records)


def test_timed_warns_when_slow(caplog):
    from cosmosmind.log import timed
    with caplog.at_level(logging.DEBUG, logger="cosmosmind"):
        with timed("tiny op", slow_ms=-1):
            pass
    slow = [r for r in caplog.records if "tiny op took" in r.message]
    assert slow and slow[0].levelno == logging.WARNING


def test_log_file_lives_in_home():
    assert config.LOG_FILE.parent == config.COSMOS_HOME
    assert config.LOG_FILE.name == "cosmosmind.log"


def test_save_warning_on_corrupt_file(caplog, tmp_path):
    from cosmosmind.storage import GameStore
    path = tmp_path / "save.json"
    path.write_text("{broken", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="cosmosmind"):
        GameStore(str(path))
    assert any("unreadable" in r.message for r in caplog.records)
