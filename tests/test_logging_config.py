"""Tests for ghostshare.logging_config module."""

import logging

import pytest

from ghostshare.logging_config import (
    log_access_decision,
    log_access_event,
    log_escalation,
    log_publication,
    setup_ghostshare_logging,
)


@pytest.fixture(autouse=True)
def clean_ghostshare_logger():
    """Remove all handlers from the ghostshare logger before/after each test."""
    logger = logging.getLogger("ghostshare")
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    """Set GHOSTSHARE_DATA_DIR so logs go to a temp directory."""
    monkeypatch.setenv("GHOSTSHARE_DATA_DIR", str(tmp_path))
    return tmp_path / "logs"


class TestSetupGhostshareLogging:
    """Tests for setup_ghostshare_logging."""

    def test_returns_logger(self, log_dir):
        logger = setup_ghostshare_logging(user_id="alice")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "ghostshare"

    def test_creates_log_directory(self, log_dir):
        assert not log_dir.exists()
        setup_ghostshare_logging(user_id="alice")
        assert log_dir.exists()

    def test_log_file_named_with_date(self, log_dir):
        setup_ghostshare_logging(user_id="alice")
        log_files = list(log_dir.glob("local-*.log"))
        assert len(log_files) == 1

    def test_default_level_info(self, log_dir):
        assert setup_ghostshare_logging(user_id="alice").level == logging.INFO

    def test_custom_level_case_insensitive(self, log_dir):
        assert setup_ghostshare_logging(user_id="alice", level="warning").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, log_dir):
        assert setup_ghostshare_logging(user_id="alice", level="LOUD").level == logging.INFO

    def test_no_duplicate_handlers(self, log_dir):
        setup_ghostshare_logging(user_id="alice")
        logger = setup_ghostshare_logging(user_id="alice")
        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1

    def test_debug_adds_console_handler(self, log_dir):
        logger = setup_ghostshare_logging(user_id="alice", level="DEBUG")
        console = [
            h
            for h in logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert len(console) == 1

    def test_messages_reach_file(self, log_dir):
        logger = setup_ghostshare_logging(user_id="alice")
        logging.getLogger("ghostshare.access").info("hello from access")
        for handler in logger.handlers:
            handler.flush()
        content = next(log_dir.glob("local-*.log")).read_text()
        assert "hello from access" in content
        assert "| INFO |" in content


class TestAccessEvents:
    """Tests for the append-only access event log."""

    def _lines(self, log_dir):
        files = list(log_dir.glob("access-events-*.log"))
        assert len(files) == 1
        return files[0].read_text().splitlines()

    def test_event_line_format(self, log_dir):
        log_access_event("custom", "a=1", user_id="alice")
        (line,) = self._lines(log_dir)
        parts = line.split(" | ")
        assert parts[1:] == ["custom", "user=alice", "a=1"]

    def test_access_decision(self, log_dir):
        log_access_decision("alice", "bob", "rec1", "granted")
        log_access_decision("alice", "bob", "rec1", "insufficient_trust", "read")
        lines = self._lines(log_dir)
        assert "user=bob" in lines[0]
        assert "owner=alice, record=rec1, status=granted" in lines[0]
        assert lines[1].endswith("status=insufficient_trust, read")

    def test_escalation_and_publication(self, log_dir):
        log_escalation("alice", "bob", "rec1", "reset", "false alarm")
        log_publication("alice", "publish", "rec1", "confirmed")
        lines = self._lines(log_dir)
        assert "reason=false alarm" in lines[0]
        assert "action=publish, record=rec1, outcome=confirmed" in lines[1]
