"""Local logging for ghostshare.

Process logs go to ``{data_dir}/logs/local-YYYY-MM-DD.log``. Access,
escalation and publication events are appended one per line to
``{data_dir}/logs/access-events-YYYY-MM-DD.log`` as an audit trail.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ghostshare.config import get_ghostshare_home

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _log_dir() -> Path:
    log_dir = get_ghostshare_home() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def setup_ghostshare_logging(user_id: str = "default", level: str = "INFO") -> logging.Logger:
    """Configure the ``ghostshare`` logger with a dated file handler.

    DEBUG also logs to the console. Calling this again does not add
    duplicate handlers. Unknown level names fall back to INFO.
    """
    log_level = getattr(logging, str(level).upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logger = logging.getLogger("ghostshare")
    logger.setLevel(log_level)

    log_file = _log_dir() / f"local-{_today()}.log"
    has_file = any(
        isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
        for h in logger.handlers
    )
    if not has_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    if log_level == logging.DEBUG:
        has_console = any(
            isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            for h in logger.handlers
        )
        if not has_console:
            console = logging.StreamHandler()
            console.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(console)

    logger.debug(f"Logging initialized for user={user_id}")
    return logger


def log_access_event(event_type: str, details: str, user_id: str = "default") -> None:
    """Append one ``timestamp | event | user=... | details`` line to the event log."""
    timestamp = datetime.now(timezone.utc).isoformat()
    line = f"{timestamp} | {event_type} | user={user_id} | {details}\n"
    with open(_log_dir() / f"access-events-{_today()}.log", "a", encoding="utf-8") as f:
        f.write(line)


def log_access_decision(
    owner_id: str, accessor_id: str, record_id: str, status: str, detail: Optional[str] = None
) -> None:
    details = f"owner={owner_id}, record={record_id}, status={status}"
    if detail:
        details += f", {detail}"
    log_access_event("access", details, user_id=accessor_id)


def log_escalation(owner_id: str, accessor_id: str, record_id: str, action: str, reason: str = "") -> None:
    details = f"owner={owner_id}, accessor={accessor_id}, record={record_id}, action={action}"
    if reason:
        details += f", reason={reason}"
    log_access_event("escalation", details, user_id=owner_id)


def log_publication(owner_id: str, action: str, record_id: str, outcome: str) -> None:
    log_access_event(
        "publication", f"action={action}, record={record_id}, outcome={outcome}", user_id=owner_id
    )
