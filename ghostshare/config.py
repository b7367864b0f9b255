"""Environment configuration.

Explicit arguments win over environment variables, which win over
defaults:

    GHOSTSHARE_DATA_DIR   home for the database and logs (default ~/.ghostshare)
    GHOSTSHARE_DB_PATH    database file (default {data_dir}/ghostshare.db)
    GHOSTSHARE_USER_ID    authenticated user for the CLI and MCP server
    GHOSTSHARE_LOG_LEVEL  level for setup_ghostshare_logging (default INFO)
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "default"
DEFAULT_LOG_LEVEL = "INFO"


def get_ghostshare_home() -> Path:
    """Data directory, falling back to the temp dir when home is not writable."""
    env_dir = os.environ.get("GHOSTSHARE_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    home = Path.home() / ".ghostshare"
    try:
        home.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        fallback = Path(tempfile.gettempdir()) / "ghostshare"
        logger.warning(f"Cannot use {home} ({e}); falling back to {fallback}")
        return fallback
    return home


def get_db_path() -> Path:
    env_path = os.environ.get("GHOSTSHARE_DB_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_ghostshare_home() / "ghostshare.db"


def resolve_user_id(user_id: Optional[str] = None) -> str:
    if user_id:
        return user_id
    return os.environ.get("GHOSTSHARE_USER_ID") or DEFAULT_USER_ID


@dataclass
class Settings:
    user_id: str
    data_dir: Path
    db_path: Path
    log_level: str


def load_settings(
    user_id: Optional[str] = None,
    db_path: Optional[str] = None,
    log_level: Optional[str] = None,
) -> Settings:
    return Settings(
        user_id=resolve_user_id(user_id),
        data_dir=get_ghostshare_home(),
        db_path=Path(db_path).expanduser() if db_path else get_db_path(),
        log_level=(log_level or os.environ.get("GHOSTSHARE_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
