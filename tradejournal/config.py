"""
config.py
---------

Runtime configuration read from environment variables. A ``.env`` file
in the working directory (or the path given to ``load_config``) is
loaded first so local development does not need exported variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


@dataclass(frozen=True)
class Config:
    db_path: str = "tradejournal.db"
    settings_path: str = "tradejournal_settings.json"
    secret_key: str = "dev-secret"
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    log_level: str = "INFO"
    log_file: Optional[str] = None
    max_sessions: int = 256


def load_config(env_path: Optional[str] = None) -> Config:
    load_dotenv(dotenv_path=env_path)
    return Config(
        db_path=os.getenv("TJ_DB", "tradejournal.db"),
        settings_path=os.getenv("TJ_SETTINGS", "tradejournal_settings.json"),
        secret_key=os.getenv("SECRET_KEY", "dev-secret"),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("LOG_FILE") or None,
        max_sessions=int(os.getenv("TJ_MAX_SESSIONS", "256")),
    )
