"""Ledger configuration via environment variables."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from ledger.storage.repository import DEFAULT_HISTORY_LIMIT, DEFAULT_RECENT_PLAYERS_LIMIT


class LedgerSettings(BaseSettings):
    model_config = {"env_prefix": "LEDGER_"}

    data_dir: str = Field(default="backend/data/ledger", min_length=1)
    storage_backend: Literal["file", "sqlite"] = "file"
    sqlite_filename: str = Field(default="ledger.db", min_length=1)
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=1)
    recent_players_limit: int = Field(default=DEFAULT_RECENT_PLAYERS_LIMIT, ge=1)
    log_dir: str | None = None
