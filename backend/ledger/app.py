from pathlib import Path

import structlog

from ledger.session.engine import GameSessionEngine
from ledger.session.ledger import Ledger
from ledger.session.settings import LedgerSettings
from ledger.storage.connection import Database
from ledger.storage.file_store import FileGameStore
from ledger.storage.repository import GameStore
from ledger.storage.sqlite_store import SqliteGameStore
from shared.logging import setup_logging

logger = structlog.get_logger()


def create_store(settings: LedgerSettings) -> GameStore:
    """Build the store selected by settings.storage_backend."""
    if settings.storage_backend == "sqlite":
        db = Database(Path(settings.data_dir) / settings.sqlite_filename)
        db.connect()
        return SqliteGameStore(
            db,
            history_limit=settings.history_limit,
            recent_players_limit=settings.recent_players_limit,
        )
    return FileGameStore(
        settings.data_dir,
        history_limit=settings.history_limit,
        recent_players_limit=settings.recent_players_limit,
    )


def create_ledger(settings: LedgerSettings | None = None, *, store: GameStore | None = None) -> Ledger:
    """Wire engine and store into a loaded Ledger."""
    settings = settings or LedgerSettings()
    ledger = Ledger(GameSessionEngine(), store if store is not None else create_store(settings))
    ledger.load()
    logger.info("ledger ready", storage_backend=settings.storage_backend, data_dir=settings.data_dir)
    return ledger


def get_ledger() -> Ledger:  # pragma: no cover
    """Production entry point: read settings from the environment and configure logging."""
    settings = LedgerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_ledger(settings)
