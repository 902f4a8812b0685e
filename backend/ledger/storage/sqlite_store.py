"""SQLite-backed game store."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import structlog

from ledger.storage.codec import decode_game, encode_game
from ledger.storage.errors import DataCorruptionError, StorageError
from ledger.storage.repository import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_RECENT_PLAYERS_LIMIT,
    GameStore,
    merge_recent_players,
)

if TYPE_CHECKING:
    from ledger.logic.state import Game
    from ledger.storage.connection import Database

logger = structlog.get_logger()


class SqliteGameStore(GameStore):
    """SQLite implementation of GameStore.

    Stores full game snapshots as JSON, with indexed columns for ordering.
    Rows that fail to decode are skipped with a warning and left in place
    for inspection rather than deleted.
    """

    def __init__(
        self,
        db: Database,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        recent_players_limit: int = DEFAULT_RECENT_PLAYERS_LIMIT,
    ) -> None:
        super().__init__(history_limit=history_limit, recent_players_limit=recent_players_limit)
        self._db = db

    def save_game(self, game: Game) -> None:
        self._execute(
            "save_game",
            "INSERT INTO current_game (slot, id, data) VALUES (0, ?, ?) "
            "ON CONFLICT(slot) DO UPDATE SET id = excluded.id, data = excluded.data",
            (game.id, encode_game(game)),
        )
        logger.debug("saved current game", game_id=game.id, status=game.status)

    def load_current_game(self) -> Game | None:
        row = self._db.connection.execute("SELECT data FROM current_game WHERE slot = 0").fetchone()
        if row is None:
            return None
        try:
            return decode_game(row[0], key="current_game")
        except DataCorruptionError as exc:
            logger.warning("skipping corrupt current game row", error=str(exc))
            return None

    def clear_current_game(self) -> None:
        self._execute("clear_current_game", "DELETE FROM current_game")

    def load_history(self) -> list[Game]:
        rows = self._db.connection.execute(
            "SELECT id, data FROM game_history ORDER BY seq DESC LIMIT ?",
            (self._history_limit,),
        ).fetchall()
        games: list[Game] = []
        for game_id, data in rows:
            try:
                games.append(decode_game(data, key=f"game_history[{game_id}]"))
            except DataCorruptionError as exc:
                logger.warning("skipping corrupt history row", game_id=game_id, error=str(exc))
        return games

    def append_to_history(self, game: Game) -> None:
        """Archive a game as the newest history entry and trim older ones past the limit."""
        conn = self._db.connection
        try:
            conn.execute("DELETE FROM game_history WHERE id = ?", (game.id,))
            conn.execute(
                "INSERT INTO game_history (id, created_at, completed_at, data) VALUES (?, ?, ?, ?)",
                (
                    game.id,
                    game.created_at.isoformat(),
                    game.completed_at.isoformat() if game.completed_at else None,
                    encode_game(game),
                ),
            )
            conn.execute(
                "DELETE FROM game_history WHERE seq NOT IN (SELECT seq FROM game_history ORDER BY seq DESC LIMIT ?)",
                (self._history_limit,),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError("Failed to add game to history", operation="append_to_history") from exc
        logger.info("archived game", game_id=game.id)

    def clear_history(self) -> None:
        self._execute("clear_history", "DELETE FROM game_history")

    def save_recent_players(self, names: list[str]) -> None:
        merged = merge_recent_players(names, self.load_recent_players(), self._recent_players_limit)
        conn = self._db.connection
        try:
            conn.execute("DELETE FROM recent_players")
            conn.executemany(
                "INSERT INTO recent_players (position, name) VALUES (?, ?)",
                list(enumerate(merged)),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError("Failed to save player history", operation="save_recent_players") from exc

    def load_recent_players(self) -> list[str]:
        rows = self._db.connection.execute("SELECT name FROM recent_players ORDER BY position").fetchall()
        return [row[0] for row in rows]

    def clear_recent_players(self) -> None:
        self._execute("clear_recent_players", "DELETE FROM recent_players")

    def close(self) -> None:
        self._db.close()

    def _execute(self, operation: str, sql: str, params: tuple[object, ...] = ()) -> None:
        conn = self._db.connection
        try:
            conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(f"Failed to {operation.replace('_', ' ')}", operation=operation) from exc
