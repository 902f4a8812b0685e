"""File-backed game store keeping each record in its own JSON file."""

import contextlib
import os
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import TypeVar

import structlog

from ledger.logic.state import Game
from ledger.storage.codec import (
    decode_game,
    decode_history,
    decode_player_names,
    encode_game,
    encode_history,
    encode_player_names,
)
from ledger.storage.errors import DataCorruptionError, StorageError
from ledger.storage.repository import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_RECENT_PLAYERS_LIMIT,
    GameStore,
    merge_recent_players,
)

logger = structlog.get_logger()

_T = TypeVar("_T")

_DIR_PERMISSIONS = 0o700
_FILE_PERMISSIONS = 0o600  # owner read/write only
_QUARANTINE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

CURRENT_GAME_FILE = "current_game.json"
GAME_HISTORY_FILE = "game_history.json"
RECENT_PLAYERS_FILE = "recent_players.json"


class FileGameStore(GameStore):
    """File-backed game store.

    Writes are atomic (temp file in the same directory, then rename) so a
    reader never sees a truncated file. A file that cannot be decoded is
    renamed aside with a ".corrupt-<timestamp>" suffix and treated as empty,
    so one bad write does not block the app from starting.

    Limitation: single process only. There is no cross-process locking.
    """

    def __init__(
        self,
        data_dir: str | Path,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        recent_players_limit: int = DEFAULT_RECENT_PLAYERS_LIMIT,
    ) -> None:
        super().__init__(history_limit=history_limit, recent_players_limit=recent_players_limit)
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def save_game(self, game: Game) -> None:
        self._write(CURRENT_GAME_FILE, encode_game(game), operation="save_game")
        logger.debug("saved current game", game_id=game.id, status=game.status)

    def load_current_game(self) -> Game | None:
        return self._read(CURRENT_GAME_FILE, decode_game, default=None, operation="load_current_game")

    def clear_current_game(self) -> None:
        self._remove(CURRENT_GAME_FILE, operation="clear_current_game")

    def load_history(self) -> list[Game]:
        return self._read(GAME_HISTORY_FILE, decode_history, default=[], operation="load_history")

    def append_to_history(self, game: Game) -> None:
        history = [game, *(g for g in self.load_history() if g.id != game.id)]
        self._write(GAME_HISTORY_FILE, encode_history(history[: self._history_limit]), operation="append_to_history")
        logger.info("archived game", game_id=game.id, history_size=min(len(history), self._history_limit))

    def clear_history(self) -> None:
        self._remove(GAME_HISTORY_FILE, operation="clear_history")

    def save_recent_players(self, names: list[str]) -> None:
        merged = merge_recent_players(names, self.load_recent_players(), self._recent_players_limit)
        self._write(RECENT_PLAYERS_FILE, encode_player_names(merged), operation="save_recent_players")

    def load_recent_players(self) -> list[str]:
        return self._read(RECENT_PLAYERS_FILE, decode_player_names, default=[], operation="load_recent_players")

    def clear_recent_players(self) -> None:
        self._remove(RECENT_PLAYERS_FILE, operation="clear_recent_players")

    def _read(self, filename: str, decode: Callable[[str, str], _T], default: _T, operation: str) -> _T:
        """Read and decode a file. Missing files yield default; corrupt files are quarantined."""
        path = self._data_dir / filename
        if not path.exists():
            return default
        try:
            raw = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            self._discard_corrupt(path, exc)
            return default
        except OSError as exc:
            raise StorageError(f"Failed to read {path}", operation=operation) from exc

        try:
            return decode(raw, filename)
        except DataCorruptionError as exc:
            self._discard_corrupt(path, exc)
            return default

    def _discard_corrupt(self, path: Path, error: Exception) -> None:
        quarantined = self._quarantine(path)
        logger.warning(
            "quarantined corrupt storage file",
            path=str(path),
            quarantined_to=str(quarantined) if quarantined else None,
            error=str(error),
        )

    def _quarantine(self, path: Path) -> Path | None:
        timestamp = datetime.now(tz=UTC).strftime(_QUARANTINE_TIMESTAMP_FORMAT)
        target = path.with_name(f"{path.name}.corrupt-{timestamp}")
        try:
            path.replace(target)
        except OSError:
            logger.exception("could not quarantine corrupt file", path=str(path))
            return None
        return target

    def _write(self, filename: str, content: str, operation: str) -> None:
        """Atomically replace a file with owner-only permissions."""
        target = self._data_dir / filename
        try:
            self._data_dir.mkdir(mode=_DIR_PERMISSIONS, parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._data_dir, prefix=f".{target.stem}_", suffix=".tmp")
        except OSError as exc:
            raise StorageError(f"Failed to prepare write to {target}", operation=operation) from exc

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content.encode("utf-8"))
                f.flush()
                os.fsync(f.fileno())
                os.fchmod(f.fileno(), _FILE_PERMISSIONS)
            Path(tmp_path).replace(target)
        except OSError as exc:
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise StorageError(f"Failed to write {target}", operation=operation) from exc
        except BaseException:
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise

    def _remove(self, filename: str, operation: str) -> None:
        try:
            (self._data_dir / filename).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to remove {filename}", operation=operation) from exc
