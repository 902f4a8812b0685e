"""Abstract interface for game persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ledger.storage.errors import StorageError

if TYPE_CHECKING:
    from ledger.logic.state import Game

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_RECENT_PLAYERS_LIMIT = 50


def merge_recent_players(new_names: list[str], current: list[str], limit: int) -> list[str]:
    """Put new names first, drop repeats (first occurrence wins), keep at most limit."""
    merged = list(dict.fromkeys([*new_names, *current]))
    return merged[:limit]


class GameStore(ABC):
    """
    Abstract interface for game persistence.

    Holds three things: the single current game, the history of finished
    games (newest first, capped), and the recently used player names.
    Implementations can use files, SQLite, etc.
    """

    def __init__(
        self,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        recent_players_limit: int = DEFAULT_RECENT_PLAYERS_LIMIT,
    ) -> None:
        self._history_limit = history_limit
        self._recent_players_limit = recent_players_limit

    @abstractmethod
    def save_game(self, game: Game) -> None:
        """Store game as the current game, replacing any previous one."""

    @abstractmethod
    def load_current_game(self) -> Game | None: ...

    @abstractmethod
    def clear_current_game(self) -> None: ...

    @abstractmethod
    def load_history(self) -> list[Game]:
        """Return archived games, newest first."""

    @abstractmethod
    def append_to_history(self, game: Game) -> None:
        """Archive a game at the front of history, trimming to history_limit."""

    @abstractmethod
    def clear_history(self) -> None: ...

    @abstractmethod
    def save_recent_players(self, names: list[str]) -> None: ...

    @abstractmethod
    def load_recent_players(self) -> list[str]: ...

    @abstractmethod
    def clear_recent_players(self) -> None: ...

    def load_game(self, game_id: str) -> Game:
        """
        Find a game by id in the current slot, then in history.

        Raises:
            StorageError: If no stored game has that id

        """
        current = self.load_current_game()
        if current is not None and current.id == game_id:
            return current
        for game in self.load_history():
            if game.id == game_id:
                return game
        raise StorageError(f"Game with ID {game_id} not found", operation="load_game")

    def clear_all(self) -> None:
        self.clear_current_game()
        self.clear_history()
        self.clear_recent_players()

    def close(self) -> None:
        """Release any held resources. Stores without open handles need not override this."""
