from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledger.logic.state import Game


class GameRegistry:
    """In-memory collection of live games keyed by game id.

    Owned by exactly one GameSessionEngine. Games are frozen snapshots, so
    storing a new value is the only way a game changes.
    """

    def __init__(self) -> None:
        self._games: dict[str, Game] = {}  # game_id -> Game

    def __len__(self) -> int:
        return len(self._games)

    def get(self, game_id: str) -> Game | None:
        return self._games.get(game_id)

    def put(self, game: Game) -> None:
        """Insert or replace the game stored under game.id."""
        self._games[game.id] = game

    def remove(self, game_id: str) -> bool:
        """Remove a game. Return True if it was present."""
        return self._games.pop(game_id, None) is not None

    def contains(self, game_id: str) -> bool:
        return game_id in self._games

    def values(self) -> list[Game]:
        return list(self._games.values())

    def clear(self) -> None:
        self._games.clear()
