from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ledger.logic.exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ledger.logic.state import Game, Player, PlayerScore
    from ledger.session.engine import GameSessionEngine
    from ledger.storage.repository import GameStore

logger = structlog.get_logger()


class Ledger:
    """
    Tracks the current game on top of an engine and keeps it persisted.

    After every successful mutation the game is saved as the current game.
    When a game completes, automatically or through end_game, it is moved
    to history and the current slot is cleared.

    Lifecycle:
    - load(): restore current game, history and recent players from the store
    - start_game(): replaces any current game with a new one
    - add_round / edit_round / delete_round / end_game: act on the current game
    """

    def __init__(self, engine: GameSessionEngine, store: GameStore) -> None:
        self._engine = engine
        self._store = store
        self._current_game_id: str | None = None
        self._history: list[Game] = []
        self._recent_players: list[str] = []

    @property
    def engine(self) -> GameSessionEngine:
        return self._engine

    @property
    def current_game(self) -> Game | None:
        if self._current_game_id is None:
            return None
        return self._engine.get_game(self._current_game_id)

    @property
    def history(self) -> list[Game]:
        return list(self._history)

    @property
    def recent_players(self) -> list[str]:
        return list(self._recent_players)

    @property
    def leaderboard(self) -> list[Player]:
        game = self.current_game
        return self._engine.calculate_leaderboard(game) if game is not None else []

    def load(self) -> None:
        """Restore state from the store. A stored game that is already completed is archived."""
        current = self._store.load_current_game()
        if current is not None and current.is_completed:
            logger.info("archiving completed game left in current slot", game_id=current.id)
            self._store.append_to_history(current)
            self._store.clear_current_game()
            current = None

        if current is not None:
            self._engine.register_game(current)
            self._current_game_id = current.id
        self._history = self._store.load_history()
        self._recent_players = self._store.load_recent_players()
        logger.info(
            "ledger loaded",
            current_game_id=self._current_game_id,
            history_size=len(self._history),
            recent_players=len(self._recent_players),
        )

    def start_game(self, player_names: Sequence[str], target_score: int | None = None) -> Game:
        """Create a new game and make it current. An unfinished current game is discarded."""
        game = self._engine.create_game(player_names, target_score)
        if self._current_game_id is not None:
            logger.info("discarding unfinished game", game_id=self._current_game_id, replaced_by=game.id)
            self._engine.remove_game(self._current_game_id)
        self._current_game_id = game.id

        self._store.save_game(game)
        self._store.save_recent_players([p.name for p in game.players])
        self._recent_players = self._store.load_recent_players()
        return game

    def add_round(self, scores: Sequence[PlayerScore]) -> Game:
        return self._commit(self._engine.add_round(self._require_current_game_id(), scores))

    def edit_round(self, round_id: str, scores: Sequence[PlayerScore]) -> Game:
        return self._commit(self._engine.edit_round(self._require_current_game_id(), round_id, scores))

    def delete_round(self, round_id: str) -> Game:
        return self._commit(self._engine.delete_round(self._require_current_game_id(), round_id))

    def end_game(self) -> Game:
        return self._commit(self._engine.end_game(self._require_current_game_id()))

    def close(self) -> None:
        """Close the underlying store. The ledger must not be used afterwards."""
        self._store.close()
        logger.debug("ledger closed")

    def _require_current_game_id(self) -> str:
        if self._current_game_id is None:
            raise ValidationError("No active game found")
        return self._current_game_id

    def _commit(self, game: Game) -> Game:
        if not game.is_completed:
            self._store.save_game(game)
            return game

        self._store.append_to_history(game)
        self._store.clear_current_game()
        self._current_game_id = None
        self._history = self._store.load_history()
        return game
