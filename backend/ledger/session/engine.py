from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ledger.logic import game as game_logic
from ledger.logic.exceptions import ValidationError
from ledger.logic.settings import GameSettings
from ledger.session.registry import GameRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ledger.logic.state import Game, Player, PlayerScore

logger = structlog.get_logger()


class GameSessionEngine:
    """
    Owns the live games and applies every scoring operation to them.

    Each mutator validates, computes the new game with ledger.logic.game,
    stores it in the registry and returns it. On ValidationError nothing is
    stored, so the previous game value stays current. Returned games are
    frozen snapshots; callers should treat older snapshots as stale.

    The engine is synchronous and does no locking. Callers must serialize
    mutations for a given game id.
    """

    def __init__(self, registry: GameRegistry | None = None, settings: GameSettings | None = None) -> None:
        self._registry = registry if registry is not None else GameRegistry()
        self._settings = settings or GameSettings()

    @property
    def settings(self) -> GameSettings:
        return self._settings

    def create_game(self, player_names: Sequence[str], target_score: int | None = None) -> Game:
        """Create and register a new active game."""
        try:
            game = game_logic.create_game(player_names, target_score, self._settings)
        except ValidationError as e:
            logger.warning("game creation rejected", reason=e.reason)
            raise
        self._registry.put(game)
        logger.info("game created", game_id=game.id, player_count=len(game.players), target_score=target_score)
        return game

    def add_round(self, game_id: str, scores: Sequence[PlayerScore]) -> Game:
        """
        Append a round to an active game.

        Completes the game before returning if a player reached the target.
        """
        game = self._get_active_game(game_id, "Cannot add rounds to a completed game")
        updated = self._apply(game_id, "add round", lambda: game_logic.add_round(game, scores))
        logger.info("round added", game_id=game_id, round_number=len(updated.rounds))
        return self._store_or_finalize(updated)

    def edit_round(self, game_id: str, round_id: str, scores: Sequence[PlayerScore]) -> Game:
        """Replace a round's scores, then re-check the end condition like add_round."""
        game = self._get_active_game(game_id, "Cannot edit rounds in a completed game")
        updated = self._apply(game_id, "edit round", lambda: game_logic.edit_round(game, round_id, scores))
        logger.info("round edited", game_id=game_id, round_id=round_id)
        return self._store_or_finalize(updated)

    def delete_round(self, game_id: str, round_id: str) -> Game:
        """
        Delete a round and renumber the rest.

        Does not re-run end detection; removing a round only lowers totals.
        """
        game = self._get_active_game(game_id, "Cannot delete rounds from a completed game")
        updated = self._apply(game_id, "delete round", lambda: game_logic.delete_round(game, round_id))
        self._registry.put(updated)
        logger.info("round deleted", game_id=game_id, round_id=round_id, rounds_left=len(updated.rounds))
        return updated

    def calculate_leaderboard(self, game: Game) -> list[Player]:
        return game_logic.calculate_leaderboard(game)

    def check_game_end(self, game: Game) -> bool:
        return game_logic.check_game_end(game)

    def end_game(self, game_id: str) -> Game:
        """Finalize an active game. The lowest total at this moment wins."""
        game = self._get_active_game(game_id, "Game is already completed")
        return self._finalize(game)

    def get_winner(self, game_id: str) -> Player | None:
        """Return the winning player of a completed game, or None while it is active."""
        game = self.get_game(game_id)
        if not game.is_completed or game.winner is None:
            return None
        return game.get_player(game.winner)

    def get_game(self, game_id: str) -> Game:
        game = self._registry.get(game_id)
        if game is None:
            raise ValidationError(f"Game with ID {game_id} not found")
        return game

    def register_game(self, game: Game) -> Game:
        """Put an externally loaded game (e.g. restored from storage) into the live collection."""
        self._registry.put(game)
        logger.debug("game registered", game_id=game.id, status=game.status)
        return game

    def game_exists(self, game_id: str) -> bool:
        return self._registry.contains(game_id)

    def get_all_games(self) -> list[Game]:
        return self._registry.values()

    def remove_game(self, game_id: str) -> bool:
        return self._registry.remove(game_id)

    def clear_all_games(self) -> None:
        self._registry.clear()

    def get_current_round_number(self, game_id: str) -> int:
        return game_logic.get_current_round_number(self.get_game(game_id))

    def _get_active_game(self, game_id: str, completed_reason: str) -> Game:
        game = self.get_game(game_id)
        if game.is_completed:
            logger.warning("operation on completed game rejected", game_id=game_id, reason=completed_reason)
            raise ValidationError(completed_reason)
        return game

    @staticmethod
    def _apply(game_id: str, operation: str, transition: Callable[[], Game]) -> Game:
        try:
            return transition()
        except ValidationError as e:
            logger.warning(f"{operation} rejected", game_id=game_id, reason=e.reason)
            raise

    def _store_or_finalize(self, game: Game) -> Game:
        if game_logic.check_game_end(game):
            return self._finalize(game)
        self._registry.put(game)
        return game

    def _finalize(self, game: Game) -> Game:
        completed = game_logic.end_game(game)
        self._registry.put(completed)
        logger.info(
            "game completed",
            game_id=completed.id,
            winner=completed.winner,
            rounds=len(completed.rounds),
        )
        return completed
