"""
Immutable game state models for the rummy ledger.

Every model is a frozen Pydantic model. Transitions in ledger.logic.game
return new instances via model_copy and never mutate their input.

JSON field names are camelCase (totalScore, isRummy, roundNumber, ...) to
match the stored game format; Python attribute names stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from ledger.logic.enums import GameStatus

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Player(BaseModel):
    """
    A player seated in one game.

    total_score and is_leader are derived from the game's rounds and are
    recomputed after every mutation.
    """

    model_config = _MODEL_CONFIG

    id: str
    name: str
    total_score: int = 0
    is_leader: bool = False


class PlayerScore(BaseModel):
    """One player's penalty points for one round."""

    model_config = _MODEL_CONFIG

    player_id: str
    score: int
    is_rummy: bool = False  # player went out; score is forced to 0


class Round(BaseModel):
    model_config = _MODEL_CONFIG

    id: str
    round_number: int
    scores: tuple[PlayerScore, ...]
    timestamp: datetime


class GameStats(BaseModel):
    """Summary figures for a game, computed on demand."""

    model_config = _MODEL_CONFIG

    total_rounds: int
    average_score: float
    highest_score: int
    lowest_score: int
    rummy_count: int


class Game(BaseModel):
    """
    A single scored game.

    Structural invariants are checked whenever a Game is validated from raw
    data (construction or model_validate), so a malformed stored record is
    rejected at load time. Player-count limits are a creation rule and are
    enforced by ledger.logic.validation instead.
    """

    model_config = _MODEL_CONFIG

    id: str
    players: tuple[Player, ...]
    rounds: tuple[Round, ...] = ()
    target_score: int | None = None
    status: GameStatus = GameStatus.ACTIVE
    created_at: datetime
    completed_at: datetime | None = None
    winner: str | None = None  # player id, set iff status is COMPLETED

    @property
    def player_ids(self) -> list[str]:
        return [p.id for p in self.players]

    @property
    def is_completed(self) -> bool:
        return self.status == GameStatus.COMPLETED

    def get_player(self, player_id: str) -> Player | None:
        return next((p for p in self.players if p.id == player_id), None)

    def get_round(self, round_id: str) -> Round | None:
        return next((r for r in self.rounds if r.id == round_id), None)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Game":
        if not self.players:
            raise ValueError("game must have players")
        names = [p.name for p in self.players]
        if len(set(names)) != len(names):
            raise ValueError("player names must be unique")
        player_ids = set(self.player_ids)
        if len(player_ids) != len(self.players):
            raise ValueError("player ids must be unique")
        if self.target_score is not None and self.target_score <= 0:
            raise ValueError("target score must be positive")

        for index, game_round in enumerate(self.rounds, start=1):
            if game_round.round_number != index:
                raise ValueError(f"round numbers must be contiguous from 1, got {game_round.round_number} at {index}")
            score_ids = [s.player_id for s in game_round.scores]
            if len(score_ids) != len(set(score_ids)) or set(score_ids) != player_ids:
                raise ValueError(f"round {index} scores must cover every player exactly once")
            if any(s.score < 0 for s in game_round.scores):
                raise ValueError(f"round {index} has a negative score")

        if self.is_completed:
            if self.winner is None or self.completed_at is None:
                raise ValueError("completed game must have a winner and completed_at")
            if self.winner not in player_ids:
                raise ValueError("winner must be one of the players")
            same_awareness = (self.completed_at.tzinfo is None) == (self.created_at.tzinfo is None)
            if same_awareness and self.completed_at < self.created_at:
                raise ValueError("completed_at cannot be before created_at")
        elif self.winner is not None or self.completed_at is not None:
            raise ValueError("active game cannot have a winner or completed_at")
        return self
