"""
Game creation and round progression for rummy scorekeeping.

All functions are pure: they take a frozen Game and return a new one.
Status checks and automatic finalization are the engine's job
(ledger.session.engine); these functions only apply the transition.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import uuid4

from ledger.logic.enums import GameStatus
from ledger.logic.exceptions import ValidationError
from ledger.logic.settings import GameSettings
from ledger.logic.state import Game, GameStats, Player, PlayerScore, Round
from ledger.logic.validation import validate_player_names, validate_round_scores, validate_target_score


def _utcnow() -> datetime:
    return datetime.now(UTC)


def generate_id() -> str:
    return str(uuid4())


def create_player(name: str) -> Player:
    return Player(id=generate_id(), name=name.strip())


def create_player_score(player_id: str, score: int, *, is_rummy: bool = False) -> PlayerScore:
    """Build a PlayerScore. A Rummy always scores 0, whatever was entered."""
    return PlayerScore(player_id=player_id, score=0 if is_rummy else score, is_rummy=is_rummy)


def normalize_scores(scores: Sequence[PlayerScore]) -> tuple[PlayerScore, ...]:
    """Force the score of every Rummy entry to 0."""
    return tuple(s.model_copy(update={"score": 0}) if s.is_rummy and s.score != 0 else s for s in scores)


def create_game(
    player_names: Sequence[str],
    target_score: int | None = None,
    settings: GameSettings | None = None,
) -> Game:
    """
    Create a new active game with no rounds.

    Players are created in input order with zero totals and no leader.

    Raises:
        ValidationError: If the player count, any name, or the target score is invalid

    """
    validate_player_names(player_names, settings or GameSettings())
    validate_target_score(target_score)

    return Game(
        id=generate_id(),
        players=tuple(create_player(name) for name in player_names),
        target_score=target_score,
        status=GameStatus.ACTIVE,
        created_at=_utcnow(),
    )


def calculate_player_totals(game: Game) -> tuple[Player, ...]:
    """Return the game's players, in seat order, with totals summed over all rounds."""
    totals = dict.fromkeys(game.player_ids, 0)
    for game_round in game.rounds:
        for player_score in game_round.scores:
            totals[player_score.player_id] = totals.get(player_score.player_id, 0) + player_score.score
    return tuple(p.model_copy(update={"total_score": totals[p.id]}) for p in game.players)


def _mark_leaders(players: Sequence[Player]) -> list[Player]:
    """Flag every player tied for the lowest total."""
    if not players:
        return []
    lowest = min(p.total_score for p in players)
    return [p.model_copy(update={"is_leader": p.total_score == lowest}) for p in players]


def refresh_standings(game: Game) -> Game:
    """Recompute every player's total_score and is_leader from the rounds."""
    players = _mark_leaders(calculate_player_totals(game))
    return game.model_copy(update={"players": tuple(players)})


def calculate_leaderboard(game: Game) -> list[Player]:
    """
    Rank players by total score, lowest first (rummy is penalty scoring).

    The sort is stable, so tied players keep their registration order.
    Does not modify the game.
    """
    ranked = sorted(calculate_player_totals(game), key=lambda p: p.total_score)
    return _mark_leaders(ranked)


def _find_round_index(game: Game, round_id: str) -> int:
    for index, game_round in enumerate(game.rounds):
        if game_round.id == round_id:
            return index
    raise ValidationError(f"Round with ID {round_id} not found")


def add_round(game: Game, scores: Sequence[PlayerScore]) -> Game:
    """
    Append a round numbered after the last one and refresh standings.

    Raises:
        ValidationError: If the scores do not cover the game's players exactly

    """
    normalized = normalize_scores(scores)
    validate_round_scores(game, normalized)
    new_round = Round(
        id=generate_id(),
        round_number=len(game.rounds) + 1,
        scores=normalized,
        timestamp=_utcnow(),
    )
    return refresh_standings(game.model_copy(update={"rounds": (*game.rounds, new_round)}))


def edit_round(game: Game, round_id: str, scores: Sequence[PlayerScore]) -> Game:
    """
    Replace one round's scores, keeping its number and refreshing its timestamp.

    Raises:
        ValidationError: If the round does not exist or the scores are invalid

    """
    index = _find_round_index(game, round_id)
    normalized = normalize_scores(scores)
    validate_round_scores(game, normalized)
    rounds = list(game.rounds)
    rounds[index] = rounds[index].model_copy(update={"scores": normalized, "timestamp": _utcnow()})
    return refresh_standings(game.model_copy(update={"rounds": tuple(rounds)}))


def delete_round(game: Game, round_id: str) -> Game:
    """
    Remove a round and renumber the rest 1..N in their existing order.

    Raises:
        ValidationError: If the round does not exist

    """
    _find_round_index(game, round_id)
    remaining = [r for r in game.rounds if r.id != round_id]
    rounds = tuple(r.model_copy(update={"round_number": number}) for number, r in enumerate(remaining, start=1))
    return refresh_standings(game.model_copy(update={"rounds": rounds}))


def check_game_end(game: Game) -> bool:
    """True when an active game with a target has a player at or above it."""
    if game.target_score is None or game.is_completed:
        return False
    return any(p.total_score >= game.target_score for p in calculate_player_totals(game))


def determine_winner(game: Game) -> Player | None:
    """Lowest total wins; ties go to the earliest registered player."""
    leaderboard = calculate_leaderboard(game)
    return leaderboard[0] if leaderboard else None


def end_game(game: Game) -> Game:
    """Mark the game completed now, with the current best player as winner."""
    winner = determine_winner(game)
    refreshed = refresh_standings(game)
    return refreshed.model_copy(
        update={
            "status": GameStatus.COMPLETED,
            "completed_at": _utcnow(),
            "winner": winner.id if winner is not None else None,
        },
    )


def get_current_round_number(game: Game) -> int:
    """Number the next round would get."""
    return len(game.rounds) + 1


def get_game_stats(game: Game) -> GameStats:
    totals = [p.total_score for p in calculate_player_totals(game)]
    rummy_count = sum(1 for game_round in game.rounds for s in game_round.scores if s.is_rummy)
    return GameStats(
        total_rounds=len(game.rounds),
        average_score=sum(totals) / len(totals) if totals else 0.0,
        highest_score=max(totals, default=0),
        lowest_score=min(totals, default=0),
        rummy_count=rummy_count,
    )
