"""Rule checks for game creation and round scoring.

Each check raises ValidationError with a reason that names the violated
rule, so callers can tell "wrong player count" from "duplicate name" from
"invalid target score".
"""

from collections.abc import Sequence

from ledger.logic.exceptions import ValidationError
from ledger.logic.settings import GameSettings
from ledger.logic.state import Game, PlayerScore


def is_valid_player_name(name: object, max_length: int) -> bool:
    if not isinstance(name, str):
        return False
    trimmed = name.strip()
    return 0 < len(trimmed) <= max_length


def validate_player_names(player_names: Sequence[str], settings: GameSettings) -> None:
    """
    Validate the ordered list of names used to create a game.

    Names are compared after trimming, with exact (case-sensitive) equality.
    """
    count = len(player_names)
    if not (settings.min_players <= count <= settings.max_players):
        raise ValidationError(
            f"Must have between {settings.min_players} and {settings.max_players} players, got {count}",
        )

    for index, name in enumerate(player_names):
        if not is_valid_player_name(name, settings.max_name_length):
            raise ValidationError(
                f"Invalid player name at index {index}: must be 1-{settings.max_name_length} characters",
            )

    trimmed = [name.strip() for name in player_names]
    if len(set(trimmed)) != len(trimmed):
        raise ValidationError("All player names must be unique")


def validate_target_score(target_score: object) -> None:
    """Accept None or a positive int. Booleans and floats are rejected, even 10.0."""
    if target_score is None:
        return
    if isinstance(target_score, bool) or not isinstance(target_score, int) or target_score <= 0:
        raise ValidationError(f"Target score must be a positive integer, got {target_score!r}")


def validate_round_scores(game: Game, scores: Sequence[PlayerScore]) -> None:
    """
    Validate a full set of scores for one round of the given game.

    Expects scores that have already been Rummy-normalized. The player ids must
    match the game's players exactly: no omissions, no extras, no duplicates.
    """
    for index, player_score in enumerate(scores):
        if player_score.score < 0:
            raise ValidationError(
                f"Invalid player score at index {index}: score must be a non-negative integer",
            )

    score_ids = [s.player_id for s in scores]
    if len(set(score_ids)) != len(score_ids):
        raise ValidationError("Each player may only have one score per round")
    if set(score_ids) != set(game.player_ids):
        raise ValidationError("All players must have scores for the round")
