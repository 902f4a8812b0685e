"""
JSON encoding of games for persistence.

Games are stored with camelCase keys and ISO-8601 timestamps. Decoding
goes through the Pydantic models, which validate the game invariants, and
then re-derives player totals and leader flags from the rounds so a stale
or hand-edited total can never reach the engine.
"""

import json
from typing import Any

import structlog
from pydantic import StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ledger.logic.game import normalize_scores, refresh_standings
from ledger.logic.state import Game
from ledger.storage.errors import DataCorruptionError

logger = structlog.get_logger()

_PLAYER_NAMES_ADAPTER = TypeAdapter(list[StrictStr])


def game_to_dict(game: Game) -> dict[str, Any]:
    return game.model_dump(mode="json", by_alias=True)


def encode_game(game: Game) -> str:
    return game.model_dump_json(by_alias=True)


def encode_history(games: list[Game]) -> str:
    return json.dumps([game_to_dict(game) for game in games])


def encode_player_names(names: list[str]) -> str:
    return json.dumps(names)


def decode_game(data: str | bytes | dict[str, Any], key: str = "game") -> Game:
    """
    Decode one stored game.

    Raises:
        DataCorruptionError: If the data is not valid JSON or not a valid game

    """
    try:
        if isinstance(data, dict):
            game = Game.model_validate(data)
        else:
            game = Game.model_validate_json(data)
    except PydanticValidationError as exc:
        raise DataCorruptionError(key, f"{exc.error_count()} validation error(s)") from exc
    return _rederive(game)


def _rederive(game: Game) -> Game:
    """Re-apply the Rummy rule to every round, then recompute totals and leaders.

    A game with no rounds where nobody leads is still in its creation state
    and keeps those flags.
    """
    rounds = tuple(r.model_copy(update={"scores": normalize_scores(r.scores)}) for r in game.rounds)
    game = game.model_copy(update={"rounds": rounds})
    if not rounds and not any(p.is_leader for p in game.players):
        players = tuple(p.model_copy(update={"total_score": 0}) for p in game.players)
        return game.model_copy(update={"players": players})
    return refresh_standings(game)


def decode_history(data: str | bytes, key: str = "game_history") -> list[Game]:
    """
    Decode a stored history list, dropping individual malformed entries.

    Raises:
        DataCorruptionError: If the data is not a JSON array

    """
    try:
        entries = json.loads(data)
    except json.JSONDecodeError as exc:
        raise DataCorruptionError(key, "invalid JSON") from exc
    if not isinstance(entries, list):
        raise DataCorruptionError(key, "expected a JSON array")

    games: list[Game] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning("dropping malformed history entry", key=key, index=index)
            continue
        try:
            games.append(decode_game(entry, key=f"{key}[{index}]"))
        except DataCorruptionError:
            logger.warning("dropping malformed history entry", key=key, index=index)
    return games


def decode_player_names(data: str | bytes, key: str = "recent_players") -> list[str]:
    """
    Decode a stored list of player names.

    Raises:
        DataCorruptionError: If the data is not a JSON array of strings

    """
    try:
        return _PLAYER_NAMES_ADAPTER.validate_json(data)
    except PydanticValidationError as exc:
        raise DataCorruptionError(key, "expected a JSON array of strings") from exc
