"""Rule limits for a rummy game."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

MIN_PLAYERS = 2
MAX_PLAYERS = 6
MAX_NAME_LENGTH = 50


class GameSettings(BaseModel):
    """
    Configurable limits applied when a game is created.

    Defaults match the standard table: 2-6 players, names up to 50 characters.
    """

    model_config = ConfigDict(frozen=True)

    min_players: int = Field(default=MIN_PLAYERS, ge=1)
    max_players: int = Field(default=MAX_PLAYERS, ge=1)
    max_name_length: int = Field(default=MAX_NAME_LENGTH, ge=1)

    @model_validator(mode="after")
    def _check_player_range(self) -> "GameSettings":
        if self.min_players > self.max_players:
            raise ValueError(f"min_players ({self.min_players}) must not exceed max_players ({self.max_players})")
        return self
