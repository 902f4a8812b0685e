from enum import Enum


class GameStatus(str, Enum):
    """Lifecycle status of a game. Transitions only ACTIVE -> COMPLETED."""

    ACTIVE = "active"
    COMPLETED = "completed"
