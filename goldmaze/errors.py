"""
Gold Maze - Error Types

Errors raised by the map catalog and grid model.
Traversal transitions never raise; invalid intents are no-ops.
"""

from enum import Enum
from typing import Any, Optional


class ErrorType(Enum):
    """Error categories"""
    MISSING_NAME = "MISSING_NAME"
    MISSING_START = "MISSING_START"
    MISSING_EXIT = "MISSING_EXIT"
    NO_GOLD = "NO_GOLD"
    INVALID_TIME_LIMIT = "INVALID_TIME_LIMIT"
    INVALID_DIFFICULTY = "INVALID_DIFFICULTY"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
    NOT_FOUND = "NOT_FOUND"
    SESSION_NOT_FINISHED = "SESSION_NOT_FINISHED"


class ErrorMessages:
    MISSING_NAME = "Please enter a map name"
    MISSING_START = "Please set a start position"
    MISSING_EXIT = "Please set an exit position"
    NO_GOLD = "Please add at least one gold piece"
    INVALID_TIME_LIMIT = "Time limit must be a positive number of seconds"
    INVALID_DIFFICULTY = "Unknown difficulty: {difficulty}"
    OUT_OF_BOUNDS = "Position ({x}, {y}) is outside a {width}x{height} grid"
    MAP_NOT_FOUND = "Map unavailable: {map_id}"
    SESSION_NOT_FINISHED = "Session on map {map_id} is still active"


class GoldMazeError(Exception):
    def __init__(self, message: str, error_type: ErrorType):
        self.message = message
        self.error_type = error_type
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.error_type.value


class MapValidationError(GoldMazeError):
    """Map rejected at creation. The message is shown to the editor user."""

    @classmethod
    def missing_name(cls) -> "MapValidationError":
        return cls(ErrorMessages.MISSING_NAME, ErrorType.MISSING_NAME)

    @classmethod
    def missing_start(cls) -> "MapValidationError":
        return cls(ErrorMessages.MISSING_START, ErrorType.MISSING_START)

    @classmethod
    def missing_exit(cls) -> "MapValidationError":
        return cls(ErrorMessages.MISSING_EXIT, ErrorType.MISSING_EXIT)

    @classmethod
    def no_gold(cls) -> "MapValidationError":
        return cls(ErrorMessages.NO_GOLD, ErrorType.NO_GOLD)

    @classmethod
    def invalid_time_limit(cls) -> "MapValidationError":
        return cls(ErrorMessages.INVALID_TIME_LIMIT, ErrorType.INVALID_TIME_LIMIT)

    @classmethod
    def invalid_difficulty(cls, difficulty: Any) -> "MapValidationError":
        return cls(
            ErrorMessages.INVALID_DIFFICULTY.format(difficulty=difficulty),
            ErrorType.INVALID_DIFFICULTY,
        )


class OutOfBounds(GoldMazeError):
    """Grid access outside the grid. Always a caller bug."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(
            ErrorMessages.OUT_OF_BOUNDS.format(x=x, y=y, width=width, height=height),
            ErrorType.OUT_OF_BOUNDS,
        )
        self.x = x
        self.y = y


class NotFound(GoldMazeError):
    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, ErrorType.NOT_FOUND)
        self.key = key

    @classmethod
    def map_not_found(cls, map_id: str) -> "NotFound":
        return cls(ErrorMessages.MAP_NOT_FOUND.format(map_id=map_id), key=map_id)


class SessionNotFinished(GoldMazeError):
    def __init__(self, map_id: str):
        super().__init__(
            ErrorMessages.SESSION_NOT_FINISHED.format(map_id=map_id),
            ErrorType.SESSION_NOT_FINISHED,
        )
