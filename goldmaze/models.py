"""
Data models for Gold Maze
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict


class Character(Enum):
    """Playable character themes"""
    EXPLORER = "explorer"
    NINJA = "ninja"
    ROBOT = "robot"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


CHARACTER_DESCRIPTIONS = {
    Character.EXPLORER: "Brave adventurer seeking treasures",
    Character.NINJA: "Swift and stealthy gold hunter",
    Character.ROBOT: "Mechanical gold detector",
}


def new_score_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ScoreRecord:
    """One finished attempt. Never mutated after it is stored."""
    map_id: str
    player_name: str
    character: str
    gold_score: int
    time_completed: int
    completed_in_time: bool
    id: str = field(default_factory=new_score_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "map_id": self.map_id,
            "player_name": self.player_name,
            "character": self.character,
            "gold_score": self.gold_score,
            "time_completed": self.time_completed,
            "completed_in_time": self.completed_in_time,
            "created_at": self.created_at.isoformat(),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ScoreRecord":
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return ScoreRecord(
            id=data["id"],
            map_id=data["map_id"],
            player_name=data["player_name"],
            character=data["character"],
            gold_score=int(data["gold_score"]),
            time_completed=int(data["time_completed"]),
            completed_in_time=bool(data["completed_in_time"]),
            created_at=created_at,
        )
