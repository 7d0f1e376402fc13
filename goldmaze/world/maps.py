"""
Gold Maze - Map Definitions and Catalog

A map is a named maze with a difficulty tier, a time limit, a start cell
and an exit cell. Maps are validated once at creation and never change
afterwards; play sessions work on a copy of the grid.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from goldmaze.engine.grid import CellKind, Grid, Position
from goldmaze.errors import MapValidationError, NotFound

logger = logging.getLogger(__name__)


HARD_HAMMER_CHARGES = 3


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class MapDefinition:
    """
    A playable maze.

    INVARIANTS:
    - gold_count == grid.count(GOLD)
    - start and exit are in bounds, off the border, not walls, and distinct
    - the exit cell is the only EXIT cell in the grid
    """
    id: str
    name: str
    difficulty: Difficulty
    time_limit_seconds: int
    gold_count: int
    grid: Grid
    start: Position
    exit: Position

    @property
    def hammer_charges(self) -> int:
        """Starting hammer charges for a session on this map"""
        return HARD_HAMMER_CHARGES if self.difficulty == Difficulty.HARD else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "difficulty": self.difficulty.value,
            "time_limit_seconds": self.time_limit_seconds,
            "gold_count": self.gold_count,
            "hammer_charges": self.hammer_charges,
            "width": self.grid.width,
            "height": self.grid.height,
            "grid": self.grid.to_rows(),
            "start": self.start.to_dict(),
            "exit": self.exit.to_dict(),
        }


def _is_placeable(grid: Grid, pos: Optional[Position]) -> bool:
    if pos is None or not grid.in_bounds(pos):
        return False
    return grid.get(pos) != CellKind.WALL and not grid.is_border(pos)


def _parse_difficulty(difficulty: Union[Difficulty, str]) -> Difficulty:
    if isinstance(difficulty, Difficulty):
        return difficulty
    try:
        return Difficulty(str(difficulty).lower())
    except ValueError:
        raise MapValidationError.invalid_difficulty(difficulty) from None


def create_map(
    name: str,
    difficulty: Union[Difficulty, str],
    time_limit_seconds: int,
    grid: Grid,
    start: Optional[Position],
    exit: Optional[Position],
    map_id: Optional[str] = None,
) -> MapDefinition:
    """
    Validate and build a map.

    Checks run in order and stop at the first failure: name, start, exit,
    gold, time limit, difficulty. The gold count is taken from the grid.
    """
    name = (name or "").strip()
    if not name:
        raise MapValidationError.missing_name()

    if not _is_placeable(grid, start):
        raise MapValidationError.missing_start()

    if not _is_placeable(grid, exit) or exit == start:
        raise MapValidationError.missing_exit()

    # One exit per map. Gold is counted afterwards, since the exit
    # replaces whatever was drawn under it.
    canonical = grid.copy()
    for stale in list(canonical.positions_of(CellKind.EXIT)):
        if stale != exit:
            canonical.set_in_place(stale, CellKind.EMPTY)
    canonical.set_in_place(exit, CellKind.EXIT)

    gold_count = canonical.count(CellKind.GOLD)
    if gold_count < 1:
        raise MapValidationError.no_gold()

    if time_limit_seconds is None or int(time_limit_seconds) <= 0:
        raise MapValidationError.invalid_time_limit()

    tier = _parse_difficulty(difficulty)

    return MapDefinition(
        id=map_id or f"map_{uuid.uuid4().hex[:12]}",
        name=name,
        difficulty=tier,
        time_limit_seconds=int(time_limit_seconds),
        gold_count=gold_count,
        grid=canonical,
        start=start,
        exit=exit,
    )


class MapCatalog:
    """
    Ordered collection of maps.

    Maps are listed in creation order, so seed maps loaded at startup come
    first and editor-created maps follow.
    """

    def __init__(self, maps: Optional[List[MapDefinition]] = None):
        self._maps: Dict[str, MapDefinition] = {}
        for map_def in maps or []:
            self.add(map_def)

    def add(self, map_def: MapDefinition) -> MapDefinition:
        if map_def.id in self._maps:
            raise ValueError(f"Duplicate map id: {map_def.id}")
        self._maps[map_def.id] = map_def
        return map_def

    def list_maps(self) -> List[MapDefinition]:
        return list(self._maps.values())

    def get_map(self, map_id: str) -> MapDefinition:
        map_def = self._maps.get(map_id)
        if map_def is None:
            raise NotFound.map_not_found(map_id)
        return map_def

    def create_map(
        self,
        name: str,
        difficulty: Union[Difficulty, str],
        time_limit_seconds: int,
        grid: Grid,
        start: Optional[Position],
        exit: Optional[Position],
    ) -> MapDefinition:
        """Validate a new map and append it to the catalog"""
        map_def = create_map(name, difficulty, time_limit_seconds, grid, start, exit)
        self.add(map_def)
        logger.info(
            f"Map created: {map_def.id} '{map_def.name}' "
            f"({map_def.difficulty.value}, {map_def.gold_count} gold, {map_def.time_limit_seconds}s)"
        )
        return map_def

    def __len__(self) -> int:
        return len(self._maps)

    def __contains__(self, map_id: object) -> bool:
        return map_id in self._maps
