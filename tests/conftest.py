# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Add project root to sys.path so 'goldmaze' imports work without installing
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from goldmaze.engine.grid import Grid, Position
from goldmaze.world.maps import Difficulty, MapDefinition, create_map

# Start (1,1). Gold at (3,1) and (1,3). Exit at (5,3).
TWO_GOLD_ROWS = [
    "#######",
    "#..G..#",
    "#.###.#",
    "#G..#E#",
    "#######",
]


def make_map(rows=None, start=(1, 1), exit=(5, 3), difficulty=Difficulty.EASY,
             time_limit=60, name="Test Map", map_id="m1") -> MapDefinition:
    return create_map(
        name=name,
        difficulty=difficulty,
        time_limit_seconds=time_limit,
        grid=Grid.from_rows(rows or TWO_GOLD_ROWS),
        start=Position(*start),
        exit=Position(*exit),
        map_id=map_id,
    )


@pytest.fixture
def two_gold_map() -> MapDefinition:
    """7x5 easy map, 60 seconds, two gold pieces"""
    return make_map()


@pytest.fixture
def hard_map() -> MapDefinition:
    """Same layout on hard difficulty, so sessions get hammer charges"""
    return make_map(difficulty=Difficulty.HARD, map_id="m-hard")
