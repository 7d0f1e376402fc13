"""
Gold Maze - Seed Maps

The maps every catalog starts with, in the order they are offered to
players. Layouts are ASCII: '#' wall, '.' floor, 'G' gold, 'E' exit.
Every gold cell and the exit are reachable from the start without a hammer.
"""

import logging
from typing import List

from goldmaze.engine.grid import Grid, Position
from goldmaze.world.maps import Difficulty, MapCatalog, MapDefinition, create_map

logger = logging.getLogger(__name__)


SEED_LAYOUTS = [
    {
        "id": "map1",
        "name": "Beginner's Maze",
        "difficulty": Difficulty.EASY,
        "time_limit": 60,
        "start": (1, 1),
        "exit": (8, 8),
        "rows": [
            "##########",
            "#....#..G#",
            "#.##.#.#.#",
            "#.G#...#.#",
            "#.##.###.#",
            "#....G...#",
            "###.##.#.#",
            "#G..#..#G#",
            "#.#...#.E#",
            "##########",
        ],
    },
    {
        "id": "map2",
        "name": "Winding Paths",
        "difficulty": Difficulty.MEDIUM,
        "time_limit": 90,
        "start": (1, 1),
        "exit": (10, 10),
        "rows": [
            "############",
            "#...#....G.#",
            "#.#.#.##.#.#",
            "#.#G..#..#.#",
            "#.####.#.#.#",
            "#......#...#",
            "#.##.#.###.#",
            "#G.#.#...#G#",
            "#..#.###.#.#",
            "#.G#.....#.#",
            "#....#G...E#",
            "############",
        ],
    },
    {
        "id": "map3",
        "name": "The Labyrinth",
        "difficulty": Difficulty.HARD,
        "time_limit": 120,
        "start": (1, 1),
        "exit": (10, 10),
        "rows": [
            "############",
            "#..#...#..G#",
            "#G.#.#.#.#.#",
            "#..#.#...#.#",
            "#.##.#####.#",
            "#....#G....#",
            "####.#.###.#",
            "#G.#...#G..#",
            "#..#####.#.#",
            "#.#..G...#.#",
            "#G..#.#G..E#",
            "############",
        ],
    },
    {
        "id": "map4",
        "name": "Gold Rush",
        "difficulty": Difficulty.HARD,
        "time_limit": 150,
        "start": (1, 1),
        "exit": (12, 12),
        "rows": [
            "##############",
            "#....#...G...#",
            "#.##.#.#####.#",
            "#G.#...#G..#.#",
            "##.#####.#.#.#",
            "#..#.G.#.#...#",
            "#.##.#.#.###G#",
            "#G...#G#...#.#",
            "#.####.###.#.#",
            "#..G.#...#.#.#",
            "###.####.#.#.#",
            "#G..#G...#G#.#",
            "#.#...#G....E#",
            "##############",
        ],
    },
]


def build_seed_maps() -> List[MapDefinition]:
    """Build and validate every seed map"""
    maps = []
    for layout in SEED_LAYOUTS:
        maps.append(create_map(
            name=layout["name"],
            difficulty=layout["difficulty"],
            time_limit_seconds=layout["time_limit"],
            grid=Grid.from_rows(layout["rows"]),
            start=Position(*layout["start"]),
            exit=Position(*layout["exit"]),
            map_id=layout["id"],
        ))
    return maps


def create_seeded_catalog() -> MapCatalog:
    """A catalog holding the seed maps, ready for editor-created maps"""
    catalog = MapCatalog(build_seed_maps())
    logger.info(f"Map catalog seeded with {len(catalog)} maps")
    return catalog
