"""
Gold Maze - Grid Model

Rectangular maze grid of typed cells.

ARCHITECTURE:
- Cells live in one flat row-major buffer (index = y * width + x)
- Shape never changes after creation
- set_cell_kind() is copy-on-write; set_in_place() is reserved for a
  play session's private working copy
- Positions are (x, y): x = column, y = row
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Sequence, Tuple

from goldmaze.errors import OutOfBounds


MIN_SIZE = 3


class CellKind(Enum):
    """Types of cells in a maze"""
    EMPTY = "empty"
    WALL = "wall"
    GOLD = "gold"
    EXIT = "exit"

    @property
    def is_walkable(self) -> bool:
        """Can the player step onto this?"""
        return self != CellKind.WALL

    @property
    def char(self) -> str:
        return _KIND_TO_CHAR[self]

    @staticmethod
    def from_char(char: str) -> "CellKind":
        try:
            return _CHAR_TO_KIND[char]
        except KeyError:
            raise ValueError(f"Unknown cell character: {char!r}") from None


_KIND_TO_CHAR = {
    CellKind.EMPTY: ".",
    CellKind.WALL: "#",
    CellKind.GOLD: "G",
    CellKind.EXIT: "E",
}
_CHAR_TO_KIND = {char: kind for kind, char in _KIND_TO_CHAR.items()}


@dataclass(frozen=True)
class Position:
    """A cell coordinate. x is the column, y is the row."""
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


class Grid:
    """
    A width x height maze.

    INVARIANTS:
    - len(cells) == width * height
    - width >= 3 and height >= 3
    """

    __slots__ = ("width", "height", "_cells")

    def __init__(self, width: int, height: int, cells: Sequence[CellKind]):
        if width < MIN_SIZE or height < MIN_SIZE:
            raise ValueError(f"Grid must be at least {MIN_SIZE}x{MIN_SIZE}, got {width}x{height}")
        if len(cells) != width * height:
            raise ValueError(f"Expected {width * height} cells, got {len(cells)}")
        self.width = width
        self.height = height
        self._cells: List[CellKind] = list(cells)

    # Construction

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "Grid":
        """Build a grid from ASCII rows ('#' wall, '.' empty, 'G' gold, 'E' exit)"""
        if not rows:
            raise ValueError("Grid needs at least one row")
        width = len(rows[0])
        cells: List[CellKind] = []
        for row in rows:
            if len(row) != width:
                raise ValueError("All grid rows must have the same length")
            cells.extend(CellKind.from_char(c) for c in row)
        return cls(width, len(rows), cells)

    def to_rows(self) -> List[str]:
        return [
            "".join(self._cells[y * self.width + x].char for x in range(self.width))
            for y in range(self.height)
        ]

    def copy(self) -> "Grid":
        return Grid(self.width, self.height, self._cells)

    # Lookup

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def is_border(self, pos: Position) -> bool:
        """True for cells on the outer ring"""
        return pos.x == 0 or pos.y == 0 or pos.x == self.width - 1 or pos.y == self.height - 1

    def _index(self, pos: Position) -> int:
        if not self.in_bounds(pos):
            raise OutOfBounds(pos.x, pos.y, self.width, self.height)
        return pos.y * self.width + pos.x

    def get(self, pos: Position) -> CellKind:
        return self._cells[self._index(pos)]

    def count(self, kind: CellKind) -> int:
        return self._cells.count(kind)

    def positions_of(self, kind: CellKind) -> Iterator[Position]:
        for index, cell in enumerate(self._cells):
            if cell is kind:
                yield Position(index % self.width, index // self.width)

    # Mutation

    def set_cell_kind(self, pos: Position, kind: CellKind) -> "Grid":
        """Return a new grid identical except for one cell"""
        index = self._index(pos)
        cells = list(self._cells)
        cells[index] = kind
        return Grid(self.width, self.height, cells)

    def set_in_place(self, pos: Position, kind: CellKind) -> None:
        """Mutate this grid. Only for grids owned by a single session."""
        self._cells[self._index(pos)] = kind

    # Comparison

    @property
    def shape(self) -> Tuple[int, int]:
        return self.width, self.height

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.shape == other.shape and self._cells == other._cells

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height})"


def create_grid(width: int, height: int) -> Grid:
    """New grid with a wall on the outer ring and empty cells inside"""
    if width < MIN_SIZE or height < MIN_SIZE:
        raise ValueError(f"Grid must be at least {MIN_SIZE}x{MIN_SIZE}, got {width}x{height}")
    cells = []
    for y in range(height):
        for x in range(width):
            border = x == 0 or y == 0 or x == width - 1 or y == height - 1
            cells.append(CellKind.WALL if border else CellKind.EMPTY)
    return Grid(width, height, cells)
