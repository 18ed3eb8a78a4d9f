"""Mine placement and neighbor-count precomputation.

Boards are addressed by linear index ``y * columns + x``. Everything here is
a pure function of its arguments plus the supplied random source.
"""
import math
import secrets
from dataclasses import dataclass
from typing import List, Optional, Set

from minesweeper.config import DEFAULT_MINE_RATIO, MIN_DIMENSION
from minesweeper.errors import InvalidInput
from minesweeper.types import Cell, CellStatus

_system_random = secrets.SystemRandom()


@dataclass
class MineLayout:
    """Mine positions and per-cell neighbor counts for one board."""
    rows: int
    columns: int
    mines: Set[int]
    neighbor_counts: List[int]


def compute_mine_count(total_cells: int, mine_ratio: float = DEFAULT_MINE_RATIO) -> int:
    """Derive a mine count from the board size, keeping at least one safe cell."""
    if total_cells <= 1:
        return 0
    desired = math.floor(total_cells * mine_ratio)
    return min(total_cells - 1, max(1, desired))


def clamp_mine_count(total_cells: int, requested: int) -> int:
    """Clamp a caller-supplied mine count to ``[0, total_cells - 1]``."""
    return min(max(requested, 0), max(total_cells - 1, 0))


def pick_mine_positions(total_cells: int, mine_count: int, rng=None) -> Set[int]:
    """Select ``mine_count`` distinct linear indices uniformly at random.

    Runs the first ``mine_count`` steps of a Fisher-Yates shuffle. ``rng``
    needs a ``randrange`` method; it defaults to the system CSPRNG.
    """
    rng = rng or _system_random
    count = min(mine_count, total_cells)
    positions = list(range(total_cells))
    for i in range(count):
        j = rng.randrange(i, total_cells)
        positions[i], positions[j] = positions[j], positions[i]
    return set(positions[:count])


def count_neighboring_mines(x: int, y: int, rows: int, columns: int, mines: Set[int]) -> int:
    """Count the number of mines in neighboring cells."""
    count = 0
    for dy in [-1, 0, 1]:
        for dx in [-1, 0, 1]:
            if dx == 0 and dy == 0:
                continue
            nx = x + dx
            ny = y + dy
            if 0 <= nx < columns and 0 <= ny < rows:
                if ny * columns + nx in mines:
                    count += 1
    return count


def compute_neighbor_counts(rows: int, columns: int, mines: Set[int]) -> List[int]:
    """Neighbor mine count for every cell; mine cells report 0.

    Walks the mines and bumps their neighbors instead of scanning all eight
    neighbors of every cell.
    """
    counts = [0] * (rows * columns)
    for index in mines:
        y, x = divmod(index, columns)
        for dy in [-1, 0, 1]:
            for dx in [-1, 0, 1]:
                if dx == 0 and dy == 0:
                    continue
                nx = x + dx
                ny = y + dy
                if 0 <= nx < columns and 0 <= ny < rows:
                    counts[ny * columns + nx] += 1
    for index in mines:
        counts[index] = 0
    return counts


def generate(rows: int, columns: int, mine_count: Optional[int] = None,
             rng=None, mine_ratio: float = DEFAULT_MINE_RATIO) -> MineLayout:
    """Produce a mine layout for a ``rows`` x ``columns`` board."""
    if rows < MIN_DIMENSION or columns < MIN_DIMENSION:
        raise InvalidInput(f"Board must be at least {MIN_DIMENSION}x{MIN_DIMENSION}")

    total_cells = rows * columns
    if mine_count is None:
        mine_count = compute_mine_count(total_cells, mine_ratio)
    else:
        mine_count = clamp_mine_count(total_cells, mine_count)

    mines = pick_mine_positions(total_cells, mine_count, rng)
    return MineLayout(
        rows=rows,
        columns=columns,
        mines=mines,
        neighbor_counts=compute_neighbor_counts(rows, columns, mines),
    )


def build_cells(layout: MineLayout) -> List[Cell]:
    """Initial hidden cells for a layout, ordered by linear index."""
    cells: List[Cell] = []
    for y in range(layout.rows):
        for x in range(layout.columns):
            index = y * layout.columns + x
            cells.append(Cell(
                x=x,
                y=y,
                is_mine=index in layout.mines,
                neighboring_mine_count=layout.neighbor_counts[index],
                status=CellStatus.HIDDEN,
            ))
    return cells
