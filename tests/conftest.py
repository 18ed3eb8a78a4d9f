"""
Pytest configuration and shared fixtures.
"""
import random
from typing import Callable, Dict, Iterable, Optional, Tuple

import pytest

from minesweeper.grid import MineLayout, build_cells, compute_neighbor_counts
from minesweeper.service import GameService
from minesweeper.store import InMemoryGameStore
from minesweeper.types import CellStatus, Game, GameStatus


GAME_ID = "00000000-0000-4000-8000-000000000001"


class FirstChoiceRandom:
    """Random source that always picks the lowest candidate.

    With the partial Fisher-Yates shuffle this places mines on linear
    indices ``0 .. mine_count - 1``.
    """

    def randrange(self, start: int, stop: int) -> int:
        return start


def make_game(
    rows: int,
    columns: int,
    mines: Iterable[int] = (),
    statuses: Optional[Dict[Tuple[int, int], CellStatus]] = None,
    status: GameStatus = GameStatus.ACTIVE,
    game_id: str = GAME_ID,
) -> Game:
    """Build a game with a fixed mine layout and optional cell statuses."""
    mine_set = set(mines)
    layout = MineLayout(
        rows=rows,
        columns=columns,
        mines=mine_set,
        neighbor_counts=compute_neighbor_counts(rows, columns, mine_set),
    )
    game = Game(
        id=game_id,
        rows=rows,
        columns=columns,
        mine_count=len(mine_set),
        status=status,
        cells=build_cells(layout),
    )
    for (x, y), cell_status in (statuses or {}).items():
        game.cells[game.index_of(x, y)].status = cell_status
    return game


# ============================================================================
# Random Source Fixtures
# ============================================================================

@pytest.fixture
def seeded_rng() -> random.Random:
    """Deterministic random source."""
    return random.Random(1234)


@pytest.fixture
def first_choice_rng() -> FirstChoiceRandom:
    """Random source that places mines on the lowest indices."""
    return FirstChoiceRandom()


# ============================================================================
# Game Fixtures
# ============================================================================

@pytest.fixture
def game_factory() -> Callable[..., Game]:
    """Factory for games with fixed layouts."""
    return make_game


@pytest.fixture
def corner_mine_game() -> Game:
    """A 3x3 game with a single mine in the top-left corner."""
    return make_game(3, 3, mines={0})


@pytest.fixture
def open_game() -> Game:
    """A 4x4 game with no mines."""
    return make_game(4, 4)


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def store() -> InMemoryGameStore:
    """Empty in-memory store."""
    return InMemoryGameStore()


@pytest.fixture
def service(store: InMemoryGameStore, first_choice_rng: FirstChoiceRandom) -> GameService:
    """Service over an in-memory store with predictable mine placement."""
    return GameService(store=store, max_dimension=20, rng=first_choice_rng, lock_timeout=1.0)
