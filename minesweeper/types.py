"""Type definitions for the Minesweeper engine."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from enum import Enum


class CellStatus(str, Enum):
    """Possible cell states."""
    HIDDEN = 'HIDDEN'
    REVEALED = 'REVEALED'
    FLAGGED = 'FLAGGED'
    DETONATED = 'DETONATED'


class GameStatus(str, Enum):
    """Possible game states."""
    ACTIVE = 'ACTIVE'
    CLEARED = 'CLEARED'
    DETONATED = 'DETONATED'


class MoveAction(str, Enum):
    """Actions a player can take on a cell."""
    REVEAL = 'REVEAL'
    FLAG = 'FLAG'
    UNFLAG = 'UNFLAG'


@dataclass
class Cell:
    """Represents a single cell on the minesweeper board."""
    x: int
    y: int
    is_mine: bool = False
    neighboring_mine_count: int = 0
    status: CellStatus = CellStatus.HIDDEN


@dataclass
class Game:
    """A game and its cells, ordered by linear index ``y * columns + x``."""
    id: str
    rows: int
    columns: int
    mine_count: int
    status: GameStatus = GameStatus.ACTIVE
    cells: List[Cell] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def index_of(self, x: int, y: int) -> int:
        return y * self.columns + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.columns and 0 <= y < self.rows

    def summary(self) -> 'GameSummary':
        return GameSummary(id=self.id, rows=self.rows, columns=self.columns, status=self.status)


@dataclass
class GameSummary:
    """A game without its cells."""
    id: str
    rows: int
    columns: int
    status: GameStatus


@dataclass
class GameConfig:
    """Configuration for creating a new game."""
    rows: int
    columns: int
    mine_count: Optional[int] = None


@dataclass
class MoveRequest:
    """Request to make a move."""
    x: int
    y: int
    action: MoveAction = MoveAction.REVEAL


@dataclass
class MoveResult:
    """Outcome of a move.

    ``game`` summarizes the game after the move. ``updated_cells`` holds
    only the cells whose status changed; ``noop`` is set when the move was
    valid but the target was already in the requested state.
    """
    game: GameSummary
    updated_cells: List[Cell] = field(default_factory=list)
    noop: bool = False


@dataclass
class GamePage:
    """One page of games plus the total number of games."""
    games: List[Game]
    total: int
    limit: int
    offset: int


def public_cell(cell: Cell) -> Dict[str, Any]:
    """Represent a cell without leaking hidden information."""
    data: Dict[str, Any] = {
        'x': cell.x,
        'y': cell.y,
        'status': cell.status.value,
    }
    if cell.status == CellStatus.DETONATED:
        data['isMine'] = cell.is_mine
    if cell.status == CellStatus.REVEALED:
        data['neighboringMineCount'] = cell.neighboring_mine_count
    return data


def game_summary(game: Union[Game, GameSummary]) -> Dict[str, Any]:
    """Represent a game without its cells."""
    return {
        'id': game.id,
        'rows': game.rows,
        'columns': game.columns,
        'status': game.status.value,
    }


def game_detail(game: Game) -> Dict[str, Any]:
    """Represent a game with its public cell set."""
    data = game_summary(game)
    data['cells'] = [public_cell(cell) for cell in game.cells]
    return data
