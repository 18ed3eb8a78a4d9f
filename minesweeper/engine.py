"""Move state machine.

``apply_move`` validates a move against a game snapshot and returns the
resulting changes without touching the snapshot. ``commit_move`` writes a
result back onto a stored game.
"""
import copy
from typing import List

from minesweeper.errors import Conflict, InternalError, InvalidInput, InvalidTransition
from minesweeper.reveal import compute_reveal_mask
from minesweeper.types import Cell, CellStatus, Game, GameStatus, MoveAction, MoveResult


def _noop(game: Game) -> MoveResult:
    return MoveResult(game=game.summary(), updated_cells=[], noop=True)


def _with_status(cell: Cell, status: CellStatus) -> Cell:
    updated = copy.copy(cell)
    updated.status = status
    return updated


def _target_cell(game: Game, x: int, y: int) -> Cell:
    index = game.index_of(x, y)
    if index >= len(game.cells):
        raise InternalError(f"Game {game.id} is missing cell ({x}, {y})")
    cell = game.cells[index]
    if cell.x != x or cell.y != y:
        raise InternalError(f"Game {game.id} has a corrupted cell layout at ({x}, {y})")
    return cell


def apply_move(game: Game, x: int, y: int, action: MoveAction = MoveAction.REVEAL) -> MoveResult:
    """Apply a single move to ``game`` and describe what changed.

    Raises ``Conflict`` when the game is over, ``InvalidInput`` when the
    coordinates fall outside the board and ``InvalidTransition`` when the
    target cell cannot take the action from its current status.
    """
    if game.status != GameStatus.ACTIVE:
        raise Conflict(f"Game {game.id} is {game.status.value.lower()}; no further moves are accepted")
    if not game.in_bounds(x, y):
        raise InvalidInput(
            f"Cell ({x}, {y}) is outside the {game.columns}x{game.rows} board")

    try:
        action = MoveAction(action)
    except ValueError:
        raise InvalidInput(f"Unknown action {action!r}") from None
    cell = _target_cell(game, x, y)

    if action == MoveAction.FLAG:
        if cell.status == CellStatus.FLAGGED:
            return _noop(game)
        if cell.status != CellStatus.HIDDEN:
            raise InvalidTransition(f"Cannot flag a {cell.status.value.lower()} cell")
        return MoveResult(game=game.summary(), updated_cells=[_with_status(cell, CellStatus.FLAGGED)])

    if action == MoveAction.UNFLAG:
        if cell.status == CellStatus.HIDDEN:
            return _noop(game)
        if cell.status != CellStatus.FLAGGED:
            raise InvalidTransition(f"Cannot unflag a {cell.status.value.lower()} cell")
        return MoveResult(game=game.summary(), updated_cells=[_with_status(cell, CellStatus.HIDDEN)])

    if cell.status == CellStatus.REVEALED:
        return _noop(game)
    if cell.status != CellStatus.HIDDEN:
        raise InvalidTransition(f"Cannot reveal a {cell.status.value.lower()} cell")

    summary = game.summary()
    if cell.is_mine:
        summary.status = GameStatus.DETONATED
        return MoveResult(game=summary, updated_cells=[_with_status(cell, CellStatus.DETONATED)])

    updated = _reveal_safe(game, x, y)
    revealed = {game.index_of(c.x, c.y) for c in updated}
    if not _safe_cells_remain(game, revealed):
        summary.status = GameStatus.CLEARED
    return MoveResult(game=summary, updated_cells=updated)


def _reveal_safe(game: Game, x: int, y: int) -> List[Cell]:
    is_mine = [c.is_mine for c in game.cells]
    counts = [c.neighboring_mine_count for c in game.cells]
    mask = compute_reveal_mask(game.rows, game.columns, is_mine, counts, x, y)

    updated: List[Cell] = []
    for index, selected in enumerate(mask):
        if not selected:
            continue
        cell = game.cells[index]
        if cell.status == CellStatus.HIDDEN and not cell.is_mine:
            updated.append(_with_status(cell, CellStatus.REVEALED))
    return updated


def _safe_cells_remain(game: Game, revealed: set) -> bool:
    # Flagged safe cells still count as unrevealed.
    for index, cell in enumerate(game.cells):
        if cell.is_mine or index in revealed:
            continue
        if cell.status != CellStatus.REVEALED:
            return True
    return False


def commit_move(game: Game, result: MoveResult) -> None:
    """Write the changes described by ``result`` onto ``game`` in place."""
    for cell in result.updated_cells:
        game.cells[game.index_of(cell.x, cell.y)].status = cell.status
    game.status = result.game.status
