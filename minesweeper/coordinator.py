"""Serialized move application."""
import logging

from minesweeper.engine import apply_move
from minesweeper.errors import LockTimeout
from minesweeper.types import GameStatus, MoveRequest, MoveResult

logger = logging.getLogger(__name__)


class MoveCoordinator:
    """Apply moves atomically, one at a time per game.

    ``store`` must provide ``hold(game_id, timeout)``: an async context
    manager that grants exclusive access to one game and yields a
    transaction exposing ``game`` and ``commit(result)``. Staged results
    must be published only when the block exits without error.
    """

    def __init__(self, store, lock_timeout: float = 5.0, log=None):
        self._store = store
        self._lock_timeout = lock_timeout
        self._log = log or logger

    async def make_move(self, game_id: str, move: MoveRequest) -> MoveResult:
        try:
            async with self._store.hold(game_id, self._lock_timeout) as transaction:
                result = apply_move(transaction.game, move.x, move.y, move.action)
                transaction.commit(result)
        except LockTimeout:
            self._log.warning(f"Move on game {game_id} timed out waiting for the game lock")
            raise

        if result.game.status != GameStatus.ACTIVE:
            self._log.info(f"Game {game_id} finished: {result.game.status.value}")
        return result
