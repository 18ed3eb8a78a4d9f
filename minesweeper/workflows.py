"""Temporal workflows for Minesweeper games."""
import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from minesweeper.activities import create_game_board
    from minesweeper.coordinator import MoveCoordinator
    from minesweeper.errors import GameError, InternalError, NotFound
    from minesweeper.store import GameTransaction, KeyedLock
    from minesweeper.types import Game, GameConfig, GameStatus, MoveRequest, MoveResult

INACTIVITY_TIMEOUT = timedelta(hours=24)
LOCK_TIMEOUT_SECONDS = 30.0


class WorkflowGameStore:
    """Holds the single game owned by a workflow run."""

    def __init__(self):
        self.game: Optional[Game] = None
        self._locks = KeyedLock()

    @asynccontextmanager
    async def hold(self, game_id: str, timeout: Optional[float] = None) -> AsyncIterator[GameTransaction]:
        async with self._locks.hold(game_id, timeout):
            if self.game is None:
                raise NotFound(f'Game with id "{game_id}" is not ready')
            transaction = GameTransaction(self.game)
            yield transaction
            if transaction.changed():
                self.game = transaction.committed_game()


@workflow.defn
class MinesweeperWorkflow:
    """Workflow that owns a single Minesweeper game."""

    def __init__(self):
        self.game_id: str = ""
        self.board_error: Optional[GameError] = None
        self.last_activity_time: float = 0
        self.store = WorkflowGameStore()
        self.coordinator = MoveCoordinator(self.store, LOCK_TIMEOUT_SECONDS, log=workflow.logger)

    @workflow.run
    async def run(self, game_id: str, config: GameConfig, game: Optional[Game] = None) -> None:
        """Build the board, then keep the game open until it is finished and idle.

        An active game that goes idle continues as a new run carrying its
        state, so it keeps accepting moves.
        """
        self.game_id = game_id
        self.last_activity_time = workflow.time()

        if game is None:
            game = await self._build_board(game_id, config)
            workflow.upsert_memo({"mineCount": game.mine_count, "createdAt": game.created_at.isoformat()})
        self.store.game = game

        while True:
            idle = workflow.time() - self.last_activity_time
            remaining = INACTIVITY_TIMEOUT.total_seconds() - idle
            if remaining <= 0:
                break
            await asyncio.sleep(remaining)

        await workflow.wait_condition(workflow.all_handlers_finished)
        if self.store.game.status == GameStatus.ACTIVE:
            workflow.logger.info(f"Game {game_id} idle for {INACTIVITY_TIMEOUT}, continuing as new")
            workflow.continue_as_new(args=[game_id, config, self.store.game], memo=dict(workflow.memo()))
        workflow.logger.info(f"Game {game_id} closing after {INACTIVITY_TIMEOUT} of inactivity")

    async def _build_board(self, game_id: str, config: GameConfig) -> Game:
        try:
            game = await workflow.execute_activity(
                create_game_board,
                args=[game_id, config],
                start_to_close_timeout=timedelta(seconds=60),
                retry_policy=RetryPolicy(maximum_attempts=3),
            )
        except ActivityError as error:
            if isinstance(error.cause, ApplicationError):
                self.board_error = GameError.from_application_error(error.cause)
            else:
                self.board_error = InternalError()
            workflow.logger.error(f"Board for game {game_id} could not be built: {error}")
            await workflow.wait_condition(workflow.all_handlers_finished)
            raise self.board_error.to_application_error() from error
        game.created_at = workflow.now()
        return game

    async def _wait_for_board(self) -> Game:
        await workflow.wait_condition(lambda: self.store.game is not None or self.board_error is not None)
        if self.board_error is not None:
            raise self.board_error.to_application_error()
        return self.store.game

    @workflow.update
    async def board_ready_update(self) -> Game:
        """Wait until the board is built and return it."""
        return await self._wait_for_board()

    @workflow.update
    async def make_move_update(self, move: MoveRequest) -> MoveResult:
        """Apply a move and return the changed cells."""
        await self._wait_for_board()
        self.last_activity_time = workflow.time()

        try:
            result = await self.coordinator.make_move(self.game_id, move)
        except GameError as error:
            raise error.to_application_error() from error

        if result.game.status != GameStatus.ACTIVE and not result.noop:
            workflow.upsert_memo({"status": result.game.status.value})
        return result

    @workflow.query
    def get_game_query(self) -> Optional[Game]:
        """Current game, or None while the board is still being built."""
        return self.store.game
