"""Game operations backed by Temporal, one workflow per game."""
import asyncio
import logging
import os
import pathlib
import platform
import uuid
from datetime import datetime

from temporalio.client import (
    Client,
    WorkflowQueryFailedError,
    WorkflowUpdateFailedError,
    WorkflowUpdateRPCTimeoutOrCancelledError,
)
from temporalio.envconfig import ClientConfig
from temporalio.exceptions import ApplicationError
from temporalio.service import RPCError, RPCStatusCode

from minesweeper.config import DEFAULT_MAX_DIMENSION, DEFAULT_TASK_QUEUE
from minesweeper.errors import Conflict, GameError, InternalError, LockTimeout, NotFound
from minesweeper.service import validate_dimensions, validate_game_id
from minesweeper.types import Game, GameConfig, GamePage, GameStatus, MoveRequest, MoveResult
from minesweeper.workflows import MinesweeperWorkflow

logger = logging.getLogger(__name__)

WORKFLOW_QUERY = "WorkflowType = 'MinesweeperWorkflow' AND ExecutionStatus != 'ContinuedAsNew'"


def temporal_config_path() -> pathlib.Path:
    """Default location of the Temporal CLI config file on this OS."""
    home = pathlib.Path.home()
    system = platform.system()

    if system == "Darwin":
        return home / "Library/Application Support/temporalio/temporal.toml"
    if system == "Windows":
        app_data = os.getenv("AppData")
        if app_data is None:
            raise RuntimeError("AppData environment variable not set")
        return pathlib.Path(app_data) / "temporalio/temporal.toml"
    xdg_config_home = os.getenv("XDG_CONFIG_HOME")
    if xdg_config_home:
        return pathlib.Path(xdg_config_home) / "temporalio/temporal.toml"
    return home / ".config/temporalio/temporal.toml"


async def connect_client() -> Client:
    """Connect to Temporal using TEMPORAL_PROFILE if set, else address and namespace."""
    config_file = temporal_config_path()
    profile = os.getenv("TEMPORAL_PROFILE")
    if profile and config_file.is_file():
        connect_config = ClientConfig.load_client_connect_config(
            profile=profile,
            config_file=str(config_file),
        )
        return await Client.connect(**connect_config)
    return await Client.connect(
        os.getenv("TEMPORAL_ADDRESS", "localhost:7233"),
        namespace=os.getenv("TEMPORAL_NAMESPACE", "default"),
    )


def _translate_rpc_error(error: RPCError, game_id: str) -> GameError:
    if error.status == RPCStatusCode.NOT_FOUND:
        return NotFound(f'Game with id "{game_id}" not found')
    logger.error(f"Temporal call for game {game_id} failed: {error}")
    return InternalError()


def _created_at(memo: dict, fallback: datetime) -> datetime:
    created_at = memo.get("createdAt")
    return datetime.fromisoformat(created_at) if created_at else fallback


class TemporalGameService:
    """Create, fetch, list and play games that live in Temporal workflows."""

    def __init__(self, client: Client, task_queue: str = DEFAULT_TASK_QUEUE,
                 max_dimension: int = DEFAULT_MAX_DIMENSION):
        self.client = client
        self.task_queue = task_queue
        self.max_dimension = max_dimension

    async def _query_game(self, game_id: str, max_retries: int = 5) -> Game:
        """Query with retry while the workflow is still building its board."""
        handle = self.client.get_workflow_handle(game_id)
        for i in range(max_retries):
            try:
                game = await handle.query(MinesweeperWorkflow.get_game_query)
            except RPCError as error:
                raise _translate_rpc_error(error, game_id) from error
            except WorkflowQueryFailedError as error:
                logger.error(f"Query for game {game_id} failed: {error}")
                raise InternalError() from error
            if game is not None:
                return game
            if i < max_retries - 1:
                logger.info(f"Game {game_id} not ready yet, retrying in {(i + 1) * 100}ms...")
                await asyncio.sleep((i + 1) * 0.1)
        raise NotFound(f'Game with id "{game_id}" is not ready')

    async def _wait_for_board(self, game_id: str) -> Game:
        handle = self.client.get_workflow_handle(game_id)
        try:
            return await handle.execute_update(MinesweeperWorkflow.board_ready_update)
        except WorkflowUpdateFailedError as error:
            if isinstance(error.cause, ApplicationError):
                raise GameError.from_application_error(error.cause) from error
            logger.error(f"Board for game {game_id} failed: {error}")
            raise InternalError() from error
        except WorkflowUpdateRPCTimeoutOrCancelledError as error:
            logger.error(f"Timed out waiting for the board of game {game_id}: {error}")
            raise InternalError() from error
        except RPCError as error:
            logger.error(f"Board for game {game_id} failed: {error}")
            raise InternalError() from error

    async def create_game(self, config: GameConfig) -> Game:
        validate_dimensions(config, self.max_dimension)
        game_id = str(uuid.uuid4())
        try:
            await self.client.start_workflow(
                MinesweeperWorkflow.run,
                args=[game_id, config],
                id=game_id,
                task_queue=self.task_queue,
                memo={"rows": config.rows, "columns": config.columns, "status": GameStatus.ACTIVE.value},
            )
        except RPCError as error:
            logger.error(f"Failed to start workflow for game {game_id}: {error}")
            raise InternalError() from error
        game = await self._wait_for_board(game_id)
        logger.info(f"Created game {game_id} ({game.columns}x{game.rows}, {game.mine_count} mines)")
        return game

    async def list_games(self, limit: int, offset: int) -> GamePage:
        try:
            total = (await self.client.count_workflows(WORKFLOW_QUERY)).count
            games = []
            position = 0
            async for execution in self.client.list_workflows(WORKFLOW_QUERY):
                if position >= offset + limit:
                    break
                if position >= offset:
                    memo = await execution.memo()
                    games.append(Game(
                        id=execution.id,
                        rows=memo["rows"],
                        columns=memo["columns"],
                        mine_count=memo.get("mineCount", 0),
                        status=GameStatus(memo.get("status", GameStatus.ACTIVE.value)),
                        created_at=_created_at(memo, execution.start_time),
                    ))
                position += 1
        except RPCError as error:
            logger.error(f"Failed to list games: {error}")
            raise InternalError() from error
        return GamePage(games=games, total=total, limit=limit, offset=offset)

    async def get_game(self, game_id: str) -> Game:
        return await self._query_game(validate_game_id(game_id))

    async def make_move(self, game_id: str, move: MoveRequest) -> MoveResult:
        game_id = validate_game_id(game_id)
        handle = self.client.get_workflow_handle(game_id)
        try:
            return await handle.execute_update(MinesweeperWorkflow.make_move_update, move)
        except WorkflowUpdateFailedError as error:
            if isinstance(error.cause, ApplicationError):
                raise GameError.from_application_error(error.cause) from error
            logger.error(f"Move on game {game_id} failed: {error}")
            raise InternalError() from error
        except WorkflowUpdateRPCTimeoutOrCancelledError as error:
            raise LockTimeout(f"Move on game {game_id} timed out") from error
        except RPCError as error:
            if error.status == RPCStatusCode.NOT_FOUND:
                # A finished game's workflow may have closed; it still answers queries.
                game = await self._query_game(game_id, max_retries=1)
                if game.status != GameStatus.ACTIVE:
                    raise Conflict(
                        f"Game {game_id} is {game.status.value.lower()}; no further moves are accepted") from error
            raise _translate_rpc_error(error, game_id) from error

    async def ping(self) -> bool:
        return await self.client.service_client.check_health()
