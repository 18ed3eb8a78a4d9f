"""Game operations backed by the in-process store."""
import logging
import uuid
from datetime import datetime, timezone

from minesweeper.config import DEFAULT_MAX_DIMENSION, DEFAULT_MINE_RATIO, MIN_DIMENSION
from minesweeper.coordinator import MoveCoordinator
from minesweeper.errors import InvalidInput, NotFound
from minesweeper.grid import build_cells, generate
from minesweeper.store import InMemoryGameStore
from minesweeper.types import Game, GameConfig, GamePage, GameStatus, MoveRequest, MoveResult

logger = logging.getLogger(__name__)


def validate_dimensions(config: GameConfig, max_dimension: int = DEFAULT_MAX_DIMENSION) -> None:
    for name, value in (("rows", config.rows), ("columns", config.columns)):
        if not MIN_DIMENSION <= value <= max_dimension:
            raise InvalidInput(f"{name} must be between {MIN_DIMENSION} and {max_dimension}")


def validate_game_id(game_id: str) -> str:
    try:
        return str(uuid.UUID(game_id))
    except (TypeError, ValueError):
        raise InvalidInput(f'"{game_id}" is not a valid game id') from None


def new_game(game_id: str, config: GameConfig, rng=None, mine_ratio: float = DEFAULT_MINE_RATIO) -> Game:
    """Generate a fresh active game with its full cell set."""
    layout = generate(config.rows, config.columns, config.mine_count, rng=rng, mine_ratio=mine_ratio)
    return Game(
        id=game_id,
        rows=config.rows,
        columns=config.columns,
        mine_count=len(layout.mines),
        status=GameStatus.ACTIVE,
        cells=build_cells(layout),
    )


class GameService:
    """Create, fetch, list and play games held by an ``InMemoryGameStore``."""

    def __init__(self, store: InMemoryGameStore | None = None, max_dimension: int = DEFAULT_MAX_DIMENSION,
                 mine_ratio: float = DEFAULT_MINE_RATIO, lock_timeout: float = 5.0, rng=None):
        self.store = store or InMemoryGameStore()
        self.max_dimension = max_dimension
        self.mine_ratio = mine_ratio
        self.rng = rng
        self.coordinator = MoveCoordinator(self.store, lock_timeout)

    async def create_game(self, config: GameConfig) -> Game:
        validate_dimensions(config, self.max_dimension)
        game = new_game(str(uuid.uuid4()), config, rng=self.rng, mine_ratio=self.mine_ratio)
        game.created_at = datetime.now(timezone.utc)
        saved = await self.store.insert(game)
        logger.info(f"Created game {saved.id} ({saved.columns}x{saved.rows}, {saved.mine_count} mines)")
        return saved

    async def list_games(self, limit: int, offset: int) -> GamePage:
        games, total = await self.store.list_games(limit, offset)
        return GamePage(games=games, total=total, limit=limit, offset=offset)

    async def get_game(self, game_id: str) -> Game:
        game = await self.store.get(validate_game_id(game_id))
        if game is None:
            raise NotFound(f'Game with id "{game_id}" not found')
        return game

    async def make_move(self, game_id: str, move: MoveRequest) -> MoveResult:
        return await self.coordinator.make_move(validate_game_id(game_id), move)

    async def ping(self) -> bool:
        return await self.store.ping()
