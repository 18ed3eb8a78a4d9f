"""In-process game persistence with per-game exclusive holds."""
import asyncio
import copy
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

from minesweeper.engine import commit_move
from minesweeper.errors import LockTimeout, NotFound
from minesweeper.types import Game, MoveResult


class GameTransaction:
    """A private copy of one game plus the change staged against it."""

    def __init__(self, game: Game):
        self.game = copy.deepcopy(game)
        self.result: Optional[MoveResult] = None

    def commit(self, result: MoveResult) -> None:
        """Stage ``result``; it becomes visible when the hold is released cleanly."""
        self.result = result

    def changed(self) -> bool:
        return self.result is not None and not self.result.noop

    def committed_game(self) -> Game:
        """The private copy with the staged change written onto it."""
        if self.changed():
            commit_move(self.game, self.result)
        return self.game


class KeyedLock:
    """Mutual exclusion keyed by game id.

    Holders of different keys never wait on each other. Lock entries are
    dropped once nobody holds or waits for them.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str, timeout: Optional[float] = None) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout)
            except asyncio.TimeoutError:
                raise LockTimeout(f"Timed out waiting for exclusive access to game {key}") from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


class InMemoryGameStore:
    """Games kept in process memory, each addressed by its id.

    Readers always see the last committed state of a game; changes made
    under ``hold`` are published only when the block exits without error.
    """

    def __init__(self):
        self._games: Dict[str, Game] = {}
        self._order: List[str] = []
        self._locks = KeyedLock()

    async def insert(self, game: Game) -> Game:
        """Store a new game together with all of its cells."""
        if game.id in self._games:
            raise ValueError(f"Game {game.id} already exists")
        self._games[game.id] = copy.deepcopy(game)
        self._order.append(game.id)
        return copy.deepcopy(game)

    async def get(self, game_id: str) -> Optional[Game]:
        game = self._games.get(game_id)
        return copy.deepcopy(game) if game else None

    async def list_games(self, limit: int, offset: int) -> Tuple[List[Game], int]:
        """Games in creation order, newest first, plus the total count."""
        ordered = list(reversed(self._order))
        page = [copy.deepcopy(self._games[game_id]) for game_id in ordered[offset:offset + limit]]
        return page, len(ordered)

    async def ping(self) -> bool:
        return True

    @asynccontextmanager
    async def hold(self, game_id: str, timeout: Optional[float] = None) -> AsyncIterator[GameTransaction]:
        """Hold ``game_id`` exclusively and yield a transaction over a fresh copy."""
        async with self._locks.hold(game_id, timeout):
            game = self._games.get(game_id)
            if game is None:
                raise NotFound(f'Game with id "{game_id}" not found')
            transaction = GameTransaction(game)
            yield transaction
            if transaction.changed():
                self._games[game_id] = transaction.committed_game()
