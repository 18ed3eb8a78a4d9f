"""Runtime configuration read from environment variables."""
import os
from dataclasses import dataclass

MIN_DIMENSION = 2
DEFAULT_MAX_DIMENSION = 100
DEFAULT_MINE_RATIO = 0.15
DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 100
DEFAULT_TASK_QUEUE = "minesweeper-task-queue"


@dataclass
class Settings:
    """Process settings. Use ``Settings.from_env()`` at entry points."""
    port: int = 3000
    backend: str = "memory"
    task_queue: str = DEFAULT_TASK_QUEUE
    max_dimension: int = DEFAULT_MAX_DIMENSION
    mine_ratio: float = DEFAULT_MINE_RATIO
    lock_timeout: float = 5.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.backend not in ("memory", "temporal"):
            raise ValueError(f"Unknown backend {self.backend!r} (expected 'memory' or 'temporal')")
        if self.max_dimension < MIN_DIMENSION:
            raise ValueError(f"Maximum dimension must be at least {MIN_DIMENSION}")
        if not 0 < self.mine_ratio < 1:
            raise ValueError("Mine ratio must be between 0 and 1")
        if self.lock_timeout <= 0:
            raise ValueError("Lock timeout must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            return cls(
                port=int(os.getenv("PORT", 3000)),
                backend=os.getenv("MINESWEEPER_BACKEND", "memory").lower(),
                task_queue=os.getenv("MINESWEEPER_TASK_QUEUE", DEFAULT_TASK_QUEUE),
                max_dimension=int(os.getenv("MINESWEEPER_MAX_DIMENSION", DEFAULT_MAX_DIMENSION)),
                mine_ratio=float(os.getenv("MINESWEEPER_MINE_RATIO", DEFAULT_MINE_RATIO)),
                lock_timeout=float(os.getenv("MINESWEEPER_LOCK_TIMEOUT", 5.0)),
                log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as error:
            raise RuntimeError(f"Invalid configuration: {error}") from error
