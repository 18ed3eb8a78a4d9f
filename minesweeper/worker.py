"""Temporal worker for Minesweeper games."""
import asyncio
import logging

from temporalio.worker import Worker

from minesweeper import activities
from minesweeper.config import Settings
from minesweeper.temporal_service import connect_client
from minesweeper.workflows import MinesweeperWorkflow

logger = logging.getLogger(__name__)


async def run_worker(settings: Settings) -> None:
    client = await connect_client()

    worker = Worker(
        client,
        task_queue=settings.task_queue,
        workflows=[MinesweeperWorkflow],
        activities=[activities.create_game_board],
    )

    logger.info("Worker started, connected to Temporal")
    logger.info(f"Listening on task queue: {settings.task_queue}")
    await worker.run()


def main():
    """Start the Temporal worker."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    asyncio.run(run_worker(settings))


if __name__ == "__main__":
    main()
