"""Temporal activities for game logic."""
from temporalio import activity

from minesweeper.config import Settings
from minesweeper.errors import GameError
from minesweeper.service import new_game
from minesweeper.types import Game, GameConfig


@activity.defn
async def create_game_board(game_id: str, config: GameConfig) -> Game:
    """Create a new game board with randomly placed mines."""
    try:
        game = new_game(game_id, config, mine_ratio=Settings.from_env().mine_ratio)
    except GameError as error:
        raise error.to_application_error() from error
    activity.logger.info(
        f"Generated board for game {game_id}: {game.columns}x{game.rows} with {game.mine_count} mines")
    return game
