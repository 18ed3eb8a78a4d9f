"""Flask server for the Minesweeper engine."""
import asyncio
import logging
import threading
from datetime import datetime

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from minesweeper.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, Settings
from minesweeper.errors import GameError, InternalError, InvalidInput
from minesweeper.service import GameService
from minesweeper.temporal_service import TemporalGameService, connect_client
from minesweeper.types import (
    GameConfig,
    MoveAction,
    MoveRequest,
    game_detail,
    game_summary,
    public_cell,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 1


class AsyncRunner:
    """Runs coroutines on one background event loop shared by all request threads."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self.loop.run_forever, name="minesweeper-loop", daemon=True)
        self._thread.start()

    def run(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result()

    def close(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join()
        self.loop.close()


def _require_int(data, key, minimum=None, default=None, required=True):
    value = data.get(key, default)
    if value is None:
        if required:
            raise InvalidInput(f"{key} is required")
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{key} must be an integer")
    if minimum is not None and value < minimum:
        raise InvalidInput(f"{key} must be at least {minimum}")
    return value


def _query_int(key, default, minimum, maximum=None):
    raw = request.args.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidInput(f"{key} must be an integer") from None
    if value < minimum or (maximum is not None and value > maximum):
        bound = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
        raise InvalidInput(f"{key} must be {bound}")
    return value


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


def _error_response(error: GameError):
    response = jsonify({'error': error.category, 'message': error.message, 'retryable': error.retryable})
    response.status_code = error.http_status
    if error.retryable:
        response.headers['Retry-After'] = str(RETRY_AFTER_SECONDS)
    return response


def create_app(service, runner: AsyncRunner) -> Flask:
    """Build the HTTP app around a game service (in-memory or Temporal)."""
    app = Flask(__name__)
    CORS(app)

    @app.errorhandler(GameError)
    def handle_game_error(error: GameError):
        return _error_response(error)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return _error_response(InternalError())

    @app.route('/api/games', methods=['POST'])
    def create_game():
        """Create a new game.

        ``mineCount`` is optional. Negative values are rejected with a 400;
        values of at least the cell count are clamped to one less than it.
        """
        data = _json_body()
        config = GameConfig(
            rows=_require_int(data, 'rows'),
            columns=_require_int(data, 'columns'),
            mine_count=_require_int(data, 'mineCount', minimum=0, required=False),
        )
        game = runner.run(service.create_game(config))
        return jsonify(game_detail(game)), 201

    @app.route('/api/games', methods=['GET'])
    def list_games():
        """List games, newest first."""
        limit = _query_int('limit', DEFAULT_PAGE_LIMIT, 1, MAX_PAGE_LIMIT)
        offset = _query_int('offset', 0, 0)
        page = runner.run(service.list_games(limit, offset))
        return jsonify({
            'data': [game_summary(game) for game in page.games],
            'total': page.total,
            'limit': page.limit,
            'offset': page.offset,
        })

    @app.route('/api/games/<game_id>', methods=['GET'])
    def get_game(game_id):
        """Get a game and its public cell state."""
        game = runner.run(service.get_game(game_id))
        return jsonify(game_detail(game))

    @app.route('/api/games/<game_id>/moves', methods=['POST'])
    def make_move(game_id):
        """Make a move."""
        data = _json_body()
        action = data.get('action', MoveAction.REVEAL.value)
        try:
            action = MoveAction(str(action).upper())
        except ValueError:
            raise InvalidInput("action must be one of REVEAL, FLAG, UNFLAG") from None

        move = MoveRequest(
            x=_require_int(data, 'x', minimum=0),
            y=_require_int(data, 'y', minimum=0),
            action=action,
        )
        result = runner.run(service.make_move(game_id, move))
        return jsonify({
            'game': game_summary(result.game),
            'updatedCells': [public_cell(cell) for cell in result.updated_cells],
        })

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'ok',
            'timestamp': datetime.now().isoformat()
        })

    @app.route('/api/ready', methods=['GET'])
    def ready_check():
        """Readiness check against the game backend."""
        try:
            ready = runner.run(service.ping())
        except Exception as error:
            logger.warning(f"Readiness check failed: {error}")
            ready = False
        if not ready:
            return jsonify({'error': 'service_unavailable', 'message': 'Backend not ready'}), 503
        return jsonify({'status': 'ready'})

    return app


def build_service(settings: Settings, runner: AsyncRunner):
    """Construct the game service selected by ``settings.backend``."""
    if settings.backend == "temporal":
        client = runner.run(connect_client())
        logger.info("Connected to Temporal server")
        return TemporalGameService(client, settings.task_queue, settings.max_dimension)

    return GameService(
        max_dimension=settings.max_dimension,
        mine_ratio=settings.mine_ratio,
        lock_timeout=settings.lock_timeout,
    )


def main():
    """Start the Flask server."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    runner = AsyncRunner()
    try:
        service = build_service(settings, runner)
        app = create_app(service, runner)
        logger.info(f"Minesweeper server running on http://localhost:{settings.port} ({settings.backend} backend)")
        if settings.backend == "temporal":
            logger.info("Make sure to start the Temporal worker in another terminal: python -m minesweeper.worker")
        app.run(host='0.0.0.0', port=settings.port, debug=False, threaded=True)
    except Exception as error:
        logger.error(f"Failed to start server: {error}")
        raise SystemExit(1)
    finally:
        runner.close()


if __name__ == "__main__":
    main()
