import logging

import click
from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def get_engine():
    """The SessionOrchestrator bound to the current app."""
    return current_app.extensions['fakeout']


def create_app(config_class=Config, questions=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    logging.getLogger(__name__).setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from fakeout.services.games import QuestionBank, SessionOrchestrator
    from fakeout.services.games.notifier import SocketIONotifier
    from fakeout.store import SessionStore

    store = SessionStore.from_config(flask_app.config)
    bank = questions or QuestionBank.from_config(flask_app.config)
    notifier = SocketIONotifier(socketio, store)
    flask_app.extensions['fakeout'] = SessionOrchestrator.from_config(
        flask_app.config, store, bank, notifier, spawn=socketio.start_background_task,
    )

    # Import and register blueprints here
    from fakeout.main import main
    flask_app.register_blueprint(main)

    from fakeout.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from fakeout.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('check-questions')
    def check_questions_command():
        """Validates the configured question bank."""
        game_count = flask_app.config.get('TIER_COUNT', 3)
        for index, pool in enumerate(bank.tiers, start=1):
            marker = '' if index <= game_count else ' (unused)'
            click.echo(f'tier {index}: {len(pool)} questions{marker}')
        problems = bank.problems()
        if len(bank) < game_count:
            problems.append(f'TIER_COUNT is {game_count} but only {len(bank)} tiers exist')
        for problem in problems:
            click.echo(f'problem: {problem}', err=True)
        if problems:
            raise click.ClickException(f'{len(problems)} problem(s) found')
        click.echo('Question bank OK')

    flask_app.cli.add_command(check_questions_command)

    return flask_app
