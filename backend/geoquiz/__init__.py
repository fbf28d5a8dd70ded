from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import atexit
import json
import logging
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def get_quiz():
    """Return the QuizService owned by the current app."""
    return current_app.extensions['quiz']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    _configure_logging(flask_app)

    from geoquiz.api.quiz import quiz
    flask_app.register_blueprint(quiz, url_prefix='/api/quiz')

    from geoquiz.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Quiz core: one service per app, owned via app.extensions
    import geoquiz.models  # noqa: F401
    from geoquiz.services.quiz import QuizService
    from geoquiz.services.quiz.store import SqlQuizStore
    store = SqlQuizStore(flask_app)
    service = QuizService(
        question_store=store,
        radius_meters=float(flask_app.config.get('QUIZ_RADIUS_METERS', 50)),
        default_points=int(flask_app.config.get('POINTS_PER_QUESTION', 10)),
        team_store=store,
    )
    flask_app.extensions['quiz'] = service
    atexit.register(service.shutdown)
    if flask_app.config.get('QUIZ_WARM_ON_STARTUP', True):
        # No snapshot, no service: let a store failure abort startup
        count = service.start()
        flask_app.logger.info(f"[startup] loaded {count} questions")

    @click.command('init-db')
    def init_db_command():
        """Creates the quiz tables."""
        with flask_app.app_context():
            db.create_all()
        print('Database tables created.')

    @click.command('seed-questions')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def seed_questions_command(path):
        """Loads questions from a JSON file into the database."""
        from geoquiz.services.quiz import QuizStoreError
        from geoquiz.services.quiz.values import Coordinate, Question
        with open(path, encoding='utf-8') as fh:
            raw = json.load(fh)
        questions = [
            Question(
                id=str(item['id']),
                location=Coordinate(lat=float(item['lat']), lng=float(item['lng'])),
                answer=item['answer'],
                hints=tuple(item.get('hints') or ()),
                clue_index=int(item.get('clue_index', 0)),
                points=item.get('points'),
            )
            for item in raw
        ]
        try:
            count = store.upsert_questions(questions)
        except QuizStoreError as exc:
            raise click.ClickException(str(exc))
        print(f'Seeded {count} questions.')

    @click.command('refresh-cache')
    def refresh_cache_command():
        """Reloads the question snapshot from the database."""
        result = service.refresh_cache()
        if not result.ok:
            raise click.ClickException(f'Refresh failed: {result.error}')
        print(f'Loaded {result.count} questions (version {result.version}).')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(seed_questions_command)
    flask_app.cli.add_command(refresh_cache_command)

    return flask_app


def _configure_logging(flask_app):
    from geoquiz.log_buffer import LogBufferHandler
    # app.logger is the "geoquiz" logger, so core module loggers propagate into it
    app_logger = flask_app.logger
    for handler in list(app_logger.handlers):
        if isinstance(handler, LogBufferHandler):
            app_logger.removeHandler(handler)
    buffer_handler = LogBufferHandler(capacity=int(flask_app.config.get('LOG_BUFFER_SIZE', 500)))
    app_logger.addHandler(buffer_handler)
    if app_logger.level == logging.NOTSET:
        app_logger.setLevel(logging.INFO)
    flask_app.extensions['log_buffer'] = buffer_handler
