from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from sketchrelay.config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Engine-level keepalive: a peer that misses one probe is disconnected
    ping_interval = int(flask_app.config.get('SOCKETIO_PING_INTERVAL', 30))
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        ping_interval=ping_interval,
        ping_timeout=ping_interval,
    )

    # App-owned game coordination: change channel and per-game locks
    from sketchrelay.services.games.notifier import ChangeNotifier
    from sketchrelay.services.games.locks import GameLocks
    flask_app.extensions['game_notifier'] = ChangeNotifier()
    flask_app.extensions['game_locks'] = GameLocks()

    from sketchrelay.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/auth')

    from sketchrelay.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Builds the subscriber registry and binds the /ws handlers to it
    from sketchrelay.socketio_events import register_socketio_handlers
    register_socketio_handlers(flask_app)

    @flask_app.route('/')
    def index():
        return jsonify({'message': 'sketchrelay game server'})

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database."""
        import sketchrelay.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
