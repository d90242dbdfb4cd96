from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import random
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
jwt = JWTManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    jwt.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Per-process source for hit draws; tests swap it for a stub
    flask_app.extensions['hit_rng'] = random.Random()

    from hitgame.errors import register_error_handlers
    register_error_handlers(flask_app, db)
    _register_token_callbacks()

    # Import and register blueprints here
    from hitgame.main import main
    flask_app.register_blueprint(main)

    from hitgame.api.auth import auth
    flask_app.register_blueprint(auth, url_prefix='/api/auth')

    from hitgame.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from hitgame.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from hitgame.services.game.multipliers import seed_multiplier_table
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            inserted = seed_multiplier_table()
            print(f'Database has been reset and seeded ({inserted} multiplier rows)!')

    @click.command('seed-multipliers')
    def seed_multipliers_command():
        """Inserts any missing multiplier table rows."""
        from hitgame.services.game.multipliers import seed_multiplier_table
        with flask_app.app_context():
            inserted = seed_multiplier_table()
            print(f'Inserted {inserted} multiplier rows.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_multipliers_command)

    return flask_app


def _register_token_callbacks():
    # Missing, malformed and expired bearer tokens share the error envelope

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'ok': False, 'erro': 'Missing bearer token'}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'ok': False, 'erro': 'Token expired or invalid'}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'ok': False, 'erro': 'Token expired or invalid'}), 401
