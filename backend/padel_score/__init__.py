from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO()

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        async_mode=flask_app.config.get('SOCKETIO_ASYNC_MODE'),
    )

    from padel_score.routes import main
    flask_app.register_blueprint(main)

    from padel_score.api.matches import matches
    flask_app.register_blueprint(matches, url_prefix='/matches')

    # Bind Socket.IO handlers to the initialized socketio instance
    from padel_score.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from padel_score.errors import InvariantViolation, StoreUnavailable

    @flask_app.errorhandler(StoreUnavailable)
    def handle_store_unavailable(exc):
        db.session.rollback()
        flask_app.logger.error(f"[store-unavailable] {exc}")
        return jsonify({'error': 'Storage backend unavailable'}), 503

    @flask_app.errorhandler(InvariantViolation)
    def handle_invariant_violation(exc):
        db.session.rollback()
        flask_app.logger.error(f"[invariant-violation] {exc}")
        return jsonify({'error': str(exc)}), 500

    # Unrouted paths, including match ids that are not UUIDs
    @flask_app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({'error': 'Not found'}), 404

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the match, state, event and user tables."""
        import padel_score.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
