# File: backend/qr_attendance/__init__.py
"""QR Attendance - Application Factory."""
import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, current_app, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from qr_attendance.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Campus geofence is read-only for the life of the app
    setup_geofence(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Attendance',
            'version': '1.0.0'
        })

    return app


def get_geofence():
    """Geofence configured for the current app."""
    return current_app.extensions['geofence']


def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.lectures import lectures_bp
    from qr_attendance.api.qr import qr_bp
    from qr_attendance.api.attendance import attendance_bp

    app.register_blueprint(lectures_bp, url_prefix='/api/lectures')
    app.register_blueprint(qr_bp, url_prefix='/api/qr')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from qr_attendance.utils.helpers import handle_error
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error("Internal server error", 500)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return handle_error('Token has expired', 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return handle_error('Invalid token', 401)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return handle_error('Authorization token required', 401)


def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger('qr_attendance').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config['LOG_FILE']
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = RotatingFileHandler(log_file, maxBytes=1024 * 1024, backupCount=5)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('qr_attendance').addHandler(file_handler)

        app.logger.info('QR Attendance startup')


def setup_geofence(app: Flask) -> None:
    """Validate and store the campus geofence."""
    from qr_attendance.services.gps_service import GeofenceConfig

    app.extensions['geofence'] = GeofenceConfig.from_mapping(app.config)


def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with demo timetable and students."""
        from qr_attendance.services.seed_service import SeedService

        summary = SeedService.seed_all()
        click.echo(f"Seeded {summary['teachers']} teacher(s), "
                   f"{summary['students']} student(s), {summary['lectures']} lecture(s).")

    @app.cli.command('issue-token')
    @click.argument('user_id', type=int)
    def issue_token(user_id):
        """Mint a development access token for a user."""
        from flask_jwt_extended import create_access_token
        from qr_attendance.models.user import User

        user = User.get_by_id(user_id)
        if user is None:
            raise click.ClickException(f'User {user_id} not found')

        click.echo(create_access_token(identity=str(user.id)))
