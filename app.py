# Main Flask app
import logging.config
import os

from flask import Flask, json, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from auth import jwt
from config import config
from errors import APIError
from models import db, bcrypt
from routes import main_bp, users_bp, posts_bp, feed_bp


def configure_logging(level):
    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {'format': '[%(asctime)s] %(levelname)s in %(name)s: %(message)s'}
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'default',
                'stream': 'ext://sys.stderr'
            }
        },
        'root': {'level': level, 'handlers': ['console']}
    })


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(error):
        db.session.rollback()
        return error.to_response()

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        db.session.rollback()
        app.logger.warning("Integrity error: %s", error.orig)
        return jsonify({"error": "Conflicting record already exists"}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # Keep werkzeug's headers, e.g. Allow on 405
        response = error.get_response()
        response.data = json.dumps({"error": error.description})
        response.content_type = 'application/json'
        return response

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", error)
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_name=None):
    config_name = config_name or os.environ.get('FLASK_CONFIG', 'default')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    configure_logging(app.config['LOG_LEVEL'])

    # '/users' and '/users/' are the same resource
    app.url_map.strict_slashes = False

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)

    # Register blueprints
    prefix = app.config['API_PREFIX'].rstrip('/')
    app.register_blueprint(main_bp, url_prefix=prefix or None)
    app.register_blueprint(feed_bp, url_prefix=prefix or None)
    app.register_blueprint(users_bp, url_prefix=f'{prefix}/users')
    app.register_blueprint(posts_bp, url_prefix=f'{prefix}/posts')

    register_error_handlers(app)

    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        db.create_all()
        app.logger.info("Database tables created for %s", app.config['SQLALCHEMY_DATABASE_URI'])

    app.logger.debug("App created with '%s' configuration", config_name)
    return app
