from flask import Flask, jsonify
from flask_cors import CORS
from flasgger import Flasgger, swag_from
import os

from .extensions import db, jwt, query_cache
from .config import Config
from .errors import register_error_handlers
from .logging_utils import configure_logging


def create_app(config=Config):
    """
    Create Flask App instance

    Arguments:
        config -- configuration class to use (default: Config)
    Returns:
        Configured Flask app instance
    """
    #1. Create Flask app instance
    app = Flask(__name__)

    #2. Load configuration passed from argument or default to Config
    app.config.from_object(config)
    configure_logging(app)

    #3. Initialize extensions with app instance
    db.init_app(app)
    jwt.init_app(app)
    query_cache.init_app(app)
    CORS(app)  # Enable CORS for all routes

    #3.5. Initialize Flasgger for Swagger UI
    Flasgger(app)

    #4. JSON error responses for the error taxonomy
    register_error_handlers(app)

    #5. Register blueprints (routes)
    from .routes.pages import pages_bp
    from .routes.auth import auth_bp
    from .routes.problems import problems_bp
    from .routes.solutions import solutions_bp
    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(problems_bp, url_prefix='/problems')
    app.register_blueprint(solutions_bp)

    #6. Import models so SQLAlchemy registers them (and their counter triggers), then create tables
    with app.app_context():
        from . import models  # noqa: F401 - import to register models
        db.create_all()

    #7. Health check endpoint
    @app.route('/health', methods=['GET'])
    @swag_from(os.path.join(os.path.dirname(__file__), 'specs', 'health.yaml'))
    def health():
        """Health check endpoint"""
        return jsonify({'status': 'ok'}), 200

    #8. Return the configured app
    return app
