import logging
import os
import traceback
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter.errors import RateLimitExceeded
from flask_security import Security, SQLAlchemyUserDatastore
from werkzeug.exceptions import HTTPException

# Load environment variables from .env file
load_dotenv()

from backend.config import CONFIGS, DevConfig
from backend.extensions import db, limiter
from backend.services.errors import ServiceError
from backend.utils.mission_store import MissionStore
from backend.utils.request_logger import RequestLogger

# Logging setup
BASEDIR = os.path.dirname(os.path.abspath(__file__))
LOGS_DIR = os.path.join(BASEDIR, 'logs')
os.makedirs(LOGS_DIR, exist_ok=True)
logging.basicConfig(
    level=logging.DEBUG if os.environ.get('FLASK_CONFIG', 'development') == 'development' else logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    handlers=[
        logging.FileHandler(os.path.join(LOGS_DIR, 'app.log')),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# (module name, url prefix); each module exposes <name>_bp
blueprints = [
    ('mission', '/api'),
    ('driver', '/api'),
    ('car', '/api'),
    ('car_report', '/api'),
    ('client', '/api'),
    ('emergency_report', '/api'),
    ('files', '/api'),
    ('daily_check', '/api/admin'),
]


def register_blueprints(app):
    for blueprint_name, prefix in blueprints:
        module = __import__(f'backend.api.{blueprint_name}', fromlist=[f'{blueprint_name}_bp'])
        app.register_blueprint(getattr(module, f'{blueprint_name}_bp'), url_prefix=prefix)
        logger.debug(f"Registered blueprint: {blueprint_name} with prefix: {prefix}")

    from backend.api.mobileapi.driver import mobile_driver_bp
    app.register_blueprint(mobile_driver_bp, url_prefix='/api/mobile')


def register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def service_error(e):
        return jsonify({'error': e.message}), e.code

    @app.errorhandler(400)
    def bad_request(error):
        logger.warning(f"400 Bad Request for {request.method} {request.path}: {error}")
        return jsonify({'error': 'Bad Request', 'message': str(error), 'path': request.path}), 400

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({'error': 'Authentication required'}), 401

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({'error': 'Access forbidden'}), 403

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'API endpoint not found', 'path': request.path}), 404

    @app.errorhandler(RateLimitExceeded)
    def ratelimit_handler(e):
        logger.warning(f"Rate limit exceeded for {request.method} {request.path}")
        return jsonify({'error': 'Rate limit exceeded. Please try again later.'}), 429

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify({'error': e.description}), e.code
        logger.error(f"Unhandled exception for {request.method} {request.url}: {e}")
        logger.error(traceback.format_exc())
        return jsonify({'error': 'Internal server error'}), 500


def create_app(config_class=DevConfig):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    limiter.init_app(app)
    CORS(app, supports_credentials=True, resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', [])}})

    # Models must be imported before the datastore and create_all see them
    from backend.models.user import User
    from backend.models.role import Role
    from backend.models.driver import Driver  # noqa: F401
    from backend.models.car import Car  # noqa: F401
    from backend.models.mission import Mission  # noqa: F401
    from backend.models.mission_audit import MissionAudit  # noqa: F401
    from backend.models.vehicle_inspection import VehicleInspection  # noqa: F401
    from backend.models.client import Client  # noqa: F401
    from backend.models.emergency_report import EmergencyReport  # noqa: F401

    user_datastore = SQLAlchemyUserDatastore(db, User, Role)
    Security(app, user_datastore)

    from backend.services.mission_service import MissionService
    app.extensions['mission_store'] = MissionStore(MissionService.board_snapshot)

    register_blueprints(app)
    register_error_handlers(app)
    RequestLogger.init_app(app)

    @app.route('/api/health-check')
    def health_check():
        healthy = db.health_check()
        return jsonify({
            'status': 'ok' if healthy else 'degraded',
            'database': healthy,
            'pool': db.get_pool_stats(),
        }), 200 if healthy else 503

    logger.info("Database connected: %s",
                "sqlite" if "sqlite" in (app.config.get("SQLALCHEMY_DATABASE_URI") or "") else "non-sqlite")
    return app


app = create_app(CONFIGS.get(os.environ.get('FLASK_CONFIG', 'development'), DevConfig))


if __name__ == '__main__':
    if app.config.get('STORAGE_PATH'):
        os.makedirs(app.config['STORAGE_PATH'], exist_ok=True)
    with app.app_context():
        db.create_all()
    app.run(
        host=app.config.get('FLASK_HOST', '0.0.0.0'),
        port=app.config.get('FLASK_PORT', 5000),
        debug=app.config.get('DEBUG', False),
    )
