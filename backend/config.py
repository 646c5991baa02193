import os
from pathlib import Path

class Config:
    """Base configuration - shared across all environments"""

    # Security
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECURITY_PASSWORD_SALT = os.environ.get('SECURITY_PASSWORD_SALT', 'dev-salt')

    # Flask-Security settings (dispatcher dashboard)
    SECURITY_REGISTERABLE = False
    SECURITY_PASSWORD_HASH = 'pbkdf2_sha512'
    SECURITY_TOKEN_AUTHENTICATION_HEADER = 'Authentication-Token'
    SECURITY_TOKEN_AUTHENTICATION_KEY = 'auth_token'
    SECURITY_TRACKABLE = False
    SECURITY_API_ENABLED = True
    SECURITY_URL_PREFIX = "/api/auth"
    WTF_CSRF_ENABLED = False
    SECURITY_CSRF_PROTECT_MECHANISMS = []
    SECURITY_CSRF_IGNORE_UNAUTH_ENDPOINTS = True
    SESSION_COOKIE_HTTPONLY = True
    SECURITY_UNAUTHORIZED_VIEW = None
    SECURITY_RENDER_AS_JSON = True
    SECURITY_JSON = True

    # Driver mobile API tokens
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', 'dev-jwt-secret')
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRY_HOURS = int(os.environ.get('JWT_EXPIRY_HOURS', 24))

    # Daily check evaluation
    # Calendar days for daily checks are cut in this timezone, timestamps are stored in UTC
    DISPLAY_TIMEZONE = os.environ.get('DISPLAY_TIMEZONE', 'Asia/Jerusalem')
    DAILY_CHECK_MAX_WORKERS = int(os.environ.get('DAILY_CHECK_MAX_WORKERS', 8))

    # Pagination
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Image uploads
    MAX_IMAGE_SIZE_MB = float(os.environ.get('MAX_IMAGE_SIZE_MB', 2.0))
    MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB before compression
    ALLOWED_IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'heic', 'webp'}
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    IMAGE_STORAGE_ROOT = os.getenv(
        "IMAGE_STORAGE_ROOT",
        str(Path(__file__).resolve().parents[1] / "dispatch-storage" / "images"))

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = "1000 per day;500 per hour"

    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8100",
        "capacitor://localhost",
        "ionic://localhost",
    ]


class DevConfig(Config):
    """Development configuration"""
    DEBUG = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False
    FLASK_HOST = '0.0.0.0'
    FLASK_PORT = 5000

    # Development database - SQLite next to the image storage
    STORAGE_PATH = str(Path(__file__).resolve().parents[1] / "dispatch-storage" / "database")
    DB_PATH = os.path.join(STORAGE_PATH, 'dispatch.db')
    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI', f"sqlite:///{DB_PATH}")


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECRET_KEY = 'test-secret-key'
    JWT_SECRET_KEY = 'test-jwt-secret'
    DISPLAY_TIMEZONE = 'Asia/Jerusalem'
    # One shared in-memory connection, so DB-backed lookups run on one worker
    DAILY_CHECK_MAX_WORKERS = 1
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SESSION_COOKIE_SAMESITE = 'None'
    SESSION_COOKIE_SECURE = True
    FLASK_HOST = '::'
    FLASK_PORT = 5000

    # Production database - MUST be set via environment
    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI')


CONFIGS = {
    'development': DevConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}
