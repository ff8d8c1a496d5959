"""
Configuration settings for different environments
"""
import os
import logging
import secrets

from dotenv import load_dotenv

load_dotenv()


def _require_in_production(var_name, default):
    """Return env var value. Outside development, warn loudly if still using default."""
    value = os.environ.get(var_name, "")
    if value:
        return value
    env = os.environ.get("FLASK_ENV", "development")
    if env not in ("development", "testing") and default:
        logging.getLogger(__name__).warning(
            "%s is using an insecure default. Set it via environment variable!", var_name
        )
    return default


def _database_url(default):
    url = os.environ.get("DATABASE_URL", "")
    if not url:
        return default
    # SQLAlchemy 2.x only understands the postgresql:// scheme
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def server_debug_enabled():
    """Debugger for the dev server; only on when DEBUG=true is set explicitly."""
    return os.environ.get("DEBUG", "false").strip().lower() == "true"


class Config:
    """Base configuration"""
    SECRET_KEY = _require_in_production('SECRET_KEY', 'dev-only-' + secrets.token_hex(16))

    # JWT
    JWT_SECRET = _require_in_production('JWT_SECRET', 'dev-only-' + secrets.token_hex(32))
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_DAYS = int(os.environ.get('JWT_EXPIRES_DAYS', '30'))

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url('sqlite:///servicehub.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }

    # API
    API_PREFIX = '/api'
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # JSON bodies only

    # OTP login (2Factor). Without an API key a mock code is accepted where allowed.
    TWOFACTOR_API_KEY = os.environ.get('TWOFACTOR_API_KEY', '')
    OTP_TTL_SECONDS = int(os.environ.get('OTP_TTL_SECONDS', '600'))
    OTP_MAX_ATTEMPTS = int(os.environ.get('OTP_MAX_ATTEMPTS', '5'))
    MOCK_OTP_CODE = os.environ.get('MOCK_OTP_CODE', '1234')
    # Mock OTP accepts MOCK_OTP_CODE for any phone; never allowed in production
    ALLOW_MOCK_OTP = True

    # Admin bootstrap (POST /api/setup/admin, flask seed-admin)
    ADMIN_SEED_SECRET = os.environ.get('ADMIN_SEED_SECRET', '')

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_HEADERS_ENABLED = True

    # Logging / monitoring
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SENTRY_DSN = os.environ.get('SENTRY_DSN', '')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    ALLOW_MOCK_OTP = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""
    TESTING = True
    DEBUG = False

    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')
    SQLALCHEMY_ENGINE_OPTIONS = {}

    SECRET_KEY = 'test-secret-key'
    JWT_SECRET = 'test-jwt-secret'
    JWT_EXPIRES_DAYS = 1

    TWOFACTOR_API_KEY = ''
    MOCK_OTP_CODE = '1234'
    ADMIN_SEED_SECRET = 'test-seed-secret'

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    LOG_LEVEL = 'WARNING'
    SENTRY_DSN = ''


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}
