"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # CSRF (Flask-WTF). JSON clients send the token in X-CSRFToken.
    WTF_CSRF_ENABLED = os.getenv('WTF_CSRF_ENABLED', 'true').lower() == 'true'
    WTF_CSRF_TIME_LIMIT = None

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'fieldsales')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'fieldsales')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'fieldsales')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Public share links: /orders/public/<token> is appended to this base
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', 'http://localhost:5000')
    SHARE_TOKEN_BYTES = int(os.getenv('SHARE_TOKEN_BYTES', '24'))

    # Order pricing rules
    ORDER_MAX_DISCOUNT_PERCENT = os.getenv('ORDER_MAX_DISCOUNT_PERCENT', '100')
    ORDER_CLAMP_NET_AMOUNT = os.getenv('ORDER_CLAMP_NET_AMOUNT', 'true').lower() == 'true'
    ORDER_TOTALS_TOLERANCE = os.getenv('ORDER_TOTALS_TOLERANCE', '0.01')
    ORDER_REJECT_TOTALS_MISMATCH = os.getenv('ORDER_REJECT_TOTALS_MISMATCH', 'false').lower() == 'true'

    # Business Information (for the order invoice PDF)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'Master Brains')
    BUSINESS_ADDRESS = os.getenv('BUSINESS_ADDRESS', '')
    BUSINESS_PHONE = os.getenv('BUSINESS_PHONE', '')
    BUSINESS_EMAIL = os.getenv('BUSINESS_EMAIL', '')


class TestConfig(Config):
    """Configuration used by the test suite (in-memory SQLite)."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    WTF_CSRF_ENABLED = False
    PUBLIC_BASE_URL = 'http://testserver'
    ORDER_REJECT_TOTALS_MISMATCH = False
