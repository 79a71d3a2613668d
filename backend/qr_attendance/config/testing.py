"""Testing configuration."""
from datetime import timedelta

from .base import Config


class TestingConfig(Config):
    """Testing configuration class."""

    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'

    # Database (in-memory SQLite for testing)
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    # JWT Configuration
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)

    # Rate Limiting (disabled for testing)
    RATELIMIT_ENABLED = False

    # Campus geofence used by the tests
    CAMPUS_LATITUDE = 40.7128
    CAMPUS_LONGITUDE = -74.0060
    CAMPUS_RADIUS_METERS = 200.0

    SESSION_ACTIVE_UNTIL_END_OF_DAY = False
    REQUIRE_ACTIVE_SESSION = False
    QR_TOKEN_MAX_AGE_SECONDS = None

    # Logging
    LOG_LEVEL = 'WARNING'
