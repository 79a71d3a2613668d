# File: backend/qr_attendance/config/base.py
"""Base configuration for the QR Attendance service."""
import os
from datetime import timedelta


def _env_bool(name: str, default: bool = False) -> bool:
    return os.environ.get(name, str(default)).lower() in ['true', 'on', '1']


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration (tokens are minted by the identity provider)
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day;50 per hour"

    # Campus geofence
    CAMPUS_LATITUDE = float(os.environ.get('CAMPUS_LATITUDE', 40.7128))
    CAMPUS_LONGITUDE = float(os.environ.get('CAMPUS_LONGITUDE', -74.0060))
    CAMPUS_RADIUS_METERS = float(os.environ.get('CAMPUS_RADIUS_METERS', 200))

    # Sessions
    SESSION_ACTIVE_UNTIL_END_OF_DAY = _env_bool('SESSION_ACTIVE_UNTIL_END_OF_DAY')
    REQUIRE_ACTIVE_SESSION = _env_bool('REQUIRE_ACTIVE_SESSION')

    # QR codes
    QR_TOKEN_MAX_AGE_SECONDS = int(os.environ['QR_TOKEN_MAX_AGE_SECONDS']) \
        if os.environ.get('QR_TOKEN_MAX_AGE_SECONDS') else None  # no expiry
    QR_IMAGE_WIDTH = int(os.environ.get('QR_IMAGE_WIDTH', 300))
    QR_IMAGE_MARGIN = int(os.environ.get('QR_IMAGE_MARGIN', 2))
    QR_IMAGE_MAX_WIDTH = int(os.environ.get('QR_IMAGE_MAX_WIDTH', 1200))
    QR_FILL_COLOR = os.environ.get('QR_FILL_COLOR', '#1e40af')
    QR_BACK_COLOR = os.environ.get('QR_BACK_COLOR', '#ffffff')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/app.log')
