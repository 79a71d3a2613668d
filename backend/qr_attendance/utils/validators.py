"""Validation utilities for the application."""
import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from qr_attendance.services.gps_service import GeoCoordinate


class ValidationError(Exception):
    """Custom validation error."""
    pass


class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field.replace('_', ' ').title()} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def parse_location(data: Dict) -> Optional[GeoCoordinate]:
        """
        Read the reported location from a scan request.

        Returns None when the client reported that no location could be
        obtained. Raises ValidationError for coordinates that are present
        but unusable.
        """
        if data.get('location_error'):
            return None

        latitude = data.get('latitude')
        longitude = data.get('longitude')
        if latitude is None and longitude is None:
            return None
        if latitude is None or longitude is None:
            raise ValidationError("Both latitude and longitude are required")

        try:
            if isinstance(latitude, bool) or isinstance(longitude, bool):
                raise TypeError
            latitude = float(latitude)
            longitude = float(longitude)
        except (TypeError, ValueError):
            raise ValidationError("Latitude and longitude must be numbers") from None

        if math.isinf(latitude) or math.isinf(longitude):
            raise ValidationError("Latitude and longitude must be finite")

        try:
            return GeoCoordinate(latitude, longitude)
        except ValueError as e:
            raise ValidationError(str(e)) from None

    @staticmethod
    def parse_date(value: Optional[str], default: date) -> date:
        """Parse an optional ISO date (YYYY-MM-DD)."""
        if not value:
            return default
        try:
            return datetime.strptime(value, '%Y-%m-%d').date()
        except (TypeError, ValueError):
            raise ValidationError("Invalid date format. Use YYYY-MM-DD") from None

    @staticmethod
    def parse_bounded_int(value: Any, default: int, minimum: int, maximum: int, name: str) -> int:
        if value is None:
            return default
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be an integer")
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be an integer") from None
        if not minimum <= number <= maximum:
            raise ValidationError(f"{name} must be between {minimum} and {maximum}")
        return number
