# backend/qr_attendance/services/gps_service.py
"""GPS geofence verification service."""
import math
from dataclasses import dataclass
from typing import Any, Mapping

EARTH_RADIUS_METERS = 6371000


@dataclass(frozen=True)
class GeoCoordinate:
    """A latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    def __post_init__(self):
        for name, limit in (('latitude', 90), ('longitude', 180)):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name.title()} must be a number")
            if math.isnan(value) or not -limit <= value <= limit:
                raise ValueError(f"{name.title()} must be between -{limit} and {limit}")

    def to_dict(self):
        return {'latitude': self.latitude, 'longitude': self.longitude}


@dataclass(frozen=True)
class GeofenceConfig:
    """Campus reference point and the radius students must be within."""
    reference_point: GeoCoordinate
    allowed_radius_meters: float

    def __post_init__(self):
        radius = self.allowed_radius_meters
        if isinstance(radius, bool) or not isinstance(radius, (int, float)) or not radius > 0:
            raise ValueError("Allowed radius must be a positive number of meters")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'GeofenceConfig':
        """Build the geofence from ``CAMPUS_*`` configuration keys."""
        return cls(
            reference_point=GeoCoordinate(
                float(config['CAMPUS_LATITUDE']),
                float(config['CAMPUS_LONGITUDE'])
            ),
            allowed_radius_meters=float(config['CAMPUS_RADIUS_METERS'])
        )


class GPSService:
    """Service for GPS and location verification."""

    @staticmethod
    def calculate_distance(a: GeoCoordinate, b: GeoCoordinate) -> float:
        """Calculate great-circle distance between two GPS points in meters."""
        lat1_rad = math.radians(a.latitude)
        lat2_rad = math.radians(b.latitude)
        delta_lat = math.radians(b.latitude - a.latitude)
        delta_lon = math.radians(b.longitude - a.longitude)

        h = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) ** 2)
        # Rounding can push h a hair above 1 for antipodal points
        h = min(1.0, h)
        c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

        return EARTH_RADIUS_METERS * c

    @staticmethod
    def is_within_fence(point: GeoCoordinate, config: GeofenceConfig) -> bool:
        """Check if a point is inside the geofence (boundary inclusive)."""
        distance = GPSService.calculate_distance(point, config.reference_point)
        return distance <= config.allowed_radius_meters
