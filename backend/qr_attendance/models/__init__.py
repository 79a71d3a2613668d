"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .lecture import Lecture
from .attendance import AttendanceRecord

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'Lecture', 'AttendanceRecord'
]
