"""User model holding role records synced from the identity provider."""
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel


class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    TEACHER = 'teacher'


class User(BaseModel):
    """Teachers and students. Credentials live with the identity provider."""

    __tablename__ = 'users'

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)

    # Student fields
    roll_no = db.Column(db.String(50), unique=True, nullable=True, index=True)
    class_name = db.Column(db.String(50), nullable=True, index=True)  # CS-A, CS-B, ...

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    lectures = db.relationship('Lecture', backref='teacher', lazy='dynamic')
    attendance_records = db.relationship(
        'AttendanceRecord', backref='student', lazy='dynamic',
        foreign_keys='AttendanceRecord.student_id'
    )

    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    def to_dict(self, exclude: list = None) -> dict:
        result = super().to_dict(exclude=exclude)
        result['role'] = self.role.value if self.role else None
        return result

    def __repr__(self) -> str:
        return f'<User {self.email}>'
