# backend/qr_attendance/models/lecture.py
"""Lecture model: a weekly slot on a teacher's timetable."""
from datetime import datetime
from typing import Optional
from qr_attendance import db
from qr_attendance.models.base import BaseModel
from qr_attendance.services.qr_service import SessionDescriptor
from qr_attendance.services.schedule_service import (
    SessionStatus, SessionStatusService, WeekDay, format_time_range
)


class Lecture(BaseModel):
    """Lecture model."""

    __tablename__ = 'lectures'

    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    subject = db.Column(db.String(255), nullable=False)
    class_name = db.Column(db.String(50), nullable=False)

    # Time Info
    day_of_week = db.Column(db.Enum(WeekDay), nullable=False, default=WeekDay.MONDAY)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    attendance_records = db.relationship('AttendanceRecord', backref='lecture', lazy='dynamic')

    __table_args__ = (
        db.Index('ix_lectures_teacher_day', 'teacher_id', 'day_of_week'),
    )

    @property
    def time_slot(self) -> str:
        return format_time_range(self.start_time, self.end_time)

    def to_descriptor(self) -> SessionDescriptor:
        """Session snapshot used when issuing QR tokens."""
        return SessionDescriptor(
            session_id=str(self.id),
            subject=self.subject,
            class_name=self.class_name,
            start_time=self.start_time,
            end_time=self.end_time,
            day_of_week=self.day_of_week
        )

    def status_at(self, now: datetime, extend_active_to_end_of_day: bool = False) -> SessionStatus:
        """Status of the lecture at ``now``. Lectures on other weekdays are upcoming."""
        if WeekDay.from_date(now.date()) != self.day_of_week:
            return SessionStatus.UPCOMING
        return SessionStatusService.resolve(
            now, self.start_time, self.end_time,
            extend_active_to_end_of_day=extend_active_to_end_of_day
        )

    def to_dict(self, now: Optional[datetime] = None, extend_active_to_end_of_day: bool = False):
        """Convert to dictionary."""
        data = {
            'id': self.id,
            'teacher_id': self.teacher_id,
            'subject': self.subject,
            'class_name': self.class_name,
            'day': self.day_of_week.name,
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
            'time': self.time_slot,
            'is_active': self.is_active
        }
        if now is not None:
            data['status'] = self.status_at(now, extend_active_to_end_of_day).value
        return data

    def __repr__(self):
        return f'<Lecture {self.subject} {self.class_name}>'
