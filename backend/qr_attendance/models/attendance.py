# backend/qr_attendance/models/attendance.py
"""Attendance model with verification details."""
from datetime import datetime
from qr_attendance import db
from qr_attendance.models.base import BaseModel


class AttendanceRecord(BaseModel):
    """One student's attendance for one lecture on one date."""

    __tablename__ = 'attendance_records'

    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    lecture_id = db.Column(db.Integer, db.ForeignKey('lectures.id'), nullable=False)
    attendance_date = db.Column(db.Date, nullable=False)
    check_in_time = db.Column(db.DateTime, default=datetime.utcnow)
    is_present = db.Column(db.Boolean, default=True, nullable=False)

    # Verification details
    verification_method = db.Column(db.String(20), default='qr')  # qr, manual
    token_nonce = db.Column(db.String(64), nullable=True)
    marked_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    # Location where check-in happened
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    distance_meters = db.Column(db.Float, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('student_id', 'lecture_id', 'attendance_date',
                            name='uq_attendance_student_lecture_date'),
    )

    def to_dict(self):
        data = super().to_dict(exclude=['created_at', 'updated_at'])
        data['status'] = 'present' if self.is_present else 'absent'
        return data

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.lecture_id}>'
