# backend/qr_attendance/services/attendance_service.py
"""Attendance validation pipeline and attendance record keeping."""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.gps_service import GeoCoordinate, GeofenceConfig, GPSService
from qr_attendance.services.qr_service import AttendanceToken, QRService

logger = logging.getLogger(__name__)

MAX_LECTURE_ID = 2 ** 63 - 1


class DecisionOutcome(Enum):
    """Result of a single scan attempt."""
    ADMITTED = 'admitted'
    DENIED_OUTSIDE_GEOFENCE = 'denied_outside_geofence'
    DENIED_INVALID_TOKEN = 'denied_invalid_token'
    DENIED_LOCATION_UNAVAILABLE = 'denied_location_unavailable'


@dataclass(frozen=True)
class AttendanceDecision:
    outcome: DecisionOutcome
    token: Optional[AttendanceToken] = None
    distance_meters: Optional[float] = None
    reason: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.outcome is DecisionOutcome.ADMITTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'decision': self.outcome.value,
            'admitted': self.admitted,
            'token': self.token.to_dict() if self.token else None,
            'distance_meters': round(self.distance_meters, 2) if self.distance_meters is not None else None,
            'reason': self.reason
        }


class AttendanceService:
    """
    Attendance check-in service.

    Scan flow:
    1. Location must be available (most actionable failure first)
    2. QR payload must decode to a valid token
    3. Location must be inside the campus geofence
    Admitted decisions are persisted by ``record_scan``.
    """

    @staticmethod
    def evaluate_scan(
        payload: Any,
        reported_location: Optional[GeoCoordinate],
        config: GeofenceConfig,
        now: Optional[datetime] = None,
        max_token_age: Optional[timedelta] = None
    ) -> AttendanceDecision:
        """Combine location, token and geofence checks into one decision."""
        if reported_location is None:
            logger.info("Scan denied: location unavailable")
            return AttendanceDecision(
                DecisionOutcome.DENIED_LOCATION_UNAVAILABLE,
                reason="Unable to determine your location. Please enable GPS."
            )

        token, error = QRService.decode(payload)
        if error is not None:
            logger.info("Scan denied: %s (%s)", error.message, error.kind.value)
            return AttendanceDecision(
                DecisionOutcome.DENIED_INVALID_TOKEN,
                reason="This QR code is not valid for attendance."
            )

        if max_token_age is not None:
            now = now or datetime.now(timezone.utc)
            if now.tzinfo is None:
                now = now.replace(tzinfo=timezone.utc)
            age = now - token.issued_at
            if age > max_token_age or age < -max_token_age:
                logger.info("Scan denied: token %s is stale", token.nonce)
                return AttendanceDecision(
                    DecisionOutcome.DENIED_INVALID_TOKEN,
                    token=token,
                    reason="This QR code has expired. Ask your teacher for a new one."
                )

        distance = GPSService.calculate_distance(reported_location, config.reference_point)
        if not GPSService.is_within_fence(reported_location, config):
            logger.info("Scan denied: %.1fm from campus (limit %.1fm)",
                        distance, config.allowed_radius_meters)
            return AttendanceDecision(
                DecisionOutcome.DENIED_OUTSIDE_GEOFENCE,
                token=token,
                distance_meters=distance,
                reason="You are outside premises. Attendance not allowed."
            )

        logger.info("Scan admitted for session %s (token %s)", token.session_id, token.nonce)
        return AttendanceDecision(
            DecisionOutcome.ADMITTED,
            token=token,
            distance_meters=distance,
            reason=f"Present for {token.subject} - {token.class_name}"
        )

    @staticmethod
    def find_lecture(token: AttendanceToken) -> Optional[Lecture]:
        """Lecture a token was issued for, if it still exists and is active."""
        try:
            lecture_id = int(token.session_id)
        except ValueError:
            return None

        # Larger ids cannot be bound as a database integer
        if not 0 < lecture_id <= MAX_LECTURE_ID:
            return None

        lecture = Lecture.get_by_id(lecture_id)
        if lecture is None or not lecture.is_active:
            return None
        return lecture

    @staticmethod
    def record_scan(
        student: User,
        lecture: Lecture,
        decision: AttendanceDecision,
        location: GeoCoordinate,
        attendance_date: date
    ) -> Tuple[AttendanceRecord, bool]:
        """
        Persist an admitted scan.
        Returns: (record, created) where created is False if the student was already present
        """
        if not decision.admitted:
            raise ValueError("Only admitted scans can be recorded")

        record = AttendanceRecord.query.filter_by(
            student_id=student.id,
            lecture_id=lecture.id,
            attendance_date=attendance_date
        ).first()

        if record is not None and record.is_present:
            return record, False

        if record is None:
            record = AttendanceRecord(
                student_id=student.id,
                lecture_id=lecture.id,
                attendance_date=attendance_date
            )
            db.session.add(record)

        record.is_present = True
        record.verification_method = 'qr'
        record.marked_by = None
        record.check_in_time = datetime.utcnow()
        record.token_nonce = decision.token.nonce
        record.latitude = location.latitude
        record.longitude = location.longitude
        record.distance_meters = decision.distance_meters

        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent scan by the same student won the insert
            db.session.rollback()
            record = AttendanceRecord.query.filter_by(
                student_id=student.id,
                lecture_id=lecture.id,
                attendance_date=attendance_date
            ).one()
            return record, False

        return record, True

    @staticmethod
    def get_roster(lecture: Lecture, attendance_date: date) -> List[Dict[str, Any]]:
        """Students of the lecture's class with their attendance on a date."""
        students = User.query.filter_by(
            role=UserRole.STUDENT,
            class_name=lecture.class_name,
            is_active=True
        ).order_by(User.roll_no, User.name).all()

        records = {
            record.student_id: record
            for record in AttendanceRecord.query.filter_by(
                lecture_id=lecture.id,
                attendance_date=attendance_date
            )
        }

        roster = []
        for student in students:
            record = records.get(student.id)
            roster.append({
                'id': student.id,
                'name': student.name,
                'roll_no': student.roll_no,
                'present': bool(record and record.is_present),
                'method': record.verification_method if record else None
            })
        return roster

    @staticmethod
    def mark_manual(
        lecture: Lecture,
        marks: Dict[int, bool],
        attendance_date: date,
        marked_by: User
    ) -> Dict[str, Any]:
        """Save a teacher's manual marks and summarise the class attendance."""
        roster_ids = {entry['id'] for entry in AttendanceService.get_roster(lecture, attendance_date)}
        unknown = set(marks) - roster_ids
        if unknown:
            raise ValueError(f"Students not in class {lecture.class_name}: "
                             f"{', '.join(str(i) for i in sorted(unknown))}")

        existing = {
            record.student_id: record
            for record in AttendanceRecord.query.filter_by(
                lecture_id=lecture.id,
                attendance_date=attendance_date
            )
        }

        for student_id, present in marks.items():
            record = existing.get(student_id)
            if record is None:
                record = AttendanceRecord(
                    student_id=student_id,
                    lecture_id=lecture.id,
                    attendance_date=attendance_date
                )
                db.session.add(record)
            record.is_present = bool(present)
            record.verification_method = 'manual'
            record.marked_by = marked_by.id

        db.session.commit()
        logger.info("Manual attendance saved for lecture %s on %s (%d marks)",
                    lecture.id, attendance_date.isoformat(), len(marks))

        return AttendanceService.summarize_roster(
            AttendanceService.get_roster(lecture, attendance_date)
        )

    @staticmethod
    def summarize_roster(roster: List[Dict[str, Any]]) -> Dict[str, Any]:
        total = len(roster)
        present = sum(1 for entry in roster if entry['present'])
        return {
            'present_count': present,
            'total_students': total,
            'percentage': round(present * 100 / total) if total else 0,
            'students': roster
        }

    @staticmethod
    def get_student_summary(student: User) -> Dict[str, Any]:
        """A student's attendance history, newest first, with their attendance rate."""
        records = (
            AttendanceRecord.query
            .filter_by(student_id=student.id)
            .order_by(AttendanceRecord.attendance_date.desc(), AttendanceRecord.id.desc())
            .all()
        )

        history = []
        for record in records:
            history.append({
                'id': record.id,
                'lecture_id': record.lecture_id,
                'subject': record.lecture.subject,
                'class_name': record.lecture.class_name,
                'date': record.attendance_date.isoformat(),
                'time': record.lecture.time_slot,
                'status': 'present' if record.is_present else 'absent',
                'method': record.verification_method
            })

        total = len(history)
        present = sum(1 for item in history if item['status'] == 'present')

        return {
            'records': history,
            'total_classes': total,
            'present': present,
            'percentage': round(present * 100 / total) if total else 0
        }
