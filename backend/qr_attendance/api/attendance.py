# File: backend/qr_attendance/api/attendance.py
"""Attendance API endpoints: QR check-in and manual marking."""
from datetime import timedelta

from flask import Blueprint, current_app, g, request

from qr_attendance import db, get_geofence, limiter
from qr_attendance.api.lectures import get_owned_lecture, lecture_to_dict
from qr_attendance.services.attendance_service import AttendanceService, DecisionOutcome
from qr_attendance.services.schedule_service import SessionStatus
from qr_attendance.utils.decorators import student_required, teacher_required
from qr_attendance.utils.helpers import error_response, local_now, local_today, success_response
from qr_attendance.utils.validators import ValidationError, Validator

attendance_bp = Blueprint('attendance', __name__)

DENIAL_STATUS_CODES = {
    DecisionOutcome.DENIED_LOCATION_UNAVAILABLE: 403,
    DecisionOutcome.DENIED_OUTSIDE_GEOFENCE: 403,
    DecisionOutcome.DENIED_INVALID_TOKEN: 400,
}


@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')


@attendance_bp.route('/scan', methods=['POST'])
@student_required
@limiter.limit("20 per minute")
def scan():
    """Mark attendance from a scanned QR code and the student's location."""
    data = request.get_json(silent=True)

    if not isinstance(data, dict) or 'qr_data' not in data:
        return error_response("QR data is required", 400)

    try:
        location = Validator.parse_location(data)
    except ValidationError as e:
        return error_response(str(e), 400)

    max_age = current_app.config.get('QR_TOKEN_MAX_AGE_SECONDS')
    decision = AttendanceService.evaluate_scan(
        data['qr_data'],
        location,
        get_geofence(),
        max_token_age=timedelta(seconds=max_age) if max_age else None
    )

    if not decision.admitted:
        return error_response(
            decision.reason,
            DENIAL_STATUS_CODES[decision.outcome],
            data=decision.to_dict()
        )

    lecture = AttendanceService.find_lecture(decision.token)
    if lecture is None:
        return error_response("This lecture no longer exists", 404, data=decision.to_dict())

    if g.current_user.class_name != lecture.class_name:
        current_app.logger.info("Scan by student %s refused: not in class %s",
                                g.current_user.id, lecture.class_name)
        return error_response(
            f"You are not enrolled in class {lecture.class_name}", 403, data=decision.to_dict()
        )

    now = local_now()
    status = lecture.status_at(now, current_app.config['SESSION_ACTIVE_UNTIL_END_OF_DAY'])
    if current_app.config['REQUIRE_ACTIVE_SESSION'] and status is not SessionStatus.ACTIVE:
        return error_response("Lecture is not active at this time", 409, data=decision.to_dict())

    try:
        record, created = AttendanceService.record_scan(
            g.current_user, lecture, decision, location, now.date()
        )
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to record attendance")
        return error_response("Failed to record attendance", 500)

    response = {
        **decision.to_dict(),
        'attendance': record.to_dict(),
        'lecture': lecture_to_dict(lecture, now),
        'already_marked': not created
    }

    if not created:
        return success_response(data=response, message="Attendance already marked")

    return success_response(
        data=response,
        message=f"Attendance marked successfully. {decision.reason}"
    ), 201


@attendance_bp.route('/manual/<int:lecture_id>', methods=['GET'])
@teacher_required
def get_manual_attendance(lecture_id):
    """Class roster with attendance marks for a date (default today)."""
    lecture, error = get_owned_lecture(lecture_id)
    if error:
        return error

    try:
        attendance_date = Validator.parse_date(request.args.get('date'), local_today())
    except ValidationError as e:
        return error_response(str(e), 400)

    summary = AttendanceService.summarize_roster(
        AttendanceService.get_roster(lecture, attendance_date)
    )
    summary['date'] = attendance_date.isoformat()
    summary['lecture'] = lecture_to_dict(lecture)

    return success_response(data=summary)


@attendance_bp.route('/manual/<int:lecture_id>', methods=['POST'])
@teacher_required
def save_manual_attendance(lecture_id):
    """Save manual attendance marks for a lecture."""
    lecture, error = get_owned_lecture(lecture_id)
    if error:
        return error

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    try:
        attendance_date = Validator.parse_date(data.get('date'), local_today())
    except ValidationError as e:
        return error_response(str(e), 400)

    if 'mark_all' in data:
        if not isinstance(data['mark_all'], bool):
            return error_response("mark_all must be true or false", 400)
        roster = AttendanceService.get_roster(lecture, attendance_date)
        marks = {entry['id']: data['mark_all'] for entry in roster}
    else:
        raw_marks = data.get('attendance')
        if not isinstance(raw_marks, dict) or not raw_marks:
            return error_response("Attendance marks are required", 400)
        try:
            marks = {int(student_id): present for student_id, present in raw_marks.items()}
        except ValueError:
            return error_response("Student IDs must be integers", 400)
        if not all(isinstance(present, bool) for present in marks.values()):
            return error_response("Attendance marks must be true or false", 400)

    try:
        summary = AttendanceService.mark_manual(lecture, marks, attendance_date, g.current_user)
    except ValueError as e:
        db.session.rollback()
        return error_response(str(e), 400)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to save manual attendance")
        return error_response("Failed to save attendance", 500)

    summary['date'] = attendance_date.isoformat()

    return success_response(
        data=summary,
        message=f"{summary['present_count']}/{summary['total_students']} students marked present"
    )


@attendance_bp.route('/me', methods=['GET'])
@student_required
def my_attendance():
    """Current student's attendance history and rate."""
    return success_response(data=AttendanceService.get_student_summary(g.current_user))
