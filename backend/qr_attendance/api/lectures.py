# backend/qr_attendance/api/lectures.py
"""Lectures API endpoints."""
from flask import Blueprint, current_app, g, request

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord
from qr_attendance.models.lecture import Lecture
from qr_attendance.services.schedule_service import WeekDay, parse_time, parse_time_range
from qr_attendance.utils.decorators import teacher_required
from qr_attendance.utils.helpers import error_response, local_now, success_response
from qr_attendance.utils.validators import Validator

lectures_bp = Blueprint('lectures', __name__)


def get_owned_lecture(lecture_id: int):
    """Return (lecture, None) or (None, error response) for the current teacher."""
    lecture = Lecture.get_by_id(lecture_id)
    if lecture is None or not lecture.is_active:
        return None, error_response("Lecture not found", 404)
    if lecture.teacher_id != g.current_user.id:
        return None, error_response("You can only manage your own lectures", 403)
    return lecture, None


def lecture_to_dict(lecture: Lecture, now=None) -> dict:
    return lecture.to_dict(
        now=now or local_now(),
        extend_active_to_end_of_day=current_app.config['SESSION_ACTIVE_UNTIL_END_OF_DAY']
    )


@lectures_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Lectures service is running')


@lectures_bp.route('/', methods=['GET'])
@teacher_required
def get_lectures():
    """Get the current teacher's lectures for a weekday (default today)."""
    now = local_now()

    day = request.args.get('day')
    try:
        day_of_week = WeekDay.parse(day) if day else WeekDay.from_date(now.date())
    except ValueError as e:
        return error_response(str(e), 400)

    lectures = (
        Lecture.query
        .filter_by(teacher_id=g.current_user.id, day_of_week=day_of_week, is_active=True)
        .order_by(Lecture.start_time)
        .all()
    )

    data = [lecture_to_dict(lecture, now) for lecture in lectures]
    active = sum(1 for item in data if item['status'] == 'active')

    return success_response(
        data={
            'day': day_of_week.name,
            'lectures': data,
            'total': len(data),
            'active': active,
            'upcoming': sum(1 for item in data if item['status'] == 'upcoming')
        },
        message=f"Found {len(data)} lectures"
    )


@lectures_bp.route('/<int:lecture_id>', methods=['GET'])
@teacher_required
def get_lecture(lecture_id):
    """Get specific lecture details."""
    lecture, error = get_owned_lecture(lecture_id)
    if error:
        return error

    now = local_now()
    data = lecture_to_dict(lecture, now)
    data['attendance_count'] = AttendanceRecord.query.filter_by(
        lecture_id=lecture.id,
        attendance_date=now.date(),
        is_present=True
    ).count()

    return success_response(data=data)


@lectures_bp.route('/', methods=['POST'])
@teacher_required
def create_lecture():
    """Add a lecture to the current teacher's timetable."""
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return error_response("Request body must be JSON", 400)

    validation = Validator.validate_required_fields(data, ['subject', 'class_name'])
    if not validation['is_valid']:
        return error_response(', '.join(validation['errors']), 400)

    for field in ('subject', 'class_name'):
        if not isinstance(data[field], str):
            return error_response(f"{field.replace('_', ' ').title()} must be a string", 400)

    try:
        day_of_week = WeekDay.parse(data.get('day') or 'MONDAY')

        if data.get('time'):
            start_time, end_time = parse_time_range(data['time'])
        elif data.get('start_time') and data.get('end_time'):
            start_time = parse_time(data['start_time'])
            end_time = parse_time(data['end_time'])
            if start_time >= end_time:
                return error_response("End time must be after start time", 400)
        else:
            return error_response("Time is required (e.g. '09:00 - 10:30')", 400)
    except ValueError as e:
        return error_response(f"Invalid schedule: {e}", 400)

    try:
        lecture = Lecture(
            teacher_id=g.current_user.id,
            subject=data['subject'].strip(),
            class_name=data['class_name'].strip(),
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time
        )
        db.session.add(lecture)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create lecture")
        return error_response("Failed to create lecture", 500)

    current_app.logger.info("Lecture %s added by teacher %s", lecture.id, g.current_user.id)

    return success_response(
        data=lecture_to_dict(lecture),
        message=f"{lecture.subject} has been added to your schedule"
    ), 201


@lectures_bp.route('/<int:lecture_id>', methods=['DELETE'])
@teacher_required
def delete_lecture(lecture_id):
    """Remove a lecture from the timetable, keeping its attendance history."""
    lecture, error = get_owned_lecture(lecture_id)
    if error:
        return error

    lecture.is_active = False
    db.session.commit()

    return success_response(message="Lecture removed")
