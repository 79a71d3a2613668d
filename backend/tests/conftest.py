"""Shared fixtures for the QR Attendance tests."""
from datetime import date, time

import pytest
from flask_jwt_extended import create_access_token

from qr_attendance import create_app, db
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.gps_service import GeoCoordinate, GeofenceConfig
from qr_attendance.services.schedule_service import WeekDay

CAMPUS = GeoCoordinate(40.7128, -74.0060)
OFF_CAMPUS = GeoCoordinate(40.7228, -74.0060)  # roughly 1.1 km north


@pytest.fixture
def geofence():
    """Campus geofence with a 200 m radius."""
    return GeofenceConfig(reference_point=CAMPUS, allowed_radius_meters=200)


@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def teacher(app):
    user = User(email='teacher@example.com', name='Test Teacher', role=UserRole.TEACHER)
    return user.save()


@pytest.fixture
def other_teacher(app):
    user = User(email='other.teacher@example.com', name='Other Teacher', role=UserRole.TEACHER)
    return user.save()


@pytest.fixture
def student(app):
    user = User(
        email='cs001@example.com',
        name='Alice Johnson',
        role=UserRole.STUDENT,
        roll_no='CS001',
        class_name='CS-A'
    )
    return user.save()


@pytest.fixture
def classmate(app):
    user = User(
        email='cs002@example.com',
        name='Bob Smith',
        role=UserRole.STUDENT,
        roll_no='CS002',
        class_name='CS-A'
    )
    return user.save()


@pytest.fixture
def lecture(app, teacher):
    """A lecture for class CS-A that is active all of today."""
    lecture = Lecture(
        teacher_id=teacher.id,
        subject='Computer Science 101',
        class_name='CS-A',
        day_of_week=WeekDay.from_date(date.today()),
        start_time=time(0, 0),
        end_time=time(23, 59)
    )
    return lecture.save()


def auth_headers(user):
    """Bearer headers as the identity provider would issue them."""
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def teacher_headers(teacher):
    return auth_headers(teacher)


@pytest.fixture
def other_teacher_headers(other_teacher):
    return auth_headers(other_teacher)


@pytest.fixture
def student_headers(student):
    return auth_headers(student)


@pytest.fixture
def make_headers(app):
    return auth_headers


@pytest.fixture
def campus():
    return CAMPUS


@pytest.fixture
def off_campus():
    return OFF_CAMPUS
