"""Test CLI commands and demo data seeding."""
from flask_jwt_extended import decode_token
from sqlalchemy import inspect

from qr_attendance import db
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.seed_service import SeedService


def test_seed_all_is_idempotent(app):
    first = SeedService.seed_all()
    second = SeedService.seed_all()

    assert first == {'teachers': 1, 'students': 10, 'lectures': 4}
    assert second == {'teachers': 0, 'students': 0, 'lectures': 0}
    assert User.query.filter_by(role=UserRole.STUDENT, class_name='CS-A').count() == 4
    assert [lecture.time_slot for lecture in Lecture.query.order_by(Lecture.start_time)] == [
        '09:00 - 10:30', '11:00 - 12:30', '14:00 - 15:30', '16:00 - 17:30'
    ]


def test_seed_db_command(app):
    result = app.test_cli_runner().invoke(args=['seed-db'])

    assert result.exit_code == 0
    assert 'Seeded 1 teacher(s), 10 student(s), 4 lecture(s).' in result.output


def test_issue_token_command(app, teacher):
    result = app.test_cli_runner().invoke(args=['issue-token', str(teacher.id)])

    assert result.exit_code == 0
    assert decode_token(result.output.strip())['sub'] == str(teacher.id)


def test_issue_token_unknown_user(app):
    result = app.test_cli_runner().invoke(args=['issue-token', '999'])
    assert result.exit_code != 0
    assert 'User 999 not found' in result.output


def test_init_db_command(app, teacher):
    result = app.test_cli_runner().invoke(args=['init-db', '--drop'])

    assert result.exit_code == 0
    assert 'Dropped all tables.' in result.output
    assert 'Created all tables.' in result.output
    assert set(inspect(db.engine).get_table_names()) >= {'users', 'lectures', 'attendance_records'}
    assert User.query.count() == 0
