# File: backend/qr_attendance/services/seed_service.py
"""Database seeding service for demo data."""
import logging
from typing import Dict

from qr_attendance import db
from qr_attendance.models.lecture import Lecture
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.schedule_service import WeekDay, parse_time_range

logger = logging.getLogger(__name__)


class SeedService:
    """Service to seed database with a demo teacher, students and timetable."""

    TEACHER = ('Demo Teacher', 'teacher@university.edu')

    STUDENTS = [
        ('Alice Johnson', 'CS001', 'CS-A'),
        ('Bob Smith', 'CS002', 'CS-A'),
        ('Charlie Brown', 'CS003', 'CS-A'),
        ('Diana Prince', 'CS004', 'CS-B'),
        ('Eve Wilson', 'CS005', 'CS-B'),
        ('Frank Miller', 'CS006', 'CS-B'),
        ('Grace Lee', 'CS007', 'CS-C'),
        ('Henry Davis', 'CS008', 'CS-C'),
        ('Ivy Chen', 'CS009', 'CS-C'),
        ('Jack Thompson', 'CS010', 'CS-A'),
    ]

    TIMETABLE = [
        ('Computer Science 101', 'CS-A', '09:00 - 10:30', WeekDay.MONDAY),
        ('Data Structures', 'CS-B', '11:00 - 12:30', WeekDay.MONDAY),
        ('Algorithms', 'CS-A', '14:00 - 15:30', WeekDay.MONDAY),
        ('Database Systems', 'CS-C', '16:00 - 17:30', WeekDay.MONDAY),
    ]

    @staticmethod
    def seed_all() -> Dict[str, int]:
        """Seed all demo data. Safe to run more than once."""
        db.create_all()
        teacher, teachers_created = SeedService.seed_teacher()
        students_created = SeedService.seed_students()
        lectures_created = SeedService.seed_lectures(teacher)
        db.session.commit()

        summary = {
            'teachers': teachers_created,
            'students': students_created,
            'lectures': lectures_created
        }
        logger.info("Seeded demo data: %s", summary)
        return summary

    @staticmethod
    def seed_teacher():
        name, email = SeedService.TEACHER
        teacher = User.query.filter_by(email=email).first()
        if teacher:
            return teacher, 0

        teacher = User(email=email, name=name, role=UserRole.TEACHER)
        db.session.add(teacher)
        db.session.flush()  # Get teacher.id
        return teacher, 1

    @staticmethod
    def seed_students() -> int:
        created = 0
        for name, roll_no, class_name in SeedService.STUDENTS:
            if User.query.filter_by(roll_no=roll_no).first():
                continue
            db.session.add(User(
                email=f"{roll_no.lower()}@university.edu",
                name=name,
                role=UserRole.STUDENT,
                roll_no=roll_no,
                class_name=class_name
            ))
            created += 1
        return created

    @staticmethod
    def seed_lectures(teacher: User) -> int:
        created = 0
        for subject, class_name, slot, day in SeedService.TIMETABLE:
            exists = Lecture.query.filter_by(
                teacher_id=teacher.id, subject=subject, class_name=class_name, day_of_week=day
            ).first()
            if exists:
                continue

            start_time, end_time = parse_time_range(slot)
            db.session.add(Lecture(
                teacher_id=teacher.id,
                subject=subject,
                class_name=class_name,
                day_of_week=day,
                start_time=start_time,
                end_time=end_time
            ))
            created += 1
        return created
