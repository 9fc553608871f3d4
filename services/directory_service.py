"""
Faculty directory and student records.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from auth.dependencies import Principal, is_owner_or_admin
from core.exceptions import ForbiddenError, NotFoundError, ValidationError
from core.logger import logger
from database.models import (
    AttendanceStatus, Course, Department, Designation, Faculty, Student
)
from services.course_service import CourseService

FACULTY_UPDATABLE_FIELDS = (
    "department", "designation", "qualifications", "specialization",
    "experience", "research_interests", "publications", "office_hours",
    "office_location", "phone_extension", "social_links",
)


class FacultyService:
    """Service for faculty directory operations."""

    @staticmethod
    def load(db: Session, faculty_id: int) -> Faculty:
        faculty = (
            db.query(Faculty)
            .options(joinedload(Faculty.user))
            .filter(Faculty.id == faculty_id)
            .first()
        )
        if faculty is None:
            raise NotFoundError("Faculty member not found")
        return faculty

    @staticmethod
    def list_active(db: Session, department: Optional[str] = None) -> List[Faculty]:
        query = (
            db.query(Faculty)
            .options(joinedload(Faculty.user))
            .filter(Faculty.is_active.is_(True))
        )
        if department:
            try:
                query = query.filter(Faculty.department == Department(department))
            except ValueError:
                return []
        return query.order_by(Faculty.designation, Faculty.id).all()

    @staticmethod
    def get_with_courses(db: Session, faculty_id: int) -> Tuple[Faculty, List[Course]]:
        """Faculty record plus the courses taught by its user, recomputed on every read."""
        faculty = FacultyService.load(db, faculty_id)
        return faculty, CourseService.courses_by_faculty(db, faculty.user_id)

    @staticmethod
    def update(db: Session, faculty_id: int, principal: Principal, changes: Dict[str, Any]) -> Faculty:
        faculty = FacultyService.load(db, faculty_id)
        if not is_owner_or_admin(faculty.user_id, principal):
            raise ForbiddenError("Not authorized to update this faculty profile")

        changes = {k: v for k, v in changes.items() if k in FACULTY_UPDATABLE_FIELDS and v is not None}
        try:
            if "department" in changes:
                changes["department"] = Department(changes["department"])
            if "designation" in changes:
                changes["designation"] = Designation(changes["designation"])
        except ValueError as e:
            raise ValidationError("Validation error", errors=[str(e)])

        for name, value in changes.items():
            setattr(faculty, name, value)
        db.commit()
        logger.info(f"Faculty {faculty_id} updated by user {principal.id}: {sorted(changes)}")
        return FacultyService.load(db, faculty_id)


class StudentService:
    """Service for student record operations."""

    @staticmethod
    def load(db: Session, student_id: int) -> Student:
        student = (
            db.query(Student)
            .options(joinedload(Student.user))
            .filter(Student.id == student_id)
            .first()
        )
        if student is None:
            raise NotFoundError("Student not found")
        return student

    @staticmethod
    def for_user(db: Session, user_id: int) -> Student:
        student = (
            db.query(Student)
            .options(joinedload(Student.user))
            .filter(Student.user_id == user_id)
            .first()
        )
        if student is None:
            raise NotFoundError("Student profile not found")
        return student

    @staticmethod
    def list_students(
        db: Session,
        page: int,
        limit: int,
        department: Optional[str] = None,
        semester: Optional[str] = None,
    ) -> Tuple[List[Student], int]:
        query = db.query(Student)
        if department:
            query = query.filter(Student.department == department)
        if semester:
            query = query.filter(Student.semester == str(semester))
        total = query.with_entities(func.count(Student.id)).scalar() or 0
        students = (
            query.options(joinedload(Student.user))
            .order_by(Student.roll_number.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return students, total

    @staticmethod
    def add_academic_record(db: Session, student_id: int, record: Dict[str, Any]) -> Student:
        student = StudentService.load(db, student_id)
        # JSON columns only detect reassignment, not in-place mutation
        student.academic_record = [*(student.academic_record or []), record]
        db.commit()
        logger.info(f"Academic record added for student {student_id} (semester {record.get('semester')})")
        return StudentService.load(db, student_id)

    @staticmethod
    def mark_attendance(
        db: Session,
        student_id: int,
        course_id: int,
        date: datetime,
        status: str,
    ) -> Student:
        try:
            status = AttendanceStatus(status)
        except ValueError:
            raise ValidationError("Validation error", errors=[f"Invalid attendance status: {status}"])
        student = StudentService.load(db, student_id)
        CourseService.load(db, course_id)

        entry = {"course": course_id, "date": date.isoformat(), "status": status.value}
        student.attendance = [*(student.attendance or []), entry]
        db.commit()
        logger.info(f"Attendance marked for student {student_id} in course {course_id}: {status.value}")
        return StudentService.load(db, student_id)

    @staticmethod
    def enrolled_courses(db: Session, student_id: int) -> List[Course]:
        """All courses the student's user is enrolled in, active or not."""
        student = StudentService.load(db, student_id)
        return CourseService.enrolled_courses(db, student.user_id, active_only=False)
