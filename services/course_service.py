"""
Course catalog, lifecycle guards and the enrollment workflow.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from auth.dependencies import Principal, is_owner_or_admin
from core.exceptions import (
    ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
)
from core.logger import logger
from core.roster import BoundedRoster, RosterLabels
from core.validators import normalize_course_code, parse_leading_int, round_half_up
from database.models import (
    Course, CourseEnrollment, CourseResource, Department, User, UserRole
)
import config

ENROLLMENT = BoundedRoster(
    owner_model=Course,
    member_model=CourseEnrollment,
    owner_key="course_id",
    count_attr="enrolled_count",
    capacity_attr="capacity",
    labels=RosterLabels(
        already_member="Already enrolled in this course",
        full="Course is full. Cannot enroll at this time.",
        not_member="You are not enrolled in this course",
    ),
)

# Descriptive fields a course owner may edit; membership, owner and status have dedicated operations
UPDATABLE_FIELDS = (
    "title", "description", "credits", "department", "semester",
    "capacity", "code", "syllabus", "schedule",
)

SORTABLE_FIELDS = {
    "createdAt": Course.created_at,
    "title": Course.title,
    "code": Course.code,
    "credits": Course.credits,
    "semester": Course.semester,
}


def _loader_options(populate: Iterable[str]) -> list:
    populate = set(populate)
    options = []
    if "enrolledStudents" in populate:
        options.append(selectinload(Course.enrollments).joinedload(CourseEnrollment.user))
    else:
        options.append(selectinload(Course.enrollments))
    if "resources.uploadedBy" in populate:
        options.append(selectinload(Course.resources).joinedload(CourseResource.uploader))
    else:
        options.append(selectinload(Course.resources))
    if "faculty" in populate:
        options.append(joinedload(Course.faculty))
    return options


def _ensure_active(course: Course) -> None:
    if not course.is_active:
        raise InvalidStateError("Course is not active for enrollment")


def _students_only(principal: Principal):
    def check(course: Course) -> None:
        if principal.role != UserRole.STUDENT:
            raise ForbiddenError("Only students can enroll in courses")
    return check


def _semester_standing(principal: Principal):
    def check(course: Course) -> None:
        current = parse_leading_int(principal.semester)
        required = parse_leading_int(course.semester)
        # Unparseable semesters never satisfy the comparison
        if current is None or required is None or current < required:
            raise InvalidStateError(
                f"You must be in semester {course.semester} or higher to enroll in this course"
            )
    return check


class CourseService:
    """Service for course operations."""

    @staticmethod
    def load(db: Session, course_id: int, populate: Iterable[str] = ()) -> Course:
        """Fetch a course with the named relations expanded, or raise NotFoundError."""
        course = (
            db.query(Course)
            .options(*_loader_options(populate))
            .filter(Course.id == course_id)
            .first()
        )
        if course is None:
            raise NotFoundError("Course not found")
        return course

    @staticmethod
    def _owned(db: Session, course_id: int, principal: Principal, action: str) -> Course:
        course = CourseService.load(db, course_id)
        if not is_owner_or_admin(course.faculty_id, principal):
            logger.warning(f"User {principal.id} denied {action} on course {course_id}")
            raise ForbiddenError(f"Not authorized to {action}")
        return course

    @staticmethod
    def _ensure_code_available(db: Session, code: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(Course.id).filter(Course.code == code)
        if exclude_id is not None:
            query = query.filter(Course.id != exclude_id)
        if query.first() is not None:
            raise ConflictError("Course with this code already exists")

    @staticmethod
    def _commit_code_change(db: Session) -> None:
        """Commit, reporting a concurrent duplicate code as a conflict."""
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Course with this code already exists")

    # ------------------------------------------------------------------
    # Enrollment
    # ------------------------------------------------------------------

    @staticmethod
    def enroll(db: Session, course_id: int, principal: Principal) -> Course:
        """
        Enroll the acting student.

        Checks, first failure wins: course exists, course active, principal is
        a student, not already enrolled, seat available, semester standing.
        """
        course = CourseService.load(db, course_id)
        ENROLLMENT.join(
            db, course, principal.id,
            gates=(_ensure_active, _students_only(principal)),
            eligibility=(_semester_standing(principal),),
        )
        logger.info(f"Student {principal.id} enrolled in course {course.code}")
        return CourseService.load(db, course_id, populate=("faculty",))

    @staticmethod
    def unenroll(db: Session, course_id: int, principal: Principal) -> Course:
        """Remove the acting user from the course; any current member may leave."""
        course = CourseService.load(db, course_id)
        ENROLLMENT.leave(db, course, principal.id)
        logger.info(f"User {principal.id} unenrolled from course {course.code}")
        return CourseService.load(db, course_id, populate=("faculty",))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def create_course(db: Session, principal: Principal, data: Dict[str, Any]) -> Course:
        """Create a course owned by the acting faculty member."""
        if principal.role != UserRole.FACULTY:
            raise ForbiddenError("Only faculty members can create courses")

        code = normalize_course_code(data["code"])
        CourseService._ensure_code_available(db, code)

        course = Course(
            title=data["title"],
            code=code,
            description=data["description"],
            credits=int(data["credits"]),
            department=Department(data["department"]),
            semester=str(data["semester"]),
            faculty_id=principal.id,
            capacity=data.get("capacity") or config.DEFAULT_COURSE_CAPACITY,
            syllabus=data.get("syllabus") or [],
            schedule=data.get("schedule") or {},
        )
        db.add(course)
        CourseService._commit_code_change(db)
        logger.info(f"Course created: {code} by faculty {principal.id}")
        return CourseService.load(db, course.id, populate=("faculty",))

    @staticmethod
    def update_course(db: Session, course_id: int, principal: Principal, changes: Dict[str, Any]) -> Course:
        """Apply allow-listed field changes. Owner or admin only."""
        course = CourseService._owned(db, course_id, principal, "update this course")
        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}

        if "code" in changes:
            code = normalize_course_code(changes["code"])
            if code != course.code:
                CourseService._ensure_code_available(db, code, exclude_id=course.id)
            course.code = code
        if "credits" in changes:
            course.credits = int(changes["credits"])
        if "department" in changes:
            course.department = Department(changes["department"])
        if "semester" in changes:
            course.semester = str(changes["semester"])
        for name in ("title", "description", "syllabus", "schedule"):
            if name in changes:
                setattr(course, name, changes[name])

        if "capacity" in changes:
            if not ENROLLMENT.resize(db, course.id, int(changes["capacity"])):
                db.rollback()
                raise ConflictError("Capacity cannot be lower than the number of enrolled students")

        CourseService._commit_code_change(db)
        logger.info(f"Course {course_id} updated by user {principal.id}: {sorted(changes)}")
        return CourseService.load(db, course_id, populate=("faculty", "enrolledStudents"))

    @staticmethod
    def delete_course(db: Session, course_id: int, principal: Principal) -> None:
        """Delete a course that has no enrolled students. Owner or admin only."""
        course = CourseService._owned(db, course_id, principal, "delete this course")
        blocked = ConflictError(
            "Cannot delete course with enrolled students. Please unenroll students first."
        )
        if course.enrolled_count > 0:
            raise blocked

        db.execute(delete(CourseResource).where(CourseResource.course_id == course.id))
        result = db.execute(
            delete(Course)
            .where(Course.id == course.id, Course.enrolled_count == 0)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            raise blocked
        db.commit()
        logger.info(f"Course {course_id} deleted by user {principal.id}")

    @staticmethod
    def toggle_status(db: Session, course_id: int, principal: Principal) -> Course:
        """Flip is_active. Existing enrollments are left alone."""
        course = CourseService._owned(db, course_id, principal, "update this course status")
        course.is_active = not course.is_active
        db.commit()
        logger.info(f"Course {course_id} {'activated' if course.is_active else 'deactivated'} by user {principal.id}")
        return CourseService.load(db, course_id, populate=("faculty",))

    @staticmethod
    def add_resource(db: Session, course_id: int, principal: Principal, data: Dict[str, Any]) -> CourseResource:
        course = CourseService._owned(db, course_id, principal, "add resources to this course")
        resource = CourseResource(
            course_id=course.id,
            title=data.get("title"),
            description=data.get("description"),
            file_url=data.get("fileUrl"),
            file_type=data.get("fileType"),
            uploaded_by=principal.id,
        )
        db.add(resource)
        db.commit()
        logger.info(f"Resource {resource.id} added to course {course_id}")
        return (
            db.query(CourseResource)
            .options(joinedload(CourseResource.uploader))
            .filter(CourseResource.id == resource.id)
            .one()
        )

    @staticmethod
    def remove_resource(db: Session, course_id: int, resource_id: int, principal: Principal) -> None:
        course = CourseService._owned(db, course_id, principal, "remove resources from this course")
        resource = (
            db.query(CourseResource)
            .filter(CourseResource.id == resource_id, CourseResource.course_id == course.id)
            .first()
        )
        if resource is None:
            raise NotFoundError("Resource not found")
        db.delete(resource)
        db.commit()
        logger.info(f"Resource {resource_id} removed from course {course_id}")

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    @staticmethod
    def _filters(
        department: Optional[str] = None,
        semester: Optional[str] = None,
        faculty_id: Optional[int] = None,
        search: Optional[str] = None,
        status: Optional[str] = "active",
    ) -> list:
        filters = []
        if department and department != "All":
            try:
                filters.append(Course.department == Department(department))
            except ValueError:
                raise ValidationError("Validation error", errors=[f"Invalid department: {department}"])
        if semester:
            filters.append(Course.semester == semester)
        if faculty_id:
            filters.append(Course.faculty_id == faculty_id)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                Course.title.ilike(pattern),
                Course.code.ilike(pattern),
                Course.description.ilike(pattern),
            ))
        if status == "active":
            filters.append(Course.is_active.is_(True))
        elif status == "inactive":
            filters.append(Course.is_active.is_(False))
        return filters

    @staticmethod
    def list_courses(
        db: Session,
        page: int,
        limit: int,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        **filter_args,
    ) -> Tuple[List[Course], int, List[dict]]:
        """
        Filtered, paginated course listing.

        Returns:
            Tuple of (courses, total, department_stats)
        """
        filters = CourseService._filters(**filter_args)
        column = SORTABLE_FIELDS.get(sort_by, Course.created_at)
        ordering = column.desc() if sort_order == "desc" else column.asc()

        total = db.query(func.count(Course.id)).filter(*filters).scalar() or 0
        courses = (
            db.query(Course)
            .options(*_loader_options(("faculty", "enrolledStudents")))
            .filter(*filters)
            .order_by(ordering, Course.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        rows = (
            db.query(Course.department, func.count(Course.id), func.coalesce(func.sum(Course.enrolled_count), 0))
            .filter(*filters)
            .group_by(Course.department)
            .all()
        )
        department_stats = [
            {"department": getattr(dept, "value", dept), "count": count, "totalStudents": int(students)}
            for dept, count, students in rows
        ]
        return courses, total, department_stats

    @staticmethod
    def get_course_details(db: Session, course_id: int) -> Tuple[Course, List[Course], dict]:
        """
        Course with faculty, students and resource uploaders expanded.

        Returns:
            Tuple of (course, related_courses, enrollment_stats)
        """
        course = CourseService.load(
            db, course_id, populate=("faculty", "enrolledStudents", "resources.uploadedBy")
        )
        related = (
            db.query(Course)
            .options(*_loader_options(("faculty",)))
            .filter(
                Course.department == course.department,
                Course.id != course.id,
                Course.is_active.is_(True),
            )
            .order_by(Course.id)
            .limit(config.RELATED_COURSES_LIMIT)
            .all()
        )
        enrolled = course.enrolled_count
        stats = {
            "enrolled": enrolled,
            "capacity": course.capacity,
            "available": course.capacity - enrolled,
            "percentage": round_half_up(enrolled / course.capacity * 100) if course.capacity else 0,
        }
        return course, related, stats

    @staticmethod
    def courses_by_faculty(db: Session, faculty_user_id: int) -> List[Course]:
        return (
            db.query(Course)
            .options(*_loader_options(("faculty", "enrolledStudents")))
            .filter(Course.faculty_id == faculty_user_id, Course.is_active.is_(True))
            .order_by(Course.semester.asc(), Course.created_at.desc())
            .all()
        )

    @staticmethod
    def enrolled_courses(db: Session, user_id: int, active_only: bool = True) -> List[Course]:
        query = (
            db.query(Course)
            .join(CourseEnrollment, CourseEnrollment.course_id == Course.id)
            .options(*_loader_options(("faculty",)))
            .filter(CourseEnrollment.user_id == user_id)
        )
        if active_only:
            query = query.filter(Course.is_active.is_(True))
        return query.order_by(Course.semester.asc(), Course.id).all()

    @staticmethod
    def statistics(db: Session) -> dict:
        """Catalog-wide enrollment statistics."""
        total, active, enrollments, average = db.query(
            func.count(Course.id),
            func.coalesce(func.sum(case((Course.is_active.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(Course.enrolled_count), 0),
            func.avg(Course.enrolled_count),
        ).one()

        overview = {}
        if total:
            overview = {
                "totalCourses": total,
                "activeCourses": int(active),
                "inactiveCourses": total - int(active),
                "totalEnrollments": int(enrollments),
                "averageEnrollment": round(float(average or 0), 2),
            }

        department_stats = []
        rows = (
            db.query(
                Course.department,
                func.count(Course.id),
                func.coalesce(func.sum(Course.enrolled_count), 0),
                func.avg(Course.capacity),
            )
            .group_by(Course.department)
            .all()
        )
        for dept, course_count, student_count, avg_capacity in rows:
            avg_capacity = float(avg_capacity or 0)
            seats = course_count * avg_capacity
            department_stats.append({
                "department": getattr(dept, "value", dept),
                "courseCount": course_count,
                "studentCount": int(student_count),
                "averageCapacity": round(avg_capacity, 2),
                "utilizationRate": round(int(student_count) / seats * 100, 2) if seats else 0,
            })
        department_stats.sort(key=lambda d: d["courseCount"], reverse=True)

        semester_stats = [
            {"semester": semester, "courseCount": course_count, "studentCount": int(student_count)}
            for semester, course_count, student_count in (
                db.query(
                    Course.semester,
                    func.count(Course.id),
                    func.coalesce(func.sum(Course.enrolled_count), 0),
                )
                .group_by(Course.semester)
                .order_by(Course.semester)
                .all()
            )
        ]

        return {
            "overview": overview,
            "departmentStats": department_stats,
            "semesterStats": semester_stats,
        }
