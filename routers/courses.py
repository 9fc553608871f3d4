"""
Course catalog, lifecycle and enrollment endpoints.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional

from database.models import Department, SEMESTERS
from auth.dependencies import (
    Principal, get_db_session, get_current_principal, require_admin, require_faculty
)
from core.responses import success, pagination
from core.validators import normalize_pagination
from services.audit_service import AuditService
from services.course_service import CourseService
from services.serializers import course_to_dict, resource_to_dict


router = APIRouter(prefix="/api/courses", tags=["courses"])


def _semester(value: Any) -> str:
    value = str(value).strip()
    if value not in SEMESTERS:
        raise ValueError(f"Semester must be one of {', '.join(SEMESTERS)}")
    return value


# Request Models
class CourseCreate(BaseModel):
    """Create course request."""
    title: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=20)
    description: str = Field(..., min_length=1)
    credits: int = Field(..., ge=1, le=6)
    department: Department
    semester: str
    capacity: Optional[int] = Field(None, ge=1)
    syllabus: Optional[List[Dict[str, Any]]] = None
    schedule: Optional[Dict[str, Any]] = None

    @field_validator("semester", mode="before")
    @classmethod
    def check_semester(cls, value):
        return _semester(value)


class CourseUpdate(BaseModel):
    """
    Update course request. Only descriptive fields are accepted; any other
    key in the body (enrolledStudents, faculty, isActive, ...) is ignored.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    description: Optional[str] = Field(None, min_length=1)
    credits: Optional[int] = Field(None, ge=1, le=6)
    department: Optional[Department] = None
    semester: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    syllabus: Optional[List[Dict[str, Any]]] = None
    schedule: Optional[Dict[str, Any]] = None

    @field_validator("semester", mode="before")
    @classmethod
    def check_semester(cls, value):
        return None if value is None else _semester(value)


class ResourceCreate(BaseModel):
    """Course resource request. The file itself lives in external storage."""
    title: Optional[str] = None
    description: Optional[str] = None
    fileUrl: Optional[str] = None
    fileType: Optional[str] = None


@router.get("")
async def list_courses(
    department: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    faculty: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    status_filter: str = Query("active", alias="status", pattern="^(active|inactive|all)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sortBy: str = Query("createdAt"),
    sortOrder: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db_session)
):
    """List courses with filters, pagination and per-department statistics. Public."""
    page, limit = normalize_pagination(page, limit)
    courses, total, department_stats = CourseService.list_courses(
        db, page, limit,
        sort_by=sortBy,
        sort_order=sortOrder,
        department=department,
        semester=semester,
        faculty_id=faculty,
        search=search,
        status=status_filter,
    )
    return success({
        "courses": [course_to_dict(c, expand=("faculty", "enrolledStudents")) for c in courses],
        "pagination": pagination(page, limit, total),
        "statistics": {
            "totalCourses": total,
            "departmentStats": department_stats,
        },
    })


@router.get("/statistics/overview")
async def course_statistics(
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Catalog-wide enrollment statistics. Admin only."""
    return success(CourseService.statistics(db))


@router.get("/student/enrolled")
async def my_enrolled_courses(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    """Active courses the current user is enrolled in."""
    courses = CourseService.enrolled_courses(db, principal.id)
    return success([course_to_dict(c, expand=("faculty",)) for c in courses])


@router.get("/faculty/{faculty_id}")
async def courses_by_faculty(
    faculty_id: int,
    db: Session = Depends(get_db_session)
):
    """Active courses taught by a faculty user. Public."""
    courses = CourseService.courses_by_faculty(db, faculty_id)
    return success([course_to_dict(c, expand=("faculty", "enrolledStudents")) for c in courses])


@router.get("/{course_id}")
async def get_course(
    course_id: int,
    db: Session = Depends(get_db_session)
):
    """Course details with related courses and enrollment stats. Public."""
    course, related, stats = CourseService.get_course_details(db, course_id)
    return success({
        "course": course_to_dict(course, expand=("faculty", "enrolledStudents", "resources.uploadedBy")),
        "relatedCourses": [course_to_dict(c, expand=("faculty",)) for c in related],
        "enrollmentStats": stats,
    })


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(
    request_data: CourseCreate,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Create a course owned by the current faculty member."""
    course = CourseService.create_course(db, principal, request_data.model_dump())
    data = course_to_dict(course, expand=("faculty",))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="course_create",
        user_id=principal.id,
        resource_type="course",
        resource_id=data["id"],
        details={"code": data["code"]}
    )
    return success(data, message="Course created successfully")


@router.put("/{course_id}")
async def update_course(
    course_id: int,
    request_data: CourseUpdate,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Update descriptive course fields. Owner or admin."""
    changes = request_data.model_dump(exclude_unset=True)
    course = CourseService.update_course(db, course_id, principal, changes)
    data = course_to_dict(course, expand=("faculty", "enrolledStudents"))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="course_update",
        user_id=principal.id,
        resource_type="course",
        resource_id=course_id,
        details={"fields": sorted(changes)}
    )
    return success(data, message="Course updated successfully")


@router.delete("/{course_id}")
async def delete_course(
    course_id: int,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Delete a course without enrolled students. Owner or admin."""
    CourseService.delete_course(db, course_id, principal)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="course_delete",
        user_id=principal.id,
        resource_type="course",
        resource_id=course_id
    )
    return success(message="Course deleted successfully")


@router.post("/{course_id}/enroll")
async def enroll(
    course_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    """Enroll the current student in a course."""
    course = CourseService.enroll(db, course_id, principal)
    data = course_to_dict(course, expand=("faculty",))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="course_enroll",
        user_id=principal.id,
        resource_type="course",
        resource_id=course_id
    )
    return success(data, message="Successfully enrolled in course")


@router.post("/{course_id}/unenroll")
async def unenroll(
    course_id: int,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    """Remove the current user from a course."""
    course = CourseService.unenroll(db, course_id, principal)
    data = course_to_dict(course, expand=("faculty",))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="course_unenroll",
        user_id=principal.id,
        resource_type="course",
        resource_id=course_id
    )
    return success(data, message="Successfully unenrolled from course")


@router.post("/{course_id}/resources")
async def add_resource(
    course_id: int,
    request_data: ResourceCreate,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Attach a resource record to a course. Owner or admin."""
    resource = CourseService.add_resource(db, course_id, principal, request_data.model_dump())
    return success(resource_to_dict(resource, expand=("uploadedBy",)), message="Resource added successfully")


@router.delete("/{course_id}/resources/{resource_id}")
async def remove_resource(
    course_id: int,
    resource_id: int,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Remove a resource from a course. Owner or admin."""
    CourseService.remove_resource(db, course_id, resource_id, principal)
    return success(message="Resource removed successfully")


@router.patch("/{course_id}/status")
async def toggle_course_status(
    course_id: int,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Activate or deactivate a course. Owner or admin."""
    course = CourseService.toggle_status(db, course_id, principal)
    data = course_to_dict(course, expand=("faculty",))
    AuditService.log_from_request(
        db=db,
        request=request,
        action="course_status",
        user_id=principal.id,
        resource_type="course",
        resource_id=course_id,
        details={"isActive": data["isActive"]}
    )
    state = "activated" if data["isActive"] else "deactivated"
    return success(data, message=f"Course {state} successfully")
