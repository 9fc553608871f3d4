"""
Student record APIs.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from database.models import AttendanceStatus
from auth.dependencies import Principal, get_db_session, get_current_principal, require_faculty
from core.responses import success, pagination
from core.validators import normalize_pagination
from services.audit_service import AuditService
from services.directory_service import StudentService
from services.serializers import course_to_dict, student_to_dict


router = APIRouter(prefix="/api/students", tags=["students"])


# Request Models
class AcademicRecordCreate(BaseModel):
    """One semester of results."""
    semester: str = Field(..., min_length=1)
    courses: List[Dict[str, Any]] = Field(default_factory=list)  # [{course, grade, credits, points}]
    sgpa: Optional[float] = Field(None, ge=0, le=10)
    cgpa: Optional[float] = Field(None, ge=0, le=10)


class AttendanceCreate(BaseModel):
    """Attendance mark for one student in one class."""
    studentId: int
    courseId: int
    date: datetime
    status: AttendanceStatus


@router.get("/profile")
async def my_student_profile(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    student = StudentService.for_user(db, principal.id)
    return success(student_to_dict(student, expand=("user",)))


@router.get("")
async def list_students(
    department: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Student records ordered by roll number. Faculty or admin."""
    page, limit = normalize_pagination(page, limit)
    students, total = StudentService.list_students(db, page, limit, department=department, semester=semester)
    return success({
        "students": [student_to_dict(s, expand=("user",)) for s in students],
        "pagination": pagination(page, limit, total),
    })


@router.post("/attendance")
async def mark_attendance(
    request_data: AttendanceCreate,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    student = StudentService.mark_attendance(
        db,
        request_data.studentId,
        request_data.courseId,
        request_data.date,
        request_data.status.value,
    )
    AuditService.log_from_request(
        db=db,
        request=request,
        action="attendance_mark",
        user_id=principal.id,
        resource_type="student",
        resource_id=student.id,
        details={"course": request_data.courseId, "status": request_data.status.value}
    )
    return success(student_to_dict(student), message="Attendance marked successfully")


@router.get("/{student_id}")
async def get_student(
    student_id: int,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    student = StudentService.load(db, student_id)
    return success(student_to_dict(student, expand=("user",)))


@router.post("/{student_id}/academic")
async def add_academic_record(
    student_id: int,
    request_data: AcademicRecordCreate,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Append a semester result to the student's academic record. Faculty or admin."""
    student = StudentService.add_academic_record(db, student_id, request_data.model_dump())
    AuditService.log_from_request(
        db=db,
        request=request,
        action="academic_record_add",
        user_id=principal.id,
        resource_type="student",
        resource_id=student_id,
        details={"semester": request_data.semester}
    )
    return success(student_to_dict(student), message="Academic record added successfully")


@router.get("/{student_id}/courses")
async def student_courses(
    student_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    """Every course the student is enrolled in, active or not."""
    courses = StudentService.enrolled_courses(db, student_id)
    return success([course_to_dict(c, expand=("faculty",)) for c in courses])
