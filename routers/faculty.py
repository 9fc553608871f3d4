"""
Faculty directory APIs.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from database.models import Department, Designation
from auth.dependencies import Principal, get_db_session, require_faculty
from core.responses import success
from services.audit_service import AuditService
from services.directory_service import FacultyService
from services.serializers import course_to_dict, faculty_to_dict


router = APIRouter(prefix="/api/faculty", tags=["faculty"])

# Request body name -> Faculty column
FIELD_NAMES = {
    "researchInterests": "research_interests",
    "officeHours": "office_hours",
    "officeLocation": "office_location",
    "phoneExtension": "phone_extension",
    "socialLinks": "social_links",
}


# Request Models
class FacultyUpdate(BaseModel):
    """Update faculty profile request. Account fields are changed through /api/auth/profile."""
    department: Optional[Department] = None
    designation: Optional[Designation] = None
    qualifications: Optional[List[Dict[str, Any]]] = None
    specialization: Optional[List[str]] = None
    experience: Optional[Dict[str, Any]] = None
    researchInterests: Optional[List[str]] = None
    publications: Optional[List[Dict[str, Any]]] = None
    officeHours: Optional[List[Dict[str, Any]]] = None
    officeLocation: Optional[str] = None
    phoneExtension: Optional[str] = None
    socialLinks: Optional[Dict[str, Any]] = None


@router.get("")
async def list_faculty(db: Session = Depends(get_db_session)):
    """Active faculty members. Public."""
    members = FacultyService.list_active(db)
    return success([faculty_to_dict(f, expand=("user",)) for f in members], count=len(members))


@router.get("/department/{department}")
async def list_faculty_by_department(
    department: str,
    db: Session = Depends(get_db_session)
):
    members = FacultyService.list_active(db, department=department)
    return success([faculty_to_dict(f, expand=("user",)) for f in members], count=len(members))


@router.get("/{faculty_id}")
async def get_faculty(
    faculty_id: int,
    db: Session = Depends(get_db_session)
):
    """Faculty member with the active courses they teach."""
    faculty, courses = FacultyService.get_with_courses(db, faculty_id)
    data = faculty_to_dict(faculty, expand=("user",))
    data["courses"] = [course_to_dict(c) for c in courses]
    return success(data)


@router.put("/{faculty_id}")
async def update_faculty(
    faculty_id: int,
    request_data: FacultyUpdate,
    request: Request,
    principal: Principal = Depends(require_faculty),
    db: Session = Depends(get_db_session)
):
    """Update a faculty profile. The faculty member themself or an admin."""
    changes = {
        FIELD_NAMES.get(key, key): value
        for key, value in request_data.model_dump(exclude_unset=True).items()
    }
    faculty = FacultyService.update(db, faculty_id, principal, changes)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="faculty_update",
        user_id=principal.id,
        resource_type="faculty",
        resource_id=faculty_id,
        details={"fields": sorted(changes)}
    )
    return success(faculty_to_dict(faculty, expand=("user",)), message="Faculty profile updated successfully")
