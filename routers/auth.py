"""
Account endpoints: registration, login, own profile and the admin user list.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, Literal, Optional

from database.models import UserRole
from auth.dependencies import Principal, get_db_session, get_current_principal, require_admin
from core.exceptions import UnauthorizedError
from core.responses import success
from services.auth_service import AuthService
from services.audit_service import AuditService
from services.course_service import CourseService
from services.serializers import (
    course_to_dict, faculty_to_dict, student_to_dict, user_to_dict
)


router = APIRouter(prefix="/api/auth", tags=["authentication"])


# Request Models
class RegisterRequest(BaseModel):
    """Registration request. Admin accounts are created with scripts/create_admin.py."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str
    role: Literal["student", "faculty"] = "student"
    profile: Optional[Dict[str, Any]] = None
    studentId: Optional[str] = None
    employeeId: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request."""
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    """Own profile update; `profile` is merged into the stored map."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    profile: Optional[Dict[str, Any]] = None
    password: Optional[str] = None


def _session_payload(user) -> dict:
    return {"user": user_to_dict(user), "token": AuthService.create_token(user)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request_data: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """Create an account and return it with an access token."""
    user = AuthService.create_user(
        db,
        email=request_data.email,
        password=request_data.password,
        name=request_data.name,
        role=UserRole(request_data.role),
        profile=request_data.profile,
        student_id=request_data.studentId,
        employee_id=request_data.employeeId,
    )
    AuditService.log_from_request(
        db=db,
        request=request,
        action="user_register",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id
    )
    return success(_session_payload(user), message="User registered successfully")


@router.post("/login")
async def login(
    request_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db_session)
):
    """Exchange email and password for an access token."""
    user = AuthService.authenticate_user(db, request_data.email, request_data.password)
    if not user:
        AuditService.log_from_request(
            db=db,
            request=request,
            action="login_failed",
            resource_type="user",
            details={"email": request_data.email}
        )
        raise UnauthorizedError("Invalid email or password")

    AuditService.log_from_request(
        db=db,
        request=request,
        action="login",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id
    )
    return success(_session_payload(user), message="Login successful")


@router.get("/profile")
async def get_profile(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    """Current user plus the student or faculty record attached to it."""
    user = AuthService.get_user(db, principal.id)
    record = AuthService.get_role_record(db, user)

    additional_info = None
    if user.role == UserRole.STUDENT and record is not None:
        additional_info = student_to_dict(record)
    elif user.role == UserRole.FACULTY and record is not None:
        additional_info = faculty_to_dict(record)
        additional_info["courses"] = [
            course_to_dict(c) for c in CourseService.courses_by_faculty(db, user.id)
        ]

    return success({"user": user_to_dict(user), "additionalInfo": additional_info})


@router.put("/profile")
async def update_profile(
    request_data: ProfileUpdate,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session)
):
    changes = request_data.model_dump(exclude_unset=True)
    user = AuthService.update_profile(db, principal.id, changes)
    AuditService.log_from_request(
        db=db,
        request=request,
        action="profile_update",
        user_id=user.id,
        resource_type="user",
        resource_id=user.id,
        details={"fields": sorted(k for k in changes if k != "password")}
    )
    return success(_session_payload(user), message="Profile updated successfully")


@router.get("/users")
async def list_users(
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """All accounts, without credentials. Admin only."""
    return success([user_to_dict(u) for u in AuthService.list_users(db)])
