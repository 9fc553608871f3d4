"""
Account service: registration, login with lockout, profile reads and updates.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database.models import User, UserRole, Student, Faculty, Department, Designation
from auth.security import (
    verify_password, get_password_hash, validate_password, create_access_token
)
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.logger import logger
import config


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        name: str,
        role: UserRole = UserRole.STUDENT,
        profile: Optional[Dict[str, Any]] = None,
        student_id: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> User:
        """
        Create a new user, plus the matching student/faculty record when an
        institutional id is supplied.

        Args:
            db: Database session
            email: Login email (unique, case-insensitive)
            password: Plain text password
            name: Display name
            role: User role
            profile: Free-form profile map (department, semester, phone, ...)
            student_id: Student number; creates a Student record for students
            employee_id: Employee number; creates a Faculty record for faculty

        Returns:
            Created User
        """
        is_valid, error_message = validate_password(password)
        if not is_valid:
            raise ValidationError("Validation error", errors=[error_message])

        email = email.strip().lower()
        existing = db.query(User).filter(func.lower(User.email) == email).first()
        if existing:
            raise ConflictError("User already exists with this email")

        profile = dict(profile or {})
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            name=name,
            role=role,
            profile=profile,
            is_active=True,
        )
        db.add(user)
        db.flush()  # Get user.id

        if role == UserRole.STUDENT and student_id:
            db.add(Student(
                user_id=user.id,
                student_id=student_id,
                roll_number=student_id,
                department=profile.get("department") or "General",
                semester=str(profile.get("semester") or "1"),
                batch=str(datetime.utcnow().year),
                admission_date=datetime.utcnow(),
            ))
        elif role == UserRole.FACULTY and employee_id:
            try:
                department = Department(profile.get("department"))
            except ValueError:
                raise ValidationError("Validation error", errors=["Faculty department is not a valid department"])
            db.add(Faculty(
                user_id=user.id,
                employee_id=employee_id,
                department=department,
                designation=Designation.ASSISTANT_PROFESSOR,
            ))

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("User, student id or employee id already exists")
        db.refresh(user)
        logger.info(f"Created user: {email} (role: {role.value})")
        return user

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user with account lockout protection.

        Returns:
            User if authenticated, None otherwise
        """
        user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
        if not user:
            return None

        if user.locked_until:
            if user.locked_until > datetime.utcnow():
                logger.warning(f"Login attempt for locked account: {email}")
                return None
            # Lockout expired
            user.locked_until = None
            user.failed_login_attempts = 0

        if not verify_password(password, user.hashed_password):
            user.failed_login_attempts += 1
            if user.failed_login_attempts >= config.MAX_LOGIN_ATTEMPTS:
                user.locked_until = datetime.utcnow() + timedelta(minutes=config.LOCKOUT_DURATION_MINUTES)
                logger.warning(f"Account locked due to too many failed attempts: {email}")
            db.commit()
            return None

        if not user.is_active:
            return None

        user.failed_login_attempts = 0
        user.last_login = datetime.utcnow()
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def create_token(user: User) -> str:
        data = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
        }
        return create_access_token(data, config.SECRET_KEY)

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def get_role_record(db: Session, user: User):
        """Student or Faculty record belonging to the user, if any."""
        if user.role == UserRole.STUDENT:
            return db.query(Student).filter(Student.user_id == user.id).first()
        if user.role == UserRole.FACULTY:
            return db.query(Faculty).filter(Faculty.user_id == user.id).first()
        return None

    @staticmethod
    def update_profile(db: Session, user_id: int, changes: Dict[str, Any]) -> User:
        """Update name/email/password and merge the profile map."""
        user = AuthService.get_user(db, user_id)

        if changes.get("name"):
            user.name = changes["name"]
        if changes.get("email"):
            email = changes["email"].strip().lower()
            if email != user.email:
                taken = db.query(User.id).filter(func.lower(User.email) == email, User.id != user.id).first()
                if taken:
                    raise ConflictError("User already exists with this email")
                user.email = email
        if changes.get("profile"):
            user.profile = {**(user.profile or {}), **changes["profile"]}
        if changes.get("password"):
            is_valid, error_message = validate_password(changes["password"])
            if not is_valid:
                raise ValidationError("Validation error", errors=[error_message])
            user.hashed_password = get_password_hash(changes["password"])

        db.commit()
        db.refresh(user)
        logger.info(f"Profile updated for user {user.id}")
        return user

    @staticmethod
    def list_users(db: Session):
        return db.query(User).order_by(User.id).all()
