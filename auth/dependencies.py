"""
Authentication dependencies for FastAPI.

The gate resolves the bearer token into an immutable Principal that handlers
receive as an explicit argument and pass down to the service layer.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database.models import User, UserRole
from auth.security import security, decode_access_token
from core.exceptions import ForbiddenError, UnauthorizedError
import config


def get_db_session():
    """Get database session."""
    if not config.db:
        raise HTTPException(status_code=503, detail="Database not initialized")
    with config.db.get_session() as session:
        yield session


@dataclass(frozen=True)
class Principal:
    """Acting identity for one request."""
    id: int
    email: str
    name: str
    role: UserRole
    profile: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            profile=dict(user.profile or {}),
        )

    @property
    def semester(self) -> Optional[Any]:
        return self.profile.get("semester")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def is_owner_or_admin(owner_id: Optional[int], principal: Principal) -> bool:
    """Ownership rule shared by every mutating course/faculty endpoint."""
    return principal.is_admin or (owner_id is not None and owner_id == principal.id)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db_session)
) -> Principal:
    """
    Resolve the bearer token into the acting principal.

    Raises:
        UnauthorizedError: missing/invalid token or unknown user
        ForbiddenError: user account is inactive
    """
    if credentials is None:
        raise UnauthorizedError("Not authorized, no token")

    payload = decode_access_token(credentials.credentials, config.SECRET_KEY)
    if payload is None:
        raise UnauthorizedError("Not authorized, token failed")

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise UnauthorizedError("Not authorized, token failed")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise ForbiddenError("User account is inactive")

    return Principal.from_user(user)


def require_role(allowed_roles: list[str]):
    """
    Dependency factory for role-based access control.

    Args:
        allowed_roles: List of allowed roles

    Returns:
        Dependency function
    """
    async def role_checker(
        principal: Principal = Depends(get_current_principal)
    ) -> Principal:
        if principal.role.value not in allowed_roles:
            raise ForbiddenError(
                f"Access denied. Required roles: {', '.join(allowed_roles)}"
            )
        return principal

    return role_checker


require_admin = require_role(["admin"])
require_faculty = require_role(["faculty", "admin"])
