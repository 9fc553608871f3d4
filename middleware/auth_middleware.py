"""
Authentication middleware: an early look at credentials on non-public routes.
Token validation and role checks are done by the FastAPI dependencies in auth/.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import List, Optional, Tuple

from core.logger import logger

# Exact paths that never need credentials
PUBLIC_PATHS: List[str] = [
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/auth/register",
    "/api/auth/login",
    "/api/contact",
]

# (method, path prefix) pairs that are public for reads
PUBLIC_PREFIXES: List[Tuple[str, str]] = [
    ("GET", "/api/courses"),
    ("GET", "/api/events"),
    ("GET", "/api/faculty"),
]

# Reads under a public prefix that still require a user
PRIVATE_READS: List[str] = [
    "/api/courses/student/enrolled",
    "/api/courses/statistics",
    "/api/events/user/registered",
]


def is_public_route(method: str, path: str) -> bool:
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/")
    if path in PUBLIC_PATHS:
        return True
    if any(path.startswith(private) for private in PRIVATE_READS):
        return False
    return any(
        method == public_method and (path == prefix or path.startswith(prefix + "/"))
        for public_method, prefix in PUBLIC_PREFIXES
    )


class AuthRequiredMiddleware(BaseHTTPMiddleware):
    """
    Logs requests that reach a protected route without an Authorization header.

    Requests are never blocked here so that the route dependencies can answer
    with the proper error body.
    """

    def __init__(self, app, public_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.public_paths = public_paths or PUBLIC_PATHS

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        # CORS preflight
        if request.method == "OPTIONS" or path in self.public_paths:
            return await call_next(request)

        if not is_public_route(request.method, path) and not request.headers.get("authorization"):
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Request without authentication headers: {request.method} {path} from {client}")

        return await call_next(request)
