"""
Route classification, response headers and rate limiting.
"""
from fastapi import FastAPI
from fastapi.testclient import TestClient

from middleware.auth_middleware import is_public_route
from middleware.security import RateLimitMiddleware


def test_public_route_classification():
    assert is_public_route("GET", "/api/courses")
    assert is_public_route("GET", "/api/courses/12")
    assert is_public_route("POST", "/api/auth/login")
    assert is_public_route("POST", "/api/contact")

    assert not is_public_route("POST", "/api/courses/12/enroll")
    assert not is_public_route("GET", "/api/courses/student/enrolled")
    assert not is_public_route("GET", "/api/events/user/registered")
    assert not is_public_route("GET", "/api/coursesx")
    assert not is_public_route("GET", "/api/students")


def test_security_headers_and_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.json()["checks"]["database"] == {"status": "ok"}
    assert response.json()["checks"]["mail"] == {"status": "disabled"}


def test_rate_limit_per_minute():
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, requests_per_minute=2, requests_per_hour=100)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    client = TestClient(app)
    assert client.get("/ping").status_code == 200
    assert client.get("/ping").status_code == 200

    response = client.get("/ping")
    assert response.status_code == 429
    assert response.json() == {"success": False, "message": "Too many requests. Please try again later."}
