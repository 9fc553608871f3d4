"""
Registration, login and the bearer-token gate.
"""
import config
from database.models import UserRole


def register(client, **overrides):
    payload = {
        "name": "Asha Rao",
        "email": "asha@college.edu",
        "password": "secret123",
        "role": "student",
        "profile": {"department": "Computer Science", "semester": "3"},
        "studentId": "STU2001",
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def login(client, email="asha@college.edu", password="secret123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_protected_route_without_token(client):
    response = client.post("/api/courses/1/enroll")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Not authorized, no token"}


def test_protected_route_with_bad_token(client):
    response = client.get("/api/auth/profile", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, token failed"


def test_inactive_account_is_forbidden(client, make_user):
    _, headers = make_user(UserRole.STUDENT, is_active=False)

    response = client.get("/api/auth/profile", headers=headers)
    assert response.status_code == 403


def test_register_returns_user_and_working_token(client):
    response = register(client, email="Asha@College.edu")

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User registered successfully"
    user = body["data"]["user"]
    assert user["email"] == "asha@college.edu"
    assert user["role"] == "student"
    assert "hashedPassword" not in user and "hashed_password" not in user

    headers = {"Authorization": f"Bearer {body['data']['token']}"}
    profile = client.get("/api/auth/profile", headers=headers).json()["data"]
    assert profile["user"]["id"] == user["id"]
    assert profile["additionalInfo"]["studentId"] == "STU2001"
    assert profile["additionalInfo"]["semester"] == "3"


def test_register_rejects_duplicate_email_and_admin_role(client):
    assert register(client).status_code == 201

    response = register(client, email="ASHA@college.edu", studentId="STU2002")
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists with this email"

    response = register(client, email="root@college.edu", role="admin", studentId=None)
    assert response.status_code == 400


def test_register_rejects_short_password(client):
    response = register(client, password="abc")

    assert response.status_code == 400
    assert response.json()["errors"] == ["Password must be at least 6 characters long"]


def test_faculty_registration_creates_faculty_record(client):
    response = register(
        client,
        email="prof@college.edu",
        role="faculty",
        studentId=None,
        employeeId="FAC900",
        profile={"department": "Physics"},
    )
    assert response.status_code == 201
    headers = {"Authorization": f"Bearer {response.json()['data']['token']}"}

    info = client.get("/api/auth/profile", headers=headers).json()["data"]["additionalInfo"]
    assert info["employeeId"] == "FAC900"
    assert info["department"] == "Physics"
    assert info["courses"] == []


def test_login_success_and_failure(client):
    register(client)

    response = login(client)
    assert response.status_code == 200
    assert response.json()["message"] == "Login successful"
    assert response.json()["data"]["user"]["lastLogin"] is not None
    assert response.json()["data"]["token"]

    response = login(client, password="wrong-password")
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"

    response = login(client, email="nobody@college.edu")
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_account_locks_after_repeated_failures(client):
    register(client)

    for _ in range(config.MAX_LOGIN_ATTEMPTS):
        assert login(client, password="wrong-password").status_code == 401

    # Correct password is refused while the lock holds
    assert login(client).status_code == 401


def test_update_profile_merges_and_reissues_token(client):
    token = register(client).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    response = client.put(
        "/api/auth/profile",
        json={"name": "Asha R.", "profile": {"semester": "4", "phone": "+911234"}},
        headers=headers,
    )

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["name"] == "Asha R."
    assert user["profile"] == {"department": "Computer Science", "semester": "4", "phone": "+911234"}
    assert response.json()["data"]["token"]


def test_profile_password_change(client):
    token = register(client).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert client.put("/api/auth/profile", json={"password": "brand-new-pass"}, headers=headers).status_code == 200
    assert login(client).status_code == 401
    assert login(client, password="brand-new-pass").status_code == 200


def test_user_list_is_admin_only(client, student, admin):
    _, student_headers = student
    _, admin_headers = admin

    response = client.get("/api/auth/users", headers=student_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied. Required roles: admin"

    response = client.get("/api/auth/users", headers=admin_headers)
    assert response.status_code == 200
    assert {u["role"] for u in response.json()["data"]} == {"student", "admin"}


def test_unknown_route_envelope(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route /api/nowhere not found"}
