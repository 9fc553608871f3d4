"""
Shared fixtures: a fresh SQLite database per test, an HTTP client against the
app, and factories for users and courses.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "100000")
os.environ.setdefault("RATE_LIMIT_PER_HOUR", "1000000")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMTP_USER", "")
os.environ.setdefault("SMTP_PASSWORD", "")

import pytest
from fastapi.testclient import TestClient

import config
from database.connection import Database
from database.models import Course, Department, Faculty, Designation, Student, User, UserRole
from auth.security import get_password_hash
from services.auth_service import AuthService

PASSWORD = "password123"
# One bcrypt hash shared by every fixture user keeps the suite fast
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_tables()
    config.db = db
    yield db
    config.db = None
    db.engine.dispose()


@pytest.fixture
def client(database):
    from app import app
    # Not used as a context manager: the lifespan would replace config.db
    return TestClient(app)


@pytest.fixture
def make_user(database):
    """Create a user row and return (id, bearer headers)."""
    counter = {"n": 0}

    def factory(role=UserRole.STUDENT, semester=None, name=None, email=None, is_active=True):
        counter["n"] += 1
        n = counter["n"]
        profile = {}
        if semester is not None:
            profile["semester"] = semester
        with database.get_session() as db:
            user = User(
                email=email or f"{role.value}{n}@college.edu",
                hashed_password=PASSWORD_HASH,
                name=name or f"{role.value.title()} {n}",
                role=role,
                profile=profile,
                is_active=is_active,
            )
            db.add(user)
            db.flush()
            token = AuthService.create_token(user)
            return user.id, {"Authorization": f"Bearer {token}"}

    return factory


@pytest.fixture
def student(make_user):
    return make_user(UserRole.STUDENT, semester="3")


@pytest.fixture
def faculty(make_user):
    return make_user(UserRole.FACULTY)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def make_course(database):
    """Insert a course directly and return its id."""
    counter = {"n": 0}

    def factory(faculty_id, capacity=30, semester="1", code=None, is_active=True,
                department=Department.COMPUTER_SCIENCE):
        counter["n"] += 1
        with database.get_session() as db:
            course = Course(
                code=code or f"CS{100 + counter['n']}",
                title=f"Course {counter['n']}",
                description="Fixture course",
                credits=3,
                department=department,
                semester=semester,
                faculty_id=faculty_id,
                capacity=capacity,
                is_active=is_active,
                syllabus=[],
                schedule={},
            )
            db.add(course)
            db.flush()
            return course.id

    return factory


@pytest.fixture
def faculty_record(database):
    """Attach a Faculty row to an existing faculty user and return its id."""
    def factory(user_id, department=Department.COMPUTER_SCIENCE, employee_id=None):
        with database.get_session() as db:
            record = Faculty(
                user_id=user_id,
                employee_id=employee_id or f"FAC{user_id}",
                department=department,
                designation=Designation.LECTURER,
            )
            db.add(record)
            db.flush()
            return record.id

    return factory


@pytest.fixture
def student_record(database):
    """Attach a Student row to an existing student user and return its id."""
    def factory(user_id, department="Computer Science", semester="3"):
        with database.get_session() as db:
            record = Student(
                user_id=user_id,
                student_id=f"STU{user_id}",
                roll_number=f"STU{user_id}",
                department=department,
                semester=semester,
                batch="2026",
            )
            db.add(record)
            db.flush()
            return record.id

    return factory
