#!/usr/bin/env python3
"""
Reset the database and load demo data: one admin, ten faculty members,
twenty students, twenty courses and twenty events.

All demo accounts use the password "password123".
"""
import random
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to the system path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.connection import Database
from database.models import (
    Course, Department, Designation, Event, EventType, Faculty, UserRole
)
from services.auth_service import AuthService
from core.logger import logger
import config

PASSWORD = "password123"
DEPARTMENTS = [
    Department.COMPUTER_SCIENCE,
    Department.MATHEMATICS,
    Department.PHYSICS,
    Department.CHEMISTRY,
]


def _address(number: int, street: str) -> dict:
    return {"street": f"{number} {street}", "city": "Education City", "state": "EC", "zipCode": "12345"}


def seed(db):
    admin = AuthService.create_user(
        db, "admin@edutech.edu", PASSWORD, "Admin User", role=UserRole.ADMIN,
        profile={"phone": "+1234567892", "department": "Administration"},
    )

    faculty_users = []
    for i in range(1, 11):
        dept = DEPARTMENTS[i % len(DEPARTMENTS)]
        user = AuthService.create_user(
            db, f"faculty{i}@edutech.edu", PASSWORD, f"Faculty {i}", role=UserRole.FACULTY,
            profile={"phone": f"+12345000{i}", "department": dept.value, "address": _address(i, "Faculty Street")},
        )
        db.add(Faculty(
            user_id=user.id,
            employee_id=f"FAC{100 + i}",
            department=dept,
            designation=Designation.PROFESSOR if i % 2 == 0 else Designation.LECTURER,
            specialization=["AI", "ML"] if i % 2 == 0 else ["Calculus", "Algebra"],
            experience={"years": random.randint(5, 14), "description": "Experienced in teaching and research"},
            research_interests=["Research Topic A", "Research Topic B"],
            office_hours=[
                {"day": "Monday", "startTime": "10:00", "endTime": "12:00"},
                {"day": "Wednesday", "startTime": "14:00", "endTime": "16:00"},
            ],
            office_location=f"{dept.value} Building",
            phone_extension=str(random.randint(1000, 9999)),
        ))
        faculty_users.append(user)
    db.commit()

    students = []
    for i in range(1, 21):
        dept = DEPARTMENTS[i % len(DEPARTMENTS)]
        students.append(AuthService.create_user(
            db, f"student{i}@edutech.edu", PASSWORD, f"Student {i}", role=UserRole.STUDENT,
            profile={
                "phone": f"+98765000{i}",
                "department": dept.value,
                "semester": str(random.randint(1, 8)),
                "address": _address(i, "Student Lane"),
            },
            student_id=f"STU{1000 + i}",
        ))

    for i in range(1, 21):
        dept = DEPARTMENTS[i % len(DEPARTMENTS)]
        db.add(Course(
            title=f"{dept.value} Course {i}",
            code=f"{dept.value[:3].upper()}{100 + i}",
            description=f"Detailed syllabus for {dept.value} Course {i}",
            credits=3 + (i % 2),
            department=dept,
            semester=str((i % 8) + 1),
            faculty_id=faculty_users[i % len(faculty_users)].id,
            capacity=20 + (i % 10),
        ))

        month = (i % 9) + 1
        db.add(Event(
            title=f"{dept.value} Event {i}",
            description=f"Description of {dept.value} Event {i}",
            date=datetime(2024, month, 10, 9, 0),
            end_date=datetime(2024, month, 10, 17, 0),
            venue=f"{dept.value} Hall {i}",
            type=EventType.WORKSHOP if i % 2 == 0 else EventType.CONFERENCE,
            organizer=f"{dept.value} Department",
            max_participants=20 + i * 5,
        ))
    db.commit()

    logger.info("Seed data created successfully")
    print(f"Admin login: {admin.email} / {PASSWORD}")
    for user in faculty_users:
        print(f"Faculty login: {user.email} / {PASSWORD}")
    for user in students:
        print(f"Student login: {user.email} / {PASSWORD}")


def main():
    config.db = Database(database_url=config.DATABASE_URL)
    config.db.drop_tables()
    config.db.create_tables()
    with config.db.get_session() as db:
        seed(db)


if __name__ == "__main__":
    main()
