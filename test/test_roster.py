"""
Seat accounting under interleaved sessions.

Two sessions against the same database file stand in for two concurrent
requests: one reads a course, the other commits in between, and the first
then tries to act on what it read.
"""
from datetime import datetime

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from auth.dependencies import Principal
from core.exceptions import ConflictError
from database.models import Course, CourseEnrollment, Event, EventParticipant, User, UserRole
from services.course_service import CourseService, ENROLLMENT
from services.event_service import EventService


def principal_for(db, user_id):
    return Principal.from_user(db.get(User, user_id))


def seats(database, course_id):
    with database.get_session() as db:
        course = db.get(Course, course_id)
        members = db.query(CourseEnrollment).filter(CourseEnrollment.course_id == course_id).count()
        return course.enrolled_count, members


def test_last_seat_goes_to_one_student(database, make_user, make_course, faculty):
    faculty_id, _ = faculty
    course_id = make_course(faculty_id, capacity=2)
    first_id, _ = make_user(UserRole.STUDENT, semester="1")
    second_id, _ = make_user(UserRole.STUDENT, semester="1")
    third_id, _ = make_user(UserRole.STUDENT, semester="1")

    with database.get_session() as db:
        CourseService.enroll(db, course_id, principal_for(db, first_id))

    with database.get_session() as late, database.get_session() as early:
        # Reads the course with one seat still open
        stale = CourseService.load(late, course_id)
        assert stale.enrolled_count == 1
        late_principal = principal_for(late, third_id)

        CourseService.enroll(early, course_id, principal_for(early, second_id))

        with pytest.raises(ConflictError, match="Course is full"):
            ENROLLMENT.join(late, stale, late_principal.id)

    assert seats(database, course_id) == (2, 2)


def test_duplicate_join_is_rejected_by_constraint(database, make_user, make_course, faculty, monkeypatch):
    faculty_id, _ = faculty
    course_id = make_course(faculty_id, capacity=5)
    student_id, _ = make_user(UserRole.STUDENT, semester="1")

    with database.get_session() as db:
        CourseService.enroll(db, course_id, principal_for(db, student_id))

    # The membership read missed the other request's insert
    monkeypatch.setattr(ENROLLMENT, "is_member", lambda db, owner_id, user_id: False)

    with database.get_session() as db:
        course = CourseService.load(db, course_id)
        with pytest.raises(ConflictError, match="Already enrolled in this course"):
            ENROLLMENT.join(db, course, student_id)

    assert seats(database, course_id) == (1, 1)


def test_count_matches_members_after_mixed_traffic(database, make_user, make_course, faculty):
    faculty_id, _ = faculty
    course_id = make_course(faculty_id, capacity=3)
    students = [make_user(UserRole.STUDENT, semester="2")[0] for _ in range(5)]

    for student_id in students:
        with database.get_session() as db:
            try:
                CourseService.enroll(db, course_id, principal_for(db, student_id))
            except ConflictError:
                pass

    with database.get_session() as db:
        CourseService.unenroll(db, course_id, principal_for(db, students[0]))
    with database.get_session() as db:
        CourseService.enroll(db, course_id, principal_for(db, students[4]))

    assert seats(database, course_id) == (3, 3)
    with database.get_session() as db:
        assert sorted(ENROLLMENT.member_ids(db, course_id)) == sorted(students[1:3] + [students[4]])


def test_capacity_cut_after_concurrent_enroll_conflicts(database, make_user, make_course, faculty):
    faculty_id, _ = faculty
    course_id = make_course(faculty_id, capacity=5)
    first_id, _ = make_user(UserRole.STUDENT, semester="1")
    second_id, _ = make_user(UserRole.STUDENT, semester="1")

    with database.get_session() as db:
        CourseService.enroll(db, course_id, principal_for(db, first_id))

    with database.get_session() as late, database.get_session() as early:
        owner = principal_for(late, faculty_id)
        assert CourseService.load(late, course_id).enrolled_count == 1

        CourseService.enroll(early, course_id, principal_for(early, second_id))

        with pytest.raises(ConflictError, match="Capacity cannot be lower"):
            CourseService.update_course(late, course_id, owner, {"capacity": 1})

    with database.get_session() as db:
        assert db.get(Course, course_id).capacity == 5
    assert seats(database, course_id) == (2, 2)


def test_event_capacity_cut_after_concurrent_registration_conflicts(database, make_user, faculty):
    faculty_id, _ = faculty
    first_id, _ = make_user(UserRole.STUDENT)
    second_id, _ = make_user(UserRole.STUDENT)

    with database.get_session() as db:
        event = EventService.create_event(db, principal_for(db, faculty_id), {
            "title": "Quiz Night",
            "description": "Teams of four",
            "date": datetime(2030, 4, 1, 18, 0),
            "venue": "Auditorium",
            "type": "cultural",
            "organizer": "Student Council",
            "max_participants": 5,
        })
        event_id = event.id
        EventService.register(db, event_id, principal_for(db, first_id))

    with database.get_session() as late, database.get_session() as early:
        organizer = principal_for(late, faculty_id)
        assert EventService.load(late, event_id).participant_count == 1

        EventService.register(early, event_id, principal_for(early, second_id))

        with pytest.raises(ConflictError, match="Maximum participants cannot be lower"):
            EventService.update_event(late, event_id, organizer, {"max_participants": 1, "venue": "Room 4"})

    with database.get_session() as db:
        event = db.get(Event, event_id)
        assert (event.max_participants, event.participant_count, event.venue) == (5, 2, "Auditorium")

    with database.get_session() as db:
        event = EventService.update_event(db, event_id, principal_for(db, faculty_id), {"max_participants": 2})
        assert event.max_participants == 2


@pytest.mark.parametrize("member_model", [CourseEnrollment, EventParticipant])
def test_members_block_hard_user_delete(database, make_user, make_course, faculty, member_model):
    faculty_id, _ = faculty
    student_id, _ = make_user(UserRole.STUDENT, semester="1")
    course_id = make_course(faculty_id)

    with database.get_session() as db:
        principal = principal_for(db, student_id)
        if member_model is CourseEnrollment:
            CourseService.enroll(db, course_id, principal)
        else:
            event = EventService.create_event(db, principal_for(db, faculty_id), {
                "title": "Open Day", "description": "Campus tour", "date": datetime(2030, 1, 5, 10, 0),
                "venue": "Gate 1", "type": "academic", "organizer": "Admissions",
            })
            EventService.register(db, event.id, principal)

    # A cascading delete would drop the member row and leave the counter behind
    with database.engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        with pytest.raises(IntegrityError):
            conn.execute(delete(User).where(User.id == student_id))
