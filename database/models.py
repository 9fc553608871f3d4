"""
Database models for the college portal.
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    ForeignKey, JSON, Index, UniqueConstraint, CheckConstraint, TypeDecorator
)
from sqlalchemy.orm import declarative_base, relationship
import enum

Base = declarative_base()


# ============================================================================
# Custom Type Decorator for Enum Values
# ============================================================================

class EnumValue(TypeDecorator):
    """Type decorator to ensure enum values (not names) are stored."""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, *args, **kwargs):
        kwargs.setdefault("length", 50)
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        """Convert enum to its value when writing to database."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        """Convert database value back to enum when reading."""
        if value is None:
            return None
        if isinstance(value, str):
            try:
                return self.enum_class(value)
            except ValueError:
                return value
        return value


# ============================================================================
# Enums - Must be defined before models that use them
# ============================================================================

class UserRole(str, enum.Enum):
    """User roles for authorization."""
    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"


class Department(str, enum.Enum):
    """Academic departments shared by courses and faculty."""
    COMPUTER_SCIENCE = "Computer Science"
    ENGINEERING = "Engineering"
    BUSINESS = "Business"
    ARTS = "Arts"
    SCIENCE = "Science"
    MATHEMATICS = "Mathematics"
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"


class Designation(str, enum.Enum):
    """Faculty designations."""
    PROFESSOR = "Professor"
    ASSOCIATE_PROFESSOR = "Associate Professor"
    ASSISTANT_PROFESSOR = "Assistant Professor"
    LECTURER = "Lecturer"
    VISITING_FACULTY = "Visiting Faculty"


class EventType(str, enum.Enum):
    """Event categories."""
    ACADEMIC = "academic"
    CULTURAL = "cultural"
    SPORTS = "sports"
    WORKSHOP = "workshop"
    SEMINAR = "seminar"
    CONFERENCE = "conference"


class EventStatus(str, enum.Enum):
    """Event lifecycle status."""
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ContactSubject(str, enum.Enum):
    """Contact form subjects."""
    ADMISSION = "admission"
    GENERAL = "general"
    COMPLAINT = "complaint"
    SUGGESTION = "suggestion"
    ACADEMIC = "academic"
    OTHER = "other"


class ContactStatus(str, enum.Enum):
    """Inbox workflow status."""
    NEW = "new"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class AttendanceStatus(str, enum.Enum):
    """Per-class attendance mark."""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


SEMESTERS = [str(n) for n in range(1, 9)]


# ============================================================================
# Models
# ============================================================================

class User(Base):
    """User model for authentication and authorization."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(EnumValue(UserRole), default=UserRole.STUDENT, nullable=False)
    profile = Column(JSON, default=dict, nullable=False)  # phone, department, semester, address, ...
    avatar = Column(String(512), nullable=True)

    # Status flags
    is_active = Column(Boolean, default=True, nullable=False)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('idx_user_role', 'role'),
    )


class Course(Base):
    """Course catalog entry. Enrollment membership lives in course_enrollments."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, index=True, nullable=False)  # Always upper-case
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    credits = Column(Integer, nullable=False)
    department = Column(EnumValue(Department), nullable=False)
    semester = Column(String(2), nullable=False)  # "1".."8"
    faculty_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    capacity = Column(Integer, default=30, nullable=False)
    enrolled_count = Column(Integer, default=0, nullable=False)  # Mirrors len(enrollments), guarded by conditional UPDATE
    syllabus = Column(JSON, default=list, nullable=False)  # [{topic, duration, objectives}]
    schedule = Column(JSON, default=dict, nullable=False)  # {days, time, classroom}
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    faculty = relationship("User", foreign_keys=[faculty_id])
    enrollments = relationship(
        "CourseEnrollment", back_populates="course",
        cascade="all, delete-orphan", order_by="CourseEnrollment.id"
    )
    resources = relationship(
        "CourseResource", back_populates="course",
        cascade="all, delete-orphan", order_by="CourseResource.id"
    )

    __table_args__ = (
        CheckConstraint('credits >= 1 AND credits <= 6', name='ck_course_credits'),
        CheckConstraint('enrolled_count >= 0 AND enrolled_count <= capacity', name='ck_course_capacity'),
        Index('idx_course_department_semester', 'department', 'semester'),
        Index('idx_course_faculty', 'faculty_id'),
    )


class CourseEnrollment(Base):
    """One student's membership in a course."""
    __tablename__ = "course_enrollments"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    enrolled_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="enrollments")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('course_id', 'user_id', name='uq_enrollment_course_user'),
        Index('idx_enrollment_user', 'user_id'),
    )


class CourseResource(Base):
    """Learning material attached to a course."""
    __tablename__ = "course_resources"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    file_url = Column(String(1024), nullable=True)  # Caller-supplied; storage is external
    file_type = Column(String(50), nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="resources")
    uploader = relationship("User", foreign_keys=[uploaded_by])

    __table_args__ = (
        Index('idx_resource_course', 'course_id'),
    )


class Student(Base):
    """Student profile, 1:1 with a student user."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    student_id = Column(String(50), unique=True, index=True, nullable=False)
    roll_number = Column(String(50), unique=True, index=True, nullable=False)
    department = Column(String(100), nullable=False)
    semester = Column(String(2), nullable=False)
    batch = Column(String(20), nullable=False)
    admission_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    guardian = Column(JSON, nullable=True)  # {name, relationship, phone, email}
    academic_record = Column(JSON, default=list, nullable=False)  # [{semester, courses: [{course, grade, credits, points}], sgpa, cgpa}]
    attendance = Column(JSON, default=list, nullable=False)  # [{course, date, status}]
    fees = Column(JSON, default=list, nullable=False)  # [{semester, amount, paid, dueDate, status, transactions}]
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index('idx_student_department_semester', 'department', 'semester'),
    )


class Faculty(Base):
    """Faculty profile, 1:1 with a faculty user. Taught courses are queried, not stored."""
    __tablename__ = "faculty"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    employee_id = Column(String(50), unique=True, index=True, nullable=False)
    department = Column(EnumValue(Department), nullable=False)
    designation = Column(EnumValue(Designation), nullable=False)
    qualifications = Column(JSON, default=list, nullable=False)  # [{degree, institution, year}]
    specialization = Column(JSON, default=list, nullable=False)
    experience = Column(JSON, nullable=True)  # {years, description}
    research_interests = Column(JSON, default=list, nullable=False)
    publications = Column(JSON, default=list, nullable=False)  # [{title, journal, year, link}]
    office_hours = Column(JSON, default=list, nullable=False)  # [{day, startTime, endTime}]
    office_location = Column(String(255), nullable=True)
    phone_extension = Column(String(20), nullable=True)
    social_links = Column(JSON, nullable=True)  # {website, linkedin, googleScholar}
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index('idx_faculty_department', 'department'),
    )


class Event(Base):
    """Campus event with a bounded participant roster."""
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    venue = Column(String(255), nullable=False)
    type = Column(EnumValue(EventType), nullable=False)
    organizer = Column(String(255), nullable=False)
    image = Column(String(1024), nullable=True)
    max_participants = Column(Integer, default=100, nullable=False)
    participant_count = Column(Integer, default=0, nullable=False)
    status = Column(EnumValue(EventStatus), default=EventStatus.UPCOMING, nullable=False)
    registration_deadline = Column(DateTime, nullable=True)
    tags = Column(JSON, default=list, nullable=False)
    requirements = Column(JSON, default=list, nullable=False)
    contact_info = Column(JSON, nullable=True)  # {name, email, phone}
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    participants = relationship(
        "EventParticipant", back_populates="event",
        cascade="all, delete-orphan", order_by="EventParticipant.id"
    )

    __table_args__ = (
        CheckConstraint('participant_count >= 0 AND participant_count <= max_participants', name='ck_event_capacity'),
        Index('idx_event_date_type', 'date', 'type'),
        Index('idx_event_status', 'status'),
    )


class EventParticipant(Base):
    """One user's registration for an event."""
    __tablename__ = "event_participants"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    registered_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    event = relationship("Event", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_participant_event_user'),
        Index('idx_participant_user', 'user_id'),
    )


class Contact(Base):
    """Inbound contact-form message."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    subject = Column(EnumValue(ContactSubject), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(EnumValue(ContactStatus), default=ContactStatus.NEW, nullable=False)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    response_message = Column(Text, nullable=True)
    responded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    assignee = relationship("User", foreign_keys=[assigned_to])
    responder = relationship("User", foreign_keys=[responded_by])

    __table_args__ = (
        Index('idx_contact_status', 'status'),
    )


class AuditLog(Base):
    """Audit log for security and compliance."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(100), nullable=False)  # e.g., "course_enroll", "user_login"
    resource_type = Column(String(50), nullable=True)  # e.g., "course", "event", "user"
    resource_id = Column(String(100), nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv6 compatible
    user_agent = Column(String(500), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_audit_user', 'user_id'),
        Index('idx_audit_action', 'action'),
        Index('idx_audit_created', 'created_at'),
    )
