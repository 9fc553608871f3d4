"""
Row -> JSON shaping.

Relations are only expanded when the caller names them in `expand`, and the
caller is responsible for having loaded them (see the loader options in the
service modules). Unexpanded relations are rendered as ids.
"""
from datetime import datetime
from typing import Any, Iterable, Optional

from database.models import (
    User, Course, CourseResource, Student, Faculty, Event, Contact
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _enum(value: Any) -> Any:
    return getattr(value, "value", value)


def user_summary(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": _enum(user.role),
        "profile": user.profile or {},
        "avatar": user.avatar,
    }


def user_to_dict(user: User) -> dict:
    data = user_summary(user)
    data.update({
        "isActive": user.is_active,
        "lastLogin": _iso(user.last_login),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    })
    return data


def resource_to_dict(resource: CourseResource, expand: Iterable[str] = ()) -> dict:
    return {
        "id": resource.id,
        "title": resource.title,
        "description": resource.description,
        "fileUrl": resource.file_url,
        "fileType": resource.file_type,
        "uploadedBy": user_summary(resource.uploader) if "uploadedBy" in expand else resource.uploaded_by,
        "uploadedAt": _iso(resource.uploaded_at),
    }


def course_to_dict(course: Course, expand: Iterable[str] = ()) -> dict:
    """
    Shape a course. Supported expansions: faculty, enrolledStudents,
    resources.uploadedBy.
    """
    expand = set(expand)
    if "enrolledStudents" in expand:
        students = [user_summary(e.user) for e in course.enrollments]
    else:
        students = [e.user_id for e in course.enrollments]
    resource_expand = ("uploadedBy",) if "resources.uploadedBy" in expand else ()
    return {
        "id": course.id,
        "code": course.code,
        "title": course.title,
        "description": course.description,
        "credits": course.credits,
        "department": _enum(course.department),
        "semester": course.semester,
        "faculty": user_summary(course.faculty) if "faculty" in expand else course.faculty_id,
        "capacity": course.capacity,
        "enrolledStudents": students,
        "enrolledCount": course.enrolled_count,
        "syllabus": course.syllabus or [],
        "resources": [resource_to_dict(r, resource_expand) for r in course.resources],
        "schedule": course.schedule or {},
        "isActive": course.is_active,
        "createdAt": _iso(course.created_at),
        "updatedAt": _iso(course.updated_at),
    }


def event_to_dict(event: Event, expand: Iterable[str] = ()) -> dict:
    if "participants" in expand:
        participants = [
            {"user": user_summary(p.user), "registeredAt": _iso(p.registered_at)}
            for p in event.participants
        ]
    else:
        participants = [
            {"user": p.user_id, "registeredAt": _iso(p.registered_at)}
            for p in event.participants
        ]
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "date": _iso(event.date),
        "endDate": _iso(event.end_date),
        "venue": event.venue,
        "type": _enum(event.type),
        "organizer": event.organizer,
        "image": event.image,
        "participants": participants,
        "participantCount": event.participant_count,
        "maxParticipants": event.max_participants,
        "status": _enum(event.status),
        "registrationDeadline": _iso(event.registration_deadline),
        "tags": event.tags or [],
        "requirements": event.requirements or [],
        "contactInfo": event.contact_info,
        "createdAt": _iso(event.created_at),
        "updatedAt": _iso(event.updated_at),
    }


def student_to_dict(student: Student, expand: Iterable[str] = ()) -> dict:
    return {
        "id": student.id,
        "user": user_summary(student.user) if "user" in expand else student.user_id,
        "studentId": student.student_id,
        "rollNumber": student.roll_number,
        "department": student.department,
        "semester": student.semester,
        "batch": student.batch,
        "admissionDate": _iso(student.admission_date),
        "guardian": student.guardian,
        "academicRecord": student.academic_record or [],
        "attendance": student.attendance or [],
        "fees": student.fees or [],
        "createdAt": _iso(student.created_at),
        "updatedAt": _iso(student.updated_at),
    }


def faculty_to_dict(faculty: Faculty, expand: Iterable[str] = ()) -> dict:
    return {
        "id": faculty.id,
        "user": user_summary(faculty.user) if "user" in expand else faculty.user_id,
        "employeeId": faculty.employee_id,
        "department": _enum(faculty.department),
        "designation": _enum(faculty.designation),
        "qualifications": faculty.qualifications or [],
        "specialization": faculty.specialization or [],
        "experience": faculty.experience,
        "researchInterests": faculty.research_interests or [],
        "publications": faculty.publications or [],
        "officeHours": faculty.office_hours or [],
        "officeLocation": faculty.office_location,
        "phoneExtension": faculty.phone_extension,
        "socialLinks": faculty.social_links,
        "isActive": faculty.is_active,
        "createdAt": _iso(faculty.created_at),
        "updatedAt": _iso(faculty.updated_at),
    }


def contact_to_dict(contact: Contact, expand: Iterable[str] = ()) -> dict:
    expand = set(expand)
    response = None
    if contact.response_message is not None:
        response = {
            "message": contact.response_message,
            "respondedBy": user_summary(contact.responder) if "respondedBy" in expand else contact.responded_by,
            "respondedAt": _iso(contact.responded_at),
        }
    return {
        "id": contact.id,
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "subject": _enum(contact.subject),
        "message": contact.message,
        "status": _enum(contact.status),
        "assignedTo": user_summary(contact.assignee) if "assignedTo" in expand else contact.assigned_to,
        "response": response,
        "createdAt": _iso(contact.created_at),
        "updatedAt": _iso(contact.updated_at),
    }
