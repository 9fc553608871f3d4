"""
Faculty directory and student record endpoints.
"""
from database.models import Department, UserRole


def test_faculty_list_and_department_filter(client, make_user, faculty_record):
    cs_user, _ = make_user(UserRole.FACULTY)
    phy_user, _ = make_user(UserRole.FACULTY)
    faculty_record(cs_user)
    faculty_record(phy_user, department=Department.PHYSICS)

    body = client.get("/api/faculty").json()
    assert body["count"] == 2

    body = client.get("/api/faculty/department/Physics").json()
    assert body["count"] == 1
    assert body["data"][0]["user"]["id"] == phy_user

    assert client.get("/api/faculty/department/Astrology").json()["count"] == 0


def test_faculty_detail_lists_active_courses(client, make_course, faculty, faculty_record):
    faculty_id, _ = faculty
    record_id = faculty_record(faculty_id)
    taught = make_course(faculty_id)
    make_course(faculty_id, is_active=False)

    data = client.get(f"/api/faculty/{record_id}").json()["data"]
    assert data["user"]["id"] == faculty_id
    assert [c["id"] for c in data["courses"]] == [taught]

    response = client.get("/api/faculty/999")
    assert response.status_code == 404
    assert response.json()["message"] == "Faculty member not found"


def test_faculty_profile_owner_or_admin(client, make_user, faculty, admin, faculty_record):
    faculty_id, headers = faculty
    _, other_headers = make_user(UserRole.FACULTY)
    _, admin_headers = admin
    record_id = faculty_record(faculty_id)

    response = client.put(f"/api/faculty/{record_id}", json={"officeLocation": "B-204"}, headers=other_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to update this faculty profile"

    response = client.put(
        f"/api/faculty/{record_id}",
        json={"officeLocation": "B-204", "researchInterests": ["Compilers"]},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["officeLocation"] == "B-204"
    assert data["researchInterests"] == ["Compilers"]

    response = client.put(f"/api/faculty/{record_id}", json={"designation": "Professor"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["designation"] == "Professor"


def test_student_profile_and_listing(client, make_user, student, faculty, student_record):
    student_id, headers = student
    _, faculty_headers = faculty
    other_id, _ = make_user(UserRole.STUDENT, semester="5")
    student_record(student_id)
    student_record(other_id, semester="5")

    data = client.get("/api/students/profile", headers=headers).json()["data"]
    assert data["user"]["id"] == student_id

    _, no_record_headers = make_user(UserRole.STUDENT)
    response = client.get("/api/students/profile", headers=no_record_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Student profile not found"

    assert client.get("/api/students", headers=headers).status_code == 403

    data = client.get("/api/students", headers=faculty_headers).json()["data"]
    assert data["pagination"]["totalItems"] == 2
    data = client.get("/api/students", params={"semester": "5"}, headers=faculty_headers).json()["data"]
    assert [s["user"]["id"] for s in data["students"]] == [other_id]


def test_attendance_and_academic_record(client, make_course, faculty, student, student_record):
    faculty_id, faculty_headers = faculty
    student_user, _ = student
    record_id = student_record(student_user)
    course_id = make_course(faculty_id)

    response = client.post(
        "/api/students/attendance",
        json={"studentId": record_id, "courseId": course_id, "date": "2030-02-01T10:00:00", "status": "present"},
        headers=faculty_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["attendance"] == [
        {"course": course_id, "date": "2030-02-01T10:00:00", "status": "present"}
    ]

    response = client.post(
        "/api/students/attendance",
        json={"studentId": record_id, "courseId": 999, "date": "2030-02-01T10:00:00", "status": "late"},
        headers=faculty_headers,
    )
    assert response.status_code == 404

    response = client.post(
        f"/api/students/{record_id}/academic",
        json={"semester": "3", "courses": [{"course": course_id, "grade": "A"}], "sgpa": 9.1, "cgpa": 8.7},
        headers=faculty_headers,
    )
    assert response.status_code == 200
    records = response.json()["data"]["academicRecord"]
    assert len(records) == 1
    assert records[0]["sgpa"] == 9.1


def test_student_courses_include_inactive(client, make_course, faculty, student, student_record):
    faculty_id, faculty_headers = faculty
    student_user, headers = student
    record_id = student_record(student_user)
    course_id = make_course(faculty_id)
    client.post(f"/api/courses/{course_id}/enroll", headers=headers)
    client.patch(f"/api/courses/{course_id}/status", headers=faculty_headers)

    data = client.get(f"/api/students/{record_id}/courses", headers=headers).json()["data"]
    assert [c["id"] for c in data] == [course_id]
    assert data[0]["isActive"] is False

    assert client.get("/api/courses/student/enrolled", headers=headers).json()["data"] == []
