"""
Event catalog and registration endpoints.
"""
from database.models import UserRole


def create_event(client, headers, **overrides):
    payload = {
        "title": "Robotics Workshop",
        "description": "Build a line follower",
        "date": "2030-03-10T09:00:00",
        "endDate": "2030-03-10T17:00:00",
        "venue": "Lab 2",
        "type": "workshop",
        "organizer": "Engineering Department",
    }
    payload.update(overrides)
    response = client.post("/api/events", json=payload, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_faculty_creates_event_and_students_cannot(client, faculty, student):
    _, headers = faculty
    _, student_headers = student

    event = create_event(client, headers, maxParticipants=40, tags=["robots"])
    assert event["maxParticipants"] == 40
    assert event["status"] == "upcoming"
    assert event["participants"] == []
    assert event["tags"] == ["robots"]

    response = client.post(
        "/api/events",
        json={"title": "x", "description": "x", "date": "2030-01-01T00:00:00",
              "venue": "x", "type": "sports", "organizer": "x"},
        headers=student_headers,
    )
    assert response.status_code == 403


def test_default_capacity(client, faculty):
    _, headers = faculty
    assert create_event(client, headers)["maxParticipants"] == 100


def test_register_and_duplicate(client, faculty, student):
    _, headers = faculty
    student_id, student_headers = student
    event = create_event(client, headers)

    response = client.post(f"/api/events/{event['id']}/register", headers=student_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Successfully registered for event"
    data = response.json()["data"]
    assert [p["user"] for p in data["participants"]] == [student_id]
    assert data["participantCount"] == 1

    response = client.post(f"/api/events/{event['id']}/register", headers=student_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Already registered for this event"


def test_full_event_rejects_registration(client, make_user, faculty):
    _, headers = faculty
    event = create_event(client, headers, maxParticipants=1)
    _, first = make_user(UserRole.STUDENT)
    _, second = make_user(UserRole.STUDENT)

    assert client.post(f"/api/events/{event['id']}/register", headers=first).status_code == 200
    response = client.post(f"/api/events/{event['id']}/register", headers=second)
    assert response.status_code == 400
    assert response.json()["message"] == "Event is full"


def test_deadline_passed(client, faculty, student):
    _, headers = faculty
    _, student_headers = student
    event = create_event(client, headers, registrationDeadline="2020-01-01T00:00:00")

    response = client.post(f"/api/events/{event['id']}/register", headers=student_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Registration deadline has passed"


def test_unregister(client, faculty, student):
    _, headers = faculty
    _, student_headers = student
    event = create_event(client, headers, maxParticipants=1)

    response = client.post(f"/api/events/{event['id']}/unregister", headers=student_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "You are not registered for this event"

    client.post(f"/api/events/{event['id']}/register", headers=student_headers)
    response = client.post(f"/api/events/{event['id']}/unregister", headers=student_headers)
    assert response.status_code == 200
    assert response.json()["data"]["participants"] == []

    # The freed seat can be taken again
    assert client.post(f"/api/events/{event['id']}/register", headers=student_headers).status_code == 200


def test_registered_events_and_detail(client, faculty, student):
    _, headers = faculty
    student_id, student_headers = student
    joined = create_event(client, headers, title="Hackathon", date="2030-05-01T09:00:00")
    create_event(client, headers, title="Sports Day", type="sports")
    client.post(f"/api/events/{joined['id']}/register", headers=student_headers)

    mine = client.get("/api/events/user/registered", headers=student_headers).json()["data"]
    assert [e["title"] for e in mine] == ["Hackathon"]

    detail = client.get(f"/api/events/{joined['id']}").json()["data"]
    assert detail["participants"][0]["user"]["id"] == student_id

    assert client.get("/api/events/999").status_code == 404


def test_list_events_filters(client, faculty):
    _, headers = faculty
    create_event(client, headers, title="Late", date="2030-09-01T09:00:00")
    create_event(client, headers, title="Early", date="2030-01-01T09:00:00")
    create_event(client, headers, title="Match", type="sports", date="2030-06-01T09:00:00")

    data = client.get("/api/events").json()["data"]
    assert [e["title"] for e in data["events"]] == ["Early", "Match", "Late"]
    assert data["pagination"]["totalItems"] == 3

    data = client.get("/api/events", params={"type": "sports"}).json()["data"]
    assert [e["title"] for e in data["events"]] == ["Match"]

    assert client.get("/api/events", params={"type": "party"}).status_code == 400


def test_update_event_keeps_capacity_above_participants(client, make_user, faculty):
    _, headers = faculty
    event = create_event(client, headers, maxParticipants=5)
    for _ in range(2):
        _, student_headers = make_user(UserRole.STUDENT)
        client.post(f"/api/events/{event['id']}/register", headers=student_headers)

    response = client.put(f"/api/events/{event['id']}", json={"maxParticipants": 1}, headers=headers)
    assert response.status_code == 400

    response = client.put(
        f"/api/events/{event['id']}",
        json={"venue": "Main Hall", "status": "ongoing", "maxParticipants": 2},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["venue"] == "Main Hall"
    assert data["status"] == "ongoing"
    assert data["maxParticipants"] == 2
    assert len(data["participants"]) == 2
