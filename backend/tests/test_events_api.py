from datetime import datetime, timedelta, timezone

from conftest import auth_header


def _future(days=3) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def test_create_event_generates_code_and_default_duration(client, world):
    headers = auth_header(user_id=world.organizer_id)
    resp = client.post(
        "/api/events",
        json={"name": "AI Founders Night", "datetime": _future(), "location": "Berlin"},
        headers=headers,
    )
    assert resp.status_code == 201
    event = resp.json()
    assert len(event["code"]) == 6
    assert all(c.isupper() or c.isdigit() for c in event["code"])
    assert event["status"] == "UPCOMING"
    assert event["current_participants"] == 0
    assert event["creator"]["id"] == str(world.organizer_id)

    start = datetime.fromisoformat(event["start"])
    end = datetime.fromisoformat(event["end"])
    assert end - start == timedelta(hours=2)


def test_create_event_in_the_past_is_rejected(client, world):
    resp = client.post(
        "/api/events",
        json={"name": "Yesterday", "datetime": (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()},
        headers=auth_header(user_id=world.organizer_id),
    )
    assert resp.status_code == 422


def test_events_require_a_user_account(client, world):
    assert client.get("/api/events").status_code == 401
    assert client.get("/api/events", headers=auth_header(attendee_id=world.bob_id)).status_code == 401


def test_list_events_paginates_and_searches(client, world):
    headers = auth_header(user_id=world.organizer_id)
    for name in ("Climate Hack", "Climate Summit", "Design Jam"):
        client.post("/api/events", json={"name": name, "datetime": _future()}, headers=headers)

    page = client.get("/api/events", params={"limit": 2, "sort_by": "name", "sort_order": "asc"}, headers=headers)
    assert page.status_code == 200
    body = page.json()
    assert body["total_data"] == 4
    assert body["total_page"] == 2
    assert [e["name"] for e in body["entries"]] == ["Climate Hack", "Climate Summit"]

    found = client.get("/api/events", params={"search": "climate"}, headers=headers).json()
    assert found["total_data"] == 2

    bad = client.get("/api/events", params={"sort_by": "password"}, headers=headers)
    assert bad.status_code == 400


def test_get_event_by_code_is_case_insensitive(client, world):
    resp = client.get(f"/api/events/{world.event_code.lower()}", headers=auth_header(user_id=world.organizer_id))
    assert resp.status_code == 200
    assert resp.json()["name"] == "Founders Meetup"


def test_only_creator_can_update_or_delete(client, world):
    other = client.post(
        "/api/auth/register",
        json={"name": "Eve", "email": "eve@meetmatch.dev", "password": "long-enough"},
    ).json()
    eve = {"Authorization": f"Bearer {other['token']}"}

    assert client.put(f"/api/events/{world.event_code}", json={"name": "Hijacked"}, headers=eve).status_code == 403
    assert client.delete(f"/api/events/{world.event_code}", headers=eve).status_code == 403

    owner = auth_header(user_id=world.organizer_id)
    updated = client.put(
        f"/api/events/{world.event_code}", json={"name": "Founders Meetup II", "status": "ONGOING"}, headers=owner
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Founders Meetup II"
    assert updated.json()["status"] == "ONGOING"


def test_soft_delete_hides_event(client, world):
    headers = auth_header(user_id=world.organizer_id)

    resp = client.delete(f"/api/events/{world.event_code}", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"code": world.event_code, "deleted": True, "hard_delete": False}

    assert client.get(f"/api/events/{world.event_code}", headers=headers).status_code == 404
