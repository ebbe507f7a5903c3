from conftest import auth_header


def _register(client, email="ana@meetmatch.dev", username="ana"):
    return client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": email, "password": "correct-horse", "username": username},
    )


def test_register_then_login_returns_token_and_profile(client):
    resp = _register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["email"] == "ana@meetmatch.dev"
    assert body["token"]

    login = client.post("/api/auth/login", json={"email": "ana@meetmatch.dev", "password": "correct-horse"})
    assert login.status_code == 200
    token = login.json()["token"]

    profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    assert profile.json()["username"] == "ana"


def test_duplicate_email_or_username_is_rejected(client):
    assert _register(client).status_code == 201

    dup_email = _register(client, username="other")
    assert dup_email.status_code == 409
    assert dup_email.json()["detail"] == "Email already registered"

    dup_username = _register(client, email="other@meetmatch.dev")
    assert dup_username.status_code == 409
    assert dup_username.json()["detail"] == "Username already registered"


def test_login_with_wrong_password_is_unauthorized(client):
    _register(client)
    resp = client.post("/api/auth/login", json={"email": "ana@meetmatch.dev", "password": "wrong-password"})
    assert resp.status_code == 401


def test_profile_requires_valid_user_token(client, world):
    assert client.get("/api/auth/profile").status_code == 401
    assert client.get("/api/auth/profile", headers={"Authorization": "Bearer garbage"}).status_code == 401

    # Visitor tokens identify an attendee, not an account
    visitor = auth_header(attendee_id=world.bob_id)
    resp = client.get("/api/auth/profile", headers=visitor)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "User account required"


def test_update_current_user_profile(client, world):
    headers = auth_header(user_id=world.organizer_id)

    resp = client.patch("/api/users/me", json={"nickname": "Org", "username": "host"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["nickname"] == "Org"
    assert resp.json()["username"] == "host"

    me = client.get("/api/users/me", headers=headers)
    assert me.json()["username"] == "host"


def test_username_taken_by_another_user_conflicts(client, world):
    _register(client, username="taken")
    resp = client.patch("/api/users/me", json={"username": "taken"}, headers=auth_header(user_id=world.organizer_id))
    assert resp.status_code == 409
