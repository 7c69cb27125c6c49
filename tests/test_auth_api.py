from conftest import PASSWORD, auth, register

REFRESH = "/api/v1/auth/refresh"


def tokens_for(client, email):
    response = client.post("/api/v1/auth/login", data={"username": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()


def test_me_returns_profile(client):
    register(client, "me@example.com", "Me Myself")
    token = tokens_for(client, "me@example.com")["access_token"]

    response = client.get("/api/v1/auth/me", headers=auth(token))
    assert response.status_code == 200
    me = response.json()
    assert me["email"] == "me@example.com"
    assert me["full_name"] == "Me Myself"
    assert me["role"] == "user"
    assert me["is_admin"] is False


def test_me_requires_token(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers=auth("garbage")).status_code == 401


def test_refresh_issues_working_access_token(client):
    register(client, "fresh@example.com")
    tokens = tokens_for(client, "fresh@example.com")

    response = client.post(REFRESH, json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    refreshed = response.json()
    assert refreshed["refresh_token"] == tokens["refresh_token"]
    assert refreshed["token_type"] == "bearer"

    me = client.get("/api/v1/auth/me", headers=auth(refreshed["access_token"]))
    assert me.status_code == 200
    assert me.json()["email"] == "fresh@example.com"


def test_refresh_rejects_access_token(client):
    register(client, "stale@example.com")
    tokens = tokens_for(client, "stale@example.com")

    response = client.post(REFRESH, json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid refresh token"


def test_refresh_token_cannot_call_api(client):
    register(client, "sneaky@example.com")
    tokens = tokens_for(client, "sneaky@example.com")
    assert client.get("/api/v1/auth/me", headers=auth(tokens["refresh_token"])).status_code == 401


def test_duplicate_registration(client):
    register(client, "twice@example.com")
    response = client.post(
        "/api/v1/auth/register", json={"email": "twice@example.com", "password": PASSWORD}
    )
    assert response.status_code == 400
