from conftest import auth, upload

URL = "/api/v1/admin/stats"


def test_admin_email_gets_admin_role(client, make_user):
    profile, token = make_user("admin@example.com", "Ada Admin")
    assert profile["is_admin"] is True
    me = client.get("/api/v1/auth/me", headers=auth(token)).json()
    assert me["role"] == "admin"


def test_regular_user_is_forbidden(client, make_user):
    profile, token = make_user("user@example.com")
    assert profile["is_admin"] is False
    assert client.get(URL, headers=auth(token)).status_code == 403


def test_overview_across_users(client, make_user):
    _, admin = make_user("admin@example.com", "Ada Admin")
    one, one_token = make_user("one@example.com", "User One")
    two, two_token = make_user("two@example.com")

    upload(client, one_token, "small.bin", b"a" * 100, "application/octet-stream")
    upload(client, two_token, "big.bin", b"b" * 200, "application/octet-stream")

    response = client.get(URL, headers=auth(admin))
    assert response.status_code == 200
    overview = response.json()

    assert overview["totalUsers"] >= 2
    assert overview["totalFiles"] == 2
    assert overview["totalOriginalSize"] == 300

    by_email = {u["email"]: u for u in overview["users"]}
    own_one = client.get("/api/v1/files/stats", headers=auth(one_token)).json()
    own_two = client.get("/api/v1/files/stats", headers=auth(two_token)).json()
    assert by_email["one@example.com"]["totalSize"] == own_one["totalCompressedSize"]
    assert by_email["two@example.com"]["totalSize"] == own_two["totalCompressedSize"]
    assert by_email["one@example.com"]["fileCount"] == 1
    assert by_email["two@example.com"]["fullName"] == "Unknown"
    assert by_email["admin@example.com"]["fileCount"] == 0
    assert overview["totalCompressedSize"] == (
        own_one["totalCompressedSize"] + own_two["totalCompressedSize"]
    )


def test_empty_overview(client, make_user):
    _, admin = make_user("admin@example.com")
    overview = client.get(URL, headers=auth(admin)).json()
    assert overview["totalUsers"] == 1
    assert overview["totalFiles"] == 0
    assert overview["savingsPercent"] == "0"
    assert overview["storageUsed"] == "0 B"
