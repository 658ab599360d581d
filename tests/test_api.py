from datetime import datetime, timedelta, timezone

from app.auth.jwt import TokenService
from app.models.user import UserRole


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email="alice@example.com", password="secret1", name="Alice"):
    return client.post(
        "/api/v1/auth/register",
        json={"name": name, "email": email, "password": password},
    )


def login(client, email="alice@example.com", password="secret1"):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def create_task(client, token, title="Write report", **extra):
    response = client.post(
        "/api/v1/tasks",
        json={"title": title, **extra},
        headers=auth_header(token),
    )
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Root and health
# =============================================================================

def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "Task Tracker API"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_security_headers_and_request_id(client):
    response = client.get("/", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


# =============================================================================
# Registration and login
# =============================================================================

def test_register_returns_user_and_token(client):
    response = register(client)
    assert response.status_code == 201

    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["email"] == "alice@example.com"
    assert data["user"]["role"] == "user"
    assert "password" not in response.text
    assert "password_hash" not in data["user"]


def test_register_duplicate_email_conflicts(client):
    assert register(client).status_code == 201
    response = register(client, email="ALICE@example.com", name="Alice Two")
    assert response.status_code == 409


def test_register_invalid_input(client):
    assert register(client, email="not-an-email").status_code == 422
    assert register(client, password="123").status_code == 422
    response = client.post("/api/v1/auth/register", json={"email": "a@example.com"})
    assert response.status_code == 422


def test_register_ignores_role_field(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"name": "Mallory", "email": "mallory@example.com", "password": "secret1", "role": "admin"},
    )
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "user"


def test_end_to_end_login_and_protected_call(client):
    register(client)

    response = login(client)
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["expires_in"] == 60 * 60

    me = client.get("/api/v1/auth/me", headers=auth_header(token))
    assert me.status_code == 200
    assert me.json()["email"] == "alice@example.com"
    assert me.json()["last_login"] is not None


def test_login_failures_are_indistinguishable(client):
    register(client)

    wrong_password = login(client, password="wrong-password")
    unknown_email = login(client, email="nobody@example.com")

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()


# =============================================================================
# Authentication gate over HTTP
# =============================================================================

def test_missing_token(client):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_wrong_scheme(client):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert response.status_code == 401


def test_invalid_and_expired_tokens_share_message(client, settings, db_helper):
    user_id, _ = db_helper.create_user("alice@example.com")
    past = datetime.now(timezone.utc) - timedelta(days=1)
    expired = TokenService(settings, clock=lambda: past).issue(user_id, UserRole.USER).token

    garbage = client.get("/api/v1/auth/me", headers=auth_header("garbage.token.value"))
    stale = client.get("/api/v1/auth/me", headers=auth_header(expired))

    assert garbage.status_code == 401
    assert stale.status_code == 401
    assert garbage.json() == stale.json() == {"detail": "Invalid or expired credentials"}


def test_deactivated_user_token_replay(client, db_helper):
    register(client)
    token = login(client).json()["access_token"]
    user_id = client.get("/api/v1/auth/me", headers=auth_header(token)).json()["id"]

    db_helper.update_user(user_id, is_active=False)

    response = client.get("/api/v1/auth/me", headers=auth_header(token))
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired credentials"

    assert login(client).status_code == 401


def test_role_change_applies_to_existing_token(client, db_helper):
    user_id, token = db_helper.create_user("alice@example.com")
    assert client.get("/api/v1/tasks/stats", headers=auth_header(token)).status_code == 403

    db_helper.update_user(user_id, role=UserRole.ADMIN)

    assert client.get("/api/v1/tasks/stats", headers=auth_header(token)).status_code == 200


# =============================================================================
# Tasks and authorization
# =============================================================================

def test_task_crud_for_owner(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")

    task = create_task(client, token, description="Quarterly numbers", priority="high")
    assert task["status"] == "pending"
    assert task["priority"] == "high"

    response = client.get(f"/api/v1/tasks/{task['id']}", headers=auth_header(token))
    assert response.status_code == 200

    response = client.put(
        f"/api/v1/tasks/{task['id']}",
        json={"status": "completed"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["title"] == "Write report"

    response = client.delete(f"/api/v1/tasks/{task['id']}", headers=auth_header(token))
    assert response.status_code == 200

    response = client.get(f"/api/v1/tasks/{task['id']}", headers=auth_header(token))
    assert response.status_code == 404


def test_user_cannot_touch_other_users_task(client, db_helper):
    _, alice = db_helper.create_user("alice@example.com")
    _, bob = db_helper.create_user("bob@example.com")
    task = create_task(client, alice)
    url = f"/api/v1/tasks/{task['id']}"

    assert client.get(url, headers=auth_header(bob)).status_code == 403
    assert client.put(url, json={"title": "Hijacked"}, headers=auth_header(bob)).status_code == 403
    assert client.delete(url, headers=auth_header(bob)).status_code == 403

    response = client.get(url, headers=auth_header(alice))
    assert response.json()["title"] == "Write report"


def test_admin_can_modify_any_task(client, db_helper):
    _, alice = db_helper.create_user("alice@example.com")
    _, admin = db_helper.create_user("root@example.com", role=UserRole.ADMIN)
    task = create_task(client, alice)

    response = client.put(
        f"/api/v1/tasks/{task['id']}",
        json={"priority": "low"},
        headers=auth_header(admin),
    )
    assert response.status_code == 200
    assert response.json()["priority"] == "low"
    assert response.json()["owner_id"] == task["owner_id"]


def test_list_is_scoped_by_role(client, db_helper):
    _, alice = db_helper.create_user("alice@example.com")
    _, bob = db_helper.create_user("bob@example.com")
    _, admin = db_helper.create_user("root@example.com", role=UserRole.ADMIN)

    create_task(client, alice, title="Alice 1")
    create_task(client, alice, title="Alice 2", status="in-progress")
    create_task(client, bob, title="Bob 1")

    alice_list = client.get("/api/v1/tasks", headers=auth_header(alice)).json()
    assert alice_list["total"] == 2
    assert {t["title"] for t in alice_list["items"]} == {"Alice 1", "Alice 2"}

    admin_list = client.get("/api/v1/tasks", headers=auth_header(admin)).json()
    assert admin_list["total"] == 3

    filtered = client.get(
        "/api/v1/tasks",
        params={"status": "in-progress"},
        headers=auth_header(alice),
    ).json()
    assert [t["title"] for t in filtered["items"]] == ["Alice 2"]


def test_list_pagination(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")
    for i in range(5):
        create_task(client, token, title=f"Task {i}")

    page = client.get("/api/v1/tasks", params={"page": 2, "limit": 2}, headers=auth_header(token)).json()
    assert page["total"] == 5
    assert page["pages"] == 3
    assert page["page"] == 2
    assert len(page["items"]) == 2

    response = client.get("/api/v1/tasks", params={"limit": 0}, headers=auth_header(token))
    assert response.status_code == 422


def test_stats_admin_only(client, db_helper):
    _, alice = db_helper.create_user("alice@example.com")
    _, admin = db_helper.create_user("root@example.com", role=UserRole.ADMIN)
    create_task(client, alice, priority="high")
    create_task(client, alice, status="completed")

    response = client.get("/api/v1/tasks/stats", headers=auth_header(alice))
    assert response.status_code == 403
    assert "admin" in response.json()["detail"]

    response = client.get("/api/v1/tasks/stats", headers=auth_header(admin))
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_tasks"] == 2
    assert stats["by_status"] == {"pending": 1, "completed": 1}
    assert stats["by_priority"] == {"high": 1, "medium": 1}


def test_tasks_require_authentication(client):
    assert client.get("/api/v1/tasks").status_code == 401
    assert client.post("/api/v1/tasks", json={"title": "x"}).status_code == 401


def test_task_validation(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")

    response = client.post("/api/v1/tasks", json={"title": ""}, headers=auth_header(token))
    assert response.status_code == 422

    response = client.post(
        "/api/v1/tasks",
        json={"title": "ok", "status": "unknown"},
        headers=auth_header(token),
    )
    assert response.status_code == 422

    task = create_task(client, token)
    response = client.put(
        f"/api/v1/tasks/{task['id']}",
        json={"title": None},
        headers=auth_header(token),
    )
    assert response.status_code == 422


def test_missing_task_is_404(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")
    response = client.get("/api/v1/tasks/999", headers=auth_header(token))
    assert response.status_code == 404


def test_oversized_task_id_is_rejected(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")
    url = "/api/v1/tasks/99999999999999999999999"

    assert client.get(url, headers=auth_header(token)).status_code == 422
    assert client.put(url, json={"title": "x"}, headers=auth_header(token)).status_code == 422
    assert client.delete(url, headers=auth_header(token)).status_code == 422
    assert client.get("/api/v1/tasks/0", headers=auth_header(token)).status_code == 422


def test_title_must_have_content_after_trimming(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")

    response = client.post("/api/v1/tasks", json={"title": "   "}, headers=auth_header(token))
    assert response.status_code == 422

    task = create_task(client, token, title="  Padded  ")
    assert task["title"] == "Padded"

    response = client.put(
        f"/api/v1/tasks/{task['id']}",
        json={"title": "  "},
        headers=auth_header(token),
    )
    assert response.status_code == 422


def test_task_text_is_stored_verbatim(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")

    task = create_task(client, token, title="<>", description='Don\'t forget "milk"; 2 < 3')
    assert task["title"] == "<>"

    response = client.get(f"/api/v1/tasks/{task['id']}", headers=auth_header(token))
    assert response.json()["title"] == "<>"
    assert response.json()["description"] == 'Don\'t forget "milk"; 2 < 3'

    task = create_task(client, token, title='Don\'t forget "milk"')
    assert task["title"] == 'Don\'t forget "milk"'


def test_register_name_length_applies_after_trimming(client):
    assert register(client, name="  A  ").status_code == 422

    response = register(client, name="  O'Brien  ")
    assert response.status_code == 201
    assert response.json()["user"]["name"] == "O'Brien"


def parse_timestamp(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_timestamps_are_utc(client, db_helper):
    _, token = db_helper.create_user("alice@example.com")

    task = create_task(client, token, due_date="2030-01-01T12:00:00+02:00")
    assert parse_timestamp(task["created_at"]).utcoffset() == timedelta(0)
    assert parse_timestamp(task["updated_at"]).utcoffset() == timedelta(0)

    fetched = client.get(f"/api/v1/tasks/{task['id']}", headers=auth_header(token)).json()
    assert parse_timestamp(fetched["created_at"]).utcoffset() == timedelta(0)
    assert parse_timestamp(fetched["due_date"]) == datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)

    me = client.get("/api/v1/auth/me", headers=auth_header(token)).json()
    assert parse_timestamp(me["created_at"]).utcoffset() == timedelta(0)
