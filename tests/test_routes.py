import pytest

from agency_finance.routes import billing_routes
from agency_finance.services import auth_service


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}


def test_unknown_route_is_json_404(client):
    r = client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert r.get_json()["error"] == "not found"


def test_wrong_method_is_json_405(client):
    r = client.delete("/health")
    assert r.status_code == 405


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/billing/matrix?year=2024&month=5"),
        ("get", "/api/clients/"),
        ("post", "/api/fees/preview"),
        ("get", "/api/pl/summary/2024"),
    ],
)
def test_token_required(client, method, path):
    r = getattr(client, method)(path)
    assert r.status_code == 401


@pytest.mark.parametrize(
    "path",
    [
        "/api/billing/matrix/save",
        "/api/billing/calculate",
        "/api/events/invoice-issued",
        "/api/expenses/proration/execute",
        "/api/partners/commissions/calculate",
    ],
)
def test_viewer_cannot_write(client, auth_headers, path):
    r = client.post(path, json={}, headers=auth_headers("viewer"))
    assert r.status_code == 403
    assert r.get_json()["have"] == "viewer"


def test_token_without_role_is_rejected(client, auth_headers):
    r = client.post("/api/fees/preview", json={"investment": 1}, headers=auth_headers(None))
    assert r.status_code == 403


@pytest.mark.parametrize("path", ["/api/periods/close", "/api/periods/reopen"])
def test_only_admin_closes_periods(client, auth_headers, path):
    r = client.post(path, json={"fiscal_year": 2024, "fiscal_month": 5}, headers=auth_headers("manager"))
    assert r.status_code == 403


def test_users_are_admin_only(client, auth_headers):
    r = client.get("/api/users/", headers=auth_headers("manager"))
    assert r.status_code == 403


def test_bad_period_is_400(client, auth_headers):
    r = client.get("/api/billing/matrix?year=2024&month=13", headers=auth_headers("viewer"))
    assert r.status_code == 400
    assert "fiscal_month" in r.get_json()["error"]


def test_fee_preview_returns_numbers(client, auth_headers):
    r = client.post(
        "/api/fees/preview",
        json={"investment": 10000, "platform_count": 2},
        headers=auth_headers("viewer"),
    )
    assert r.status_code == 200
    data = r.get_json()
    assert data["fee_percentage"] == 10.0
    assert data["platform_costs"] == 1000.0
    assert data["fee_rounded"] == 2000.0


def test_fee_preview_rejects_bad_config(client, auth_headers):
    r = client.post(
        "/api/fees/preview",
        json={"investment": 100, "fee_config": {"fee_type": "variable", "variable_ranges": []}},
        headers=auth_headers("viewer"),
    )
    assert r.status_code == 400


def test_matrix_save_passes_body_through(client, auth_headers, monkeypatch):
    seen = {}

    def fake_save(body):
        seen.update(body)
        return 403, {"error": "period 2024-05 is closed"}

    monkeypatch.setattr(billing_routes.billing_service, "save_matrix_cell", fake_save)
    r = client.post(
        "/api/billing/matrix/save",
        json={"year": 2024, "month": 5, "field": "investment", "value": 10},
        headers=auth_headers("manager"),
    )
    assert r.status_code == 403
    assert seen["field"] == "investment"


def test_reconcile_runs_inline_without_queue(client, auth_headers, monkeypatch):
    monkeypatch.setattr(
        billing_routes, "enqueue_reconcile", lambda y, m: {"queued": False, "summary": {"fiscal_year": y, "fiscal_month": m}}
    )
    r = client.post("/api/billing/reconcile", json={"fiscal_year": 2024}, headers=auth_headers("admin"))
    assert r.status_code == 200
    assert r.get_json()["summary"] == {"fiscal_year": 2024, "fiscal_month": None}


def test_reconcile_queued_is_202(client, auth_headers, monkeypatch):
    monkeypatch.setattr(billing_routes, "enqueue_reconcile", lambda y, m: {"queued": True, "job_id": "j1"})
    r = client.post(
        "/api/billing/reconcile", json={"fiscal_year": 2024, "fiscal_month": 3}, headers=auth_headers("admin")
    )
    assert r.status_code == 202


def test_login_with_unknown_email(client, monkeypatch):
    monkeypatch.setattr(auth_service, "get_user_by_email", lambda email: None)
    r = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "x"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Invalid credentials"


def _user(**kw):
    user = {
        "id": "99999999-9999-9999-9999-999999999999",
        "email": "ana@example.com",
        "full_name": "Ana",
        "role": "manager",
        "is_active": True,
        "password_hash": auth_service.hash_password("correct-horse"),
    }
    user.update(kw)
    return user


def test_login_wrong_password(client, monkeypatch):
    monkeypatch.setattr(auth_service, "get_user_by_email", lambda email: _user())
    r = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "nope"})
    assert r.status_code == 401


def test_login_disabled_account(client, monkeypatch):
    monkeypatch.setattr(auth_service, "get_user_by_email", lambda email: _user(is_active=False))
    r = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "correct-horse"})
    assert r.status_code == 403


def test_login_then_me_carries_role(client, monkeypatch):
    emails = []
    monkeypatch.setattr(auth_service, "get_user_by_email", lambda email: emails.append(email) or _user())
    r = client.post("/api/auth/login", json={"email": " Ana@Example.com ", "password": "correct-horse"})
    assert r.status_code == 200
    data = r.get_json()
    assert emails == ["ana@example.com"]
    assert data["role"] == "manager"

    me = client.get("/api/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.get_json() == {"user_id": data["id"], "role": "manager"}


def test_refresh_keeps_role(client, auth_headers):
    r = client.post("/api/auth/refresh", headers=auth_headers("admin", refresh=True))
    assert r.status_code == 200
    token = r.get_json()["access_token"]
    me = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert me.get_json()["role"] == "admin"


def test_access_token_cannot_refresh(client, auth_headers):
    r = client.post("/api/auth/refresh", headers=auth_headers("admin"))
    assert r.status_code == 422


def test_login_is_rate_limited(client, monkeypatch):
    from agency_finance.routes import auth_routes
    from agency_finance.utils import rate_limit

    monkeypatch.setenv("RATE_LIMIT_ENABLED", "1")
    monkeypatch.setattr(auth_service, "get_user_by_email", lambda email: None)
    rate_limit.reset()
    try:
        codes = [
            client.post("/api/auth/login", json={"email": "a@b.co", "password": "x"}).status_code
            for _ in range(auth_routes.AUTH_LIMIT + 1)
        ]
    finally:
        rate_limit.reset()
    assert codes[:-1] == [401] * auth_routes.AUTH_LIMIT
    assert codes[-1] == 429
