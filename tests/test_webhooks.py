# tests/test_webhooks.py

from fastapi.testclient import TestClient


def webhook_row(**overrides):
    row = {
        "id": "wh-1",
        "tenant_id": "tenant-1",
        "organization_id": "org-company",
        "url": "https://hooks.example.com/portal",
        "events": ["document.shared"],
        "enabled": True,
        "secret": "whsec_do_not_leak",
        "created_by": "user-admin",
    }
    row.update(overrides)
    return row


def test_list_never_returns_secret(client: TestClient, login, supabase, company_user):
    login(company_user)
    supabase.respond("webhooks", [webhook_row()])

    response = client.get("/webhooks")

    assert response.status_code == 200
    webhooks = response.json()["webhooks"]
    assert webhooks[0]["url"] == "https://hooks.example.com/portal"
    assert "secret" not in webhooks[0]
    assert "whsec_do_not_leak" not in response.text


def test_company_user_cannot_update_webhook(client: TestClient, login, supabase, company_user):
    login(company_user)
    supabase.respond("webhooks", [webhook_row()])

    assert client.patch("/webhooks/wh-1", json={"enabled": False}).status_code == 403


def test_admin_updates_webhook(client: TestClient, login, supabase, company_admin):
    login(company_admin)
    supabase.respond("webhooks", [webhook_row()], [webhook_row(enabled=False)])

    response = client.patch("/webhooks/wh-1", json={"enabled": False})

    assert response.status_code == 200
    assert response.json()["webhook"]["enabled"] is False
    assert "secret" not in response.json()["webhook"]


def test_admin_of_other_org_cannot_delete(client: TestClient, login, supabase, company_admin):
    login(company_admin)
    supabase.respond("webhooks", [webhook_row(organization_id="org-other")])

    assert client.delete("/webhooks/wh-1").status_code == 403
    assert supabase.queries_for("webhooks", "delete") == []


def test_admin_deletes_webhook(client: TestClient, login, supabase, company_admin):
    login(company_admin)
    supabase.respond("webhooks", [webhook_row()])

    assert client.delete("/webhooks/wh-1").json() == {"success": True}


def test_admin_registers_webhook_and_sees_secret_once(client: TestClient, login, supabase, company_admin):
    login(company_admin)
    supabase.respond("webhooks", [webhook_row(id="wh-2", secret="stored")])

    response = client.post(
        "/webhooks/",
        json={"url": "https://hooks.example.com/new", "events": ["payment.created"]},
    )

    assert response.status_code == 201
    (inserted,) = supabase.queries_for("webhooks", "insert")[0].args_for("insert")[0]
    assert inserted["created_by"] == "user-admin"
    assert inserted["organization_id"] == "org-company"
    assert inserted["tenant_id"] == "tenant-1"
    assert len(inserted["secret"]) == 64
    assert response.json()["webhook"]["secret"] == inserted["secret"]
    assert response.json()["webhook"]["id"] == "wh-2"


def test_company_user_cannot_register_webhook(client: TestClient, login, supabase, company_user):
    login(company_user)

    response = client.post(
        "/webhooks/",
        json={"url": "https://hooks.example.com/new", "events": ["payment.created"]},
    )

    assert response.status_code == 403
    assert supabase.queries_for("webhooks", "insert") == []


def test_webhook_needs_http_url_and_events(client: TestClient, login, supabase, company_admin):
    login(company_admin)

    assert client.post("/webhooks/", json={"url": "ftp://x", "events": ["a"]}).status_code == 422
    assert client.post(
        "/webhooks/", json={"url": "https://hooks.example.com", "events": []}
    ).status_code == 422
    assert supabase.queries_for("webhooks", "insert") == []
