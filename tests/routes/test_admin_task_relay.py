from crm_app.routes.admin import extract_task_payload
from crm_app.services.task_relay_cache import get_task_relay_cache, init_task_relay_cache

TASKS_URL = "/api/admin/tasks-receive"


def test_extract_task_payload_object_form():
    name, tasks = extract_task_payload({"organizationName": "Acme", "tasks": [{"id": 1}]})
    assert name == "Acme"
    assert tasks == [{"id": 1}]


def test_extract_task_payload_list_forms():
    assert extract_task_payload([{"clientName": "Acme", "id": 1}, {"id": 2}]) == (
        "Acme",
        [{"clientName": "Acme", "id": 1}, {"id": 2}],
    )
    assert extract_task_payload([{"organizationName": "Acme", "tasks": [{"id": 9}]}]) == ("Acme", [{"id": 9}])
    assert extract_task_payload([{"id": 1}]) == (None, [{"id": 1}])
    assert extract_task_payload("text") == (None, [])


def test_push_tasks_then_admin_reads_them(client, admin_client):
    response = client.post(TASKS_URL, json={"organizationName": "Acme", "tasks": [{"id": 1}, {"id": 2}]})

    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "message": "Successfully received 2 tasks for Acme",
        "organization": "Acme",
        "count": 2,
    }

    read = admin_client.get(TASKS_URL, query_string={"organizationName": "Acme"})
    assert read.status_code == 200
    assert read.get_json() == [{"id": 1}, {"id": 2}]


def test_push_without_organization_name_returns_400(client):
    response = client.post(TASKS_URL, json=[{"id": 1}])

    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing organization name"


def test_push_without_tasks_returns_400(client):
    response = client.post(TASKS_URL, json={"organizationName": "Acme", "tasks": []})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing tasks"


def test_push_invalid_json_returns_400(client):
    response = client.post(TASKS_URL, data="not json", content_type="application/json")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid JSON"


def test_read_requires_admin(client, user_client):
    assert client.get(TASKS_URL, query_string={"organizationName": "Acme"}).status_code == 403
    assert user_client.get(TASKS_URL, query_string={"organizationName": "Acme"}).status_code == 403


def test_read_requires_organization_name(admin_client):
    response = admin_client.get(TASKS_URL)

    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing parameter"


def test_read_unknown_organization_returns_empty_list(admin_client):
    response = admin_client.get(TASKS_URL, query_string={"organizationName": "Nobody"})

    assert response.status_code == 200
    assert response.get_json() == []


def test_expired_tasks_are_not_returned(app, client, admin_client, fake_clock):
    init_task_relay_cache(app, clock=fake_clock)
    client.post(TASKS_URL, json={"organizationName": "Acme", "tasks": [{"id": 1}]})

    fake_clock.advance(301)

    response = admin_client.get(TASKS_URL, query_string={"organizationName": "Acme"})
    assert response.get_json() == []
    assert get_task_relay_cache(app).get("Acme") is None
