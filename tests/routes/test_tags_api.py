from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from crm_app.models import Tag, db


def _add_tag(organization_id, name):
    tag = Tag(organization_id=organization_id, name=name)
    db.session.add(tag)
    db.session.commit()
    return tag


def test_list_tags_returns_current_tenant_tags_sorted(client, placeholder_organization, test_organization):
    _add_tag(placeholder_organization.id, "vip")
    _add_tag(placeholder_organization.id, "enterprise")
    _add_tag(test_organization.id, "other-tenant")

    response = client.get("/api/tags")

    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert [tag["name"] for tag in data["data"]] == ["enterprise", "vip"]
    assert all(set(tag) == {"id", "name"} for tag in data["data"])


def test_list_tags_for_logged_in_user_uses_their_organization(user_client, test_user, placeholder_organization):
    _add_tag(placeholder_organization.id, "placeholder-tag")
    _add_tag(test_user.organization_id, "beta-tag")

    response = user_client.get("/api/tags")

    assert [tag["name"] for tag in response.get_json()["data"]] == ["beta-tag"]


def test_list_tags_reflects_imported_tags(client, placeholder_organization):
    client.post(
        "/api/contacts/bulk-create",
        json={"contacts": [{"email": "a@example.org", "tags": "zeta, alpha"}], "commonTags": ["alpha"]},
    )

    response = client.get("/api/tags")

    assert [tag["name"] for tag in response.get_json()["data"]] == ["alpha", "zeta"]


def test_list_tags_database_error_returns_500(client):
    with patch(
        "crm_app.routes.tags.db.session.execute",
        side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
    ):
        response = client.get("/api/tags")

    assert response.status_code == 500
    assert response.get_json()["success"] is False
