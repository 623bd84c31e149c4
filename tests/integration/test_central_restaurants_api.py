import asyncio
import os

import pytest
from sqlalchemy import inspect

from delivery.core.config.settings import settings
from delivery.db.multi_tenant_session import multi_tenant_manager


@pytest.mark.asyncio
async def test_create_restaurant_provisions_tenant(client, restaurant_data):
    response = await client.post("/api/central/restaurants", json=restaurant_data)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["id"] == 1
    assert data["name"] == restaurant_data["name"]
    assert data["slug"] == "burger"
    assert data["active"] is True
    assert data["domain"] is None
    assert data["database_name"] == "tenant_1"

    assert os.path.exists(settings.get_sqlite_path("tenant_1"))
    engine = multi_tenant_manager.get_engine("tenant_1")
    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    assert {"categories", "products"} <= set(tables)


@pytest.mark.asyncio
async def test_ids_map_to_distinct_databases(client, restaurant_data):
    first = await client.post("/api/central/restaurants", json=restaurant_data)
    second = await client.post(
        "/api/central/restaurants", json={**restaurant_data, "slug": "pizza", "name": "Pizza Place"}
    )

    assert first.json()["data"]["database_name"] == "tenant_1"
    assert second.json()["data"]["database_name"] == "tenant_2"


@pytest.mark.asyncio
async def test_concurrent_creates_all_provision(client, restaurant_data):
    responses = await asyncio.gather(
        *(
            client.post(
                "/api/central/restaurants",
                json={**restaurant_data, "slug": f"shop{i}", "name": f"Shop {i}"},
            )
            for i in range(6)
        )
    )

    assert [r.status_code for r in responses] == [201] * 6
    created = [r.json()["data"] for r in responses]
    assert len({c["id"] for c in created}) == 6
    for restaurant in created:
        assert restaurant["database_name"] == f"tenant_{restaurant['id']}"
        engine = multi_tenant_manager.get_engine(restaurant["database_name"])
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert {"categories", "products"} <= set(tables)


@pytest.mark.asyncio
async def test_duplicate_slug(client, provisioned_restaurant, restaurant_data):
    response = await client.post("/api/central/restaurants", json=restaurant_data)

    assert response.status_code == 422
    assert response.json()["errors"] == {"slug": ["The slug has already been taken."]}
    assert not os.path.exists(settings.get_sqlite_path("tenant_2"))


@pytest.mark.asyncio
async def test_missing_required_fields(client):
    response = await client.post("/api/central/restaurants", json={"name": "No phone"})

    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "Validation failed"
    assert {"contact_phone", "slug"} <= set(body["errors"])


@pytest.mark.asyncio
async def test_contact_phone_too_long(client, restaurant_data):
    response = await client.post(
        "/api/central/restaurants", json={**restaurant_data, "contact_phone": "1" * 21}
    )

    assert response.status_code == 422
    assert "contact_phone" in response.json()["errors"]


@pytest.mark.asyncio
async def test_empty_domain_is_a_field_error(client, restaurant_data):
    response = await client.post("/api/central/restaurants", json={**restaurant_data, "domain": ""})

    assert response.status_code == 422
    assert "domain" in response.json()["errors"]
    assert not os.path.exists(settings.get_sqlite_path("tenant_1"))


@pytest.mark.asyncio
async def test_patch_empty_domain_is_a_field_error(client, provisioned_restaurant):
    response = await client.patch(
        f"/api/central/restaurants/{provisioned_restaurant['id']}", json={"domain": ""}
    )

    assert response.status_code == 422
    assert "domain" in response.json()["errors"]


@pytest.mark.asyncio
async def test_patch_changes_only_sent_fields(client, provisioned_restaurant):
    restaurant_id = provisioned_restaurant["id"]

    response = await client.patch(
        f"/api/central/restaurants/{restaurant_id}", json={"name": "Burger Palace"}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Burger Palace"
    assert data["slug"] == provisioned_restaurant["slug"]
    assert data["contact_phone"] == provisioned_restaurant["contact_phone"]
    assert data["database_name"] == "tenant_1"


@pytest.mark.asyncio
async def test_patch_unknown_restaurant(client, central_db):
    response = await client.patch("/api/central/restaurants/999", json={"name": "Ghost"})

    assert response.status_code == 404
    assert response.json()["message"] == "Restaurant 999 not found."


@pytest.mark.asyncio
async def test_patch_duplicate_domain(client, restaurant_data):
    await client.post("/api/central/restaurants", json={**restaurant_data, "domain": "burger.com.br"})
    other = await client.post(
        "/api/central/restaurants", json={**restaurant_data, "slug": "pizza"}
    )

    response = await client.patch(
        f"/api/central/restaurants/{other.json()['data']['id']}", json={"domain": "burger.com.br"}
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"domain": ["The domain has already been taken."]}


@pytest.mark.asyncio
async def test_patch_rejects_null_for_required_field(client, provisioned_restaurant):
    response = await client.patch(
        f"/api/central/restaurants/{provisioned_restaurant['id']}", json={"slug": None}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_provisioning_failure_leaves_pending_restaurant(client, restaurant_data, monkeypatch):
    async def refuse(database_name):
        raise RuntimeError("permission denied")

    monkeypatch.setattr(multi_tenant_manager, "create_tenant_database", refuse)

    response = await client.post("/api/central/restaurants", json=restaurant_data)

    assert response.status_code == 422
    assert response.json()["message"] == "Unable to save."

    # persisted and renamed, but without a database
    listing = await client.patch("/api/central/restaurants/1", json={})
    assert listing.json()["data"]["database_name"] == "tenant_1"
    assert not os.path.exists(settings.get_sqlite_path("tenant_1"))


@pytest.mark.asyncio
async def test_patch_contact_phone_only(client, provisioned_restaurant):
    response = await client.patch(
        f"/api/central/restaurants/{provisioned_restaurant['id']}", json={"contact_phone": "999"}
    )

    data = response.json()["data"]
    assert data["contact_phone"] == "999"
    unchanged = {k: v for k, v in provisioned_restaurant.items() if k not in ("contact_phone", "updated_at")}
    assert {k: data[k] for k in unchanged} == unchanged
