import os
import sys
from pathlib import Path

# Tests run against file backed SQLite stores in a temporary directory
os.environ["DB_DRIVER"] = "sqlite"
os.environ["LOG_TO_FILE"] = "false"
os.environ["AUTO_MIGRATE"] = "false"

# Add the project root directory to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from httpx import ASGITransport, AsyncClient

from delivery.core.config.settings import settings
from delivery.db.migrations import run_central_migrations
from delivery.db.models.restaurant import RestaurantModel
from delivery.db.multi_tenant_session import multi_tenant_manager
from delivery.repositories.restaurants import RestaurantRepository


@pytest.fixture(autouse=True)
async def sqlite_data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "SQLITE_DATA_DIR", str(tmp_path))
    yield tmp_path
    await multi_tenant_manager.close_all()


@pytest.fixture
async def central_db(sqlite_data_dir):
    await run_central_migrations()
    return settings.DB_NAME


@pytest.fixture
async def central_session(central_db):
    async with multi_tenant_manager.get_central_session_factory()() as session:
        yield session


@pytest.fixture
def restaurant_repository(central_session):
    return RestaurantRepository(central_session)


@pytest.fixture
def add_restaurant(restaurant_repository):
    """Insert a registry row directly, without provisioning."""
    counter = {"n": 0}

    async def _add(**fields) -> RestaurantModel:
        counter["n"] += 1
        data = {
            "name": f"Restaurant {counter['n']}",
            "contact_phone": "11999990000",
            "slug": f"restaurant{counter['n']}",
            "database_name": f"tenant_pending_{counter['n']:032x}",
        }
        data.update(fields)
        return await restaurant_repository.create(RestaurantModel(**data))

    return _add


@pytest.fixture
def app_def(central_db):
    from delivery import create_app

    return create_app()


@pytest.fixture
async def client(app_def):
    transport = ASGITransport(app=app_def)
    async with AsyncClient(transport=transport, base_url="http://central.test") as client:
        yield client


@pytest.fixture
def restaurant_data():
    return {
        "name": "Burger House",
        "contact_phone": "11988887777",
        "slug": "burger",
    }


@pytest.fixture
async def provisioned_restaurant(client, restaurant_data):
    response = await client.post("/api/central/restaurants", json=restaurant_data)
    assert response.status_code == 201, response.text
    return response.json()["data"]
