import pytest
from unittest.mock import AsyncMock, patch

from delivery.core.exceptions.error_messages import ErrorKey
from delivery.core.exceptions.exception_classes import AppException, ProvisioningException
from delivery.core.tenant_scope import get_store_binding
from delivery.db.migrations import MigrationOptions
from delivery.db.multi_tenant_session import MultiTenantSessionManager
from delivery.schemas.restaurant import RestaurantRead
from delivery.services.restaurant_updater import RestaurantUpdaterService
from delivery.services.tenant_provisioning import (
    ProvisioningStage,
    TenantProvisioner,
    is_placeholder,
    tenant_database_name,
)


@pytest.fixture
def pending_restaurant():
    return RestaurantRead(
        id=3,
        name="Sushi Bar",
        contact_phone="11911112222",
        slug="sushi",
        database_name="tenant_pending_0123456789abcdef0123456789abcdef",
        active=True,
    )


@pytest.fixture
def mock_updater():
    updater = AsyncMock(spec=RestaurantUpdaterService)

    async def update(dto):
        return RestaurantRead(
            id=dto.id,
            name="Sushi Bar",
            contact_phone="11911112222",
            slug="sushi",
            database_name=dto.database_name,
            active=True,
        )

    updater.update.side_effect = update
    return updater


@pytest.fixture
def mock_storage():
    storage = AsyncMock(spec=MultiTenantSessionManager)
    storage.create_tenant_database.return_value = True
    return storage


@pytest.fixture
def provisioner(mock_updater, mock_storage):
    return TenantProvisioner(updater=mock_updater, storage=mock_storage)


@pytest.fixture
def mock_apply_migrations():
    with patch(
        "delivery.services.tenant_provisioning.apply_migrations", new_callable=AsyncMock
    ) as apply_migrations:
        yield apply_migrations


def test_database_naming():
    assert tenant_database_name(12) == "tenant_12"
    assert is_placeholder("tenant_pending_abc")
    assert not is_placeholder("tenant_12")


def test_stage_actions():
    assert ProvisioningStage.STORE_CREATED.action == "create database"
    assert ProvisioningStage.MIGRATED.action == "run migrations"


@pytest.mark.asyncio
async def test_provision_runs_all_steps(
    provisioner, pending_restaurant, mock_updater, mock_storage, mock_apply_migrations
):
    result = await provisioner.provision(pending_restaurant)

    dto = mock_updater.update.call_args.args[0]
    assert dto.model_dump(exclude_unset=True) == {"id": 3, "database_name": "tenant_3"}
    mock_storage.create_tenant_database.assert_called_once_with("tenant_3")
    mock_apply_migrations.assert_called_once_with("tenant_3", MigrationOptions())
    assert result.database_name == "tenant_3"


@pytest.mark.asyncio
async def test_migrations_run_with_the_tenant_store_bound(
    provisioner, pending_restaurant, mock_apply_migrations
):
    seen = []
    mock_apply_migrations.side_effect = lambda name, options: seen.append(get_store_binding())

    await provisioner.provision(pending_restaurant)

    assert seen[0].database_name == "tenant_3"
    assert get_store_binding() is None


@pytest.mark.asyncio
async def test_resume_skips_final_name(
    provisioner, pending_restaurant, mock_updater, mock_storage, mock_apply_migrations
):
    restaurant = pending_restaurant.model_copy(update={"database_name": "tenant_3"})
    mock_storage.create_tenant_database.return_value = False  # created by the failed run

    result = await provisioner.provision(restaurant)

    mock_updater.update.assert_not_called()
    mock_storage.create_tenant_database.assert_called_once_with("tenant_3")
    mock_apply_migrations.assert_called_once()
    assert result.database_name == "tenant_3"


@pytest.mark.asyncio
async def test_create_database_failure(
    provisioner, pending_restaurant, mock_storage, mock_apply_migrations
):
    mock_storage.create_tenant_database.side_effect = RuntimeError("permission denied")

    with pytest.raises(ProvisioningException) as exc_info:
        await provisioner.provision(pending_restaurant)

    error = exc_info.value
    assert error.stage == ProvisioningStage.STORE_CREATED
    assert error.database_name == "tenant_3"
    assert str(error) == "Failed to create database for tenant Sushi Bar (tenant_3): permission denied"
    assert error.error_key == ErrorKey.PROVISIONING_FAILED
    mock_apply_migrations.assert_not_called()


@pytest.mark.asyncio
async def test_migration_failure(provisioner, pending_restaurant, mock_apply_migrations):
    mock_apply_migrations.side_effect = RuntimeError("duplicate table")

    with pytest.raises(ProvisioningException) as exc_info:
        await provisioner.provision(pending_restaurant)

    assert exc_info.value.stage == ProvisioningStage.MIGRATED
    assert "run migrations" in str(exc_info.value)
    assert get_store_binding() is None


@pytest.mark.asyncio
async def test_final_name_failure(
    provisioner, pending_restaurant, mock_updater, mock_storage
):
    mock_updater.update.side_effect = AppException(ErrorKey.UNABLE_TO_SAVE, 422)

    with pytest.raises(ProvisioningException) as exc_info:
        await provisioner.provision(pending_restaurant)

    assert exc_info.value.stage == ProvisioningStage.NAMED_FINAL
    mock_storage.create_tenant_database.assert_not_called()
