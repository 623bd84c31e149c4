import pytest
from unittest.mock import AsyncMock
from sqlalchemy.exc import IntegrityError

from delivery.core.exceptions.error_messages import ErrorKey
from delivery.core.exceptions.exception_classes import (
    AppException,
    ProvisioningException,
    ValidationException,
)
from delivery.db.models.restaurant import RestaurantModel
from delivery.repositories.restaurants import RestaurantRepository
from delivery.schemas.restaurant import RestaurantCreate, RestaurantRead
from delivery.services.restaurant_creator import RestaurantCreatorService
from delivery.services.tenant_provisioning import ProvisioningStage, TenantProvisioner


@pytest.fixture
def mock_repository():
    repository = AsyncMock(spec=RestaurantRepository)
    repository.exists_by_slug.return_value = False
    repository.exists_by_domain.return_value = False

    async def create(restaurant: RestaurantModel):
        restaurant.id = 1
        if restaurant.active is None:
            restaurant.active = True
        return restaurant

    repository.create.side_effect = create
    return repository


@pytest.fixture
def mock_provisioner():
    provisioner = AsyncMock(spec=TenantProvisioner)

    async def provision(restaurant: RestaurantRead):
        return restaurant.model_copy(update={"database_name": f"tenant_{restaurant.id}"})

    provisioner.provision.side_effect = provision
    return provisioner


@pytest.fixture
def creator_service(mock_repository, mock_provisioner):
    return RestaurantCreatorService(repository=mock_repository, provisioner=mock_provisioner)


@pytest.fixture
def sample_restaurant_data():
    return {
        "name": "Burger House",
        "contact_phone": "11988887777",
        "slug": "burger",
    }


@pytest.mark.asyncio
async def test_create_success(creator_service, mock_repository, mock_provisioner, sample_restaurant_data):
    result = await creator_service.create(RestaurantCreate(**sample_restaurant_data))

    mock_repository.create.assert_called_once()
    created = mock_repository.create.call_args.args[0]
    assert created.database_name.startswith("tenant_pending_")
    assert created.slug == "burger"

    mock_provisioner.provision.assert_called_once()
    persisted = mock_provisioner.provision.call_args.args[0]
    assert persisted.id == 1
    assert persisted.database_name == created.database_name

    assert result.database_name == "tenant_1"
    assert result.active is True


@pytest.mark.asyncio
async def test_placeholders_are_unique(creator_service, mock_repository, sample_restaurant_data):
    await creator_service.create(RestaurantCreate(**sample_restaurant_data))
    await creator_service.create(RestaurantCreate(**sample_restaurant_data))

    first, second = (call.args[0].database_name for call in mock_repository.create.call_args_list)
    assert first != second


@pytest.mark.asyncio
async def test_explicit_null_active_keeps_default(creator_service, mock_repository, sample_restaurant_data):
    await creator_service.create(RestaurantCreate(**sample_restaurant_data, active=None))

    created = mock_repository.create.call_args.args[0]
    assert created.active is True


@pytest.mark.asyncio
async def test_duplicate_slug(creator_service, mock_repository, mock_provisioner, sample_restaurant_data):
    mock_repository.exists_by_slug.return_value = True

    with pytest.raises(ValidationException) as exc_info:
        await creator_service.create(RestaurantCreate(**sample_restaurant_data))

    assert exc_info.value.errors == {"slug": ["The slug has already been taken."]}
    mock_repository.create.assert_not_called()
    mock_provisioner.provision.assert_not_called()


@pytest.mark.asyncio
async def test_duplicate_domain(creator_service, mock_repository, sample_restaurant_data):
    mock_repository.exists_by_domain.return_value = True

    with pytest.raises(ValidationException) as exc_info:
        await creator_service.create(
            RestaurantCreate(**sample_restaurant_data, domain="burger.com.br")
        )

    assert exc_info.value.errors == {"domain": ["The domain has already been taken."]}
    mock_repository.exists_by_domain.assert_called_once_with("burger.com.br")


@pytest.mark.asyncio
async def test_concurrent_duplicate_reported_as_field_error(creator_service, mock_repository, sample_restaurant_data):
    # the slug is free during validation but taken when inserting
    mock_repository.exists_by_slug.side_effect = [False, True]
    mock_repository.create.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE"))

    with pytest.raises(ValidationException) as exc_info:
        await creator_service.create(RestaurantCreate(**sample_restaurant_data))

    assert "slug" in exc_info.value.errors
    mock_repository.rollback.assert_called_once()


@pytest.mark.asyncio
async def test_provisioning_failure_is_reported_as_unable_to_save(
    creator_service, mock_provisioner, sample_restaurant_data
):
    mock_provisioner.provision.side_effect = ProvisioningException(
        ProvisioningStage.STORE_CREATED, "Burger House", "tenant_1", RuntimeError("permission denied")
    )

    with pytest.raises(AppException) as exc_info:
        await creator_service.create(RestaurantCreate(**sample_restaurant_data))

    assert exc_info.value.error_key == ErrorKey.UNABLE_TO_SAVE
    assert exc_info.value.status_code == 422
    assert "permission denied" in exc_info.value.error_detail
