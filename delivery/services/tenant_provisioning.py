import logging
from enum import Enum
from typing import Union

from injector import inject

from delivery.core.config.settings import settings
from delivery.core.exceptions.exception_classes import ProvisioningException
from delivery.core.tenant_scope import bound_store
from delivery.db.migrations import MigrationOptions, apply_migrations
from delivery.db.models.restaurant import RestaurantModel
from delivery.db.multi_tenant_session import MultiTenantSessionManager, multi_tenant_manager
from delivery.schemas.restaurant import RestaurantRead, RestaurantUpdate
from delivery.services.restaurant_updater import RestaurantUpdaterService

logger = logging.getLogger(__name__)


class ProvisioningStage(str, Enum):
    DRAFT = "draft"
    PERSISTED = "persisted"
    NAMED_FINAL = "named_final"
    STORE_CREATED = "store_created"
    MIGRATED = "migrated"

    @property
    def action(self) -> str:
        return _STAGE_ACTIONS[self]


# what has to happen to reach a stage
_STAGE_ACTIONS = {
    ProvisioningStage.DRAFT: "prepare restaurant",
    ProvisioningStage.PERSISTED: "persist restaurant",
    ProvisioningStage.NAMED_FINAL: "finalize database name",
    ProvisioningStage.STORE_CREATED: "create database",
    ProvisioningStage.MIGRATED: "run migrations",
}


def tenant_database_name(restaurant_id: int) -> str:
    return f"{settings.TENANT_DATABASE_PREFIX}{restaurant_id}"


def placeholder_prefix() -> str:
    return f"{settings.TENANT_DATABASE_PREFIX}pending_"


def is_placeholder(database_name: str) -> bool:
    return database_name.startswith(placeholder_prefix())


@inject
class TenantProvisioner:
    """
    Brings a persisted restaurant to a usable tenant.

    Steps run in order: final database name, physical database, schema
    migrations. Each step is safe to repeat, so calling `provision` again for
    a restaurant whose previous run failed resumes where it stopped. Nothing
    done by an earlier step is undone when a later one fails.
    """

    def __init__(
        self,
        updater: RestaurantUpdaterService,
        storage: MultiTenantSessionManager = multi_tenant_manager,
    ):
        self.updater = updater
        self.storage = storage

    async def provision(
        self, restaurant: Union[RestaurantRead, RestaurantModel]
    ) -> RestaurantRead:
        if not isinstance(restaurant, RestaurantRead):
            restaurant = RestaurantRead.model_validate(restaurant)

        restaurant = await self.finalize_database_name(restaurant)
        await self.create_database(restaurant)
        await self.migrate_database(restaurant)

        logger.info(
            f"Provisioned tenant {restaurant.name} (id={restaurant.id}) "
            f"on database {restaurant.database_name}"
        )
        return restaurant

    async def finalize_database_name(self, restaurant: RestaurantRead) -> RestaurantRead:
        if not is_placeholder(restaurant.database_name):
            logger.debug(f"Database name of restaurant {restaurant.id} already final")
            return restaurant

        database_name = tenant_database_name(restaurant.id)
        try:
            return await self.updater.update(
                RestaurantUpdate(id=restaurant.id, database_name=database_name)
            )
        except Exception as e:
            raise self._failure(ProvisioningStage.NAMED_FINAL, restaurant, database_name, e) from e

    async def create_database(self, restaurant: RestaurantRead) -> bool:
        try:
            return await self.storage.create_tenant_database(restaurant.database_name)
        except Exception as e:
            raise self._failure(
                ProvisioningStage.STORE_CREATED, restaurant, restaurant.database_name, e
            ) from e

    async def migrate_database(
        self, restaurant: RestaurantRead, options: MigrationOptions = MigrationOptions()
    ) -> None:
        try:
            with bound_store(restaurant.database_name):
                await apply_migrations(restaurant.database_name, options)
        except Exception as e:
            raise self._failure(
                ProvisioningStage.MIGRATED, restaurant, restaurant.database_name, e
            ) from e

    @staticmethod
    def _failure(
        stage: ProvisioningStage,
        restaurant: RestaurantRead,
        database_name: str,
        cause: Exception,
    ) -> ProvisioningException:
        error = ProvisioningException(stage, restaurant.name, database_name, cause)
        logger.error(str(error), extra={"tenant": restaurant.slug})
        return error
