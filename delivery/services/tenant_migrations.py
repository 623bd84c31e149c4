import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from injector import inject

from delivery.core.tenant_scope import bound_store
from delivery.db.migrations import MigrationOptions, apply_migrations
from delivery.repositories.restaurants import RestaurantRepository
from delivery.services.tenant_provisioning import is_placeholder

logger = logging.getLogger(__name__)


@dataclass
class MigrationBatchReport:
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)  # (database, reason)

    @property
    def ok(self) -> bool:
        return not self.failed


@inject
class TenantMigrationService:
    """Re-applies the tenant migration set to every active restaurant"""

    def __init__(self, repository: RestaurantRepository):
        self.repository = repository

    async def migrate_all(
        self, options: MigrationOptions = MigrationOptions()
    ) -> MigrationBatchReport:
        report = MigrationBatchReport()
        restaurants = await self.repository.get_active()
        logger.info(f"Migrating {len(restaurants)} tenant database(s)")

        for restaurant in restaurants:
            database_name = restaurant.database_name
            if is_placeholder(database_name):
                reason = f"restaurant {restaurant.id} is not provisioned yet"
                logger.warning(f"Skipping {database_name}: {reason}")
                report.failed.append((database_name, reason))
                continue

            try:
                with bound_store(database_name):
                    await apply_migrations(database_name, options)
                report.succeeded.append(database_name)
            except Exception as e:
                logger.error(f"Migration failed for {database_name}: {e}")
                report.failed.append((database_name, str(e)))

        logger.info(
            f"Tenant migrations finished: {len(report.succeeded)} ok, {len(report.failed)} failed"
        )
        return report
