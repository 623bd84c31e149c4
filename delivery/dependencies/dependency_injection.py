from injector import Module, provider, singleton
import logging
from sqlalchemy.ext.asyncio import AsyncSession

from fastapi_injector import request_scope
from delivery.db.multi_tenant_session import MultiTenantSessionManager, multi_tenant_manager
from delivery.repositories.restaurants import RestaurantRepository
from delivery.services.restaurant_creator import RestaurantCreatorService
from delivery.services.restaurant_updater import RestaurantUpdaterService
from delivery.services.tenant_migrations import TenantMigrationService
from delivery.services.tenant_provisioning import TenantProvisioner
from delivery.services.tenant_router import TenantRouter


logger = logging.getLogger(__name__)


class Dependencies(Module):

    # ------------------------------------------------------------------
    # PROVIDERS
    # ------------------------------------------------------------------
    @provider
    @singleton
    def provide_session_manager(self) -> MultiTenantSessionManager:
        return multi_tenant_manager

    @provider
    @request_scope
    def provide_session(
        self,
    ) -> AsyncSession:
        """
        Provide a session on the central registry database.

        Returns an AsyncSession instance managed by fastapi-injector's request scope.
        Tenant data is reached through `get_tenant_session` instead.
        """
        session_factory = multi_tenant_manager.get_central_session_factory()

        return session_factory()

    def configure(self, binder):
        binder.bind(RestaurantRepository, scope=request_scope)

        binder.bind(RestaurantUpdaterService, scope=request_scope)
        binder.bind(RestaurantCreatorService, scope=request_scope)
        binder.bind(TenantProvisioner, scope=request_scope)
        binder.bind(TenantRouter, scope=request_scope)
        binder.bind(TenantMigrationService, scope=request_scope)
