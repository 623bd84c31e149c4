import logging
from contextvars import Token
from typing import Tuple

from injector import inject

from delivery.core.exceptions.exception_classes import TenantNotFoundException
from delivery.core.host_resolver import TenantLookupKey
from delivery.core.tenant_scope import bind_store
from delivery.db.models.restaurant import RestaurantModel
from delivery.repositories.restaurants import RestaurantRepository

logger = logging.getLogger(__name__)


@inject
class TenantRouter:
    """Finds the restaurant behind a lookup key and binds its store"""

    def __init__(self, repository: RestaurantRepository):
        self.repository = repository

    async def find(self, key: TenantLookupKey) -> RestaurantModel:
        restaurant = await self.repository.find_by_domain_or_slug(key.domain, key.slug)
        if restaurant is None:
            raise TenantNotFoundException(f"No restaurant for host {key.domain!r}")
        if not restaurant.active:
            raise TenantNotFoundException(f"Restaurant {restaurant.id} is inactive")
        return restaurant

    async def route(self, key: TenantLookupKey) -> Tuple[RestaurantModel, Token]:
        """
        Bind the store of the matching active restaurant to the current context.
        The caller resets the binding with the returned token.
        """
        restaurant = await self.find(key)
        token = bind_store(restaurant.database_name)
        logger.debug(f"Routed {key.domain} to {restaurant.database_name}")
        return restaurant, token
