import logging
from injector import inject
from delivery.core.exceptions.error_messages import ErrorKey, get_field_message
from delivery.core.exceptions.exception_classes import AppException, ValidationException
from delivery.repositories.restaurants import RestaurantRepository
from delivery.schemas.restaurant import RestaurantRead, RestaurantUpdate
from delivery.services.saver import SavePipeline

logger = logging.getLogger(__name__)


@inject
class RestaurantUpdaterService:
    """Partial updates of registry rows; fields absent from the input are left untouched"""

    def __init__(self, repository: RestaurantRepository):
        self.repository = repository
        self.pipeline = SavePipeline(
            validate=(self._validate_exists, self._validate_unique),
            persist=self._save_entity,
            source=type(self).__name__,
        )

    async def update(self, dto: RestaurantUpdate) -> RestaurantRead:
        return await self.pipeline.save(dto)

    async def _validate_exists(self, attributes: dict) -> None:
        if await self.repository.get_by_id(attributes["id"]) is None:
            raise self._not_found(attributes["id"])

    async def _validate_unique(self, attributes: dict) -> None:
        restaurant_id = attributes["id"]
        if attributes.get("slug") and await self.repository.exists_by_slug(
            attributes["slug"], exclude_id=restaurant_id
        ):
            raise ValidationException.with_messages(slug=get_field_message("unique", "slug"))
        if attributes.get("domain") and await self.repository.exists_by_domain(
            attributes["domain"], exclude_id=restaurant_id
        ):
            raise ValidationException.with_messages(domain=get_field_message("unique", "domain"))

    async def _save_entity(self, attributes: dict) -> RestaurantRead:
        restaurant = await self.repository.get_by_id(attributes["id"])
        if restaurant is None:
            raise self._not_found(attributes["id"])

        fields = {key: value for key, value in attributes.items() if key != "id"}
        try:
            restaurant = await self.repository.update_partial(restaurant, fields)
        except Exception:
            await self.repository.rollback()
            raise

        logger.info(f"Updated restaurant {restaurant.id}: {sorted(fields)}")
        return RestaurantRead.model_validate(restaurant)

    @staticmethod
    def _not_found(restaurant_id) -> AppException:
        return AppException(
            ErrorKey.RESTAURANT_NOT_FOUND,
            status_code=404,
            error_variables=[str(restaurant_id)],
        )
