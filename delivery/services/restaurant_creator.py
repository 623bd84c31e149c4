import logging
from uuid import uuid4

from injector import inject
from sqlalchemy.exc import IntegrityError

from delivery.core.exceptions.error_messages import get_field_message
from delivery.core.exceptions.exception_classes import ValidationException
from delivery.db.models.restaurant import RestaurantModel
from delivery.repositories.restaurants import RestaurantRepository
from delivery.schemas.restaurant import RestaurantCreate, RestaurantRead
from delivery.services.saver import SavePipeline
from delivery.services.tenant_provisioning import TenantProvisioner, placeholder_prefix

logger = logging.getLogger(__name__)


@inject
class RestaurantCreatorService:
    """Registers a restaurant and provisions its tenant database"""

    def __init__(self, repository: RestaurantRepository, provisioner: TenantProvisioner):
        self.repository = repository
        self.provisioner = provisioner
        self.pipeline = SavePipeline(
            validate=(self._validate_unique,),
            map=(self._apply_defaults, self._with_placeholder_database_name),
            persist=self._save_entity,
            after=(self.provisioner.provision,),
            source=type(self).__name__,
            log_payload=True,
            hidden_payload=("contact_phone",),
        )

    async def create(self, dto: RestaurantCreate) -> RestaurantRead:
        return await self.pipeline.save(dto)

    async def _validate_unique(self, attributes: dict) -> None:
        errors: dict[str, list[str]] = {}
        if await self.repository.exists_by_slug(attributes["slug"]):
            errors["slug"] = [get_field_message("unique", "slug")]
        if attributes.get("domain") and await self.repository.exists_by_domain(
            attributes["domain"]
        ):
            errors["domain"] = [get_field_message("unique", "domain")]
        if errors:
            raise ValidationException(errors)

    @staticmethod
    def _apply_defaults(attributes: dict) -> dict:
        # an explicit null leaves the column default in place
        return {key: value for key, value in attributes.items() if value is not None}

    @staticmethod
    def _with_placeholder_database_name(attributes: dict) -> dict:
        # NOT NULL + UNIQUE until the id based name is known
        return {**attributes, "database_name": f"{placeholder_prefix()}{uuid4().hex}"}

    async def _save_entity(self, attributes: dict) -> RestaurantRead:
        try:
            restaurant = await self.repository.create(RestaurantModel(**attributes))
        except IntegrityError:
            await self.repository.rollback()
            # a concurrent insert took the slug or domain after validation
            await self._validate_unique(attributes)
            raise

        logger.info(f"Registered restaurant {restaurant.id} ({restaurant.slug})")
        return RestaurantRead.model_validate(restaurant)
