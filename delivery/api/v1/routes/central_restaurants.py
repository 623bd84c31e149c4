from fastapi import APIRouter, status
from fastapi_injector import Injected
from delivery.schemas.restaurant import RestaurantCreate, RestaurantPatch, RestaurantUpdate
from delivery.services.restaurant_creator import RestaurantCreatorService
from delivery.services.restaurant_updater import RestaurantUpdaterService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    restaurant_data: RestaurantCreate,
    service: RestaurantCreatorService = Injected(RestaurantCreatorService),
):
    """Register a restaurant and provision its database"""
    restaurant = await service.create(restaurant_data)
    return {"data": restaurant.model_dump(mode="json")}


@router.patch("/{restaurant_id}")
async def update_restaurant(
    restaurant_id: int,
    restaurant_data: RestaurantPatch,
    service: RestaurantUpdaterService = Injected(RestaurantUpdaterService),
):
    dto = RestaurantUpdate(
        id=restaurant_id,
        **restaurant_data.model_dump(exclude_unset=True),
    )
    restaurant = await service.update(dto)
    return {"data": restaurant.model_dump(mode="json")}
