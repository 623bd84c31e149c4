from fastapi import APIRouter

from delivery.api.v1.routes import central_restaurants, health, tenant


router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(central_restaurants.router, prefix="/api/central/restaurants", tags=["Restaurants"])
router.include_router(tenant.router, prefix="/api", tags=["Tenant"])
