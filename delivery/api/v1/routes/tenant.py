from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from delivery.db.models.catalog import ProductModel
from delivery.db.models.restaurant import RestaurantModel
from delivery.dependencies.tenant_dependencies import get_current_tenant, get_tenant_session
from delivery.schemas.product import ProductRead
from delivery.schemas.restaurant import RestaurantRead

router = APIRouter()


@router.get("/")
async def tenant_root(tenant: RestaurantModel = Depends(get_current_tenant)):
    return {
        "message": "Tenant connected",
        "tenant": RestaurantRead.model_validate(tenant).model_dump(mode="json"),
    }


@router.get("/products", response_model=List[ProductRead])
async def list_products(db: AsyncSession = Depends(get_tenant_session)):
    """Active products of the restaurant bound to this request"""
    result = await db.execute(
        select(ProductModel)
        .where(ProductModel.active.is_(True))
        .order_by(ProductModel.id)
    )
    return list(result.scalars().all())
