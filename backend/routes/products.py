"""
Product endpoints: public catalog browsing and listing creation.
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, product_pagination_params, require_roles
from domain.enums import ProductType, UserRole
from domain.errors import failure_message
from domain.responses import dump, paginated_response
from models import ProductResponse
from services import catalog_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["products"])


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    price: float = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    type: ProductType
    images: list[str] = Field(default_factory=list)


@router.get("/products")
@failure_message("Failed to fetch products")
async def list_products(
    type: ProductType | None = Query(None),
    seller_id: int | None = Query(None, alias="sellerId"),
    search: str | None = Query(None, max_length=100),
    pagination: Pagination = Depends(product_pagination_params),
    db: AsyncSession = Depends(get_db),
):
    products, total = await catalog_service.list_products(
        db,
        type=type.value if type else None,
        seller_id=seller_id,
        search=search,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return paginated_response(
        "products",
        [dump(ProductResponse, p) for p in products],
        page=pagination["page"],
        limit=pagination["limit"],
        total=total,
    )


@router.post("/products")
@failure_message("Failed to create product")
async def create_product(
    body: ProductCreateRequest,
    user: User = Depends(require_roles(UserRole.SELLER, UserRole.COMPANY)),
    db: AsyncSession = Depends(get_db),
):
    product = await catalog_service.create_product(
        db,
        seller=user,
        name=body.name,
        description=body.description,
        price=body.price,
        stock=body.stock,
        type=body.type.value,
        images=body.images,
    )
    await db.commit()
    logger.info(f"Product {product.id} ({product.type}) listed by user {user.id}")
    return dump(ProductResponse, product)
