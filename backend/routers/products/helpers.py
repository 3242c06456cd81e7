"""
Catalog read helpers: joined product queries and the derived stock fields
"""
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession
from models import Product
from utils.response_helpers import row_to_dict
from config import LOW_STOCK_THRESHOLD
from typing import Optional, List, Dict, Any
import re
import uuid

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value or ""))


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "product"


def catalog_query():
    """Products with images, inventory and category eagerly loaded"""
    return select(Product).options(
        selectinload(Product.images),
        selectinload(Product.inventory),
        selectinload(Product.category),
    )


def primary_image_url(images) -> Optional[str]:
    """First image flagged primary, else the first image"""
    if not images:
        return None
    for image in images:
        if image.is_primary:
            return image.image_url
    return images[0].image_url


def stock_status(available: int, quantity: int, threshold: int) -> str:
    if available <= 0:
        return "out_of_stock"
    if quantity <= threshold:
        return "low_stock"
    return "in_stock"


def enrich_product(product: Product) -> Dict[str, Any]:
    """Product row plus joined rows and the fields computed at read time"""
    product_dict = row_to_dict(product)

    inventory = product.inventory
    quantity = inventory.quantity if inventory else 0
    reserved = inventory.reserved_quantity if inventory else 0
    threshold = inventory.low_stock_threshold if inventory else LOW_STOCK_THRESHOLD

    product_dict["product_images"] = [
        {"image_url": image.image_url, "is_primary": image.is_primary}
        for image in product.images
    ]
    product_dict["inventory"] = {
        "quantity": quantity,
        "reserved_quantity": reserved,
        "low_stock_threshold": threshold,
    } if inventory else None
    product_dict["categories"] = {
        "name": product.category.name,
        "slug": product.category.slug,
    } if product.category else None

    product_dict["primary_image_url"] = primary_image_url(product.images)
    product_dict["stock_quantity"] = quantity
    product_dict["available_quantity"] = quantity - reserved
    product_dict["low_stock_threshold"] = threshold
    product_dict["stock_status"] = stock_status(quantity - reserved, quantity, threshold)
    return product_dict


async def list_catalog(
    db: AsyncSession,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    include_inactive: bool = False,
) -> List[Dict[str, Any]]:
    query = catalog_query()
    if status:
        query = query.where(Product.product_status == status)
    if not include_inactive:
        query = query.where(Product.is_active == True)

    query = query.order_by(Product.created_at.desc(), Product.id).offset(offset).limit(limit)
    result = await db.execute(query)
    return [enrich_product(product) for product in result.scalars().all()]


async def find_product(db: AsyncSession, id_or_slug: str) -> Optional[Product]:
    """
    UUID-shaped keys are looked up by id, anything else by slug
    (case-insensitive). Soft-deleted products are still returned.
    """
    query = catalog_query()
    if is_uuid(id_or_slug):
        query = query.where(Product.id == uuid.UUID(id_or_slug))
    else:
        query = query.where(func.lower(Product.slug) == id_or_slug.lower())

    result = await db.execute(query)
    return result.scalars().first()
