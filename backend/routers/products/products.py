from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db, LOW_STOCK_THRESHOLD
from models import Product, ProductImage, Inventory, Category
from routers.auth.auth import get_current_user
from routers.auth.helpers import parse_uuid
from dependencies.rbac import require_product_write, require_product_delete, require_inventory_write
from utils.response_helpers import safe_model_validate_list
from utils.realtime import change_feed
from .schemas import (
    ProductCreate, ProductUpdate, InventoryUpdate, InventoryResponse,
    ProductListResponse, CategoryResponse, DeleteResponse,
)
from .helpers import list_catalog, find_product, enrich_product, catalog_query, slugify
from typing import Optional, List
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


def ensure_can_manage(current_user: dict, product: Product):
    """Admins manage every product, sellers only their own"""
    if current_user.get("role") == "admin":
        return
    if product.seller_id != current_user.get("profile_id"):
        logger.warning(f"User {current_user.get('user_id')} tried to modify product {product.id} they do not own")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own products"
        )


async def get_product_or_404(db: AsyncSession, product_id: str) -> Product:
    result = await db.execute(
        catalog_query().where(Product.id == parse_uuid(product_id, "product ID"))
    )
    product = result.scalars().first()
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return product


async def reload_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    result = await db.execute(
        catalog_query()
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().one()


async def ensure_slug_free(db: AsyncSession, slug: str, exclude_id: Optional[uuid.UUID] = None):
    query = select(Product.id).where(Product.slug == slug)
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Slug '{slug}' is already in use"
        )


async def ensure_category_exists(db: AsyncSession, category_id: str) -> uuid.UUID:
    category_uuid = parse_uuid(category_id, "category ID")
    if await db.get(Category, category_uuid) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category not found"
        )
    return category_uuid


# =================
# PUBLIC CATALOG
# =================

@router.get("", response_model=ProductListResponse)
async def list_products(
    product_status: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    """
    Catalog listing, newest first, with images, stock and category joined in.
    Soft-deleted products are hidden unless include_inactive is set.
    """
    try:
        products = await list_catalog(
            db,
            status=product_status,
            limit=limit,
            offset=offset,
            include_inactive=include_inactive,
        )
        return ProductListResponse(products=products)

    except Exception as e:
        logger.error(f"Error listing products: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@router.get("/categories", response_model=List[CategoryResponse])
async def get_active_categories(
    db: AsyncSession = Depends(get_db)
):
    """Get all active categories"""
    try:
        result = await db.execute(
            select(Category)
            .where(Category.is_active == True)
            .order_by(Category.sort_order, Category.name)
        )
        return safe_model_validate_list(CategoryResponse, result.scalars().all())

    except Exception as e:
        logger.error(f"Error getting categories: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get categories"
        )


@router.get("/{id_or_slug}")
async def get_product(
    id_or_slug: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Look a product up by id or by slug. Products that have been soft-deleted
    are still returned so old orders can show them.
    """
    try:
        product = await find_product(db, id_or_slug)
    except Exception as e:
        logger.error(f"Error fetching product {id_or_slug}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return enrich_product(product)


# =================
# SELLER / ADMIN MANAGEMENT
# =================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_write)
):
    """
    Create a product with its primary image and inventory row in one go.
    Admins may create on behalf of a seller by passing seller_id.
    """
    try:
        if current_user["role"] == "admin" and product_data.seller_id:
            seller_id = parse_uuid(product_data.seller_id, "seller ID")
        else:
            seller_id = current_user.get("profile_id")

        if seller_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Seller profile not found"
            )

        slug = product_data.slug or slugify(product_data.name)
        await ensure_slug_free(db, slug)

        category_id = None
        if product_data.category_id:
            category_id = await ensure_category_exists(db, product_data.category_id)

        product = Product(
            seller_id=seller_id,
            category_id=category_id,
            name=product_data.name,
            slug=slug,
            short_description=product_data.short_description,
            description=product_data.description,
            specifications=product_data.specifications,
            product_type=product_data.product_type.value,
            sku=product_data.sku,
            cost_price=product_data.cost_price,
            selling_price=product_data.selling_price,
            compare_at_price=product_data.compare_at_price,
            tax_rate=product_data.tax_rate,
            product_status=product_data.product_status.value,
            is_featured=product_data.is_featured,
            is_active=True,
        )
        if product_data.image_url:
            product.images.append(ProductImage(
                image_url=product_data.image_url,
                alt_text=product_data.name,
                is_primary=True,
                sort_order=0,
            ))
        product.inventory = Inventory(
            quantity=product_data.stock_quantity,
            reserved_quantity=0,
            low_stock_threshold=product_data.low_stock_threshold,
        )

        db.add(product)
        await db.commit()

        product = await reload_product(db, product.id)
        logger.info(f"Created product {product.id} ({slug}) for seller {seller_id}")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating product: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create product"
        )

    change_feed.publish("products", "inventory")
    return enrich_product(product)


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_write)
):
    """
    Partial update. Only fields present in the body change; id and seller
    are not editable here.
    """
    try:
        product = await get_product_or_404(db, product_id)
        ensure_can_manage(current_user, product)

        update_data = product_data.model_dump(exclude_unset=True)

        if "slug" in update_data and update_data["slug"] != product.slug:
            await ensure_slug_free(db, update_data["slug"], exclude_id=product.id)

        if "category_id" in update_data:
            category_id = update_data.pop("category_id")
            product.category_id = await ensure_category_exists(db, category_id) if category_id else None

        for field, value in update_data.items():
            if value is None and field in ("name", "slug", "selling_price", "product_status", "product_type"):
                # Required columns cannot be cleared
                continue
            if hasattr(value, "value"):
                value = value.value
            setattr(product, field, value)

        product.updated_at = datetime.now(timezone.utc)
        await db.commit()

        product = await reload_product(db, product.id)
        logger.info(f"Updated product {product.id}: {', '.join(update_data.keys()) or 'no fields'}")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating product {product_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update product"
        )

    change_feed.publish("products")
    return enrich_product(product)


@router.patch("/{product_id}/inventory", response_model=InventoryResponse)
async def update_inventory(
    product_id: str,
    inventory_data: InventoryUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_inventory_write)
):
    """
    Set on-hand stock and/or the low-stock threshold. On-hand stock can never
    drop below what open orders have reserved.
    """
    try:
        product = await get_product_or_404(db, product_id)
        ensure_can_manage(current_user, product)

        inventory = product.inventory
        if inventory is None:
            inventory = Inventory(
                product_id=product.id,
                quantity=0,
                reserved_quantity=0,
                low_stock_threshold=LOW_STOCK_THRESHOLD,
            )
            db.add(inventory)

        if inventory_data.quantity is not None:
            if inventory_data.quantity < inventory.reserved_quantity:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Quantity cannot be below the {inventory.reserved_quantity} units reserved by open orders"
                )
            inventory.quantity = inventory_data.quantity
        if inventory_data.low_stock_threshold is not None:
            inventory.low_stock_threshold = inventory_data.low_stock_threshold

        inventory.updated_at = datetime.now(timezone.utc)
        await db.commit()

        logger.info(f"Inventory for product {product.id} set to {inventory.quantity} (reserved {inventory.reserved_quantity})")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating inventory for {product_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update inventory"
        )

    change_feed.publish("inventory")
    return InventoryResponse(
        product_id=str(product.id),
        quantity=inventory.quantity,
        reserved_quantity=inventory.reserved_quantity,
        available_quantity=inventory.quantity - inventory.reserved_quantity,
        low_stock_threshold=inventory.low_stock_threshold,
    )


@router.delete("/{product_id}", response_model=DeleteResponse)
async def delete_product(
    product_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_delete)
):
    """Soft delete: the row stays for order history, listings stop showing it"""
    try:
        product = await get_product_or_404(db, product_id)
        ensure_can_manage(current_user, product)

        product.is_active = False
        product.updated_at = datetime.now(timezone.utc)
        await db.commit()

        logger.info(f"Product {product.id} deactivated")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting product {product_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete product"
        )

    change_feed.publish("products")
    return DeleteResponse(success=True)
