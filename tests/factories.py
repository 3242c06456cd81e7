"""Seed rows shared across the test modules"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import select

from models import Profile, Category, Product, ProductImage, Inventory, Order, OrderItem, Payment

ADMIN_ID = "00000000-0000-0000-0000-0000000000a1"
BUYER_ID = "00000000-0000-0000-0000-0000000000b1"
SELLER_ID = "00000000-0000-0000-0000-0000000000c1"
OTHER_SELLER_ID = "00000000-0000-0000-0000-0000000000c2"

CATEGORY_ID = "22222222-2222-2222-2222-222222222222"
INTEL_ID = "11111111-1111-1111-1111-111111111111"
CABLE_ID = "33333333-3333-3333-3333-333333333333"
LICENSE_ID = "44444444-4444-4444-4444-444444444444"
RETIRED_ID = "55555555-5555-5555-5555-555555555555"


def make_profile(profile_id, user_type="individual", **fields):
    fields.setdefault("full_name", f"{user_type.title()} User")
    fields.setdefault("email", f"{user_type}-{profile_id[-2:]}@irokart.test")
    return Profile(
        id=uuid.UUID(profile_id),
        user_type=user_type,
        account_status=fields.pop("account_status", "active"),
        is_seller=user_type in ("wholesaler", "retailer"),
        **fields
    )


def make_product(
    product_id,
    name,
    slug,
    price,
    seller_id=SELLER_ID,
    stock=10,
    reserved=0,
    product_type="physical",
    product_status="active",
    is_active=True,
    image_url=None,
    with_inventory=True,
):
    product = Product(
        id=uuid.UUID(product_id),
        seller_id=uuid.UUID(seller_id),
        category_id=uuid.UUID(CATEGORY_ID),
        name=name,
        slug=slug,
        sku=slug.upper(),
        product_type=product_type,
        cost_price=round(price * 0.8, 2),
        selling_price=price,
        product_status=product_status,
        is_active=is_active,
    )
    if image_url:
        product.images.append(ProductImage(image_url=image_url, is_primary=True, sort_order=0))
    if with_inventory:
        product.inventory = Inventory(quantity=stock, reserved_quantity=reserved, low_stock_threshold=10)
    return product


async def seed_catalog(session):
    session.add_all([
        make_profile(ADMIN_ID, "admin", full_name="Asha Admin", email="admin@irokart.test"),
        make_profile(BUYER_ID, "individual", full_name="Bala Buyer", email="bala@irokart.test", phone="+919800000001"),
        make_profile(SELLER_ID, "retailer", full_name="Sana Seller", email="sana@irokart.test"),
        make_profile(OTHER_SELLER_ID, "wholesaler", full_name="Omar Wholesale", email="omar@irokart.test"),
        Category(id=uuid.UUID(CATEGORY_ID), name="Processors", slug="processors", sort_order=1),
    ])
    await session.flush()

    session.add_all([
        make_product(INTEL_ID, "Intel Core i5", "intel-i5", 15000.0, stock=10,
                     image_url="https://cdn.irokart.test/i5.png"),
        make_product(CABLE_ID, "USB-C Cable", "usb-c-cable", 199.0, stock=50,
                     seller_id=OTHER_SELLER_ID),
        make_product(LICENSE_ID, "Antivirus License", "antivirus-license", 499.0,
                     product_type="digital", with_inventory=False),
        make_product(RETIRED_ID, "Old Chipset", "old-chipset", 999.0, stock=5, is_active=False),
    ])
    await session.commit()


async def add_order(
    session,
    total_amount,
    created_at,
    order_status="confirmed",
    payment_status="captured",
    profile_id=BUYER_ID,
):
    """Bare order row with a single line, for aggregation tests"""
    order = Order(
        order_number=f"IRO-{created_at.strftime('%Y%m%d')}-{uuid.uuid4().hex[:6].upper()}",
        profile_id=uuid.UUID(profile_id),
        subtotal=total_amount,
        total_amount=total_amount,
        order_status=order_status,
        payment_status=payment_status,
        created_at=created_at,
        updated_at=created_at,
    )
    order.order_items.append(OrderItem(
        product_name="Seeded item",
        quantity=1,
        unit_price=total_amount,
        total_price=total_amount,
    ))
    order.payments.append(Payment(
        profile_id=uuid.UUID(profile_id),
        amount=total_amount,
        payment_status=payment_status,
    ))
    session.add(order)
    await session.commit()
    return order


async def get_inventory(session_factory, product_id):
    async with session_factory() as session:
        result = await session.execute(
            select(Inventory).where(Inventory.product_id == uuid.UUID(product_id))
        )
        return result.scalars().one()


async def count_rows(session_factory, model):
    async with session_factory() as session:
        result = await session.execute(select(model))
        return len(result.scalars().all())


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)
