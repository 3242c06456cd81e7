"""
Order placement and status workflow.

Placement re-prices every line from the live catalog, reserves stock and writes
the order, its items and the payment record in one transaction. Status updates
are checked against TRANSITIONS and move stock along with the order: shipping
consumes the reservation, cancelling before shipment releases it, a return puts
the units back on the shelf.
"""
from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession
from models import Profile, Product, Inventory, Order, OrderItem, Payment
from config import (
    ORDER_STATUS_STRICT, FREE_SHIPPING_THRESHOLD, FLAT_SHIPPING_FEE,
    DEFAULT_CURRENCY, RAZORPAY_KEY_SECRET,
)
from utils.exceptions import (
    NotFoundError, OrderValidationError, InsufficientStock,
    InvalidStatusTransition, PaymentVerificationError,
)
from routers.products.helpers import catalog_query, primary_image_url, is_uuid
from routers.payments.helpers import verify_signature
from .schemas import OrderStatus, PaymentStatus, FulfillmentStatus, PlaceOrderRequest
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple
import secrets
import string
import uuid
import logging

logger = logging.getLogger(__name__)

TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURN_REQUESTED},
    OrderStatus.RETURN_REQUESTED: {OrderStatus.RETURNED, OrderStatus.DELIVERED},
    OrderStatus.RETURNED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),
}

# Stock is still reserved, not yet taken off the shelf
PRE_SHIPMENT = {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}
# Goods have left the warehouse
IN_TRANSIT = {OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED}

# Where an item's units stand, derived from its fulfillment_status
STOCK_RESERVED = "reserved"
STOCK_CONSUMED = "consumed"
STOCK_RELEASED = "released"

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise OrderValidationError(f"Invalid order status: {value}")


def can_transition(current: str, target: str, strict: bool = True) -> bool:
    """Same-status writes always pass; otherwise the table decides when strict"""
    if current == target or not strict:
        return True
    try:
        current_status = OrderStatus(current)
    except ValueError:
        # Legacy value outside the enum, let an admin move it anywhere
        return True
    return OrderStatus(target) in TRANSITIONS[current_status]


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(6))
    return f"IRO-{now.strftime('%Y%m%d')}-{suffix}"


def round_money(value: float) -> float:
    return round(float(value) + 0.0, 2)


def compute_shipping(subtotal: float, has_physical: bool = True) -> float:
    if not has_physical or subtotal >= FREE_SHIPPING_THRESHOLD:
        return 0.0
    return float(FLAT_SHIPPING_FEE)


def compute_totals(lines: List[Dict[str, Any]]) -> Dict[str, float]:
    """
    Catalog prices are tax-inclusive and there is no promotions module, so tax
    and discount are zero and the total is subtotal plus shipping.
    """
    subtotal = round_money(sum(line["total_price"] for line in lines))
    has_physical = any(line["item_type"] == "physical" for line in lines)
    shipping_amount = compute_shipping(subtotal, has_physical) if lines else 0.0
    discount_amount = 0.0
    tax_amount = 0.0
    total_amount = round_money(subtotal - discount_amount + tax_amount + shipping_amount)
    return {
        "subtotal": subtotal,
        "discount_amount": discount_amount,
        "tax_amount": tax_amount,
        "shipping_amount": shipping_amount,
        "total_amount": total_amount,
    }


def merge_items(items) -> Dict[uuid.UUID, int]:
    """product_id -> quantity, duplicate lines summed, input order kept"""
    merged: Dict[uuid.UUID, int] = {}
    for item in items:
        if not is_uuid(str(item.product_id)):
            raise OrderValidationError(f"Invalid product_id: {item.product_id}")
        if item.quantity is None or item.quantity <= 0:
            raise OrderValidationError("Item quantity must be greater than 0")
        product_id = uuid.UUID(str(item.product_id))
        merged[product_id] = merged.get(product_id, 0) + item.quantity
    return merged


async def resolve_lines(db: AsyncSession, merged: Dict[uuid.UUID, int]) -> List[Dict[str, Any]]:
    """
    Price each requested line from the catalog. Lines that cannot be bought
    carry a `problem` message (and short stock a `shortage` one) instead of
    raising, so the cart check can report all of them at once.
    """
    if not merged:
        return []

    result = await db.execute(catalog_query().where(Product.id.in_(list(merged.keys()))))
    products = {product.id: product for product in result.scalars().all()}

    lines = []
    for product_id, quantity in merged.items():
        product = products.get(product_id)
        line = {
            "product_id": product_id,
            "product": product,
            "quantity": quantity,
            "problem": None,
            "shortage": None,
        }

        if product is None:
            line.update(unit_price=0.0, total_price=0.0, item_type="physical", available_quantity=0)
            line["problem"] = f"Product {product_id} not found"
            lines.append(line)
            continue

        inventory = product.inventory
        available = (inventory.quantity - inventory.reserved_quantity) if inventory else 0
        unit_price = round_money(product.selling_price)
        line.update(
            unit_price=unit_price,
            total_price=round_money(unit_price * quantity),
            item_type=product.product_type,
            available_quantity=available,
        )

        if not product.is_active or product.product_status != "active":
            line["problem"] = f"{product.name} is not available"
        elif product.product_type == "physical" and available < quantity:
            line["shortage"] = f"Only {max(available, 0)} of {product.name} left in stock"

        lines.append(line)

    return lines


async def reserve_stock(db: AsyncSession, product: Product, quantity: int):
    """Guarded increment: only applies while quantity - reserved covers the request"""
    if not await try_reserve(db, product.id, quantity):
        inventory = product.inventory
        available = (inventory.quantity - inventory.reserved_quantity) if inventory else 0
        raise InsufficientStock(product.name, quantity, max(available, 0))


async def reserve_units(db: AsyncSession, product_id: uuid.UUID, product_name: str, quantity: int):
    if not await try_reserve(db, product_id, quantity):
        inventory = await db.scalar(select(Inventory).where(Inventory.product_id == product_id))
        available = (inventory.quantity - inventory.reserved_quantity) if inventory else 0
        raise InsufficientStock(product_name, quantity, max(available, 0))


async def try_reserve(db: AsyncSession, product_id: uuid.UUID, quantity: int) -> bool:
    result = await db.execute(
        update(Inventory)
        .where(Inventory.product_id == product_id)
        .where(Inventory.quantity - Inventory.reserved_quantity >= quantity)
        .values(
            reserved_quantity=Inventory.reserved_quantity + quantity,
            updated_at=func.now()
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def consume_stock(db: AsyncSession, product_id: uuid.UUID, product_name: str, quantity: int):
    """Shipment takes reserved units off the shelf"""
    result = await db.execute(
        update(Inventory)
        .where(Inventory.product_id == product_id)
        .where(Inventory.reserved_quantity >= quantity)
        .where(Inventory.quantity >= quantity)
        .values(
            quantity=Inventory.quantity - quantity,
            reserved_quantity=Inventory.reserved_quantity - quantity,
            updated_at=func.now()
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    # No reservation behind this line, take it from unreserved stock instead
    logger.warning(f"No reservation to consume for {product_name}, drawing from available stock")
    result = await db.execute(
        update(Inventory)
        .where(Inventory.product_id == product_id)
        .where(Inventory.quantity - Inventory.reserved_quantity >= quantity)
        .values(quantity=Inventory.quantity - quantity, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStock(product_name, quantity, 0)


async def release_stock(db: AsyncSession, product_id: uuid.UUID, product_name: str, quantity: int):
    result = await db.execute(
        update(Inventory)
        .where(Inventory.product_id == product_id)
        .where(Inventory.reserved_quantity >= quantity)
        .values(
            reserved_quantity=Inventory.reserved_quantity - quantity,
            updated_at=func.now()
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"No reservation to release for {product_name}")


async def restock(db: AsyncSession, product_id: uuid.UUID, quantity: int):
    await db.execute(
        update(Inventory)
        .where(Inventory.product_id == product_id)
        .values(quantity=Inventory.quantity + quantity, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )


def order_query():
    return select(Order).options(
        selectinload(Order.order_items),
        selectinload(Order.payments),
        selectinload(Order.profile),
    )


async def load_order(db: AsyncSession, order_id: uuid.UUID, refresh: bool = False) -> Optional[Order]:
    query = order_query().where(Order.id == order_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalars().first()


def log_client_mismatch(order_request: PlaceOrderRequest, totals: Dict[str, float]):
    for field, value in totals.items():
        client_value = getattr(order_request, field)
        if client_value is not None and abs(client_value - value) >= 0.01:
            logger.warning(f"Client {field} {client_value} differs from catalog price {value}, using catalog")


async def place_order(db: AsyncSession, order_request: PlaceOrderRequest, now: Optional[datetime] = None) -> Order:
    """
    Validate, price and persist an order as one unit of work.
    Raises a StorefrontError subclass, with nothing written, when any step fails.
    """
    if not order_request.profile_id or not order_request.items:
        raise OrderValidationError("Missing required order data")
    if not is_uuid(order_request.profile_id):
        raise OrderValidationError("Invalid profile_id")

    merged = merge_items(order_request.items)

    payment_info = order_request.payment_info
    if not payment_info.gateway_payment_id:
        raise OrderValidationError("Missing payment proof: gateway_payment_id is required")
    if payment_info.gateway_order_id and payment_info.gateway_signature:
        if not verify_signature(
            payment_info.gateway_order_id,
            payment_info.gateway_payment_id,
            payment_info.gateway_signature,
            RAZORPAY_KEY_SECRET,
        ):
            raise PaymentVerificationError("Invalid payment signature")

    now = now or datetime.now(timezone.utc)
    profile_id = uuid.UUID(order_request.profile_id)

    try:
        profile = await db.get(Profile, profile_id)
        if profile is None:
            raise OrderValidationError("Unknown profile_id")

        lines = await resolve_lines(db, merged)
        for line in lines:
            if line["problem"]:
                raise OrderValidationError(line["problem"])

        totals = compute_totals(lines)
        log_client_mismatch(order_request, totals)

        order = Order(
            order_number=generate_order_number(now),
            profile_id=profile_id,
            order_type=profile.user_type if profile.user_type == "company_buyer" else "individual",
            shipping_address_snapshot=order_request.shipping_address,
            billing_address_snapshot=order_request.billing_address or order_request.shipping_address,
            order_status=OrderStatus.CONFIRMED.value,
            payment_status=PaymentStatus.CAPTURED.value,
            customer_note=order_request.customer_note,
            **totals
        )
        db.add(order)

        for line in lines:
            product = line["product"]
            order.order_items.append(OrderItem(
                product_id=product.id,
                seller_id=product.seller_id,
                product_name=product.name,
                product_sku=product.sku,
                product_image_url=primary_image_url(product.images),
                quantity=line["quantity"],
                unit_price=line["unit_price"],
                cost_price=product.cost_price or 0,
                discount_amount=0,
                tax_amount=0,
                total_price=line["total_price"],
                item_type=line["item_type"],
                fulfillment_status=FulfillmentStatus.PENDING.value,
            ))

        order.payments.append(Payment(
            profile_id=profile_id,
            payment_method=payment_info.payment_method,
            payment_gateway=payment_info.payment_gateway,
            gateway_payment_id=payment_info.gateway_payment_id,
            gateway_order_id=payment_info.gateway_order_id,
            gateway_signature=payment_info.gateway_signature,
            amount=totals["total_amount"],
            currency=DEFAULT_CURRENCY,
            payment_status=PaymentStatus.CAPTURED.value,
            paid_at=now,
        ))

        await db.flush()

        for line in lines:
            if line["item_type"] == "physical":
                await reserve_stock(db, line["product"], line["quantity"])

        await db.commit()

    except Exception:
        await db.rollback()
        raise

    logger.info(f"Placed order {order.order_number} for {profile_id}: total {order.total_amount}")
    return await load_order(db, order.id, refresh=True)


async def update_order_status(
    db: AsyncSession,
    order_id: uuid.UUID,
    order_status: str,
    admin_note: Optional[str] = None,
    tracking_number: Optional[str] = None,
    courier_company: Optional[str] = None,
    strict: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> Tuple[Order, str]:
    """
    Move an order to a new status. Returns the updated order and the status it
    had before, so callers can tell a real transition from a repeated write.

    Moves are checked against TRANSITIONS unless `strict` is off. Strict is the
    default (ORDER_STATUS_STRICT); setting ORDER_STATUS_STRICT=false restores
    the older any-status-to-any-status behaviour, with stock still kept
    consistent by apply_stock_effects.
    """
    target = parse_status(order_status)
    strict = ORDER_STATUS_STRICT if strict is None else strict
    now = now or datetime.now(timezone.utc)

    try:
        order = await load_order(db, order_id)
        if order is None:
            raise NotFoundError("Order not found")

        previous = order.order_status
        if not can_transition(previous, target.value, strict):
            raise InvalidStatusTransition(previous, target.value)

        if previous != target.value:
            await apply_stock_effects(db, order, target, now)

        order.order_status = target.value
        order.updated_at = now
        if admin_note is not None:
            order.admin_note = admin_note
        if tracking_number is not None:
            order.tracking_number = tracking_number
        if courier_company is not None:
            order.courier_company = courier_company
        if target == OrderStatus.DELIVERED:
            order.delivered_at = now

        await db.commit()

    except Exception:
        await db.rollback()
        raise

    logger.info(f"Order {order.order_number} status {previous} -> {target.value}")
    return await load_order(db, order_id, refresh=True), previous


async def apply_stock_effects(db: AsyncSession, order: Order, target: OrderStatus, now: datetime):
    """
    Each item's fulfillment_status records where its stock stands: pending or
    processing still holds a reservation, fulfilled has left the shelf,
    cancelled and returned hold nothing. Stock moves only when the target
    needs a different state, so a lenient back-and-forth never counts twice.
    """
    if target in IN_TRANSIT or target == OrderStatus.RETURN_REQUESTED:
        wanted = STOCK_CONSUMED
        fulfillment = FulfillmentStatus.FULFILLED
    elif target in PRE_SHIPMENT:
        wanted = STOCK_RESERVED
        fulfillment = FulfillmentStatus.PROCESSING if target == OrderStatus.PROCESSING else None
    elif target == OrderStatus.CANCELLED:
        wanted = STOCK_RELEASED
        fulfillment = FulfillmentStatus.CANCELLED
    elif target == OrderStatus.RETURNED:
        wanted = STOCK_RELEASED
        fulfillment = FulfillmentStatus.RETURNED
    else:
        # Refunds settle money only
        wanted = None
        fulfillment = None

    for item in order.order_items:
        held = stock_state(item.fulfillment_status)
        if wanted is not None and held != wanted:
            if item.item_type == "physical" and item.product_id is not None:
                await move_stock(db, item, held, wanted)
            if fulfillment is None:
                # Back from a released or shipped state into pending/confirmed
                fulfillment_value = FulfillmentStatus.PENDING.value
            else:
                fulfillment_value = fulfillment.value
        elif fulfillment is not None and held == wanted:
            fulfillment_value = fulfillment.value
        else:
            continue

        if item.fulfillment_status != fulfillment_value:
            item.fulfillment_status = fulfillment_value
            item.updated_at = now

    if target == OrderStatus.REFUNDED:
        order.payment_status = PaymentStatus.REFUNDED.value
        for payment in order.payments:
            payment.payment_status = PaymentStatus.REFUNDED.value
            payment.updated_at = now


def stock_state(fulfillment_status: str) -> str:
    if fulfillment_status == FulfillmentStatus.FULFILLED.value:
        return STOCK_CONSUMED
    if fulfillment_status in (FulfillmentStatus.CANCELLED.value, FulfillmentStatus.RETURNED.value):
        return STOCK_RELEASED
    return STOCK_RESERVED


async def move_stock(db: AsyncSession, item: OrderItem, held: str, wanted: str):
    product_id, name, quantity = item.product_id, item.product_name, item.quantity

    if wanted == STOCK_CONSUMED:
        # consume_stock draws from unreserved stock when nothing is reserved
        await consume_stock(db, product_id, name, quantity)
    elif wanted == STOCK_RELEASED:
        if held == STOCK_RESERVED:
            await release_stock(db, product_id, name, quantity)
        else:
            await restock(db, product_id, quantity)
    elif held == STOCK_CONSUMED:
        await restock(db, product_id, quantity)
        await reserve_units(db, product_id, name, quantity)
    else:
        await reserve_units(db, product_id, name, quantity)
