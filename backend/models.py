from sqlalchemy import (
    Boolean,
    String,
    Text,
    DateTime,
    CheckConstraint,
    UniqueConstraint,
    Index,
    text,
    ForeignKey,
    Integer,
    Numeric,
    JSON,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship, declarative_base
from typing import Optional, List
from datetime import datetime
import uuid

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Money columns come back as floats rounded to paise
Money = Numeric(12, 2, asdecimal=False)


class Profile(Base):
    """
    Application-level user record, keyed by the Supabase auth user id.
    Never deleted; accounts are disabled through account_status.
    """
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint(
            "user_type IN ('individual', 'company_buyer', 'wholesaler', 'retailer', 'admin')",
            name="profiles_user_type_check",
        ),
        CheckConstraint(
            "account_status IN ('active', 'suspended', 'pending_verification')",
            name="profiles_account_status_check",
        ),
        Index("profiles_email_idx", "email"),
    )

    # Same value as auth.users.id
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)

    full_name: Mapped[Optional[str]] = mapped_column(String(200))
    display_name: Mapped[Optional[str]] = mapped_column(String(100))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))

    user_type: Mapped[str] = mapped_column(String(30), default="individual", nullable=False)
    account_status: Mapped[str] = mapped_column(String(30), default="active", nullable=False)
    is_seller: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_phone_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(True))
    login_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    products: Mapped[List["Product"]] = relationship("Product", back_populates="seller")
    orders: Mapped[List["Order"]] = relationship("Order", back_populates="profile")


class Category(Base):
    """
    Product categories, optionally nested one level through parent_id
    """
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL")
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    icon: Mapped[Optional[str]] = mapped_column(String(50))
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    products: Mapped[List["Product"]] = relationship("Product", back_populates="category")


class Product(Base):
    """
    Catalog item owned by a seller profile. Soft-deleted via is_active=False.
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("selling_price >= 0", name="products_selling_price_check"),
        CheckConstraint(
            "product_status IN ('draft', 'active', 'inactive', 'out_of_stock', 'discontinued')",
            name="products_status_check",
        ),
        CheckConstraint("product_type IN ('physical', 'digital')", name="products_type_check"),
        Index("products_status_idx", "product_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False
    )
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL")
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), nullable=False, unique=True)
    short_description: Mapped[Optional[str]] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(Text)
    specifications: Mapped[Optional[dict]] = mapped_column(JSONType)

    product_type: Mapped[str] = mapped_column(String(20), default="physical", nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(100))

    # Pricing
    cost_price: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    selling_price: Mapped[float] = mapped_column(Money, nullable=False)
    compare_at_price: Mapped[Optional[float]] = mapped_column(Money)
    tax_rate: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), default=18, nullable=False)

    product_status: Mapped[str] = mapped_column(String(30), default="draft", nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    rating: Mapped[Optional[float]] = mapped_column(Numeric(3, 2, asdecimal=False))
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    purchase_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    # Relationships
    seller: Mapped["Profile"] = relationship("Profile", back_populates="products")
    category: Mapped[Optional["Category"]] = relationship("Category", back_populates="products")
    images: Mapped[List["ProductImage"]] = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.sort_order"
    )
    inventory: Mapped[Optional["Inventory"]] = relationship(
        "Inventory",
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan"
    )


class ProductImage(Base):
    __tablename__ = "product_images"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    alt_text: Mapped[Optional[str]] = mapped_column(String(200))
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    product: Mapped["Product"] = relationship("Product", back_populates="images")


class Inventory(Base):
    """
    Stock for a product. Available stock is quantity - reserved_quantity;
    reservations are taken at checkout and consumed at shipment.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="inventory_quantity_check"),
        CheckConstraint("reserved_quantity >= 0", name="inventory_reserved_nonnegative_check"),
        CheckConstraint("reserved_quantity <= quantity", name="inventory_reserved_le_quantity_check"),
        UniqueConstraint("product_id", name="inventory_product_id_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reserved_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=10, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    product: Mapped["Product"] = relationship("Product", back_populates="inventory")


class Order(Base):
    """
    Root of a purchase. Money fields must reconcile:
    total_amount = subtotal - discount_amount + tax_amount + shipping_amount
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="orders_total_amount_check"),
        Index("orders_profile_id_idx", "profile_id"),
        Index("orders_created_at_idx", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False
    )
    order_type: Mapped[str] = mapped_column(String(30), default="individual", nullable=False)

    # Captured at order time, never follow later profile edits
    shipping_address_snapshot: Mapped[Optional[dict]] = mapped_column(JSONType)
    billing_address_snapshot: Mapped[Optional[dict]] = mapped_column(JSONType)

    subtotal: Mapped[float] = mapped_column(Money, nullable=False)
    discount_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    tax_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    shipping_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    total_amount: Mapped[float] = mapped_column(Money, nullable=False)

    order_status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)
    payment_status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)

    customer_note: Mapped[Optional[str]] = mapped_column(Text)
    admin_note: Mapped[Optional[str]] = mapped_column(Text)
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100))
    courier_company: Mapped[Optional[str]] = mapped_column(String(100))
    estimated_delivery: Mapped[Optional[datetime]] = mapped_column(DateTime(True))
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    # Relationships
    profile: Mapped["Profile"] = relationship("Profile", back_populates="orders")
    order_items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan"
    )
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan"
    )


class OrderItem(Base):
    """
    Line item snapshot. Name, image and price are copied from the product at
    checkout so historical orders stay accurate.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="order_items_quantity_check"),
        Index("order_items_order_id_idx", "order_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="SET NULL")
    )
    seller_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="SET NULL")
    )

    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    product_sku: Mapped[Optional[str]] = mapped_column(String(100))
    product_image_url: Mapped[Optional[str]] = mapped_column(String(500))

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Money, nullable=False)
    cost_price: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    discount_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    tax_amount: Mapped[float] = mapped_column(Money, default=0, nullable=False)
    total_price: Mapped[float] = mapped_column(Money, nullable=False)

    item_type: Mapped[str] = mapped_column(String(20), default="physical", nullable=False)
    fulfillment_status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="order_items")


class Payment(Base):
    """
    Gateway payment for an order. Created with the order, later touched only
    by verified gateway callbacks and refunds.
    """
    __tablename__ = "payments"
    __table_args__ = (
        Index("payments_gateway_order_id_idx", "gateway_order_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False
    )

    payment_method: Mapped[str] = mapped_column(String(50), default="razorpay", nullable=False)
    payment_gateway: Mapped[str] = mapped_column(String(50), default="razorpay", nullable=False)

    # Razorpay identifiers
    gateway_order_id: Mapped[Optional[str]] = mapped_column(String(100))
    gateway_payment_id: Mapped[Optional[str]] = mapped_column(String(100))
    gateway_signature: Mapped[Optional[str]] = mapped_column(String(200))

    amount: Mapped[float] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), default="INR", nullable=False)
    payment_status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False
    )

    order: Mapped["Order"] = relationship("Order", back_populates="payments")
