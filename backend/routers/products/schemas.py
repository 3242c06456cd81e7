from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class ProductStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


class ProductType(str, Enum):
    PHYSICAL = "physical"
    DIGITAL = "digital"


class CategoryResponse(BaseModel):
    id: str
    parent_id: Optional[str] = None
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    icon: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=220)
    category_id: Optional[str] = None
    seller_id: Optional[str] = None  # Admin only, sellers always own what they create
    short_description: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    product_type: ProductType = ProductType.PHYSICAL
    sku: Optional[str] = Field(None, max_length=100)
    cost_price: float = Field(0, ge=0)
    selling_price: float = Field(..., ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    tax_rate: float = Field(18, ge=0, le=100)
    product_status: ProductStatus = ProductStatus.DRAFT
    is_featured: bool = False

    # Initial image and stock
    image_url: Optional[str] = Field(None, max_length=500)
    stock_quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=220)
    category_id: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    product_type: Optional[ProductType] = None
    sku: Optional[str] = Field(None, max_length=100)
    cost_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    product_status: Optional[ProductStatus] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        if v is not None and v != v.strip():
            raise ValueError("slug must not have surrounding whitespace")
        return v


class InventoryUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)


class InventoryResponse(BaseModel):
    product_id: str
    quantity: int
    reserved_quantity: int
    available_quantity: int
    low_stock_threshold: int


class ProductListResponse(BaseModel):
    products: List[Dict[str, Any]]


class DeleteResponse(BaseModel):
    success: bool = True
