from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class DashboardStats(BaseModel):
    total_orders: Optional[int] = None
    orders_today: Optional[int] = None
    pending_orders: Optional[int] = None
    total_users: Optional[int] = None
    total_products: Optional[int] = None
    low_stock_products: Optional[int] = None
    total_revenue: Optional[float] = None
    revenue_this_month: Optional[float] = None


class RecentOrder(BaseModel):
    id: str
    order_number: str
    order_status: str
    payment_status: str
    total_amount: float
    created_at: Optional[datetime] = None
    profiles: Optional[Dict[str, Any]] = None
