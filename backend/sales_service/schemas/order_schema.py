# backend/sales_service/schemas/order_schema.py
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class OrderLineIn(BaseModel):
    # id is set only when updating a stored line
    id: Optional[str] = None
    product_id: Optional[str] = None
    price: Optional[float] = None
    discount_amount: Optional[float] = None
    discount_percentage: Optional[float] = None
    quantity: Optional[int] = None


class OrderIn(BaseModel):
    branch_id: Optional[str] = None
    customer_id: Optional[str] = None
    salesman_id: Optional[str] = None
    order_date: Optional[str] = None
    remark: Optional[str] = None
    discount_amount: Optional[float] = None
    discount_percentage: Optional[float] = None
    lines: Optional[List[OrderLineIn]] = None


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    product_id: str
    product_code: str
    product_name: str
    price: float
    discount_amount: float
    discount_percentage: float
    quantity: int
    total_price: float


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    branch_id: str
    branch_name: str
    customer_id: str
    salesman_id: str
    code: str
    order_date: date
    remark: str
    price: float
    discount_amount: float
    discount_percentage: float
    total_price: float
    created_at: datetime
    created_by: str
    updated_at: datetime
    updated_by: str
    lines: List[OrderLineOut] = []
