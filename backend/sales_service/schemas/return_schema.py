# backend/sales_service/schemas/return_schema.py
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ReturnLineIn(BaseModel):
    id: Optional[str] = None
    product_id: Optional[str] = None
    quantity: Optional[int] = None


class ReturnIn(BaseModel):
    branch_id: Optional[str] = None
    order_id: Optional[str] = None
    return_date: Optional[str] = None
    remark: Optional[str] = None
    lines: Optional[List[ReturnLineIn]] = None


class ReturnLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    product_id: str
    quantity: int
    price: float
    discount_amount: float
    discount_percentage: float
    total_price: float


class ReturnOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    branch_id: str
    branch_name: str
    order_id: str
    code: str
    return_date: date
    remark: str
    price: float
    discount_amount: float
    discount_percentage: float
    total_price: float
    created_at: datetime
    created_by: str
    updated_at: datetime
    updated_by: str
    lines: List[ReturnLineOut] = []
