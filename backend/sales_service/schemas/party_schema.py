# backend/sales_service/schemas/party_schema.py
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CustomerIn(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    code: str
    name: str
    address: str
    phone: str


class SalesmanIn(CustomerIn):
    email: Optional[str] = None


class SalesmanOut(CustomerOut):
    email: str
