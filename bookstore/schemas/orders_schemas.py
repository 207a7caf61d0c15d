from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class OrderLineRequest(BaseModel):
    book_id: int
    quantity: int = Field(ge=1)


class PlaceOrderRequest(BaseModel):
    # omitted -> checkout the whole cart
    items: Optional[List[OrderLineRequest]] = None


class PlacedOrderItem(BaseModel):
    book_id: int
    book_title: str
    quantity: int
    unit_price: Decimal
    discount: Decimal
    line_total: Decimal


class PlaceOrderResponse(BaseModel):
    order_id: int
    claim_code: str
    subtotal: Decimal
    total_amount: Decimal
    discount_applied: Decimal
    discount_message: str
    items: List[PlacedOrderItem]


class ClaimCodeRequest(BaseModel):
    claim_code: str


class OrderItemRead(BaseModel):
    book_id: int
    book_title: str
    quantity: int
    unit_price: Decimal
    discount: Decimal


class CompleteOrderResponse(BaseModel):
    message: str
    user_id: int
    items: List[OrderItemRead]


class OrderMail(BaseModel):
    to_email: EmailStr
    full_name: str
    claim_code: str
    order_date: datetime
    total_books: int
    subtotal: Decimal
    discount: Decimal
    final_amount: Decimal
