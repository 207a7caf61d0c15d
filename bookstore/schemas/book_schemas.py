from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class BookCreate(BaseModel):
    title: str
    author: str
    genre: Optional[str] = None
    isbn: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)


class BookUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    isbn: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)


class StockUpdate(BaseModel):
    stock: int


class SaleUpdate(BaseModel):
    on_sale: bool
    discount_percentage: Optional[Decimal] = None
    discount_start_date: Optional[datetime] = None
    discount_end_date: Optional[datetime] = None
