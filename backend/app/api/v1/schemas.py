from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class PricePoint(BaseModel):
    price: int
    checked_at: datetime


class ProductOut(BaseModel):
    id: int
    url: str
    title: str
    mrp: int
    sale_price: int
    discount: str
    condition: str
    storage: str
    ram: str = ""
    color: str = ""
    image_url: Optional[str] = None
    is_out_of_stock: bool = False

    price_history: list[PricePoint] = []
    last_checked: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TrackRequest(BaseModel):
    # optional here so a missing URL becomes a 400 from the service, not a 422
    url: Optional[str] = None


class TrackResponse(BaseModel):
    success: bool
    product: ProductOut
    message: str


class UpdatePricesRequest(BaseModel):
    product_id: Optional[int] = Field(default=None, alias="productId")

    class Config:
        populate_by_name = True


class UpdatePricesResponse(BaseModel):
    message: str
    updated: int
    total: Optional[int] = None
    errors: Optional[list[str]] = None


class AlertCreate(BaseModel):
    product_id: int
    target_price: int = Field(gt=0)


class AlertOut(BaseModel):
    id: int
    product_id: int
    target_price: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
