"""Invoice domain schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_local_phone
from ..cart.schemas import CatalogId, LineType, normalize_line_type
from ..discounts.schemas import AppliedDiscount


class InvoiceItem(BaseModel):
    """A persisted invoice line; custom lines have no catalog id"""

    type: LineType
    itemId: Optional[CatalogId] = None
    name: str = ""
    price: float = Field(default=0, ge=0)
    quantity: int = Field(default=1, ge=1)
    discountAmount: float = 0

    @field_validator("type", mode="before")
    @classmethod
    def check_type(cls, v):
        return normalize_line_type(v)


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice at the counter"""

    customerName: str
    customerPhone: Optional[str] = None
    items: list[InvoiceItem] = []
    discountCode: Optional[str] = None

    @field_validator("customerPhone")
    @classmethod
    def validate_phone(cls, v):
        return validate_local_phone(v)


class InvoiceUpdate(BaseModel):
    """
    Replace an invoice's lines. A discount is kept either by code (validated
    again) or by id of the code already attached to the invoice.
    """

    items: list[InvoiceItem] = []
    discountCode: Optional[str] = None
    discountCodeId: Optional[int] = None


class InvoiceResponse(BaseModel):
    reservationId: int
    items: list[InvoiceItem]
    subtotal: float
    discount: Optional[AppliedDiscount] = None
    discountAmount: float = 0
    total: float
