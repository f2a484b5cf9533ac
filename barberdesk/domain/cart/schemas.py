"""Cart domain schemas - line model shared by carts and invoices"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from ...shared.validators import validate_catalog_id, validate_iso_date, validate_time


CatalogId = Annotated[str, BeforeValidator(validate_catalog_id)]


class LineType(str, Enum):
    SERVICE = "service"
    PRODUCT = "product"
    OFFER = "offer"
    CUSTOM = "custom"


# The admin screens label items in Spanish
LINE_TYPE_ALIASES = {
    "servicio": LineType.SERVICE,
    "producto": LineType.PRODUCT,
    "oferta": LineType.OFFER,
}


def normalize_line_type(value) -> LineType:
    if isinstance(value, LineType):
        return value
    text = str(value or "").strip().lower()
    if text in LINE_TYPE_ALIASES:
        return LINE_TYPE_ALIASES[text]
    return LineType(text)


class BarberRef(BaseModel):
    id: CatalogId
    name: Optional[str] = None


class BookingData(BaseModel):
    """Appointment chosen for a service or offer line"""

    date: str
    time: str
    barber: Optional[BarberRef] = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_iso_date(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class AddProductRequest(BaseModel):
    productId: CatalogId
    quantity: int = Field(default=1, ge=1)


class AddBookableRequest(BaseModel):
    """Add a service or an offer, optionally with an appointment"""

    id: CatalogId
    quantity: int = Field(default=1, ge=1)
    bookingData: Optional[BookingData] = None


class UpdateQuantityRequest(BaseModel):
    itemKey: str
    type: LineType
    quantity: int

    @field_validator("type", mode="before")
    @classmethod
    def check_type(cls, v):
        return normalize_line_type(v)


class RemoveItemRequest(BaseModel):
    itemKey: str
    type: LineType

    @field_validator("type", mode="before")
    @classmethod
    def check_type(cls, v):
        return normalize_line_type(v)


class CartLineResponse(BaseModel):
    type: LineType
    id: CatalogId
    itemKey: str
    name: str
    price: float
    original_price: Optional[float] = None
    quantity: int
    image_url: Optional[str] = None
    stock: Optional[int] = None
    bookingData: Optional[BookingData] = None
    lineTotal: float


class CartResponse(BaseModel):
    cartId: str
    items: list[CartLineResponse]
    subtotal: float
    totalItems: int
