"""Checkout domain schemas"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_iso_date, validate_local_phone, validate_time
from ..cart.schemas import CatalogId
from ..discounts.schemas import AppliedDiscount


class CustomerData(BaseModel):
    customerName: str
    customerPhone: str

    @field_validator("customerName")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("El nombre es requerido")
        return v

    @field_validator("customerPhone")
    @classmethod
    def validate_phone(cls, v):
        phone = validate_local_phone(v)
        if not phone:
            raise ValueError("El teléfono es requerido")
        return phone


class CheckoutRequest(CustomerData):
    discountCode: Optional[str] = None


class CheckoutResponse(BaseModel):
    whatsappUrl: str
    message: str
    subtotal: float
    discount: Optional[AppliedDiscount] = None
    discountAmount: float = 0
    total: float
    warnings: list[str] = []
    reservation: Optional[Any] = None


class BookingRequest(CustomerData):
    """Book one appointment for a service or an offer"""

    serviceId: Optional[CatalogId] = None
    offerId: Optional[CatalogId] = None
    barberId: Optional[CatalogId] = None
    date: str
    time: str

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_iso_date(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)

    @model_validator(mode="after")
    def require_one_target(self):
        if (self.serviceId is None) == (self.offerId is None):
            raise ValueError("Indica serviceId u offerId")
        return self


class BookingResponse(BaseModel):
    reservation: Optional[Any] = None
    whatsappUrl: str
    message: str
