"""Discount domain schemas"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class DiscountCode(BaseModel):
    """A discount code as the backend describes it"""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    code: str = ""
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float = Field(ge=0)
    max_discount: Optional[float] = None
    min_purchase: Optional[float] = 0


class AppliedDiscount(DiscountCode):
    """A validated code together with the amount it takes off the current subtotal"""

    discountAmount: float = 0


class ValidateDiscountRequest(BaseModel):
    """Validate a code against a persisted cart or an explicit subtotal"""

    code: str
    cartId: Optional[str] = None
    subtotal: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def require_amount_source(self):
        if self.cartId is None and self.subtotal is None:
            raise ValueError("cartId or subtotal is required")
        return self


class ValidateDiscountResponse(BaseModel):
    discount: AppliedDiscount
    subtotal: float
    discountAmount: float
    total: float
