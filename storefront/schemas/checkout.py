# storefront/schemas/checkout.py
from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional

from storefront.domain.enums import CheckoutStep, PaymentMethod

STEP_COUNT = len(CheckoutStep)


class PersonalInfo(BaseModel):
    full_name: str = ""
    phone: str = ""
    address: Optional[str] = None
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    reference: Optional[str] = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("phone", mode="before")
    @classmethod
    def keep_digits(cls, value: str | None) -> str:
        if value is None:
            return ""
        return "".join(ch for ch in str(value) if ch.isdigit())


class PaymentInfo(BaseModel):
    method: PaymentMethod
    # Troco: amount the customer pays in cash, as a decimal-comma string.
    change: Optional[str] = Field(default=None, max_length=20)

    model_config = ConfigDict(frozen=True)


class CheckoutState(BaseModel):
    current_step: CheckoutStep = CheckoutStep.summary
    step_validity: List[bool] = Field(default_factory=lambda: [False] * STEP_COUNT)
    is_delivery: bool = True
    personal_info: Optional[PersonalInfo] = None
    payment: Optional[PaymentInfo] = None
    is_submitting: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def payment_method(self) -> PaymentMethod | None:
        return self.payment.method if self.payment else None


class CachedCheckout(BaseModel):
    """Checkout choices kept between visits to the same company."""

    company_slug: str
    is_delivery: bool = True
    personal_info: Optional[PersonalInfo] = None
    payment: Optional[PaymentInfo] = None
    saved_at: float
