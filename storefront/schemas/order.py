from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Any, List, Optional
from datetime import datetime

from storefront.domain.enums import PaymentMethod
from storefront.schemas.cart import CartItem, CustomProductStep
from storefront.schemas.checkout import PersonalInfo
from storefront.utils.money import format_cents


def _wire_step(step: CustomProductStep) -> dict[str, Any]:
    return {
        "stepNumber": step.step_number,
        "stepName": step.step_name,
        "selectedItems": [
            {
                "id": selection.id,
                "name": selection.name,
                "price": None if selection.price_cents is None else format_cents(selection.price_cents),
            }
            for selection in step.selected_items
        ],
    }


class DeliveryAddress(BaseModel):
    address: str
    number: str
    neighborhood: str
    reference: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class OrderCreate(BaseModel):
    items: List[CartItem] = Field(..., min_length=1)
    subtotal_cents: int = Field(..., ge=0)
    delivery_fee_cents: int = Field(default=0, ge=0)
    total_cents: int = Field(..., ge=0)
    payment_method: PaymentMethod
    is_delivery: bool
    delivery_address: Optional[DeliveryAddress] = None
    customer: Optional[PersonalInfo] = None
    company_slug: Optional[str] = None
    change: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON body for the order service; money goes out as ``"12,34"``."""
        payload: dict[str, Any] = {
            "items": [
                {
                    "id": item.id,
                    "productId": item.product_id,
                    "hasVariation": item.has_variation,
                    "variationId": item.variation_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "unitPrice": format_cents(item.unit_price_cents),
                    "totalPrice": format_cents(item.line_total_cents),
                    "observation": item.observation,
                    "isAddon": item.is_addon,
                    "parentItemId": item.parent_item_id,
                    "isCustomProduct": item.is_custom_product,
                    "customProductSteps": [_wire_step(step) for step in item.custom_product_steps],
                }
                for item in self.items
            ],
            "subtotal": format_cents(self.subtotal_cents),
            "deliveryFee": format_cents(self.delivery_fee_cents),
            "total": format_cents(self.total_cents),
            "paymentMethod": self.payment_method.value,
            "isDelivery": self.is_delivery,
        }
        if self.delivery_address:
            payload["deliveryAddress"] = self.delivery_address.model_dump()
        if self.customer:
            payload["customer"] = {
                "fullName": self.customer.full_name,
                "whatsapp": self.customer.phone,
            }
        if self.company_slug:
            payload["companySlug"] = self.company_slug
        if self.change:
            payload["change"] = self.change
        return payload


class OrderCreated(BaseModel):
    id: str = Field(..., min_length=1)
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class Order(BaseModel):
    id: str
    items: List[CartItem]
    subtotal_cents: int
    delivery_fee_cents: int
    total_cents: int
    payment_method: PaymentMethod
    is_delivery: bool
    created_at: datetime

    model_config = ConfigDict(frozen=True)
