# storefront/schemas/cart.py
from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, computed_field, model_validator
from typing import List, Optional

MAX_OBSERVATION_LENGTH = 500


class CustomStepSelection(BaseModel):
    id: str
    name: str
    price_cents: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)


class CustomProductStep(BaseModel):
    """One stage of a build-your-own product (e.g. base, fillings)."""

    step_number: int = Field(..., ge=1)
    step_name: Optional[str] = None
    selected_items: List[CustomStepSelection] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class CartItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    name: str
    unit_price_cents: int = Field(..., ge=0)
    quantity: int = Field(default=1, gt=0)
    has_variation: bool = False
    variation_id: Optional[str] = None
    variation_name: Optional[str] = None
    observation: Optional[str] = Field(default=None, max_length=MAX_OBSERVATION_LENGTH)
    # add-ons hang off a main entry and are priced into its line
    is_addon: bool = False
    parent_item_id: Optional[str] = None
    is_custom_product: bool = False
    custom_product_steps: List[CustomProductStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_kind(self) -> "CartItemCreate":
        if self.has_variation and not self.variation_id:
            raise ValueError("variation_id is required when has_variation is set")
        if self.is_addon and not self.parent_item_id:
            raise ValueError("parent_item_id is required for add-ons")
        if not self.is_addon and self.parent_item_id:
            raise ValueError("parent_item_id is only allowed on add-ons")
        if self.is_addon and self.is_custom_product:
            raise ValueError("an add-on cannot be a custom product")
        return self


class CartItem(CartItemCreate):
    id: str

    model_config = ConfigDict(validate_assignment=True)

    @computed_field
    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


class CartState(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
    subtotal_cents: int = 0
    item_count: int = 0

    model_config = ConfigDict(frozen=True)
