from __future__ import annotations

import secrets
import time
from typing import Protocol


class _Purchasable(Protocol):
    product_id: str
    has_variation: bool
    variation_id: str | None
    is_addon: bool
    parent_item_id: str | None
    is_custom_product: bool


def generate_item_id(
    product_id: str,
    has_variation: bool = False,
    variation_id: str | None = None,
    *,
    parent_item_id: str | None = None,
    is_custom_product: bool = False,
) -> str:
    """Session-unique display/lookup key for a cart entry; never used for identity."""
    suffix = f"{time.time_ns() // 1_000_000}{secrets.token_hex(2)}"
    if parent_item_id:
        return f"addon_{product_id}_{parent_item_id}_{suffix}"
    if is_custom_product:
        return f"{product_id}_custom_{suffix}"
    if has_variation and variation_id:
        return f"{product_id}_var_{variation_id}_{suffix}"
    return f"{product_id}_{suffix}"


def is_same_product(a: _Purchasable, b: _Purchasable) -> bool:
    """Whether two entries are the same purchasable unit.

    A variant purchase and a plain purchase of the same product are distinct.
    Custom products are never merged; add-ons merge only under the same parent.
    """
    if a.is_custom_product or b.is_custom_product:
        return False
    if a.is_addon != b.is_addon:
        return False
    if a.is_addon and a.parent_item_id != b.parent_item_id:
        return False
    if a.has_variation != b.has_variation:
        return False
    if a.has_variation:
        return a.product_id == b.product_id and a.variation_id == b.variation_id
    return a.product_id == b.product_id


def format_product_name(name: str, has_variation: bool, variation_name: str | None = None) -> str:
    if has_variation and variation_name:
        return f"{name} ({variation_name})"
    return name
