from __future__ import annotations

from typing import Callable, Iterator

from pydantic import ValidationError as PydanticValidationError

from storefront.core.logging import get_logger
from storefront.schemas.cart import MAX_OBSERVATION_LENGTH, CartItem, CartItemCreate, CartState
from storefront.services.cart_identity import generate_item_id, is_same_product
from storefront.services.exceptions import InvalidQuantityError, ValidationError

logger = get_logger(__name__)

CartListener = Callable[["Cart"], None]


class Cart:
    """In-memory cart owned by a single company page session.

    Add-ons are separate entries pointing at a main entry through
    ``parent_item_id``; they are removed together with their parent and do
    not count as items.
    """

    def __init__(self, company_slug: str | None = None) -> None:
        self.company_slug = company_slug
        self._items: list[CartItem] = []
        self._listeners: list[CartListener] = []

    def __iter__(self) -> Iterator[CartItem]:
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self._items)

    @property
    def subtotal_cents(self) -> int:
        return sum(item.line_total_cents for item in self._items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items if not item.is_addon)

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    def addons_for(self, item_id: str) -> list[CartItem]:
        return [item for item in self._items if item.is_addon and item.parent_item_id == item_id]

    def line_total_with_addons(self, item_id: str) -> int:
        item = self._get_item(item_id)
        if not item:
            return 0
        return item.line_total_cents + sum(addon.line_total_cents for addon in self.addons_for(item_id))

    def snapshot(self) -> CartState:
        return CartState(
            items=[item.model_copy() for item in self._items],
            subtotal_cents=self.subtotal_cents,
            item_count=self.item_count,
        )

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _get_item(self, item_id: str) -> CartItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def _drop(self, item: CartItem) -> None:
        self._items.remove(item)
        for addon in self.addons_for(item.id):
            self._items.remove(addon)

    def add_item(self, candidate: CartItemCreate) -> str:
        if candidate.quantity < 1:
            raise InvalidQuantityError("Quantity must be at least 1")
        if candidate.is_addon:
            parent = self._get_item(candidate.parent_item_id)
            if parent is None or parent.is_addon:
                raise ValidationError("Item principal não encontrado no carrinho", ["parent_item_id"])

        existing = next((i for i in self._items if is_same_product(i, candidate)), None)
        if existing:
            existing.quantity += candidate.quantity
            item_id = existing.id
        else:
            item_id = generate_item_id(
                candidate.product_id,
                candidate.has_variation,
                candidate.variation_id,
                parent_item_id=candidate.parent_item_id,
                is_custom_product=candidate.is_custom_product,
            )
            self._items.append(CartItem(id=item_id, **candidate.model_dump()))

        logger.debug(
            "cart item added",
            extra={"item_id": item_id, "product_id": candidate.product_id, "merged": existing is not None},
        )
        self._notify()
        return item_id

    def remove_item(self, item_id: str) -> None:
        item = self._get_item(item_id)
        if not item:
            return
        self._drop(item)
        self._notify()

    def set_quantity(self, item_id: str, quantity: int) -> None:
        item = self._get_item(item_id)
        if not item:
            return
        if quantity <= 0:
            self._drop(item)
        else:
            item.quantity = quantity
        self._notify()

    def set_observation(self, item_id: str, observation: str | None) -> None:
        item = self._get_item(item_id)
        if not item:
            return
        try:
            item.observation = observation or None
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Observação deve ter no máximo {MAX_OBSERVATION_LENGTH} caracteres", ["observation"]
            ) from exc
        self._notify()

    def clear(self) -> None:
        if not self._items:
            return
        self._items.clear()
        self._notify()
