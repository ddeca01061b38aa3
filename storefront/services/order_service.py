from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from storefront.core.logging import get_logger, order_alert
from storefront.domain.enums import CheckoutStep
from storefront.schemas.cart import CartState
from storefront.schemas.checkout import CheckoutState
from storefront.schemas.delivery import NormalizedDeliveryConfig
from storefront.schemas.order import DeliveryAddress, Order, OrderCreate
from storefront.services import delivery_service
from storefront.services.exceptions import ServiceError, ValidationError
from storefront.services.order_client import OrderClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class OrderResult:
    order: Optional[Order] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.order is not None


def _delivery_address(checkout: CheckoutState) -> DeliveryAddress | None:
    info = checkout.personal_info
    if not checkout.is_delivery or info is None:
        return None
    if not (info.address and info.number and info.neighborhood):
        return None
    return DeliveryAddress(
        address=info.address,
        number=info.number,
        neighborhood=info.neighborhood,
        reference=info.reference,
    )


def build_order_payload(
    cart: CartState,
    checkout: CheckoutState,
    delivery_config: NormalizedDeliveryConfig,
    *,
    company_slug: str | None = None,
) -> OrderCreate:
    """Validate preconditions and freeze the request body."""
    if cart.item_count == 0:
        raise ValidationError("Seu carrinho está vazio", ["items"])
    upto_payment = checkout.step_validity[: CheckoutStep.payment + 1]
    if not all(upto_payment):
        invalid = [CheckoutStep(i).name for i, ok in enumerate(upto_payment) if not ok]
        raise ValidationError("Checkout has invalid steps", invalid)
    if checkout.payment is None:
        raise ValidationError("Selecione uma forma de pagamento", ["payment_method"])

    fee = delivery_service.delivery_fee_for(delivery_config, checkout.is_delivery)
    return OrderCreate(
        items=[item.model_copy() for item in cart.items],
        subtotal_cents=cart.subtotal_cents,
        delivery_fee_cents=fee,
        total_cents=cart.subtotal_cents + fee,
        payment_method=checkout.payment.method,
        is_delivery=checkout.is_delivery,
        delivery_address=_delivery_address(checkout),
        customer=checkout.personal_info,
        company_slug=company_slug,
        change=checkout.payment.change or None,
    )


class OrderSubmission:
    """Turns a committed checkout into exactly one order-creation request.

    Failures are returned, never retried.
    """

    def __init__(self, client: OrderClient | None = None) -> None:
        self.client = client or OrderClient()

    async def place_order(
        self,
        cart: CartState,
        checkout: CheckoutState,
        delivery_config: NormalizedDeliveryConfig,
        *,
        company_slug: str | None = None,
    ) -> OrderResult:
        try:
            payload = build_order_payload(cart, checkout, delivery_config, company_slug=company_slug)
        except ValidationError as exc:
            return OrderResult(error=exc)

        try:
            created = await self.client.create_order(payload)
        except ServiceError as exc:
            order_alert(
                "order creation failed",
                error=exc.detail,
                company_slug=company_slug,
                total_cents=payload.total_cents,
            )
            return OrderResult(error=exc)

        order = Order(
            id=created.id,
            items=payload.items,
            subtotal_cents=payload.subtotal_cents,
            delivery_fee_cents=payload.delivery_fee_cents,
            total_cents=payload.total_cents,
            payment_method=payload.payment_method,
            is_delivery=payload.is_delivery,
            created_at=created.created_at,
        )
        logger.info(
            "order created",
            extra={"order_id": order.id, "total_cents": order.total_cents, "company_slug": company_slug},
        )
        return OrderResult(order=order)
