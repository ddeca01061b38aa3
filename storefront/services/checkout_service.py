"""Four-step checkout: Summary -> PersonalInfo -> Payment -> Confirmation.

Each step owns a validity flag computed from its own inputs. Forward moves
require the current step to be valid; Payment moves forward only through
:meth:`CheckoutSession.submit`. Whenever a recompute invalidates a step that
was already passed, the session retreats to it.
"""
from __future__ import annotations

import time
from typing import Callable

from storefront.core.logging import get_logger
from storefront.domain.enums import CheckoutStep, PaymentMethod
from storefront.schemas.checkout import STEP_COUNT, CachedCheckout, CheckoutState, PaymentInfo, PersonalInfo
from storefront.schemas.delivery import NormalizedDeliveryConfig
from storefront.schemas.order import Order
from storefront.services import delivery_service
from storefront.services.cart_service import Cart
from storefront.services.checkout_cache import CheckoutCache
from storefront.services.delivery_service import RawDeliveryConfig
from storefront.services.exceptions import BusinessRuleViolation, ServiceError, ValidationError
from storefront.services.order_message import build_order_message, whatsapp_url
from storefront.services.order_service import OrderResult, OrderSubmission
from storefront.services.personal_info_store import PersonalInfoStore
from storefront.utils.money import format_brl, try_parse_cents

logger = get_logger(__name__)

MIN_NAME_LENGTH = 5
MIN_PHONE_DIGITS = 11
MAX_PHONE_DIGITS = 15
MIN_ADDRESS_LENGTH = 5
MIN_NEIGHBORHOOD_LENGTH = 3


def _too_short(value: str | None, minimum: int) -> bool:
    return not value or len(value.strip()) < minimum


def personal_info_errors(
    info: PersonalInfo | None,
    *,
    is_delivery: bool,
    delivery_config: NormalizedDeliveryConfig,
) -> list[str]:
    """Names of the fields that keep the personal info step invalid."""
    if info is None:
        missing = ["full_name", "phone"]
        if is_delivery:
            missing += ["address", "number", "neighborhood"]
        return missing

    errors: list[str] = []
    if _too_short(info.full_name, MIN_NAME_LENGTH):
        errors.append("full_name")
    if not MIN_PHONE_DIGITS <= len(info.phone) <= MAX_PHONE_DIGITS:
        errors.append("phone")
    if is_delivery:
        if _too_short(info.address, MIN_ADDRESS_LENGTH):
            errors.append("address")
        if _too_short(info.number, 1):
            errors.append("number")
        if _too_short(info.neighborhood, MIN_NEIGHBORHOOD_LENGTH):
            errors.append("neighborhood")
        elif not delivery_service.is_neighborhood_served(delivery_config, info.neighborhood):
            errors.append("neighborhood")
    return errors


def payment_errors(payment: PaymentInfo | None, total_cents: int) -> list[str]:
    if payment is None:
        return ["payment_method"]
    if payment.method == PaymentMethod.cash and payment.change:
        change_cents = try_parse_cents(payment.change)
        if change_cents is None or change_cents <= total_cents:
            return ["change"]
    return []


class CheckoutSession:
    """Checkout state for one visit to a company's checkout screen."""

    def __init__(
        self,
        cart: Cart,
        *,
        submission: OrderSubmission,
        delivery_config: RawDeliveryConfig = None,
        is_delivery: bool | None = None,
        company_slug: str | None = None,
        personal_info_store: PersonalInfoStore | None = None,
        checkout_cache: CheckoutCache | None = None,
        on_cart_emptied: Callable[[], None] | None = None,
    ) -> None:
        self.cart = cart
        self.company_slug = company_slug or cart.company_slug
        self._submission = submission
        self._config = delivery_service.normalize(delivery_config)
        self._store = personal_info_store
        self._cache = checkout_cache
        self._on_cart_emptied = on_cart_emptied

        self._current = CheckoutStep.summary
        self._validity = [False] * STEP_COUNT
        self._is_delivery = self._config.delivery_enabled if is_delivery is None else is_delivery
        self._personal_info: PersonalInfo | None = None
        self._payment: PaymentInfo | None = None
        self._is_submitting = False
        self._closed = False

        self.order: Order | None = None
        self._submitted: CheckoutState | None = None
        self.last_error: ServiceError | None = None

        if self._store is not None:
            self._personal_info = self._store.get()

        self._unsubscribe = cart.subscribe(self._on_cart_changed)
        self._recompute(summary=True, personal_info=True, payment=True)

    # -- derived values -------------------------------------------------

    @property
    def state(self) -> CheckoutState:
        return CheckoutState(
            current_step=self._current,
            step_validity=list(self._validity),
            is_delivery=self._is_delivery,
            personal_info=self._personal_info,
            payment=self._payment,
            is_submitting=self._is_submitting,
        )

    @property
    def current_step(self) -> CheckoutStep:
        return self._current

    @property
    def step_validity(self) -> tuple[bool, ...]:
        return tuple(self._validity)

    @property
    def is_submitting(self) -> bool:
        return self._is_submitting

    @property
    def is_delivery(self) -> bool:
        return self._is_delivery

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_completed(self) -> bool:
        return self.order is not None

    @property
    def delivery_config(self) -> NormalizedDeliveryConfig:
        return self._config

    @property
    def delivery_fee_cents(self) -> int:
        return delivery_service.delivery_fee_for(self._config, self._is_delivery)

    @property
    def total_cents(self) -> int:
        return delivery_service.order_total(self.cart.subtotal_cents, self._config, self._is_delivery)

    @property
    def remaining_to_minimum_cents(self) -> int:
        if not self._is_delivery:
            return 0
        return delivery_service.remaining_to_minimum(self.cart.subtotal_cents, self._config)

    @property
    def can_finish(self) -> bool:
        return (
            self._current == CheckoutStep.payment
            and self._validity[CheckoutStep.payment]
            and not self._is_submitting
            and not self.is_completed
        )

    def _is_frozen(self) -> bool:
        return self._closed or self.is_completed

    def _accepts_input(self) -> bool:
        return not self._is_frozen() and not self._is_submitting

    # -- validity -------------------------------------------------------

    def _summary_valid(self) -> bool:
        if self.cart.is_empty:
            return False
        if self._is_delivery:
            return delivery_service.is_minimum_reached(self.cart.subtotal_cents, self._config)
        return True

    def _recompute(self, *, summary: bool = False, personal_info: bool = False, payment: bool = False) -> None:
        if summary:
            self._validity[CheckoutStep.summary] = self._summary_valid()
        if personal_info:
            self._validity[CheckoutStep.personal_info] = not personal_info_errors(
                self._personal_info, is_delivery=self._is_delivery, delivery_config=self._config
            )
        if payment:
            self._validity[CheckoutStep.payment] = not payment_errors(self._payment, self.total_cents)

        for step in range(self._current):
            if not self._validity[step]:
                logger.info(
                    "checkout step invalidated, moving back",
                    extra={"from_step": self._current.name, "to_step": CheckoutStep(step).name},
                )
                self._current = CheckoutStep(step)
                break

    def blocking_reason(self) -> ServiceError | None:
        """Why the current step cannot move forward, for guidance text."""
        step = self._current
        if step == CheckoutStep.summary:
            if self.cart.is_empty:
                return ValidationError("Seu carrinho está vazio", ["items"])
            if self._is_delivery:
                try:
                    delivery_service.check_minimum(self.cart.subtotal_cents, self._config)
                except BusinessRuleViolation as exc:
                    return exc
            return None
        if step == CheckoutStep.personal_info:
            errors = personal_info_errors(
                self._personal_info, is_delivery=self._is_delivery, delivery_config=self._config
            )
            if not errors:
                return None
            if self._is_delivery:
                return ValidationError("Preencha todos os campos de dados pessoais e endereço", errors)
            return ValidationError("Preencha seu nome e WhatsApp corretamente", errors)
        if step == CheckoutStep.payment:
            errors = payment_errors(self._payment, self.total_cents)
            if not errors:
                return None
            if errors == ["change"]:
                return ValidationError(
                    f"Valor para troco deve ser maior que {format_brl(self.total_cents)}", errors
                )
            return ValidationError("Selecione uma forma de pagamento", errors)
        return None

    # -- inputs ---------------------------------------------------------

    def _on_cart_changed(self, cart: Cart) -> None:
        if self._is_frozen():
            return
        self._recompute(summary=True, payment=True)
        if cart.is_empty and self._on_cart_emptied is not None:
            self._on_cart_emptied()

    def set_delivery(self, is_delivery: bool) -> bool:
        """Switch between delivery and pickup; delivery needs it enabled for the company."""
        if not self._accepts_input():
            return False
        if is_delivery and not self._config.delivery_enabled:
            return False
        self._is_delivery = is_delivery
        self._recompute(summary=True, personal_info=True, payment=True)
        self.persist()
        return True

    def set_delivery_config(self, raw: RawDeliveryConfig) -> None:
        if not self._accepts_input():
            return
        self._config = delivery_service.normalize(raw)
        if self._is_delivery and not self._config.delivery_enabled:
            self._is_delivery = False
        self._recompute(summary=True, personal_info=True, payment=True)

    def set_personal_info(self, info: PersonalInfo) -> bool:
        if not self._accepts_input():
            return False
        self._personal_info = info
        self._recompute(personal_info=True)
        valid = self._validity[CheckoutStep.personal_info]
        if valid and self._store is not None:
            self._store.save(info)
        self.persist()
        return valid

    def set_payment_method(self, method: PaymentMethod, change: str | None = None) -> bool:
        if not self._accepts_input():
            return False
        self._payment = PaymentInfo(method=method, change=change or None)
        self._recompute(payment=True)
        self.persist()
        return self._validity[CheckoutStep.payment]

    # -- navigation -----------------------------------------------------

    def go_next(self) -> bool:
        if not self._accepts_input():
            return False
        if self._current >= CheckoutStep.payment:
            return False
        if not self._validity[self._current]:
            return False
        self._current = CheckoutStep(self._current + 1)
        return True

    def go_back(self) -> bool:
        if not self._accepts_input() or self._current == CheckoutStep.summary:
            return False
        self._current = CheckoutStep(self._current - 1)
        return True

    def go_to(self, step: int | CheckoutStep) -> bool:
        if not self._accepts_input():
            return False
        if not 0 <= int(step) <= self._current:
            return False
        self._current = CheckoutStep(int(step))
        return True

    # -- submission -----------------------------------------------------

    async def submit(self) -> OrderResult | None:
        """Place the order once.

        Returns ``None`` when the call is ignored (already submitting, closed,
        or completed).
        """
        if self._is_frozen():
            return None
        if self._is_submitting:
            logger.info("duplicate submit ignored", extra={"company_slug": self.company_slug})
            return None
        if self._current != CheckoutStep.payment or not self._validity[CheckoutStep.payment]:
            error = self.blocking_reason() or ValidationError("Checkout is not ready to submit")
            self.last_error = error
            return OrderResult(error=error)

        self._is_submitting = True
        self.last_error = None
        checkout_state = self.state
        cart_state = self.cart.snapshot()
        try:
            result = await self._submission.place_order(
                cart_state, checkout_state, self._config, company_slug=self.company_slug
            )
        finally:
            if not self._closed:
                self._is_submitting = False

        if self._closed:
            logger.warning(
                "checkout closed during submission, result discarded",
                extra={"company_slug": self.company_slug, "ok": result.ok},
            )
            return result

        if not result.ok:
            self.last_error = result.error
            return result

        self.order = result.order
        self._submitted = checkout_state
        # Validity as it was when the order was built; the cart may have changed in flight.
        self._validity[: CheckoutStep.confirmation] = checkout_state.step_validity[: CheckoutStep.confirmation]
        self._validity[CheckoutStep.confirmation] = True
        self._current = CheckoutStep.confirmation
        self._unsubscribe()
        self.cart.clear()
        if self._cache is not None and self.company_slug:
            self._cache.clear(self.company_slug)
        return result

    def confirmation_message(self, company_name: str) -> str | None:
        """Store message for the placed order, built from what was submitted."""
        submitted = self._submitted
        if self.order is None or submitted is None or submitted.personal_info is None:
            return None
        change = submitted.payment.change if submitted.payment else None
        return build_order_message(self.order, submitted.personal_info, company_name, change=change)

    def whatsapp_link(self, company_name: str, store_phone: str | None = None) -> str | None:
        message = self.confirmation_message(company_name)
        if message is None:
            return None
        return whatsapp_url(store_phone, message)

    # -- lifecycle ------------------------------------------------------

    def persist(self) -> None:
        if self._cache is None or not self.company_slug or self._is_frozen():
            return
        self._cache.set(
            CachedCheckout(
                company_slug=self.company_slug,
                is_delivery=self._is_delivery,
                personal_info=self._personal_info,
                payment=self._payment,
                saved_at=time.time(),
            )
        )

    def restore(self) -> bool:
        """Reapply cached choices for the same company, if still fresh."""
        if self._cache is None or not self.company_slug or not self._accepts_input():
            return False
        cached = self._cache.get(self.company_slug)
        if cached is None:
            return False
        if not cached.is_delivery or self._config.delivery_enabled:
            self._is_delivery = cached.is_delivery
        if cached.personal_info is not None:
            self._personal_info = cached.personal_info
        if cached.payment is not None:
            self._payment = cached.payment
        self._recompute(summary=True, personal_info=True, payment=True)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
