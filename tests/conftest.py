# tests/conftest.py
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import asyncio
import json
from typing import Callable

import httpx
import pytest

from storefront.domain.enums import PaymentMethod
from storefront.schemas.cart import CartItemCreate
from storefront.schemas.checkout import PersonalInfo
from storefront.services.cart_service import Cart
from storefront.services.checkout_cache import CheckoutCache
from storefront.services.checkout_service import CheckoutSession
from storefront.services.order_client import OrderClient
from storefront.services.order_service import OrderSubmission
from storefront.services.personal_info_store import InMemoryPersonalInfoStore

BASE_URL = "http://backend.test"


def make_item(
    product_id: str = "p1",
    *,
    price: int = 1000,
    quantity: int = 1,
    variation_id: str | None = None,
    name: str = "Pizza",
    parent_item_id: str | None = None,
    custom_steps: list[dict] | None = None,
) -> CartItemCreate:
    return CartItemCreate(
        product_id=product_id,
        name=name,
        unit_price_cents=price,
        quantity=quantity,
        has_variation=variation_id is not None,
        variation_id=variation_id,
        variation_name=f"Tam {variation_id}" if variation_id else None,
        is_addon=parent_item_id is not None,
        parent_item_id=parent_item_id,
        is_custom_product=custom_steps is not None,
        custom_product_steps=custom_steps or [],
    )


LEGACY_CONFIG = {
    "id": "company-1",
    "nome": "Pizzaria Central",
    "delivery": {
        "taxa_entrega": "5,00",
        "pedido_minimo": "20,00",
        "mostrar_info_delivery": True,
        "especificar_bairros_atendidos": True,
        "bairros_atendidos": ["Centro", "São José"],
    },
}


class OrderBackend:
    """Records order requests and answers them through an httpx MockTransport."""

    def __init__(self) -> None:
        self.requests: list[dict] = []
        self.responder: Callable[[httpx.Request], httpx.Response] | None = None
        self.release: asyncio.Event | None = None
        self._counter = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.release is not None:
            await self.release.wait()
        if self.responder is not None:
            return self.responder(request)
        self._counter += 1
        return httpx.Response(
            201,
            json={"id": f"ord-{self._counter}", "createdAt": "2024-05-01T12:00:00Z"},
        )


@pytest.fixture
def cart() -> Cart:
    return Cart(company_slug="pizzaria-central")


@pytest.fixture
def order_backend() -> OrderBackend:
    return OrderBackend()


@pytest.fixture
def http_client(order_backend: OrderBackend) -> httpx.AsyncClient:
    # MockTransport holds no connections, so the client needs no closing.
    return httpx.AsyncClient(transport=httpx.MockTransport(order_backend))


@pytest.fixture
def submission(http_client: httpx.AsyncClient) -> OrderSubmission:
    return OrderSubmission(OrderClient(http_client, base_url=BASE_URL))


@pytest.fixture
def personal_info() -> PersonalInfo:
    return PersonalInfo(
        full_name="Maria Souza",
        phone="(32) 99999-1234",
        address="Rua das Flores",
        number="42",
        neighborhood="Centro",
    )


@pytest.fixture
def session_factory(cart: Cart, submission: OrderSubmission):
    def _factory(**kwargs) -> CheckoutSession:
        kwargs.setdefault("delivery_config", LEGACY_CONFIG)
        kwargs.setdefault("personal_info_store", InMemoryPersonalInfoStore())
        kwargs.setdefault("checkout_cache", CheckoutCache())
        return CheckoutSession(cart, submission=submission, **kwargs)

    return _factory


@pytest.fixture
def ready_session(cart: Cart, session_factory, personal_info: PersonalInfo) -> CheckoutSession:
    """Session sitting on the payment step with everything valid."""
    cart.add_item(make_item("p1", price=1500, quantity=2))
    session = session_factory()
    assert session.go_next()
    assert session.set_personal_info(personal_info)
    assert session.go_next()
    assert session.set_payment_method(PaymentMethod.pix)
    return session
