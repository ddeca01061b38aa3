from datetime import datetime, timezone
from urllib.parse import unquote

import pytest

from storefront.domain.enums import PaymentMethod
from storefront.schemas.cart import CartItem, CustomProductStep
from storefront.schemas.checkout import PersonalInfo
from storefront.schemas.order import Order
from storefront.services.order_message import build_order_message, whatsapp_url


def _order(**overrides) -> Order:
    data = dict(
        id="ord-10",
        items=[
            CartItem(id="a", product_id="p1", name="Pizza", unit_price_cents=3000, quantity=1,
                     has_variation=True, variation_id="G", variation_name="Grande", observation="sem cebola"),
            CartItem(id="b", product_id="p2", name="Refrigerante", unit_price_cents=600, quantity=2),
        ],
        subtotal_cents=4200,
        delivery_fee_cents=0,
        total_cents=4200,
        payment_method=PaymentMethod.cash,
        is_delivery=True,
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return Order(**data)


CUSTOMER = PersonalInfo(
    full_name="Maria Souza", phone="32999991234", address="Rua A", number="10",
    neighborhood="Centro", reference="Perto da praça",
)


def test_delivery_message_lists_items_and_address():
    message = build_order_message(_order(), CUSTOMER, "Pizzaria Central", change="50,00", city="Juiz de Fora (MG)")

    assert message.startswith("*NOVO PEDIDO - Pizzaria Central*")
    assert "1. 1x Pizza (Grande) - R$ 30,00" in message
    assert "   Obs: sem cebola" in message
    assert "2. 2x Refrigerante - R$ 12,00" in message
    assert "Bairro: Centro" in message
    assert "Cidade: Juiz de Fora (MG)" in message
    assert "Ponto de referência: Perto da praça" in message
    assert "Forma de pagamento: Dinheiro (Troco para R$ 50,00)" in message
    assert "Taxa de entrega: Grátis" in message
    assert message.rstrip().endswith("Obrigado pelo seu pedido!")


def test_addons_and_custom_products_in_message():
    steps = [
        CustomProductStep(step_number=1, step_name="Base", selected_items=[{"id": "s1", "name": "Açaí"}]),
        CustomProductStep(
            step_number=2, step_name="Complementos",
            selected_items=[{"id": "s2", "name": "Granola"}, {"id": "s3", "name": "Banana", "price_cents": 150}],
        ),
    ]
    items = [
        CartItem(id="a", product_id="p1", name="Pizza", unit_price_cents=3000, quantity=1),
        CartItem(id="c", product_id="c1", name="Monte seu açaí", unit_price_cents=1800, quantity=1,
                 is_custom_product=True, custom_product_steps=steps, observation="pouco gelo"),
        CartItem(id="x", product_id="a1", name="Borda recheada", unit_price_cents=500, quantity=2,
                 is_addon=True, parent_item_id="a"),
    ]
    message = build_order_message(_order(items=items, subtotal_cents=5800, total_cents=5800), CUSTOMER, "Loja")
    lines = message.splitlines()

    start = lines.index("1. 1x Pizza - R$ 40,00")
    assert lines[start + 1] == "   • 2x Borda recheada"
    assert lines[start + 2] == "2. 1x Monte seu açaí (Personalizado) - R$ 18,00"
    assert lines[start + 3] == "   • Base: Açaí"
    assert lines[start + 4] == "   • Complementos: Granola, Banana"
    assert lines[start + 5] == "   Obs: pouco gelo"
    assert "Subtotal: R$ 58,00" in lines


def test_pickup_message_has_no_address():
    message = build_order_message(
        _order(is_delivery=False, payment_method=PaymentMethod.pix), CUSTOMER, "Pizzaria Central"
    )
    assert "Retirada no local" in message
    assert "ENDEREÇO" not in message
    assert "Taxa de entrega" not in message
    assert "Forma de pagamento: PIX" in message


def test_whatsapp_url_strips_phone_formatting():
    url = whatsapp_url("+55 (32) 98888-0000", "Olá pedido")
    assert url.startswith("https://wa.me/5532988880000?text=")
    assert unquote(url.split("text=", 1)[1]) == "Olá pedido"


@pytest.mark.asyncio
async def test_session_link_after_order(ready_session):
    assert ready_session.whatsapp_link("Pizzaria Central") is None
    await ready_session.submit()

    link = ready_session.whatsapp_link("Pizzaria Central", "5532977776666")
    text = unquote(link.split("text=", 1)[1])
    assert link.startswith("https://wa.me/5532977776666?text=")
    assert "*Pedido:* ord-1" in text
    assert "Taxa de entrega: R$ 5,00" in text
    assert "Total: R$ 35,00" in text
