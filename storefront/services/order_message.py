"""Plain-text order summary sent to the store over WhatsApp."""
from __future__ import annotations

import re
from typing import Sequence
from urllib.parse import quote

from storefront.core.config import settings
from storefront.domain.enums import PAYMENT_METHOD_LABELS, PaymentMethod
from storefront.schemas.cart import CartItem
from storefront.schemas.checkout import PersonalInfo
from storefront.schemas.order import Order
from storefront.services.cart_identity import format_product_name
from storefront.utils.money import format_brl


def _item_lines(items: Sequence[CartItem]) -> list[str]:
    """Main entries with their add-ons first, then custom products."""
    main = [item for item in items if not item.is_addon and not item.is_custom_product]
    custom = [item for item in items if item.is_custom_product]
    lines: list[str] = []

    for index, item in enumerate(main, start=1):
        addons = [a for a in items if a.is_addon and a.parent_item_id == item.id]
        total = item.line_total_cents + sum(a.line_total_cents for a in addons)
        name = format_product_name(item.name, item.has_variation, item.variation_name)
        lines.append(f"{index}. {item.quantity}x {name} - {format_brl(total)}")
        for addon in addons:
            lines.append(f"   • {addon.quantity}x {addon.name}")
        if item.observation:
            lines.append(f"   Obs: {item.observation}")

    for index, item in enumerate(custom, start=len(main) + 1):
        lines.append(f"{index}. {item.quantity}x {item.name} (Personalizado) - {format_brl(item.line_total_cents)}")
        for step in item.custom_product_steps:
            chosen = ", ".join(selection.name for selection in step.selected_items)
            lines.append(f"   • {step.step_name}: {chosen}" if step.step_name else f"   • {chosen}")
        if item.observation:
            lines.append(f"   Obs: {item.observation}")
    return lines


def build_order_message(
    order: Order,
    customer: PersonalInfo,
    company_name: str,
    *,
    change: str | None = None,
    city: str | None = None,
) -> str:
    lines = [f"*NOVO PEDIDO - {company_name}*", ""]
    lines.append(f"*Pedido:* {order.id}")
    lines.append(f"*Tipo de entrega:* {'Entrega' if order.is_delivery else 'Retirada no local'}")
    lines.append("")

    lines.append("*DADOS DO CLIENTE:*")
    lines.append(f"Nome: {customer.full_name}")
    lines.append(f"WhatsApp: {customer.phone}")

    if order.is_delivery:
        lines.append("")
        lines.append("*ENDEREÇO DE ENTREGA:*")
        lines.append(f"{customer.address}, {customer.number}")
        lines.append(f"Bairro: {customer.neighborhood}")
        lines.append(f"Cidade: {city or settings.STORE_CITY}")
        if customer.reference:
            lines.append(f"Ponto de referência: {customer.reference}")

    lines.append("")
    lines.append("*ITENS DO PEDIDO:*")
    lines.extend(_item_lines(order.items))

    lines.append("")
    lines.append("*PAGAMENTO:*")
    payment = PAYMENT_METHOD_LABELS[order.payment_method]
    if order.payment_method == PaymentMethod.cash and change:
        payment += f" (Troco para R$ {change})"
    lines.append(f"Forma de pagamento: {payment}")
    lines.append(f"Subtotal: {format_brl(order.subtotal_cents)}")
    if order.is_delivery:
        fee = format_brl(order.delivery_fee_cents) if order.delivery_fee_cents > 0 else "Grátis"
        lines.append(f"Taxa de entrega: {fee}")
    lines.append(f"Total: {format_brl(order.total_cents)}")
    lines.append("")
    lines.append("Obrigado pelo seu pedido!")
    return "\n".join(lines)


def whatsapp_url(phone: str | None, message: str) -> str:
    digits = re.sub(r"\D", "", phone or "") or settings.DEFAULT_STORE_WHATSAPP
    return f"{settings.WHATSAPP_BASE_URL}/{digits}?text={quote(message)}"
