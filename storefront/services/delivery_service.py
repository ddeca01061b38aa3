"""Delivery eligibility rules over a normalized delivery config.

The server sends one of two shapes, told apart only by structure:

* legacy company config: ``{"delivery": {"taxa_entrega": "5,00", ...}}``
* flat delivery config: ``{"taxa_entrega": "5,00", "pedido_minimo": ...}``

Everything downstream of :func:`normalize` works on
:class:`NormalizedDeliveryConfig` only.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from storefront.core.logging import get_logger
from storefront.schemas.delivery import (
    DISABLED_DELIVERY,
    DeliverySettings,
    LegacyDeliveryConfig,
    ModernDeliveryConfig,
    NormalizedDeliveryConfig,
)
from storefront.services.exceptions import BusinessRuleViolation, ConfigParseError
from storefront.utils.money import format_brl, parse_cents

logger = get_logger(__name__)

_FLAT_FIELDS = frozenset(
    {
        "taxa_entrega",
        "pedido_minimo",
        "mostrar_info_delivery",
        "especificar_bairros_atendidos",
        "bairros_atendidos",
    }
)

RawDeliveryConfig = (
    Mapping[str, Any] | LegacyDeliveryConfig | ModernDeliveryConfig | NormalizedDeliveryConfig | None
)


def _parse_raw(raw: Mapping[str, Any] | LegacyDeliveryConfig | ModernDeliveryConfig) -> DeliverySettings:
    if isinstance(raw, LegacyDeliveryConfig):
        return raw.delivery
    if isinstance(raw, ModernDeliveryConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigParseError(f"Unsupported delivery config type: {type(raw).__name__}")

    try:
        if isinstance(raw.get("delivery"), Mapping):
            return LegacyDeliveryConfig.model_validate(raw).delivery
        if _FLAT_FIELDS.intersection(raw.keys()):
            return ModernDeliveryConfig.model_validate(raw)
    except PydanticValidationError as exc:
        raise ConfigParseError(f"Invalid delivery config: {exc.error_count()} error(s)") from exc

    raise ConfigParseError("Unrecognized delivery config shape")


def _from_settings(fields: DeliverySettings) -> NormalizedDeliveryConfig:
    restricted = None
    if fields.especificar_bairros_atendidos:
        restricted = list(fields.bairros_atendidos or [])

    # Absent flag means enabled; companies created before the flag existed never set it.
    enabled = True if fields.mostrar_info_delivery is None else bool(fields.mostrar_info_delivery)

    return NormalizedDeliveryConfig(
        fee_cents=max(0, parse_cents(fields.taxa_entrega)),
        minimum_order_cents=max(0, parse_cents(fields.pedido_minimo)),
        delivery_enabled=enabled,
        restricted_neighborhoods=restricted,
        estimated_delivery_minutes=fields.tempo_estimado_entrega,
    )


def normalize(raw: RawDeliveryConfig) -> NormalizedDeliveryConfig:
    """Map either server schema onto the single internal config.

    Unknown shapes fall back to "delivery disabled, no fee, no minimum".
    """
    if isinstance(raw, NormalizedDeliveryConfig):
        return raw
    if raw is None:
        return DISABLED_DELIVERY
    try:
        return _from_settings(_parse_raw(raw))
    except ConfigParseError as exc:
        logger.warning("delivery config fallback", extra={"reason": exc.detail})
        return DISABLED_DELIVERY


def is_minimum_reached(subtotal_cents: int, cfg: NormalizedDeliveryConfig) -> bool:
    if cfg.minimum_order_cents == 0:
        return True
    return subtotal_cents >= cfg.minimum_order_cents


def remaining_to_minimum(subtotal_cents: int, cfg: NormalizedDeliveryConfig) -> int:
    return max(0, cfg.minimum_order_cents - subtotal_cents)


def check_minimum(subtotal_cents: int, cfg: NormalizedDeliveryConfig) -> None:
    """Raise :class:`BusinessRuleViolation` with the missing amount if below minimum."""
    remaining = remaining_to_minimum(subtotal_cents, cfg)
    if not is_minimum_reached(subtotal_cents, cfg):
        raise BusinessRuleViolation(
            f"Faltam {format_brl(remaining)} para o pedido mínimo de {format_brl(cfg.minimum_order_cents)}",
            remaining_cents=remaining,
        )


def has_neighborhood_restriction(cfg: NormalizedDeliveryConfig) -> bool:
    return cfg.restricted_neighborhoods is not None


def neighborhood_list(cfg: NormalizedDeliveryConfig) -> list[str]:
    return list(cfg.restricted_neighborhoods or [])


def _fold(name: str) -> str:
    return name.strip().casefold()


def is_neighborhood_served(cfg: NormalizedDeliveryConfig, neighborhood: str | None) -> bool:
    if not neighborhood or not neighborhood.strip():
        return False
    if not has_neighborhood_restriction(cfg):
        return True
    wanted = _fold(neighborhood)
    return any(_fold(name) == wanted for name in neighborhood_list(cfg))


def delivery_fee_for(cfg: NormalizedDeliveryConfig, is_delivery: bool) -> int:
    return cfg.fee_cents if is_delivery else 0


def order_total(subtotal_cents: int, cfg: NormalizedDeliveryConfig, is_delivery: bool) -> int:
    return subtotal_cents + delivery_fee_for(cfg, is_delivery)
