# storefront/schemas/delivery.py
from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Any, List, Optional


def _split_neighborhoods(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    raise ValueError("bairros_atendidos must be a list or a comma separated string")


class DeliverySettings(BaseModel):
    """Delivery fields as the server sends them; money stays as locale strings."""

    taxa_entrega: Optional[str | int | float] = None
    pedido_minimo: Optional[str | int | float] = None
    mostrar_info_delivery: Optional[bool] = None
    especificar_bairros_atendidos: Optional[bool] = None
    bairros_atendidos: Optional[List[str]] = None
    tempo_estimado_entrega: Optional[int] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("bairros_atendidos", mode="before")
    @classmethod
    def validate_neighborhoods(cls, value: Any) -> list[str] | None:
        return _split_neighborhoods(value)

    @field_validator("tempo_estimado_entrega", mode="before")
    @classmethod
    def validate_estimated_minutes(cls, value: Any) -> int | None:
        try:
            return int(value) if value not in (None, "") else None
        except (TypeError, ValueError):
            return None


class LegacyDeliveryConfig(BaseModel):
    """Company config with the delivery block nested under ``delivery``."""

    delivery: DeliverySettings

    model_config = ConfigDict(extra="ignore", frozen=True)


class ModernDeliveryConfig(DeliverySettings):
    """Delivery config with the same fields flattened at the top level."""

    id: Optional[str] = None
    habilitar_carrinho: Optional[bool] = None
    observacoes: Optional[str] = None


class NormalizedDeliveryConfig(BaseModel):
    fee_cents: int = Field(default=0, ge=0)
    minimum_order_cents: int = Field(default=0, ge=0)
    delivery_enabled: bool = False
    restricted_neighborhoods: Optional[List[str]] = None
    estimated_delivery_minutes: Optional[int] = None

    model_config = ConfigDict(frozen=True)


DISABLED_DELIVERY = NormalizedDeliveryConfig()
