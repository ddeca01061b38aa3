import logging

import pytest

from conftest import LEGACY_CONFIG

from storefront.schemas.delivery import DISABLED_DELIVERY, ModernDeliveryConfig, NormalizedDeliveryConfig
from storefront.services import delivery_service
from storefront.services.exceptions import BusinessRuleViolation

MODERN_CONFIG = {
    "id": "cfg-9",
    "taxa_entrega": "3,50",
    "pedido_minimo": "20,00",
    "tempo_estimado_entrega": 40,
    "especificar_bairros_atendidos": False,
    "bairros_atendidos": [],
    "mostrar_info_delivery": True,
    "habilitar_carrinho": True,
}


def test_normalize_legacy_config():
    cfg = delivery_service.normalize(LEGACY_CONFIG)
    assert cfg.fee_cents == 500
    assert cfg.minimum_order_cents == 2000
    assert cfg.delivery_enabled is True
    assert cfg.restricted_neighborhoods == ["Centro", "São José"]


def test_normalize_modern_config():
    cfg = delivery_service.normalize(MODERN_CONFIG)
    assert cfg.fee_cents == 350
    assert cfg.minimum_order_cents == 2000
    assert cfg.restricted_neighborhoods is None
    assert cfg.estimated_delivery_minutes == 40
    assert delivery_service.normalize(ModernDeliveryConfig.model_validate(MODERN_CONFIG)) == cfg


def test_both_schemas_agree_on_same_values():
    legacy = delivery_service.normalize({"delivery": {k: v for k, v in MODERN_CONFIG.items() if k != "id"}})
    modern = delivery_service.normalize(MODERN_CONFIG)
    assert legacy == modern


def test_normalize_is_a_fixed_point():
    for raw in (LEGACY_CONFIG, MODERN_CONFIG, None, {"foo": 1}):
        once = delivery_service.normalize(raw)
        assert delivery_service.normalize(once) == once
        assert delivery_service.normalize(once) is once


def test_unparsable_money_is_zero_and_negative_is_clamped():
    cfg = delivery_service.normalize({"taxa_entrega": "grátis", "pedido_minimo": "-10,00"})
    assert cfg.fee_cents == 0
    assert cfg.minimum_order_cents == 0


@pytest.mark.parametrize(
    "flag,expected",
    [(None, True), (True, True), (False, False)],
)
def test_delivery_enabled_defaults_to_true_only_when_flag_missing(flag, expected):
    raw = {"taxa_entrega": "1,00", "mostrar_info_delivery": flag}
    assert delivery_service.normalize(raw).delivery_enabled is expected

    absent = delivery_service.normalize({"delivery": {"taxa_entrega": "1,00"}})
    assert absent.delivery_enabled is True


def test_unknown_shape_falls_back_to_disabled(caplog):
    with caplog.at_level(logging.WARNING):
        cfg = delivery_service.normalize({"delivery": None, "nome": "Loja"})
    assert cfg == DISABLED_DELIVERY
    assert cfg.delivery_enabled is False
    assert "delivery config fallback" in caplog.text

    assert delivery_service.normalize({"mostrar_info_delivery": {"nested": 1}}) == DISABLED_DELIVERY
    assert delivery_service.normalize(["not", "a", "mapping"]) == DISABLED_DELIVERY


def test_neighborhoods_from_comma_separated_string():
    cfg = delivery_service.normalize(
        {"especificar_bairros_atendidos": True, "bairros_atendidos": "Centro, Vila Nova ,"}
    )
    assert delivery_service.has_neighborhood_restriction(cfg)
    assert delivery_service.neighborhood_list(cfg) == ["Centro", "Vila Nova"]
    assert delivery_service.is_neighborhood_served(cfg, "  vila nova ")
    assert not delivery_service.is_neighborhood_served(cfg, "Bela Vista")


def test_restriction_with_empty_list_serves_nobody():
    cfg = delivery_service.normalize({"especificar_bairros_atendidos": True, "bairros_atendidos": []})
    assert delivery_service.has_neighborhood_restriction(cfg)
    assert not delivery_service.is_neighborhood_served(cfg, "Centro")


def test_without_restriction_any_neighborhood_is_served():
    cfg = delivery_service.normalize(MODERN_CONFIG)
    assert not delivery_service.has_neighborhood_restriction(cfg)
    assert delivery_service.neighborhood_list(cfg) == []
    assert delivery_service.is_neighborhood_served(cfg, "Qualquer")
    assert not delivery_service.is_neighborhood_served(cfg, "  ")


def test_legacy_minimum_not_reached():
    cfg = delivery_service.normalize({"delivery": {"pedido_minimo": "20,00"}})
    assert not delivery_service.is_minimum_reached(1500, cfg)
    assert delivery_service.remaining_to_minimum(1500, cfg) == 500


def test_modern_minimum_reached():
    cfg = delivery_service.normalize({"pedido_minimo": "20,00"})
    assert delivery_service.is_minimum_reached(2500, cfg)
    assert delivery_service.remaining_to_minimum(2500, cfg) == 0


@pytest.mark.parametrize("minimum", [0, 1, 999, 2000, 150_000])
def test_minimum_is_monotonic(minimum):
    cfg = NormalizedDeliveryConfig(minimum_order_cents=minimum, delivery_enabled=True)
    for subtotal in range(max(0, minimum - 3), minimum + 3):
        expected = minimum == 0 or subtotal >= minimum
        assert delivery_service.is_minimum_reached(subtotal, cfg) is expected


def test_check_minimum_reports_remaining():
    cfg = NormalizedDeliveryConfig(minimum_order_cents=2000, delivery_enabled=True)
    with pytest.raises(BusinessRuleViolation) as exc_info:
        delivery_service.check_minimum(1500, cfg)
    assert exc_info.value.remaining_cents == 500
    assert "R$ 5,00" in exc_info.value.detail
    delivery_service.check_minimum(2000, cfg)


def test_fee_only_applies_to_delivery():
    cfg = NormalizedDeliveryConfig(fee_cents=500, delivery_enabled=True)
    assert delivery_service.order_total(3000, cfg, True) == 3500
    assert delivery_service.order_total(3000, cfg, False) == 3000
