from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from vending.config import DEFAULT_MAX_OPERATORS, ConfigError, LedgerConfig

ENV_VARS = (
    "VENDING_BULK_DISCOUNT_BPS",
    "VENDING_RETURN_DISCOUNT_BPS",
    "VENDING_BULK_MIN_QUANTITY",
    "VENDING_MAX_OPERATORS",
    "VENDING_SECONDARY_UNIT_PRICE",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    cfg = LedgerConfig.from_env()
    assert cfg == LedgerConfig()
    assert cfg.as_dict() == {
        "bulk_discount_bps": 2_000,
        "return_discount_bps": 1_000,
        "bulk_min_quantity": 1,
        "max_operators": DEFAULT_MAX_OPERATORS,
        "secondary_unit_price": 10 * 10**18,
    }


def test_env_values(clean_env):
    clean_env.setenv("VENDING_BULK_DISCOUNT_BPS", "2500")
    clean_env.setenv("VENDING_MAX_OPERATORS", "0x05")
    clean_env.setenv("VENDING_RETURN_DISCOUNT_BPS", "  ")
    cfg = LedgerConfig.from_env()
    assert cfg.bulk_discount_bps == 2_500
    assert cfg.max_operators == 5
    assert cfg.return_discount_bps == 1_000


def test_overrides_beat_env(clean_env):
    clean_env.setenv("VENDING_BULK_MIN_QUANTITY", "3")
    assert LedgerConfig.from_env(bulk_min_quantity=10).bulk_min_quantity == 10


def test_non_integer_env_is_an_error(clean_env):
    clean_env.setenv("VENDING_SECONDARY_UNIT_PRICE", "ten")
    with pytest.raises(ConfigError, match="VENDING_SECONDARY_UNIT_PRICE"):
        LedgerConfig.from_env()


@pytest.mark.parametrize(
    "changes",
    [
        {"bulk_discount_bps": 10_001},
        {"return_discount_bps": -1},
        {"bulk_min_quantity": 0},
        {"max_operators": 256},
        {"secondary_unit_price": 0},
        {"bulk_discount_bps": "2000"},
        {"return_discount_bps": True},
        {"bulk_min_quantity": True},
        {"max_operators": False},
        {"secondary_unit_price": True},
    ],
)
def test_invalid_values_are_rejected(changes):
    with pytest.raises(ConfigError):
        LedgerConfig(**changes)


def test_with_overrides_revalidates():
    cfg = LedgerConfig().with_overrides(max_operators=7)
    assert cfg.max_operators == 7
    with pytest.raises(ConfigError):
        cfg.with_overrides(bulk_min_quantity=-3)


def test_config_is_frozen():
    with pytest.raises(FrozenInstanceError):
        LedgerConfig().max_operators = 3  # type: ignore[misc]
