"""Тесты для ProtocolConfig и units конверсий."""

from decimal import Decimal

import pytest

from voile.config import (
    DEFAULT_CONFIG,
    ONE_USDC,
    FeeRemainderPolicy,
    ProtocolConfig,
)
from voile.core.domain.units import (
    FIELD_MODULUS,
    bps_to_percent,
    cooldown_days_to_seconds,
    is_valid_cooldown_days,
    is_valid_felt,
    percent_to_bps,
    raw_to_usdc,
    usdc_to_raw,
    validate_amount,
)
from voile.core.exceptions import InvalidAmount, VoileError


# =============================================================================
# ТЕСТЫ: ProtocolConfig
# =============================================================================


class TestProtocolConfig:
    def test_defaults(self):
        config = ProtocolConfig()
        assert config.advance_fee_bps == 500
        assert config.default_apr_bps == 1_000
        assert config.lp_fee_bps == 8_000
        assert config.protocol_fee_bps == 2_000
        assert config.default_cooldown_days == 14
        assert config.min_deal_size_raw == 100 * ONE_USDC
        assert config.fee_remainder_policy == FeeRemainderPolicy.TO_PROTOCOL

    def test_default_instance(self):
        assert DEFAULT_CONFIG == ProtocolConfig()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CONFIG.advance_fee_bps = 100

    @pytest.mark.parametrize("bps", [-1, 10_001])
    def test_fee_bps_range(self, bps):
        with pytest.raises(ValueError):
            ProtocolConfig(advance_fee_bps=bps)

    def test_split_must_cover_full_fee(self):
        with pytest.raises(ValueError, match="must equal"):
            ProtocolConfig(lp_fee_bps=7_000, protocol_fee_bps=2_000)

    def test_negative_apr(self):
        with pytest.raises(ValueError):
            ProtocolConfig(default_apr_bps=-1)

    @pytest.mark.parametrize("days", [0, 366])
    def test_cooldown_range(self, days):
        with pytest.raises(ValueError):
            ProtocolConfig(default_cooldown_days=days)

    def test_custom_split(self):
        config = ProtocolConfig(lp_fee_bps=9_000, protocol_fee_bps=1_000)
        assert config.lp_fee_bps == 9_000


# =============================================================================
# ТЕСТЫ: Units
# =============================================================================


class TestUnits:
    def test_usdc_to_raw(self):
        assert usdc_to_raw(1) == ONE_USDC
        assert usdc_to_raw("0.000001") == 1
        assert usdc_to_raw(Decimal("1.5")) == 1_500_000

    def test_usdc_to_raw_floors_sub_unit(self):
        assert usdc_to_raw("0.0000019") == 1

    @pytest.mark.parametrize("value", [1.5, True])
    def test_usdc_to_raw_rejects_float_and_bool(self, value):
        with pytest.raises(InvalidAmount):
            usdc_to_raw(value)

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "sNaN", "Infinity", "-Infinity", Decimal("NaN")])
    def test_usdc_to_raw_rejects_non_numeric(self, value):
        with pytest.raises(InvalidAmount):
            usdc_to_raw(value)

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
    def test_percent_to_bps_rejects_non_numeric(self, value):
        with pytest.raises(InvalidAmount):
            percent_to_bps(value)

    def test_raw_to_usdc_floor(self):
        assert raw_to_usdc(1_999_999) == 1
        assert raw_to_usdc(0) == 0

    def test_percent_bps(self):
        assert percent_to_bps(8) == 800
        assert percent_to_bps("8.25") == 825
        assert percent_to_bps(Decimal("0")) == 0
        assert bps_to_percent(500) == Decimal(5)
        with pytest.raises(InvalidAmount):
            percent_to_bps(8.1)

    def test_cooldown(self):
        assert cooldown_days_to_seconds(14) == 14 * 86_400
        assert is_valid_cooldown_days(1)
        assert is_valid_cooldown_days(365)
        assert not is_valid_cooldown_days(0)
        assert not is_valid_cooldown_days(366)
        assert not is_valid_cooldown_days(True)

    def test_validate_amount(self):
        validate_amount(1)
        for bad in (0, -5, 1.0, "10", None, True):
            with pytest.raises(InvalidAmount):
                validate_amount(bad)

    def test_invalid_amount_hierarchy(self):
        """InvalidAmount ловится и как VoileError, и как ValueError."""
        with pytest.raises(VoileError):
            validate_amount(0)
        with pytest.raises(ValueError):
            validate_amount(0)

    def test_felt_range(self):
        assert is_valid_felt(0)
        assert is_valid_felt(FIELD_MODULUS - 1)
        assert not is_valid_felt(FIELD_MODULUS)
        assert not is_valid_felt(-1)
