"""
Тесты для builders — UnlockRequest и LpOffer

Coverage:
- Валидация amount / cooldown / границ offer
- APR policy (Default | Custom)
- Commitments совпадают с чистыми функциями
- Secret не попадает в repr / сериализацию
"""

import pytest

from voile.config import SECONDS_PER_DAY, ProtocolConfig
from voile.core.crypto.commitments import compute_offer_commitment, compute_request_commitment
from voile.core.domain.lp_offer import AprPolicyKind
from voile.core.domain.unlock_request import UnlockRequestStatus
from voile.core.exceptions import InvalidAmount, InvalidRange
from voile.matching.builders import build_lp_offer, build_unlock_request

NOW = 1_700_000_000


def fixed_clock():
    return NOW


# =============================================================================
# ТЕСТЫ: UnlockRequest
# =============================================================================


class TestBuildUnlockRequest:
    def test_basic(self):
        request = build_unlock_request("user-1", 10_000, 14, clock=fixed_clock)

        assert request.amount == 10_000
        assert request.cooldown_end == NOW + 14 * SECONDS_PER_DAY
        assert request.created_at == NOW
        assert request.status == UnlockRequestStatus.PENDING
        assert request.is_pending
        assert 0 <= request.request_id < 2**63
        assert len(request.nullifier_secret) == 32

    def test_commitment_matches_pure_function(self):
        request = build_unlock_request("user-1", 10_000, 14, clock=fixed_clock)
        expected = compute_request_commitment(
            request.amount,
            request.cooldown_end,
            request.nullifier_secret,
            request.user_account_id,
        )
        assert request.commitment == expected

    def test_fresh_secret_per_request(self):
        a = build_unlock_request("user-1", 10_000, 14, clock=fixed_clock)
        b = build_unlock_request("user-1", 10_000, 14, clock=fixed_clock)
        assert a.request_id != b.request_id
        assert a.nullifier_secret != b.nullifier_secret
        assert a.commitment != b.commitment

    def test_secret_not_exposed(self):
        request = build_unlock_request("user-1", 10_000, 14, clock=fixed_clock)
        assert "nullifier_secret" not in repr(request)
        assert "nullifier_secret" not in request.model_dump()
        assert "nullifier_secret" not in request.model_dump_json()

    @pytest.mark.parametrize("amount", [0, -1, -10_000])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(InvalidAmount):
            build_unlock_request("user-1", amount, 14, clock=fixed_clock)

    def test_float_amount_rejected(self):
        with pytest.raises(InvalidAmount):
            build_unlock_request("user-1", 100.0, 14, clock=fixed_clock)

    @pytest.mark.parametrize("days", [0, 366, -1])
    def test_cooldown_range(self, days):
        with pytest.raises(InvalidRange):
            build_unlock_request("user-1", 10_000, days, clock=fixed_clock)

    @pytest.mark.parametrize("days", [1, 365])
    def test_cooldown_bounds_inclusive(self, days):
        request = build_unlock_request("user-1", 10_000, days, clock=fixed_clock)
        assert request.cooldown_end == NOW + days * SECONDS_PER_DAY


# =============================================================================
# ТЕСТЫ: LpOffer
# =============================================================================


class TestBuildLpOffer:
    def test_default_apr(self):
        offer = build_lp_offer("lp-1", 50_000, 500)

        assert offer.apr_policy.kind == AprPolicyKind.DEFAULT
        assert offer.apr_bps == 1_000
        assert offer.custom_apr_bps is None
        assert offer.available_liquidity == 50_000
        assert offer.is_active
        assert offer.is_matchable

    def test_default_apr_from_config(self):
        offer = build_lp_offer("lp-1", 50_000, 500, config=ProtocolConfig(default_apr_bps=1_200))
        assert offer.apr_bps == 1_200

    def test_custom_apr(self):
        offer = build_lp_offer("lp-1", 50_000, 500, custom_apr_percent=8)
        assert offer.apr_policy.kind == AprPolicyKind.CUSTOM
        assert offer.apr_bps == 800
        assert offer.custom_apr_bps == 800

    def test_custom_apr_fractional_percent(self):
        offer = build_lp_offer("lp-1", 50_000, 500, custom_apr_percent="8.25")
        assert offer.apr_bps == 825

    def test_zero_custom_apr_is_custom(self):
        offer = build_lp_offer("lp-1", 50_000, 500, custom_apr_percent=0)
        assert offer.apr_policy.kind == AprPolicyKind.CUSTOM
        assert offer.apr_bps == 0

    def test_negative_apr_rejected(self):
        with pytest.raises(InvalidRange):
            build_lp_offer("lp-1", 50_000, 500, custom_apr_percent=-1)

    @pytest.mark.parametrize("apr", ["abc", "NaN", "Infinity"])
    def test_unparsable_apr_rejected(self, apr):
        with pytest.raises(InvalidAmount):
            build_lp_offer("lp-1", 50_000, 500, custom_apr_percent=apr)

    def test_commitment_matches_pure_function(self):
        offer = build_lp_offer("lp-1", 50_000, 500)
        assert offer.commitment == compute_offer_commitment(offer.offer_id, "lp-1", 50_000, 500)

    def test_min_greater_than_max(self):
        with pytest.raises(InvalidRange):
            build_lp_offer("lp-1", 500, 50_000)

    def test_min_equal_max(self):
        offer = build_lp_offer("lp-1", 1_000, 1_000)
        assert offer.min_amount == offer.max_amount

    def test_negative_bounds(self):
        with pytest.raises(InvalidRange):
            build_lp_offer("lp-1", -1, 0)

    def test_non_integer_bounds(self):
        with pytest.raises(InvalidAmount):
            build_lp_offer("lp-1", 50_000.0, 500)

    def test_partial_liquidity(self):
        offer = build_lp_offer("lp-1", 50_000, 500, available_liquidity=400)
        assert offer.available_liquidity == 400
        assert not offer.is_matchable

    def test_liquidity_above_max(self):
        with pytest.raises(InvalidRange):
            build_lp_offer("lp-1", 50_000, 500, available_liquidity=50_001)
