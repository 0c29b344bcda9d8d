"""
Core math modules для Voile

Fixed-point арифметика fee / interest / split в raw units.
"""

from voile.core.math.pricing import (
    MAX_COOLDOWN_SECONDS,
    MIN_COOLDOWN_SECONDS,
    FeeSplit,
    PricingBreakdown,
    PricingEstimate,
    advance_fee,
    apr_interest,
    calculate_pricing_breakdown,
    effective_apy,
    estimate_pricing,
    is_minimum_deal_size,
    is_pricing_profitable,
    is_valid_cooldown,
    lp_fee_share,
    net_advance,
    protocol_fee_share,
    split_fee,
)

__all__ = [
    # Constants
    "MIN_COOLDOWN_SECONDS",
    "MAX_COOLDOWN_SECONDS",
    # Types
    "FeeSplit",
    "PricingBreakdown",
    "PricingEstimate",
    # Core functions
    "advance_fee",
    "net_advance",
    "apr_interest",
    "lp_fee_share",
    "protocol_fee_share",
    "split_fee",
    "effective_apy",
    # Breakdown
    "calculate_pricing_breakdown",
    "estimate_pricing",
    # Validation
    "is_pricing_profitable",
    "is_minimum_deal_size",
    "is_valid_cooldown",
]
