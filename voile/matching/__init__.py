"""Matching — builders и off-chain matching engine."""

from .builders import build_lp_offer, build_unlock_request
from .engine import MatchingEngine, MatchPreview

__all__ = [
    "build_unlock_request",
    "build_lp_offer",
    "MatchingEngine",
    "MatchPreview",
]
