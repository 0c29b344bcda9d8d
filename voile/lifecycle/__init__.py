"""Lifecycle — state machine сделки (PENDING_ADVANCE … SETTLED) и unlock-запроса."""

from .state_machine import (
    DEAL_TRANSITIONS,
    REQUEST_TRANSITIONS,
    DealLifecycleTracker,
    DealTransitionResult,
    cancel_request,
    is_ready_for_settlement,
    transition_request,
)

__all__ = [
    "DEAL_TRANSITIONS",
    "REQUEST_TRANSITIONS",
    "DealLifecycleTracker",
    "DealTransitionResult",
    "cancel_request",
    "is_ready_for_settlement",
    "transition_request",
]
