"""
Voile exceptions.

Validation errors also subclass ValueError. Absence of a match is not an
error: matching returns None.
"""


class VoileError(Exception):
    """Base exception for all Voile errors."""
    pass


class InvalidAmount(VoileError, ValueError):
    """Amount is zero, negative or not an integer number of raw units."""
    pass


class InvalidRange(VoileError, ValueError):
    """Offer bounds are inconsistent (min > max, negative bounds, negative APR)."""
    pass


class InvalidKeyMaterial(VoileError, ValueError):
    """Secret or key has the wrong length. Never truncated or padded."""
    pass


class InvalidStateTransition(VoileError):
    """Lifecycle transition skips a state or leaves a terminal state."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"{entity}: transition {current} → {target} is not allowed")


class InsufficientLiquidity(VoileError):
    """Explicitly pinned offer cannot cover the net advance."""

    def __init__(self, offer_id: int, required: int, available: int):
        self.offer_id = offer_id
        self.required = required
        self.available = available
        super().__init__(
            f"Offer {offer_id:#x} cannot cover net advance: "
            f"required={required}, available={available}"
        )
