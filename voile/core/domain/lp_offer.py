"""
LpOffer — предложение ликвидности от LP

Immutable Pydantic модель. available_liquidity меняет только MatchingEngine,
заменяя offer новым экземпляром.

APR задаётся явным вариантом AprPolicy (Default | Custom) и разрешается
в apr_bps один раз при создании offer.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from voile.core.domain.units import RandomIdField, RawAmount, WordField


# =============================================================================
# APR POLICY
# =============================================================================


class AprPolicyKind(str, Enum):
    DEFAULT = "default"
    CUSTOM = "custom"


class AprPolicy(BaseModel):
    """
    APR policy offer-а.

    DEFAULT: используется default_apr_bps протокола.
    CUSTOM: используется custom_bps, заданный LP.
    """

    kind: AprPolicyKind
    custom_bps: Optional[int] = Field(None, ge=0, strict=True)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_variant(self) -> "AprPolicy":
        if self.kind == AprPolicyKind.CUSTOM and self.custom_bps is None:
            raise ValueError("custom APR policy requires custom_bps")
        if self.kind == AprPolicyKind.DEFAULT and self.custom_bps is not None:
            raise ValueError("default APR policy cannot carry custom_bps")
        return self

    @classmethod
    def default(cls) -> "AprPolicy":
        return cls(kind=AprPolicyKind.DEFAULT)

    @classmethod
    def custom(cls, bps: int) -> "AprPolicy":
        return cls(kind=AprPolicyKind.CUSTOM, custom_bps=bps)

    def resolve(self, default_apr_bps: int) -> int:
        """APR в bps для этого policy."""
        if self.kind == AprPolicyKind.CUSTOM:
            return self.custom_bps
        return default_apr_bps


# =============================================================================
# LP OFFER MODEL
# =============================================================================


class LpOffer(BaseModel):
    """
    Постоянная готовность LP выдавать advance в диапазоне [min_amount, max_amount].

    Инварианты:
    - min_amount <= max_amount
    - 0 <= available_liquidity <= max_amount
    - offer с available_liquidity < min_amount не матчится, даже если is_active
    """

    offer_id: RandomIdField
    lp_account_id: str = Field(..., min_length=1)
    max_amount: RawAmount
    min_amount: RawAmount
    apr_policy: AprPolicy
    apr_bps: int = Field(..., ge=0, strict=True, description="APR, разрешённый из apr_policy")
    commitment: WordField
    is_active: bool = True
    available_liquidity: RawAmount

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_bounds(self) -> "LpOffer":
        if self.min_amount > self.max_amount:
            raise ValueError(
                f"min_amount {self.min_amount} exceeds max_amount {self.max_amount}"
            )
        if self.available_liquidity > self.max_amount:
            raise ValueError(
                f"available_liquidity {self.available_liquidity} exceeds max_amount {self.max_amount}"
            )
        return self

    @property
    def custom_apr_bps(self) -> Optional[int]:
        return self.apr_policy.custom_bps

    @property
    def is_matchable(self) -> bool:
        """Active и ликвидности хватает хотя бы на min_amount."""
        return self.is_active and self.available_liquidity >= self.min_amount
