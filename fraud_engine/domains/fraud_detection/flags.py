"""
Fraud Flags

The closed set of signals the engine evaluates, and the per-signal outcome
record reported for every evaluation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping


class FraudFlag(Enum):
    """Signal kinds, declared in evaluation order."""
    MULTIPLE_ORDERS = "multiple_orders_short_period"
    UNUSUAL_ADDRESS = "unusual_delivery_address"
    HIGH_VALUE = "high_value_order"
    UNUSUAL_TIME = "unusual_order_time"
    UNUSUAL_PAYMENT = "unusual_payment_method"
    RAPID_ADDRESS_CHANGE = "rapid_address_change"


@dataclass(frozen=True)
class FlagDetail:
    """Outcome of one detector: whether it fired, its sub-score and why."""
    raised: bool = False
    score: float = 0.0
    reason: str = ""

    @classmethod
    def not_raised(cls) -> "FlagDetail":
        return cls()

    @classmethod
    def raise_flag(cls, score: float, reason: str) -> "FlagDetail":
        return cls(raised=True, score=float(score), reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {"raised": self.raised, "score": self.score, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FlagDetail":
        return cls(
            raised=bool(data.get("raised", False)),
            score=float(data.get("score", 0.0)),
            reason=str(data.get("reason", "")),
        )


def empty_details() -> Dict[FraudFlag, FlagDetail]:
    """One not-raised detail per flag kind, in evaluation order."""
    return {flag: FlagDetail.not_raised() for flag in FraudFlag}
