"""
Risk Result

The record returned to the caller for every evaluation. Created fresh per
call and never retained by the engine.
"""

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .flags import FlagDetail, FraudFlag, empty_details
from .models import parse_timestamp
from .scorer import RiskLevel


@dataclass(frozen=True)
class RiskResult:
    """Complete fraud assessment of one order."""
    risk_score: float
    risk_level: RiskLevel
    flags_raised: Tuple[FraudFlag, ...]
    details: Mapping[FraudFlag, FlagDetail]
    evaluated_at: Optional[datetime]

    def __post_init__(self):
        # Read-only view so the result stays immutable
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @classmethod
    def empty(cls, evaluated_at: datetime) -> "RiskResult":
        """Zero-valued low-risk result (nothing raised)."""
        return cls(
            risk_score=0.0,
            risk_level=RiskLevel.LOW,
            flags_raised=(),
            details=empty_details(),
            evaluated_at=evaluated_at,
        )

    @property
    def is_suspicious(self) -> bool:
        """Any tier above low."""
        return self.risk_level is not RiskLevel.LOW

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the order document shape for storage and alerting."""
        return {
            "riskScore": self.risk_score,
            "riskLevel": self.risk_level.value,
            "flagsRaised": [flag.value for flag in self.flags_raised],
            "details": {flag.value: detail.to_dict() for flag, detail in self.details.items()},
            "evaluatedAt": self.evaluated_at.isoformat() if self.evaluated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RiskResult":
        """Rebuild a stored result (audit tooling)."""
        details = empty_details()
        for key, value in (data.get("details") or {}).items():
            details[FraudFlag(key)] = FlagDetail.from_dict(value)

        return cls(
            risk_score=float(data.get("riskScore", 0.0)),
            risk_level=RiskLevel(data.get("riskLevel", RiskLevel.LOW.value)),
            flags_raised=tuple(FraudFlag(flag) for flag in data.get("flagsRaised", ())),
            details=details,
            evaluated_at=parse_timestamp(data.get("evaluatedAt")),
        )
