"""
Risk Aggregation and Classification

Turns detector outcomes into the final risk score and tier.

Scoring Formula:
Risk Score = min(100, sum of scores of raised flags)

Tier:
- score >= high_risk_threshold   -> high
- score >= medium_risk_threshold -> medium
- otherwise                      -> low
"""

from enum import Enum
from typing import Mapping

from .flags import FlagDetail, FraudFlag

MIN_SCORE = 0.0
MAX_SCORE = 100.0


class RiskLevel(Enum):
    """Risk tiers reported to the order pipeline."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskScorer:
    """
    Aggregator and classifier.

    All methods are deterministic and have no side effects.
    """

    @staticmethod
    def aggregate(details: Mapping[FraudFlag, FlagDetail]) -> float:
        """Sum raised sub-scores, clamped to [0, 100]."""
        total = sum(detail.score for detail in details.values() if detail.raised)
        return max(MIN_SCORE, min(MAX_SCORE, float(total)))

    @staticmethod
    def classify(score: float, medium_threshold: float, high_threshold: float) -> RiskLevel:
        """Map a score to its tier using the two cut-points."""
        if score >= high_threshold:
            return RiskLevel.HIGH
        if score >= medium_threshold:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    @staticmethod
    def explain(result) -> str:
        """
        Generate human-readable explanation of a RiskResult.

        Useful for audit trails and manual review queues.
        """
        lines = [
            f"Risk Score: {result.risk_score:.0f}/100 ({result.risk_level.value})",
            "",
            "Signals:",
        ]
        for flag, detail in result.details.items():
            if detail.raised:
                lines.append(f"- {flag.value}: +{detail.score:g} points")
                lines.append(f"  {detail.reason}")
            else:
                lines.append(f"- {flag.value}: not raised")

        lines.append("")
        lines.append(f"Evaluated at {result.evaluated_at.isoformat()}")
        return "\n".join(lines)
