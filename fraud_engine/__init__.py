"""
Order Fraud Engine

Rule-based risk scoring for newly placed orders.
"""

__version__ = "1.0.0"

from .domains.fraud_detection import (
    ConfigManager,
    DetectionConfig,
    EvaluationOutcome,
    FraudDetectionService,
    FraudFlag,
    Order,
    RiskLevel,
    RiskResult,
)
from .utils.exceptions import ConfigurationError, EvaluationError, FraudEngineError, OrderDataError

__all__ = [
    "ConfigManager",
    "ConfigurationError",
    "DetectionConfig",
    "EvaluationError",
    "EvaluationOutcome",
    "FraudDetectionService",
    "FraudEngineError",
    "FraudFlag",
    "Order",
    "OrderDataError",
    "RiskLevel",
    "RiskResult",
]
