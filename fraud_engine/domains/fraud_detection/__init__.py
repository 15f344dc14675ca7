"""
Fraud Detection Domain - Order Risk Scoring

Scores a newly placed order against the customer's order history and
reports which signals fired and why.

Domain Principles:
- Pure and stateless per call (no I/O)
- Deterministic for fixed inputs, configuration and clock
- Explainable: every signal reports a reason, raised or not
- Fail-open: an engine defect never blocks an order

Key Components:
- Detectors: six independent risk signals
- Risk Scorer: aggregation and tier classification
- Config Manager: validated, atomically swapped configuration snapshots
- Fraud Detection Service: the facade callers use
"""

from .config import ConfigManager, DetectionConfig, load_config_file
from .flags import FlagDetail, FraudFlag
from .models import Address, Order, OrderItem, PaymentMethod
from .result import RiskResult
from .scorer import RiskLevel, RiskScorer
from .service import EvaluationOutcome, FraudDetectionService

__all__ = [
    'Address',
    'ConfigManager',
    'DetectionConfig',
    'EvaluationOutcome',
    'FlagDetail',
    'FraudDetectionService',
    'FraudFlag',
    'Order',
    'OrderItem',
    'PaymentMethod',
    'RiskLevel',
    'RiskResult',
    'RiskScorer',
    'load_config_file',
]
