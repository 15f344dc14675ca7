"""
Order Fraud Engine - Exception Hierarchy

Errors raised (or reported) by the scoring engine. Configuration problems are
raised at load time; order data problems are recovered locally; unexpected
evaluation failures are never raised by the engine facade but reported
alongside a fail-open result.
"""

from typing import Any, Dict, Optional


class FraudEngineError(Exception):
    """Base exception class for the fraud engine."""

    def __init__(
        self,
        message: str,
        code: str = "FRAUD_ENGINE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(FraudEngineError):
    """Invalid detection configuration (thresholds, weights, config file)."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message=message, code="CONFIG_ERROR", details=details)
        self.config_key = config_key


class OrderDataError(FraudEngineError):
    """A raw order record could not be converted into an Order."""

    def __init__(
        self,
        message: str,
        order_id: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if order_id:
            details["order_id"] = order_id
        if field:
            details["field"] = field
        super().__init__(message=message, code="ORDER_DATA_ERROR", details=details)
        self.order_id = order_id
        self.field = field


class EvaluationError(FraudEngineError):
    """
    Unexpected failure while scoring an order.

    Produced by the engine facade when it falls back to the zero-risk result.
    The underlying exception is kept in ``cause``.
    """

    def __init__(
        self,
        order_id: Optional[str],
        cause: BaseException,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        details.update(
            {
                "order_id": order_id,
                "cause_type": type(cause).__name__,
                "cause": str(cause),
            }
        )
        super().__init__(
            message=f"Risk evaluation failed for order {order_id}: {cause}",
            code="EVALUATION_ERROR",
            details=details,
        )
        self.order_id = order_id
        self.cause = cause
