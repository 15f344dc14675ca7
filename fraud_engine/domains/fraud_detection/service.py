"""
Fraud Detection Service - Engine Facade

Single entry point used by the order pipeline:
1. Resolve one configuration snapshot for the whole call
2. Convert the candidate order and history into domain objects
3. Run the six detectors in fixed order
4. Aggregate and classify
5. Stamp and return the RiskResult

Scoring never blocks an order: on any unexpected failure the service returns
a zero low-risk result and reports an EvaluationError separately (log entry
and EvaluationOutcome.error).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from ...utils.exceptions import EvaluationError, OrderDataError
from ...utils.logger import get_logger
from .config import DEFAULT_CONFIG, ConfigManager, DetectionConfig
from .detectors import run_detectors
from .models import Order, parse_timestamp
from .result import RiskResult
from .scorer import RiskLevel, RiskScorer

Clock = Callable[[], datetime]
ConfigSource = Union[DetectionConfig, ConfigManager, None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EvaluationOutcome:
    """RiskResult plus the error that forced the fail-open result, if any."""
    result: RiskResult
    error: Optional[EvaluationError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class FraudDetectionService:
    """
    Fraud Detection Service - order risk scoring facade.

    Holds no per-call state, so one instance can serve concurrent callers.
    The configuration is either a fixed snapshot or a ConfigManager whose
    current snapshot is read once at the start of each call.
    """

    def __init__(
        self,
        config_source: ConfigSource = None,
        *,
        clock: Optional[Clock] = None,
        logger=None,
    ):
        self.config_source = config_source if config_source is not None else DEFAULT_CONFIG
        self.clock = clock or utc_now
        self.logger = logger or get_logger(__name__)
        self.scorer = RiskScorer()

    def current_config(self) -> DetectionConfig:
        """Snapshot to use for the next evaluation."""
        if isinstance(self.config_source, ConfigManager):
            return self.config_source.current()
        return self.config_source

    def evaluate(
        self,
        order: Union[Order, Any],
        history: Optional[Iterable[Union[Order, Any]]] = None,
        baseline_value: Optional[Any] = None,
        *,
        config: Optional[DetectionConfig] = None,
        now: Optional[Any] = None,
    ) -> RiskResult:
        """
        Analyze an order for possible fraud.

        Args:
            order: Candidate order (Order or raw record)
            history: The customer's previous orders (Order or raw records)
            baseline_value: Typical order value for the customer, if known
            config: Snapshot overriding the service's configuration
            now: Reference time for the velocity window (defaults to the
                order's creation time)

        Returns:
            RiskResult; the zero low-risk result if evaluation failed
        """
        return self.evaluate_with_diagnostics(
            order, history, baseline_value, config=config, now=now
        ).result

    def evaluate_with_diagnostics(
        self,
        order: Union[Order, Any],
        history: Optional[Iterable[Union[Order, Any]]] = None,
        baseline_value: Optional[Any] = None,
        *,
        config: Optional[DetectionConfig] = None,
        now: Optional[Any] = None,
    ) -> EvaluationOutcome:
        """Same as evaluate(), also returning the EvaluationError on failure."""
        order_id = _order_id(order)

        try:
            snapshot = config if config is not None else self.current_config()
            result = self._evaluate(order, history, baseline_value, snapshot, now)
        except Exception as e:
            error = EvaluationError(order_id, e)
            self.logger.error(
                "Fraud analysis failed, returning low risk",
                order_id=order_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return EvaluationOutcome(result=RiskResult.empty(self.clock()), error=error)

        self._log_result(order_id, result)
        return EvaluationOutcome(result=result)

    def explain(self, result: RiskResult) -> str:
        """Human-readable breakdown of a result."""
        return self.scorer.explain(result)

    def _evaluate(
        self,
        order: Union[Order, Any],
        history: Optional[Iterable[Union[Order, Any]]],
        baseline_value: Optional[Any],
        config: DetectionConfig,
        now: Optional[Any],
    ) -> RiskResult:
        candidate = self._convert_order(order)
        previous_orders = self._convert_history(history, candidate.id)
        reference_time = parse_timestamp(now) if now is not None else None

        outcomes = run_detectors(
            candidate,
            previous_orders,
            config,
            baseline=baseline_value,
            now=reference_time,
        )

        details = dict(outcomes)
        flags_raised = tuple(flag for flag, detail in outcomes if detail.raised)

        risk_score = self.scorer.aggregate(details)
        risk_level = self.scorer.classify(
            risk_score, config.medium_risk_threshold, config.high_risk_threshold
        )

        return RiskResult(
            risk_score=risk_score,
            risk_level=risk_level,
            flags_raised=flags_raised,
            details=details,
            evaluated_at=self.clock(),
        )

    def _convert_order(self, order: Union[Order, Any], **context: Any) -> Order:
        """
        Convert one order record, dropping the fields that cannot be parsed.

        Raises:
            OrderDataError: If the record is not an order mapping
        """
        if isinstance(order, Order):
            return order

        converted, errors = Order.from_record(order)
        for error in errors:
            self.logger.warning(
                "Ignoring malformed order field",
                record_order_id=converted.id or None,
                field=error.field,
                error=error.message,
                **context,
            )
        return converted

    def _convert_history(
        self, history: Optional[Iterable[Union[Order, Any]]], order_id: str
    ) -> List[Order]:
        """
        Convert history records to domain objects.

        Records that are not order mappings are skipped; malformed fields of
        the others are dropped. Either only weakens the signals that depend
        on history.
        """
        converted = []

        for index, entry in enumerate(history or ()):
            try:
                converted.append(self._convert_order(entry, order_id=order_id, history_index=index))
            except OrderDataError as e:
                self.logger.warning(
                    "Skipping invalid history record",
                    order_id=order_id,
                    history_index=index,
                    history_order_id=e.order_id,
                    field=e.field,
                    error=e.message,
                )
                continue

        return converted

    def _log_result(self, order_id: str, result: RiskResult) -> None:
        self.logger.info(
            "Fraud analysis completed",
            order_id=order_id,
            risk_score=result.risk_score,
            risk_level=result.risk_level.value,
            flags_raised=[flag.value for flag in result.flags_raised],
        )

        if result.risk_level is RiskLevel.HIGH:
            self.logger.warning(
                "High risk order detected",
                order_id=order_id,
                risk_score=result.risk_score,
                details={
                    flag.value: detail.reason
                    for flag, detail in result.details.items()
                    if detail.raised
                },
            )


def _order_id(order: Any) -> Optional[str]:
    if isinstance(order, Order):
        return order.id
    if isinstance(order, Mapping):
        value = order.get("id") or order.get("orderId") or order.get("order_id")
        return str(value) if value is not None else None
    return None
