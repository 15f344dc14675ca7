"""
Fraud Detection Configuration

Immutable, validated configuration snapshots and the manager that publishes
the process-wide current snapshot.

A snapshot is never modified after creation. Retuning builds a new snapshot,
validates it, and swaps it in atomically; evaluations already running keep the
snapshot they started with.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ...utils.exceptions import ConfigurationError
from ...utils.logger import get_logger

logger = get_logger(__name__)

# Keys used by the order service documents and admin tooling
_ALIASES = {
    "multipleOrdersThreshold": "multiple_orders_threshold",
    "multipleOrdersWeight": "multiple_orders_weight",
    "unusualAddressWeight": "unusual_address_weight",
    "highValuePercentage": "high_value_percentage",
    "highValueWeight": "high_value_weight",
    "unusualTimeWeight": "unusual_time_weight",
    "unusualPaymentWeight": "unusual_payment_weight",
    "addressChangeHours": "address_change_window_hours",
    "addressChangeWindowHours": "address_change_window_hours",
    "addressChangeWeight": "address_change_weight",
    "mediumRiskThreshold": "medium_risk_threshold",
    "highRiskThreshold": "high_risk_threshold",
    "velocityWindowHours": "velocity_window_hours",
}


# Longest look-back window, one year
MAX_WINDOW_HOURS = 24 * 365


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_ALIASES.get(key, key): value for key, value in data.items()}


class DetectionConfig(BaseModel):
    """Thresholds and per-signal weights for one evaluation."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    # Multiple orders in a short period
    multiple_orders_threshold: int = Field(3, ge=1, description="Orders in the window that raise the flag")
    multiple_orders_weight: float = Field(25, ge=0)
    velocity_window_hours: float = Field(
        24, gt=0, le=MAX_WINDOW_HOURS, description="Trailing window for order velocity"
    )

    unusual_address_weight: float = Field(15, ge=0)

    high_value_percentage: float = Field(200, ge=0, description="Percent above baseline that raises the flag")
    high_value_weight: float = Field(20, ge=0)

    unusual_time_weight: float = Field(10, ge=0)
    timezone: Optional[str] = Field(None, description="IANA zone used to read the hour of day")

    unusual_payment_weight: float = Field(15, ge=0)

    address_change_window_hours: float = Field(24, ge=0, le=MAX_WINDOW_HOURS)
    address_change_weight: float = Field(15, ge=0)

    # Risk tier cut-points
    medium_risk_threshold: float = Field(30, ge=0, le=100)
    high_risk_threshold: float = Field(60, ge=0, le=100)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @model_validator(mode="after")
    def validate_threshold_order(self):
        if self.medium_risk_threshold > self.high_risk_threshold:
            raise ValueError(
                "medium_risk_threshold must not exceed high_risk_threshold "
                f"({self.medium_risk_threshold} > {self.high_risk_threshold})"
            )
        return self

    @property
    def zone(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.timezone) if self.timezone else None

    @classmethod
    def load(cls, data: Optional[Mapping[str, Any]] = None) -> "DetectionConfig":
        """
        Build a validated snapshot from a mapping (snake_case or camelCase keys).

        Raises:
            ConfigurationError: If any value is invalid
        """
        try:
            return cls(**_normalize_keys(data or {}))
        except ValidationError as e:
            errors = e.errors()
            first_loc = errors[0]["loc"] if errors else ()
            config_key = ".".join(str(part) for part in first_loc) or None
            raise ConfigurationError(
                f"Invalid fraud detection configuration: {errors[0]['msg'] if errors else e}",
                config_key=config_key,
                details={"errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in errors]},
            ) from e

    def with_overrides(self, overrides: Mapping[str, Any]) -> "DetectionConfig":
        """Return a new validated snapshot with the given fields replaced."""
        return self.load({**self.model_dump(), **_normalize_keys(overrides)})


DEFAULT_CONFIG = DetectionConfig()

# Seasonal tuning: fewer false positives when bursts of large orders are normal
PRESETS: Dict[str, Dict[str, Any]] = {
    "holiday": {
        "multiple_orders_threshold": 5,
        "high_value_percentage": 300,
        "unusual_time_weight": 5,
    },
    "default": {
        "multiple_orders_threshold": DEFAULT_CONFIG.multiple_orders_threshold,
        "high_value_percentage": DEFAULT_CONFIG.high_value_percentage,
        "unusual_time_weight": DEFAULT_CONFIG.unusual_time_weight,
    },
}


def load_config_file(path: Union[str, Path]) -> DetectionConfig:
    """
    Load a detection configuration from a JSON document.

    Raises:
        ConfigurationError: If the file is unreadable or the values are invalid
    """
    config_path = Path(path)
    try:
        with config_path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Cannot read fraud detection config from {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Fraud detection config in {config_path} must be a JSON object",
            details={"path": str(config_path)},
        )

    return DetectionConfig.load(data)


class ConfigManager:
    """
    Owner of the process-wide current configuration.

    Readers call ``current()`` once per evaluation and use that snapshot
    throughout. Writers build and validate a new snapshot before publishing it
    under the lock, so an invalid update never becomes active.
    """

    def __init__(self, initial: Optional[DetectionConfig] = None):
        self._lock = threading.Lock()
        self._current = initial if initial is not None else DEFAULT_CONFIG
        self._version = 1

    def current(self) -> DetectionConfig:
        """Current snapshot."""
        return self._current

    @property
    def version(self) -> int:
        """Incremented on every publish."""
        return self._version

    def publish(self, config: DetectionConfig) -> DetectionConfig:
        """Atomically replace the current snapshot."""
        if not isinstance(config, DetectionConfig):
            raise ConfigurationError(
                f"Expected DetectionConfig, got {type(config).__name__}"
            )
        with self._lock:
            previous = self._current
            self._current = config
            self._version += 1
            version = self._version

        logger.info(
            "Fraud detection config published",
            version=version,
            changed=sorted(
                name for name, value in config.model_dump().items()
                if getattr(previous, name) != value
            ),
        )
        return config

    def update(self, **overrides: Any) -> DetectionConfig:
        """
        Publish the current snapshot with some fields replaced.

        Raises:
            ConfigurationError: If the merged configuration is invalid; the
                current snapshot stays active
        """
        with self._lock:
            try:
                new_config = self._current.with_overrides(overrides)
            except ConfigurationError as e:
                logger.warning(
                    "Rejected fraud detection config update",
                    config_key=e.config_key,
                    error=e.message,
                )
                raise
            self._current = new_config
            self._version += 1
            version = self._version

        logger.info("Fraud detection config updated", version=version, overrides=sorted(overrides))
        return new_config

    def apply_preset(self, name: str) -> DetectionConfig:
        """Apply a named override set from PRESETS."""
        if name not in PRESETS:
            raise ConfigurationError(
                f"Unknown fraud detection preset: {name}",
                details={"available": sorted(PRESETS)},
            )
        return self.update(**PRESETS[name])

    def reset(self) -> DetectionConfig:
        """Restore the default configuration."""
        return self.publish(DEFAULT_CONFIG)
