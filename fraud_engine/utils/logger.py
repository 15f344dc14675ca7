"""
Order Fraud Engine - Logging Utilities

Structured logging setup shared by the engine and its callers.
Customer address and contact fields are masked before rendering.
"""

import logging
import sys
from typing import Any, Dict, Iterable, Optional

import structlog

DEFAULT_SENSITIVE_FIELDS = (
    "street",
    "number",
    "complement",
    "zip_code",
    "zipcode",
    "customer_phone",
    "customerphone",
    "customer_name",
    "customername",
)


class SensitiveDataMasker:
    """Masks sensitive data in log events."""

    def __init__(self, sensitive_fields: Iterable[str]):
        self.sensitive_fields = set(field.lower() for field in sensitive_fields)
        self.mask_value = "***MASKED***"

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively mask sensitive fields in dictionary."""
        masked_data = {}

        for key, value in data.items():
            if isinstance(key, str) and key.lower() in self.sensitive_fields:
                masked_data[key] = self.mask_value
            elif isinstance(value, dict):
                masked_data[key] = self.mask_dict(value)
            elif isinstance(value, list):
                masked_data[key] = [
                    self.mask_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                masked_data[key] = value

        return masked_data


class SensitiveDataProcessor:
    """structlog processor applying a SensitiveDataMasker."""

    def __init__(self, masker: SensitiveDataMasker):
        self.masker = masker

    def __call__(self, logger, method_name, event_dict):
        return self.masker.mask_dict(event_dict)


def setup_logging(
    level: str = "INFO",
    fmt: str = "json",
    sensitive_fields: Optional[Iterable[str]] = None,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        fmt: ``json`` for machine-readable output, ``console`` for development
        sensitive_fields: Event keys to mask (defaults to address/contact fields)
    """
    log_level = level.upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level),
    )

    masker = SensitiveDataMasker(sensitive_fields or DEFAULT_SENSITIVE_FIELDS)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        SensitiveDataProcessor(masker),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if fmt.lower() == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger("fraud_engine").info(
        "Logging system initialized", log_level=log_level, log_format=fmt
    )


def get_logger(name: Optional[str] = None):
    """
    Get a structured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        structlog bound logger
    """
    return structlog.get_logger(name)
