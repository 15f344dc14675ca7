"""
Shared test fixtures and configuration for the fraud engine test suite.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fraud_engine.domains.fraud_detection.config import ConfigManager, DetectionConfig
from fraud_engine.domains.fraud_detection.models import Order
from fraud_engine.domains.fraud_detection.service import FraudDetectionService

REFERENCE_TIME = datetime(2024, 3, 15, 14, 0, 0, tzinfo=timezone.utc)
EVALUATED_AT = datetime(2024, 3, 15, 14, 0, 5, tzinfo=timezone.utc)

HOME_ADDRESS = {
    'id': 'addr-home',
    'street': 'Rua das Flores',
    'number': '10',
    'neighborhood': 'Centro',
    'city': 'São Paulo',
    'state': 'SP',
    'zipCode': '01001-000',
}

OFFICE_ADDRESS = {
    'id': 'addr-office',
    'street': 'Avenida Paulista',
    'number': '1000',
    'neighborhood': 'Bela Vista',
    'city': 'São Paulo',
    'state': 'SP',
    'zipCode': '01310-100',
}


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "concurrency: mark test as exercising concurrent access"
    )


# Test data factories
def create_test_order(**overrides):
    """Factory function to create a raw order record (document-store shape)."""
    base_order = {
        'id': 'order-001',
        'userId': 'user-001',
        'items': [
            {'productId': 'bolo-01', 'name': 'Bolo de cenoura', 'unitPrice': 50.0, 'quantity': 2},
        ],
        'totalAmount': 100.0,
        'status': 'pending',
        'paymentMethod': {'type': 'pix', 'id': 'pix'},
        'deliveryAddress': dict(HOME_ADDRESS),
        'createdAt': REFERENCE_TIME.isoformat(),
    }
    base_order.update(overrides)
    return base_order


def create_history_order(index, hours_ago, **overrides):
    """Factory for a previous order placed ``hours_ago`` before REFERENCE_TIME."""
    created_at = REFERENCE_TIME - timedelta(hours=hours_ago)
    return create_test_order(
        id=f'history-{index:03d}',
        createdAt=created_at.isoformat(),
        **overrides,
    )


@pytest.fixture
def reference_time():
    """Creation time of the candidate order."""
    return REFERENCE_TIME


@pytest.fixture
def make_order():
    """Build an Order from create_test_order overrides."""
    def _make(**overrides):
        return Order.from_dict(create_test_order(**overrides))
    return _make


@pytest.fixture
def make_history():
    """Build previous orders from (hours_ago, overrides) pairs."""
    def _make(*entries):
        return [
            Order.from_dict(create_history_order(index, hours_ago, **overrides))
            for index, (hours_ago, overrides) in enumerate(entries)
        ]
    return _make


@pytest.fixture
def default_config():
    """Default detection configuration."""
    return DetectionConfig()


@pytest.fixture
def fixed_clock():
    """Clock returning a constant evaluation time."""
    return lambda: EVALUATED_AT


@pytest.fixture
def config_manager():
    """Fresh configuration manager with defaults."""
    return ConfigManager()


@pytest.fixture
def service(fixed_clock):
    """Fraud detection service with default config and a fixed clock."""
    return FraudDetectionService(clock=fixed_clock)
