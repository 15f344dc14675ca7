"""
Unit Tests for Detection Configuration

Tests snapshot validation, camelCase loading, config files, and the
manager that publishes the current snapshot.
"""

import json
import threading

import pytest
from pydantic import ValidationError

from fraud_engine.domains.fraud_detection.config import (
    DEFAULT_CONFIG,
    PRESETS,
    ConfigManager,
    DetectionConfig,
    load_config_file,
)
from fraud_engine.utils.exceptions import ConfigurationError


class TestDetectionConfig:
    """Test configuration snapshots."""

    def test_defaults(self, default_config):
        assert default_config.multiple_orders_threshold == 3
        assert default_config.multiple_orders_weight == 25
        assert default_config.unusual_address_weight == 15
        assert default_config.high_value_percentage == 200
        assert default_config.high_value_weight == 20
        assert default_config.unusual_time_weight == 10
        assert default_config.unusual_payment_weight == 15
        assert default_config.address_change_window_hours == 24
        assert default_config.address_change_weight == 15
        assert default_config.medium_risk_threshold == 30
        assert default_config.high_risk_threshold == 60
        assert default_config.velocity_window_hours == 24
        assert default_config.timezone is None
        assert default_config.zone is None

    def test_load_camel_case(self):
        config = DetectionConfig.load({
            'multipleOrdersThreshold': 4,
            'addressChangeHours': 12,
            'highRiskThreshold': 70,
        })

        assert config.multiple_orders_threshold == 4
        assert config.address_change_window_hours == 12
        assert config.high_risk_threshold == 70

    def test_load_empty_gives_defaults(self):
        assert DetectionConfig.load(None) == DEFAULT_CONFIG

    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            DetectionConfig.load({'highValueWeight': -1})

        assert exc_info.value.config_key == 'high_value_weight'
        assert exc_info.value.code == 'CONFIG_ERROR'
        assert exc_info.value.details['errors']

    @pytest.mark.parametrize("overrides", [
        {'medium_risk_threshold': 70, 'high_risk_threshold': 60},
        {'high_risk_threshold': 101},
        {'medium_risk_threshold': -5},
        {'multiple_orders_threshold': 0},
        {'velocity_window_hours': 0},
        {'timezone': 'Mars/Olympus_Mons'},
        {'unknownSetting': 1},
        {'velocity_window_hours': float('inf')},
        {'velocity_window_hours': 1e8},
        {'addressChangeHours': float('inf')},
        {'high_value_weight': float('nan')},
        {'high_value_percentage': float('inf')},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            DetectionConfig.load(overrides)

    def test_equal_thresholds_allowed(self):
        config = DetectionConfig.load({'medium_risk_threshold': 50, 'high_risk_threshold': 50})

        assert config.medium_risk_threshold == config.high_risk_threshold

    def test_snapshot_is_immutable(self, default_config):
        with pytest.raises(ValidationError):
            default_config.high_value_weight = 99

    def test_with_overrides_returns_new_snapshot(self, default_config):
        updated = default_config.with_overrides({'unusualTimeWeight': 5})

        assert updated.unusual_time_weight == 5
        assert default_config.unusual_time_weight == 10

    def test_timezone_zone(self):
        config = DetectionConfig(timezone='America/Sao_Paulo')

        assert config.zone is not None
        assert str(config.zone) == 'America/Sao_Paulo'


class TestLoadConfigFile:
    """Test JSON config files."""

    def test_valid_file(self, tmp_path):
        path = tmp_path / "fraud.json"
        path.write_text(json.dumps({'highValuePercentage': 250, 'mediumRiskThreshold': 25}))

        config = load_config_file(path)

        assert config.high_value_percentage == 250
        assert config.medium_risk_threshold == 25

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_file(tmp_path / "missing.json")

        assert exc_info.value.details['path'].endswith("missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "fraud.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError):
            load_config_file(path)

    def test_non_object_document(self, tmp_path):
        path = tmp_path / "fraud.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ConfigurationError):
            load_config_file(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "fraud.json"
        path.write_text(json.dumps({'mediumRiskThreshold': 90, 'highRiskThreshold': 60}))

        with pytest.raises(ConfigurationError):
            load_config_file(path)


class TestConfigManager:
    """Test publishing of configuration snapshots."""

    def test_starts_with_defaults(self, config_manager):
        assert config_manager.current() == DEFAULT_CONFIG
        assert config_manager.version == 1

    def test_custom_initial_snapshot(self):
        initial = DetectionConfig(high_risk_threshold=80)

        assert ConfigManager(initial).current() is initial

    def test_update(self, config_manager):
        before = config_manager.current()

        after = config_manager.update(multiple_orders_threshold=5)

        assert after.multiple_orders_threshold == 5
        assert config_manager.current() is after
        assert config_manager.version == 2
        assert before.multiple_orders_threshold == 3

    def test_rejected_update_keeps_current(self, config_manager):
        before = config_manager.current()

        with pytest.raises(ConfigurationError):
            config_manager.update(medium_risk_threshold=90)

        assert config_manager.current() is before
        assert config_manager.version == 1

    def test_infinite_window_update_rejected(self, config_manager):
        before = config_manager.current()

        with pytest.raises(ConfigurationError) as exc_info:
            config_manager.update(velocity_window_hours=float('inf'))

        assert exc_info.value.config_key == 'velocity_window_hours'
        assert config_manager.current() is before

    def test_year_long_window_allowed(self):
        config = DetectionConfig(velocity_window_hours=24 * 365, address_change_window_hours=24 * 365)

        assert config.velocity_window_hours == 8760

    def test_holiday_preset(self, config_manager):
        config = config_manager.apply_preset("holiday")

        assert config.multiple_orders_threshold == 5
        assert config.high_value_percentage == 300
        assert config.unusual_time_weight == 5
        assert config.unusual_payment_weight == 15

    def test_default_preset_restores_tuned_fields(self, config_manager):
        config_manager.apply_preset("holiday")

        config = config_manager.apply_preset("default")

        for key in PRESETS["holiday"]:
            assert getattr(config, key) == getattr(DEFAULT_CONFIG, key)

    def test_unknown_preset(self, config_manager):
        with pytest.raises(ConfigurationError) as exc_info:
            config_manager.apply_preset("black_friday")

        assert "holiday" in exc_info.value.details['available']

    def test_reset(self, config_manager):
        config_manager.update(high_value_weight=40, unusual_address_weight=1)

        config_manager.reset()

        assert config_manager.current() == DEFAULT_CONFIG
        assert config_manager.version == 3

    def test_publish_requires_snapshot(self, config_manager):
        with pytest.raises(ConfigurationError):
            config_manager.publish({'high_value_weight': 40})

    @pytest.mark.concurrency
    def test_readers_never_see_mixed_snapshot(self, config_manager):
        """Preset fields always change together for concurrent readers."""
        errors = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                snapshot = config_manager.current()
                holiday = snapshot.multiple_orders_threshold == 5
                if holiday != (snapshot.high_value_percentage == 300):
                    errors.append(snapshot)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for thread in readers:
            thread.start()

        for i in range(200):
            config_manager.apply_preset("holiday" if i % 2 == 0 else "default")

        stop.set()
        for thread in readers:
            thread.join()

        assert errors == []
        assert config_manager.version == 201
