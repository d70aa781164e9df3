"""Tests for configuration loading and validation (revrec_config)."""

from decimal import Decimal

import pytest
import yaml

from revrec_config import RevrecConfig, compute_checksum, get_active_config, load_config
from revrec_config.loader import parse_config


def _write(tmp_path, data) -> str:
    path = tmp_path / "revrec.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestPackagedDefaults:
    def test_defaults_load(self):
        config = get_active_config()
        assert config.reconciliation_tolerance == Decimal("0.01")
        assert config.noise_threshold == Decimal("0.01")
        assert config.default_platform == "quickbooks"
        assert config.account_mapping.deferred_revenue_account_id == "2400"
        assert config.account_mapping.revenue_account_id == "4000"

    def test_load_emits_config_trace(self, captured_logs):
        get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "REVREC_CONFIG_TRACE"]
        assert len(traces) == 1
        assert len(traces[0]["checksum"]) == 64


class TestLoadConfig:
    def test_partial_file_takes_defaults(self, tmp_path):
        config = load_config(_write(tmp_path, {"default_platform": "Xero"}))
        assert config.default_platform == "xero"
        assert config.reconciliation_tolerance == Decimal("0.01")
        assert config.account_mapping is None

    def test_unquoted_float_parsed_exactly(self, tmp_path):
        config = load_config(_write(tmp_path, {"reconciliation_tolerance": 0.1}))
        assert config.reconciliation_tolerance == Decimal("0.1")

    def test_quoted_decimal(self, tmp_path):
        config = load_config(_write(tmp_path, {"noise_threshold": "0.005"}))
        assert config.noise_threshold == Decimal("0.005")

    def test_log_level_normalized(self, tmp_path):
        assert load_config(_write(tmp_path, {"log_level": "debug"})).log_level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestValidation:
    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys: tolerance"):
            parse_config({"tolerance": "0.01"})

    def test_negative_tolerance(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            parse_config({"reconciliation_tolerance": "-0.01"})

    def test_unparseable_decimal(self):
        with pytest.raises(ValueError, match="cannot parse decimal"):
            parse_config({"noise_threshold": "a penny"})

    def test_boolean_is_not_a_decimal(self):
        with pytest.raises(ValueError):
            parse_config({"noise_threshold": True})

    def test_unsupported_log_level(self):
        with pytest.raises(ValueError, match="log_level"):
            parse_config({"log_level": "VERBOSE"})

    def test_account_mapping_missing_key(self):
        with pytest.raises(ValueError, match="revenue_account_id"):
            parse_config({"account_mapping": {"deferred_revenue_account_id": "2400"}})

    def test_float_threshold_rejected_by_schema(self):
        with pytest.raises(ValueError, match="must be a Decimal"):
            RevrecConfig(noise_threshold=0.01)


class TestChecksum:
    def test_deterministic_and_order_independent(self):
        assert compute_checksum({"a": 1, "b": "x"}) == compute_checksum({"b": "x", "a": 1})

    def test_changes_with_content(self):
        base = RevrecConfig().as_dict()
        changed = RevrecConfig(reconciliation_tolerance=Decimal("0.05")).as_dict()
        assert compute_checksum(base) != compute_checksum(changed)
