"""Tests for governor configuration."""

import pytest

from memgov.config import DEFAULT_WHITELIST, GovernorConfig, parse_duration
from memgov.exceptions import ConfigError
from memgov.models import MB


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        "value, seconds",
        [
            ("250ms", 0.25),
            ("1s", 1.0),
            ("1.5s", 1.5),
            ("2m", 120.0),
            ("0.1", 0.1),
            (" 500ms ", 0.5),
        ],
    )
    def test_valid(self, value, seconds):
        assert parse_duration(value) == pytest.approx(seconds)

    @pytest.mark.parametrize("value", ["", "fast", "-1s", "10x", "0ms", "0"])
    def test_invalid(self, value):
        with pytest.raises(ConfigError):
            parse_duration(value)


class TestGovernorConfig:
    """Tests for GovernorConfig."""

    def test_defaults(self):
        config = GovernorConfig(root_pid=42)

        assert config.vsz_limit == 1024 * MB
        assert config.vsz_limit_mb == 1024
        assert config.check_interval == 0.25
        assert config.whitelist == DEFAULT_WHITELIST

    def test_default_whitelist(self):
        """Test the static table of suspendable tools."""
        assert DEFAULT_WHITELIST == {"cc1plus", "cc1", "as", "ld"}

    def test_from_megabytes_converts_once(self):
        """Test the budget is stored in bytes and compared in bytes."""
        config = GovernorConfig.from_megabytes(root_pid=7, vsz_limit_mb=1000)

        assert config.vsz_limit == 1000 * MB

    def test_whitelist_becomes_frozenset(self):
        config = GovernorConfig(root_pid=1, whitelist={"ld"})

        assert isinstance(config.whitelist, frozenset)

    def test_is_frozen(self):
        config = GovernorConfig(root_pid=1)

        with pytest.raises(AttributeError):
            config.root_pid = 2

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"root_pid": 0},
            {"root_pid": -5},
            {"root_pid": 1, "vsz_limit": -1},
            {"root_pid": 1, "check_interval": 0},
            {"root_pid": 1, "whitelist": frozenset()},
        ],
    )
    def test_validation(self, kwargs):
        with pytest.raises(ConfigError):
            GovernorConfig(**kwargs)

    def test_negative_megabytes(self):
        with pytest.raises(ConfigError):
            GovernorConfig.from_megabytes(root_pid=1, vsz_limit_mb=-1)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            GovernorConfig(root_pid=0)

    def test_zero_budget_allowed(self):
        assert GovernorConfig(root_pid=1, vsz_limit=0).vsz_limit == 0
