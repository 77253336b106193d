"""Tests for configuration loading and validation."""

import pytest

from farmroute.config.defaults import get_default_config
from farmroute.config.loader import ConfigLoader
from farmroute.config.validation import ConfigValidator
from farmroute.errors import ConfigurationError


class TestDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        """Test shipped defaults."""
        config = get_default_config()

        assert config.storage.db_path == "farmroute.db"
        assert config.storage.mirror_to_fallback is True
        assert config.logging.level == "INFO"
        assert config.tracking.record_history is True
        assert config.tracking.export_version == "1.0.0"


class TestConfigLoader:
    """Test 3-tier precedence."""

    def test_no_file_uses_defaults(self, tmp_path):
        """Test loading without tracker.yaml."""
        config = ConfigLoader.create(tmp_path).load()

        assert config == get_default_config()

    def test_file_overrides_defaults(self, tmp_path):
        """Test tracker.yaml values win over defaults."""
        (tmp_path / "tracker.yaml").write_text(
            "storage:\n  db_path: /data/routes.db\nlogging:\n  format_json: true\n"
        )

        config = ConfigLoader.create(tmp_path).load()

        assert config.storage.db_path == "/data/routes.db"
        assert config.storage.fallback_path == "farmroute-fallback.json"
        assert config.logging.format_json is True

    def test_overrides_win_over_file(self, tmp_path):
        """Test explicit overrides have the highest priority."""
        (tmp_path / "tracker.yaml").write_text("tracking:\n  record_history: false\n")

        config = ConfigLoader.create(tmp_path).load({"tracking": {"record_history": True}})

        assert config.tracking.record_history is True

    def test_empty_file(self, tmp_path):
        """Test an empty tracker.yaml is ignored."""
        (tmp_path / "tracker.yaml").write_text("")

        assert ConfigLoader.create(tmp_path).load() == get_default_config()

    def test_invalid_values_raise(self, tmp_path):
        """Test validation failures raise ConfigurationError with issues."""
        (tmp_path / "tracker.yaml").write_text("logging:\n  level: LOUD\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.create(tmp_path).load()

        assert [issue.field for issue in exc_info.value.issues] == ["logging.level"]

    def test_unparseable_yaml(self, tmp_path):
        """Test broken YAML is a configuration error."""
        (tmp_path / "tracker.yaml").write_text("storage: [unclosed\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader.create(tmp_path).load()

    def test_non_mapping_file(self, tmp_path):
        """Test a YAML list at top level is rejected."""
        (tmp_path / "tracker.yaml").write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader.create(tmp_path).load()


class TestConfigValidator:
    """Test per-section validation."""

    def test_storage_paths(self):
        """Test empty and identical paths are flagged."""
        issues = ConfigValidator.validate_storage_params({"db_path": "", "fallback_path": "x"})
        assert [i.field for i in issues] == ["storage.db_path"]

        issues = ConfigValidator.validate_storage_params({"db_path": "same", "fallback_path": "same"})
        assert [i.field for i in issues] == ["storage.fallback_path"]

    def test_booleans(self):
        """Test non-boolean flags are flagged."""
        assert ConfigValidator.validate_storage_params({"mirror_to_fallback": "yes"})
        assert ConfigValidator.validate_logging_params({"format_json": 1})
        assert ConfigValidator.validate_tracking_params({"record_history": None})

    def test_unknown_section(self):
        """Test unexpected top-level sections are reported."""
        issues = ConfigValidator.validate_config({"metrics": {}})

        assert [i.field for i in issues] == ["metrics"]

    def test_section_must_be_mapping(self):
        """Test a scalar section is reported."""
        issues = ConfigValidator.validate_config({"storage": "sqlite"})

        assert issues[0].field == "storage"

    def test_valid_config(self, tmp_path):
        """Test the defaults validate cleanly."""
        loader = ConfigLoader.create(tmp_path)

        assert ConfigValidator.validate_config(loader.merge_config()) == []
