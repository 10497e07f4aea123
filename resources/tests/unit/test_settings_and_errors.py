"""
Test settings loading and the error hierarchy.
"""

import logging
from unittest.mock import patch

from feature_aspect.utils.config import FeatureAspectSettings
from feature_aspect.utils.errors import (
    ConfigurationError,
    CycleError,
    FeatureAspectError,
    GraphError,
    ManifestParseError,
    ManifestShapeError,
    VerifyMismatch,
    WriteError,
)
from feature_aspect.utils.logging import configure_root_logging, set_level


class TestSettings:
    """Test FeatureAspectSettings."""

    def test_defaults(self):
        settings = FeatureAspectSettings()

        assert settings.cargo_path == "cargo"
        assert settings.sort_params is True
        assert settings.get_log_file_path() is None

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("FEATURE_ASPECT_CARGO_PATH", "/opt/rust/bin/cargo")
        monkeypatch.setenv("FEATURE_ASPECT_SORT_PARAMS", "false")

        settings = FeatureAspectSettings()

        assert settings.cargo_path == "/opt/rust/bin/cargo"
        assert settings.sort_params is False

    def test_validate_rejects_bad_log_level(self):
        result = FeatureAspectSettings(log_level="LOUD").validate_settings()

        assert not result.valid
        assert any("log level" in e.lower() for e in result.errors)

    def test_validate_warns_on_missing_cargo(self):
        with patch("feature_aspect.utils.config.shutil.which", return_value=None):
            result = FeatureAspectSettings(cargo_path="no-such-cargo").validate_settings()

        assert result.valid
        assert result.warnings

    def test_log_file_path(self, tmp_path):
        settings = FeatureAspectSettings(log_file=str(tmp_path / "logs" / "run.log"))

        assert settings.get_log_file_path() == (tmp_path / "logs" / "run.log").resolve()


class TestErrors:
    """Test the error hierarchy."""

    def test_hierarchy(self):
        for cls in (ConfigurationError, GraphError, ManifestParseError, ManifestShapeError,
                    WriteError, VerifyMismatch):
            assert issubclass(cls, FeatureAspectError)
        assert issubclass(CycleError, GraphError)

    def test_exit_codes(self):
        assert VerifyMismatch("out of date").exit_code == 1
        assert ManifestParseError("bad").exit_code == 2
        assert CycleError("cycle").exit_code == 2

    def test_error_code_defaults_to_class_name(self):
        error = ManifestShapeError("bad shape", manifest_path="/ws/foo/Cargo.toml")

        assert error.error_code == "MANIFESTSHAPEERROR"
        assert error.context == {"manifest_path": "/ws/foo/Cargo.toml"}

    def test_verify_mismatch_lists_packages(self):
        error = VerifyMismatch("out of date", packages=["bar"])

        assert error.packages == ["bar"]
        assert error.context["packages"] == ["bar"]
        assert error.suggestions


class TestLogging:
    """Test logging helpers."""

    def test_structured_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        configure_root_logging(level="INFO", structured=True, log_file=log_file)

        logging.getLogger("feature_aspect.tests").info("hello")
        for handler in logging.getLogger("feature_aspect").handlers:
            handler.flush()

        assert '"message": "hello"' in log_file.read_text(encoding="utf-8")
        configure_root_logging(level="WARNING")

    def test_set_level(self):
        configure_root_logging(level="WARNING")

        set_level("DEBUG")

        assert logging.getLogger("feature_aspect").level == logging.DEBUG
        configure_root_logging(level="WARNING")
