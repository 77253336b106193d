"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ConfigIssue:
    """Represents a configuration validation problem."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_storage_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate storage parameters."""
        issues = []

        for key in ("db_path", "fallback_path"):
            if key in params:
                value = params[key]
                if not isinstance(value, str) or not value.strip():
                    issues.append(ConfigIssue(
                        field=f"storage.{key}",
                        message="Must be a non-empty path string",
                        value=value
                    ))

        if "mirror_to_fallback" in params:
            value = params["mirror_to_fallback"]
            if not isinstance(value, bool):
                issues.append(ConfigIssue(
                    field="storage.mirror_to_fallback",
                    message="Must be a boolean",
                    value=value
                ))

        if (isinstance(params.get("db_path"), str)
                and params.get("db_path") == params.get("fallback_path")):
            issues.append(ConfigIssue(
                field="storage.fallback_path",
                message="Must differ from the primary store path",
                value=params["fallback_path"]
            ))

        return issues

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate logging parameters."""
        issues = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in VALID_LOG_LEVELS:
                issues.append(ConfigIssue(
                    field="logging.level",
                    message=f"Must be one of {', '.join(VALID_LOG_LEVELS)}",
                    value=value
                ))

        for key in ("format_json", "include_timestamp"):
            if key in params and not isinstance(params[key], bool):
                issues.append(ConfigIssue(
                    field=f"logging.{key}",
                    message="Must be a boolean",
                    value=params[key]
                ))

        return issues

    @staticmethod
    def validate_tracking_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate tracking parameters."""
        issues = []

        if "record_history" in params and not isinstance(params["record_history"], bool):
            issues.append(ConfigIssue(
                field="tracking.record_history",
                message="Must be a boolean",
                value=params["record_history"]
            ))

        if "export_version" in params:
            value = params["export_version"]
            if not isinstance(value, str) or not value:
                issues.append(ConfigIssue(
                    field="tracking.export_version",
                    message="Must be a non-empty string",
                    value=value
                ))

        return issues

    @classmethod
    def validate_config(cls, config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate complete configuration."""
        issues: list[ConfigIssue] = []

        sections = {
            "storage": cls.validate_storage_params,
            "logging": cls.validate_logging_params,
            "tracking": cls.validate_tracking_params,
        }
        for section, validator in sections.items():
            params = config.get(section, {})
            if not isinstance(params, dict):
                issues.append(ConfigIssue(
                    field=section,
                    message="Must be a mapping",
                    value=params
                ))
                continue
            issues.extend(validator(params))

        for section in config:
            if section not in sections:
                issues.append(ConfigIssue(
                    field=section,
                    message="Unknown configuration section",
                    value=config[section]
                ))

        return issues
