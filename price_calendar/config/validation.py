"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

SUPPORTED_PROVIDERS = ("coingecko", "binance")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_api_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate upstream API parameters."""
        errors = []

        if "provider" in params and params["provider"] not in SUPPORTED_PROVIDERS:
            errors.append(ValidationError(
                field="provider",
                message=f"Must be one of {', '.join(SUPPORTED_PROVIDERS)}",
                value=params["provider"]
            ))

        if "base_url" in params:
            value = params["base_url"]
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                errors.append(ValidationError(
                    field="base_url",
                    message="Must be an http(s) URL",
                    value=value
                ))

        if "timeout_seconds" in params and not _is_positive_number(params["timeout_seconds"]):
            errors.append(ValidationError(
                field="timeout_seconds",
                message="Must be a positive number",
                value=params["timeout_seconds"]
            ))

        return errors

    @staticmethod
    def validate_retry_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate retry policy parameters."""
        errors = []

        if "max_retries" in params:
            value = params["max_retries"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field="max_retries",
                    message="Must be a non-negative integer",
                    value=value
                ))

        if "base_delay_ms" in params and not _is_positive_int(params["base_delay_ms"]):
            errors.append(ValidationError(
                field="base_delay_ms",
                message="Must be a positive integer",
                value=params["base_delay_ms"]
            ))

        return errors

    @staticmethod
    def validate_cache_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate cache parameters."""
        errors = []

        if "ttl_ms" in params and not _is_positive_int(params["ttl_ms"]):
            errors.append(ValidationError(
                field="ttl_ms",
                message="Must be a positive integer",
                value=params["ttl_ms"]
            ))

        if "key_suffix" in params:
            value = params["key_suffix"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="key_suffix",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_window_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate calendar window sizes."""
        errors = []

        for field_name in ("week_days", "year_days"):
            if field_name in params and not _is_positive_int(params[field_name]):
                errors.append(ValidationError(
                    field=field_name,
                    message="Must be a positive integer",
                    value=params[field_name]
                ))

        # The upstream API serves at most a year of daily history
        if _is_positive_int(params.get("year_days")) and params["year_days"] > 365:
            errors.append(ValidationError(
                field="year_days",
                message="Must not exceed 365",
                value=params["year_days"]
            ))

        return errors

    @staticmethod
    def validate_scheduler_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate refresh scheduler parameters."""
        errors = []

        if "refresh_interval_seconds" in params and not _is_positive_number(
            params["refresh_interval_seconds"]
        ):
            errors.append(ValidationError(
                field="refresh_interval_seconds",
                message="Must be a positive number",
                value=params["refresh_interval_seconds"]
            ))

        if "default_instrument" in params:
            value = params["default_instrument"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="default_instrument",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "api" in config:
            errors.extend(ConfigValidator.validate_api_params(config["api"]))

        if "retry" in config:
            errors.extend(ConfigValidator.validate_retry_params(config["retry"]))

        if "cache" in config:
            errors.extend(ConfigValidator.validate_cache_params(config["cache"]))

        if "window" in config:
            errors.extend(ConfigValidator.validate_window_params(config["window"]))

        if "scheduler" in config:
            errors.extend(ConfigValidator.validate_scheduler_params(config["scheduler"]))

        return errors
