"""
Approval Scanner Configuration - Endpoint, target spender and scan tuning.

Values come from environment variables (a .env file is honoured by the CLI)
and can be overridden per run.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from approval_scanner.addresses import is_valid_address, normalize_address
from approval_scanner.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_TARGET_SPENDER = "0xb300000b72deaeb607a12d5f54773d1c19c7028d"
RPC_URL_PLACEHOLDER = "YOUR_BSC_RPC_URL"

ENV_RPC_URL = "BSC_RPC_URL"
ENV_TARGET_SPENDER = "TARGET_SPENDER_ADDRESS"
ENV_WINDOW_SIZE = "SCAN_WINDOW_SIZE"
ENV_BATCH_SIZE = "SCAN_BATCH_SIZE"
ENV_BATCH_DELAY = "SCAN_BATCH_DELAY_SECONDS"
ENV_TIMEOUT = "RPC_TIMEOUT_SECONDS"
ENV_MAX_RETRIES = "RPC_MAX_RETRIES"
ENV_ENRICH_CONCURRENCY = "ENRICH_CONCURRENCY"


@dataclass
class ScannerConfig:
    """Configuration for one scan run."""

    # Endpoint
    rpc_url: str = ""
    request_timeout_seconds: float = 30.0
    max_retries: int = 2

    # Target
    target_spender: str = DEFAULT_TARGET_SPENDER

    # Scan window and batching
    window_size: int = 100
    batch_size: int = 10
    batch_delay_seconds: float = 0.05  # Rate-limit mitigation between batches

    # Enrichment
    enrich_concurrency: int = 5

    @classmethod
    def from_env(cls, **overrides: Any) -> "ScannerConfig":
        """
        Build configuration from environment variables.

        Args:
            **overrides: Field values taking precedence over the environment;
                None values are ignored

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        defaults = cls()
        values: dict[str, Any] = {
            "rpc_url": os.environ.get(ENV_RPC_URL, defaults.rpc_url).strip(),
            "target_spender": os.environ.get(ENV_TARGET_SPENDER, defaults.target_spender).strip(),
            "window_size": _env_number(ENV_WINDOW_SIZE, int, defaults.window_size),
            "batch_size": _env_number(ENV_BATCH_SIZE, int, defaults.batch_size),
            "batch_delay_seconds": _env_number(ENV_BATCH_DELAY, float, defaults.batch_delay_seconds),
            "request_timeout_seconds": _env_number(ENV_TIMEOUT, float, defaults.request_timeout_seconds),
            "max_retries": _env_number(ENV_MAX_RETRIES, int, defaults.max_retries),
            "enrich_concurrency": _env_number(ENV_ENRICH_CONCURRENCY, int, defaults.enrich_concurrency),
        }

        for key, value in overrides.items():
            if key not in values:
                raise ConfigurationError(f"Unknown configuration field: {key}", config_key=key)
            if value is not None:
                values[key] = value

        return cls(**values)

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty when valid)
        """
        errors = []

        if not self.rpc_url or self.rpc_url == RPC_URL_PLACEHOLDER:
            errors.append(
                f"{ENV_RPC_URL} is not configured. Set the {ENV_RPC_URL} "
                f"environment variable or pass --rpc-url"
            )

        if not is_valid_address(self.target_spender):
            errors.append(f"Invalid target spender address: {self.target_spender!r}")

        if self.window_size < 1:
            errors.append("window_size must be a positive integer")
        if self.batch_size < 1:
            errors.append("batch_size must be a positive integer")
        if self.batch_delay_seconds < 0:
            errors.append("batch_delay_seconds must not be negative")
        if self.request_timeout_seconds <= 0:
            errors.append("request_timeout_seconds must be positive")
        if self.max_retries < 0:
            errors.append("max_retries must not be negative")
        if self.enrich_concurrency < 1:
            errors.append("enrich_concurrency must be a positive integer")

        if not errors and self.batch_size > self.window_size:
            logger.warning(
                f"batch_size ({self.batch_size}) exceeds window_size "
                f"({self.window_size}); the window is fetched as a single batch"
            )

        return errors

    @property
    def normalized_target_spender(self) -> str:
        return normalize_address(self.target_spender)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "target_spender": self.target_spender,
            "window_size": self.window_size,
            "batch_size": self.batch_size,
            "batch_delay_seconds": self.batch_delay_seconds,
            "request_timeout_seconds": self.request_timeout_seconds,
            "max_retries": self.max_retries,
            "enrich_concurrency": self.enrich_concurrency,
        }


def _env_number(name: str, cast: Callable[[str], Any], default: Any) -> Any:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            config_key=name,
            original_error=e,
        )
