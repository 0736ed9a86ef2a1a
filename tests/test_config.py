"""
Tests for scanner configuration.

============================================================
TEST SCENARIOS
============================================================
1. Defaults apply when the environment is empty
2. Environment variables are read and CLI overrides win
3. Malformed numeric values raise ConfigurationError
4. validate() reports every invalid field

============================================================
"""

import logging

import pytest

from approval_scanner.config import (
    DEFAULT_TARGET_SPENDER,
    ENV_BATCH_SIZE,
    ENV_RPC_URL,
    ENV_TARGET_SPENDER,
    ENV_WINDOW_SIZE,
    RPC_URL_PLACEHOLDER,
    ScannerConfig,
)
from approval_scanner.exceptions import ConfigurationError


ALL_ENV_VARS = [
    "BSC_RPC_URL",
    "TARGET_SPENDER_ADDRESS",
    "SCAN_WINDOW_SIZE",
    "SCAN_BATCH_SIZE",
    "SCAN_BATCH_DELAY_SECONDS",
    "RPC_TIMEOUT_SECONDS",
    "RPC_MAX_RETRIES",
    "ENRICH_CONCURRENCY",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ALL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================
# TEST: LOADING
# ============================================================

class TestFromEnv:
    """Tests for ScannerConfig.from_env."""

    def test_defaults(self, clean_env):
        config = ScannerConfig.from_env()

        assert config.rpc_url == ""
        assert config.target_spender == DEFAULT_TARGET_SPENDER
        assert config.window_size == 100
        assert config.batch_size == 10
        assert config.batch_delay_seconds == 0.05
        assert config.max_retries == 2
        assert config.enrich_concurrency == 5

    def test_reads_environment(self, clean_env):
        clean_env.setenv(ENV_RPC_URL, " https://rpc.example ")
        clean_env.setenv(ENV_WINDOW_SIZE, "250")
        clean_env.setenv(ENV_BATCH_SIZE, "25")
        clean_env.setenv("SCAN_BATCH_DELAY_SECONDS", "0.2")

        config = ScannerConfig.from_env()

        assert config.rpc_url == "https://rpc.example"
        assert config.window_size == 250
        assert config.batch_size == 25
        assert config.batch_delay_seconds == 0.2

    def test_overrides_win(self, clean_env):
        clean_env.setenv(ENV_WINDOW_SIZE, "250")
        clean_env.setenv(ENV_TARGET_SPENDER, "0x" + "11" * 20)

        config = ScannerConfig.from_env(window_size=10, target_spender=None)

        assert config.window_size == 10
        # None overrides leave the environment value in place
        assert config.target_spender == "0x" + "11" * 20

    def test_malformed_number(self, clean_env):
        clean_env.setenv(ENV_BATCH_SIZE, "ten")

        with pytest.raises(ConfigurationError) as exc_info:
            ScannerConfig.from_env()

        assert exc_info.value.config_key == ENV_BATCH_SIZE

    def test_blank_number_uses_default(self, clean_env):
        clean_env.setenv(ENV_BATCH_SIZE, "  ")

        assert ScannerConfig.from_env().batch_size == 10

    def test_unknown_override(self, clean_env):
        with pytest.raises(ConfigurationError):
            ScannerConfig.from_env(block_size=5)


# ============================================================
# TEST: VALIDATION
# ============================================================

class TestValidate:
    """Tests for ScannerConfig.validate."""

    def test_valid(self):
        config = ScannerConfig(rpc_url="https://rpc.example")

        assert config.validate() == []

    @pytest.mark.parametrize("rpc_url", ["", RPC_URL_PLACEHOLDER])
    def test_missing_rpc_url(self, rpc_url):
        errors = ScannerConfig(rpc_url=rpc_url).validate()

        assert len(errors) == 1
        assert ENV_RPC_URL in errors[0]

    def test_invalid_values(self):
        config = ScannerConfig(
            rpc_url="https://rpc.example",
            target_spender="0x1234",
            window_size=0,
            batch_size=0,
            batch_delay_seconds=-1,
            request_timeout_seconds=0,
            max_retries=-1,
            enrich_concurrency=0,
        )

        assert len(config.validate()) == 7

    def test_batch_larger_than_window_warns(self, caplog):
        config = ScannerConfig(rpc_url="https://rpc.example", window_size=5, batch_size=10)

        with caplog.at_level(logging.WARNING, logger="approval_scanner.config"):
            assert config.validate() == []

        assert "exceeds window_size" in caplog.text

    def test_mistyped_spender_checksum(self):
        config = ScannerConfig(
            rpc_url="https://rpc.example",
            target_spender="0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        )

        errors = config.validate()

        assert len(errors) == 1
        assert "Invalid target spender" in errors[0]

    def test_normalized_target_spender(self):
        config = ScannerConfig(target_spender=DEFAULT_TARGET_SPENDER.upper().replace("0X", "0x"))

        assert config.normalized_target_spender.lower() == DEFAULT_TARGET_SPENDER
