"""
Tests for token name enrichment.

============================================================
TEST SCENARIOS
============================================================
E. name() reverts for one token → sentinel record, others unaffected
2. Records follow registry order
3. bytes32 name() results are decoded
4. Empty or garbage return data → sentinel record
5. Concurrency is bounded

============================================================
"""

import asyncio
import logging

import pytest
from eth_abi import encode

from approval_scanner.addresses import normalize_address
from approval_scanner.enricher import MetadataEnricher, decode_string_result
from approval_scanner.exceptions import ChainConnectionError
from approval_scanner.mock import MockChainClient, MockChainConfig, encode_string_result
from approval_scanner.models import ERROR_NAME_SENTINEL
from approval_scanner.registry import TokenRegistry

from tests.helpers import TOKEN_1, TOKEN_2, TOKEN_3


def registry_of(*tokens):
    registry = TokenRegistry()
    for token in tokens:
        registry.add(token)
    return registry


# ============================================================
# TEST: STRING DECODING
# ============================================================

class TestDecodeStringResult:
    """Tests for name() return data decoding."""

    def test_abi_string(self):
        assert decode_string_result(encode_string_result("Wrapped BNB")) == "Wrapped BNB"

    def test_empty_string(self):
        assert decode_string_result(encode(["string"], [""])) == ""

    def test_bytes32_fallback(self):
        data = b"Maker".ljust(32, b"\x00")
        assert decode_string_result(data) == "Maker"

    def test_empty_data_raises(self):
        with pytest.raises(ValueError):
            decode_string_result(b"")

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            decode_string_result(b"\xff" * 7)


# ============================================================
# TEST: ENRICHMENT
# ============================================================

class TestMetadataEnricher:
    """Tests for MetadataEnricher."""

    @pytest.mark.asyncio
    async def test_revert_yields_sentinel_and_others_continue(self, token_addresses, caplog):
        t1, t2, t3 = token_addresses
        client = MockChainClient(names={TOKEN_1: "Token One", TOKEN_3: "Token Three"})
        enricher = MetadataEnricher(client)

        with caplog.at_level(logging.WARNING, logger="approval_scanner.enricher"):
            records = await enricher.enrich(registry_of(TOKEN_1, TOKEN_2, TOKEN_3))

        assert [r.address for r in records] == [t1, t2, t3]
        assert [r.name for r in records] == ["Token One", ERROR_NAME_SENTINEL, "Token Three"]
        assert records[1].error is not None
        assert "reverted" in records[1].error
        assert records[0].ok and records[2].ok
        assert t2 in caplog.text

    @pytest.mark.asyncio
    async def test_order_follows_registry(self, token_addresses):
        client = MockChainClient(
            names={TOKEN_1: "One", TOKEN_2: "Two", TOKEN_3: "Three"},
            config=MockChainConfig(latency_seconds=0.001),
        )
        enricher = MetadataEnricher(client, concurrency=3)

        records = await enricher.enrich(registry_of(TOKEN_3, TOKEN_1, TOKEN_2))

        assert [r.name for r in records] == ["Three", "One", "Two"]

    @pytest.mark.asyncio
    async def test_one_call_per_token(self):
        client = MockChainClient(names={TOKEN_1: "One", TOKEN_2: "Two"})

        await MetadataEnricher(client).enrich(registry_of(TOKEN_1, TOKEN_2))

        assert client.view_calls == [
            (normalize_address(TOKEN_1), "name"),
            (normalize_address(TOKEN_2), "name"),
        ]

    @pytest.mark.asyncio
    async def test_bytes32_name(self):
        client = MockChainClient(names={TOKEN_1: b"Maker".ljust(32, b"\x00")})

        records = await MetadataEnricher(client).enrich(registry_of(TOKEN_1))

        assert records[0].name == "Maker"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [b"", b"\x01\x02\x03"])
    async def test_unusable_return_data(self, raw):
        client = MockChainClient(names={TOKEN_1: raw})

        records = await MetadataEnricher(client).enrich(registry_of(TOKEN_1))

        assert records[0].name == ERROR_NAME_SENTINEL

    @pytest.mark.asyncio
    async def test_connection_error_yields_sentinel(self):
        client = MockChainClient(names={
            TOKEN_1: ChainConnectionError("timed out"),
            TOKEN_2: "Two",
        })

        records = await MetadataEnricher(client).enrich(registry_of(TOKEN_1, TOKEN_2))

        assert records[0].name == ERROR_NAME_SENTINEL
        assert records[0].error == "timed out"
        assert records[1].name == "Two"

    @pytest.mark.asyncio
    async def test_unexpected_error_yields_sentinel(self):
        client = MockChainClient(names={TOKEN_1: RuntimeError("boom")})

        records = await MetadataEnricher(client).enrich(registry_of(TOKEN_1))

        assert records[0].name == ERROR_NAME_SENTINEL
        assert "boom" in records[0].error

    @pytest.mark.asyncio
    async def test_empty_registry(self):
        client = MockChainClient()

        assert await MetadataEnricher(client).enrich(TokenRegistry()) == []
        assert client.view_calls == []

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        tokens = ["0x" + f"{i:02x}" * 20 for i in range(1, 9)]
        in_flight = 0
        peak = 0

        class SlowClient(MockChainClient):
            async def call_contract_view(self, address, function_name):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.001)
                in_flight -= 1
                return encode_string_result("Token")

        enricher = MetadataEnricher(SlowClient(), concurrency=2)

        records = await enricher.enrich(registry_of(*tokens))

        assert len(records) == 8
        assert peak == 2

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            MetadataEnricher(MockChainClient(), concurrency=0)
