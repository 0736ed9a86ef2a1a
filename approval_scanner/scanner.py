"""
Batch Scanner - walks a block range and collects approved token contracts.

============================================================
FLOW
============================================================
For each batch of at most batch_size heights:
1. Fan out: one block fetch per height, all issued concurrently
2. Fan in: wait until every fetch in the batch has resolved
3. Process blocks in ascending height order:
   Matcher -> Decoder -> Filter -> Registry
4. Pause batch_delay_seconds before the next batch

Batches run strictly in order, so at most batch_size requests are in
flight at any time. A failed or missing block counts as an empty block.

============================================================
"""

import asyncio
import logging
from typing import Optional, Union

from approval_scanner.addresses import APPROVE_SELECTOR
from approval_scanner.client import ChainClient
from approval_scanner.decoding import ApproveCallDecoder, SelectorMatcher
from approval_scanner.exceptions import InvalidAddressError
from approval_scanner.filters import ApprovalFilter
from approval_scanner.models import (
    Block,
    BlockRange,
    DecodeFailure,
    ScanStats,
    TokenDiscovery,
    Transaction,
)
from approval_scanner.registry import TokenRegistry


logger = logging.getLogger(__name__)


class BatchScanner:
    """
    Scan a block range for approvals granted to one spender.

    Usage:
        scanner = BatchScanner(client, target_spender, batch_size=10)
        registry = await scanner.scan(BlockRange.latest_window(latest, 100))
    """

    DEFAULT_BATCH_SIZE = 10
    DEFAULT_BATCH_DELAY_SECONDS = 0.05

    def __init__(
        self,
        client: ChainClient,
        target_spender: Union[str, bytes],
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        selector: bytes = APPROVE_SELECTOR,
        registry: Optional[TokenRegistry] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        if batch_delay_seconds < 0:
            raise ValueError("batch_delay_seconds must not be negative")

        self.client = client
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds

        self.matcher = SelectorMatcher(selector)
        self.decoder = ApproveCallDecoder(selector)
        self.approval_filter = ApprovalFilter(target_spender)

        self.registry = registry if registry is not None else TokenRegistry()
        self.stats = ScanStats()

    @property
    def target_spender(self) -> str:
        return self.approval_filter.target_spender

    async def scan(self, block_range: BlockRange) -> TokenRegistry:
        """
        Scan every height in block_range.

        Returns:
            The registry holding every discovered token address
        """
        batches = list(block_range.batches(self.batch_size))
        logger.info(
            f"Scanning blocks {block_range.start} to {block_range.end} "
            f"({len(block_range)} blocks, {len(batches)} batches)"
        )

        for index, batch in enumerate(batches):
            logger.info(
                f"Fetching blocks {batch.start} to {batch.end} "
                f"(batch {index + 1}/{len(batches)})"
            )
            blocks = await self._fetch_batch(batch)
            self.stats.batches += 1

            logger.info(f"Processing {len(blocks)} blocks...")
            for block in blocks:
                self._process_block(block)

            if self.batch_delay_seconds and index < len(batches) - 1:
                await asyncio.sleep(self.batch_delay_seconds)

        logger.info(
            f"Scan finished: {self.stats.blocks_fetched}/{self.stats.blocks_requested} blocks, "
            f"{self.stats.transactions_seen} transactions, "
            f"{len(self.registry)} unique tokens"
        )
        return self.registry

    async def _fetch_batch(self, batch: BlockRange) -> list[Block]:
        """Fetch all heights of a batch concurrently and wait for every one."""
        heights = list(batch.heights())
        self.stats.blocks_requested += len(heights)

        results = await asyncio.gather(
            *(self.client.get_block_with_transactions(height) for height in heights),
            return_exceptions=True,
        )

        blocks: list[Block] = []
        for height, result in zip(heights, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self.stats.blocks_failed += 1
                logger.warning(f"Failed to fetch block {height}, treating as empty: {result}")
                continue
            if result is None:
                self.stats.blocks_failed += 1
                logger.warning(f"Block {height} not returned by node, treating as empty")
                continue
            self.stats.blocks_fetched += 1
            blocks.append(result)
        return blocks

    def _process_block(self, block: Block) -> None:
        if block.is_empty:
            self.stats.blocks_empty += 1
            return

        for tx in block.transactions:
            self.stats.transactions_seen += 1
            self._process_transaction(tx, block.number)

    def _process_transaction(self, tx: Transaction, block_number: int) -> None:
        if not self.matcher.matches(tx):
            return
        self.stats.selector_matches += 1

        decoded = self.decoder.decode(tx.data)
        if isinstance(decoded, DecodeFailure):
            self.stats.decode_failures += 1
            logger.warning(f"Could not decode transaction data for {tx.hash}: {decoded}")
            return

        try:
            token_address = self.approval_filter.filter(tx, decoded)
        except InvalidAddressError as e:
            logger.warning(f"Skipping transaction {tx.hash}: {e}")
            return
        if token_address is None:
            return

        self.stats.approvals_matched += 1
        discovery = TokenDiscovery(
            token_address=token_address,
            tx_hash=tx.hash,
            block_number=block_number,
            amount=decoded.amount,
        )
        if self.registry.add(token_address, discovery):
            logger.info(
                f"Found approval in block {block_number}: "
                f"tx={tx.hash} token={token_address}"
            )
