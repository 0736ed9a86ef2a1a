"""
Approval Scanner Data Models - Blocks, decoded calls and token records.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Optional, Union


ERROR_NAME_SENTINEL = "<Error fetching name>"


@dataclass(frozen=True)
class BlockRange:
    """Inclusive range of block heights."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < 0:
            raise ValueError("block heights must be non-negative")
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")

    @classmethod
    def latest_window(cls, latest_height: int, window_size: int) -> "BlockRange":
        """Range covering the most recent window_size blocks up to latest_height."""
        if window_size < 1:
            raise ValueError("window_size must be positive")
        if latest_height < 0:
            raise ValueError("latest_height must be non-negative")
        return cls(start=max(0, latest_height - window_size + 1), end=latest_height)

    def __len__(self) -> int:
        return self.end - self.start + 1

    def heights(self) -> range:
        return range(self.start, self.end + 1)

    def batches(self, batch_size: int) -> Iterator["BlockRange"]:
        """
        Partition into consecutive sub-ranges of at most batch_size blocks.

        Batches are ascending and cover the range with no gaps or overlap.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        current = self.start
        while current <= self.end:
            batch_end = min(current + batch_size - 1, self.end)
            yield BlockRange(start=current, end=batch_end)
            current = batch_end + 1

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class Transaction:
    """A transaction as delivered inside a block."""
    hash: str
    to: Optional[str]  # None for contract creation
    data: bytes = b""
    block_number: Optional[int] = None

    @property
    def is_contract_creation(self) -> bool:
        return self.to is None


@dataclass(frozen=True)
class Block:
    """A block with its ordered transactions."""
    number: int
    transactions: tuple[Transaction, ...] = ()
    hash: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.transactions


@dataclass(frozen=True)
class DecodedCall:
    """Successfully decoded function call."""
    name: str
    args: tuple[Any, ...]

    @property
    def spender(self) -> str:
        return self.args[0]

    @property
    def amount(self) -> int:
        return self.args[1]


@dataclass(frozen=True)
class DecodeFailure:
    """Call data matched the selector but could not be decoded."""
    reason: str
    data_length: int

    def __str__(self) -> str:
        return f"{self.reason} (call data length={self.data_length})"


DecodeResult = Union[DecodedCall, DecodeFailure]


@dataclass(frozen=True)
class TokenDiscovery:
    """Where a token contract was first seen approving the target spender."""
    token_address: str
    tx_hash: str
    block_number: int
    amount: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_address": self.token_address,
            "tx_hash": self.tx_hash,
            "block_number": self.block_number,
            "amount": str(self.amount) if self.amount is not None else None,
        }


@dataclass(frozen=True)
class TokenRecord:
    """Enriched token: address plus name, or the error sentinel."""
    address: str
    name: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, address: str, error: str) -> "TokenRecord":
        return cls(address=address, name=ERROR_NAME_SENTINEL, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "error": self.error,
        }


# Names follow the short network names used by ethers/chainlist.
KNOWN_NETWORKS: dict[int, str] = {
    1: "mainnet",
    10: "optimism",
    56: "bnb",
    97: "bnbt",
    137: "matic",
    8453: "base",
    42161: "arbitrum",
    43114: "avalanche",
    11155111: "sepolia",
}


@dataclass(frozen=True)
class NetworkInfo:
    """Identity of the connected chain."""
    chain_id: int
    name: str = "unknown"

    @classmethod
    def from_chain_id(cls, chain_id: int) -> "NetworkInfo":
        return cls(chain_id=chain_id, name=KNOWN_NETWORKS.get(chain_id, "unknown"))

    def to_dict(self) -> dict[str, Any]:
        return {"chain_id": self.chain_id, "name": self.name}


@dataclass
class ClientStats:
    """Request accounting for a chain client."""
    requests: int = 0
    failures: int = 0
    retries: int = 0
    last_latency_ms: Optional[float] = None
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests": self.requests,
            "failures": self.failures,
            "retries": self.retries,
            "last_latency_ms": self.last_latency_ms,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
        }


@dataclass
class ScanStats:
    """Counters collected while walking a block range."""
    batches: int = 0
    blocks_requested: int = 0
    blocks_fetched: int = 0
    blocks_failed: int = 0
    blocks_empty: int = 0
    transactions_seen: int = 0
    selector_matches: int = 0
    decode_failures: int = 0
    approvals_matched: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "batches": self.batches,
            "blocks_requested": self.blocks_requested,
            "blocks_fetched": self.blocks_fetched,
            "blocks_failed": self.blocks_failed,
            "blocks_empty": self.blocks_empty,
            "transactions_seen": self.transactions_seen,
            "selector_matches": self.selector_matches,
            "decode_failures": self.decode_failures,
            "approvals_matched": self.approvals_matched,
        }


@dataclass
class ScanResult:
    """Final output of one pipeline run."""
    network: NetworkInfo
    block_range: BlockRange
    target_spender: str
    tokens: list[TokenRecord] = field(default_factory=list)
    discoveries: dict[str, TokenDiscovery] = field(default_factory=dict)
    stats: ScanStats = field(default_factory=ScanStats)
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None

    @property
    def found_any(self) -> bool:
        return bool(self.tokens)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "network": self.network.to_dict(),
            "block_range": self.block_range.to_dict(),
            "target_spender": self.target_spender,
            "tokens": [
                {
                    **record.to_dict(),
                    "first_seen": (
                        self.discoveries[record.address].to_dict()
                        if record.address in self.discoveries else None
                    ),
                }
                for record in self.tokens
            ],
            "stats": self.stats.to_dict(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration_seconds,
        }
