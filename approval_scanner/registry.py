"""
Token Registry - deduplicated set of discovered token contracts.

Keys are checksummed addresses, so the same contract observed in different
casings is stored once. Iteration follows insertion order. Entries are never
removed.

Mutated only from the scanner's sequential processing of resolved blocks,
which runs on a single event loop, so no lock is taken.
"""

from typing import Iterator, Optional, Union

from approval_scanner.addresses import normalize_address
from approval_scanner.exceptions import InvalidAddressError
from approval_scanner.models import TokenDiscovery


class TokenRegistry:
    """
    Accumulating set of token addresses.

    Usage:
        registry = TokenRegistry()
        if registry.add(token, discovery):
            ...  # first time this token was seen
        for address in registry.entries():
            ...
    """

    def __init__(self) -> None:
        self._tokens: dict[str, Optional[TokenDiscovery]] = {}

    def add(
        self,
        address: Union[str, bytes],
        discovery: Optional[TokenDiscovery] = None,
    ) -> bool:
        """
        Add a token address.

        Args:
            address: Token contract address, any casing
            discovery: Where the token was seen; kept only for the first sighting

        Returns:
            True if the address was not present before
        """
        key = normalize_address(address)
        if key in self._tokens:
            return False
        self._tokens[key] = discovery
        return True

    def entries(self) -> list[str]:
        """All addresses in insertion order."""
        return list(self._tokens)

    def discovery(self, address: Union[str, bytes]) -> Optional[TokenDiscovery]:
        """First sighting of a token, if recorded."""
        return self._tokens.get(normalize_address(address))

    def discoveries(self) -> dict[str, TokenDiscovery]:
        """Recorded first sightings keyed by address."""
        return {
            address: discovery
            for address, discovery in self._tokens.items()
            if discovery is not None
        }

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, (str, bytes)):
            return False
        try:
            return normalize_address(address) in self._tokens
        except InvalidAddressError:
            return False

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries())

    def __repr__(self) -> str:
        return f"<TokenRegistry(size={len(self._tokens)})>"
