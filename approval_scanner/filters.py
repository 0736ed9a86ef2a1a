"""
Approval Filter - keeps approvals granted to the target spender.
"""

from typing import Optional, Union

from approval_scanner.addresses import normalize_address
from approval_scanner.models import DecodedCall, Transaction


class ApprovalFilter:
    """Business rule: the decoded spender must be the configured target."""

    def __init__(self, target_spender: Union[str, bytes]) -> None:
        self.target_spender = normalize_address(target_spender)

    def filter(self, tx: Transaction, decoded: DecodedCall) -> Optional[str]:
        """
        Return the token contract address for a matching approval.

        The token is the transaction's destination, not the spender.

        Raises:
            InvalidAddressError: If tx.to is not a valid address
        """
        if decoded.name != "approve" or tx.to is None:
            return None
        if normalize_address(decoded.spender) != self.target_spender:
            return None
        return normalize_address(tx.to)
