"""Chain data builders shared by the test modules."""

from approval_scanner.mock import build_approve_call_data
from approval_scanner.models import Block, Transaction


TARGET_SPENDER = "0xb300000b72deaeb607a12d5f54773d1c19c7028d"
OTHER_SPENDER = "0x" + "22" * 20

TOKEN_1 = "0x" + "aa" * 20
TOKEN_2 = "0x" + "bb" * 20
TOKEN_3 = "0x" + "cc" * 20


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def approve_tx(n: int, token: str, spender: str = TARGET_SPENDER, amount: int = 1000) -> Transaction:
    """Transaction calling approve(spender, amount) on token."""
    return Transaction(
        hash=tx_hash(n),
        to=token,
        data=build_approve_call_data(spender, amount),
    )


def transfer_tx(n: int, to: str) -> Transaction:
    """Plain value transfer with no call data."""
    return Transaction(hash=tx_hash(n), to=to, data=b"")


def block(number: int, *transactions: Transaction) -> Block:
    return Block(number=number, transactions=tuple(transactions))
