"""Value-transfer collaborator.

The core only authorizes minting; moving value is the host ledger's job. The
validator mints at a dedicated holding identity and transfers onward to the
recipient, so the host sees one mint and one ordinary transfer.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Protocol, Tuple

# Holding identity that receives freshly minted withdrawal value
WORMHOLE_HOLDER = bytes.fromhex("0000000000000000000000000000000000007503")


class Ledger(Protocol):
    def mint(self, account: bytes, amount: int) -> None: ...
    def transfer(self, sender: bytes, recipient: bytes, amount: int) -> None: ...
    def checkpoint(self) -> int: ...
    def revert(self, checkpoint: int) -> None: ...
    def commit(self, checkpoint: int) -> None: ...


class InsufficientBalance(Exception):
    pass


class InMemoryLedger:
    """
    Account balances with a journal of applied deltas.

    Journal entries are (account, delta, minted); reverting replays them
    backwards and committing drops them.
    """

    def __init__(self) -> None:
        self._balances: Dict[bytes, int] = defaultdict(int)
        self._journal: List[Tuple[bytes, int, int]] = []
        self.total_minted = 0

    def balance_of(self, account: bytes) -> int:
        return self._balances.get(account, 0)

    def balances(self) -> Dict[bytes, int]:
        """Non-zero balances."""
        return {account: amount for account, amount in self._balances.items() if amount}

    def mint(self, account: bytes, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._apply(account, amount, minted=amount)

    def transfer(self, sender: bytes, recipient: bytes, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        if self.balance_of(sender) < amount:
            raise InsufficientBalance(f"{sender.hex()} holds {self.balance_of(sender)}, needs {amount}")
        self._apply(sender, -amount)
        self._apply(recipient, amount)

    def checkpoint(self) -> int:
        return len(self._journal)

    def revert(self, checkpoint: int) -> None:
        while len(self._journal) > checkpoint:
            account, delta, minted = self._journal.pop()
            self._balances[account] -= delta
            self.total_minted -= minted

    def commit(self, checkpoint: int) -> None:
        del self._journal[checkpoint:]

    def _apply(self, account: bytes, delta: int, minted: int = 0) -> None:
        self._balances[account] += delta
        self.total_minted += minted
        self._journal.append((account, delta, minted))
