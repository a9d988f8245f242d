"""Host-ledger surfaces: deposit events and withdrawal transactions.

Exact encodings belong to the host's receipt and transaction formats; these
types carry only the fields the core reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from wormhole.claims import Proof, WithdrawalClaim
from wormhole.commitments import CHANGE_TAG, DEPOSIT_TAG, change_commitment, deposit_commitment

AccessList = Tuple[Tuple[bytes, Tuple[int, ...]], ...]


@dataclass(frozen=True)
class DepositEvent:
    """A qualifying burn: `value` sent by `sender` to a derived burn address."""

    sender: bytes
    burn_address: bytes
    value: int
    topic: int = DEPOSIT_TAG

    def commitment(self) -> int:
        return deposit_commitment(self.sender, self.burn_address, self.value)


@dataclass(frozen=True)
class ChangeEvent:
    """A change leaf emitted by a successful withdrawal."""

    change_hash: int
    topic: int = CHANGE_TAG

    def commitment(self) -> int:
        return change_commitment(self.change_hash)


@dataclass(frozen=True)
class WithdrawalTransaction:
    """
    Withdrawal transaction payload.

    Routing fields (nonce, fees, data, access list) are opaque to the core;
    it consumes the root reference, the claim fields and the proof.
    """

    chain_id: int
    nonce: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    gas_limit: int
    recipient: bytes
    root_reference: int
    nullifier: int
    pool_root: int
    withdraw_value: int
    change_hash: int
    proof: Proof
    data: bytes = b""
    access_list: AccessList = field(default_factory=tuple)

    def to_claim(self) -> WithdrawalClaim:
        return WithdrawalClaim(
            main_root=self.root_reference,
            nullifier=self.nullifier,
            pool_root=self.pool_root,
            withdraw_value=self.withdraw_value,
            change_hash=self.change_hash,
            recipient=self.recipient,
        )
