"""Proof verification capability.

The validator depends only on `Verifier.verify(public_inputs, proof)`.
Backends:
  - PlaintextVerifier: evaluates the withdrawal relation on a plaintext
    witness (tests, simulations, trusted provers)
  - groth16.Groth16Verifier: BN254 pairing check of a Groth16 proof
"""

from __future__ import annotations

import logging
from typing import Protocol

from wormhole.circuit import Witness, check_withdrawal
from wormhole.claims import Proof, WithdrawalClaim
from wormhole.config import Settings
from wormhole.errors import ProofInvalid
from wormhole.hash_utils import hex_digest

logger = logging.getLogger(__name__)


class Verifier(Protocol):
    def verify(self, public_inputs: WithdrawalClaim, proof: Proof) -> bool: ...


class PlaintextVerifier:
    """Checks the relation directly; the proof payload must be a `Witness`."""

    def __init__(self, depth: int, pow_difficulty: int) -> None:
        self.depth = depth
        self.pow_difficulty = pow_difficulty

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlaintextVerifier":
        return cls(settings.tree_depth, settings.pow_difficulty)

    def verify(self, public_inputs: WithdrawalClaim, proof: Proof) -> bool:
        witness = proof.payload
        if not isinstance(witness, Witness):
            logger.info("Proof payload is not a plaintext witness: %s", type(witness).__name__)
            return False
        try:
            check_withdrawal(public_inputs, proof.balance, witness, self.depth, self.pow_difficulty)
        except ProofInvalid as exc:
            # MalformedBranch lands here too; its code keeps it distinguishable
            logger.info(
                "Relation check failed: %s",
                exc.message,
                extra={"error_code": exc.code.value, "nullifier": hex_digest(public_inputs.nullifier)},
            )
            return False
        except (ValueError, TypeError, AttributeError) as exc:
            logger.info("Witness is not well typed: %s", exc)
            return False
        return True
