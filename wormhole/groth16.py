"""Groth16 verifier over BN254 (alt_bn128).

Only the pairing check lives here: circuit, prover and key generation belong
to the external proving stack. Keys and proofs are read from snarkjs JSON
(`verification_key.json`, `proof.json`).

Accepts iff

    e(-A, B) · e(alpha, beta) · e(vk_x, gamma) · e(C, delta) == 1

with vk_x = IC[0] + sum(signal_i · IC[i + 1]). The four Miller loops are
multiplied before a single final exponentiation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    add,
    b,
    b2,
    curve_order,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    pairing,
)

from wormhole.claims import Proof, ValueBalance, WithdrawalClaim

logger = logging.getLogger(__name__)

G1Point = Tuple[FQ, FQ, FQ]
G2Point = Tuple[FQ2, FQ2, FQ2]


def g1_point(x: int, y: int) -> G1Point:
    pt = (FQ(x), FQ(y), FQ.one())
    if not is_on_curve(pt, b):
        raise ValueError("G1 point is not on the curve")
    return pt


def g2_point(x: Sequence[int], y: Sequence[int]) -> G2Point:
    """Coordinates as [c0, c1], the snarkjs order. Checks curve and subgroup."""
    pt = (FQ2([x[0], x[1]]), FQ2([y[0], y[1]]), FQ2.one())
    if not is_on_curve(pt, b2):
        raise ValueError("G2 point is not on the twisted curve")
    # the twist has a large cofactor; G1 has none
    if not is_inf(multiply(pt, curve_order)):
        raise ValueError("G2 point is not in the prime-order subgroup")
    return pt


def _g1_from_json(raw: Sequence[Any]) -> G1Point:
    return g1_point(int(raw[0]), int(raw[1]))


def _g2_from_json(raw: Sequence[Sequence[Any]]) -> G2Point:
    return g2_point([int(c) for c in raw[0]], [int(c) for c in raw[1]])


@dataclass(frozen=True)
class VerifyingKey:
    alpha_g1: G1Point
    beta_g2: G2Point
    gamma_g2: G2Point
    delta_g2: G2Point
    ic: Tuple[G1Point, ...]

    @property
    def n_public(self) -> int:
        return len(self.ic) - 1

    @classmethod
    def from_snarkjs(cls, data: Dict[str, Any]) -> "VerifyingKey":
        if data.get("protocol", "groth16") != "groth16":
            raise ValueError(f"Unsupported protocol: {data.get('protocol')}")
        if data.get("curve", "bn128") != "bn128":
            raise ValueError(f"Unsupported curve: {data.get('curve')}")
        vk = cls(
            alpha_g1=_g1_from_json(data["vk_alpha_1"]),
            beta_g2=_g2_from_json(data["vk_beta_2"]),
            gamma_g2=_g2_from_json(data["vk_gamma_2"]),
            delta_g2=_g2_from_json(data["vk_delta_2"]),
            ic=tuple(_g1_from_json(p) for p in data["IC"]),
        )
        if "nPublic" in data and int(data["nPublic"]) != vk.n_public:
            raise ValueError("nPublic does not match the IC length")
        return vk


@dataclass(frozen=True)
class Groth16Proof:
    a: G1Point
    b: G2Point
    c: G1Point

    @classmethod
    def from_snarkjs(cls, data: Dict[str, Any]) -> "Groth16Proof":
        return cls(
            a=_g1_from_json(data["pi_a"]),
            b=_g2_from_json(data["pi_b"]),
            c=_g1_from_json(data["pi_c"]),
        )


def public_signals(claim: WithdrawalClaim, balance: ValueBalance) -> List[int]:
    """Order of the circuit's public inputs."""
    return claim.field_elements() + [balance.deposit_value, balance.change_value]


class Groth16Verifier:
    """`Verifier` backend for proofs carrying a `Groth16Proof` payload."""

    def __init__(self, vk: VerifyingKey) -> None:
        self.vk = vk

    def verify(self, public_inputs: WithdrawalClaim, proof: Proof) -> bool:
        payload = proof.payload
        if not isinstance(payload, Groth16Proof):
            logger.info("Proof payload is not a Groth16 proof: %s", type(payload).__name__)
            return False
        try:
            signals = public_signals(public_inputs, proof.balance)
        except ValueError as exc:
            logger.info("Claim is not encodable as public signals: %s", exc)
            return False
        return self.verify_signals(signals, payload)

    def verify_signals(self, signals: Sequence[int], proof: Groth16Proof) -> bool:
        if len(signals) != self.vk.n_public:
            logger.info("Expected %d public signals, got %d", self.vk.n_public, len(signals))
            return False
        if any(s < 0 or s >= curve_order for s in signals):
            logger.info("Public signal outside the scalar field")
            return False

        vk_x = self.vk.ic[0]
        for signal, point in zip(signals, self.vk.ic[1:]):
            vk_x = add(vk_x, multiply(point, signal))

        acc = (
            pairing(proof.b, neg(proof.a), final_exponentiate=False)
            * pairing(self.vk.beta_g2, self.vk.alpha_g1, final_exponentiate=False)
            * pairing(self.vk.gamma_g2, vk_x, final_exponentiate=False)
            * pairing(self.vk.delta_g2, proof.c, final_exponentiate=False)
        )
        return final_exponentiate(acc) == FQ12.one()
