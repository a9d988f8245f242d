"""Shared fixtures for the wormhole test suite."""

from __future__ import annotations

import secrets

import pytest

from wormhole.config import Settings
from wormhole.state import WormholeState
from wormhole.wallet import Note, new_deposit


# ── Settings ─────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Small tree, cheap PoW, ceiling of 32 units."""
    return Settings(
        tree_depth=8,
        pow_difficulty=4,
        max_deposit_value=32,
        value_bits=256,
        chain_id=1,
    )


@pytest.fixture
def state(settings: Settings) -> WormholeState:
    return WormholeState(settings)


# ── Helpers ──────────────────────────────────────────────────────────────────


def random_address() -> bytes:
    return secrets.token_bytes(20)


def deposit(state: WormholeState, value: int, sender: bytes | None = None) -> Note:
    """Burn `value` and index the event; return the spendable note."""
    note, event = new_deposit(sender or random_address(), value, state.settings.pow_difficulty)
    state.apply_deposit(event)
    return note


class AcceptingVerifier:
    """Verifier double that accepts every proof; isolates the later checks."""

    def __init__(self) -> None:
        self.calls = 0

    def verify(self, public_inputs, proof) -> bool:
        self.calls += 1
        return True


class RejectingVerifier:
    def verify(self, public_inputs, proof) -> bool:
        return False
