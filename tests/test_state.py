"""Tests for the host facade, event surfaces, settings and logging."""

from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from conftest import deposit, random_address
from wormhole import simulate
from wormhole.commitments import (
    CHANGE_TAG,
    DEPOSIT_TAG,
    burn_address,
    change_commitment,
    change_value_hash,
    deposit_commitment,
)
from wormhole.config import Settings, get_settings
from wormhole.errors import AlreadySpent, ChainMismatch, ErrorCode
from wormhole.events import ChangeEvent, DepositEvent, WithdrawalTransaction
from wormhole.hash_utils import hex_digest
from wormhole.log import DevFormatter, JSONFormatter
from wormhole.merkle_tree import verify_branch
from wormhole.pow_gate import find_secret
from wormhole.wallet import build_withdrawal


def make_tx(claim, proof, chain_id: int = 1, nonce: int = 0) -> WithdrawalTransaction:
    return WithdrawalTransaction(
        chain_id=chain_id,
        nonce=nonce,
        max_priority_fee_per_gas=1,
        max_fee_per_gas=2,
        gas_limit=500_000,
        recipient=claim.recipient,
        root_reference=claim.main_root,
        nullifier=claim.nullifier,
        pool_root=claim.pool_root,
        withdraw_value=claim.withdraw_value,
        change_hash=claim.change_hash,
        proof=proof,
    )


class TestEvents:
    def test_deposit_event_commitment(self):
        sender = random_address()
        secret = find_secret(2)
        event = DepositEvent(sender, burn_address(secret), 5)
        assert event.commitment() == deposit_commitment(sender, burn_address(secret), 5)

    def test_change_event_commitment(self):
        h = change_value_hash(b"\x01" * 32, 8)
        assert ChangeEvent(h).commitment() == change_commitment(h)

    def test_topics_differ(self):
        assert DepositEvent(bytes(20), bytes(20), 0).topic != ChangeEvent(0).topic

    @pytest.mark.parametrize(
        "event",
        [
            DepositEvent(bytes(20), bytes(20), 1, topic=CHANGE_TAG),
            ChangeEvent(5, topic=DEPOSIT_TAG),
            ChangeEvent(5, topic=0),
        ],
    )
    def test_mismatched_topic_is_rejected(self, state, event):
        with pytest.raises(ValueError):
            state.apply_deposit(event)
        assert len(state.tree) == 0

    def test_indexing_logs_the_new_root(self, state, caplog):
        with caplog.at_level(logging.DEBUG, logger="wormhole.state"):
            state.apply_deposit(DepositEvent(random_address(), random_address(), 1))
        record = next(r for r in caplog.records if r.name == "wormhole.state")
        assert record.leaf_index == 0
        assert record.root == hex_digest(state.root())

    def test_events_are_indexed_in_order(self, state):
        first = state.apply_deposit(DepositEvent(random_address(), random_address(), 1))
        second = state.apply_deposit(ChangeEvent(change_value_hash(b"\x02" * 32, 3)))
        assert (first, second) == (0, 1)
        assert len(state.tree) == 2


class TestWormholeState:
    def test_read_interface(self, state):
        note = deposit(state, 7)
        branch = state.prove(0)
        assert verify_branch(state.root(), 0, note.leaf, branch, state.settings.tree_depth)
        assert not state.is_spent(note.nullifier)

    def test_apply_withdrawal_transaction(self, state):
        note = deposit(state, 20)
        recipient = random_address()
        claim, proof, _ = build_withdrawal(note, state.tree, 15, recipient)

        receipt = state.apply_withdrawal(make_tx(claim, proof))

        assert receipt.mint_amount == 15
        assert state.ledger.balance_of(recipient) == 15
        assert state.is_spent(note.nullifier)
        assert receipt.change_index == 1

        with pytest.raises(AlreadySpent):
            state.apply_withdrawal(make_tx(claim, proof, nonce=1))

    def test_chain_mismatch(self, state):
        note = deposit(state, 4)
        claim, proof, _ = build_withdrawal(note, state.tree, 4, random_address())
        with pytest.raises(ChainMismatch) as exc_info:
            state.apply_withdrawal(make_tx(claim, proof, chain_id=5))
        assert exc_info.value.code == ErrorCode.CHAIN_MISMATCH
        assert exc_info.value.details == {"expected": 1, "got": 5}
        assert not state.is_spent(claim.nullifier)

    def test_tx_to_claim(self, state):
        note = deposit(state, 4)
        claim, proof, _ = build_withdrawal(note, state.tree, 4, random_address())
        assert make_tx(claim, proof).to_claim() == claim


class TestSettings:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("WORMHOLE_TREE_DEPTH", "12")
        monkeypatch.setenv("WORMHOLE_APPEND_ZERO_CHANGE", "false")
        monkeypatch.setenv("WORMHOLE_ROOT_HISTORY_SIZE", "30")
        s = Settings()
        assert s.tree_depth == 12
        assert s.append_zero_change is False
        assert s.root_history_size == 30

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("WORMHOLE_TREE_DEPTH", raising=False)
        s = Settings(_env_file=None)
        assert s.tree_depth == 32
        assert s.max_deposit_value == 32 * 10**18
        assert s.max_value == 2**256 - 1
        assert s.root_history_size is None

    def test_rejects_out_of_range(self):
        with pytest.raises(ValidationError):
            Settings(tree_depth=0)
        with pytest.raises(ValidationError):
            Settings(value_bits=257)

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestLogging:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord("wormhole.validator", logging.WARNING, __file__, 1, "Withdrawal rejected", (), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter_carries_context(self):
        record = self._record(error_code="ALREADY_SPENT", nullifier="0x01", unrelated="x")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "WARNING"
        assert entry["error_code"] == "ALREADY_SPENT"
        assert entry["nullifier"] == "0x01"
        assert "unrelated" not in entry

    def test_dev_formatter_prefixes_code(self):
        line = DevFormatter().format(self._record(error_code="PROOF_INVALID"))
        assert "[PROOF_INVALID] Withdrawal rejected" in line
        assert "\033" not in line
        assert line.count("\n") == 0


class TestSimulation:
    def test_run_round_trip(self, settings):
        result = simulate.run(settings, deposit_value=20, withdraw_value=12, decoys=3)
        # 3 decoys, the deposit, and two change leaves
        assert len(result.tree) == 6
        assert result.ledger.total_minted == 20
        assert len(result.registry) == 2

    def test_main_exit_code(self, monkeypatch):
        monkeypatch.setattr(simulate, "setup_logging", lambda env, level: None)
        assert simulate.main(["--depth", "6", "--difficulty", "2", "--decoys", "1"]) == 0
        assert simulate.main(["--depth", "6", "--difficulty", "2", "--deposit", "5", "--withdraw", "9"]) == 1
