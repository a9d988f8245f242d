# simulate.py
"""
Example driver that ties everything together:

- Burn value to a secret-derived address and index the deposit event.
- Withdraw part of it through a privacy pool, leaving a change leaf.
- Withdraw the change leaf, then replay the first withdrawal.

Proofs here carry plaintext witnesses checked by PlaintextVerifier.
"""

import argparse
import logging
import secrets
from typing import List, Optional

from wormhole.config import Settings
from wormhole.errors import WormholeError
from wormhole.log import setup_logging
from wormhole.privacy_pool import PrivacyPool
from wormhole.state import WormholeState
from wormhole.wallet import build_withdrawal, new_deposit

logger = logging.getLogger("wormhole.simulate")


def random_address() -> bytes:
    return secrets.token_bytes(20)


def run(settings: Settings, deposit_value: int, withdraw_value: int, decoys: int) -> WormholeState:
    state = WormholeState(settings)

    # 1. Decoy deposits widen the anonymity set
    for _ in range(decoys):
        _, event = new_deposit(random_address(), 1, settings.pow_difficulty)
        state.apply_deposit(event)

    # 2. Our burn
    note, event = new_deposit(random_address(), deposit_value, settings.pow_difficulty)
    index = state.apply_deposit(event)
    logger.info("Deposit of %d indexed at leaf %d", deposit_value, index)

    # 3. Withdraw through a pool holding every leaf so far
    pool = PrivacyPool.from_indices(state.tree, range(len(state.tree)))
    recipient = random_address()
    claim, proof, change = build_withdrawal(note, state.tree, withdraw_value, recipient, pool=pool)
    receipt = state.process_withdrawal(claim, proof)
    logger.info(
        "Withdrew %d (pool of %d), change leaf %s",
        receipt.mint_amount,
        pool.anonymity_set_size,
        receipt.change_index,
    )

    # 4. Spend the change
    if change.value > 0:
        claim2, proof2, _ = build_withdrawal(change, state.tree, change.value, recipient)
        receipt2 = state.process_withdrawal(claim2, proof2)
        logger.info("Withdrew change of %d", receipt2.mint_amount)

    # 5. Replay must fail
    try:
        state.process_withdrawal(claim, proof)
    except WormholeError as exc:
        logger.info("Replay rejected with %s", exc.code.value)

    return state


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a deposit/withdraw/change round trip")
    parser.add_argument("--deposit", type=int, default=20)
    parser.add_argument("--withdraw", type=int, default=12)
    parser.add_argument("--decoys", type=int, default=7)
    parser.add_argument("--depth", type=int, default=16)
    parser.add_argument("--difficulty", type=int, default=8)
    args = parser.parse_args(argv)

    settings = Settings(
        tree_depth=args.depth,
        pow_difficulty=args.difficulty,
        max_deposit_value=max(args.deposit, 32),
    )
    setup_logging(settings.app_env, settings.log_level)

    try:
        run(settings, args.deposit, args.withdraw, args.decoys)
    except WormholeError as exc:
        logger.error("Simulation failed: %s", exc.message, extra={"error_code": exc.code.value})
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
