"""
Walks the admin account through the standard setup sequence:
register, two tokens, one market, then a deposit to a player.

Run with: python3 scripts/demo_player_flow.py
Requires ZKWASM_ADMIN_KEY and a ledger service on ZKWASM_SERVICE_URL
(default http://localhost:3000).
"""

import logging

from zkwasm_client.errors import NotFoundError, RejectReason, TransactionRejected
from zkwasm_client.logging_config import setup_logging
from zkwasm_client.player import Player

logger = logging.getLogger("zkwasm_client.demo")

PLAYER_ACCOUNT = "428c73246352807b9b31b84ff788103abc7932b72801a1b23734e7915cc7f610"


def main():
    setup_logging(log_file_path="zkwasm_demo.log")
    player = Player.from_env()

    try:
        logger.info("Initial state: %s", player.get_state().to_dict())
    except NotFoundError:
        logger.info("Account %s not registered yet", player.account_id[:12])

    logger.info("Register: %s", player.register().to_dict())
    logger.info("Add token 0: %s", player.add_token(0, "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266").to_dict())
    logger.info("Add token 1: %s", player.add_token(1, "0x70997970C51812dc3A010C7d01b50e0d17dc79C8").to_dict())
    logger.info("Add market 0/1: %s", player.add_market(0, 1).to_dict())

    logger.info("Deposit 10000 tokens to the player")
    try:
        logger.info("Deposit: %s", player.deposit(PLAYER_ACCOUNT, 0, 10000).to_dict())
    except TransactionRejected as exc:
        if exc.reason is not RejectReason.ACCOUNT_NOT_FOUND:
            raise
        logger.error("Player %s must register before receiving deposits", PLAYER_ACCOUNT[:12])
        return

    state = player.wait_for_state(
        lambda s: s.has_account(PLAYER_ACCOUNT) and s.account(PLAYER_ACCOUNT).balance(0) >= 10000,
        account_id=PLAYER_ACCOUNT,
    )
    logger.info("Player balance reflected: %s", dict(state.account(PLAYER_ACCOUNT).balances))


if __name__ == "__main__":
    main()
