"""
player.py
High-level player/admin client for the ledger service.

Usage
-----
    player = Player(admin_key_hex, "http://localhost:3000")
    state = player.register()
    state = player.add_token(0, "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
    state = player.add_market(0, 1)
    state = player.deposit(account_id, 0, 10000)

Every mutating call is submit -> fetch. The returned State is the latest
snapshot, which may not include the transaction just acknowledged; use
wait_for_state() to observe it.
"""

import logging
from typing import Callable, Optional

from zkwasm_client.commands import AddMarket, AddToken, Command, Deposit, Register
from zkwasm_client.credential import Credential
from zkwasm_client.service_client import ServiceClient, ServiceConfig, admin_key_from_env
from zkwasm_client.state import State
from zkwasm_client.submitter import Ack, TransactionSubmitter
from zkwasm_client.synchronizer import StateSynchronizer

logger = logging.getLogger(__name__)


class Player:
    def __init__(
        self,
        key_hex: str,
        base_url: str = "http://localhost:3000",
        service=None,
        settle_timeout_seconds: float = 10.0,
        poll_seconds: float = 0.5,
    ):
        self.credential = Credential(key_hex)
        self.service = service or ServiceClient(ServiceConfig(base_url=base_url))
        self.synchronizer = StateSynchronizer(self.service)
        self.submitter = TransactionSubmitter(self.service, self.synchronizer)
        self.settle_timeout_seconds = settle_timeout_seconds
        self.poll_seconds = poll_seconds

    # ── factory ───────────────────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "Player":
        """Build a Player from ZKWASM_ADMIN_KEY / ZKWASM_SERVICE_URL / ZKWASM_HTTP_TIMEOUT."""
        config = ServiceConfig.from_env()
        return cls(admin_key_from_env(), config.base_url, service=ServiceClient(config))

    @property
    def account_id(self) -> str:
        return self.credential.public_id

    # ── primitives ────────────────────────────────────────────────────────────

    def submit(self, command: Command) -> Ack:
        return self.submitter.submit(self.credential, command)

    def fetch_state(self, account_id: Optional[str] = None) -> State:
        return self.synchronizer.fetch_state(account_id or self.account_id)

    def wait_for_state(
        self,
        predicate: Callable[[State], bool],
        account_id: Optional[str] = None,
        timeout_seconds: float = 30.0,
        poll_seconds: Optional[float] = None,
    ) -> State:
        return self.synchronizer.wait_for(
            account_id or self.account_id, predicate,
            timeout_seconds=timeout_seconds,
            poll_seconds=self.poll_seconds if poll_seconds is None else poll_seconds,
        )

    def resolve(self, nonce: int) -> Optional[bool]:
        """
        Whether an abandoned submission with `nonce` was admitted: True or
        False once the service can tell, None while this account has no
        snapshot yet (e.g. an unprocessed register). Call again later.
        """
        return self.submitter.resolve_unknown(self.credential, nonce)

    def forget_unknown(self) -> None:
        """Give up on an unresolved submission; the next submit starts from the service nonce."""
        self.submitter.forget_unknown(self.credential)

    def _submit_and_fetch(self, command: Command) -> State:
        ack = self.submit(command)
        logger.debug("%s acknowledged nonce=%d, fetching state", type(command).__name__, ack.nonce)
        return self.fetch_state()

    # ── operations ────────────────────────────────────────────────────────────

    def get_state(self) -> State:
        return self.fetch_state()

    def register(self) -> State:
        """
        Provision this credential's account. Must precede every other operation.

        There is no snapshot for an account the service has not processed
        yet, so this polls until the account appears (settle_timeout_seconds).
        """
        ack = self.submit(Register())
        logger.debug("Register acknowledged nonce=%d, waiting for account", ack.nonce)
        return self.wait_for_state(
            lambda state: state.has_account(self.account_id),
            timeout_seconds=self.settle_timeout_seconds,
        )

    def add_token(self, index: int, external_address: str) -> State:
        return self._submit_and_fetch(AddToken(index, external_address))

    def add_market(self, token_a: int, token_b: int) -> State:
        return self._submit_and_fetch(AddMarket(token_a, token_b))

    def deposit(self, account: str, token_index: int, amount: int) -> State:
        """Credit `amount` of `token_index` to the player identified by `account`."""
        return self._submit_and_fetch(Deposit(account, token_index, amount))
