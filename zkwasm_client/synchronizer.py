"""
synchronizer.py
Reads the service's latest committed state snapshot.

Reads are unauthenticated and take no lock. A snapshot fetched right after
an accepted transaction may not include it yet; use wait_for() when the
caller needs to observe the effect.
"""

import logging
import time
from typing import Callable

from zkwasm_client.errors import NotFoundError, StateSyncTimeout
from zkwasm_client.state import State

logger = logging.getLogger(__name__)


class StateSynchronizer:
    def __init__(self, service):
        self.service = service

    def fetch_state(self, account_id: str) -> State:
        """Return the latest snapshot for `account_id`. Raises NotFoundError, TransportError."""
        return State.from_dict(self.service.get_state(account_id))

    def wait_for(
        self,
        account_id: str,
        predicate: Callable[[State], bool],
        timeout_seconds: float = 30.0,
        poll_seconds: float = 0.5,
    ) -> State:
        """
        Poll until predicate(state) holds. An unregistered account counts as
        "not reflected yet" while polling.
        """
        started = time.monotonic()
        attempts = 0
        while True:
            attempts += 1
            try:
                state = self.fetch_state(account_id)
                if predicate(state):
                    logger.debug("state for %s reflected after %d polls", account_id[:12], attempts)
                    return state
            except NotFoundError:
                pass
            if time.monotonic() - started >= timeout_seconds:
                raise StateSyncTimeout(account_id, timeout_seconds)
            time.sleep(poll_seconds)
