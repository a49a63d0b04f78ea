"""
submitter.py
Signs commands and submits them as ordered transactions.

Nonces are tracked locally per credential and reconciled against the
service's state snapshot when they are unknown (first use), when the service
reports InvalidNonce, or after a submission whose outcome is unknown.
Nonce allocation and sending happen under a per-credential lock, so one
credential has at most one transaction in flight.

An account the service has not processed yet has no snapshot, so its nonce
cannot be read back. While a submission for such an account is unresolved,
the submitter refuses to guess a nonce and reports the outcome as unknown.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from zkwasm_client.commands import Command, encode, signing_bytes
from zkwasm_client.credential import Credential
from zkwasm_client.errors import (
    NotFoundError,
    RejectReason,
    SubmissionOutcomeUnknown,
    TransactionRejected,
)
from zkwasm_client.service_client import SignedTransaction
from zkwasm_client.synchronizer import StateSynchronizer

logger = logging.getLogger(__name__)

ACCEPTED = "Accepted"
REJECTED = "Rejected"


@dataclass(frozen=True)
class Ack:
    nonce: int
    status: str = ACCEPTED


class TransactionSubmitter:
    def __init__(self, service, synchronizer: Optional[StateSynchronizer] = None):
        self.service = service
        self.synchronizer = synchronizer or StateSynchronizer(service)
        self._nonces: Dict[str, int] = {}       # public id -> next nonce to use
        self._unresolved: Dict[str, int] = {}   # public id -> nonce with unknown outcome
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ── internal ─────────────────────────────────────────────────────────────

    def _lock_for(self, public_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(public_id, threading.Lock())

    def _service_nonce(self, public_id: str) -> Optional[int]:
        """Next nonce the service will admit for `public_id`, None without a snapshot."""
        try:
            state = self.synchronizer.fetch_state(public_id)
        except NotFoundError:
            return None
        if not state.has_account(public_id):
            return None
        return state.account(public_id).nonce

    def _resync(self, public_id: str) -> int:
        nonce = self._service_nonce(public_id)
        if nonce is None:
            pending = self._unresolved.get(public_id)
            if pending is not None:
                raise SubmissionOutcomeUnknown(
                    pending, "account not visible yet, earlier submission unresolved"
                )
            nonce = 0
        else:
            self._unresolved.pop(public_id, None)
        self._nonces[public_id] = nonce
        logger.info("nonce for %s resynchronized to %d", public_id[:12], nonce,
                    extra={"signer": public_id, "nonce": nonce})
        return nonce

    def _send(self, credential: Credential, encoded: bytes, nonce: int) -> dict:
        tx = SignedTransaction(
            public_key=credential.public_id,
            nonce=nonce,
            command=encoded,
            signature=credential.sign(signing_bytes(nonce, encoded)),
        )
        reply = self.service.post_transaction(tx)
        if not isinstance(reply, dict) or reply.get("status") not in (ACCEPTED, REJECTED):
            raise SubmissionOutcomeUnknown(nonce, f"unrecognized acknowledgement: {reply!r}")
        return reply

    # ── public ───────────────────────────────────────────────────────────────

    def next_nonce(self, credential: Credential) -> Optional[int]:
        """Locally tracked next nonce, or None if it must be resynchronized."""
        return self._nonces.get(credential.public_id)

    def submit(self, credential: Credential, command: Command) -> Ack:
        """
        Encode, sign and send `command`; return the acknowledgement.

        Raises EncodingError before anything is sent, TransportError if the
        service is unreachable, SubmissionOutcomeUnknown if the transaction
        (or an unresolved earlier one) may have been admitted,
        TransactionRejected for any rejection other than a single
        recoverable InvalidNonce.
        """
        encoded = encode(command)
        public_id = credential.public_id
        name = type(command).__name__

        with self._lock_for(public_id):
            nonce = self._nonces.get(public_id)
            if nonce is None:
                nonce = self._resync(public_id)
            try:
                reply = self._send(credential, encoded, nonce)
                if reply["status"] == REJECTED and \
                        RejectReason.parse(reply.get("reason")) is RejectReason.INVALID_NONCE:
                    logger.warning("%s nonce=%d rejected as InvalidNonce, resyncing", name, nonce)
                    nonce = self._resync(public_id)
                    reply = self._send(credential, encoded, nonce)
            except SubmissionOutcomeUnknown:
                self._nonces.pop(public_id, None)
                self._unresolved.setdefault(public_id, nonce)
                logger.warning("%s nonce=%d outcome unknown; nonce marked for resync", name, nonce,
                               extra={"signer": public_id, "nonce": nonce})
                raise

            extra = {"signer": public_id, "nonce": nonce, "command": name}
            if reply["status"] == ACCEPTED:
                self._nonces[public_id] = nonce + 1
                logger.info("%s accepted signer=%s nonce=%d", name, public_id[:12], nonce, extra=extra)
                return Ack(nonce=nonce)

            reason = RejectReason.parse(reply.get("reason"))
            if reason is RejectReason.INVALID_NONCE:
                self._nonces.pop(public_id, None)
            logger.warning("%s nonce=%d rejected: %s", name, nonce, reply.get("reason"), extra=extra)
            raise TransactionRejected(reason, nonce, reply.get("reason"))

    def resolve_unknown(self, credential: Credential, nonce: int) -> Optional[bool]:
        """
        Decide whether an abandoned transaction with `nonce` was admitted.

        True once the service's next nonce has moved past it, False if it has
        not, None while the account has no snapshot to tell (poll again).
        A definite answer also adopts the service's nonce locally.
        """
        public_id = credential.public_id
        with self._lock_for(public_id):
            service_nonce = self._service_nonce(public_id)
            if service_nonce is None:
                logger.info("nonce=%d for %s still unresolved", nonce, public_id[:12])
                return None
            self._unresolved.pop(public_id, None)
            self._nonces[public_id] = service_nonce
        return service_nonce > nonce

    def forget_unknown(self, credential: Credential) -> None:
        """
        Drop the record of an unresolved submission, e.g. after the caller
        gave up waiting for an account that never appeared. The next submit
        starts again from the service's nonce (0 without a snapshot).
        """
        with self._lock_for(credential.public_id):
            self._unresolved.pop(credential.public_id, None)
            self._nonces.pop(credential.public_id, None)
