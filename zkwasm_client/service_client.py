"""
service_client.py
Thin JSON-over-HTTP adapter for the player ledger service.

Endpoints
---------
  POST /transaction          {schema_version, public_key, nonce, command, signature}
                             -> {status: "Accepted" | "Rejected", reason?}
  GET  /state?account=<id>   -> {schema_version, accounts, tokens, markets}
                                404 when the account has never registered

Environment
-----------
- ZKWASM_SERVICE_URL   defaults to http://localhost:3000
- ZKWASM_HTTP_TIMEOUT  seconds, defaults to 10
- ZKWASM_ADMIN_KEY     hex signing key, only needed by Player.from_env()
"""

import json
import logging
import os
import socket
from dataclasses import dataclass
from http import client as http_client
from typing import Optional
from urllib import error, parse, request

from zkwasm_client.errors import (
    EncodingError,
    NotFoundError,
    SubmissionOutcomeUnknown,
    TransportError,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


# ── configuration ────────────────────────────────────────────────────────────

@dataclass
class ServiceConfig:
    base_url: str = "http://localhost:3000"
    timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        base_url = os.environ.get("ZKWASM_SERVICE_URL", "http://localhost:3000").strip()
        raw_timeout = os.environ.get("ZKWASM_HTTP_TIMEOUT", "10").strip()
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise EnvironmentError(
                f"ZKWASM_HTTP_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
            )
        return cls(base_url=base_url, timeout_seconds=timeout)


def admin_key_from_env() -> str:
    key = os.environ.get("ZKWASM_ADMIN_KEY", "").strip()
    if not key:
        raise EnvironmentError(
            "ZKWASM_ADMIN_KEY is not set.\n"
            "Export the service's admin signing key as hex:\n"
            "  export ZKWASM_ADMIN_KEY=<64 hex chars>"
        )
    return key


# ── wire payloads ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SignedTransaction:
    public_key: str
    nonce: int
    command: bytes
    signature: bytes

    def to_payload(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "public_key": self.public_key,
            "nonce": self.nonce,
            "command": self.command.hex(),
            "signature": self.signature.hex(),
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "SignedTransaction":
        try:
            return cls(
                public_key=payload["public_key"],
                nonce=int(payload["nonce"]),
                command=bytes.fromhex(payload["command"]),
                signature=bytes.fromhex(payload["signature"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise EncodingError(f"malformed transaction payload: {exc}") from exc


# ── client ───────────────────────────────────────────────────────────────────

class ServiceClient:
    """
    Issues the two logical requests of the ledger service. Anything that is
    not a clean JSON reply is turned into a typed client error.
    """

    def __init__(self, config: Optional[ServiceConfig] = None):
        self.config = config or ServiceConfig()
        self.base_url = self.config.base_url.rstrip("/")

    def _get(self, path):
        url = f"{self.base_url}{path}"
        req = request.Request(url, method="GET")
        with request.urlopen(req, timeout=self.config.timeout_seconds) as resp:
            return json.loads(resp.read().decode("utf-8"))

    def _post(self, path, payload):
        url = f"{self.base_url}{path}"
        body = json.dumps(payload).encode("utf-8")
        req = request.Request(
            url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with request.urlopen(req, timeout=self.config.timeout_seconds) as resp:
            return json.loads(resp.read().decode("utf-8"))

    def post_transaction(self, tx: SignedTransaction) -> dict:
        """
        Send a signed transaction and return the acknowledgement dict.

        Connection refused / DNS failure -> TransportError (nothing was sent).
        Timeout, server error or unreadable reply -> SubmissionOutcomeUnknown.
        """
        logger.debug("POST /transaction signer=%s nonce=%d", tx.public_key[:12], tx.nonce)
        try:
            return self._post("/transaction", tx.to_payload())
        except error.HTTPError as exc:
            raise SubmissionOutcomeUnknown(tx.nonce, f"HTTP {exc.code}") from exc
        except error.URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise SubmissionOutcomeUnknown(tx.nonce, "timed out") from exc
            raise TransportError(f"service unreachable at {self.base_url}: {exc.reason}") from exc
        except (socket.timeout, TimeoutError, ConnectionResetError, http_client.HTTPException) as exc:
            raise SubmissionOutcomeUnknown(tx.nonce, str(exc) or type(exc).__name__) from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SubmissionOutcomeUnknown(tx.nonce, f"unreadable reply: {exc}") from exc

    def get_state(self, account_id: str) -> dict:
        """Fetch the raw state snapshot for `account_id`."""
        query = parse.urlencode({"account": account_id})
        try:
            return self._get(f"/state?{query}")
        except error.HTTPError as exc:
            if exc.code == 404:
                raise NotFoundError(account_id) from exc
            raise TransportError(f"state fetch failed with HTTP {exc.code}") from exc
        except error.URLError as exc:
            raise TransportError(f"service unreachable at {self.base_url}: {exc.reason}") from exc
        except (socket.timeout, TimeoutError, ConnectionResetError, http_client.HTTPException) as exc:
            raise TransportError(f"state fetch interrupted: {exc!r}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise TransportError(f"unreadable state reply: {exc}") from exc
