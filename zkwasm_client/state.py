"""
state.py
Decoded state snapshot returned by the ledger service.

A State is read-only and has no identity beyond "latest snapshot": it is
re-fetched after every change, never patched locally. Its mappings are
read-only views and markets a tuple; snapshots are unhashable.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from zkwasm_client.errors import EncodingError
from zkwasm_client.service_client import SCHEMA_VERSION


@dataclass(frozen=True)
class AccountState:
    nonce: int
    balances: Mapping[int, int] = field(default_factory=dict)

    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, "balances", MappingProxyType(dict(self.balances)))

    def balance(self, token_index: int) -> int:
        return self.balances.get(token_index, 0)


@dataclass(frozen=True)
class State:
    accounts: Mapping[str, AccountState]
    tokens: Mapping[int, str]
    markets: Tuple[Tuple[int, int], ...]
    schema_version: int = SCHEMA_VERSION

    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, "accounts", MappingProxyType(dict(self.accounts)))
        object.__setattr__(self, "tokens", MappingProxyType(dict(self.tokens)))
        object.__setattr__(self, "markets", tuple(tuple(pair) for pair in self.markets))

    def account(self, account_id: str) -> AccountState:
        return self.accounts[account_id.lower()]

    def has_account(self, account_id: str) -> bool:
        return account_id.lower() in self.accounts

    @classmethod
    def from_dict(cls, raw: dict) -> "State":
        """
        Decode a snapshot payload. JSON object keys are strings, so token
        indices and balance keys are converted back to ints here.
        """
        try:
            version = int(raw.get("schema_version", SCHEMA_VERSION))
            if version > SCHEMA_VERSION:
                raise EncodingError(
                    f"snapshot schema version {version} is newer than supported {SCHEMA_VERSION}"
                )
            accounts = {
                account_id.lower(): AccountState(
                    nonce=int(entry.get("nonce", 0)),
                    balances={int(k): int(v) for k, v in entry.get("balances", {}).items()},
                )
                for account_id, entry in raw.get("accounts", {}).items()
            }
            tokens = {int(k): str(v) for k, v in raw.get("tokens", {}).items()}
            markets = tuple((int(a), int(b)) for a, b in raw.get("markets", []))
        except (AttributeError, TypeError, ValueError) as exc:
            raise EncodingError(f"malformed state snapshot: {exc}") from exc
        return cls(accounts=accounts, tokens=tokens, markets=markets, schema_version=version)

    def to_dict(self) -> dict:
        return {
            "schema_version": self.schema_version,
            "accounts": {
                account_id: {
                    "nonce": entry.nonce,
                    "balances": {str(k): v for k, v in entry.balances.items()},
                }
                for account_id, entry in self.accounts.items()
            },
            "tokens": {str(k): v for k, v in self.tokens.items()},
            "markets": [list(pair) for pair in self.markets],
        }
