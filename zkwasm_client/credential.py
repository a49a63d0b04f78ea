"""
credential.py
Signing key material for an admin or player account.

The secret is a 32-byte ed25519 seed given as hex (as handed out by the
service's admin key provisioning). The public identifier is the hex of the
raw public key; it names the account in state snapshots and deposits.
"""

from stellar_sdk import Keypair
from stellar_sdk.exceptions import BadSignatureError

from zkwasm_client.errors import EncodingError


def _strip_hex(value: str) -> str:
    value = value.strip()
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return value


class Credential:
    def __init__(self, secret_hex: str):
        raw = _strip_hex(secret_hex)
        try:
            seed = bytes.fromhex(raw)
        except ValueError as exc:
            raise EncodingError(f"signing key is not valid hex: {exc}") from exc
        if len(seed) != 32:
            raise EncodingError(f"signing key must be 32 bytes, got {len(seed)}")
        self._keypair = Keypair.from_raw_ed25519_seed(seed)
        self.public_id = self._keypair.raw_public_key().hex()

    def __repr__(self) -> str:
        return f"Credential(public_id={self.public_id[:12]}…)"

    def sign(self, data: bytes) -> bytes:
        return self._keypair.sign(data)


def verify_signature(public_id: str, data: bytes, signature: bytes) -> bool:
    """Check `signature` over `data` against a hex public identifier."""
    try:
        keypair = Keypair.from_raw_ed25519_public_key(bytes.fromhex(_strip_hex(public_id)))
        keypair.verify(data, signature)
    except (BadSignatureError, ValueError):
        return False
    return True
