"""
commands.py
Player commands and their canonical byte encoding.

Wire layout
-----------
A command is a sequence of unsigned 64-bit little-endian words:

  word 0      header = (word_count << 8) | opcode
  word 1..n   parameters, one word per integer field

Addresses (160 bits) are split into lo/mid/hi limbs of 64/64/32 bits.
Account ids (32 bytes) are split into four 64-bit limbs, little-endian.

The nonce is not part of the command: signing_bytes() prefixes it so the
same logical command always encodes identically.
"""

import re
import struct
from dataclasses import dataclass
from typing import List, Union

from zkwasm_client.errors import EncodingError


U64_MAX = (1 << 64) - 1
MAX_TOKEN_INDEX = (1 << 16) - 1

OP_REGISTER = 1
OP_ADD_TOKEN = 2
OP_ADD_MARKET = 3
OP_DEPOSIT = 4

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_ACCOUNT_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


# ── command variants ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Register:
    pass


@dataclass(frozen=True)
class AddToken:
    index: int
    external_address: str


@dataclass(frozen=True)
class AddMarket:
    token_a: int
    token_b: int


@dataclass(frozen=True)
class Deposit:
    account: str        # target player's public id
    token_index: int
    amount: int


Command = Union[Register, AddToken, AddMarket, Deposit]


# ── field checks ─────────────────────────────────────────────────────────────

def _u64(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise EncodingError(f"{name} must not be negative, got {value}")
    if value > U64_MAX:
        raise EncodingError(f"{name} does not fit in 64 bits: {value}")
    return value


def _token_index(name: str, value) -> int:
    value = _u64(name, value)
    if value > MAX_TOKEN_INDEX:
        raise EncodingError(f"{name} exceeds token table size: {value}")
    return value


def _address_limbs(address) -> List[int]:
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise EncodingError(f"not a 20-byte hex address: {address!r}")
    value = int(address[2:], 16)
    return [value & U64_MAX, (value >> 64) & U64_MAX, value >> 128]


def _account_limbs(account) -> List[int]:
    if not isinstance(account, str) or not _ACCOUNT_RE.match(account):
        raise EncodingError(f"not a 32-byte hex account id: {account!r}")
    raw = bytes.fromhex(account[2:] if account.startswith("0x") else account)
    return list(struct.unpack("<4Q", raw))


def _params(command: Command) -> List[int]:
    if isinstance(command, Register):
        return []
    if isinstance(command, AddToken):
        return [_token_index("index", command.index)] + _address_limbs(command.external_address)
    if isinstance(command, AddMarket):
        token_a = _token_index("token_a", command.token_a)
        token_b = _token_index("token_b", command.token_b)
        if token_a == token_b:
            raise EncodingError(f"market legs must differ, both are {token_a}")
        return [token_a, token_b]
    if isinstance(command, Deposit):
        return _account_limbs(command.account) + [
            _token_index("token_index", command.token_index),
            _u64("amount", command.amount),
        ]
    raise EncodingError(f"unknown command type: {type(command).__name__}")


_OPCODES = {Register: OP_REGISTER, AddToken: OP_ADD_TOKEN, AddMarket: OP_ADD_MARKET, Deposit: OP_DEPOSIT}
_PARAM_COUNTS = {OP_REGISTER: 0, OP_ADD_TOKEN: 4, OP_ADD_MARKET: 2, OP_DEPOSIT: 6}


# ── public codec ─────────────────────────────────────────────────────────────

def encode(command: Command) -> bytes:
    """Encode `command` into its canonical byte form. Raises EncodingError."""
    params = _params(command)
    header = ((len(params) + 1) << 8) | _OPCODES[type(command)]
    words = [header] + params
    return struct.pack(f"<{len(words)}Q", *words)


def decode(data: bytes) -> Command:
    """Inverse of encode(). Raises EncodingError on malformed input."""
    if not data or len(data) % 8:
        raise EncodingError(f"command length {len(data)} is not a positive multiple of 8")
    words = struct.unpack(f"<{len(data) // 8}Q", data)
    header = words[0]
    opcode = header & 0xFF
    count = header >> 8
    if count != len(words) or _PARAM_COUNTS.get(opcode) != count - 1:
        raise EncodingError(f"bad command header {header:#x} for {len(words)} words")
    params = words[1:]

    if opcode == OP_REGISTER:
        return Register()
    if opcode == OP_ADD_TOKEN:
        lo, mid, hi = params[1:]
        if hi >> 32:
            raise EncodingError("address high limb exceeds 32 bits")
        address = (hi << 128) | (mid << 64) | lo
        command = AddToken(params[0], "0x" + format(address, "040x"))
    elif opcode == OP_ADD_MARKET:
        command = AddMarket(params[0], params[1])
    else:
        account = struct.pack("<4Q", *params[:4]).hex()
        command = Deposit(account, params[4], params[5])
    _params(command)
    return command


def signing_bytes(nonce: int, encoded: bytes) -> bytes:
    """Bytes covered by a transaction signature: nonce word + command."""
    return struct.pack("<Q", _u64("nonce", nonce)) + encoded
