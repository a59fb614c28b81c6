"""Minimal Ethereum ABI encoding for the view calls the dashboard makes.

Only static arguments (address, uint) are encoded. Decoding covers uint,
address, bool, string and arrays of static tuples, which is everything the
staking token, ERC-20 and pool reads return.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Sequence

from Crypto.Hash import keccak

WORD_BYTES = 32


class AbiDecodeError(ValueError):
    """Raised when return data is shorter or shaped differently than expected."""


@lru_cache(maxsize=None)
def function_selector(signature: str) -> bytes:
    """First four bytes of keccak256(signature), e.g. "balanceOf(address)"."""
    digest = keccak.new(digest_bits=256, data=signature.encode("ascii")).digest()
    return digest[:4]


def encode_uint(value: int) -> bytes:
    if value < 0 or value >= 1 << 256:
        raise ValueError(f"uint256 out of range: {value}")
    return value.to_bytes(WORD_BYTES, "big")


def encode_address(address: str) -> bytes:
    hex_part = address[2:] if address.lower().startswith("0x") else address
    if len(hex_part) != 40:
        raise ValueError(f"not a 20-byte address: {address!r}")
    return bytes.fromhex(hex_part).rjust(WORD_BYTES, b"\x00")


def encode_call(signature: str, args: Sequence[object] = ()) -> str:
    """Return 0x-prefixed calldata for a call with static address/uint args."""
    parts = [function_selector(signature)]
    for arg in args:
        if isinstance(arg, str):
            parts.append(encode_address(arg))
        elif isinstance(arg, int) and not isinstance(arg, bool):
            parts.append(encode_uint(arg))
        else:
            raise TypeError(f"unsupported ABI argument: {arg!r}")
    return "0x" + b"".join(parts).hex()


def hex_to_bytes(data: str) -> bytes:
    hex_part = data[2:] if data.startswith("0x") else data
    try:
        return bytes.fromhex(hex_part)
    except ValueError as exc:
        raise AbiDecodeError(f"return data is not hex: {data[:20]!r}") from exc


def _word(data: bytes, index: int) -> bytes:
    start = index * WORD_BYTES
    end = start + WORD_BYTES
    if len(data) < end:
        raise AbiDecodeError(
            f"need {end} bytes of return data, got {len(data)}"
        )
    return data[start:end]


def decode_uint(data: bytes, index: int = 0) -> int:
    return int.from_bytes(_word(data, index), "big")


def decode_address(data: bytes, index: int = 0) -> str:
    return "0x" + _word(data, index)[12:].hex()


def decode_bool(data: bytes, index: int = 0) -> bool:
    return decode_uint(data, index) != 0


def decode_string(data: bytes, index: int = 0) -> str:
    offset = decode_uint(data, index)
    if offset % WORD_BYTES:
        raise AbiDecodeError(f"misaligned string offset {offset}")
    length = decode_uint(data, offset // WORD_BYTES)
    start = offset + WORD_BYTES
    if len(data) < start + length:
        raise AbiDecodeError("string runs past end of return data")
    return data[start : start + length].decode("utf-8", errors="replace")


def decode_static_tuple_array(data: bytes, width: int, index: int = 0) -> list[list[int]]:
    """Decode a dynamic array of static tuples as rows of raw uint words."""
    offset = decode_uint(data, index)
    if offset % WORD_BYTES:
        raise AbiDecodeError(f"misaligned array offset {offset}")
    head = offset // WORD_BYTES
    length = decode_uint(data, head)
    rows = []
    for row in range(length):
        base = head + 1 + row * width
        rows.append([decode_uint(data, base + col) for col in range(width)])
    return rows
