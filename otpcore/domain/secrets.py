"""シークレット文字列のデコード"""
from __future__ import annotations

import re

from .exceptions import InvalidSecretEncoding, MissingSecret

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_BASE32_SHAPE = re.compile(r"^[2-7a-z]+=*$", re.IGNORECASE)
_HEX_SHAPE = re.compile(r"^[0-9a-f]+$", re.IGNORECASE)

ENCODING_BASE32 = "base32"
ENCODING_HEX = "hex"


def is_base32(text: str) -> bool:
    return bool(text) and _BASE32_SHAPE.match(text) is not None


def is_hex(text: str) -> bool:
    return bool(text) and _HEX_SHAPE.match(text) is not None


def detect_encoding(text: str) -> str:
    """Return ``"hex"`` for hex-shaped text that is not also Base32-shaped."""

    if is_hex(text) and not is_base32(text):
        return ENCODING_HEX
    return ENCODING_BASE32


def decode_base32(text: str) -> bytes:
    """Decode RFC 4648 Base32 text of any length.

    Input is case-insensitive and trailing ``=`` padding is ignored.  Symbols
    are packed five bits at a time and an incomplete trailing byte is
    dropped, so unpadded secrets whose length is not a multiple of eight
    decode the same way authenticator apps decode them.
    """

    if not text:
        raise MissingSecret()
    cleaned = text.upper().rstrip("=")
    buffer = 0
    bits = 0
    out = bytearray()
    for char in cleaned:
        value = BASE32_ALPHABET.find(char)
        if value < 0:
            raise InvalidSecretEncoding(f"Invalid Base32 character: {char!r}")
        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
    return bytes(out)


def decode_hex(text: str) -> bytes:
    if not text:
        raise MissingSecret()
    if not is_hex(text):
        raise InvalidSecretEncoding("Secret is not a valid hex string")
    if len(text) % 2:
        text = "0" + text
    return bytes.fromhex(text)


def decode_secret(text: str, force_hex: bool = False) -> bytes:
    if force_hex or detect_encoding(text) == ENCODING_HEX:
        return decode_hex(text)
    return decode_base32(text)


__all__ = [
    "BASE32_ALPHABET",
    "ENCODING_BASE32",
    "ENCODING_HEX",
    "decode_base32",
    "decode_hex",
    "decode_secret",
    "detect_encoding",
    "is_base32",
    "is_hex",
]
