"""otpauth URI の解析"""
from __future__ import annotations

import re
import uuid
from typing import Dict, List, Optional, Union
from urllib.parse import unquote

from .entities import (
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    MAX_COUNTER,
    MAX_DIGITS,
    MIN_DIGITS,
    OTPDescriptor,
    OTPVariant,
    ParseFailure,
)
from .exceptions import (
    InvalidSecretEncoding,
    MalformedURI,
    MissingSecret,
    OTPError,
    UnsupportedMigrationFormat,
    UnsupportedVariant,
)
from .secrets import ENCODING_HEX, decode_secret, detect_encoding, is_base32, is_hex

OTPAUTH_SCHEME = "otpauth://"
MIGRATION_SCHEME = "otpauth-migration://"
URI_PREFIXES = (OTPAUTH_SCHEME, MIGRATION_SCHEME)

_BATTLE_PREFIX = re.compile(r"^(blz-|bliz-)(.*)$", re.DOTALL)
_STEAM_PREFIX = re.compile(r"^stm-(.*)$", re.DOTALL)

_SCHEME_VARIANTS = {
    "totp": OTPVariant.TOTP,
    "hotp": OTPVariant.HOTP,
}
_HEX_VARIANTS = {
    OTPVariant.TOTP: OTPVariant.HEX_TOTP,
    OTPVariant.HOTP: OTPVariant.HEX_HOTP,
}

MIGRATION_NOTE = (
    "This appears to be a Google Authenticator migration QR code. These contain "
    "multiple accounts and require protobuf decoding."
)
MIGRATION_SUGGESTION = "Try importing individual QR codes for each account instead."

ParseResult = Union[OTPDescriptor, ParseFailure]


def has_credential_prefix(text: Optional[str]) -> bool:
    return bool(text) and text.startswith(URI_PREFIXES)


def _parse_digits(value: str) -> int:
    try:
        digits = int(value)
    except (TypeError, ValueError):
        return DEFAULT_DIGITS
    if digits == 0 or digits < MIN_DIGITS or digits > MAX_DIGITS:
        return DEFAULT_DIGITS
    return digits


def _parse_period(value: str) -> int:
    # 60 を割り切れる周期のみ有効
    try:
        period = int(value)
    except (TypeError, ValueError):
        return DEFAULT_PERIOD
    if period <= 0 or period > 60 or 60 % period != 0:
        return DEFAULT_PERIOD
    return period


def _parse_counter(value: str) -> int:
    try:
        counter = int(value)
    except (TypeError, ValueError):
        return 0
    if counter < 0 or counter > MAX_COUNTER:
        return 0
    return counter


def _split_label(label: str) -> tuple[str, str]:
    if ":" in label:
        issuer, account = label.split(":", 1)
        return issuer.strip(), account.strip()
    return "", label.strip()


def _parse_query(query: str) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for item in query.split("&"):
        if not item:
            continue
        key, _, value = item.partition("=")
        params[key.lower()] = value
    return params


def _apply_vendor_override(secret: str, variant: OTPVariant) -> tuple[str, OTPVariant, bool]:
    battle = _BATTLE_PREFIX.match(secret)
    if battle:
        return battle.group(2), OTPVariant.BATTLE, True
    steam = _STEAM_PREFIX.match(secret)
    if steam:
        return steam.group(1), OTPVariant.STEAM, True
    return secret, variant, False


def parse_migration_uri(uri: str) -> ParseFailure:
    return ParseFailure(
        code=UnsupportedMigrationFormat.code,
        message=str(UnsupportedMigrationFormat()),
        original_uri=uri,
        note=MIGRATION_NOTE,
        suggestion=MIGRATION_SUGGESTION,
    )


def parse_standard_uri(uri: str) -> ParseResult:
    """Parse an ``otpauth://{totp|hotp}/{label}?{query}`` URI.

    Raises :class:`MalformedURI` when the label or query is missing,
    :class:`UnsupportedVariant` for an unknown type token and
    :class:`MissingSecret` when no secret is present.  A secret in neither
    the hex nor the Base32 alphabet is reported through a
    :class:`ParseFailure` so callers can show it next to the original URI.
    """

    if not uri.startswith(OTPAUTH_SCHEME):
        raise MalformedURI("otpauth URI must start with otpauth://")

    remainder = uri[len(OTPAUTH_SCHEME):]
    type_token, slash, remainder = remainder.partition("/")
    if not slash:
        raise MalformedURI("otpauth URI has no label")
    variant = _SCHEME_VARIANTS.get(type_token.lower())
    if variant is None:
        raise UnsupportedVariant(type_token)

    raw_label, _, query = remainder.partition("?")
    if not raw_label or not query:
        raise MalformedURI("otpauth URI must contain a label and a query string")

    label = unquote(raw_label)
    issuer, account = _split_label(label)

    params = _parse_query(query)
    if "issuer" in params:
        issuer = unquote(params["issuer"]).replace("+", " ")

    digits = _parse_digits(params["digits"]) if "digits" in params else DEFAULT_DIGITS
    period = _parse_period(params["period"]) if "period" in params else DEFAULT_PERIOD
    counter = _parse_counter(params["counter"]) if "counter" in params else 0
    algorithm = params["algorithm"].upper() if params.get("algorithm") else "SHA1"

    secret = re.sub(r"\s+", "", unquote(params.get("secret", "")))
    if not secret:
        raise MissingSecret("otpauth URI does not contain a secret")

    secret, variant, vendor = _apply_vendor_override(secret, variant)

    if not is_hex(secret) and not is_base32(secret):
        return ParseFailure(
            code=InvalidSecretEncoding.code,
            message="Invalid secret format",
            original_uri=uri,
            raw_secret=secret,
        )

    hex_encoded = detect_encoding(secret) == ENCODING_HEX
    if hex_encoded and not vendor:
        variant = _HEX_VARIANTS[variant]

    try:
        key = decode_secret(secret, force_hex=hex_encoded)
    except InvalidSecretEncoding as exc:
        return ParseFailure(
            code=exc.code,
            message=str(exc),
            original_uri=uri,
            raw_secret=secret,
        )
    if not key:
        return ParseFailure(
            code=InvalidSecretEncoding.code,
            message="Secret decodes to an empty key",
            original_uri=uri,
            raw_secret=secret,
        )

    return OTPDescriptor(
        variant=variant,
        secret=key,
        label=label,
        issuer=issuer,
        account=account,
        algorithm=algorithm,
        digits=digits,
        period=period,
        counter=counter,
        original_uri=uri,
        correlation_id=str(uuid.uuid4()),
    )


def parse_credential_uri(uri: str) -> ParseResult:
    if not uri or not isinstance(uri, str):
        raise MalformedURI("Credential URI is empty")
    uri = uri.strip()
    if uri.startswith(MIGRATION_SCHEME):
        return parse_migration_uri(uri)
    if uri.startswith(OTPAUTH_SCHEME):
        return parse_standard_uri(uri)
    raise MalformedURI("Unrecognized credential URI scheme")


def parse_many(text: str) -> List[ParseResult]:
    """Parse one credential URI per non-empty line.

    Lines that raise are converted into :class:`ParseFailure` entries so a
    single bad line does not hide the others.
    """

    results: List[ParseResult] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            results.append(parse_credential_uri(line))
        except OTPError as exc:
            results.append(ParseFailure(code=exc.code, message=str(exc), original_uri=line))
    return results


__all__ = [
    "MIGRATION_SCHEME",
    "OTPAUTH_SCHEME",
    "ParseResult",
    "URI_PREFIXES",
    "has_credential_prefix",
    "parse_credential_uri",
    "parse_many",
    "parse_migration_uri",
    "parse_standard_uri",
]
