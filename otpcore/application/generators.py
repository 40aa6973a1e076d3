"""OTP コード生成 (RFC 4226 / RFC 6238 + Steam / Battle.net)"""
from __future__ import annotations

import base64
import hashlib
from typing import Any, Callable, ClassVar, Dict, Optional, Tuple

import pyotp
from pyotp.contrib import Steam

from otpcore.domain.entities import (
    MAX_COUNTER,
    MAX_DIGITS,
    MIN_DIGITS,
    OTPAlgorithm,
    OTPDescriptor,
    OTPVariant,
)
from otpcore.domain.exceptions import MissingSecret, UnsupportedAlgorithm, UnsupportedVariant
from otpcore.time import epoch_seconds, from_epoch

from .dto import CodeResult

VENDOR_PERIOD = 30
BATTLE_DIGITS = 8

_DIGESTS: Dict[OTPAlgorithm, Callable[..., Any]] = {
    OTPAlgorithm.SHA1: hashlib.sha1,
    OTPAlgorithm.SHA256: hashlib.sha256,
    OTPAlgorithm.SHA512: hashlib.sha512,
}


def resolve_digest(algorithm: Optional[str]):
    """Return the ``hashlib`` constructor for *algorithm*.

    Unknown names fall back to SHA1.  The GOST R 34.11-2012 members are part
    of the enumeration but have no implementation, so they raise
    :class:`UnsupportedAlgorithm` instead of being replaced by SHA1.
    """

    resolved = OTPAlgorithm.resolve(algorithm)
    digest = _DIGESTS.get(resolved)
    if digest is None:
        raise UnsupportedAlgorithm(resolved.value)
    return digest


def otp_secret(secret: bytes) -> str:
    """Raw key bytes as the Base32 text ``pyotp`` expects."""

    if not secret:
        raise MissingSecret()
    return base64.b32encode(secret).decode("ascii")


def _check_digits(digits: int) -> None:
    if digits < MIN_DIGITS or digits > MAX_DIGITS:
        raise ValueError(f"digits must be between {MIN_DIGITS} and {MAX_DIGITS}: {digits}")


def _check_counter(counter: int) -> None:
    if counter < 0 or counter > MAX_COUNTER:
        raise ValueError(f"counter must fit in an unsigned 64-bit integer: {counter}")


def hotp_value(secret: bytes, counter: int, algorithm: Optional[str] = "SHA1") -> int:
    """RFC 4226 §5.3 の 31 ビット値 (10 桁なら剰余を取らない)"""

    return int(hotp_code(secret, counter, MAX_DIGITS, algorithm))


def hotp_code(
    secret: bytes,
    counter: int,
    digits: int = 6,
    algorithm: Optional[str] = "SHA1",
) -> str:
    _check_digits(digits)
    _check_counter(counter)
    otp = pyotp.HOTP(otp_secret(secret), digits=digits, digest=resolve_digest(algorithm))
    return otp.at(counter)


def _time_window(at_time: Optional[int], period: int) -> Tuple[int, int, int]:
    if period <= 0:
        raise ValueError(f"period must be positive: {period}")
    now = epoch_seconds() if at_time is None else int(at_time)
    if now < 0:
        raise ValueError(f"timestamp must not be negative: {now}")
    counter = now // period
    return now, counter, period - (now % period)


class CodeGeneratorStrategy:
    """Shared interface of the per-variant generators."""

    variants: ClassVar[Tuple[OTPVariant, ...]] = ()

    def generate(self, descriptor: OTPDescriptor, at_time: Optional[int] = None) -> CodeResult:
        raise NotImplementedError

    def period_for(self, descriptor: OTPDescriptor) -> Optional[int]:
        return None


class TimeBasedGenerator(CodeGeneratorStrategy):
    """Time-step codes; the step counter is computed here in UTC epoch seconds."""

    def otp_for(self, descriptor: OTPDescriptor) -> pyotp.TOTP:
        raise NotImplementedError

    def code_for_counter(self, descriptor: OTPDescriptor, counter: int) -> str:
        # TOTP.at() は naive datetime を経由するため、ステップ値を直接渡す
        return self.otp_for(descriptor).generate_otp(counter)

    def generate(self, descriptor: OTPDescriptor, at_time: Optional[int] = None) -> CodeResult:
        period = self.period_for(descriptor)
        now, counter, remaining = _time_window(at_time, period)
        return CodeResult(
            code=self.code_for_counter(descriptor, counter),
            variant=descriptor.variant,
            counter=counter,
            period=period,
            time_remaining=remaining,
            next_refresh=from_epoch((counter + 1) * period),
            timestamp=now,
        )


class TOTPGenerator(TimeBasedGenerator):
    variants = (OTPVariant.TOTP, OTPVariant.HEX_TOTP)

    def period_for(self, descriptor: OTPDescriptor) -> int:
        return descriptor.period

    def otp_for(self, descriptor: OTPDescriptor) -> pyotp.TOTP:
        _check_digits(descriptor.digits)
        return pyotp.TOTP(
            otp_secret(descriptor.secret),
            digits=descriptor.digits,
            interval=descriptor.period,
            digest=resolve_digest(descriptor.algorithm),
        )


class SteamGenerator(TimeBasedGenerator):
    variants = (OTPVariant.STEAM,)

    def period_for(self, descriptor: OTPDescriptor) -> int:
        return VENDOR_PERIOD

    def otp_for(self, descriptor: OTPDescriptor) -> pyotp.TOTP:
        return Steam(otp_secret(descriptor.secret), interval=VENDOR_PERIOD)


class BattleGenerator(TimeBasedGenerator):
    variants = (OTPVariant.BATTLE,)

    def period_for(self, descriptor: OTPDescriptor) -> int:
        return VENDOR_PERIOD

    def otp_for(self, descriptor: OTPDescriptor) -> pyotp.TOTP:
        return pyotp.TOTP(otp_secret(descriptor.secret), digits=BATTLE_DIGITS, interval=VENDOR_PERIOD)


class HOTPGenerator(CodeGeneratorStrategy):
    variants = (OTPVariant.HOTP, OTPVariant.HEX_HOTP)

    def generate(self, descriptor: OTPDescriptor, at_time: Optional[int] = None) -> CodeResult:
        counter = descriptor.counter
        return CodeResult(
            code=hotp_code(descriptor.secret, counter, descriptor.digits, descriptor.algorithm),
            variant=descriptor.variant,
            counter=counter,
            next_counter=counter + 1,
        )


_GENERATORS: Dict[OTPVariant, CodeGeneratorStrategy] = {}
for _generator in (TOTPGenerator(), HOTPGenerator(), SteamGenerator(), BattleGenerator()):
    for _variant in _generator.variants:
        _GENERATORS[_variant] = _generator


def generator_for(variant: OTPVariant) -> CodeGeneratorStrategy:
    try:
        return _GENERATORS[OTPVariant(variant)]
    except (KeyError, ValueError) as exc:
        raise UnsupportedVariant(variant) from exc


def effective_period(descriptor: OTPDescriptor) -> Optional[int]:
    """Period actually used for *descriptor*; ``None`` for counter-based variants."""

    return generator_for(descriptor.variant).period_for(descriptor)


def totp_code(descriptor: OTPDescriptor, at_time: Optional[int] = None) -> CodeResult:
    return _GENERATORS[OTPVariant.TOTP].generate(descriptor, at_time)


def hotp_result(descriptor: OTPDescriptor) -> CodeResult:
    """Code for ``descriptor.counter``; advancing the counter is the caller's job."""

    return _GENERATORS[OTPVariant.HOTP].generate(descriptor)


def steam_code(descriptor: OTPDescriptor, at_time: Optional[int] = None) -> CodeResult:
    return _GENERATORS[OTPVariant.STEAM].generate(descriptor, at_time)


def battle_code(descriptor: OTPDescriptor, at_time: Optional[int] = None) -> CodeResult:
    return _GENERATORS[OTPVariant.BATTLE].generate(descriptor, at_time)


def generate_code(descriptor: OTPDescriptor, at_time: Optional[int] = None) -> CodeResult:
    if descriptor is None or not descriptor.secret:
        raise MissingSecret("Invalid OTP data or missing secret")
    return generator_for(descriptor.variant).generate(descriptor, at_time)


def advance_counter(descriptor: OTPDescriptor) -> OTPDescriptor:
    """Return a copy of a counter-based descriptor with ``counter + 1``.

    The caller persists the returned counter after a successful use and must
    serialize concurrent generations against the same credential.
    """

    if not descriptor.variant.is_counter_based:
        raise ValueError(f"{descriptor.variant.value} credentials have no counter")
    return descriptor.with_counter(descriptor.counter + 1)


__all__ = [
    "BATTLE_DIGITS",
    "CodeGeneratorStrategy",
    "advance_counter",
    "battle_code",
    "effective_period",
    "generate_code",
    "generator_for",
    "hotp_code",
    "hotp_result",
    "hotp_value",
    "otp_secret",
    "resolve_digest",
    "steam_code",
    "totp_code",
]
