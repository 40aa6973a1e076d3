"""入力されたコードの照合"""
from __future__ import annotations

from typing import Optional

from pyotp.utils import strings_equal

from otpcore.domain.entities import OTPDescriptor, OTPVariant
from otpcore.time import epoch_seconds

from .dto import VerificationResult
from .generators import effective_period, generate_code, hotp_result


def _normalize_candidate(descriptor: OTPDescriptor, candidate: str) -> str:
    cleaned = "".join((candidate or "").split())
    if descriptor.variant is OTPVariant.STEAM:
        cleaned = cleaned.upper()
    return cleaned


def _offset_label(offset: int) -> str:
    if offset == 0:
        return "current"
    return "previous" if offset < 0 else "next"


def verify(
    descriptor: OTPDescriptor,
    candidate: str,
    window_size: int = 1,
    at_time: Optional[int] = None,
) -> VerificationResult:
    """Compare *candidate* with the codes the credential accepts right now.

    Counter-based credentials are checked against the current counter only;
    there is no look-ahead resynchronization.  Time-based credentials accept
    any window from ``-window_size`` to ``+window_size`` periods, earliest
    first.
    """

    if window_size < 0:
        raise ValueError(f"window_size must not be negative: {window_size}")

    provided = _normalize_candidate(descriptor, candidate)

    if descriptor.variant.is_counter_based:
        current = hotp_result(descriptor)
        return VerificationResult(
            valid=strings_equal(current.code, provided),
            provided_code=provided,
            expected_code=current.code,
            counter=descriptor.counter,
        )

    period = effective_period(descriptor)
    now = epoch_seconds() if at_time is None else int(at_time)
    for offset in range(-window_size, window_size + 1):
        test_time = now + offset * period
        if test_time < 0:
            continue
        expected = generate_code(descriptor, test_time)
        if strings_equal(expected.code, provided):
            return VerificationResult(
                valid=True,
                provided_code=provided,
                expected_code=expected.code,
                time_window=_offset_label(offset),
                time_offset=offset * period,
                counter=expected.counter,
            )

    current = generate_code(descriptor, now)
    return VerificationResult(
        valid=False,
        provided_code=provided,
        expected_code=current.code,
        time_window="none",
        counter=current.counter,
    )


__all__ = ["verify"]
