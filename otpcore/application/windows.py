"""現在および今後のコード一覧"""
from __future__ import annotations

from typing import List, Optional

from otpcore.domain.entities import OTPDescriptor
from otpcore.time import epoch_seconds, from_epoch

from .dto import WindowCode
from .generators import effective_period, generate_code, hotp_result


def window_label(index: int, period: int) -> str:
    return "current" if index == 0 else f"+{index * period}s"


def multiple_codes(
    descriptor: OTPDescriptor,
    count: int = 3,
    at_time: Optional[int] = None,
) -> List[WindowCode]:
    """Return *count* codes starting with the current one.

    Counter-based credentials yield counters ``counter .. counter+count-1``;
    time-based credentials yield the windows ``now, now+period, ...``.  The
    descriptor is never modified.
    """

    if count < 1:
        raise ValueError(f"count must be at least 1: {count}")

    codes: List[WindowCode] = []
    if descriptor.variant.is_counter_based:
        for index in range(count):
            shifted = descriptor.with_counter(descriptor.counter + index)
            codes.append(WindowCode(sequence=index, result=hotp_result(shifted)))
        return codes

    period = effective_period(descriptor)
    now = epoch_seconds() if at_time is None else int(at_time)
    for index in range(count):
        adjusted = now + index * period
        codes.append(
            WindowCode(
                sequence=index,
                result=generate_code(descriptor, adjusted),
                time_window=window_label(index, period),
                timestamp=from_epoch(adjusted),
            )
        )
    return codes


__all__ = ["multiple_codes", "window_label"]
