"""OTP ドメインのエンティティ定義"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import MissingSecret

DEFAULT_DIGITS = 6
DEFAULT_PERIOD = 30
DEFAULT_ALGORITHM = "SHA1"
MIN_DIGITS = 4
MAX_DIGITS = 10
MAX_COUNTER = 2**64 - 1

REDACTED = "***"


class OTPVariant(str, Enum):
    """OTP の種別 (値は otpauth URI 上のタグ)"""

    TOTP = "totp"
    HOTP = "hotp"
    STEAM = "steam"
    BATTLE = "battle"
    HEX_TOTP = "hex"
    HEX_HOTP = "hhex"

    @property
    def is_counter_based(self) -> bool:
        return self in (OTPVariant.HOTP, OTPVariant.HEX_HOTP)


class OTPAlgorithm(str, Enum):
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"
    GOST3411_2012_256 = "GOST3411_2012_256"
    GOST3411_2012_512 = "GOST3411_2012_512"

    @classmethod
    def resolve(cls, name: Optional[str]) -> "OTPAlgorithm":
        """Map an algorithm name to a member, defaulting unknown names to SHA1."""

        if not name:
            return cls.SHA1
        try:
            return cls(name.upper())
        except ValueError:
            return cls.SHA1

    @classmethod
    def is_known(cls, name: Optional[str]) -> bool:
        return bool(name) and name.upper() in cls._value2member_map_


@dataclass(frozen=True, slots=True)
class OTPDescriptor:
    """otpauth URI から得られる OTP 設定"""

    variant: OTPVariant
    secret: bytes = field(repr=False)
    label: str = ""
    issuer: str = ""
    account: str = ""
    algorithm: str = DEFAULT_ALGORITHM
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD
    counter: int = 0
    original_uri: str = field(default="", repr=False)
    correlation_id: str = ""
    valid: bool = True

    def __post_init__(self) -> None:
        if not self.secret:
            raise MissingSecret()

    def with_counter(self, counter: int) -> "OTPDescriptor":
        """Return a copy carrying *counter*; the descriptor itself never changes."""

        if counter < 0 or counter > MAX_COUNTER:
            raise ValueError(f"counter out of range: {counter}")
        return dataclasses.replace(self, counter=counter)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.variant.value,
            "label": self.label,
            "issuer": self.issuer,
            "account": self.account,
            "secret": REDACTED,
            "algorithm": self.algorithm,
            "digits": self.digits,
            "period": self.period,
            "counter": self.counter,
            "hash": self.correlation_id,
            "valid": self.valid,
        }
        return payload


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """例外にせず返す解析失敗 (診断情報付き)"""

    code: str
    message: str
    original_uri: str = field(default="", repr=False)
    raw_secret: Optional[str] = field(default=None, repr=False)
    note: Optional[str] = None
    suggestion: Optional[str] = None
    valid: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": self.message,
            "code": self.code,
            "valid": self.valid,
        }
        if self.note:
            payload["note"] = self.note
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        if self.raw_secret is not None:
            payload["secret"] = REDACTED
        return payload


__all__ = [
    "DEFAULT_ALGORITHM",
    "DEFAULT_DIGITS",
    "DEFAULT_PERIOD",
    "MAX_COUNTER",
    "MAX_DIGITS",
    "MIN_DIGITS",
    "OTPAlgorithm",
    "OTPDescriptor",
    "OTPVariant",
    "ParseFailure",
]
