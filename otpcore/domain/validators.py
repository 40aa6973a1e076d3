"""OTP 設定の検証と表示用の説明"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from otpcore.time import utc_now_isoformat

from .entities import MAX_DIGITS, MIN_DIGITS, OTPAlgorithm, OTPDescriptor, OTPVariant

_TYPICAL_PERIOD_RANGE = (15, 300)

_VARIANT_DESCRIPTIONS = {
    OTPVariant.TOTP: "Time-based (TOTP) - codes change every 30 seconds",
    OTPVariant.HOTP: "Counter-based (HOTP) - codes change when used",
    OTPVariant.BATTLE: "Battle.net authenticator format",
    OTPVariant.STEAM: "Steam Guard authenticator format",
    OTPVariant.HEX_TOTP: "Time-based with hex encoding",
    OTPVariant.HEX_HOTP: "Counter-based with hex encoding",
}

_ALGORITHM_DESCRIPTIONS = {
    OTPAlgorithm.SHA1: "SHA-1 (most common)",
    OTPAlgorithm.SHA256: "SHA-256 (more secure)",
    OTPAlgorithm.SHA512: "SHA-512 (most secure)",
    OTPAlgorithm.GOST3411_2012_256: "GOST R 34.11-2012 256-bit",
    OTPAlgorithm.GOST3411_2012_512: "GOST R 34.11-2012 512-bit",
}


@dataclass(slots=True)
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def validate_descriptor(descriptor: Optional[OTPDescriptor]) -> ValidationReport:
    """Check a parsed descriptor for hard errors and unusual-but-legal values."""

    report = ValidationReport()
    if descriptor is None:
        report.errors.append("No OTP data provided")
        return report

    if not descriptor.secret:
        report.errors.append("Secret is required")
    if not isinstance(descriptor.variant, OTPVariant):
        report.errors.append(f"Invalid OTP type: {descriptor.variant}")

    if descriptor.algorithm and not OTPAlgorithm.is_known(descriptor.algorithm):
        report.warnings.append(
            f"Unknown algorithm: {descriptor.algorithm}, will default to SHA1"
        )

    if descriptor.digits < MIN_DIGITS or descriptor.digits > MAX_DIGITS:
        report.warnings.append(
            f"Unusual digit count: {descriptor.digits}, typical values are 6-8"
        )

    low, high = _TYPICAL_PERIOD_RANGE
    if descriptor.variant is OTPVariant.TOTP and (descriptor.period < low or descriptor.period > high):
        report.warnings.append(
            f"Unusual period: {descriptor.period} seconds, typical value is 30"
        )

    if not descriptor.issuer:
        report.warnings.append(
            "No issuer specified - this may make it harder to identify the account"
        )
    return report


def describe_variant(variant: OTPVariant | str) -> str:
    try:
        return _VARIANT_DESCRIPTIONS[OTPVariant(variant)]
    except ValueError:
        return f"Unknown type: {variant}"


def describe_algorithm(algorithm: str) -> str:
    if OTPAlgorithm.is_known(algorithm):
        return _ALGORITHM_DESCRIPTIONS[OTPAlgorithm(algorithm.upper())]
    return f"Custom algorithm: {algorithm}"


def format_descriptor(descriptor: OTPDescriptor) -> Dict[str, Any]:
    """Client-facing view of *descriptor* with validation and descriptions."""

    payload = descriptor.to_dict()
    payload.update(
        {
            "validation": validate_descriptor(descriptor).to_dict(),
            "generatedAt": utc_now_isoformat(),
            "typeDescription": describe_variant(descriptor.variant),
            "algorithmDescription": describe_algorithm(descriptor.algorithm),
        }
    )
    return payload


__all__ = [
    "ValidationReport",
    "describe_algorithm",
    "describe_variant",
    "format_descriptor",
    "validate_descriptor",
]
