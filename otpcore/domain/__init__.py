"""OTP domain model: entities, secret decoding and credential URI parsing."""

from .entities import OTPAlgorithm, OTPDescriptor, OTPVariant, ParseFailure
from .exceptions import (
    ImageDecodeError,
    InvalidSecretEncoding,
    MalformedURI,
    MissingSecret,
    OTPError,
    UnsupportedAlgorithm,
    UnsupportedMigrationFormat,
    UnsupportedVariant,
)
from .parser import has_credential_prefix, parse_credential_uri, parse_many
from .secrets import decode_base32, decode_hex, decode_secret, detect_encoding
from .validators import ValidationReport, format_descriptor, validate_descriptor

__all__ = [
    "ImageDecodeError",
    "InvalidSecretEncoding",
    "MalformedURI",
    "MissingSecret",
    "OTPAlgorithm",
    "OTPDescriptor",
    "OTPError",
    "OTPVariant",
    "ParseFailure",
    "UnsupportedAlgorithm",
    "UnsupportedMigrationFormat",
    "UnsupportedVariant",
    "ValidationReport",
    "decode_base32",
    "decode_hex",
    "decode_secret",
    "detect_encoding",
    "format_descriptor",
    "has_credential_prefix",
    "parse_credential_uri",
    "parse_many",
    "validate_descriptor",
]
