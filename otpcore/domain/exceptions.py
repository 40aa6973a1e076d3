"""OTP ドメイン例外"""
from __future__ import annotations


class OTPError(Exception):
    """OTP 関連の基底例外"""

    code = "OTPError"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class MissingSecret(OTPError):
    """secret が指定されていない"""

    code = "MissingSecret"

    def __init__(self, message: str = "Secret is required", field: str | None = "secret"):
        super().__init__(message, field=field)


class InvalidSecretEncoding(OTPError):
    """secret が Base32 / hex として解釈できない"""

    code = "InvalidSecretEncoding"

    def __init__(self, message: str, field: str | None = "secret"):
        super().__init__(message, field=field)


class UnsupportedVariant(OTPError):
    """未知の OTP 種別"""

    code = "UnsupportedVariant"

    def __init__(self, variant: object):
        super().__init__(f"Unsupported OTP type: {variant}", field="type")
        self.variant = variant


class UnsupportedAlgorithm(OTPError):
    """実装されていないハッシュアルゴリズム"""

    code = "UnsupportedAlgorithm"

    def __init__(self, algorithm: str):
        super().__init__(f"Unsupported algorithm: {algorithm}", field="algorithm")
        self.algorithm = algorithm


class MalformedURI(OTPError):
    """otpauth URI の構造が壊れている"""

    code = "MalformedURI"

    def __init__(self, message: str, field: str | None = "uri"):
        super().__init__(message, field=field)


class UnsupportedMigrationFormat(OTPError):
    """otpauth-migration:// は扱わない"""

    code = "UnsupportedMigrationFormat"

    def __init__(self, message: str = "Migration URLs require specialized parsing"):
        super().__init__(message, field="uri")


class ImageDecodeError(OTPError):
    """画像からの QR 読み取りに失敗"""

    code = "ImageDecodeError"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message, field="image")
        if code:
            self.code = code


__all__ = [
    "ImageDecodeError",
    "InvalidSecretEncoding",
    "MalformedURI",
    "MissingSecret",
    "OTPError",
    "UnsupportedAlgorithm",
    "UnsupportedMigrationFormat",
    "UnsupportedVariant",
]
