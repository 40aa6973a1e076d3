"""OTP 用ユースケース"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from otpcore.domain.entities import OTPDescriptor, ParseFailure
from otpcore.domain.exceptions import InvalidSecretEncoding, OTPError, UnsupportedMigrationFormat
from otpcore.domain.parser import ParseResult, parse_credential_uri
from otpcore.domain.validators import format_descriptor
from otpcore.infrastructure.image_pipeline import ImageDecodePipeline, decode_with_timeout
from otpcore.infrastructure.image_transforms import profile_for
from otpcore.logging_config import structured_logger
from otpcore.settings import ApplicationSettings
from otpcore.settings import settings as default_settings

from .dto import CodeResult, ImageDecodeResult, VerificationResult, WindowCode
from .generators import advance_counter, generate_code
from .verifier import verify
from .windows import multiple_codes

_logger = structured_logger(__name__, component="use_cases")


def _require_descriptor(source: OTPDescriptor | str) -> OTPDescriptor:
    """URI 文字列なら解析し、生成可能な記述子を返す"""

    if isinstance(source, OTPDescriptor):
        return source
    parsed = parse_credential_uri(source)
    if isinstance(parsed, ParseFailure):
        if parsed.code == UnsupportedMigrationFormat.code:
            raise UnsupportedMigrationFormat(parsed.message)
        raise InvalidSecretEncoding(parsed.message)
    return parsed


class ParseCredentialUseCase:
    def execute(self, uri: str) -> Dict[str, Any]:
        log = _logger.bind(uri=uri)
        try:
            parsed: ParseResult = parse_credential_uri(uri)
        except OTPError as exc:
            log.info("credential.parse_failed", error_code=exc.code)
            raise
        if isinstance(parsed, ParseFailure):
            log.info("credential.parse_failed", error_code=parsed.code)
            return parsed.to_dict()
        log.info(
            "credential.parsed",
            correlation_id=parsed.correlation_id,
            variant=parsed.variant.value,
        )
        return format_descriptor(parsed)


class GenerateCodeUseCase:
    def execute(self, source: OTPDescriptor | str, at_time: Optional[int] = None) -> CodeResult:
        descriptor = _require_descriptor(source)
        result = generate_code(descriptor, at_time)
        _logger.debug(
            "code.generated",
            correlation_id=descriptor.correlation_id,
            variant=descriptor.variant.value,
            counter=result.counter,
        )
        return result


class CodeWindowUseCase:
    def __init__(self, settings: ApplicationSettings | None = None):
        self.settings = settings or default_settings

    def execute(
        self,
        source: OTPDescriptor | str,
        count: Optional[int] = None,
        at_time: Optional[int] = None,
    ) -> List[WindowCode]:
        descriptor = _require_descriptor(source)
        count = self.settings.window_count if count is None else count
        return multiple_codes(descriptor, count=count, at_time=at_time)


class VerifyCodeUseCase:
    def __init__(self, settings: ApplicationSettings | None = None):
        self.settings = settings or default_settings

    def execute(
        self,
        source: OTPDescriptor | str,
        candidate: str,
        window_size: Optional[int] = None,
        at_time: Optional[int] = None,
    ) -> VerificationResult:
        descriptor = _require_descriptor(source)
        window_size = self.settings.verify_window if window_size is None else window_size
        result = verify(descriptor, candidate, window_size=window_size, at_time=at_time)
        _logger.info(
            "code.verified",
            correlation_id=descriptor.correlation_id,
            variant=descriptor.variant.value,
            valid=result.valid,
            time_window=result.time_window,
        )
        return result


class AdvanceCounterUseCase:
    def execute(self, source: OTPDescriptor | str) -> OTPDescriptor:
        descriptor = _require_descriptor(source)
        advanced = advance_counter(descriptor)
        _logger.info(
            "counter.advanced",
            correlation_id=descriptor.correlation_id,
            counter=advanced.counter,
        )
        return advanced


class ScanImageUseCase:
    def __init__(
        self,
        pipeline: ImageDecodePipeline | None = None,
        settings: ApplicationSettings | None = None,
    ):
        self.settings = settings or default_settings
        self.pipeline = pipeline or ImageDecodePipeline(profile=profile_for(self.settings.pipeline_profile))

    def execute(
        self,
        data: bytes,
        mime_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ImageDecodeResult:
        timeout = self.settings.pipeline_timeout if timeout is None else timeout
        if timeout and timeout > 0:
            result = decode_with_timeout(self.pipeline, data, timeout, mime_type=mime_type)
        else:
            result = self.pipeline.decode(data, mime_type)
        _logger.info(
            "image.scanned",
            success=result.success,
            method=result.method,
            attempts=result.attempts,
            error_code=result.error_code,
            processing_time_ms=result.processing_time_ms,
        )
        return result


__all__ = [
    "AdvanceCounterUseCase",
    "CodeWindowUseCase",
    "GenerateCodeUseCase",
    "ParseCredentialUseCase",
    "ScanImageUseCase",
    "VerifyCodeUseCase",
]
