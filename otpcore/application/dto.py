"""OTP アプリケーション層 DTO"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from otpcore.domain.entities import OTPDescriptor, OTPVariant, ParseFailure
from otpcore.time import isoformat_z


@dataclass(frozen=True, slots=True)
class CodeResult:
    """1 回の生成呼び出しで得られるコード"""

    code: str
    variant: OTPVariant
    counter: int
    period: Optional[int] = None
    time_remaining: Optional[int] = None
    next_refresh: Optional[datetime] = None
    timestamp: Optional[int] = None
    next_counter: Optional[int] = None

    @property
    def is_time_based(self) -> bool:
        return self.period is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "code": self.code,
            "type": self.variant.value,
            "counter": self.counter,
        }
        if self.is_time_based:
            payload.update(
                {
                    "period": self.period,
                    "timeRemaining": self.time_remaining,
                    "nextRefresh": isoformat_z(self.next_refresh) if self.next_refresh else None,
                }
            )
        else:
            payload["nextCounter"] = self.next_counter
        return payload


@dataclass(frozen=True, slots=True)
class WindowCode:
    """コード一覧の 1 要素 (index 0 が現在値)"""

    sequence: int
    result: CodeResult
    time_window: Optional[str] = None
    timestamp: Optional[datetime] = None

    @property
    def code(self) -> str:
        return self.result.code

    @property
    def counter(self) -> int:
        return self.result.counter

    def to_dict(self) -> Dict[str, Any]:
        payload = self.result.to_dict()
        payload["sequence"] = self.sequence
        if self.time_window is not None:
            payload["timeWindow"] = self.time_window
        if self.timestamp is not None:
            payload["timestamp"] = isoformat_z(self.timestamp)
        return payload


@dataclass(frozen=True, slots=True)
class VerificationResult:
    valid: bool
    provided_code: str
    expected_code: str
    time_window: Optional[str] = None
    time_offset: Optional[int] = None
    counter: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "valid": self.valid,
            "providedCode": self.provided_code,
            "expectedCode": self.expected_code,
        }
        if self.time_window is not None:
            payload["timeWindow"] = self.time_window
        if self.time_offset is not None:
            payload["timeOffset"] = self.time_offset
        if self.counter is not None:
            payload["counter"] = self.counter
        return payload


@dataclass(slots=True)
class ImageDecodeResult:
    """画像デコードパイプラインの出力 DTO"""

    success: bool
    uri: Optional[str] = None
    descriptor: Optional[OTPDescriptor | ParseFailure] = None
    method: Optional[str] = None
    attempts: int = 0
    error_code: Optional[str] = None
    error: Optional[str] = None
    raw_text: Optional[str] = None
    image_info: Dict[str, Any] = field(default_factory=dict)
    processing_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "attemptsCount": self.attempts,
            "processingTime": self.processing_time_ms,
        }
        if self.method:
            payload["detectionMethod"] = self.method
        if self.descriptor is not None:
            payload["data"] = self.descriptor.to_dict()
        if self.error_code:
            payload["code"] = self.error_code
            payload["error"] = self.error
        if self.raw_text is not None and not self.success:
            payload["qrData"] = self.raw_text
        if self.image_info:
            payload["imageInfo"] = dict(self.image_info)
        return payload


__all__ = ["CodeResult", "ImageDecodeResult", "VerificationResult", "WindowCode"]
