"""Recover a credential URI from a photograph of a QR code.

The pipeline opens the image with Pillow, rejects images below the minimum
size and shrinks oversized photos.  It then runs the profile's transforms
one after another, handing each candidate to the barcode decoder until one
yields text with a credential URI prefix.  The decoded URI is handed to the
parser; the outcome is reported as an :class:`ImageDecodeResult` instead of
raising.
"""

from __future__ import annotations

import base64
import binascii
import io
import re
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image, ImageOps

from otpcore.application.dto import ImageDecodeResult
from otpcore.domain.entities import OTPDescriptor
from otpcore.domain.exceptions import ImageDecodeError, OTPError
from otpcore.domain.parser import has_credential_prefix, parse_credential_uri
from otpcore.logging_config import StructuredLogger, structured_logger

from .barcode import BarcodeDecoder, PixelBuffer, PyzbarDecoder
from .image_transforms import (
    THOROUGH,
    ImageTransform,
    PipelineProfile,
    build_transforms,
    downscale,
    flatten_alpha,
)

MIN_DIMENSION = 50
MAX_DIMENSION = 4000

SUPPORTED_FORMATS: Tuple[str, ...] = ("jpeg", "jpg", "png", "gif", "webp", "bmp", "tiff")

_DATA_URL_PATTERN = re.compile(r"^data:(image/[a-zA-Z]+);base64,(.+)$", re.DOTALL)

_logger = structured_logger(__name__, component="image_pipeline")


def supported_formats() -> List[str]:
    return list(SUPPORTED_FORMATS)


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """Split a ``data:image/<type>;base64,...`` URL into bytes and MIME type."""

    match = _DATA_URL_PATTERN.match((data_url or "").strip())
    if not match:
        raise ImageDecodeError("Invalid base64 image format", code="InvalidPayload")
    mime_type, payload = match.groups()
    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError("Invalid base64 image data", code="InvalidPayload") from exc
    return data, mime_type.lower()


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class ImageDecodePipeline:
    """QR 画像からの URI 抽出"""

    def __init__(
        self,
        decoder: Optional[BarcodeDecoder] = None,
        profile: PipelineProfile = THOROUGH,
    ) -> None:
        self._decoder = decoder
        self.profile = profile
        self.transforms: Tuple[ImageTransform, ...] = build_transforms(profile)

    @property
    def decoder(self) -> BarcodeDecoder:
        if self._decoder is None:
            self._decoder = PyzbarDecoder()
        return self._decoder

    def stats(self) -> Dict[str, Any]:
        return {
            "profile": self.profile.name,
            "transforms": [transform.name for transform in self.transforms],
            "downscaleThreshold": self.profile.downscale_threshold,
            "maxDimension": self.profile.max_dimension,
            "minImageSize": MIN_DIMENSION,
            "maxImageSize": MAX_DIMENSION,
            "supportedFormats": supported_formats(),
            "imageLibrary": "Pillow",
            "qrLibrary": getattr(self._decoder, "name", PyzbarDecoder.name),
        }

    def load_image(self, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as opened:
                opened = ImageOps.exif_transpose(opened)
                opened.load()
                return flatten_alpha(opened).copy()
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ImageDecodeError("Unable to read image data", code="InvalidImage") from exc

    @staticmethod
    def validate_dimensions(image: Image.Image, max_dimension: Optional[int] = MAX_DIMENSION) -> None:
        """Reject images below the minimum or, when *max_dimension* is set, above it."""

        width, height = image.size
        if width < MIN_DIMENSION or height < MIN_DIMENSION:
            raise ImageDecodeError(
                f"Image too small (minimum {MIN_DIMENSION}x{MIN_DIMENSION})",
                code="ImageTooSmall",
            )
        if max_dimension is not None and (width > max_dimension or height > max_dimension):
            raise ImageDecodeError(
                f"Image too large (maximum {max_dimension}x{max_dimension})",
                code="ImageTooLarge",
            )

    def prepare(self, image: Image.Image) -> Image.Image:
        # 上限を超える写真は拒否せず縮小してから変換に回す
        if max(image.size) > MAX_DIMENSION:
            image = downscale(image, MAX_DIMENSION)
        if self.profile.downscale_first and max(image.size) > self.profile.downscale_threshold:
            return downscale(image, self.profile.max_dimension)
        return image

    def _attempt(
        self,
        decoder: BarcodeDecoder,
        transform: ImageTransform,
        source: Image.Image,
        log: StructuredLogger,
    ) -> Optional[str]:
        # 変換やデコーダの失敗は次の変換へ進む
        try:
            candidate = transform.apply(source, self.profile.max_dimension)
            return decoder.decode(PixelBuffer.from_image(candidate))
        except Exception as exc:
            log.warning(
                "image_pipeline.transform_failed",
                method=transform.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

    def decode(self, data: bytes, mime_type: Optional[str] = None) -> ImageDecodeResult:
        started = time.monotonic()
        log = _logger.bind(profile=self.profile.name)
        image_info: Dict[str, Any] = {"size": len(data or b"")}
        if mime_type:
            image_info["mimeType"] = mime_type

        try:
            image = self.load_image(data)
            image_info.update({"width": image.width, "height": image.height, "mode": image.mode})
            self.validate_dimensions(image, max_dimension=None)
        except ImageDecodeError as exc:
            log.info("image_pipeline.rejected", error_code=exc.code, **image_info)
            return ImageDecodeResult(
                success=False,
                error_code=exc.code,
                error=str(exc),
                image_info=image_info,
                processing_time_ms=_elapsed_ms(started),
            )

        attempts = 0
        unrecognized: Optional[str] = None
        decoder = self.decoder
        source = self.prepare(image)
        for transform in self.transforms:
            if not transform.applies_to(source):
                continue
            attempts += 1
            text = self._attempt(decoder, transform, source, log)
            log.debug("image_pipeline.attempt", method=transform.name, attempt=attempts, decoded=bool(text))
            if not text:
                continue
            if not has_credential_prefix(text):
                unrecognized = text
                continue
            return self._parse(text, transform.name, attempts, image_info, started, log)

        log.info("image_pipeline.no_code_found", attempts=attempts)
        return ImageDecodeResult(
            success=False,
            attempts=attempts,
            error_code="NoCodeFound",
            error="No QR code found in image",
            raw_text=unrecognized,
            image_info=image_info,
            processing_time_ms=_elapsed_ms(started),
        )

    def decode_data_url(self, data_url: str) -> ImageDecodeResult:
        try:
            data, mime_type = decode_data_url(data_url)
        except ImageDecodeError as exc:
            return ImageDecodeResult(success=False, error_code=exc.code, error=str(exc))
        return self.decode(data, mime_type)

    def _parse(
        self,
        text: str,
        method: str,
        attempts: int,
        image_info: Dict[str, Any],
        started: float,
        log: StructuredLogger,
    ) -> ImageDecodeResult:
        try:
            parsed = parse_credential_uri(text)
        except OTPError as exc:
            log.info(
                "image_pipeline.invalid_payload",
                method=method,
                uri=text,
                error_code=exc.code,
            )
            return ImageDecodeResult(
                success=False,
                method=method,
                attempts=attempts,
                error_code="InvalidPayload",
                error=str(exc),
                raw_text=text,
                image_info=image_info,
                processing_time_ms=_elapsed_ms(started),
            )

        log.info(
            "image_pipeline.decoded",
            method=method,
            attempts=attempts,
            uri=text,
            valid=parsed.valid,
            correlation_id=parsed.correlation_id if isinstance(parsed, OTPDescriptor) else None,
        )
        return ImageDecodeResult(
            success=True,
            uri=text,
            descriptor=parsed,
            method=method,
            attempts=attempts,
            image_info=image_info,
            processing_time_ms=_elapsed_ms(started),
        )


def decode_with_timeout(
    pipeline: ImageDecodePipeline,
    data: bytes,
    timeout: float,
    mime_type: Optional[str] = None,
) -> ImageDecodeResult:
    """Run ``pipeline.decode`` on a worker thread and give up after *timeout*.

    The worker cannot be interrupted; on timeout it keeps running in the
    background and its result is discarded.
    """

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="otpcore-decode")
    future = executor.submit(pipeline.decode, data, mime_type)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError as exc:
        _logger.warning("image_pipeline.timeout", timeout=timeout, profile=pipeline.profile.name)
        raise TimeoutError(f"Image decoding exceeded {timeout} seconds") from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


__all__ = [
    "ImageDecodePipeline",
    "MAX_DIMENSION",
    "MIN_DIMENSION",
    "SUPPORTED_FORMATS",
    "decode_data_url",
    "decode_with_timeout",
    "supported_formats",
]
