"""Barcode decoding adapters.

The pipeline treats the 2D-barcode reader as a replaceable black box: it
hands over a pixel buffer with its dimensions and gets text or ``None`` back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from PIL import Image

from otpcore.domain.parser import has_credential_prefix


@dataclass(frozen=True)
class PixelBuffer:
    """Raw pixels of one candidate image (Pillow raw layout for *mode*)."""

    data: bytes
    width: int
    height: int
    mode: str = "L"

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        if image.mode not in ("L", "RGB"):
            image = image.convert("RGB")
        return cls(data=image.tobytes(), width=image.width, height=image.height, mode=image.mode)

    def to_image(self) -> Image.Image:
        return Image.frombytes(self.mode, (self.width, self.height), self.data)

    def grayscale_bytes(self) -> bytes:
        if self.mode == "L":
            return self.data
        return self.to_image().convert("L").tobytes()


@runtime_checkable
class BarcodeDecoder(Protocol):
    name: str

    def decode(self, pixels: PixelBuffer) -> Optional[str]:
        ...


class PyzbarDecoder:
    """ZBar based QR reader.

    ``pyzbar`` loads the native zbar library at import time, so the import is
    deferred until a decoder is actually constructed.
    """

    name = "pyzbar"

    def __init__(self) -> None:
        from pyzbar.pyzbar import ZBarSymbol, decode

        self._decode = decode
        self._symbols = [ZBarSymbol.QRCODE]

    def decode(self, pixels: PixelBuffer) -> Optional[str]:
        results = self._decode(
            (pixels.grayscale_bytes(), pixels.width, pixels.height),
            symbols=self._symbols,
        )
        texts = [result.data.decode("utf-8", errors="replace") for result in results if result.data]
        for text in texts:
            if has_credential_prefix(text):
                return text
        return texts[0] if texts else None


__all__ = ["BarcodeDecoder", "PixelBuffer", "PyzbarDecoder"]
