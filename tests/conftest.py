import base64
import io
import logging
import uuid
from typing import Callable, List, Optional

import pytest
from PIL import Image, ImageDraw

from otpcore.domain.entities import OTPDescriptor, OTPVariant
from otpcore.infrastructure.barcode import PixelBuffer

RFC4226_SECRET = b"12345678901234567890"
RFC4226_BASE32 = base64.b32encode(RFC4226_SECRET).decode("ascii")
RFC4226_HEX = RFC4226_SECRET.hex()

SAMPLE_URI = (
    "otpauth://totp/ACME%20Co:john@example.com"
    f"?secret={RFC4226_BASE32}&issuer=ACME%20Co&algorithm=SHA1&digits=6&period=30"
)


@pytest.fixture
def rfc_secret() -> bytes:
    return RFC4226_SECRET


@pytest.fixture
def make_descriptor() -> Callable[..., OTPDescriptor]:
    def _make(
        variant: OTPVariant = OTPVariant.TOTP,
        secret: bytes = RFC4226_SECRET,
        **overrides,
    ) -> OTPDescriptor:
        values = {
            "label": "ACME:john",
            "issuer": "ACME",
            "account": "john",
            "correlation_id": str(uuid.uuid4()),
        }
        values.update(overrides)
        return OTPDescriptor(variant=variant, secret=secret, **values)

    return _make


class FakeDecoder:
    """Barcode decoder stand-in returning scripted results per attempt."""

    name = "fake"

    def __init__(self, results: Optional[List[object]] = None) -> None:
        self.results = list(results or [])
        self.calls: List[PixelBuffer] = []

    def decode(self, pixels: PixelBuffer) -> Optional[str]:
        self.calls.append(pixels)
        if not self.results:
            return None
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_decoder_factory() -> Callable[..., FakeDecoder]:
    return FakeDecoder


def render_image(
    size=(200, 200),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    color = (255, 255, 255, 0) if mode == "RGBA" else "white"
    image = Image.new(mode, size, color)
    draw = ImageDraw.Draw(image)
    width, height = size
    fill = (0, 0, 0, 255) if mode == "RGBA" else "black"
    draw.rectangle((width // 4, height // 4, 3 * width // 4, 3 * height // 4), fill=fill)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def image_bytes() -> bytes:
    return render_image()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    logger = logging.getLogger("otpcore")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def render() -> Callable[..., bytes]:
    return render_image


@pytest.fixture
def sample_uri() -> str:
    return SAMPLE_URI


@pytest.fixture
def rfc_base32() -> str:
    return RFC4226_BASE32


@pytest.fixture
def rfc_hex() -> str:
    return RFC4226_HEX
