import pytest
from PIL import Image

from otpcore.infrastructure.barcode import PixelBuffer
from otpcore.infrastructure.image_transforms import (
    FAST,
    THOROUGH,
    TRANSFORMS,
    ImageTransform,
    build_transforms,
    downscale,
    flatten_alpha,
    profile_for,
)


def _gray(value: int, size=(60, 60)) -> Image.Image:
    return Image.new("RGB", size, (value, value, value))


class TestTransforms:
    def test_identity_returns_same_pixels(self) -> None:
        image = _gray(100)
        assert TRANSFORMS["original"](image, 800).tobytes() == image.tobytes()

    def test_grayscale_produces_single_channel(self) -> None:
        assert TRANSFORMS["grayscale"](Image.new("RGB", (60, 60), "red"), 800).mode == "L"

    def test_inversion(self) -> None:
        inverted = TRANSFORMS["inverted"](_gray(0), 800)
        assert inverted.getpixel((0, 0)) == (255, 255, 255)

    def test_contrast_stretches_away_from_mean(self) -> None:
        image = Image.new("L", (60, 60), 100)
        image.paste(200, (0, 0, 30, 60))

        boosted = TRANSFORMS["contrast"](image, 800)

        assert boosted.getpixel((0, 0)) > 200
        assert boosted.getpixel((59, 0)) < 100

    def test_grayscale_contrast(self) -> None:
        result = TRANSFORMS["grayscale_contrast"](_gray(100), 800)
        assert result.mode == "L"

    def test_downscale_preserves_aspect_ratio(self) -> None:
        result = downscale(_gray(0, size=(2000, 1000)), 800)
        assert result.size == (800, 400)

    def test_downscale_leaves_small_images(self) -> None:
        image = _gray(0, size=(300, 200))
        result = downscale(image, 800)
        assert result.size == (300, 200)
        assert result is not image


class TestFlattenAlpha:
    def test_transparent_pixels_become_white(self) -> None:
        image = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
        flattened = flatten_alpha(image)
        assert flattened.mode == "RGB"
        assert flattened.getpixel((0, 0)) == (255, 255, 255)

    def test_palette_image_is_converted(self) -> None:
        assert flatten_alpha(Image.new("P", (10, 10))).mode == "RGB"

    def test_rgb_is_untouched(self) -> None:
        image = _gray(10)
        assert flatten_alpha(image) is image


class TestProfiles:
    def test_resized_transform_is_conditional(self) -> None:
        transforms = {transform.name: transform for transform in build_transforms(THOROUGH)}

        assert transforms["resized"].only_when_larger_than == 1000
        assert not transforms["resized"].applies_to(_gray(0, size=(1000, 10)))
        assert transforms["resized"].applies_to(_gray(0, size=(10, 1001)))
        assert transforms["original"].applies_to(_gray(0, size=(10, 5000)))

    def test_thorough_order(self) -> None:
        assert [t.name for t in build_transforms(THOROUGH)] == [
            "original",
            "grayscale",
            "contrast",
            "inverted",
            "grayscale_contrast",
            "resized",
        ]

    def test_fast_is_smaller(self) -> None:
        assert len(FAST.transform_names) < len(THOROUGH.transform_names)
        assert FAST.max_dimension < THOROUGH.max_dimension

    @pytest.mark.parametrize("name, expected", [("fast", FAST), (" Thorough ", THOROUGH), (None, THOROUGH)])
    def test_profile_for(self, name, expected) -> None:
        assert profile_for(name) is expected

    def test_unknown_profile(self) -> None:
        with pytest.raises(ValueError):
            profile_for("turbo")

    def test_custom_transform(self) -> None:
        transform = ImageTransform(name="noop", apply=lambda image, cap: image)
        assert transform.applies_to(_gray(0))


class TestPixelBuffer:
    def test_round_trips_dimensions(self) -> None:
        buffer = PixelBuffer.from_image(_gray(30, size=(70, 50)))
        assert (buffer.width, buffer.height, buffer.mode) == (70, 50, "RGB")
        assert len(buffer.data) == 70 * 50 * 3
        assert len(buffer.grayscale_bytes()) == 70 * 50

    def test_unusual_modes_are_converted(self) -> None:
        buffer = PixelBuffer.from_image(Image.new("CMYK", (60, 60)))
        assert buffer.mode == "RGB"


def test_pyzbar_decoder_finds_nothing_on_blank_image() -> None:
    pytest.importorskip("pyzbar.pyzbar")
    from otpcore.infrastructure.barcode import PyzbarDecoder

    decoder = PyzbarDecoder()
    assert decoder.decode(PixelBuffer.from_image(Image.new("L", (100, 100), 255))) is None
