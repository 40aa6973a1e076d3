"""Image preprocessing steps tried before each barcode decode attempt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from PIL import Image, ImageEnhance, ImageOps

CONTRAST_FACTOR = 1.5
GRAYSCALE_CONTRAST_FACTOR = 1.3

_RESAMPLE_LANCZOS = Image.Resampling.LANCZOS


@dataclass(frozen=True)
class ImageTransform:
    name: str
    apply: Callable[[Image.Image, int], Image.Image]
    only_when_larger_than: Optional[int] = None

    def applies_to(self, image: Image.Image) -> bool:
        if self.only_when_larger_than is None:
            return True
        return max(image.size) > self.only_when_larger_than


@dataclass(frozen=True)
class PipelineProfile:
    """Which transforms run, in which order, and how large images are bounded."""

    name: str
    transform_names: Tuple[str, ...]
    downscale_threshold: int
    max_dimension: int
    downscale_first: bool = False


def flatten_alpha(image: Image.Image) -> Image.Image:
    """Composite transparent images over white and return an RGB/L image."""

    if image.mode in ("L", "RGB"):
        return image
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
    return image.convert("RGB")


def downscale(image: Image.Image, max_dimension: int) -> Image.Image:
    """Shrink *image* so its longest side is *max_dimension*, keeping aspect."""

    width, height = image.size
    longest = max(width, height)
    if longest <= max_dimension:
        return image.copy()
    scale = max_dimension / float(longest)
    size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return image.resize(size, _RESAMPLE_LANCZOS)


def _identity(image: Image.Image, max_dimension: int) -> Image.Image:
    return image


def _grayscale(image: Image.Image, max_dimension: int) -> Image.Image:
    return ImageOps.grayscale(image)


def _contrast(image: Image.Image, max_dimension: int) -> Image.Image:
    return ImageEnhance.Contrast(image).enhance(CONTRAST_FACTOR)


def _inverted(image: Image.Image, max_dimension: int) -> Image.Image:
    if image.mode not in ("L", "RGB"):
        image = image.convert("RGB")
    return ImageOps.invert(image)


def _grayscale_contrast(image: Image.Image, max_dimension: int) -> Image.Image:
    return ImageEnhance.Contrast(ImageOps.grayscale(image)).enhance(GRAYSCALE_CONTRAST_FACTOR)


def _downscaled(image: Image.Image, max_dimension: int) -> Image.Image:
    return downscale(image, max_dimension)


TRANSFORMS: Dict[str, Callable[[Image.Image, int], Image.Image]] = {
    "original": _identity,
    "grayscale": _grayscale,
    "contrast": _contrast,
    "inverted": _inverted,
    "grayscale_contrast": _grayscale_contrast,
    "resized": _downscaled,
}

FAST = PipelineProfile(
    name="fast",
    transform_names=("original", "grayscale_contrast", "inverted", "contrast"),
    downscale_threshold=800,
    max_dimension=640,
    downscale_first=True,
)

THOROUGH = PipelineProfile(
    name="thorough",
    transform_names=("original", "grayscale", "contrast", "inverted", "grayscale_contrast", "resized"),
    downscale_threshold=1000,
    max_dimension=800,
)

PROFILES: Dict[str, PipelineProfile] = {FAST.name: FAST, THOROUGH.name: THOROUGH}


def profile_for(name: Optional[str]) -> PipelineProfile:
    if not name:
        return THOROUGH
    try:
        return PROFILES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown pipeline profile: {name}") from None


def build_transforms(profile: PipelineProfile) -> Tuple[ImageTransform, ...]:
    """Materialise *profile* into the ordered transform list."""

    transforms = []
    for name in profile.transform_names:
        # 縮小版は閾値を超える画像のみ
        threshold = profile.downscale_threshold if name == "resized" else None
        transforms.append(ImageTransform(name=name, apply=TRANSFORMS[name], only_when_larger_than=threshold))
    return tuple(transforms)


__all__ = [
    "CONTRAST_FACTOR",
    "FAST",
    "GRAYSCALE_CONTRAST_FACTOR",
    "ImageTransform",
    "PROFILES",
    "PipelineProfile",
    "THOROUGH",
    "TRANSFORMS",
    "build_transforms",
    "downscale",
    "flatten_alpha",
    "profile_for",
]
