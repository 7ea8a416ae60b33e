"""Image style derivatives.

Applies an image style's effects to an original image with Pillow and saves
the result. Effect geometry mirrors `ImageStyle.transform_dimensions`, so the
size written here is the size the markup advertises.
"""

from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from image_display.framework.entities import ImageEffect, ImageStyle, scale_dimensions


class DerivativeError(RuntimeError):
    """Raised when a derivative image cannot be produced."""


def _anchor_offset(anchor: str, width: int, height: int, target_w: int, target_h: int) -> tuple[int, int]:
    x_key, _, y_key = anchor.partition("-")
    if x_key not in ("left", "center", "right") or y_key not in ("top", "center", "bottom"):
        raise ValueError(f"Invalid crop anchor: {anchor!r}")

    def _resolve(key: str, current: int, target: int) -> int:
        if key in ("left", "top"):
            return 0
        if key in ("right", "bottom"):
            return max(0, current - target)
        return max(0, int(round((current - target) / 2)))

    return _resolve(x_key, width, target_w), _resolve(y_key, height, target_h)


def _crop(im: Image.Image, width: int, height: int, anchor: str) -> Image.Image:
    x, y = _anchor_offset(anchor, im.width, im.height, width, height)
    return im.crop((x, y, x + width, y + height))


def apply_effect(im: Image.Image, effect: ImageEffect) -> Image.Image:
    if effect.id == "image_desaturate":
        return ImageOps.grayscale(im).convert(im.mode)

    if effect.id == "image_scale":
        new_w, new_h = scale_dimensions(im.width, im.height, effect.width, effect.height, upscale=effect.upscale)
        if (new_w, new_h) == im.size:
            return im
        return im.resize((new_w, new_h), resample=Image.Resampling.LANCZOS)

    assert effect.width is not None and effect.height is not None
    if effect.id == "image_resize":
        return im.resize((effect.width, effect.height), resample=Image.Resampling.LANCZOS)
    if effect.id == "image_crop":
        return _crop(im, effect.width, effect.height, effect.anchor)
    if effect.id == "image_scale_and_crop":
        scale = max(effect.width / im.width, effect.height / im.height)
        scaled = im.resize(
            (max(1, int(round(im.width * scale))), max(1, int(round(im.height * scale)))),
            resample=Image.Resampling.LANCZOS,
        )
        return _crop(scaled, effect.width, effect.height, effect.anchor)

    raise ValueError(f"Unsupported image effect: {effect.id}")


def create_derivative(style: ImageStyle, source_path: str, derivative_path: str) -> str:
    """Write ``style`` applied to ``source_path`` to ``derivative_path``; returns the output path."""

    src = Path(source_path)
    dst = Path(derivative_path)
    if not src.exists():
        raise FileNotFoundError(f"Source image does not exist: {src}")
    dst.parent.mkdir(parents=True, exist_ok=True)

    try:
        with Image.open(src) as opened:
            im = opened.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise DerivativeError(f"Cannot read source image {src}: {exc}") from exc

    for effect in style.effects:
        im = apply_effect(im, effect)

    ext = dst.suffix.lower().lstrip(".")
    try:
        if ext == "png":
            im.save(dst, format="PNG", optimize=True)
        elif ext == "webp":
            im.save(dst, format="WEBP", quality=90)
        else:
            im.save(dst, format="JPEG", quality=90, optimize=True)
    except OSError as exc:
        raise DerivativeError(f"Cannot write derivative {dst} for style {style.id}: {exc}") from exc

    return str(dst)
