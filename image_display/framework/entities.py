"""Entity value objects read by the display plugins.

All entities are immutable: storage hands out the same objects to every
caller, and nothing in a render pass is allowed to change them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from image_display.framework.settings import (
    parse_bool,
    parse_enum,
    parse_mapping,
    parse_optional_int,
    parse_str,
)


RESPONSIVE_IMAGE_EMPTY_IMAGE = "_empty image_"
RESPONSIVE_IMAGE_ORIGINAL_IMAGE = "_original image_"

# Stream wrapper schemes a file URI may use; each has a web URL.
FILE_URI_SCHEMES = ("public", "private", "http", "https")

ImageMappingType = Literal["image_style", "sizes"]

EFFECT_IDS = (
    "image_scale",
    "image_crop",
    "image_scale_and_crop",
    "image_resize",
    "image_desaturate",
)
CROP_ANCHORS = tuple(
    f"{x}-{y}" for x in ("left", "center", "right") for y in ("top", "center", "bottom")
)


@dataclass(frozen=True)
class ImageStyleMapping:
    breakpoint_id: str
    multiplier: str = "1x"
    image_mapping_type: ImageMappingType = "image_style"
    image_style: str = ""
    sizes: str = ""
    sizes_image_styles: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: Any, path: str) -> "ImageStyleMapping":
        data = parse_mapping(raw, path)
        breakpoint_id = parse_str(data.get("breakpoint_id"), f"{path}.breakpoint_id")
        if not breakpoint_id:
            raise ValueError(f"Invalid config value for {path}.breakpoint_id: must be non-empty")
        mapping_type = parse_enum(
            data.get("image_mapping_type"),
            f"{path}.image_mapping_type",
            allowed=("image_style", "sizes"),
            default="image_style",
        )
        multiplier = parse_str(data.get("multiplier"), f"{path}.multiplier", default="1x") or "1x"

        image_mapping = data.get("image_mapping")
        if mapping_type == "image_style":
            return cls(
                breakpoint_id=breakpoint_id,
                multiplier=multiplier,
                image_mapping_type="image_style",
                image_style=parse_str(image_mapping, f"{path}.image_mapping"),
            )

        sizes_cfg = parse_mapping(image_mapping, f"{path}.image_mapping")
        raw_styles = sizes_cfg.get("sizes_image_styles") or []
        if not isinstance(raw_styles, (list, tuple)):
            raise ValueError(f"Invalid config type for {path}.image_mapping.sizes_image_styles: expected list")
        styles = tuple(
            parse_str(style_id, f"{path}.image_mapping.sizes_image_styles[{idx}]")
            for idx, style_id in enumerate(raw_styles)
        )
        return cls(
            breakpoint_id=breakpoint_id,
            multiplier=multiplier,
            image_mapping_type="sizes",
            sizes=parse_str(sizes_cfg.get("sizes"), f"{path}.image_mapping.sizes"),
            sizes_image_styles=styles,
        )

    def is_empty(self) -> bool:
        """True when the mapping points at no image style (blank or the empty-image placeholder)."""

        return all(
            style_id in ("", RESPONSIVE_IMAGE_EMPTY_IMAGE) for style_id in self.image_style_ids()
        )

    def image_style_ids(self) -> tuple[str, ...]:
        if self.image_mapping_type == "sizes":
            return self.sizes_image_styles
        return (self.image_style,)


@dataclass(frozen=True)
class ResponsiveImageStyle:
    id: str
    label: str
    breakpoint_group: str = ""
    fallback_image_style: str = ""
    image_style_mappings: tuple[ImageStyleMapping, ...] = ()

    @classmethod
    def from_dict(cls, style_id: str, raw: Any) -> "ResponsiveImageStyle":
        path = f"responsive_image_styles.{style_id}"
        data = parse_mapping(raw, path)
        raw_mappings = data.get("image_style_mappings") or []
        if not isinstance(raw_mappings, (list, tuple)):
            raise ValueError(f"Invalid config type for {path}.image_style_mappings: expected list")
        mappings = tuple(
            ImageStyleMapping.from_dict(item, f"{path}.image_style_mappings[{idx}]")
            for idx, item in enumerate(raw_mappings)
        )
        return cls(
            id=style_id,
            label=parse_str(data.get("label"), f"{path}.label") or style_id,
            breakpoint_group=parse_str(data.get("breakpoint_group"), f"{path}.breakpoint_group"),
            fallback_image_style=parse_str(
                data.get("fallback_image_style"), f"{path}.fallback_image_style"
            ),
            image_style_mappings=mappings,
        )

    def has_image_style_mappings(self) -> bool:
        return any(not mapping.is_empty() for mapping in self.image_style_mappings)

    def get_keyed_image_style_mappings(self) -> dict[str, dict[str, ImageStyleMapping]]:
        """Non-empty mappings keyed by breakpoint id, then multiplier."""

        keyed: dict[str, dict[str, ImageStyleMapping]] = {}
        for mapping in self.image_style_mappings:
            if mapping.is_empty():
                continue
            keyed.setdefault(mapping.breakpoint_id, {})[mapping.multiplier] = mapping
        return keyed

    def get_image_style_ids(self) -> list[str]:
        candidates = [self.fallback_image_style]
        for mapping in self.image_style_mappings:
            candidates.extend(mapping.image_style_ids())

        skip = {"", RESPONSIVE_IMAGE_EMPTY_IMAGE, RESPONSIVE_IMAGE_ORIGINAL_IMAGE}
        ids: list[str] = []
        for style_id in candidates:
            if style_id in skip or style_id in ids:
                continue
            ids.append(style_id)
        return ids

    def get_cache_tags(self) -> list[str]:
        return [f"config:responsive_image.styles.{self.id}"]


@dataclass(frozen=True)
class ImageEffect:
    id: str
    width: int | None = None
    height: int | None = None
    upscale: bool = False
    anchor: str = "center-center"

    @classmethod
    def from_dict(cls, raw: Any, path: str) -> "ImageEffect":
        data = parse_mapping(raw, path)
        effect_id = parse_enum(data.get("id"), f"{path}.id", allowed=EFFECT_IDS, default="")
        width = parse_optional_int(data.get("width"), f"{path}.width")
        height = parse_optional_int(data.get("height"), f"{path}.height")
        upscale = parse_bool(data.get("upscale", False), f"{path}.upscale")
        anchor = parse_enum(data.get("anchor"), f"{path}.anchor", allowed=CROP_ANCHORS, default="center-center")

        if effect_id == "image_scale":
            if width is None and height is None:
                raise ValueError(f"Invalid config value for {path}: image_scale needs width or height")
        elif effect_id != "image_desaturate":
            if width is None or height is None:
                raise ValueError(f"Invalid config value for {path}: {effect_id} needs width and height")
        for name, value in (("width", width), ("height", height)):
            if value is not None and value <= 0:
                raise ValueError(f"Invalid config value for {path}.{name}: must be > 0")

        return cls(id=effect_id, width=width, height=height, upscale=upscale, anchor=anchor)

    def transform_dimensions(
        self, width: int | None, height: int | None
    ) -> tuple[int | None, int | None]:
        if self.id == "image_desaturate":
            return width, height
        if self.id == "image_scale":
            if not width or not height:
                return None, None
            return scale_dimensions(width, height, self.width, self.height, upscale=self.upscale)
        return self.width, self.height


def scale_dimensions(
    width: int,
    height: int,
    target_width: int | None,
    target_height: int | None,
    *,
    upscale: bool = False,
) -> tuple[int, int]:
    """Fit (width, height) into the target box keeping the aspect ratio."""

    aspect = height / width
    if target_width and (not target_height or aspect < target_height / target_width):
        new_w, new_h = target_width, int(round(target_width * aspect))
    else:
        assert target_height is not None
        new_w, new_h = int(round(target_height / aspect)), target_height

    if not upscale and (new_w >= width or new_h >= height):
        return width, height
    return max(1, new_w), max(1, new_h)


@dataclass(frozen=True)
class ImageStyle:
    id: str
    label: str
    effects: tuple[ImageEffect, ...] = ()

    @classmethod
    def from_dict(cls, style_id: str, raw: Any) -> "ImageStyle":
        path = f"image_styles.{style_id}"
        data = parse_mapping(raw, path)
        raw_effects = data.get("effects") or []
        if not isinstance(raw_effects, (list, tuple)):
            raise ValueError(f"Invalid config type for {path}.effects: expected list")
        return cls(
            id=style_id,
            label=parse_str(data.get("label"), f"{path}.label") or style_id,
            effects=tuple(
                ImageEffect.from_dict(effect, f"{path}.effects[{idx}]")
                for idx, effect in enumerate(raw_effects)
            ),
        )

    def get_cache_tags(self) -> list[str]:
        return [f"config:image.style.{self.id}"]

    def transform_dimensions(
        self, width: int | None, height: int | None
    ) -> tuple[int | None, int | None]:
        for effect in self.effects:
            width, height = effect.transform_dimensions(width, height)
        return width, height

    def build_uri(self, source_uri: str) -> str:
        scheme, sep, target = source_uri.partition("://")
        if not sep or not scheme:
            raise ValueError(f"Invalid file URI (missing scheme): {source_uri!r}")
        return f"{scheme}://styles/{self.id}/{scheme}/{target}"


@dataclass(frozen=True)
class FileEntity:
    id: int
    uri: str
    filename: str = ""
    filemime: str = ""

    @classmethod
    def from_dict(cls, file_id: Any, raw: Any) -> "FileEntity":
        path = f"files.{file_id}"
        data = parse_mapping(raw, path)
        uri = parse_str(data.get("uri"), f"{path}.uri")
        scheme, sep, _target = uri.partition("://")
        if not sep:
            raise ValueError(f"Invalid config value for {path}.uri: expected scheme://target, got {uri!r}")
        if scheme not in FILE_URI_SCHEMES:
            raise ValueError(
                f"Invalid config value for {path}.uri: unsupported scheme {scheme!r} "
                f"(expected one of {', '.join(FILE_URI_SCHEMES)})"
            )
        default_name = uri.rsplit("/", 1)[-1]
        return cls(
            id=int(file_id),
            uri=uri,
            filename=parse_str(data.get("filename"), f"{path}.filename") or default_name,
            filemime=parse_str(data.get("filemime"), f"{path}.filemime"),
        )

    def get_file_uri(self) -> str:
        return self.uri

    def get_cache_tags(self) -> list[str]:
        return [f"file:{self.id}"]


@dataclass(frozen=True)
class ContentEntity:
    """The entity that owns an image field (a node, a user, ...)."""

    entity_type: str
    id: int | None = None
    label: str = ""

    def is_new(self) -> bool:
        return self.id is None

    def canonical_path(self) -> str:
        if self.is_new():
            raise ValueError(f"Unsaved {self.entity_type} entity has no canonical path")
        return f"/{self.entity_type}/{self.id}"


@dataclass(frozen=True)
class Account:
    """The actor behind the current request."""

    id: int = 0
    name: str = "anonymous"
    permissions: frozenset[str] = field(default_factory=frozenset)

    def is_anonymous(self) -> bool:
        return self.id == 0

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions
