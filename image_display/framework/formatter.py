from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from image_display.framework.entities import (
    ContentEntity,
    FileEntity,
    ImageStyle,
    ResponsiveImageStyle,
)
from image_display.framework.storage import EntityStorage
from image_display.framework.urls import FileUrlGenerator, Url


@dataclass(frozen=True)
class FieldItem:
    """One value of an image field.

    ``entity`` is the referenced file as resolved by the upstream loading
    pass; None when the file could not be loaded.
    """

    target_id: int
    alt: str = ""
    title: str = ""
    width: int | None = None
    height: int | None = None
    entity: FileEntity | None = None


@dataclass(frozen=True)
class FieldItemList:
    entity: ContentEntity
    items: tuple[FieldItem, ...] = ()
    field_name: str = "field_image"
    item_attributes: Mapping[int, Mapping[str, Any]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.items)

    def attributes_for(self, delta: int) -> dict[str, Any]:
        return dict(self.item_attributes.get(delta, {}))


@dataclass(frozen=True)
class RenderDescriptor:
    theme: str
    item: FieldItem
    item_attributes: dict[str, Any]
    responsive_image_style_id: str
    url: Url | None
    cache_tags: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "theme": self.theme,
            "file": self.item.entity.uri if self.item.entity else None,
            "target_id": self.item.target_id,
            "alt": self.item.alt,
            "item_attributes": dict(self.item_attributes),
            "responsive_image_style_id": self.responsive_image_style_id,
            "url": self.url.to_string() if self.url else None,
            "cache": {"tags": list(self.cache_tags)},
        }


@dataclass(frozen=True)
class FormElement:
    title: str
    type: str
    default_value: Any = ""
    options: dict[str, str] = field(default_factory=dict)
    required: bool = False
    empty_option: str | None = None


@dataclass(frozen=True)
class FormatterServices:
    responsive_image_style_storage: EntityStorage[ResponsiveImageStyle]
    image_style_storage: EntityStorage[ImageStyle]
    file_url_generator: FileUrlGenerator = field(default_factory=FileUrlGenerator)


class FormatterBase:
    plugin_id: str = ""
    label: str = ""
    field_types: tuple[str, ...] = ()

    def __init__(self, settings: Mapping[str, Any] | None = None):
        merged = dict(self.default_settings())
        for key, value in (settings or {}).items():
            if key not in merged:
                raise ValueError(f"Unknown setting for formatter {self.plugin_id}: {key}")
            merged[key] = value
        self._settings = merged
        self.logger = logging.getLogger(f"{__name__}.{self.plugin_id}")

    @classmethod
    def create(cls, settings: Mapping[str, Any] | None, services: FormatterServices) -> "FormatterBase":
        return cls(settings)

    @classmethod
    def default_settings(cls) -> dict[str, Any]:
        return {}

    def get_setting(self, key: str) -> Any:
        return self._settings.get(key)

    def get_settings(self) -> dict[str, Any]:
        return dict(self._settings)

    def settings_form(self) -> dict[str, FormElement]:
        return {}

    def settings_summary(self) -> list[str]:
        return []

    def view_elements(self, items: FieldItemList) -> list[RenderDescriptor]:
        raise NotImplementedError

    def entities_to_view(self, items: FieldItemList) -> list[tuple[int, FieldItem, FileEntity]]:
        """Items whose file is resolvable, with their original delta."""

        resolved: list[tuple[int, FieldItem, FileEntity]] = []
        for delta, item in enumerate(items.items):
            if item.entity is None:
                self.logger.debug("Skipping item %s: file %s not loaded", delta, item.target_id)
                continue
            resolved.append((delta, item, item.entity))
        return resolved


_FORMATTER_REGISTRY: dict[str, type[FormatterBase]] = {}


def register_formatter(cls: type[FormatterBase]) -> type[FormatterBase]:
    plugin_id = getattr(cls, "plugin_id", None)
    if not isinstance(plugin_id, str) or not plugin_id.strip():
        raise TypeError("Formatter must define a non-empty 'plugin_id' attribute")

    key = plugin_id.strip().lower()
    if key in _FORMATTER_REGISTRY:
        raise ValueError(f"Duplicate formatter plugin id: {key}")

    _FORMATTER_REGISTRY[key] = cls
    return cls


class FormatterManager:
    @classmethod
    def available_formatters(cls, field_type: str | None = None) -> tuple[str, ...]:
        return tuple(
            sorted(
                key
                for key, formatter_cls in _FORMATTER_REGISTRY.items()
                if field_type is None or field_type in formatter_cls.field_types
            )
        )

    @classmethod
    def create(
        cls,
        plugin_id: str,
        settings: Mapping[str, Any] | None,
        services: FormatterServices,
    ) -> FormatterBase:
        key = (plugin_id or "").strip().lower()
        formatter_cls = _FORMATTER_REGISTRY.get(key)
        if formatter_cls is None:
            available = ", ".join(cls.available_formatters()) or "<none>"
            raise ValueError(f"Unknown formatter: {plugin_id} (available: {available})")
        return formatter_cls.create(settings, services)
