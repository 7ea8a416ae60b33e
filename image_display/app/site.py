"""Wires storages, configuration and plugins together from a site config mapping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from image_display.framework.access import AccessServices
from image_display.framework.entities import (
    Account,
    ContentEntity,
    FileEntity,
    ImageStyle,
    ResponsiveImageStyle,
)
from image_display.framework.formatter import (
    FieldItem,
    FieldItemList,
    FormatterBase,
    FormatterManager,
    FormatterServices,
)
from image_display.framework.routing import Route, Router
from image_display.framework.settings import ConfigFactory, parse_mapping, parse_str
from image_display.framework.storage import InMemoryEntityStorage
from image_display.framework.urls import FileUrlGenerator
from image_display.impl.current import access_plugins as _access_plugins
from image_display.impl.current import formatter_plugins as _formatter_plugins

_access_plugins.discover()
_formatter_plugins.discover()

DEFAULT_ROUTES: dict[str, dict[str, Any]] = {
    "mailchimp.admin": {
        "path": "/admin/config/services/mailchimp",
        "requirements": {"_permission": "administer mailchimp"},
    },
    "mailchimp.lists": {
        "path": "/admin/config/services/mailchimp/lists",
        "requirements": {
            "_permission": "administer mailchimp",
            "_mailchimp_configuration_access_check": "TRUE",
        },
    },
}


@dataclass
class SiteServices:
    config: ConfigFactory
    responsive_image_styles: InMemoryEntityStorage[ResponsiveImageStyle]
    image_styles: InMemoryEntityStorage[ImageStyle]
    files: InMemoryEntityStorage[FileEntity]
    file_url_generator: FileUrlGenerator
    router: Router
    formatter_cfg: Mapping[str, Any]
    logger: logging.Logger | None = None

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], *, logger: logging.Logger | None = None) -> "SiteServices":
        site_cfg = parse_mapping(cfg.get("site"), "site")
        config = ConfigFactory.from_dict(cfg.get("config"))

        routes_cfg = dict(DEFAULT_ROUTES)
        routes_cfg.update(parse_mapping(cfg.get("routes"), "routes"))
        router = Router(
            (Route.from_dict(str(name), raw) for name, raw in routes_cfg.items()),
            AccessServices(config=config),
        )

        services = cls(
            config=config,
            responsive_image_styles=InMemoryEntityStorage.from_dict(
                "responsive_image_style", cfg.get("responsive_image_styles"), ResponsiveImageStyle.from_dict
            ),
            image_styles=InMemoryEntityStorage.from_dict("image_style", cfg.get("image_styles"), ImageStyle.from_dict),
            files=InMemoryEntityStorage.from_dict("file", cfg.get("files"), FileEntity.from_dict),
            file_url_generator=FileUrlGenerator(
                public_base_url=parse_str(site_cfg.get("public_base_url"), "site.public_base_url")
                or "/sites/default/files",
                private_base_path=parse_str(site_cfg.get("private_base_path"), "site.private_base_path")
                or "/system/files",
            ),
            router=router,
            formatter_cfg=parse_mapping(cfg.get("formatter"), "formatter"),
            logger=logger,
        )
        if logger:
            logger.info(
                "Site loaded: %d responsive image styles, %d image styles, %d files, %d routes",
                len(services.responsive_image_styles),
                len(services.image_styles),
                len(services.files),
                len(router.available()),
            )
        return services

    def formatter_services(self) -> FormatterServices:
        return FormatterServices(
            responsive_image_style_storage=self.responsive_image_styles,
            image_style_storage=self.image_styles,
            file_url_generator=self.file_url_generator,
        )

    def create_formatter(
        self, plugin_id: str | None = None, settings: Mapping[str, Any] | None = None
    ) -> FormatterBase:
        plugin_id = plugin_id or parse_str(self.formatter_cfg.get("type"), "formatter.type") or "responsive_image"
        if settings is None:
            settings = parse_mapping(self.formatter_cfg.get("settings"), "formatter.settings")
        return FormatterManager.create(plugin_id, settings, self.formatter_services())

    def build_field_items(
        self,
        entity: ContentEntity,
        file_ids: Iterable[int],
        *,
        alt: str = "",
        item_attributes: Mapping[int, Mapping[str, Any]] | None = None,
    ) -> FieldItemList:
        """Build a field item list, resolving each referenced file from storage."""

        ids = list(file_ids)
        loaded = self.files.load_multiple(ids)
        items = tuple(FieldItem(target_id=file_id, alt=alt, entity=loaded.get(file_id)) for file_id in ids)
        return FieldItemList(entity=entity, items=items, item_attributes=dict(item_attributes or {}))


def parse_entity_ref(value: str) -> ContentEntity:
    """Parse ``TYPE:ID`` or ``TYPE:new`` into a content entity."""

    entity_type, sep, raw_id = (value or "").partition(":")
    if not sep or not entity_type.strip() or not raw_id.strip():
        raise ValueError(f"Invalid entity reference {value!r}: expected TYPE:ID or TYPE:new")
    raw_id = raw_id.strip()
    if raw_id.lower() == "new":
        return ContentEntity(entity_type=entity_type.strip())
    try:
        entity_id = int(raw_id)
    except ValueError as exc:
        raise ValueError(f"Invalid entity id in {value!r}: must be an int or 'new'") from exc
    return ContentEntity(entity_type=entity_type.strip(), id=entity_id)


def build_account(permissions: Iterable[str] = (), *, uid: int = 1, name: str = "admin") -> Account:
    perms = frozenset(p.strip() for p in permissions if p and p.strip())
    return Account(id=uid, name=name, permissions=perms)
