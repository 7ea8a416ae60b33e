from __future__ import annotations

from typing import Any, Mapping

from image_display.foundation.cache import merge_tags
from image_display.framework.entities import ImageStyle, ResponsiveImageStyle
from image_display.framework.formatter import (
    FieldItemList,
    FormatterBase,
    FormatterServices,
    FormElement,
    RenderDescriptor,
    register_formatter,
)
from image_display.framework.settings import parse_enum, parse_str
from image_display.framework.storage import EntityStorage
from image_display.framework.urls import FileUrlGenerator, Url

THEME = "responsive_image_formatter"
LINK_TYPES = ("content", "file")


def _parse_image_link(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() == "none":
        return ""
    return parse_enum(value, "formatter.settings.image_link", allowed=("",) + LINK_TYPES, default="")


@register_formatter
class ResponsiveImageFormatter(FormatterBase):
    """Renders image field items through a responsive image style."""

    plugin_id = "responsive_image"
    label = "Responsive image"
    field_types = ("image",)

    def __init__(
        self,
        settings: Mapping[str, Any] | None,
        responsive_image_style_storage: EntityStorage[ResponsiveImageStyle],
        image_style_storage: EntityStorage[ImageStyle],
        file_url_generator: FileUrlGenerator | None = None,
    ):
        super().__init__(settings)
        self._settings["responsive_image_style"] = parse_str(
            self._settings["responsive_image_style"], "formatter.settings.responsive_image_style"
        )
        self._settings["image_link"] = _parse_image_link(self._settings["image_link"])

        self.responsive_image_style_storage = responsive_image_style_storage
        self.image_style_storage = image_style_storage
        self.file_url_generator = file_url_generator or FileUrlGenerator()

    @classmethod
    def create(
        cls, settings: Mapping[str, Any] | None, services: FormatterServices
    ) -> "ResponsiveImageFormatter":
        return cls(
            settings,
            services.responsive_image_style_storage,
            services.image_style_storage,
            services.file_url_generator,
        )

    @classmethod
    def default_settings(cls) -> dict[str, Any]:
        return {
            "responsive_image_style": "",
            "image_link": "",
        }

    def settings_form(self) -> dict[str, FormElement]:
        options: dict[str, str] = {}
        for machine_name, style in self.responsive_image_style_storage.load_multiple().items():
            if style.has_image_style_mappings():
                options[machine_name] = style.label

        return {
            "responsive_image_style": FormElement(
                title="Responsive image style",
                type="select",
                default_value=self.get_setting("responsive_image_style"),
                required=True,
                options=options,
            ),
            "image_link": FormElement(
                title="Link image to",
                type="select",
                default_value=self.get_setting("image_link"),
                empty_option="Nothing",
                options={"content": "Content", "file": "File"},
            ),
        }

    def settings_summary(self) -> list[str]:
        style = self.responsive_image_style_storage.load(self.get_setting("responsive_image_style"))
        if style is None:
            return ["Select a responsive image style."]

        summary = [f"Responsive image style: {style.label}"]
        link_types = {
            "content": "Linked to content",
            "file": "Linked to file",
        }
        # Only shown when the image is linked.
        link = link_types.get(self.get_setting("image_link"))
        if link:
            summary.append(link)
        return summary

    def view_elements(self, items: FieldItemList) -> list[RenderDescriptor]:
        files = self.entities_to_view(items)

        # Early opt-out if the field is empty.
        if not files:
            return []

        url: Url | None = None
        link_file = False
        image_link = self.get_setting("image_link")
        if image_link == "content":
            if not items.entity.is_new():
                url = Url.from_entity(items.entity)
            else:
                self.logger.debug("Owning %s entity is unsaved; no content link", items.entity.entity_type)
        elif image_link == "file":
            link_file = True

        style_id = self.get_setting("responsive_image_style")
        responsive_image_style = self.responsive_image_style_storage.load(style_id)
        image_styles_to_load: list[str] = []
        cache_tags: list[str] = []
        if responsive_image_style is not None:
            cache_tags = merge_tags(cache_tags, responsive_image_style.get_cache_tags())
            image_styles_to_load = responsive_image_style.get_image_style_ids()
        else:
            self.logger.info("Responsive image style %r not found; rendering without a style", style_id)

        image_styles = self.image_style_storage.load_multiple(image_styles_to_load)
        for image_style in image_styles.values():
            cache_tags = merge_tags(cache_tags, image_style.get_cache_tags())
        missing = [style for style in image_styles_to_load if style not in image_styles]
        if missing:
            self.logger.warning(
                "Responsive image style %r references missing image styles: %s",
                style_id,
                ", ".join(missing),
            )

        resolved_style_id = responsive_image_style.id if responsive_image_style is not None else ""
        elements: list[RenderDescriptor] = []
        for delta, item, file in files:
            # Link the <picture> element to the original file.
            if link_file:
                url = Url.from_uri(self.file_url_generator.file_create_url(file.get_file_uri()))

            elements.append(
                RenderDescriptor(
                    theme=THEME,
                    item=item,
                    item_attributes=items.attributes_for(delta),
                    responsive_image_style_id=resolved_style_id,
                    url=url,
                    cache_tags=tuple(cache_tags),
                )
            )
        return elements
