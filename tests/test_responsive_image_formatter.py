from __future__ import annotations

import pytest

from image_display.framework.entities import (
    RESPONSIVE_IMAGE_EMPTY_IMAGE,
    ContentEntity,
    FileEntity,
    ImageStyle,
    ImageStyleMapping,
    ResponsiveImageStyle,
)
from image_display.framework.formatter import (
    FieldItem,
    FieldItemList,
    FormatterManager,
    FormatterServices,
)
from image_display.framework.storage import InMemoryEntityStorage
from image_display.framework.urls import FileUrlGenerator, Url
from image_display.impl.current import formatter_plugins as _formatter_plugins

_formatter_plugins.discover()


WIDE_BANNER_TAGS = (
    "config:image.style.crop_16x9",
    "config:image.style.crop_4x3",
    "config:responsive_image.styles.wide_banner",
)


def _services() -> FormatterServices:
    wide_banner = ResponsiveImageStyle(
        id="wide_banner",
        label="Wide banner",
        breakpoint_group="theme",
        fallback_image_style="crop_16x9",
        image_style_mappings=(
            ImageStyleMapping(breakpoint_id="theme.wide", image_style="crop_16x9"),
            ImageStyleMapping(breakpoint_id="theme.narrow", image_style="crop_4x3"),
        ),
    )
    unmapped = ResponsiveImageStyle(id="unmapped", label="Not yet mapped")
    return FormatterServices(
        responsive_image_style_storage=InMemoryEntityStorage(
            "responsive_image_style", {"wide_banner": wide_banner, "unmapped": unmapped}
        ),
        image_style_storage=InMemoryEntityStorage(
            "image_style",
            {
                "crop_16x9": ImageStyle(id="crop_16x9", label="Crop 16:9"),
                "crop_4x3": ImageStyle(id="crop_4x3", label="Crop 4:3"),
            },
        ),
        file_url_generator=FileUrlGenerator("https://cdn.example.com/files"),
    )


def _formatter(services: FormatterServices, **settings):
    base = {"responsive_image_style": "wide_banner"}
    base.update(settings)
    return FormatterManager.create("responsive_image", base, services)


def _items(
    entity: ContentEntity,
    count: int,
    *,
    missing: tuple[int, ...] = (),
    item_attributes: dict | None = None,
) -> FieldItemList:
    items = tuple(
        FieldItem(
            target_id=i,
            alt=f"alt {i}",
            entity=None if i in missing else FileEntity(id=i, uri=f"public://img/{i}.jpg"),
        )
        for i in range(1, count + 1)
    )
    return FieldItemList(entity=entity, items=items, item_attributes=item_attributes or {})


def test_empty_field_returns_nothing_without_lookups():
    services = _services()
    formatter = _formatter(services)

    elements = formatter.view_elements(_items(ContentEntity("node", 1), 0))

    assert elements == []
    assert services.responsive_image_style_storage.load_calls == 0
    assert services.image_style_storage.load_calls == 0


def test_field_with_only_unresolvable_files_returns_nothing_without_lookups():
    services = _services()
    formatter = _formatter(services)

    elements = formatter.view_elements(_items(ContentEntity("node", 1), 2, missing=(1, 2)))

    assert elements == []
    assert services.responsive_image_style_storage.load_calls == 0
    assert services.image_style_storage.load_calls == 0


def test_one_descriptor_per_item_in_order_with_shared_cache_tags():
    formatter = _formatter(_services())

    elements = formatter.view_elements(_items(ContentEntity("node", 1), 3))

    assert [e.item.target_id for e in elements] == [1, 2, 3]
    assert all(e.theme == "responsive_image_formatter" for e in elements)
    assert all(e.responsive_image_style_id == "wide_banner" for e in elements)
    assert all(e.cache_tags == WIDE_BANNER_TAGS for e in elements)
    assert all(e.url is None for e in elements)


def test_unresolvable_items_are_skipped_and_attributes_follow_delta():
    formatter = _formatter(_services())
    items = _items(
        ContentEntity("node", 1),
        3,
        missing=(2,),
        item_attributes={0: {"class": ["first"]}, 2: {"class": ["third"]}},
    )

    elements = formatter.view_elements(items)

    assert [e.item.target_id for e in elements] == [1, 3]
    assert elements[0].item_attributes == {"class": ["first"]}
    assert elements[1].item_attributes == {"class": ["third"]}


def test_item_attributes_are_copies():
    formatter = _formatter(_services())
    items = _items(ContentEntity("node", 1), 1, item_attributes={0: {"loading": "lazy"}})

    element = formatter.view_elements(items)[0]
    element.item_attributes["loading"] = "eager"

    assert items.item_attributes[0] == {"loading": "lazy"}


def test_content_link_is_omitted_for_unsaved_entity():
    formatter = _formatter(_services(), image_link="content")

    elements = formatter.view_elements(_items(ContentEntity("node"), 2))

    assert len(elements) == 2
    assert all(e.url is None for e in elements)


def test_content_link_is_shared_for_saved_entity():
    formatter = _formatter(_services(), image_link="content")

    elements = formatter.view_elements(_items(ContentEntity("node", 7), 3))

    assert {e.url for e in elements} == {Url("/node/7")}


def test_file_link_points_at_each_items_own_file():
    formatter = _formatter(_services(), image_link="file")

    elements = formatter.view_elements(_items(ContentEntity("node", 7), 2))

    assert [e.url.to_string() for e in elements] == [
        "https://cdn.example.com/files/img/1.jpg",
        "https://cdn.example.com/files/img/2.jpg",
    ]


def test_file_link_serves_private_files_through_the_site():
    formatter = _formatter(_services(), image_link="file")
    items = FieldItemList(
        entity=ContentEntity("node", 1),
        items=(FieldItem(target_id=1, entity=FileEntity(id=1, uri="private://secret/a.jpg")),),
    )

    elements = formatter.view_elements(items)

    assert [e.url.to_string() for e in elements] == ["/system/files/secret/a.jpg"]
    assert elements[0].cache_tags == WIDE_BANNER_TAGS


def test_deleted_image_style_degrades_gracefully():
    services = _services()
    services.image_style_storage.delete("crop_4x3")
    formatter = _formatter(services)

    elements = formatter.view_elements(_items(ContentEntity("node", 1), 2))

    assert [e.responsive_image_style_id for e in elements] == ["wide_banner", "wide_banner"]
    assert elements[0].cache_tags == (
        "config:image.style.crop_16x9",
        "config:responsive_image.styles.wide_banner",
    )


def test_missing_responsive_style_renders_with_empty_style_id():
    services = _services()
    formatter = _formatter(services, responsive_image_style="deleted_style")

    elements = formatter.view_elements(_items(ContentEntity("node", 1), 2))

    assert [e.responsive_image_style_id for e in elements] == ["", ""]
    assert all(e.cache_tags == () for e in elements)
    assert services.image_style_storage.load_calls == 1


def test_settings_form_only_offers_styles_with_mappings():
    formatter = _formatter(_services(), image_link="file")

    form = formatter.settings_form()

    style_element = form["responsive_image_style"]
    assert style_element.options == {"wide_banner": "Wide banner"}
    assert style_element.required is True
    assert style_element.default_value == "wide_banner"

    link_element = form["image_link"]
    assert link_element.options == {"content": "Content", "file": "File"}
    assert link_element.empty_option == "Nothing"
    assert link_element.default_value == "file"


def test_settings_form_skips_styles_mapped_only_to_the_empty_placeholder():
    services = _services()
    services.responsive_image_style_storage.save(
        "placeholder",
        ResponsiveImageStyle(
            id="placeholder",
            label="Placeholder only",
            image_style_mappings=(
                ImageStyleMapping(breakpoint_id="theme.wide", image_style=RESPONSIVE_IMAGE_EMPTY_IMAGE),
            ),
        ),
    )

    options = _formatter(services).settings_form()["responsive_image_style"].options

    assert options == {"wide_banner": "Wide banner"}


@pytest.mark.parametrize(
    ("image_link", "expected"),
    [
        ("", ["Responsive image style: Wide banner"]),
        ("content", ["Responsive image style: Wide banner", "Linked to content"]),
        ("file", ["Responsive image style: Wide banner", "Linked to file"]),
    ],
)
def test_settings_summary_lists_style_and_link(image_link, expected):
    formatter = _formatter(_services(), image_link=image_link)
    assert formatter.settings_summary() == expected


def test_settings_summary_prompts_when_style_missing():
    formatter = FormatterManager.create("responsive_image", {}, _services())
    assert formatter.settings_summary() == ["Select a responsive image style."]


def test_default_settings():
    formatter = FormatterManager.create("responsive_image", None, _services())
    assert formatter.get_settings() == {"responsive_image_style": "", "image_link": ""}


def test_none_link_mode_is_an_alias_for_no_link():
    formatter = _formatter(_services(), image_link="none")
    assert formatter.get_setting("image_link") == ""


def test_invalid_link_mode_fails_loudly():
    with pytest.raises(ValueError, match=r"formatter\.settings\.image_link"):
        _formatter(_services(), image_link="thumbnail")


def test_unknown_setting_fails_loudly():
    with pytest.raises(ValueError, match="Unknown setting"):
        _formatter(_services(), image_style="thumbnail")


def test_unknown_formatter_lists_available():
    with pytest.raises(ValueError, match=r"available: .*responsive_image"):
        FormatterManager.create("picture", {}, _services())


def test_formatter_is_registered_for_image_fields():
    assert "responsive_image" in FormatterManager.available_formatters("image")
    assert "responsive_image" not in FormatterManager.available_formatters("string")
