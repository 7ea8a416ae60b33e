from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from image_display.framework.entities import ContentEntity


@dataclass(frozen=True)
class Url:
    """A resolved link target: either a site path or an absolute URI."""

    value: str
    external: bool = False

    @classmethod
    def from_uri(cls, uri: str) -> "Url":
        if not isinstance(uri, str) or not uri.strip():
            raise ValueError("Url.from_uri requires a non-empty string")
        return cls(value=uri.strip(), external="://" in uri)

    @classmethod
    def from_entity(cls, entity: ContentEntity) -> "Url":
        return cls(value=entity.canonical_path())

    def to_string(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class FileUrlGenerator:
    """Turns stream-wrapper URIs (``public://photos/a.jpg``) into web URLs.

    Private files are served through the site itself, so ``private://x``
    maps to ``<private_base_path>/x`` rather than to the public files base.
    """

    PASSTHROUGH_SCHEMES = ("http", "https")

    def __init__(
        self,
        public_base_url: str = "/sites/default/files",
        private_base_path: str = "/system/files",
    ):
        self.public_base_url = public_base_url.rstrip("/")
        self.private_base_path = "/" + private_base_path.strip("/")

    def file_create_url(self, uri: str) -> str:
        scheme, sep, target = uri.partition("://")
        if not sep:
            # Already a path relative to the site root.
            return "/" + uri.lstrip("/")
        if scheme in self.PASSTHROUGH_SCHEMES:
            return uri
        if scheme == "public":
            return f"{self.public_base_url}/{quote(target)}"
        if scheme == "private":
            return f"{self.private_base_path}/{quote(target)}"
        raise ValueError(f"No URL can be generated for stream wrapper scheme: {scheme!r}")
