from __future__ import annotations

from typing import Iterable


def merge_tags(*tag_lists: Iterable[str]) -> list[str]:
    """Union of cache tags, sorted and without duplicates."""

    merged: set[str] = set()
    for tags in tag_lists:
        for tag in tags:
            if not isinstance(tag, str):
                raise TypeError(f"Cache tags must be strings, got {type(tag).__name__}")
            merged.add(tag)
    return sorted(merged)
