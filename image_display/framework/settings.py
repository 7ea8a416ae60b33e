from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive, surrounding whitespace ignored).
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_int(value: Any, path: str) -> int:
    if value is None:
        raise ValueError(f"Invalid config value for {path}: None")
    if isinstance(value, bool):
        raise ValueError(f"Invalid config type for {path}: expected int, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if not value.strip():
            raise ValueError(f"Invalid config value for {path}: must be an int")
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid config value for {path}: must be an int") from exc
    raise ValueError(f"Invalid config type for {path}: expected int")


def parse_optional_int(value: Any, path: str) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_int(value, path)


def parse_str(value: Any, path: str, *, default: str = "") -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"Invalid config type for {path}: expected string, got {type(value).__name__}")
    return value.strip()


def parse_enum(value: Any, path: str, *, allowed: Iterable[str], default: str) -> str:
    text = parse_str(value, path, default=default)
    allowed_values = tuple(allowed)
    if text not in allowed_values:
        choices = ", ".join(repr(v) for v in allowed_values)
        raise ValueError(f"Invalid config value for {path}: {text!r} (expected one of {choices})")
    return text


def parse_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Invalid config type for {path}: expected mapping, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ImmutableConfig:
    """A named, read-only configuration object (e.g. ``mailchimp.settings``)."""

    name: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str = "") -> Any:
        """Return a value by (optionally dotted) key; missing keys yield None."""

        if not key:
            return dict(self.data)
        current: Any = self.data
        for part in key.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return None
            current = current[part]
        return current

    def is_new(self) -> bool:
        return not self.data


class ConfigFactory:
    def __init__(self, objects: Mapping[str, Mapping[str, Any]] | None = None):
        self._objects: dict[str, dict[str, Any]] = {}
        for name, data in (objects or {}).items():
            self._objects[str(name)] = dict(parse_mapping(data, f"config.{name}"))

    @classmethod
    def from_dict(cls, raw: Any) -> "ConfigFactory":
        return cls(parse_mapping(raw, "config"))

    def get(self, name: str) -> ImmutableConfig:
        if not isinstance(name, str) or not name.strip():
            raise TypeError("Config name must be a non-empty string")
        return ImmutableConfig(name=name, data=dict(self._objects.get(name, {})))

    def set(self, name: str, key: str, value: Any) -> None:
        self._objects.setdefault(name, {})[key] = value
