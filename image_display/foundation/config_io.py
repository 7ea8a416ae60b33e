from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import yaml


DEFAULT_CONFIG_ENV_VAR = "IMAGE_DISPLAY_CONFIG"
LOCAL_OVERLAY_NAME = "config.local.yaml"
ROOT_MARKERS = ("pyproject.toml", ".git")

ConfigMode = Literal["env", "explicit", "base", "base+local"]


@dataclass(frozen=True)
class ConfigSource:
    """Where a site config came from; logged at startup."""

    mode: ConfigMode
    paths: tuple[str, ...]
    repo_root: str | None = None

    def describe(self) -> str:
        return f"{self.mode}: {', '.join(self.paths)}"


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    here = Path(start or os.getcwd()).resolve()
    if here.is_file():
        here = here.parent
    for candidate in (here, *here.parents):
        if any((candidate / marker).exists() for marker in ROOT_MARKERS):
            return str(candidate)
    raise FileNotFoundError(f"Cannot locate repo root above {here} (looked for {', '.join(ROOT_MARKERS)})")


def read_site_yaml(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def _kind(value: Any) -> str:
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "list"
    return "scalar"


def deep_merge(base: Any, overlay: Any, *, path: str = "") -> Any:
    """Merge ``overlay`` onto ``base``; mappings merge key-wise, everything else is replaced.

    A local overlay may blank a value with ``null`` but may not change its
    shape (mapping, list or scalar).
    """

    if overlay is None or base is None:
        return overlay

    base_kind, overlay_kind = _kind(base), _kind(overlay)
    if base_kind != overlay_kind:
        raise ValueError(
            f"Invalid config overlay merge at {path or '<root>'}: base is {base_kind} but overlay is {overlay_kind}"
        )
    if base_kind == "list":
        return list(overlay)
    if base_kind == "scalar":
        return overlay

    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        merged[key] = deep_merge(base.get(key), value, path=f"{path}.{key}" if path else str(key))
    return merged


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = DEFAULT_CONFIG_ENV_VAR,
    config_dir: str | os.PathLike[str] = "config",
    config_name: str = "config",
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], ConfigSource]:
    """
    Load the site configuration from YAML.

    An explicit ``config_path`` (or the file named by ``env_var``) is loaded on its
    own. Otherwise ``<config_dir>/<config_name>.yaml`` is loaded and, when present,
    ``<config_dir>/config.local.yaml`` is deep-merged on top of it.
    """

    explicit = str(config_path).strip() if config_path is not None else ""
    mode: ConfigMode = "explicit"
    if not explicit and config_path is None and env_var:
        explicit = os.environ.get(env_var, "").strip()
        mode = "env"

    if explicit:
        resolved = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit)))
        return read_site_yaml(resolved), ConfigSource(mode=mode, paths=(resolved,))

    repo_root = None
    directory = Path(config_dir)
    if not directory.is_absolute():
        repo_root = find_repo_root(start_dir)
        directory = Path(repo_root) / directory

    base_path = directory / f"{config_name}.yaml"
    if not base_path.is_file():
        raise FileNotFoundError(f"Missing base config file: {base_path}")

    cfg = read_site_yaml(str(base_path))
    paths = [str(base_path.resolve())]
    overlay_path = directory / LOCAL_OVERLAY_NAME
    if overlay_path.is_file():
        cfg = deep_merge(cfg, read_site_yaml(str(overlay_path)))
        paths.append(str(overlay_path.resolve()))

    source = ConfigSource(
        mode="base+local" if len(paths) > 1 else "base",
        paths=tuple(paths),
        repo_root=repo_root,
    )
    return cfg, source
