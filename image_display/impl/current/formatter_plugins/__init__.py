"""Field formatter plugins.

Modules under this package register themselves with
`image_display.framework.formatter.register_formatter` on import.
"""

from __future__ import annotations

import importlib
import pkgutil


def discover() -> None:
    """Import all formatter plugin modules under this package."""

    for module in pkgutil.iter_modules(__path__, prefix=__name__ + "."):
        importlib.import_module(module.name)
