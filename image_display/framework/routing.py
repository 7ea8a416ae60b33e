from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from image_display.framework.access import (
    AccessResult,
    AccessServices,
    get_access_check_class,
    require_account,
)
from image_display.framework.entities import Account
from image_display.framework.settings import parse_mapping, parse_str

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    name: str
    path: str
    requirements: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, raw: Any) -> "Route":
        path = f"routes.{name}"
        data = parse_mapping(raw, path)
        route_path = parse_str(data.get("path"), f"{path}.path")
        if not route_path.startswith("/"):
            raise ValueError(f"Invalid config value for {path}.path: must start with '/'")
        requirements = {
            str(key): parse_str(str(value), f"{path}.requirements.{key}")
            for key, value in parse_mapping(data.get("requirements"), f"{path}.requirements").items()
        }
        return cls(name=name, path=route_path, requirements=requirements)


class Router:
    """A route table that answers access questions for named routes."""

    def __init__(self, routes: Iterable[Route], services: AccessServices):
        self._routes: dict[str, Route] = {}
        for route in routes:
            if route.name in self._routes:
                raise ValueError(f"Duplicate route name: {route.name}")
            self._routes[route.name] = route
        self.services = services

    def available(self) -> tuple[str, ...]:
        return tuple(sorted(self._routes))

    def get(self, route_name: str) -> Route:
        route = self._routes.get((route_name or "").strip())
        if route is None:
            available = ", ".join(self.available()) or "<none>"
            raise ValueError(f"Unknown route: {route_name} (available: {available})")
        return route

    def check_access(self, route_name: str, account: Account) -> AccessResult:
        """Run every access check the route requires and AND the results together."""

        route = self.get(route_name)
        account = require_account(account)

        result: AccessResult | None = None
        for requirement, value in route.requirements.items():
            check_cls = get_access_check_class(requirement)
            if check_cls is None:
                logger.debug("Route %s: no access check registered for %s", route.name, requirement)
                continue

            check = check_cls(self.services)
            argument = getattr(check, "argument", None)
            if argument:
                check_result = check.access(account, **{argument: value})
            else:
                check_result = check.access(account)
            logger.debug("Route %s: %s -> %s", route.name, requirement, check_result.state)
            result = check_result if result is None else result.and_if(check_result)

        if result is None:
            return AccessResult.neutral("No access checks apply to this route.")
        return result
