"""Tri-state access results and the access check registry.

A check returns ``allowed``, ``neutral`` or ``forbidden``. Combining results
follows the usual precedence: with ``and_if`` any forbidden wins and allowed
needs both sides allowed; with ``or_if`` forbidden still wins, then allowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from image_display.framework.entities import Account
from image_display.framework.settings import ConfigFactory

AccessState = Literal["allowed", "neutral", "forbidden"]


@dataclass(frozen=True)
class AccessResult:
    state: AccessState
    reason: str = ""

    @classmethod
    def allowed(cls) -> "AccessResult":
        return cls("allowed")

    @classmethod
    def neutral(cls, reason: str = "") -> "AccessResult":
        return cls("neutral", reason)

    @classmethod
    def forbidden(cls, reason: str = "") -> "AccessResult":
        return cls("forbidden", reason)

    @classmethod
    def allowed_if(cls, condition: bool, reason: str = "") -> "AccessResult":
        return cls.allowed() if condition else cls.forbidden(reason)

    def is_allowed(self) -> bool:
        return self.state == "allowed"

    def is_neutral(self) -> bool:
        return self.state == "neutral"

    def is_forbidden(self) -> bool:
        return self.state == "forbidden"

    def and_if(self, other: "AccessResult") -> "AccessResult":
        if self.is_forbidden():
            return self
        if other.is_forbidden():
            return other
        if self.is_allowed() and other.is_allowed():
            return self
        return self if self.is_neutral() else other

    def or_if(self, other: "AccessResult") -> "AccessResult":
        if self.is_forbidden():
            return self
        if other.is_forbidden():
            return other
        if self.is_allowed():
            return self
        return other


@dataclass(frozen=True)
class AccessServices:
    config: ConfigFactory


class AccessCheck(Protocol):
    requirement: str
    # Keyword receiving the route requirement value, or None.
    argument: str | None

    def access(self, account: Account) -> AccessResult: ...


_ACCESS_CHECK_REGISTRY: dict[str, type[AccessCheck]] = {}


def register_access_check(cls: type[AccessCheck]) -> type[AccessCheck]:
    requirement = getattr(cls, "requirement", None)
    if not isinstance(requirement, str) or not requirement.strip():
        raise TypeError("Access check must define a non-empty 'requirement' attribute")

    key = requirement.strip()
    if key in _ACCESS_CHECK_REGISTRY:
        raise ValueError(f"Duplicate access check requirement: {key}")

    _ACCESS_CHECK_REGISTRY[key] = cls
    return cls


def available_access_checks() -> tuple[str, ...]:
    return tuple(sorted(_ACCESS_CHECK_REGISTRY))


def get_access_check_class(requirement: str) -> type[AccessCheck] | None:
    return _ACCESS_CHECK_REGISTRY.get(requirement)


def require_account(account: Account | None) -> Account:
    if account is None:
        raise TypeError("An account is required to run access checks")
    return account
