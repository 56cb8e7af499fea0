from __future__ import annotations

from typing import Any, Sequence


class RouteSpecError(Exception):
    """Base class for every error raised while compiling declarations."""


class InvalidDeclaration(RouteSpecError):
    """A declaration is structurally wrong (missing creator, missing ApiParam, ...)."""


class UnsupportedShape(RouteSpecError):
    """An explicit body wrapper resolved to something other than an array."""


class CyclicSubResource(RouteSpecError):
    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__("sub-resource cycle: " + " -> ".join(self.chain))


class UnresolvableType(RouteSpecError):
    """
    Raised inside the schema resolver when a type maps to no schema kind.
    Never escapes the resolver: callers receive an opaque schema instead.
    """

    def __init__(self, tp: Any, reason: str = "") -> None:
        self.type = tp
        msg = f"cannot resolve schema for {tp!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
