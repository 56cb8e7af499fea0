from __future__ import annotations

import asyncio
import collections.abc
import concurrent.futures
from dataclasses import dataclass
from typing import Annotated, Any, Generic, TypeVar, get_args, get_origin

T = TypeVar("T")

_ASYNC_WRAPPERS = (
    asyncio.Future,
    asyncio.Task,
    concurrent.futures.Future,
    collections.abc.Awaitable,
)


class TypeToken(Generic[T]):
    """
    Names a parameterized type so it can be passed where a class is expected:

        class UserList(TypeToken[list[User]]): ...

    The compiler substitutes the element type (``list[User]``) for the token.
    """


class IncomingRequest:
    """Base for raw request handles; arguments of this type carry no field metadata."""


@dataclass(frozen=True)
class Body:
    """``Annotated[T, Body()]`` marks the argument holding the whole request body."""


def strip_annotated(tp: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(tp) is Annotated:
        args = get_args(tp)
        return args[0], tuple(args[1:])
    return tp, ()


def type_token_element(tp: Any) -> Any:
    """Element type of a TypeToken subclass, or None when tp is not a token."""
    if not isinstance(tp, type) or tp is TypeToken or not issubclass(tp, TypeToken):
        return None
    for base in getattr(tp, "__orig_bases__", ()):
        if get_origin(base) is TypeToken:
            args = get_args(base)
            return args[0] if args else None
    for parent in tp.__mro__[1:]:
        if parent is not TypeToken and isinstance(parent, type) and issubclass(parent, TypeToken):
            return type_token_element(parent)
    return None


def unwrap_async(tp: Any) -> Any:
    """Future[X] / Awaitable[X] / Task[X] / Coroutine[_, _, X] -> X; anything else unchanged."""
    origin = get_origin(tp)
    args = get_args(tp)
    if origin in _ASYNC_WRAPPERS:
        return args[0] if args else Any
    if origin is collections.abc.Coroutine:
        return args[2] if len(args) == 3 else Any
    if tp in _ASYNC_WRAPPERS:
        return Any
    return tp


def is_request_handle(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, IncomingRequest)
