"""
Route declaration decorators.

They attach metadata to classes and methods without side effects; the
loader reads it back into ServiceDeclaration / OperationDeclaration records.

    @api("/users", tags=["users"])
    @path("/users")
    class UserService:
        @GET
        @path("/{id:[0-9]+}")
        @operation("Fetch one user", response=User)
        def get(self, id: Annotated[int, ApiParam(name="id")]) -> User: ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, TypeVar, Union

from routespec.declarations.metadata import (
    Api,
    ApiOperation,
    ApiResponse,
    Authorization,
    ImplicitParam,
    ResponseHeader,
)

F = TypeVar("F")

MARKS_ATTR = "__routespec__"
API_ATTR = "__routespec_api__"
CLASS_PATH_ATTR = "__routespec_path__"


@dataclass
class RouteMarks:
    path: Optional[str] = None
    operation: Optional[ApiOperation] = None
    verb: Optional[str] = None
    custom_verb: Optional[str] = None
    json_request: bool = False
    consumes: tuple[str, ...] = ()
    produces: tuple[str, ...] = ()
    implicit_params: tuple[ImplicitParam, ...] = ()
    responses: tuple[ApiResponse, ...] = ()
    deprecated: bool = False
    json_creator: bool = False


def _unwrap(obj: Any) -> Any:
    if isinstance(obj, (classmethod, staticmethod)):
        return obj.__func__
    return obj


def marks_of(obj: Any) -> Optional[RouteMarks]:
    return getattr(_unwrap(obj), MARKS_ATTR, None)


def _marks(obj: Any) -> RouteMarks:
    func = _unwrap(obj)
    marks = getattr(func, MARKS_ATTR, None)
    if marks is None:
        marks = RouteMarks()
        setattr(func, MARKS_ATTR, marks)
    return marks


def _auths(values: Iterable[Union[str, Authorization]]) -> tuple[Authorization, ...]:
    return tuple(v if isinstance(v, Authorization) else Authorization(v) for v in values)


def api(
    value: str = "",
    *,
    tags: Iterable[str] = (),
    hidden: bool = False,
    authorizations: Iterable[Union[str, Authorization]] = (),
) -> Callable[[type], type]:
    """Mark a class as a service declaration."""

    def decorator(cls: type) -> type:
        setattr(
            cls,
            API_ATTR,
            Api(value=value, tags=tuple(tags), hidden=hidden, authorizations=_auths(authorizations)),
        )
        return cls

    return decorator


def path(value: str) -> Callable[[F], F]:
    """Class-level or method-level path fragment."""

    def decorator(target: F) -> F:
        if isinstance(target, type):
            setattr(target, CLASS_PATH_ATTR, value)
        else:
            _marks(target).path = value
        return target

    return decorator


def operation(
    value: str = "",
    *,
    notes: str = "",
    nickname: str = "",
    tags: Iterable[str] = (),
    response: Any = None,
    response_container: str = "",
    request: Any = None,
    http_method: str = "",
    hidden: bool = False,
    authorizations: Iterable[Union[str, Authorization]] = (),
    response_headers: Iterable[ResponseHeader] = (),
    protocols: str = "",
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        _marks(func).operation = ApiOperation(
            value=value,
            notes=notes,
            nickname=nickname,
            tags=tuple(tags),
            response=response,
            response_container=response_container,
            request=request,
            http_method=http_method,
            hidden=hidden,
            authorizations=_auths(authorizations),
            response_headers=tuple(response_headers),
            protocols=protocols,
        )
        return func

    return decorator


def _verb_marker(verb: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        _marks(func).verb = verb
        return func

    decorator.__name__ = verb
    decorator.__doc__ = f"Mark a method as answering {verb} requests."
    return decorator


GET = _verb_marker("GET")
PUT = _verb_marker("PUT")
POST = _verb_marker("POST")
DELETE = _verb_marker("DELETE")
OPTIONS = _verb_marker("OPTIONS")
PATCH = _verb_marker("PATCH")
HEAD = _verb_marker("HEAD")


def http_method(verb: str) -> Callable[[F], F]:
    """Custom verb marker (e.g. PURGE)."""

    def decorator(func: F) -> F:
        _marks(func).custom_verb = verb
        return func

    return decorator


def consumes(*media_types: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        _marks(func).consumes = tuple(media_types)
        return func

    return decorator


def produces(*media_types: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        _marks(func).produces = tuple(media_types)
        return func

    return decorator


def implicit_params(*params: ImplicitParam) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        _marks(func).implicit_params = tuple(params)
        return func

    return decorator


def api_responses(*responses: ApiResponse) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        _marks(func).responses = tuple(responses)
        return func

    return decorator


def json_request(func: F) -> F:
    """The method takes and returns typed JSON; its return type is the response payload."""
    _marks(func).json_request = True
    return func


def deprecated(func: F) -> F:
    _marks(func).deprecated = True
    return func


def json_creator(func: F) -> F:
    """Mark the constructor used to deserialize a request type."""
    _marks(func).json_creator = True
    return func

