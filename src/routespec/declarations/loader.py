from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Iterator, Optional, get_type_hints

from routespec.declarations.decorators import API_ATTR, CLASS_PATH_ATTR, RouteMarks, marks_of
from routespec.declarations.metadata import (
    Api,
    ApiParam,
    ArgumentDeclaration,
    OperationDeclaration,
    RequestBodyDeclaration,
    ServiceDeclaration,
)
from routespec.declarations.types import (
    Body,
    is_request_handle,
    strip_annotated,
    type_token_element,
    unwrap_async,
)
from routespec.errors import InvalidDeclaration

logger = logging.getLogger(__name__)


def api_of(cls: Any) -> Optional[Api]:
    # only the class's own decoration counts; subclasses are not services by inheritance
    if not isinstance(cls, type):
        return None
    return cls.__dict__.get(API_ATTR)


def is_service(tp: Any) -> bool:
    return api_of(tp) is not None


def qualified_name(tp: type) -> str:
    return f"{tp.__module__}.{tp.__qualname__}"


def load_service(cls: type) -> ServiceDeclaration:
    """Read the route metadata of a decorated class into a ServiceDeclaration."""
    api = api_of(cls)
    if api is None:
        raise InvalidDeclaration(f"{qualified_name(cls) if isinstance(cls, type) else cls!r} is not an @api class")

    operations = []
    for name, func in _iter_methods(cls):
        marks = marks_of(func)
        if marks is None:
            continue
        operations.append(_load_operation(cls, name, func, marks))

    logger.debug("loaded %s with %d routed methods", qualified_name(cls), len(operations))
    return ServiceDeclaration(
        type=cls,
        api=api,
        path=cls.__dict__.get(CLASS_PATH_ATTR),
        operations=tuple(operations),
    )


def _iter_methods(cls: type) -> Iterator[tuple[str, Callable[..., Any]]]:
    """Public functions in definition order, base classes first, overrides in place."""
    found: dict[str, Callable[..., Any]] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            if name.startswith("_"):
                continue
            func = member.__func__ if isinstance(member, (classmethod, staticmethod)) else member
            if inspect.isfunction(func):
                found[name] = func
    yield from found.items()


def _hints(func: Callable[..., Any]) -> dict[str, Any]:
    try:
        return get_type_hints(func, include_extras=True)
    except (NameError, TypeError) as e:
        raise InvalidDeclaration(f"cannot resolve annotations of {func.__qualname__}: {e}") from e


def _arguments(func: Callable[..., Any]) -> tuple[ArgumentDeclaration, ...]:
    hints = _hints(func)
    out: list[ArgumentDeclaration] = []
    params = list(inspect.signature(func).parameters.values())
    for i, p in enumerate(params):
        if i == 0 and p.name in ("self", "cls"):
            continue
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            continue
        annotation, extras = strip_annotated(hints.get(p.name, Any))
        param = next((e for e in extras if isinstance(e, ApiParam)), None)
        out.append(
            ArgumentDeclaration(
                name=p.name,
                annotation=annotation,
                param=param,
                body=any(isinstance(e, Body) for e in extras),
                request_handle=is_request_handle(annotation),
            )
        )
    return tuple(out)


def creator_arguments(tp: type) -> tuple[ArgumentDeclaration, ...]:
    """Arguments of the single @json_creator constructor of a request type."""
    creators = []
    for member in vars(tp).values():
        marks = marks_of(member)
        if marks is not None and marks.json_creator:
            func = member.__func__ if isinstance(member, (classmethod, staticmethod)) else member
            creators.append(func)

    if len(creators) > 1:
        raise InvalidDeclaration(
            f"{tp.__name__} has more than one @json_creator constructor. There must be only one."
        )
    if not creators:
        raise InvalidDeclaration(f"{tp.__name__} doesn't have any constructor marked with @json_creator.")

    arguments = _arguments(creators[0])
    if arguments and arguments[0].param is None:
        raise InvalidDeclaration(f"{tp.__name__} creator arguments don't have ApiParam metadata.")
    return arguments


def _request_body(tp: type) -> RequestBodyDeclaration:
    return RequestBodyDeclaration(
        name=tp.__name__,
        reference=qualified_name(tp),
        arguments=creator_arguments(tp),
    )


def _load_operation(cls: type, name: str, func: Callable[..., Any], marks: RouteMarks) -> OperationDeclaration:
    arguments = _arguments(func)
    return_type = _hints(func).get("return")

    request_element = None
    request_body = None
    op = marks.operation
    if op is not None and op.request is not None:
        request_element = type_token_element(op.request)
        if request_element is None:
            request_body = _request_body(op.request)
    elif len(arguments) == 1 and arguments[0].body:
        request_body = _request_body(arguments[0].annotation)

    payload = unwrap_async(return_type)
    sub_resource = payload if is_service(payload) else None

    return OperationDeclaration(
        name=name,
        declaring_type=qualified_name(cls),
        declaring_name=cls.__name__,
        path=marks.path,
        operation=op,
        verb=marks.verb,
        custom_verb=marks.custom_verb,
        json_request=marks.json_request,
        consumes=marks.consumes,
        produces=marks.produces,
        implicit_params=marks.implicit_params,
        responses=marks.responses,
        deprecated=marks.deprecated or getattr(func, "__deprecated__", None) is not None,
        arguments=arguments,
        return_type=return_type,
        request_element=request_element,
        request_body=request_body,
        sub_resource=sub_resource,
    )
