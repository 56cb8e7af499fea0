"""
Schema resolution: Python type -> Schema, with a registry of named object models.

Primitive kinds come from a fixed table (plus the caller's override table);
lists/sets/tuples become arrays, dicts become maps, and classes with fields
(dataclasses, pydantic models, NamedTuple, TypedDict, annotated classes)
become object models referenced by their fully-qualified name.
"""

from __future__ import annotations

import collections
import collections.abc
import dataclasses
import datetime
import enum
import io
import logging
import types
import typing
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Literal, Mapping, Optional, TypeVar, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from routespec.declarations.types import strip_annotated, type_token_element
from routespec.domain.models import Schema
from routespec.errors import UnresolvableType

logger = logging.getLogger(__name__)

# ordered: bool before int, datetime before date
_PRIMITIVE_TYPES: tuple[tuple[type, str, Optional[str]], ...] = (
    (bool, "boolean", None),
    (int, "integer", "int64"),
    (float, "number", "double"),
    (Decimal, "number", None),
    (str, "string", None),
    (bytes, "string", "byte"),
    (bytearray, "string", "byte"),
    (datetime.datetime, "string", "date-time"),
    (datetime.date, "string", "date"),
    (datetime.time, "string", None),
    (uuid.UUID, "string", "uuid"),
)

_PRIMITIVE_NAMES: dict[str, tuple[str, Optional[str]]] = {
    "string": ("string", None),
    "integer": ("integer", "int32"),
    "int": ("integer", "int32"),
    "long": ("integer", "int64"),
    "number": ("number", None),
    "float": ("number", "float"),
    "double": ("number", "double"),
    "boolean": ("boolean", None),
    "date": ("string", "date"),
    "date-time": ("string", "date-time"),
    "uuid": ("string", "uuid"),
    "file": ("file", None),
    "byte": ("string", "byte"),
    "binary": ("string", "binary"),
}

_ARRAY_TYPES = (
    list,
    tuple,
    set,
    frozenset,
    collections.deque,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Collection,
    collections.abc.Iterable,
    collections.abc.Iterator,
)

_MAP_TYPES = (
    dict,
    collections.OrderedDict,
    collections.defaultdict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)


def primitive_from_name(name: str, strict: bool = False) -> Schema:
    """Schema for a primitive type name as used by implicit parameters and overrides."""
    key = (name or "").strip().lower()
    if key == "object":
        return Schema.opaque()
    if key not in _PRIMITIVE_NAMES:
        if strict:
            raise ValueError(f"unknown primitive type name: {name!r}")
        logger.debug("unknown primitive name %r, using string", name)
        key = "string"
    kind, fmt = _PRIMITIVE_NAMES[key]
    return Schema.primitive(kind, fmt)


def _label(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return str(tp).replace("typing.", "")


def model_name(tp: Any) -> str:
    origin = get_origin(tp)
    if isinstance(origin, type) and get_args(tp):
        base = f"{origin.__module__}.{origin.__qualname__}"
        return f"{base}[{', '.join(_label(a) for a in get_args(tp))}]"
    return f"{tp.__module__}.{tp.__qualname__}"


@dataclass(frozen=True)
class _Field:
    name: str
    annotation: Any
    required: bool
    description: str = ""


def _substitute(annotation: Any, mapping: dict[Any, Any]) -> Any:
    if isinstance(annotation, TypeVar):
        return mapping.get(annotation, annotation)
    params = getattr(annotation, "__parameters__", ())
    if params and all(p in mapping for p in params):
        try:
            return annotation[tuple(mapping[p] for p in params)]
        except TypeError:
            return annotation
    return annotation


def _fields(tp: Any) -> list[_Field]:
    """Fields of an object-model type; raises UnresolvableType when it has none."""
    origin = get_origin(tp)
    cls = origin if isinstance(origin, type) else tp
    if not isinstance(cls, type):
        raise UnresolvableType(tp)

    mapping: dict[Any, Any] = {}
    if cls is not tp:
        mapping = dict(zip(getattr(cls, "__parameters__", ()), get_args(tp)))

    if issubclass(cls, BaseModel):
        out = [
            _Field(
                name=f.alias or name,
                annotation=f.annotation,
                required=f.is_required(),
                description=f.description or "",
            )
            for name, f in cls.model_fields.items()
        ]
    else:
        try:
            hints = get_type_hints(cls)
        except (NameError, TypeError) as e:
            raise UnresolvableType(tp, str(e)) from e

        if dataclasses.is_dataclass(cls):
            out = [
                _Field(
                    name=f.name,
                    annotation=hints.get(f.name, Any),
                    required=f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING,
                    description=f.metadata.get("description", ""),
                )
                for f in dataclasses.fields(cls)
            ]
        elif typing.is_typeddict(cls):
            out = [_Field(n, a, n in cls.__required_keys__) for n, a in hints.items()]
        elif issubclass(cls, tuple) and hasattr(cls, "_fields"):
            defaults = getattr(cls, "_field_defaults", {})
            out = [_Field(n, hints.get(n, Any), n not in defaults) for n in cls._fields]
        else:
            out = [
                _Field(n, a, not hasattr(cls, n))
                for n, a in hints.items()
                if not n.startswith("_") and get_origin(a) is not typing.ClassVar
            ]

    if not out:
        raise UnresolvableType(tp, "no fields")
    if mapping:
        out = [dataclasses.replace(f, annotation=_substitute(f.annotation, mapping)) for f in out]
    return out


class SchemaResolver:
    """
    Resolves types into Schemas and keeps every object model it has seen.

    ``overrides`` maps application types to primitive names ("string",
    "date-time", ...); it is read once here and applies for the resolver's
    lifetime.
    """

    def __init__(self, overrides: Optional[Mapping[Any, str]] = None) -> None:
        self._overrides: dict[Any, Schema] = {
            tp: primitive_from_name(name, strict=True) for tp, name in (overrides or {}).items()
        }
        self._models: dict[str, Schema] = {}
        self._resolving: set[str] = set()
        # type each named model was last built from
        self._sources: dict[str, Any] = {}

    # ----------------------------
    # Public API
    # ----------------------------

    def resolve_property(self, tp: Any) -> Schema:
        try:
            return self._property(tp)
        except UnresolvableType as e:
            logger.warning("%s; using an untyped object schema", e)
            return Schema.opaque()

    def resolve_model(self, tp: Any) -> dict[str, Schema]:
        """{name: model} when tp is an object model, else an empty dict."""
        prop = self.resolve_property(tp)
        if prop.kind == "ref" and prop.ref in self._models:
            return {prop.ref: self._models[prop.ref]}
        return {}

    def resolve_all(self, tp: Any) -> dict[str, Schema]:
        """Every named model reachable from tp (transitive closure)."""
        return self.models_for(self.resolve_property(tp))

    def models_for(self, schema: Schema) -> dict[str, Schema]:
        out: dict[str, Schema] = {}
        pending = list(schema.references())
        while pending:
            name = pending.pop(0)
            if name in out or name not in self._models:
                continue
            model = self._models[name]
            out[name] = model
            pending.extend(model.references())
        return out

    # ----------------------------
    # Resolution
    # ----------------------------

    def _property(self, tp: Any) -> Schema:
        tp, _ = strip_annotated(tp)

        if tp is None or tp is type(None):
            raise UnresolvableType(tp, "no content")

        element = type_token_element(tp)
        if element is not None:
            return self._property(element)

        origin = get_origin(tp)
        args = get_args(tp)

        if origin is Union or origin is types.UnionType:
            members = [a for a in args if a is not type(None)]
            if len(members) == 1:
                return self._property(members[0])
            raise UnresolvableType(tp, "union of several types")

        if tp in self._overrides:
            return self._overrides[tp].model_copy(deep=True)

        if tp is Any or tp is object or isinstance(tp, TypeVar):
            raise UnresolvableType(tp)

        if origin is Literal:
            return self._literal(args)

        if isinstance(tp, type) and issubclass(tp, enum.Enum):
            values = [m.value for m in tp]
            kind = "integer" if issubclass(tp, int) else "string"
            return Schema.primitive(kind, enum=values)

        if isinstance(tp, type):
            for base, kind, fmt in _PRIMITIVE_TYPES:
                if issubclass(tp, base):
                    return Schema.primitive(kind, fmt)
            if issubclass(tp, io.IOBase) or tp in (typing.IO, typing.BinaryIO):
                return Schema.primitive("file")

        if origin is typing.IO:
            return Schema.primitive("file")

        if tp in _ARRAY_TYPES or origin in _ARRAY_TYPES:
            return Schema.array_of(self._items(origin or tp, args))

        if tp in _MAP_TYPES or origin in _MAP_TYPES:
            values = self.resolve_property(args[1]) if len(args) == 2 else Schema.opaque()
            return Schema.map_of(values)

        return Schema.ref_to(self._model(tp))

    def _items(self, container: Any, args: tuple[Any, ...]) -> Schema:
        if not args:
            return Schema.opaque()
        if container is tuple:
            members = [a for a in args if a is not Ellipsis]
            if len(set(members)) != 1:
                return Schema.opaque()
            return self.resolve_property(members[0])
        return self.resolve_property(args[0])

    def _literal(self, values: tuple[Any, ...]) -> Schema:
        if all(isinstance(v, bool) for v in values):
            kind = "boolean"
        elif all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            kind = "integer"
        else:
            kind = "string"
        return Schema.primitive(kind, enum=list(values))

    def _model(self, tp: Any) -> str:
        name = model_name(tp)
        if name in self._resolving:
            return name
        known = self._models.get(name)
        if known is not None and self._sources.get(name) == tp:
            return name

        fields = _fields(tp)
        self._resolving.add(name)
        try:
            properties: dict[str, Schema] = {}
            required: list[str] = []
            for f in fields:
                prop = self.resolve_property(f.annotation)
                if f.description:
                    prop = prop.model_copy(update={"description": f.description})
                properties[f.name] = prop
                if f.required:
                    required.append(f.name)
            if known is not None:
                # another type with the same name: later fields win, earlier ones are kept
                properties = {**known.properties, **properties}
                required = list(dict.fromkeys(known.required + required))
            self._models[name] = Schema(
                kind="object",
                properties=properties,
                required=required,
                reference=name,
            )
            self._sources[name] = tp
        finally:
            self._resolving.discard(name)

        logger.debug("resolved model %s (%d properties)", name, len(properties))
        return name
