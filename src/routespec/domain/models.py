from __future__ import annotations

from typing import Any, Iterator, Literal, Optional

from pydantic import BaseModel, Field

ParamLocation = Literal["path", "query", "header", "formData", "body"]
SchemaKind = Literal[
    "string", "integer", "number", "boolean", "file",  # primitives
    "array", "map", "ref", "object",
]

# kinds a form field can carry directly
SIMPLE_KINDS = ("string", "number", "integer", "boolean")


class Schema(BaseModel):
    """
    One payload shape. Used both for inline properties and for the named
    models stored in the document registry.

    - primitive: string, integer, number, boolean or file (+ optional format / enum)
    - array: kind="array", items
    - map: kind="map", values
    - reference: kind="ref", ref=<registry name>
    - object: kind="object", properties (empty properties = opaque)
    """

    kind: SchemaKind
    format: Optional[str] = None
    items: Optional[Schema] = None
    values: Optional[Schema] = None
    ref: Optional[str] = None
    properties: dict[str, Schema] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    enum: list[Any] = Field(default_factory=list)
    description: str = ""
    default: Optional[Any] = None
    access: str = ""
    # fully-qualified source type of a named model
    reference: Optional[str] = None

    @classmethod
    def primitive(cls, kind: str, fmt: Optional[str] = None, enum: Optional[list[Any]] = None) -> Schema:
        return cls(kind=kind, format=fmt, enum=list(enum or []))

    @classmethod
    def array_of(cls, items: Schema) -> Schema:
        return cls(kind="array", items=items)

    @classmethod
    def map_of(cls, values: Schema) -> Schema:
        return cls(kind="map", values=values)

    @classmethod
    def ref_to(cls, name: str) -> Schema:
        return cls(kind="ref", ref=name)

    @classmethod
    def opaque(cls) -> Schema:
        return cls(kind="object")

    def is_simple(self) -> bool:
        """Bare simple value or an array of simple values."""
        if self.kind in SIMPLE_KINDS:
            return True
        return self.kind == "array" and self.items is not None and self.items.kind in SIMPLE_KINDS

    def references(self) -> Iterator[str]:
        if self.kind == "ref" and self.ref:
            yield self.ref
        for child in (self.items, self.values):
            if child is not None:
                yield from child.references()
        for prop in self.properties.values():
            yield from prop.references()


class Parameter(BaseModel):
    name: str
    location: ParamLocation
    required: bool = False
    description: str = ""
    default: Optional[Any] = None
    access: str = ""
    enum: list[str] = Field(default_factory=list)
    pattern: Optional[str] = None
    shape: Schema = Field(default_factory=lambda: Schema.primitive("string"))


class Response(BaseModel):
    description: str = ""
    shape: Optional[Schema] = None
    headers: dict[str, Schema] = Field(default_factory=dict)


class Operation(BaseModel):
    operation_id: str
    summary: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    consumes: list[str] = Field(default_factory=list)
    produces: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    # "default" or the status code as a string
    responses: dict[str, Response] = Field(default_factory=dict)
    security: list[str] = Field(default_factory=list)
    schemes: list[str] = Field(default_factory=list)
    deprecated: bool = False

    def add_tag(self, tag: str) -> None:
        if tag and tag not in self.tags:
            self.tags.append(tag)

    def add_security(self, name: str) -> None:
        if name and name not in self.security:
            self.security.append(name)

    def has_parameter(self, name: str, location: Optional[str] = None) -> bool:
        return any(
            p.name == name and (location is None or p.location == location)
            for p in self.parameters
        )

    def set_response(self, code: int, response: Response) -> None:
        key = "default" if code == 0 else str(code)
        self.responses[key] = response


Schema.model_rebuild()
