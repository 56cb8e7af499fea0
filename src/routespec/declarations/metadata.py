from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


# ----------------------------
# Annotation records
# ----------------------------


@dataclass(frozen=True)
class Authorization:
    value: str


@dataclass(frozen=True)
class Api:
    """Class-level service metadata."""

    value: str = ""
    tags: tuple[str, ...] = ()
    hidden: bool = False
    authorizations: tuple[Authorization, ...] = ()


@dataclass(frozen=True)
class ApiParam:
    """Per-argument metadata, attached with ``Annotated[T, ApiParam(...)]``."""

    name: str = ""
    value: str = ""  # description
    required: bool = False
    default: Optional[str] = None
    access: str = ""
    allowable_values: str = ""


@dataclass(frozen=True)
class ImplicitParam:
    name: str
    param_type: str = "query"  # path / query / form / formData / header / body
    data_type: str = "string"
    value: str = ""
    required: bool = False
    default: Optional[str] = None
    access: str = ""
    allowable_values: str = ""


@dataclass(frozen=True)
class ResponseHeader:
    name: str
    description: str = ""
    response: Any = None
    container: str = ""


@dataclass(frozen=True)
class ApiResponse:
    code: int
    message: str = ""
    response: Any = None
    container: str = ""
    headers: tuple[ResponseHeader, ...] = ()


@dataclass(frozen=True)
class ApiOperation:
    value: str = ""  # summary
    notes: str = ""
    nickname: str = ""
    tags: tuple[str, ...] = ()
    response: Any = None
    response_container: str = ""
    request: Any = None
    http_method: str = ""
    hidden: bool = False
    authorizations: tuple[Authorization, ...] = ()
    response_headers: tuple[ResponseHeader, ...] = ()
    protocols: str = ""


# ----------------------------
# Resolved declarations (what the compiler consumes)
# ----------------------------


@dataclass(frozen=True)
class ArgumentDeclaration:
    name: str
    annotation: Any
    param: Optional[ApiParam] = None
    body: bool = False
    request_handle: bool = False


@dataclass(frozen=True)
class RequestBodyDeclaration:
    """Creator arguments of an explicit request type or a body-marked argument's type."""

    name: str  # simple type name, used as the model name
    reference: str  # fully-qualified type name
    arguments: tuple[ArgumentDeclaration, ...]


@dataclass(frozen=True)
class OperationDeclaration:
    name: str
    declaring_type: str  # fully-qualified name of the declaring class
    declaring_name: str  # simple name of the declaring class
    path: Optional[str] = None
    operation: Optional[ApiOperation] = None
    verb: Optional[str] = None  # GET/PUT/... marker
    custom_verb: Optional[str] = None
    json_request: bool = False
    consumes: tuple[str, ...] = ()
    produces: tuple[str, ...] = ()
    implicit_params: tuple[ImplicitParam, ...] = ()
    responses: tuple[ApiResponse, ...] = ()
    deprecated: bool = False
    arguments: tuple[ArgumentDeclaration, ...] = ()
    return_type: Any = None
    # explicit element type of a TypeToken request
    request_element: Any = None
    request_body: Optional[RequestBodyDeclaration] = None
    # return type, when it is itself a service declaration
    sub_resource: Optional[type] = None

    @property
    def identifier(self) -> str:
        return f"{self.declaring_type}_{self.name}"


@dataclass(frozen=True)
class ServiceDeclaration:
    type: type
    api: Api
    path: Optional[str] = None
    operations: tuple[OperationDeclaration, ...] = ()

    @property
    def name(self) -> str:
        return f"{self.type.__module__}.{self.type.__qualname__}"

    @property
    def hidden(self) -> bool:
        return self.api.hidden

    def tags(self) -> list[str]:
        """Explicit tags, or one derived from the api value with slashes removed."""
        explicit = [t for t in self.api.tags if t]
        if explicit:
            return list(dict.fromkeys(explicit))
        derived = self.api.value.replace("/", "")
        return [derived] if derived else []

    def authorizations(self) -> list[str]:
        return [a.value for a in self.api.authorizations if a.value]
