from __future__ import annotations

import logging
from typing import Optional, Sequence

from routespec.compiler.schema import SchemaResolver, primitive_from_name
from routespec.declarations.metadata import ArgumentDeclaration, ImplicitParam, OperationDeclaration
from routespec.document.model import Document
from routespec.domain.models import Parameter, Schema
from routespec.errors import InvalidDeclaration, UnsupportedShape

logger = logging.getLogger(__name__)

_IMPLICIT_LOCATIONS = {
    "path": "path",
    "query": "query",
    "form": "formData",
    "formdata": "formData",
    "header": "header",
}


def allowable_values(raw: str) -> list[str]:
    """Comma list -> enum values. The ``range[...]`` form is recognized but not supported."""
    raw = (raw or "").strip()
    if not raw:
        return []
    if raw.startswith("range"):
        logger.debug("range allowable values %r are not supported; ignored", raw)
        return []
    return [v.strip() for v in raw.split(",") if v.strip()]


class ParameterClassifier:
    """
    Turns a method's arguments (or its request type's creator arguments, or
    its implicit-parameter table) into document parameters.
    """

    def __init__(self, resolver: SchemaResolver, document: Document) -> None:
        self.resolver = resolver
        self.document = document

    def classify(self, method: OperationDeclaration) -> list[Parameter]:
        if method.request_element is not None:
            return [self._token_body(method)]

        candidates, name, reference = self._candidates(method)
        if not candidates:
            return []

        first = candidates[0]
        if first.param is not None:
            properties = [self.resolver.resolve_property(c.annotation) for c in candidates]
            if all(p.is_simple() for p in properties):
                return self._form_parameters(candidates, properties)
            return [self._object_body(candidates, properties, name, reference)]

        if first.request_handle:
            return self._implicit_parameters(method)

        raise InvalidDeclaration(
            f"{method.declaring_type}.{method.name}: argument {first.name!r} has no ApiParam metadata"
        )

    # ----------------------------
    # Candidate selection
    # ----------------------------

    def _candidates(self, method: OperationDeclaration) -> tuple[Sequence[ArgumentDeclaration], str, str]:
        body = method.request_body
        if body is not None:
            existing = self.document.definitions.get(body.name)
            if existing is not None and existing.reference not in (None, body.reference):
                raise InvalidDeclaration(
                    f"model name {body.name!r} is already used by {existing.reference}, "
                    f"cannot register {body.reference}"
                )
            return body.arguments, body.name, body.reference

        return method.arguments, f"{method.declaring_name}_{method.name}", method.identifier

    # ----------------------------
    # Shapes
    # ----------------------------

    def _form_parameters(
        self, candidates: Sequence[ArgumentDeclaration], properties: Sequence[Schema]
    ) -> list[Parameter]:
        out: list[Parameter] = []
        for c, prop in zip(candidates, properties):
            if c.param is None:
                continue
            ann = c.param
            out.append(
                Parameter(
                    name=ann.name or c.name,
                    location="formData",
                    required=ann.required,
                    description=ann.value,
                    default=ann.default,
                    access=ann.access,
                    enum=allowable_values(ann.allowable_values),
                    shape=prop,
                )
            )
        return out

    def _object_body(
        self,
        candidates: Sequence[ArgumentDeclaration],
        properties: Sequence[Schema],
        name: str,
        reference: str,
    ) -> Parameter:
        fields: dict[str, Schema] = {}
        required: list[str] = []
        for c, prop in zip(candidates, properties):
            if c.param is None:
                continue
            field_name = c.param.name or c.name
            if c.param.value:
                prop = prop.model_copy(update={"description": c.param.value})
            fields[field_name] = prop
            if c.param.required:
                required.append(field_name)
            self.document.add_models(self.resolver.models_for(prop))

        self.document.add_model(
            name,
            Schema(kind="object", properties=fields, required=required, reference=reference),
        )
        return Parameter(name=name, location="body", required=True, shape=Schema.ref_to(name))

    def _token_body(self, method: OperationDeclaration) -> Parameter:
        prop = self.resolver.resolve_property(method.request_element)
        if prop.kind != "array" or prop.items is None:
            raise UnsupportedShape(
                f"{method.declaring_type}.{method.name}: request token must wrap an array, got {prop.kind}"
            )
        self.document.add_models(self.resolver.models_for(prop))

        name = method.identifier
        self.document.add_model(name, Schema.array_of(prop.items))
        return Parameter(name=name, location="body", required=True, shape=Schema.ref_to(name))

    # ----------------------------
    # Implicit parameters
    # ----------------------------

    def _implicit_parameters(self, method: OperationDeclaration) -> list[Parameter]:
        implicit = method.implicit_params
        if not implicit:
            return []

        if any(p.data_type == "object" for p in implicit):
            name = f"{method.declaring_type}.{method.name}"
            fields: dict[str, Schema] = {}
            required: list[str] = []
            for p in implicit:
                fields[p.name] = primitive_from_name(p.data_type).model_copy(
                    update={"access": p.access, "default": p.default, "description": p.value}
                )
                if p.required:
                    required.append(p.name)
            self.document.add_model(
                name,
                Schema(kind="object", properties=fields, required=required, reference=name),
            )
            return [Parameter(name=name, location="body", required=True, shape=Schema.ref_to(name))]

        out: list[Parameter] = []
        for p in implicit:
            param = self._implicit(p)
            if param is not None:
                out.append(param)
        return out

    def _implicit(self, p: ImplicitParam) -> Optional[Parameter]:
        kind = p.param_type.strip().lower()
        if kind == "body":
            logger.warning("implicit body parameter %r is not supported; skipped", p.name)
            return None
        location = _IMPLICIT_LOCATIONS.get(kind)
        if location is None:
            logger.warning("Unknown implicit parameter type: [%s]", p.param_type)
            return None

        return Parameter(
            name=p.name,
            location=location,
            required=p.required,
            description=p.value,
            default=p.default,
            access=p.access,
            enum=allowable_values(p.allowable_values),
            shape=primitive_from_name(p.data_type),
        )
