from __future__ import annotations

import logging
from typing import Any, Iterable, NoReturn, Optional

from routespec.compiler.params import ParameterClassifier
from routespec.compiler.schema import SchemaResolver
from routespec.declarations.metadata import ApiOperation, ApiResponse, OperationDeclaration, ResponseHeader
from routespec.declarations.types import type_token_element, unwrap_async
from routespec.document.model import Document
from routespec.domain.models import Operation, Response, Schema

logger = logging.getLogger(__name__)

SUCCESS = "successful operation"


def is_no_content(tp: Any) -> bool:
    return tp is None or tp is type(None) or tp is NoReturn


def wrap_container(schema: Schema, container: str) -> Schema:
    hint = (container or "").strip().lower()
    if hint in ("list", "set"):
        return Schema.array_of(schema)
    if hint == "map":
        return Schema.map_of(schema)
    return schema


class OperationBuilder:
    def __init__(
        self,
        resolver: SchemaResolver,
        document: Document,
        classifier: Optional[ParameterClassifier] = None,
    ) -> None:
        self.resolver = resolver
        self.document = document
        self.classifier = classifier or ParameterClassifier(resolver, document)

    def build(self, method: OperationDeclaration) -> Optional[Operation]:
        """One Operation for a routed method, or None when it is hidden."""
        api_op = method.operation or ApiOperation()
        if api_op.hidden:
            return None

        op = Operation(
            operation_id=api_op.nickname or method.name,
            summary=api_op.value,
            description=api_op.notes,
            deprecated=method.deprecated,
        )
        for auth in api_op.authorizations:
            op.add_security(auth.value)

        headers = self.response_headers(api_op.response_headers)
        payload = self.payload_type(method)
        if payload is not None:
            op.set_response(
                200,
                Response(
                    description=SUCCESS,
                    shape=self._shape(payload, api_op.response_container),
                    headers=headers,
                ),
            )

        op.consumes = list(method.consumes)
        op.produces = list(method.produces)

        for declared in method.responses:
            self._declared_response(op, declared)

        op.parameters = self.classifier.classify(method)

        if not op.responses:
            op.set_response(0, Response(description=SUCCESS))
        return op

    def payload_type(self, method: OperationDeclaration) -> Any:
        """
        Success payload: the explicit response type, else (for json requests)
        the return type with any async wrapper removed. TypeTokens are replaced
        by their element type. None means no content.
        """
        api_op = method.operation or ApiOperation()
        tp = None
        if not is_no_content(api_op.response):
            tp = api_op.response
        elif method.json_request:
            tp = unwrap_async(method.return_type)

        if is_no_content(tp):
            return None
        element = type_token_element(tp)
        return tp if element is None else element

    def response_headers(self, headers: Iterable[ResponseHeader]) -> dict[str, Schema]:
        out: dict[str, Schema] = {}
        for h in headers:
            if not h.name or is_no_content(h.response):
                continue
            shape = self._shape(h.response, h.container)
            out[h.name] = shape.model_copy(update={"description": h.description})
        return out

    def _declared_response(self, op: Operation, declared: ApiResponse) -> None:
        response = Response(
            description=declared.message,
            headers=self.response_headers(declared.headers),
        )
        if not is_no_content(declared.response):
            response.shape = self._shape(declared.response, declared.container)
        op.set_response(declared.code, response)

    def _shape(self, tp: Any, container: str = "") -> Schema:
        """Inline schema for primitives/arrays, a reference for object models; models get registered."""
        prop = self.resolver.resolve_property(tp)
        self.document.add_models(self.resolver.models_for(prop))
        return wrap_container(prop, container)
