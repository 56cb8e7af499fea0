from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from routespec.compiler.operations import OperationBuilder
from routespec.compiler.paths import join_path, normalize_path, placeholders
from routespec.compiler.schema import SchemaResolver
from routespec.declarations.loader import load_service, qualified_name
from routespec.declarations.metadata import OperationDeclaration, ServiceDeclaration
from routespec.document.model import Document
from routespec.domain.models import Operation, Parameter
from routespec.errors import CyclicSubResource

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/json"

_VERB_MARKERS = {
    "GET": "get",
    "PUT": "put",
    "POST": "post",
    "DELETE": "delete",
    "OPTIONS": "options",
    "PATCH": "patch",
    "HEAD": "head",
}


def operation_verb(method: OperationDeclaration) -> str:
    """
    Explicit verb on the operation, then the verb marker, then a custom
    verb marker. Undecorated operations are command-style: POST.
    """
    if method.operation is not None and method.operation.http_method:
        return method.operation.http_method.lower()
    if method.verb:
        return _VERB_MARKERS.get(method.verb.upper(), method.verb.lower())
    if method.custom_verb:
        return method.custom_verb.lower()
    return "post"


def reconcile_path_parameters(op: Operation, template: str, patterns: dict[str, str]) -> None:
    """Path placeholders become required path parameters carrying their regex."""
    names = placeholders(template)
    for p in op.parameters:
        if p.location != "body" and p.name in names:
            p.location = "path"
            p.required = True
        if p.name in patterns:
            p.pattern = patterns[p.name]

    for name in names:
        if not op.has_parameter(name, "path"):
            op.parameters.append(
                Parameter(name=name, location="path", required=True, pattern=patterns.get(name))
            )


def inherit_parameters(op: Operation, inherited: Sequence[Parameter]) -> None:
    """
    Append the parent's parameters. A parameter the operation already has
    under the same name and location is kept, taking the parent's pattern
    and description where it has none.
    """
    for p in inherited:
        own = next((q for q in op.parameters if q.name == p.name and q.location == p.location), None)
        if own is None:
            op.parameters.append(p.model_copy(deep=True))
            continue
        if own.pattern is None:
            own.pattern = p.pattern
        if not own.description:
            own.description = p.description


class RouteScanner:
    """
    Walks service declarations depth-first and writes one operation per
    (path, verb) into a single Document. Sub-resources are followed with the
    computed path as prefix; a declaration met again on the current
    recursion path is a cycle.
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        resolver: Optional[SchemaResolver] = None,
        builder: Optional[OperationBuilder] = None,
    ) -> None:
        self.document = document if document is not None else Document()
        self.resolver = resolver or SchemaResolver()
        self.builder = builder or OperationBuilder(self.resolver, self.document)
        self._stack: list[type] = []

    def read(self, cls: type, include_hidden: bool = False) -> Document:
        return self.scan(load_service(cls), "", include_hidden)

    def scan(
        self,
        declaration: ServiceDeclaration,
        path_prefix: str = "",
        include_hidden: bool = False,
        inherited_tags: Iterable[str] = (),
        inherited_parameters: Sequence[Parameter] = (),
    ) -> Document:
        if declaration.hidden and not include_hidden:
            logger.debug("skipping hidden declaration %s", declaration.name)
            return self.document

        if declaration.type in self._stack:
            start = self._stack.index(declaration.type)
            chain = [qualified_name(t) for t in self._stack[start:]] + [declaration.name]
            raise CyclicSubResource(chain)

        self._stack.append(declaration.type)
        try:
            tags = list(dict.fromkeys([*inherited_tags, *declaration.tags()]))
            for method in declaration.operations:
                self._scan_method(declaration, method, path_prefix, tags, inherited_parameters)
        finally:
            self._stack.pop()
        return self.document

    def _scan_method(
        self,
        declaration: ServiceDeclaration,
        method: OperationDeclaration,
        path_prefix: str,
        tags: list[str],
        inherited_parameters: Sequence[Parameter],
    ) -> None:
        raw_path = join_path(declaration.path, method.path, path_prefix)
        if raw_path is None or method.operation is None:
            logger.debug("%s.%s is not an exposed route", declaration.name, method.name)
            return

        template, patterns = normalize_path(raw_path)
        verb = operation_verb(method)

        op = self.builder.build(method)
        if op is None:
            return

        # own parameters reach their final location before the parent's are merged in
        reconcile_path_parameters(op, template, patterns)
        inherit_parameters(op, inherited_parameters)

        for scheme in method.operation.protocols.split(","):
            scheme = scheme.strip()
            if scheme and scheme not in op.schemes:
                op.schemes.append(scheme)

        if method.sub_resource is not None:
            self.scan(load_service(method.sub_resource), template, True, tags, op.parameters)

        for tag in method.operation.tags:
            op.add_tag(tag)
            self.document.add_tag(tag)
        for tag in tags:
            op.add_tag(tag)
            self.document.add_tag(tag)

        if not op.consumes:
            op.consumes = [DEFAULT_MEDIA_TYPE]
        if not op.produces:
            op.produces = [DEFAULT_MEDIA_TYPE]

        for name in declaration.authorizations():
            op.add_security(name)
        for name in op.security:
            self.document.add_security_scheme(name)

        self.document.add_operation(template, verb, op)
