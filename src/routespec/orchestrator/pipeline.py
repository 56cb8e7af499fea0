from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from routespec.compiler.scanner import RouteScanner
from routespec.compiler.schema import SchemaResolver
from routespec.config import CompilerConfig, import_object
from routespec.document.export import render_swagger
from routespec.document.model import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileResult:
    document: Document
    swagger: dict[str, Any]
    services: list[str]
    operations: int
    models: int
    unresolved: list[str]


def run_compile(
    targets: Iterable[Any],
    config: Optional[CompilerConfig] = None,
) -> CompileResult:
    """
    Scan every target (a class, or a 'pkg.module:ClassName' string) into one
    fresh Document and render it.
    """
    config = config or CompilerConfig()
    resolver = SchemaResolver(config.resolved_overrides())
    scanner = RouteScanner(Document(), resolver)

    services: list[str] = []
    for target in targets:
        cls = import_object(target) if isinstance(target, str) else target
        logger.debug("scanning %r", cls)
        scanner.read(cls, include_hidden=config.include_hidden)
        services.append(f"{cls.__module__}.{cls.__qualname__}")

    document = scanner.document
    unresolved = document.unresolved_references()
    if unresolved:
        logger.error("unresolved model references: %s", ", ".join(unresolved))

    return CompileResult(
        document=document,
        swagger=render_swagger(document, config),
        services=services,
        operations=sum(1 for _ in document.operations()),
        models=len(document.definitions),
        unresolved=unresolved,
    )
