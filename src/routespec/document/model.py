from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional

from routespec.domain.models import Operation, Schema

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """
    The compiled document: path table, model registry, tags and security schemes.

    Built incrementally by a single scan; insertions are idempotent and
    nothing is ever rolled back.
    """

    paths: dict[str, dict[str, Operation]]
    definitions: dict[str, Schema]
    tags: list[str]
    security_schemes: list[str]

    def __init__(self) -> None:
        self.paths = {}
        self.definitions = {}
        self.tags = []
        self.security_schemes = []

    # ----------------------------
    # Paths
    # ----------------------------

    def add_operation(self, path: str, verb: str, operation: Operation) -> None:
        verbs = self.paths.setdefault(path, {})
        verb = verb.lower()
        if verb in verbs:
            logger.warning(
                "%s %s declared twice; %s replaces %s",
                verb.upper(),
                path,
                operation.operation_id,
                verbs[verb].operation_id,
            )
        verbs[verb] = operation

    def operation(self, path: str, verb: str) -> Optional[Operation]:
        return self.paths.get(path, {}).get(verb.lower())

    def operations(self) -> Iterator[tuple[str, str, Operation]]:
        for path, verbs in self.paths.items():
            for verb, op in verbs.items():
                yield path, verb, op

    # ----------------------------
    # Models
    # ----------------------------

    def add_model(self, name: str, model: Schema) -> None:
        existing = self.definitions.get(name)
        if existing is None:
            self.definitions[name] = model.model_copy(deep=True)
            return
        if existing == model:
            return

        if existing.kind == "object" and model.kind == "object":
            # later shape wins per property, earlier properties are kept
            properties = {**existing.properties, **model.properties}
            required = list(dict.fromkeys(existing.required + model.required))
            self.definitions[name] = model.model_copy(
                update={"properties": properties, "required": required},
                deep=True,
            )
            logger.debug("merged model %s (%d properties)", name, len(properties))
        else:
            self.definitions[name] = model.model_copy(deep=True)
            logger.debug("replaced model %s (%s -> %s)", name, existing.kind, model.kind)

    def add_models(self, models: Mapping[str, Schema]) -> None:
        for name, model in models.items():
            self.add_model(name, model)

    def unresolved_references(self) -> list[str]:
        """Reference names used anywhere in the document with no registry entry."""
        seen: set[str] = set()
        for model in self.definitions.values():
            seen.update(model.references())
        for _, _, op in self.operations():
            for p in op.parameters:
                seen.update(p.shape.references())
            for resp in op.responses.values():
                if resp.shape is not None:
                    seen.update(resp.shape.references())
                for header in resp.headers.values():
                    seen.update(header.references())
        return sorted(n for n in seen if n not in self.definitions)

    # ----------------------------
    # Tags / security
    # ----------------------------

    def add_tag(self, tag: str) -> None:
        if tag and tag not in self.tags:
            self.tags.append(tag)

    def add_security_scheme(self, name: str) -> None:
        if name and name not in self.security_schemes:
            self.security_schemes.append(name)
