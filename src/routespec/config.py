from __future__ import annotations

import importlib
import json
import tomllib
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


class CompilerConfig(BaseModel):
    """
    Document-level settings plus the resolver's type override table.

    ``type_overrides`` maps dotted type paths ("decimal.Decimal",
    "myapp.types.Money") to primitive names ("string", "number", "date-time").
    """

    title: str = "API"
    version: str = "1.0.0"
    description: str = ""
    host: Optional[str] = None
    base_path: str = "/"
    schemes: list[str] = Field(default_factory=list)
    consumes: list[str] = Field(default_factory=lambda: ["application/json"])
    produces: list[str] = Field(default_factory=lambda: ["application/json"])
    include_hidden: bool = False
    security_definitions: dict[str, dict[str, Any]] = Field(default_factory=dict)
    type_overrides: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompilerConfig:
        known = {k: v for k, v in data.items() if not k.startswith("_") and k in cls.model_fields}
        return cls(**known)

    def resolved_overrides(self) -> dict[Any, str]:
        """Import every overridden type; the result feeds SchemaResolver."""
        return {import_object(path): kind for path, kind in self.type_overrides.items()}


def import_object(dotted: str) -> Any:
    """'pkg.mod:Name', 'pkg.mod.Name' or 'pkg.mod:Outer.Inner' -> object."""
    if ":" in dotted:
        module_name, attr = dotted.split(":", 1)
    else:
        module_name, _, attr = dotted.rpartition(".")
    if not module_name or not attr:
        raise ImportError(f"not an importable object path: {dotted!r}")

    obj: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ImportError(f"{module_name!r} has no attribute {attr!r}") from e
    return obj


def _read(path: Path) -> dict[str, Any]:
    if path.suffix in (".yaml", ".yml"):
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    if path.suffix == ".json":
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    raise ValueError(f"unsupported config file type: {path.suffix or path.name!r}")


def load_config(path: Path) -> CompilerConfig:
    """
    Read a YAML, JSON or TOML file. Settings may sit at the top level or,
    as in pyproject.toml, under ``tool.routespec``.
    """
    data = _read(Path(path))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of settings, got {type(data).__name__}")
    section = data.get("tool", {}).get("routespec")
    return CompilerConfig.from_dict(section if section is not None else data)
