from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from routesmith.domain.errors import ModelLoadError
from routesmith.domain.models import Service
from routesmith.naming.paths import parse_uri

_SMITHY_HTTP_TRAIT = "smithy.api#http"

# order in which a Smithy resource's operations are reported
_SMITHY_LIFECYCLE = ("create", "put", "read", "update", "delete", "list")


def load_service(path: Path, service_id: Optional[str] = None) -> Service:
    """
    Load a service model from a .json/.yaml/.yml file.

    Two document shapes are understood:
      - native:      {"service": {"name": ..., "resources": [...], "operations": [...]}}
      - Smithy AST:  {"smithy": "2.0", "shapes": {...}}
    """
    doc = _read_document(path)
    return service_from_document(doc, service_id=service_id)


def service_from_document(doc: Any, service_id: Optional[str] = None) -> Service:
    if not isinstance(doc, Mapping):
        raise ModelLoadError("model document must be a mapping")
    if "shapes" in doc:
        raw = _smithy_service(doc["shapes"], service_id)
    else:
        raw = _native_service(doc.get("service", doc))
    try:
        return Service.model_validate(raw)
    except ValidationError as exc:
        raise ModelLoadError(f"invalid service model: {exc}") from exc


def _to_builtin(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _to_builtin(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_to_builtin(v) for v in value]
    return value


def _read_document(path: Path) -> Any:
    suffix = path.suffix.lower()
    try:
        with path.open("r", encoding="utf-8") as file:
            if suffix == ".json":
                return json.load(file)
            if suffix in (".yaml", ".yml"):
                return _to_builtin(YAML(typ="safe").load(file))
    except OSError as exc:
        raise ModelLoadError(f"cannot read model {path}: {exc}") from exc
    except (json.JSONDecodeError, YAMLError) as exc:
        raise ModelLoadError(f"cannot parse model {path}: {exc}") from exc
    raise ModelLoadError(f"unsupported model format {suffix or '(none)'}: {path}")


# ----------------------------
# native format
# ----------------------------


def _native_service(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise ModelLoadError("'service' must be a mapping")
    return {
        "name": raw.get("name", ""),
        "operations": [_native_operation(op) for op in _as_list(raw, "operations")],
        "resources": [_native_resource(r) for r in _as_list(raw, "resources")],
    }


def _native_resource(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise ModelLoadError(f"resource entry must be a mapping, got {raw!r}")
    return {
        "name": raw.get("name", ""),
        "operations": [_native_operation(op) for op in _as_list(raw, "operations")],
        "resources": [_native_resource(r) for r in _as_list(raw, "resources")],
    }


def _native_operation(raw: Any) -> dict[str, Any]:
    if isinstance(raw, str):
        return {"name": raw}
    if not isinstance(raw, Mapping):
        raise ModelLoadError(f"operation entry must be a mapping, got {raw!r}")
    out: dict[str, Any] = {"name": raw.get("name", ""), "id": raw.get("id", "")}
    http = raw.get("http")
    if http is not None:
        out["http"] = _http_binding(http, where=out["name"])
    return out


def _http_binding(http: Any, where: str) -> dict[str, Any]:
    if not isinstance(http, Mapping) or not http.get("method"):
        raise ModelLoadError(f"http binding of {where!r} needs a method")
    if "uri" in http:
        segments: Any = [s.model_dump() for s in parse_uri(str(http["uri"]))]
    else:
        segments = http.get("segments", [])
    return {"method": str(http["method"]), "segments": segments}


def _as_list(raw: Mapping, key: str) -> list:
    value = raw.get(key) or []
    if not isinstance(value, list):
        raise ModelLoadError(f"'{key}' must be a list")
    return value


# ----------------------------
# Smithy JSON AST
# ----------------------------


def _shape_name(shape_id: str) -> str:
    # example.shop#GetOrder -> GetOrder
    return shape_id.split("#", 1)[-1]


def _targets(shape: Mapping, key: str) -> list[str]:
    value = shape.get(key)
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    out = []
    for item in items:
        if not isinstance(item, Mapping) or "target" not in item:
            raise ModelLoadError(f"'{key}' entries must be {{\"target\": ...}} references")
        out.append(str(item["target"]))
    return out


def _shape(shapes: Mapping, shape_id: str, expected: str) -> Mapping:
    shape = shapes.get(shape_id)
    if not isinstance(shape, Mapping):
        raise ModelLoadError(f"shape {shape_id} is not defined")
    if shape.get("type") != expected:
        raise ModelLoadError(f"shape {shape_id} is a {shape.get('type')}, expected {expected}")
    return shape


def _smithy_service(shapes: Any, service_id: Optional[str]) -> dict[str, Any]:
    if not isinstance(shapes, Mapping):
        raise ModelLoadError("'shapes' must be a mapping")

    if service_id is None:
        services = [sid for sid, s in shapes.items() if isinstance(s, Mapping) and s.get("type") == "service"]
        if len(services) != 1:
            raise ModelLoadError(
                f"expected exactly one service shape, found {len(services)}; pass a service id"
            )
        service_id = services[0]

    shape = _shape(shapes, service_id, "service")
    return {
        "name": _shape_name(service_id),
        "operations": [_smithy_operation(shapes, t) for t in _targets(shape, "operations")],
        "resources": [_smithy_resource(shapes, t) for t in _targets(shape, "resources")],
    }


def _smithy_resource(shapes: Mapping, resource_id: str) -> dict[str, Any]:
    shape = _shape(shapes, resource_id, "resource")
    op_ids: list[str] = []
    for key in _SMITHY_LIFECYCLE + ("operations", "collectionOperations"):
        for target in _targets(shape, key):
            if target not in op_ids:
                op_ids.append(target)
    return {
        "name": _shape_name(resource_id),
        "operations": [_smithy_operation(shapes, t) for t in op_ids],
        "resources": [_smithy_resource(shapes, t) for t in _targets(shape, "resources")],
    }


def _smithy_operation(shapes: Mapping, operation_id: str) -> dict[str, Any]:
    shape = _shape(shapes, operation_id, "operation")
    name = _shape_name(operation_id)
    out: dict[str, Any] = {"name": name, "id": operation_id}
    trait = (shape.get("traits") or {}).get(_SMITHY_HTTP_TRAIT)
    if trait is not None:
        out["http"] = _http_binding(trait, where=name)
    return out
