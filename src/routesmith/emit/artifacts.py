from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Tuple

from routesmith.domain.errors import RouteCollisionError
from routesmith.naming.casing import to_kebab_case
from routesmith.routes.grouping import ResourceGroup
from routesmith.routes.resolver import OperationReference

ArtifactKind = Literal[
    "module_header",
    "resource_contract",
    "operation_union",
    "route_table",
    "resource_handlers",
    "route_bindings",
    "handler_base",
    "handler_builder",
    "controller_base",
    "controller_stub",
    "resource_controller",
    "index",
]

GENERATED_HEADER = "# Generated by routesmith. Do not edit by hand."


@dataclass(frozen=True)
class ArtifactRecord:
    kind: ArtifactKind
    name: str
    rel_path: str   # relative to the output package root
    body: str       # written verbatim


def _render(lines: List[str]) -> str:
    return "\n".join(lines).rstrip() + "\n"


def _q(value: str) -> str:
    return json.dumps(value)


def _module_stem(value: str) -> str:
    # get-order -> get_order ; ShopService -> shop_service
    return to_kebab_case(value).replace("-", "_")


def routes_module_name(service_name: str) -> str:
    return f"{_module_stem(service_name)}_routes"


def handler_module_name(ref: OperationReference) -> str:
    return f"{_module_stem(ref.function_id)}_handler"


def controller_module_name(ref: OperationReference) -> str:
    return f"{_module_stem(ref.function_id)}_controller"


def resource_controller_module_name(group: ResourceGroup) -> str:
    return f"{_module_stem(group.key)}_resource"


def emit_artifacts(
    grouped: Dict[str, ResourceGroup],
    service_name: str,
) -> Tuple[ArtifactRecord, ...]:
    """
    Turn the grouped route model into output records. No IO.

    Layout of the generated package:
      routes/<service>_routes.py        route table + contracts
      handlers/base.py                  gateway handler protocol
      handlers/<fn>_handler.py          one handler builder per operation
      controllers/base.py               controller config
      controllers/<fn>_controller.py    one abstract controller stub per operation
      controllers/<res>_resource.py     one controller per resource
      */__init__.py                     re-export indexes
    """
    groups = list(grouped.values())
    records: List[ArtifactRecord] = []

    records.extend(_routes_module(groups, service_name))
    records.append(_handler_base())
    records.append(_controller_base())

    for group in groups:
        for ref in group.references:
            records.append(_handler_builder(ref))
            records.append(_controller_stub(ref))
        records.append(_resource_controller(group))

    records.extend(_indexes(groups, service_name))
    _check_file_owners(records)
    return tuple(records)


def _check_file_owners(records: Iterable[ArtifactRecord]) -> None:
    # only the routes module is assembled from several records
    owners: Dict[str, ArtifactRecord] = {}
    for rec in records:
        if rec.rel_path.startswith("routes/") and rec.kind != "index":
            continue
        prev = owners.get(rec.rel_path)
        if prev is not None:
            raise RouteCollisionError(
                f"{prev.name} and {rec.name} would both be written to {rec.rel_path}",
                field="rel_path",
                value=rec.rel_path,
                operation=rec.name,
            )
        owners[rec.rel_path] = rec


# ----------------------------
# routes/<service>_routes.py
# ----------------------------


def operation_names(groups: Iterable[ResourceGroup]) -> List[str]:
    names: List[str] = []
    for group in groups:
        for ref in group.references:
            if ref.operation_name not in names:
                names.append(ref.operation_name)
    return names


def _routes_module(groups: List[ResourceGroup], service_name: str) -> List[ArtifactRecord]:
    rel_path = f"routes/{routes_module_name(service_name)}.py"
    names = operation_names(groups)
    out: List[ArtifactRecord] = []

    union_type = "Literal" if names else "NoReturn"
    lines = [
        GENERATED_HEADER,
        f'"""Route table for the {service_name} service."""',
        "from __future__ import annotations",
        "",
        f"from typing import Any, Callable, Dict, {union_type}, Tuple, TypedDict",
        "",
        "",
        "class OperationDefinition(TypedDict):",
        "    path: str",
        "    handler_locator: str",
        "    function_id: str",
        "    operation_name: str",
        "",
        "",
        "HandlerProps = Dict[str, Any]",
        "Operations = Dict[str, OperationDefinition]",
    ]
    out.append(ArtifactRecord("module_header", "OperationDefinition", rel_path, _render(lines)))

    for group in groups:
        name = f"{group.type_prefix}Reference"
        fields = [(ref.operation_name, "OperationDefinition") for ref in group.references]
        out.append(ArtifactRecord("resource_contract", name, rel_path, _typed_dict(name, fields)))

    if names:
        union = f"OperationName = Literal[{', '.join(_q(n) for n in names)}]"
    else:
        union = "OperationName = NoReturn"
    out.append(ArtifactRecord("operation_union", "OperationName", rel_path, _render([union])))

    lines = _typed_dict_lines(
        "OperationReferences",
        [(g.key, f"{g.type_prefix}Reference") for g in groups],
    )
    lines.append("")
    lines.append("OPERATIONS: OperationReferences = {")
    for group in groups:
        lines.append(f"    {_q(group.key)}: {{")
        for ref in group.references:
            lines.append(f"        {_q(ref.operation_name)}: {{")
            lines.append(f"            \"path\": {_q(ref.path)},")
            lines.append(f"            \"handler_locator\": {_q(ref.handler_locator)},")
            lines.append(f"            \"function_id\": {_q(ref.function_id)},")
            lines.append(f"            \"operation_name\": {_q(ref.operation_name)},")
            lines.append("        },")
        lines.append("    },")
    lines.append("}")
    out.append(ArtifactRecord("route_table", "OPERATIONS", rel_path, _render(lines)))

    for group in groups:
        name = f"{group.type_prefix}ResourceOperationHandlers"
        fields = [(ref.operation_name, "Callable[[], HandlerProps]") for ref in group.references]
        out.append(ArtifactRecord("resource_handlers", name, rel_path, _typed_dict(name, fields)))

    lines = _typed_dict_lines(
        "OperationHandlers",
        [(g.key, f"{g.type_prefix}ResourceOperationHandlers") for g in groups],
    )
    lines += [
        "BoundRoute = Dict[OperationName, Callable[[], HandlerProps]]",
        "",
        "",
        "def bind_routes(",
        "    route_handlers: OperationHandlers,",
        ") -> Dict[str, Tuple[OperationDefinition, HandlerProps]]:",
        '    """Map every route path to its definition and handler configuration."""',
        "    return {",
    ]
    for group in groups:
        for ref in group.references:
            lookup = f"[{_q(group.key)}][{_q(ref.operation_name)}]"
            lines.append(f"        {_q(ref.path)}: (")
            lines.append(f"            OPERATIONS{lookup},")
            lines.append(f"            route_handlers{lookup}(),")
            lines.append("        ),")
    lines.append("    }")
    out.append(ArtifactRecord("route_bindings", "bind_routes", rel_path, _render(lines)))
    return out


def _typed_dict_lines(name: str, fields: List[Tuple[str, str]]) -> List[str]:
    # functional syntax: keys need not be valid attribute names
    if not fields:
        return [f"{name} = TypedDict({_q(name)}, {{}})"]
    lines = [f"{name} = TypedDict(", f"    {_q(name)},", "    {"]
    for key, type_expr in fields:
        lines.append(f"        {_q(key)}: {type_expr},")
    lines += ["    },", ")"]
    return lines


def _typed_dict(name: str, fields: List[Tuple[str, str]]) -> str:
    return _render(_typed_dict_lines(name, fields))


# ----------------------------
# handlers/
# ----------------------------

_HANDLER_BASE_NAMES = ("GatewayHandler", "Handler", "Operation", "OperationTransformation")


def _handler_base() -> ArtifactRecord:
    lines = [
        GENERATED_HEADER,
        '"""Gateway handler contract shared by the generated handler builders."""',
        "from __future__ import annotations",
        "",
        "from typing import Any, Callable, Protocol",
        "",
        "Operation = Callable[..., Any]",
        "Handler = Callable[..., Any]",
        "OperationTransformation = Callable[[Operation], Operation]",
        "",
        "",
        "class GatewayHandler(Protocol):",
        "    def handle(self, operation_name: str, operation: Operation) -> Handler:",
        "        ...",
    ]
    return ArtifactRecord("handler_base", "GatewayHandler", "handlers/base.py", _render(lines))


def _handler_builder(ref: OperationReference) -> ArtifactRecord:
    name = f"{ref.operation_name}HandlerBuilder"
    lines = [
        GENERATED_HEADER,
        "from __future__ import annotations",
        "",
        "from typing import Optional",
        "",
        f"from .base import {', '.join(_HANDLER_BASE_NAMES)}",
        "",
        "",
        f"def {name}(",
        "    gateway_handler: GatewayHandler,",
        "    op: Operation,",
        "    operation_transformation: Optional[OperationTransformation] = None,",
        ") -> Handler:",
        f'    """Bind the {ref.operation_name} business operation to the gateway handler."""',
        "    operation = operation_transformation(op) if operation_transformation else op",
        f"    return gateway_handler.handle({_q(ref.operation_name)}, operation)",
    ]
    rel_path = f"handlers/{handler_module_name(ref)}.py"
    return ArtifactRecord("handler_builder", name, rel_path, _render(lines))


# ----------------------------
# controllers/
# ----------------------------


def _controller_base() -> ArtifactRecord:
    lines = [
        GENERATED_HEADER,
        "from __future__ import annotations",
        "",
        "from dataclasses import dataclass",
        "from typing import Optional",
        "",
        "from ..handlers.base import GatewayHandler, OperationTransformation",
        "",
        "",
        "@dataclass",
        "class ControllerConfig:",
        "    gateway_handler: GatewayHandler",
        "    operation_transformation: Optional[OperationTransformation] = None",
    ]
    return ArtifactRecord("controller_base", "ControllerConfig", "controllers/base.py", _render(lines))


def _controller_stub(ref: OperationReference) -> ArtifactRecord:
    op = ref.operation_name
    name = f"{op}Controller"
    lines = [
        GENERATED_HEADER,
        "from __future__ import annotations",
        "",
        "from abc import ABC, abstractmethod",
        "from typing import Optional",
        "",
        "from ..handlers.base import GatewayHandler, Handler, Operation, OperationTransformation",
        f"from ..handlers.{handler_module_name(ref)} import {op}HandlerBuilder",
        "from .base import ControllerConfig",
        "",
        "",
        f"class {name}(ABC):",
        "    config: ControllerConfig",
        "",
        "    @abstractmethod",
        f"    def {op}Function(self) -> Operation:",
        f'        """Return the business operation behind {op}."""',
        "",
        f"    def {op}Handler(self) -> Handler:",
        f"        return self._{op}Handler(",
        "            self.config.gateway_handler, self.config.operation_transformation",
        "        )",
        "",
        f"    def _{op}Handler(",
        "        self,",
        "        gateway_handler: GatewayHandler,",
        "        operation_transformation: Optional[OperationTransformation] = None,",
        "    ) -> Handler:",
        f"        return {op}HandlerBuilder(",
        f"            gateway_handler, self.{op}Function(), operation_transformation",
        "        )",
    ]
    rel_path = f"controllers/{controller_module_name(ref)}.py"
    return ArtifactRecord("controller_stub", name, rel_path, _render(lines))


def _resource_controller(group: ResourceGroup) -> ArtifactRecord:
    name = f"{group.type_prefix}Controller"
    lines = [
        GENERATED_HEADER,
        "from __future__ import annotations",
        "",
        "from abc import ABC",
        "",
        "from .base import ControllerConfig",
    ]
    for ref in group.references:
        lines.append(f"from .{controller_module_name(ref)} import {ref.operation_name}Controller")
    bases = [f"{ref.operation_name}Controller" for ref in group.references] + ["ABC"]
    lines += [
        "",
        "",
        f"class {name}({', '.join(bases)}):",
        f'    """Controller for the {group.display_name} resource: implement one *Function per operation."""',
        "",
        "    config: ControllerConfig",
    ]
    rel_path = f"controllers/{resource_controller_module_name(group)}.py"
    return ArtifactRecord("resource_controller", name, rel_path, _render(lines))


# ----------------------------
# indexes
# ----------------------------


def _index(rel_path: str, imports: List[Tuple[str, List[str]]]) -> ArtifactRecord:
    lines = [GENERATED_HEADER]
    exported: List[str] = []
    for module, names in imports:
        for name in names:
            if name in exported:
                raise RouteCollisionError(
                    f"{name} is exported twice from {rel_path}",
                    field="export",
                    value=name,
                    operation=name,
                )
        lines.append(f"from {module} import {', '.join(names)}")
        exported.extend(names)
    lines += ["", "__all__ = ["]
    lines += [f"    {_q(n)}," for n in exported]
    lines.append("]")
    return ArtifactRecord("index", rel_path, rel_path, _render(lines))


def _indexes(groups: List[ResourceGroup], service_name: str) -> List[ArtifactRecord]:
    refs = [ref for group in groups for ref in group.references]

    handler_imports = [(".base", list(_HANDLER_BASE_NAMES))]
    handler_imports += [
        (f".{handler_module_name(ref)}", [f"{ref.operation_name}HandlerBuilder"]) for ref in refs
    ]

    controller_imports = [(".base", ["ControllerConfig"])]
    controller_imports += [
        (f".{controller_module_name(ref)}", [f"{ref.operation_name}Controller"]) for ref in refs
    ]
    controller_imports += [
        (f".{resource_controller_module_name(g)}", [f"{g.type_prefix}Controller"]) for g in groups
    ]

    route_names = ["OPERATIONS", "OperationDefinition", "OperationName", "OperationReferences"]
    route_names += ["OperationHandlers", "HandlerProps", "BoundRoute", "bind_routes"]

    flat_handlers = [n for _, names in handler_imports for n in names]
    flat_controllers = [n for _, names in controller_imports for n in names]

    return [
        _index("handlers/__init__.py", handler_imports),
        _index("controllers/__init__.py", controller_imports),
        _index("routes/__init__.py", [(f".{routes_module_name(service_name)}", route_names)]),
        # the root index leaves routes out so handlers import without the route table
        _index("__init__.py", [(".handlers", flat_handlers), (".controllers", flat_controllers)]),
    ]
