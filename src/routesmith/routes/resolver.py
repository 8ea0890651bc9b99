from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from routesmith.domain.errors import InvalidModelError
from routesmith.domain.models import Operation
from routesmith.naming.casing import first_lower, to_kebab_case
from routesmith.naming.paths import encode_path

SYNTHETIC_RESOURCE = "api"

_IDENT = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


class ResourceKind(str, Enum):
    DECLARED = "declared"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class OperationReference:
    """One routable operation, normalized for code generation."""

    path: str                   # GET /orders/{orderId}
    handler_locator: str        # order/getorder
    function_id: str            # get-order
    operation_name: str         # getOrder
    parent_resource: str        # order | api
    resource_kind: ResourceKind = ResourceKind.DECLARED
    operation_id: str = ""      # source identity, for error reporting

    @property
    def method(self) -> str:
        return self.path.split(" ", 1)[0]

    @property
    def uri(self) -> str:
        return self.path.split(" ", 1)[1]


def require_identifier(value: str, what: str, resource: str, operation: str) -> None:
    if not value or not _IDENT.match(value):
        raise InvalidModelError(
            f"{what} name must be a non-empty identifier, got {value!r}",
            resource=resource or None,
            operation=operation or None,
        )


def resolve_operation(
    resource_name: str,
    operation: Operation,
    kind: ResourceKind = ResourceKind.DECLARED,
) -> Optional[OperationReference]:
    """
    Derive the OperationReference for one operation owned by resource_name.

    Returns None when the operation has no HTTP binding: not every operation is
    externally routable. Empty or non-identifier names fail fast.
    """
    name = operation.name
    require_identifier(resource_name, "resource", resource_name, operation.identity)
    require_identifier(name, "operation", resource_name, operation.identity)

    binding = operation.http
    if binding is None:
        return None

    # a segment-less URI is the root route
    uri = encode_path(binding.segments) or "/"

    return OperationReference(
        path=f"{binding.method} {uri}",
        handler_locator=f"{resource_name.lower()}/{name.lower()}",
        function_id=to_kebab_case(name),
        operation_name=first_lower(name),
        parent_resource=resource_name.lower(),
        resource_kind=kind,
        operation_id=operation.identity,
    )
