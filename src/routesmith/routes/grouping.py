from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from routesmith.domain.errors import RouteCollisionError
from routesmith.naming.casing import first_upper
from routesmith.routes.resolver import OperationReference, ResourceKind


@dataclass(frozen=True)
class ResourceGroup:
    key: str                    # case-folded parent_resource
    display_name: str           # first-seen casing
    kind: ResourceKind
    references: tuple[OperationReference, ...]

    @property
    def type_prefix(self) -> str:
        # order -> Order (OrderReference, OrderController, ...)
        return first_upper(self.display_name)


def group_by_resource(references: Iterable[OperationReference]) -> Dict[str, ResourceGroup]:
    """
    Partition references by owning resource (case-insensitive).

    Group order and member order are first-seen order, so the output mirrors the
    declaration order of the source model. The synthetic "api" group is moved
    last (a last_wins replacement can put one of its members earlier).
    """
    members: Dict[str, List[OperationReference]] = {}
    first_seen: Dict[str, OperationReference] = {}

    for ref in references:
        key = ref.parent_resource.casefold()
        prev = first_seen.get(key)
        if prev is None:
            first_seen[key] = ref
            members[key] = []
        elif prev.resource_kind != ref.resource_kind:
            # a declared resource named like the synthetic fallback
            raise RouteCollisionError(
                f"resource {ref.parent_resource!r} clashes with the synthetic resource",
                field="parent_resource",
                value=ref.parent_resource,
                resource=ref.parent_resource,
                operation=ref.operation_id,
            )
        members[key].append(ref)

    grouped: Dict[str, ResourceGroup] = {}
    order = sorted(members, key=lambda k: first_seen[k].resource_kind is ResourceKind.SYNTHETIC)
    for key in order:
        refs = members[key]
        head = first_seen[key]
        grouped[key] = ResourceGroup(
            key=key,
            display_name=head.parent_resource,
            kind=head.resource_kind,
            references=tuple(refs),
        )
    return grouped


def route_table_payload(grouped: Dict[str, ResourceGroup]) -> Dict[str, Dict[str, Dict[str, str]]]:
    """resource key -> operation name -> route fields (JSON-ready)."""
    return {
        key: {
            ref.operation_name: {
                "path": ref.path,
                "handler_locator": ref.handler_locator,
                "function_id": ref.function_id,
                "operation_name": ref.operation_name,
            }
            for ref in group.references
        }
        for key, group in grouped.items()
    }
