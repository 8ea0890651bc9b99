from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, Iterable

from routesmith.domain.models import Resource, Service
from routesmith.routes.resolver import (
    SYNTHETIC_RESOURCE,
    OperationReference,
    ResourceKind,
    require_identifier,
    resolve_operation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteTableBuildResult:
    references: tuple[OperationReference, ...]
    claimed: frozenset[str]  # identities of resource-owned operations


def build_route_table(service: Service) -> RouteTableBuildResult:
    """
    Walk the service graph once and resolve every routable operation.

    Order:
      - resources depth-first in declaration order; a resource's own operations
        come before its children's
      - operations owned by no resource, resolved against "api", last

    Unbound operations are claimed but produce no reference. Operations sharing
    a name stay distinct unless they share an id or are equal; the collision
    check reports them. Assumes a finite, acyclic containment graph.
    """
    require_identifier(service.name, "service", "", "")

    references: list[OperationReference] = []
    owned: set[Hashable] = set()
    claimed: set[str] = set()

    _walk_resources(service.resources, references, owned, claimed)

    orphans = 0
    for op in service.iter_operations():
        if op.key in owned:
            continue
        ref = resolve_operation(SYNTHETIC_RESOURCE, op, kind=ResourceKind.SYNTHETIC)
        if ref is not None:
            references.append(ref)
            orphans += 1

    logger.debug(
        "service %s: %d routable operations (%d unowned), %d claimed by resources",
        service.name,
        len(references),
        orphans,
        len(claimed),
    )
    return RouteTableBuildResult(references=tuple(references), claimed=frozenset(claimed))


def _walk_resources(
    resources: Iterable[Resource],
    references: list[OperationReference],
    owned: set[Hashable],
    claimed: set[str],
) -> None:
    for resource in resources:
        logger.debug("resource %s: %d operations", resource.name, len(resource.operations))
        for op in resource.operations:
            # listed under several resources: the first one in walk order keeps it
            if op.key in owned:
                continue
            owned.add(op.key)
            claimed.add(op.identity)
            ref = resolve_operation(resource.name, op)
            if ref is not None:
                references.append(ref)
        _walk_resources(resource.resources, references, owned, claimed)
