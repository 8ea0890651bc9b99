from __future__ import annotations

import logging
from typing import Iterable, Literal

from routesmith.domain.errors import RouteCollisionError
from routesmith.routes.resolver import OperationReference

logger = logging.getLogger(__name__)

CollisionPolicy = Literal["error", "last_wins"]

# every one of these must be unique across the whole route table
_UNIQUE_FIELDS = ("path", "function_id", "operation_name")


def check_collisions(
    references: Iterable[OperationReference],
    policy: CollisionPolicy = "error",
) -> tuple[OperationReference, ...]:
    """
    Enforce unique path / function_id / operation_name.

    "error":     raise RouteCollisionError on the first duplicate
    "last_wins": the later reference replaces the earlier one, in its slot
    """
    if policy not in ("error", "last_wins"):
        raise ValueError(f"Unknown collision policy: {policy!r}")

    kept: list[OperationReference] = []
    for ref in references:
        clashes = [prev for prev in kept if _clash_field(prev, ref) is not None]
        slot = kept.index(clashes[0]) if clashes else len(kept)
        for prev in clashes:
            field = _clash_field(prev, ref)
            value = getattr(ref, field)
            if policy == "error":
                raise RouteCollisionError(
                    f"duplicate {field} {value!r}: {prev.operation_id} "
                    f"({prev.parent_resource}) and {ref.operation_id} ({ref.parent_resource})",
                    field=field,
                    value=value,
                    resource=ref.parent_resource,
                    operation=ref.operation_id,
                )
            logger.warning(
                "duplicate %s %r: %s replaces %s", field, value, ref.operation_id, prev.operation_id
            )
            kept.remove(prev)
        kept.insert(slot, ref)
    return tuple(kept)


def _clash_field(a: OperationReference, b: OperationReference) -> str | None:
    for field in _UNIQUE_FIELDS:
        if getattr(a, field) == getattr(b, field):
            return field
    return None
