from __future__ import annotations

from typing import Hashable, Iterator, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SegmentKind = Literal["literal", "label", "greedy_label", "non_greedy_label", "other"]

LABEL_KINDS = frozenset({"label", "greedy_label", "non_greedy_label"})


class Segment(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    kind: SegmentKind = "literal"

    @property
    def is_label(self) -> bool:
        return self.kind in LABEL_KINDS


class HttpBinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str  # GET, POST, ... (as declared)
    segments: tuple[Segment, ...] = ()


class Operation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    id: str = ""  # e.g. example.shop#GetOrder; falls back to name
    http: Optional[HttpBinding] = None

    @property
    def identity(self) -> str:
        return self.id or self.name

    @property
    def key(self) -> Hashable:
        # an explicit id names one shared operation; anonymous ones match only when equal
        return self.id or self


class Resource(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    operations: tuple[Operation, ...] = ()
    resources: tuple["Resource", ...] = ()


class Service(BaseModel):
    """
    Read-only snapshot of one service: its resources (possibly nested) and the
    operations bound directly to the service.

    The containment graph must be finite and acyclic.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    resources: tuple[Resource, ...] = Field(default_factory=tuple)
    operations: tuple[Operation, ...] = Field(default_factory=tuple)

    def iter_operations(self) -> Iterator[Operation]:
        """Every operation reachable from the service, top-level ones first, de-duped by key."""
        seen: set[Hashable] = set()
        for op in self.operations:
            if op.key not in seen:
                seen.add(op.key)
                yield op
        for op in _walk_resource_operations(self.resources):
            if op.key not in seen:
                seen.add(op.key)
                yield op


def _walk_resource_operations(resources: tuple[Resource, ...]) -> Iterator[Operation]:
    for resource in resources:
        yield from resource.operations
        yield from _walk_resource_operations(resource.resources)
