from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from routesmith.domain.errors import SynthesisError
from routesmith.domain.models import Service
from routesmith.emit.artifacts import ArtifactRecord, emit_artifacts
from routesmith.emit.writer import write_artifacts
from routesmith.model.loader import load_service
from routesmith.routes.builder import build_route_table
from routesmith.routes.collisions import CollisionPolicy, check_collisions
from routesmith.routes.grouping import ResourceGroup, group_by_resource
from routesmith.routes.resolver import OperationReference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SynthesisResult:
    service_name: str
    references: tuple[OperationReference, ...]
    claimed: frozenset[str]
    grouped: Dict[str, ResourceGroup]
    artifacts: tuple[ArtifactRecord, ...]


@dataclass(frozen=True)
class GenerateResult:
    synthesis: SynthesisResult
    out_dir: str
    written: list[str]
    dry_run: bool


def run_synthesis(service: Service, collision_policy: CollisionPolicy = "error") -> SynthesisResult:
    """
    build -> collisions -> group -> emit, all in memory.

    Any SynthesisError aborts the whole run; there is no partial result.
    """
    try:
        built = build_route_table(service)
        references = check_collisions(built.references, policy=collision_policy)
        grouped = group_by_resource(references)
        artifacts = emit_artifacts(grouped, service.name)
    except SynthesisError as exc:
        logger.error("synthesis of %s failed: %s", service.name, exc)
        raise

    logger.info(
        "synthesized %s: %d routes in %d resource groups, %d artifacts",
        service.name,
        len(references),
        len(grouped),
        len(artifacts),
    )
    return SynthesisResult(
        service_name=service.name,
        references=references,
        claimed=built.claimed,
        grouped=grouped,
        artifacts=artifacts,
    )


def run_generate(
    model_path: Path,
    out_dir: Path,
    service_id: Optional[str] = None,
    collision_policy: CollisionPolicy = "error",
    dry_run: bool = False,
) -> GenerateResult:
    service = load_service(model_path, service_id=service_id)
    synthesis = run_synthesis(service, collision_policy=collision_policy)

    written: list[str] = []
    if not dry_run:
        written = [str(p) for p in write_artifacts(synthesis.artifacts, out_dir)]

    return GenerateResult(
        synthesis=synthesis,
        out_dir=str(out_dir),
        written=written,
        dry_run=dry_run,
    )
