from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Set

from routesmith.emit.artifacts import GENERATED_HEADER, ArtifactRecord

logger = logging.getLogger(__name__)


def render_files(records: Iterable[ArtifactRecord]) -> Dict[str, str]:
    """
    Fold records into file contents: rel_path -> text.

    Files appear in first-seen order; records sharing a file are joined with
    two blank lines, in emission order.
    """
    bodies: Dict[str, List[str]] = {}
    for rec in records:
        bodies.setdefault(rec.rel_path, []).append(rec.body.strip("\n"))
    return {rel: "\n\n\n".join(parts) + "\n" for rel, parts in bodies.items()}


def write_artifacts(records: Iterable[ArtifactRecord], out_dir: Path) -> List[Path]:
    """
    Write every file under out_dir, then remove generated files a previous run
    left behind. Files without the generated header are never touched.
    """
    out_dir = out_dir.expanduser()
    written: List[Path] = []
    for rel_path, text in render_files(records).items():
        target = out_dir / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        logger.info("wrote %s", target)
        written.append(target)
    _remove_stale(out_dir, set(written))
    return written


def _remove_stale(out_dir: Path, keep: Set[Path]) -> List[Path]:
    removed: List[Path] = []
    for path in sorted(out_dir.rglob("*.py")):
        if path in keep or not _is_generated(path):
            continue
        path.unlink()
        logger.info("removed stale %s", path)
        removed.append(path)
    return removed


def _is_generated(path: Path) -> bool:
    try:
        with path.open("r", encoding="utf-8") as file:
            return file.readline().rstrip("\n") == GENERATED_HEADER
    except UnicodeDecodeError:
        return False
