from __future__ import annotations

import re
from typing import Iterable

from routesmith.domain.models import Segment

_GREEDY_LABEL = re.compile(r"^\{([^{}]+)\+\}$")
_LABEL = re.compile(r"^\{([^{}]+)\}$")


def encode_path(segments: Iterable[Segment]) -> str:
    """
    Render URI segments as a canonical path.

      [literal users, label id] -> /users/{id}
      []                        -> ""   (no leading slash)

    Every label kind renders as {name}; literal, other and unknown kinds render raw.
    """
    parts: list[str] = []
    for seg in segments:
        if seg.is_label:
            parts.append("/{" + seg.content + "}")
        else:
            parts.append("/" + seg.content)
    return "".join(parts)


def parse_uri(uri: str) -> tuple[Segment, ...]:
    # query literals (/x?list) are not part of the path
    path = (uri or "").split("?", 1)[0].strip()
    out: list[Segment] = []
    for raw in path.strip("/").split("/"):
        if not raw:
            continue
        m = _GREEDY_LABEL.match(raw)
        if m:
            out.append(Segment(kind="greedy_label", content=m.group(1)))
            continue
        m = _LABEL.match(raw)
        if m:
            out.append(Segment(kind="label", content=m.group(1)))
            continue
        out.append(Segment(kind="literal", content=raw))
    return tuple(out)
