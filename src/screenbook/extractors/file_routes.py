from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePosixPath

from screenbook.extractors.tanstack_router import normalize_tanstack_path
from screenbook.schemas import GeneralWarning, ParsedRoute, ParseResult, ParseWarning

INDEX_NAMES = {"index", "page", "+page"}
GROUP_SEGMENT_RE = re.compile(r"^\(.+\)$")
CATCH_ALL_SEGMENT_RE = re.compile(r"^\[\[?\.\.\.[^\]]+\]\]?$")
DYNAMIC_SEGMENT_RE = re.compile(r"^\[(?P<name>[^\].]+)\]$")


def _segment(segment: str) -> str | None:
    if GROUP_SEGMENT_RE.match(segment):
        return None
    if CATCH_ALL_SEGMENT_RE.match(segment):
        return "*"
    dynamic = DYNAMIC_SEGMENT_RE.match(segment)
    if dynamic:
        return f":{dynamic.group('name')}"
    return normalize_tanstack_path(segment)


def route_from_file(rel_path: str) -> ParsedRoute | None:
    """Infer the route of one page file relative to the routes directory.

    "(marketing)/blog/[slug]/page.tsx" -> "/blog/:slug". Files whose name
    starts with "_" (layouts, `__root`, `_app`) are not pages.
    """
    path = PurePosixPath(rel_path.replace("\\", "/"))
    leaf = path.stem
    if leaf.startswith("_"):
        return None

    parts = list(path.parent.parts)
    if leaf not in INDEX_NAMES:
        parts.append(leaf)

    segments: list[str] = []
    for part in parts:
        if part in {"", "."}:
            continue
        converted = _segment(part)
        if converted:
            segments.append(converted)
    return ParsedRoute(path="/" + "/".join(segments), component=path.as_posix())


def extract_file_routes(paths: Iterable[str]) -> ParseResult:
    routes: list[ParsedRoute] = []
    seen: set[str] = set()
    warnings: list[ParseWarning] = []
    for rel_path in paths:
        route = route_from_file(rel_path)
        if route is None:
            continue
        if route.path in seen:
            warnings.append(GeneralWarning(message=f'Route "{route.path}" is defined by more than one file: {rel_path}'))
            continue
        seen.add(route.path)
        routes.append(route)

    if not routes:
        warnings.append(
            GeneralWarning(message="No routes found. Supported patterns: 'page files such as index.tsx or page.tsx'")
        )
    return ParseResult(routes=routes, warnings=warnings)
