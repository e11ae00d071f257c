from __future__ import annotations

import json
from collections import deque
from typing import Any

from screenbook.schemas import ImpactResult, Screen, TransitiveDependent

DEFAULT_MAX_DEPTH = 3


def matches_dependency(dependency: str, api: str) -> bool:
    # "UserAPI" matches "UserAPI.getProfile" and the other way round
    if dependency == api:
        return True
    return dependency.startswith(f"{api}.") or api.startswith(f"{dependency}.")


def _navigation_graph(screens: list[Screen]) -> dict[str, list[str]]:
    graph: dict[str, list[str]] = {}
    for screen in screens:
        targets = graph.setdefault(screen.id, [])
        for target in screen.next:
            if target not in targets:
                targets.append(target)
    return graph


def _path_to_dependent(
    start: str,
    targets: set[str],
    graph: dict[str, list[str]],
    max_depth: int,
) -> list[str] | None:
    max_length = max_depth + 1
    queue: deque[list[str]] = deque([[start]])
    visited = {start}
    while queue:
        path = queue.popleft()
        for neighbor in graph.get(path[-1], []):
            if neighbor in visited or len(path) + 1 > max_length:
                continue
            candidate = [*path, neighbor]
            if neighbor in targets:
                return candidate
            visited.add(neighbor)
            queue.append(candidate)
    return None


def analyze_impact(screens: list[Screen], api: str, max_depth: int = DEFAULT_MAX_DEPTH) -> ImpactResult:
    direct = [screen for screen in screens if any(matches_dependency(item, api) for item in screen.depends_on)]
    direct_ids = {screen.id for screen in direct}
    graph = _navigation_graph(screens)

    transitive: list[TransitiveDependent] = []
    seen: set[str] = set()
    for screen in screens:
        if screen.id in direct_ids or screen.id in seen:
            continue
        path = _path_to_dependent(screen.id, direct_ids, graph, max_depth)
        if path is not None:
            seen.add(screen.id)
            transitive.append(TransitiveDependent(screen=screen, path=path))

    return ImpactResult(api=api, direct=direct, transitive=transitive)


def _plural(count: int) -> str:
    return f"{count} screen{'s' if count > 1 else ''}"


def format_impact_text(result: ImpactResult) -> str:
    lines = [f"Impact Analysis: {result.api}", ""]

    if result.direct:
        lines.append(f"Direct ({_plural(len(result.direct))}):")
        for screen in result.direct:
            owner = f" [{', '.join(screen.owner)}]" if screen.owner else ""
            lines.append(f"  - {screen.id}  {screen.route}{owner}")
        lines.append("")

    if result.transitive:
        lines.append(f"Transitive ({_plural(len(result.transitive))}):")
        for item in result.transitive:
            lines.append(f"  - {' -> '.join(item.path)}")
        lines.append("")

    if result.total_count == 0:
        lines.extend(["No screens depend on this API.", ""])
    else:
        lines.append(f"Total: {_plural(result.total_count)} affected")
    return "\n".join(lines)


def impact_payload(result: ImpactResult) -> dict[str, Any]:
    return {
        "api": result.api,
        "summary": {
            "directCount": len(result.direct),
            "transitiveCount": len(result.transitive),
            "totalCount": result.total_count,
        },
        "direct": [
            {"id": screen.id, "title": screen.title, "route": screen.route, "owner": screen.owner}
            for screen in result.direct
        ],
        "transitive": [
            {"id": item.screen.id, "title": item.screen.title, "route": item.screen.route, "path": item.path}
            for item in result.transitive
        ],
    }


def format_impact_json(result: ImpactResult) -> str:
    return json.dumps(impact_payload(result), ensure_ascii=False, indent=2)
