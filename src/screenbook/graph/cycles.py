from __future__ import annotations

from screenbook.errors import ScreenbookError
from screenbook.schemas import CycleDetectionResult, CycleInfo, Screen

WHITE = 0
GRAY = 1
BLACK = 2


def _screen_map(screens: list[Screen]) -> tuple[dict[str, Screen], list[str]]:
    by_id: dict[str, Screen] = {}
    duplicates: list[str] = []
    for screen in screens:
        if screen.id in by_id and screen.id not in duplicates:
            duplicates.append(screen.id)
        # last definition wins
        by_id[screen.id] = screen
    return by_id, duplicates


def _reconstruct(parent: dict[str, str | None], start: str, ancestor: str, limit: int) -> list[str]:
    path: list[str] = []
    current: str | None = start
    steps = 0
    while current is not None and current != ancestor:
        steps += 1
        if steps > limit:
            raise ScreenbookError(f"Parent chain from {start!r} never reaches {ancestor!r}; cycle reconstruction aborted")
        path.append(current)
        current = parent.get(current)
    path.reverse()
    return [ancestor, *path, ancestor]


def detect_cycles(screens: list[Screen]) -> CycleDetectionResult:
    """Find navigation cycles along `next` edges.

    Each back edge found by a depth-first walk (catalog order, `next` order)
    yields one closed walk `[a, ..., u, a]`. A cycle is allowed when any
    screen on it sets `allow_cycles`. Unknown `next` targets are ignored.
    """
    by_id, duplicates = _screen_map(screens)
    color = {screen_id: WHITE for screen_id in by_id}
    parent: dict[str, str | None] = {}
    cycles: list[CycleInfo] = []

    for screen in screens:
        if color[screen.id] != WHITE:
            continue
        color[screen.id] = GRAY
        parent[screen.id] = None
        # (node, index of the next neighbour to visit)
        stack: list[tuple[str, int]] = [(screen.id, 0)]
        while stack:
            node, index = stack.pop()
            neighbors = by_id[node].next
            if index >= len(neighbors):
                color[node] = BLACK
                continue
            stack.append((node, index + 1))
            neighbor = neighbors[index]
            state = color.get(neighbor)
            if state == GRAY:
                cycle = _reconstruct(parent, node, neighbor, len(by_id))
                allowed = any(by_id[item].allow_cycles for item in cycle[:-1])
                cycles.append(CycleInfo(cycle=cycle, allowed=allowed))
            elif state == WHITE:
                color[neighbor] = GRAY
                parent[neighbor] = node
                stack.append((neighbor, 0))

    return CycleDetectionResult(cycles=cycles, duplicate_ids=duplicates)


def format_cycle_warnings(cycles: list[CycleInfo]) -> str:
    lines: list[str] = []
    for index, item in enumerate(cycles, start=1):
        suffix = " (allowed)" if item.allowed else ""
        lines.append(f"  Cycle {index}{suffix}: {' → '.join(item.cycle)}")
    return "\n".join(lines)


def cycle_summary(result: CycleDetectionResult) -> str:
    if not result.has_cycles:
        return "No circular navigation detected"

    total = len(result.cycles)
    disallowed = len(result.disallowed_cycles)
    allowed = total - disallowed
    label = f"{total} circular navigation{'s' if total > 1 else ''} detected"
    if disallowed == 0:
        return f"{label} (all allowed)"
    if allowed == 0:
        return label
    return f"{label} ({disallowed} not allowed, {allowed} allowed)"
