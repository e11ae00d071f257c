from __future__ import annotations

import math
from collections.abc import Iterable

DEFAULT_MAX_DISTANCE_RATIO = 0.4
DEFAULT_MAX_SUGGESTIONS = 3


def levenshtein_distance(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def find_similar(
    target: str,
    candidates: Iterable[str],
    max_distance_ratio: float = DEFAULT_MAX_DISTANCE_RATIO,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
) -> list[str]:
    max_distance = math.ceil(len(target) * max_distance_ratio)
    scored: list[tuple[int, str]] = []
    for candidate in candidates:
        distance = levenshtein_distance(target, candidate)
        if distance <= max_distance:
            scored.append((distance, candidate))
    # sort is stable, so equal distances keep candidate order
    scored.sort(key=lambda item: item[0])
    return [candidate for _, candidate in scored[:max_suggestions]]


def find_best_match(
    target: str,
    candidates: Iterable[str],
    max_distance_ratio: float = DEFAULT_MAX_DISTANCE_RATIO,
) -> str | None:
    matches = find_similar(target, candidates, max_distance_ratio=max_distance_ratio, max_suggestions=1)
    return matches[0] if matches else None


def format_suggestions(suggestions: list[str]) -> str:
    if not suggestions:
        return ""
    lines = ["Did you mean one of these?"]
    lines.extend(f"  - {item}" for item in suggestions)
    return "\n".join(lines)
