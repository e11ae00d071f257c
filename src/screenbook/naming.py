from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

ParameterStrategy = Literal["preserve", "detail", "warn"]

PARAMETER_STRATEGIES = ("preserve", "detail", "warn")
ACTION_SEGMENTS = frozenset({"edit", "new", "create", "delete", "settings", "view", "update"})

# :name, :name?, :name(\d+), :pathMatch(.*)*
PARAM_SEGMENT_RE = re.compile(r"^:(?P<name>[A-Za-z_$][\w$]*)(?P<pattern>\(.*\))?(?P<modifier>[?*+])?$")
# userId, user_id; not uuid or paid
ENTITY_PARAM_RE = re.compile(r"^(\w+?)(?:Id|_id)$")
CATCH_ALL_PATTERNS = {"(.*)", "(.+)"}
NOT_FOUND_SEGMENT = "not-found"
CATCH_ALL_SEGMENT = "catchall"


@dataclass(slots=True)
class NamingOptions:
    smart_parameter_naming: bool = False
    parameter_mapping: dict[str, str] = field(default_factory=dict)
    unmapped_parameter_strategy: ParameterStrategy = "preserve"


@dataclass(slots=True, frozen=True)
class ScreenIdResult:
    screen_id: str
    suggestions: tuple[str, ...] = ()


def _split_segments(path: str) -> list[str]:
    return [segment for segment in path.strip("/").split("/") if segment]


def _is_action(segment: str | None) -> bool:
    return segment is not None and segment.lower() in ACTION_SEGMENTS


def is_catch_all_segment(segment: str) -> bool:
    if segment.startswith("*"):
        return True
    match = PARAM_SEGMENT_RE.match(segment)
    return bool(match and match.group("pattern") in CATCH_ALL_PATTERNS)


def _param_name(segment: str) -> str:
    match = PARAM_SEGMENT_RE.match(segment)
    if match:
        return match.group("name")
    return segment[1:]


def _semantic_alternatives(name: str, is_last: bool) -> list[str]:
    alternatives: list[str] = []
    if is_last:
        alternatives.extend(["detail", "view"])
    entity = ENTITY_PARAM_RE.match(name)
    if entity:
        alternatives.append(entity.group(1).lower())
    return alternatives


def _resolve_parameter(
    segment: str,
    is_last: bool,
    next_segment: str | None,
    options: NamingOptions,
) -> tuple[str, str | None]:
    mapped = options.parameter_mapping.get(segment)
    if mapped:
        return mapped, None

    name = _param_name(segment)
    if options.smart_parameter_naming:
        if name == "id" and is_last:
            return "detail", None
        entity = ENTITY_PARAM_RE.match(name)
        if entity and is_last:
            return entity.group(1).lower(), None
        if not is_last and _is_action(next_segment):
            return name, None
        if name == "id" and not _is_action(next_segment):
            return "detail", None

    strategy = options.unmapped_parameter_strategy
    if strategy == "detail":
        return "detail", None
    if strategy == "warn":
        alternatives = _semantic_alternatives(name, is_last)
        if alternatives:
            return name, f"Consider renaming to: {', '.join(alternatives)}"
    return name, None


def path_to_screen_id(path: str, options: NamingOptions | None = None) -> ScreenIdResult:
    """Map a route path to its dot-delimited screen id.

    "/users/:userId" -> "users.userId", or "users.user" with smart naming.
    Catch-all segments never fail: Vue's ":pathMatch(.*)*" becomes
    "not-found" and splats become "catchall" (or the splat's own name).
    """
    if path in {"", "/"}:
        return ScreenIdResult(screen_id="home")

    options = options or NamingOptions()
    segments = _split_segments(path)
    resolved: list[str] = []
    suggestions: list[str] = []

    for index, segment in enumerate(segments):
        is_last = index == len(segments) - 1
        next_segment = segments[index + 1] if not is_last else None

        if segment.startswith("*"):
            resolved.append(CATCH_ALL_SEGMENT if segment == "**" else segment[1:] or CATCH_ALL_SEGMENT)
        elif segment.startswith(":"):
            if is_catch_all_segment(segment):
                resolved.append(NOT_FOUND_SEGMENT)
                continue
            value, suggestion = _resolve_parameter(segment, is_last, next_segment, options)
            resolved.append(value)
            if suggestion:
                suggestions.append(suggestion)
        else:
            resolved.append(segment)

    if not resolved:
        return ScreenIdResult(screen_id="home")
    return ScreenIdResult(screen_id=".".join(resolved), suggestions=tuple(suggestions))


def path_to_screen_title(path: str) -> str:
    if path in {"", "/"}:
        return "Home"

    segments = _split_segments(path)
    static = [segment for segment in segments if not segment.startswith((":", "*"))]
    if not static:
        if any(is_catch_all_segment(segment) for segment in segments):
            return "Not Found"
        return "Home"

    words = re.split(r"[-_]", static[-1])
    return " ".join(word[:1].upper() + word[1:] for word in words)
