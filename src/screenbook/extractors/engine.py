from __future__ import annotations

import logging
import re
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path

from screenbook.errors import RouteParseError
from screenbook.extractors.angular_router import extract_angular_routes
from screenbook.extractors.react_router import extract_react_routes
from screenbook.extractors.solid_router import extract_solid_routes
from screenbook.extractors.tanstack_router import extract_tanstack_routes
from screenbook.extractors.vue_router import extract_vue_routes
from screenbook.schemas import GeneralWarning, ParseResult

logger = logging.getLogger(__name__)

ADD_CHILDREN_RE = re.compile(r"\.addChildren\s*\(")
SOLID_LAZY_RE = re.compile(r"\blazy\s*\(")
SOLID_COMPONENT_RE = re.compile(r"\bcomponent\s*:")
SOLID_PATH_RE = re.compile(r"\bpath\s*:")
ANGULAR_ROUTES_TYPE_RE = re.compile(r":\s*Routes\s*[=\[]")
REACT_ELEMENT_RE = re.compile(r"element:\s*<")
REACT_COMPONENT_RE = re.compile(r"Component:\s*[A-Z]")


class RouterKind(StrEnum):
    TANSTACK = "tanstack-router"
    SOLID = "solid-router"
    ANGULAR = "angular-router"
    REACT = "react-router"
    VUE = "vue-router"
    UNKNOWN = "unknown"


def is_tanstack_source(source: str) -> bool:
    if "@tanstack/react-router" in source or "createRootRoute" in source:
        return True
    if "createRoute" in source and "getParentRoute" in source:
        return True
    return "lazyRouteComponent" in source or bool(ADD_CHILDREN_RE.search(source))


def is_solid_source(source: str) -> bool:
    if "@solidjs/router" in source or "solid-app-router" in source:
        return True
    return (
        "solid-js" in source
        and bool(SOLID_LAZY_RE.search(source))
        and bool(SOLID_COMPONENT_RE.search(source))
        and bool(SOLID_PATH_RE.search(source))
    )


def is_angular_source(source: str) -> bool:
    if "@angular/router" in source:
        return True
    if "RouterModule.forRoot" in source or "RouterModule.forChild" in source:
        return True
    return bool(ANGULAR_ROUTES_TYPE_RE.search(source))


def is_react_source(source: str) -> bool:
    markers = ("createBrowserRouter", "createHashRouter", "createMemoryRouter", "RouteObject")
    if any(marker in source for marker in markers):
        return True
    return bool(REACT_ELEMENT_RE.search(source) or REACT_COMPONENT_RE.search(source))


def is_vue_source(source: str) -> bool:
    return "RouteRecordRaw" in source or "vue-router" in source or ".vue" in source


# Checked in this order: several conventions share the `path`/`component`
# object shape, so the more specific markers come first.
DETECTION_ORDER: list[tuple[RouterKind, Callable[[str], bool]]] = [
    (RouterKind.TANSTACK, is_tanstack_source),
    (RouterKind.SOLID, is_solid_source),
    (RouterKind.ANGULAR, is_angular_source),
    (RouterKind.REACT, is_react_source),
    (RouterKind.VUE, is_vue_source),
]

EXTRACTORS: dict[RouterKind, Callable[[str, str], ParseResult]] = {
    RouterKind.TANSTACK: extract_tanstack_routes,
    RouterKind.SOLID: extract_solid_routes,
    RouterKind.ANGULAR: extract_angular_routes,
    RouterKind.REACT: extract_react_routes,
    RouterKind.VUE: extract_vue_routes,
}


def sniff(source: str) -> RouterKind:
    for kind, predicate in DETECTION_ORDER:
        if predicate(source):
            return kind
    return RouterKind.UNKNOWN


def extract(source: str, file_path: str, kind: RouterKind | None = None) -> ParseResult:
    kind = kind or sniff(source)
    logger.debug("extracting %s as %s", file_path, kind.value)
    if kind == RouterKind.UNKNOWN:
        return ParseResult(
            routes=[],
            warnings=[
                GeneralWarning(
                    message=(
                        f"Could not detect the router type of {file_path}. "
                        "Supported: TanStack Router, Solid Router, Angular Router, React Router, Vue Router."
                    )
                )
            ],
        )

    result = EXTRACTORS[kind](source, file_path)
    logger.debug("%s: %d routes, %d warnings", file_path, len(result.routes), len(result.warnings))
    return result


def extract_path(path: Path, kind: RouterKind | None = None) -> ParseResult:
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RouteParseError(str(path), str(exc)) from exc
    return extract(source, path.as_posix(), kind)
