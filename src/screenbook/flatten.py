from __future__ import annotations

import re

from screenbook.naming import NamingOptions, path_to_screen_id, path_to_screen_title
from screenbook.schemas import FlatRoute, ParsedRoute

_SLASHES_RE = re.compile(r"/{2,}")


def join_route_path(parent_path: str, path: str) -> str:
    if path.startswith("/"):
        full_path = path
    elif not path:
        full_path = parent_path
    elif parent_path:
        full_path = f"{parent_path}/{path}"
    else:
        full_path = f"/{path}"

    full_path = _SLASHES_RE.sub("/", full_path)
    if len(full_path) > 1 and full_path.endswith("/"):
        full_path = full_path.rstrip("/") or "/"
    return full_path or parent_path or "/"


def _is_redirect_only(route: ParsedRoute) -> bool:
    return bool(route.redirect) and not route.component and not route.children


def flatten_routes(
    routes: list[ParsedRoute],
    parent_path: str = "",
    depth: int = 0,
    options: NamingOptions | None = None,
) -> list[FlatRoute]:
    result: list[FlatRoute] = []
    for route in routes:
        if _is_redirect_only(route):
            continue

        full_path = join_route_path(parent_path, route.path)
        if route.component or not route.children:
            screen = path_to_screen_id(full_path, options)
            result.append(
                FlatRoute(
                    full_path=full_path,
                    screen_id=screen.screen_id,
                    screen_title=path_to_screen_title(full_path),
                    depth=depth,
                    name=route.name,
                    component_path=route.component,
                    suggestions=screen.suggestions,
                )
            )

        if route.children:
            result.extend(flatten_routes(route.children, full_path, depth + 1, options))
    return result
