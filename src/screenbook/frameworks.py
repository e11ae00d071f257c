from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class FrameworkInfo:
    name: str
    routes_pattern: str
    meta_pattern: str


@dataclass(slots=True, frozen=True)
class FrameworkDefinition:
    info: FrameworkInfo
    packages: tuple[str, ...]
    config_files: tuple[str, ...]
    # distinguishes variants that share packages and config files
    check: Callable[[Path, dict[str, Any]], bool] | None = field(default=None)


def _exists(*paths: str) -> Callable[[Path, dict[str, Any]], bool]:
    def check(root: Path, _: dict[str, Any]) -> bool:
        return any((root / item).exists() for item in paths)

    return check


def _nuxt3(root: Path, _: dict[str, Any]) -> bool:
    # Nuxt 4 keeps pages under app/
    return not (root / "app" / "pages").exists() and (root / "pages").exists()


def _vue_without_react(_: Path, package: dict[str, Any]) -> bool:
    return not has_package(package, "react")


def _framework(
    name: str,
    packages: tuple[str, ...],
    config_files: tuple[str, ...],
    routes_pattern: str,
    meta_pattern: str,
    check: Callable[[Path, dict[str, Any]], bool] | None = None,
) -> FrameworkDefinition:
    return FrameworkDefinition(FrameworkInfo(name, routes_pattern, meta_pattern), packages, config_files, check)


NEXT_CONFIGS = ("next.config.js", "next.config.mjs", "next.config.ts")
VITE_CONFIGS = ("vite.config.ts", "vite.config.js", "vite.config.mjs")

# First match wins, so variants sharing packages are ordered most specific first.
FRAMEWORKS: tuple[FrameworkDefinition, ...] = (
    _framework(
        "Next.js (App Router)",
        ("next",),
        NEXT_CONFIGS,
        "app/**/page.tsx",
        "app/**/screen.meta.ts",
        _exists("app", "src/app"),
    ),
    _framework(
        "Next.js (Pages Router)",
        ("next",),
        NEXT_CONFIGS,
        "pages/**/*.tsx",
        "pages/**/screen.meta.ts",
        _exists("pages", "src/pages"),
    ),
    _framework(
        "Remix",
        ("@remix-run/react", "remix"),
        ("remix.config.js", "vite.config.ts"),
        "app/routes/**/*.tsx",
        "app/routes/**/screen.meta.ts",
    ),
    _framework(
        "Nuxt",
        ("nuxt",),
        ("nuxt.config.ts", "nuxt.config.js", "nuxt.config.mjs"),
        "pages/**/*.vue",
        "pages/**/screen.meta.ts",
        _nuxt3,
    ),
    _framework(
        "Nuxt 4",
        ("nuxt",),
        ("nuxt.config.ts", "nuxt.config.js"),
        "app/pages/**/*.vue",
        "app/pages/**/screen.meta.ts",
        _exists("app/pages"),
    ),
    _framework(
        "Astro",
        ("astro",),
        ("astro.config.mjs", "astro.config.js", "astro.config.ts", "astro.config.cjs"),
        "src/pages/**/*.astro",
        "src/pages/**/screen.meta.ts",
    ),
    _framework(
        "SolidStart",
        ("@solidjs/start",),
        ("app.config.ts", "app.config.js"),
        "src/routes/**/*.tsx",
        "src/routes/**/screen.meta.ts",
        _exists("src/routes"),
    ),
    _framework(
        "QwikCity",
        ("@builder.io/qwik-city",),
        VITE_CONFIGS,
        # about/index.tsx, not about.tsx
        "src/routes/**/index.tsx",
        "src/routes/**/screen.meta.ts",
        _exists("src/routes"),
    ),
    _framework(
        "TanStack Start",
        ("@tanstack/react-start", "@tanstack/start"),
        ("app.config.ts", "app.config.js"),
        "src/routes/**/*.tsx",
        "src/routes/**/screen.meta.ts",
        _exists("src/routes/__root.tsx"),
    ),
    _framework(
        "Vite + Vue",
        ("vite", "vue"),
        VITE_CONFIGS,
        "src/pages/**/*.vue",
        "src/pages/**/screen.meta.ts",
        _vue_without_react,
    ),
    _framework(
        "Vite + React",
        ("vite", "react"),
        VITE_CONFIGS,
        "src/pages/**/*.tsx",
        "src/pages/**/screen.meta.ts",
    ),
)


def read_package_json(root: Path) -> dict[str, Any] | None:
    path = root / "package.json"
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("failed to parse %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


def has_package(package: dict[str, Any], name: str) -> bool:
    for section in ("dependencies", "devDependencies"):
        deps = package.get(section)
        if isinstance(deps, dict) and deps.get(name):
            return True
    return False


def detect_framework(root: Path) -> FrameworkInfo | None:
    """Guess the file-based routing framework of a project from package.json and config files."""
    package = read_package_json(root)
    if package is None:
        return None

    for definition in FRAMEWORKS:
        if not any(has_package(package, name) for name in definition.packages):
            continue
        if not any((root / name).exists() for name in definition.config_files):
            continue
        if definition.check is not None and not definition.check(root, package):
            continue
        logger.debug("detected %s in %s", definition.info.name, root)
        return definition.info
    return None
