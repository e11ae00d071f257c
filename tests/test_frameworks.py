import json
from pathlib import Path

import pytest

from screenbook.frameworks import detect_framework, has_package


def _project(root: Path, deps: dict[str, str], files: list[str], dev: bool = False) -> Path:
    section = "devDependencies" if dev else "dependencies"
    (root / "package.json").write_text(json.dumps({section: deps}), encoding="utf-8")
    for rel in files:
        path = root / rel
        if rel.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("", encoding="utf-8")
    return root


@pytest.mark.parametrize(
    ("deps", "files", "expected"),
    [
        ({"next": "14"}, ["next.config.js", "app/"], "Next.js (App Router)"),
        ({"next": "14"}, ["next.config.mjs", "src/pages/"], "Next.js (Pages Router)"),
        ({"@remix-run/react": "2"}, ["remix.config.js"], "Remix"),
        ({"nuxt": "3"}, ["nuxt.config.ts", "pages/"], "Nuxt"),
        ({"nuxt": "4"}, ["nuxt.config.ts", "app/pages/"], "Nuxt 4"),
        ({"astro": "4"}, ["astro.config.mjs"], "Astro"),
        ({"@solidjs/start": "1"}, ["app.config.ts", "src/routes/"], "SolidStart"),
        ({"@builder.io/qwik-city": "1"}, ["vite.config.ts", "src/routes/"], "QwikCity"),
        ({"@tanstack/react-start": "1"}, ["app.config.ts", "src/routes/__root.tsx"], "TanStack Start"),
        ({"vite": "5", "vue": "3"}, ["vite.config.ts"], "Vite + Vue"),
        ({"vite": "5", "vue": "3", "react": "18"}, ["vite.config.js"], "Vite + React"),
    ],
)
def test_detect_framework(tmp_path, deps: dict[str, str], files: list[str], expected: str) -> None:
    info = detect_framework(_project(tmp_path, deps, files))

    assert info is not None
    assert info.name == expected


def test_detect_framework_reads_dev_dependencies(tmp_path) -> None:
    info = detect_framework(_project(tmp_path, {"astro": "4"}, ["astro.config.ts"], dev=True))

    assert info is not None
    assert info.routes_pattern == "src/pages/**/*.astro"


def test_detect_framework_needs_package_and_config(tmp_path) -> None:
    assert detect_framework(tmp_path) is None
    assert detect_framework(_project(tmp_path, {"next": "14"}, ["app/"])) is None

    (tmp_path / "package.json").write_text("{not json", encoding="utf-8")
    assert detect_framework(tmp_path) is None


def test_has_package_ignores_empty_versions() -> None:
    package = {"dependencies": {"react": ""}, "devDependencies": {"vite": "5"}}

    assert has_package(package, "vite") is True
    assert has_package(package, "react") is False
    assert has_package({"dependencies": ["react"]}, "react") is False
