from __future__ import annotations

import posixpath

from screenbook.graph.impact import DEFAULT_MAX_DEPTH, analyze_impact
from screenbook.schemas import ImpactResult, Screen

SCRIPT_SUFFIXES = (".tsx", ".ts", ".jsx", ".js")
API_DIRS = ("/api/", "/apis/")
SERVICE_DIR = "/services/"
MAX_LISTED_FILES = 20


def _stem(file: str) -> str:
    name = posixpath.basename(file)
    for suffix in SCRIPT_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


def extract_api_names(files: list[str]) -> list[str]:
    """Guess API names from changed file paths.

    src/api/InvoiceAPI.ts -> InvoiceAPI, src/api/invoice.ts -> InvoiceAPI,
    src/services/invoice/index.ts -> InvoiceService.
    """
    apis: set[str] = set()
    for file in files:
        file = file.replace("\\", "/")
        name = _stem(file)
        parent = posixpath.basename(posixpath.dirname(file))
        in_api_dir = any(item in file for item in API_DIRS)
        in_service_dir = SERVICE_DIR in file

        if (in_api_dir or in_service_dir) and name.endswith(("API", "Api", "Service")):
            apis.add(name)
        if in_service_dir and name in {"index", parent}:
            apis.add(f"{_capitalize(parent)}Service")
        if in_api_dir and not name.endswith(("API", "Api")):
            apis.add(f"{_capitalize(name)}API")
        lowered = name.lower()
        if "api" in lowered or "service" in lowered:
            apis.add(name)
    return sorted(apis)


def analyze_pr_impact(
    screens: list[Screen],
    files: list[str],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[list[str], list[ImpactResult]]:
    """Return the detected API names and the impact of each one that reaches a screen."""
    apis = extract_api_names(files)
    results = [analyze_impact(screens, api, max_depth=max_depth) for api in apis]
    return apis, [item for item in results if item.total_count > 0]


def format_pr_markdown(changed_files: list[str], apis: list[str], results: list[ImpactResult]) -> str:
    lines = ["## Screenbook Impact Analysis", ""]

    if not results:
        lines.extend(
            [
                "No screen impacts detected from the API changes in this PR.",
                "",
                "<details>",
                "<summary>Detected APIs (no screen dependencies)</summary>",
                "",
                *[f"- `{api}`" for api in apis],
                "",
                "</details>",
            ]
        )
        return "\n".join(lines)

    total = sum(item.total_count for item in results)
    lines.append(
        f"**{total} screen{'s' if total > 1 else ''} affected** by changes to "
        f"{len(results)} API{'s' if len(results) > 1 else ''}"
    )
    lines.append("")

    for result in results:
        lines.extend([f"### {result.api}", ""])
        if result.direct:
            lines.extend(
                [
                    f"**Direct dependencies** ({len(result.direct)}):",
                    "",
                    "| Screen | Route | Owner |",
                    "|--------|-------|-------|",
                ]
            )
            for screen in result.direct:
                owner = ", ".join(screen.owner) if screen.owner else "-"
                lines.append(f"| {screen.id} | `{screen.route}` | {owner} |")
            lines.append("")
        if result.transitive:
            lines.extend([f"**Transitive dependencies** ({len(result.transitive)}):", ""])
            for item in result.transitive:
                lines.append(f"- {' → '.join(item.path)}")
            lines.append("")

    lines.extend(["<details>", f"<summary>Changed files ({len(changed_files)})</summary>", ""])
    for file in changed_files[:MAX_LISTED_FILES]:
        lines.append(f"- `{file}`")
    if len(changed_files) > MAX_LISTED_FILES:
        lines.append(f"- ... and {len(changed_files) - MAX_LISTED_FILES} more")
    lines.extend(["", "</details>"])
    return "\n".join(lines)
