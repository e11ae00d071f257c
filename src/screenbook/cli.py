from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer
import yaml

from screenbook.config import ScreenbookConfig, ensure_config, summarize_warnings
from screenbook.errors import ConfigError, RouteParseError
from screenbook.extractors.api_imports import analyze_api_imports, merge_depends_on
from screenbook.extractors.engine import RouterKind, extract_path
from screenbook.extractors.file_routes import extract_file_routes
from screenbook.extractors.navigation import analyze_navigation, merge_next
from screenbook.flatten import flatten_routes
from screenbook.frameworks import detect_framework
from screenbook.git_utils import GitError, changed_files
from screenbook.graph.cycles import cycle_summary, detect_cycles, format_cycle_warnings
from screenbook.graph.impact import analyze_impact, format_impact_json, format_impact_text, impact_payload
from screenbook.graph.pr_impact import analyze_pr_impact, format_pr_markdown
from screenbook.graph.validation import (
    format_depends_on_errors,
    format_validation_errors,
    validate_depends_on,
    validate_screen_references,
)
from screenbook.schemas import DependsOnIssue, OpenApiSpec, ParseResult, ReferenceIssue, Screen, SpreadWarning
from screenbook.suggestions import find_similar, format_suggestions
from screenbook.utils import discover_files, read_document, read_json, write_json

logger = logging.getLogger(__name__)

app = typer.Typer(help="Screenbook: screen catalog, route extraction and navigation graph checks")

GLOB_CHARS = set("*?[{")
CONFIG_PATH = Path(".screenbook/config.yaml")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _resolve(root: Path, path: Path) -> Path:
    return path if path.is_absolute() else (root / path).resolve()


def _load_config(path: Path) -> ScreenbookConfig:
    try:
        if not path.exists():
            return ScreenbookConfig.default()
        return ScreenbookConfig.from_path(path)
    except ConfigError as exc:
        typer.echo(f"[screenbook] invalid config: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def _settings(root: Path, config: Path) -> tuple[Path, ScreenbookConfig]:
    # --config and every path read from the config are relative to --root
    root = root.resolve()
    return root, _load_config(_resolve(root, config))


def _screens_path(root: Path, settings: ScreenbookConfig, screens: str) -> Path:
    if screens:
        return Path(screens)
    return _resolve(root, Path(settings.out_dir)) / "screens.json"


def _load_screens(path: Path) -> list[Screen]:
    try:
        data = read_json(path)
    except (OSError, ValueError) as exc:
        typer.echo(f"[screenbook] cannot read screens file {path}: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    items: list[dict[str, Any]] = data.get("screens", []) if isinstance(data, dict) else data
    return [Screen.from_dict(item) for item in items]


def _pattern_base(pattern: str) -> str:
    # "src/pages/**/*.tsx" -> "src/pages"
    parts: list[str] = []
    for part in pattern.split("/"):
        if any(char in GLOB_CHARS for char in part):
            break
        parts.append(part)
    return "/".join(parts)


def _echo_warnings(result: ParseResult, spread_policy: str) -> None:
    for warning in result.warnings:
        if warning.kind == "spread" and spread_policy == "off":
            continue
        typer.echo(f"  ! [{warning.kind}] {warning.message}")
        if isinstance(warning, SpreadWarning) and warning.reason:
            typer.echo(f"      {warning.reason}")


@app.command()
def init(
    root: Path = typer.Option(Path("."), help="Project root"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
    force: bool = typer.Option(False, help="Overwrite existing config"),
) -> None:
    root = root.resolve()
    config_path = _resolve(root, config)
    framework = detect_framework(root)
    if framework is not None:
        typer.echo(f"[screenbook] detected {framework.name}: routes_pattern {framework.routes_pattern}")
    if ensure_config(config_path, force=force, framework=framework):
        typer.echo(f"[screenbook] initialized config at {config_path}")
    else:
        typer.echo(f"[screenbook] config already exists at {config_path} (use --force to overwrite)")


@app.command()
def routes(
    file: str = typer.Argument("", help="Routes file to analyze; routes_file from the config when empty"),
    kind: str = typer.Option("", help="Router kind; detected from the source when empty"),
    root: Path = typer.Option(Path("."), help="Project root"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text"),
    out: str = typer.Option("", "--out", help="Also write the JSON payload to this file"),
) -> None:
    root, settings = _settings(root, config)
    try:
        router_kind = RouterKind(kind) if kind else None
    except ValueError as exc:
        choices = [item.value for item in RouterKind if item != RouterKind.UNKNOWN]
        hint = format_suggestions(find_similar(kind, choices)) or f"Expected one of {', '.join(choices)}"
        raise typer.BadParameter(f"unknown router kind {kind!r}. {hint}", param_hint="--kind") from exc

    if file:
        routes_path = Path(file)
    elif settings.routes_file:
        routes_path = _resolve(root, Path(settings.routes_file))
    else:
        typer.echo("[screenbook] no routes file: pass FILE or set routes_file in the config", err=True)
        raise typer.Exit(code=2)

    try:
        result = extract_path(routes_path, router_kind)
    except RouteParseError as exc:
        typer.echo(f"[screenbook] {exc}", err=True)
        raise typer.Exit(code=2) from exc

    flat = flatten_routes(result.routes, options=settings.naming)
    summary = summarize_warnings(result.warnings, settings.lint.spread_operator)
    logger.debug("%s: %s", routes_path, summary)

    warnings = [
        item.to_dict()
        for item in result.warnings
        if not (item.kind == "spread" and settings.lint.spread_operator == "off")
    ]
    payload = {"routes": [item.to_dict() for item in flat], "warnings": warnings}
    if out:
        write_json(Path(out), payload)

    if as_json:
        typer.echo(json.dumps(payload, indent=2))
    else:
        typer.echo(f"[screenbook] {len(flat)} routes in {routes_path}")
        for item in flat:
            component = f"  ({item.component_path})" if item.component_path else ""
            typer.echo(f"  - {item.screen_id}  {item.full_path}{component}")
            for suggestion in item.suggestions:
                typer.echo(f"      {suggestion}")
        if summary.has_warnings:
            typer.echo(f"[screenbook] {summary.spread_count + summary.general_count} warnings")
            _echo_warnings(result, settings.lint.spread_operator)

    if summary.should_fail:
        typer.echo("[screenbook] unresolved spread operators are not allowed (lint.spread_operator: error)", err=True)
        raise typer.Exit(code=1)


@app.command()
def pages(
    root: Path = typer.Argument(Path("."), help="Project root"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
) -> None:
    root, settings = _settings(root, config)
    routes_pattern = settings.routes_pattern
    if not _resolve(root, config).exists():
        framework = detect_framework(root)
        if framework is not None:
            typer.echo(f"[screenbook] detected {framework.name}")
            routes_pattern = framework.routes_pattern

    base = _pattern_base(routes_pattern)
    files = discover_files(root, [routes_pattern], [*settings.ignore, settings.meta_pattern])
    relative = [item[len(base) :].lstrip("/") if base and item.startswith(f"{base}/") else item for item in files]

    result = extract_file_routes(relative)
    flat = flatten_routes(result.routes, options=settings.naming)
    typer.echo(f"[screenbook] {len(flat)} file routes under {root / base if base else root}")
    for item in flat:
        typer.echo(f"  - {item.screen_id}  {item.full_path}  ({item.component_path})")
    _echo_warnings(result, settings.lint.spread_operator)


@app.command()
def lint(
    screens: str = typer.Option("", help="Screen catalog JSON; <out_dir>/screens.json when empty"),
    root: Path = typer.Option(Path("."), help="Project root"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
) -> None:
    root, settings = _settings(root, config)
    catalog = _load_screens(_screens_path(root, settings, screens))
    failed = False

    references = validate_screen_references(catalog)
    if not references.valid:
        failed = True
        typer.echo(f"[screenbook] {len(references.errors)} invalid screen references")
        typer.echo(format_validation_errors([item for item in references.errors if isinstance(item, ReferenceIssue)]))

    specs: list[OpenApiSpec] = []
    for item in settings.openapi:
        path = _resolve(root, Path(item))
        try:
            document = read_document(path)
        except (OSError, yaml.YAMLError) as exc:
            typer.echo(f"[screenbook] cannot read OpenAPI document {path}: {exc}", err=True)
            raise typer.Exit(code=2) from exc
        specs.append(OpenApiSpec.from_document(document or {}, source=str(path)))
    if specs:
        depends_on = validate_depends_on(catalog, specs)
        if not depends_on.valid:
            failed = True
            typer.echo(f"[screenbook] {len(depends_on.errors)} unknown dependsOn APIs")
            typer.echo(format_depends_on_errors([item for item in depends_on.errors if isinstance(item, DependsOnIssue)]))

    cycles = detect_cycles(catalog)
    for screen_id in cycles.duplicate_ids:
        typer.echo(f"[screenbook] duplicate screen id: {screen_id} (last definition wins)")
    typer.echo(f"[screenbook] {cycle_summary(cycles)}")
    if cycles.has_cycles:
        typer.echo(format_cycle_warnings(cycles.cycles))
    if cycles.disallowed_cycles:
        failed = True

    if failed:
        typer.echo("[screenbook] lint failed")
        raise typer.Exit(code=1)
    typer.echo("[screenbook] lint passed")


@app.command()
def impact(
    api: str = typer.Argument(..., help="API name, e.g. InvoiceAPI.getDetail"),
    screens: str = typer.Option("", help="Screen catalog JSON; <out_dir>/screens.json when empty"),
    depth: int = typer.Option(-1, help="Maximum navigation depth; config value when negative"),
    output_format: str = typer.Option("text", "--format", help="text|json"),
    root: Path = typer.Option(Path("."), help="Project root"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
) -> None:
    root, settings = _settings(root, config)
    if output_format not in {"text", "json"}:
        raise typer.BadParameter("expected text or json", param_hint="--format")

    catalog = _load_screens(_screens_path(root, settings, screens))
    result = analyze_impact(catalog, api, max_depth=depth if depth >= 0 else settings.impact.max_depth)
    if output_format == "json":
        typer.echo(format_impact_json(result))
    else:
        typer.echo(format_impact_text(result))


@app.command("pr-impact")
def pr_impact(
    root: Path = typer.Option(Path("."), help="Project root (git repository)"),
    base: str = typer.Option("main", help="Base git ref"),
    head: str = typer.Option("HEAD", help="Head git ref"),
    changed: list[str] = typer.Option([], "--changed", help="Changed file; skips git when given (repeatable)"),
    screens: str = typer.Option("", help="Screen catalog JSON; <out_dir>/screens.json when empty"),
    depth: int = typer.Option(-1, help="Maximum navigation depth; config value when negative"),
    output_format: str = typer.Option("markdown", "--format", help="markdown|json"),
    out: str = typer.Option("", "--out", help="Also write the report to this file"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
) -> None:
    root, settings = _settings(root, config)
    if output_format not in {"markdown", "json"}:
        raise typer.BadParameter("expected markdown or json", param_hint="--format")

    files = list(changed)
    if not files:
        try:
            files = changed_files(root, base, head)
        except GitError as exc:
            typer.echo(f"[screenbook] cannot list changed files: {exc}", err=True)
            raise typer.Exit(code=2) from exc

    catalog = _load_screens(_screens_path(root, settings, screens))
    apis, results = analyze_pr_impact(catalog, files, max_depth=depth if depth >= 0 else settings.impact.max_depth)
    if output_format == "json":
        report = json.dumps(
            {"changedFiles": files, "detectedApis": apis, "results": [impact_payload(item) for item in results]},
            ensure_ascii=False,
            indent=2,
        )
    else:
        report = format_pr_markdown(files, apis, results)
    if out:
        out_path = Path(out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(report, encoding="utf-8")
    typer.echo(report)


@app.command()
def nav(
    file: Path = typer.Argument(..., help="Component or page file to scan"),
    framework: str = typer.Option("", help="nextjs|react-router|vue-router|angular; detected when empty"),
    screen: str = typer.Option("", help="Screen id whose `next` list is merged with the findings"),
    screens: str = typer.Option("", help="Screen catalog JSON; <out_dir>/screens.json when empty"),
    root: Path = typer.Option(Path("."), help="Project root"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
) -> None:
    if framework and framework not in {"nextjs", "react-router", "vue-router", "angular"}:
        raise typer.BadParameter("expected nextjs, react-router, vue-router or angular", param_hint="--framework")
    root, settings = _settings(root, config)
    try:
        source = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        typer.echo(f"[screenbook] cannot read {file}: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    result = analyze_navigation(source, file.as_posix(), framework or None)
    typer.echo(f"[screenbook] {len(result.navigations)} navigation targets in {file}")
    for item in result.navigations:
        typer.echo(f"  - {item.screen_id}  {item.path}  ({item.type}, line {item.line})")
    for warning in result.warnings:
        typer.echo(f"  ! {warning}")

    if screen:
        catalog = _load_screens(_screens_path(root, settings, screens))
        existing = next((item.next for item in catalog if item.id == screen), [])
        typer.echo(f"[screenbook] next for {screen}: {json.dumps(merge_next(existing, result.navigations))}")


@app.command()
def deps(
    file: Path = typer.Argument(..., help="Component or page file to scan for API client imports"),
    client_package: list[str] = typer.Option([], "--client-package", help="API client package (repeatable); config when empty"),
    screen: str = typer.Option("", help="Screen id whose `dependsOn` list is merged with the findings"),
    screens: str = typer.Option("", help="Screen catalog JSON; <out_dir>/screens.json when empty"),
    root: Path = typer.Option(Path("."), help="Project root"),
    config: Path = typer.Option(CONFIG_PATH, help="Config path"),
) -> None:
    root, settings = _settings(root, config)
    packages = list(client_package) or settings.api.client_packages
    if not packages:
        typer.echo("[screenbook] no API client packages: pass --client-package or set api.client_packages", err=True)
        raise typer.Exit(code=2)
    try:
        source = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        typer.echo(f"[screenbook] cannot read {file}: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    result = analyze_api_imports(source, file.as_posix(), packages)
    typer.echo(f"[screenbook] {len(result.imports)} API imports in {file}")
    for item in result.imports:
        typer.echo(f"  - {item.depends_on_name}  (line {item.line})")
    for warning in result.warnings:
        typer.echo(f"  ! {warning}")

    if screen:
        catalog = _load_screens(_screens_path(root, settings, screens))
        existing = next((item.depends_on for item in catalog if item.id == screen), [])
        typer.echo(f"[screenbook] dependsOn for {screen}: {json.dumps(merge_depends_on(existing, result.imports))}")
