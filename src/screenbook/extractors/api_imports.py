from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from screenbook.errors import RouteParseError
from screenbook.extractors.syntax import ImportDecl, extract_vue_blocks, parse_module
from screenbook.schemas import ApiAnalysisResult, DetectedApiImport

logger = logging.getLogger(__name__)


def is_client_package(source: str, client_packages: Iterable[str]) -> bool:
    # "@api/client" also covers "@api/client/users"
    return any(source == item or source.startswith(f"{item}/") for item in client_packages)


def _module_imports(source: str, file_path: str) -> list[ImportDecl]:
    if not file_path.endswith(".vue"):
        return list(parse_module(source, file_path).imports())
    imports: list[ImportDecl] = []
    for block in extract_vue_blocks(source).scripts:
        module = parse_module(block.content, file_path, dialect=block.dialect, line_offset=block.line_offset)
        imports.extend(module.imports())
    return imports


def analyze_api_imports(
    source: str,
    file_path: str,
    client_packages: list[str],
    extract_api_name: Callable[[str], str] | None = None,
) -> ApiAnalysisResult:
    """Collect named imports from API client packages as dependsOn candidates.

    Default and namespace imports cannot be attributed to a single API and
    only produce a warning. Type-only imports are ignored.
    """
    result = ApiAnalysisResult()
    try:
        imports = _module_imports(source, file_path)
    except RouteParseError as exc:
        result.warnings.append(f"Syntax error during import analysis: {exc.reason}")
        return result

    for decl in imports:
        if decl.type_only or not is_client_package(decl.source, client_packages):
            continue
        for local, imported in decl.named:
            if local in decl.type_names:
                continue
            api_name = extract_api_name(imported) if extract_api_name else imported
            result.imports.append(
                DetectedApiImport(
                    import_name=imported,
                    package_name=decl.source,
                    depends_on_name=f"{decl.source}/{api_name}",
                    line=decl.line,
                )
            )
        if decl.default:
            result.warnings.append(
                f'Default import from "{decl.source}" at line {decl.line} cannot be statically analyzed. '
                "Consider using named imports."
            )
        if decl.namespace:
            result.warnings.append(
                f'Namespace import from "{decl.source}" at line {decl.line} cannot be statically analyzed. '
                "Consider using named imports."
            )
    logger.debug("%s: %d API imports", file_path, len(result.imports))
    return result


def merge_depends_on(existing: list[str], detected: list[DetectedApiImport]) -> list[str]:
    """Union of manual entries and detected imports, sorted and without duplicates."""
    merged = set(existing)
    merged.update(item.depends_on_name for item in detected)
    return sorted(merged)
