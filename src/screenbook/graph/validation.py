from __future__ import annotations

import re

from screenbook.schemas import DependsOnIssue, OpenApiSpec, ReferenceIssue, Screen, ValidationResult
from screenbook.suggestions import find_best_match

HTTP_FORMAT_RE = re.compile(r"^(GET|POST|PUT|DELETE|PATCH|OPTIONS|HEAD)\s+", re.IGNORECASE)
REFERENCE_RATIO = 0.4
# API names vary more than screen ids
API_RATIO = 0.5


def validate_screen_references(screens: list[Screen]) -> ValidationResult:
    screen_ids = list(dict.fromkeys(screen.id for screen in screens))
    known = set(screen_ids)
    errors: list[ReferenceIssue | DependsOnIssue] = []

    for screen in screens:
        for field_name, refs in (("next", screen.next), ("entryPoints", screen.entry_points)):
            for ref in refs:
                if ref in known:
                    continue
                errors.append(
                    ReferenceIssue(
                        screen_id=screen.id,
                        field=field_name,
                        invalid_ref=ref,
                        suggestion=find_best_match(ref, screen_ids, REFERENCE_RATIO),
                    )
                )
    return ValidationResult(errors=errors)


def _matches_spec(value: str, specs: list[OpenApiSpec]) -> bool:
    http = HTTP_FORMAT_RE.match(value)
    if http:
        key = f"{http.group(1)} {value[http.end():]}".lower()
        return any(key in spec.normalized_to_original for spec in specs)
    for spec in specs:
        if value in spec.operation_ids or value.lower() in spec.normalized_to_original:
            return True
    return False


def validate_depends_on(screens: list[Screen], specs: list[OpenApiSpec]) -> ValidationResult:
    identifiers = [item for spec in specs for item in spec.identifiers()]
    errors: list[ReferenceIssue | DependsOnIssue] = []
    for screen in screens:
        for dependency in screen.depends_on:
            if _matches_spec(dependency, specs):
                continue
            suggestion = find_best_match(dependency, identifiers, API_RATIO) if identifiers else None
            errors.append(DependsOnIssue(screen_id=screen.id, invalid_api=dependency, suggestion=suggestion))
    return ValidationResult(errors=errors)


def format_validation_errors(errors: list[ReferenceIssue]) -> str:
    lines: list[str] = []
    for error in errors:
        lines.append(f'  Screen "{error.screen_id}"')
        lines.append(f'    → {error.field} references non-existent screen "{error.invalid_ref}"')
        if error.suggestion:
            lines.append(f'    Did you mean "{error.suggestion}"?')
        lines.append("")
    return "\n".join(lines)


def format_depends_on_errors(errors: list[DependsOnIssue]) -> str:
    lines: list[str] = []
    for error in errors:
        lines.append(f'  Screen "{error.screen_id}"')
        lines.append(f'    → dependsOn references unknown API "{error.invalid_api}"')
        if error.suggestion:
            lines.append(f'    Did you mean "{error.suggestion}"?')
        lines.append("")
    return "\n".join(lines)
