from __future__ import annotations

import json
import posixpath
import re
from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

import yaml


def _expand_braces(pattern: str) -> list[str]:
    match = re.search(r"\{([^{}]+)\}", pattern)
    if not match:
        return [pattern]
    options = [item.strip() for item in match.group(1).split(",") if item.strip()]
    if not options:
        return [pattern]
    prefix = pattern[: match.start()]
    suffix = pattern[match.end() :]
    expanded: list[str] = []
    for option in options:
        expanded.extend(_expand_braces(f"{prefix}{option}{suffix}"))
    return expanded


def path_matches(path: str, patterns: Iterable[str]) -> bool:
    expanded_patterns: list[str] = []
    for pattern in patterns:
        expanded_patterns.extend(_expand_braces(pattern))
    # "**/" also matches zero directories
    expanded_patterns.extend(item.replace("**/", "") for item in list(expanded_patterns) if "**/" in item)
    return any(fnmatch(path, pattern) for pattern in expanded_patterns)


def is_included(path: str, include_patterns: list[str], exclude_patterns: list[str]) -> bool:
    include_ok = path_matches(path, include_patterns)
    exclude_hit = path_matches(path, exclude_patterns)
    return include_ok and not exclude_hit


def discover_files(root: Path, include_patterns: list[str], exclude_patterns: list[str]) -> list[str]:
    files: list[str] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        rel = path.relative_to(root).as_posix()
        if is_included(rel, include_patterns, exclude_patterns):
            files.append(rel)
    return sorted(files)


def resolve_import_path(import_path: str, file_path: str) -> str:
    if not import_path.startswith("."):
        return import_path
    base_dir = posixpath.dirname(file_path.replace("\\", "/"))
    return posixpath.normpath(posixpath.join(base_dir, import_path))


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def read_document(path: Path) -> Any:
    # YAML is a superset of JSON, so one loader serves both
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
