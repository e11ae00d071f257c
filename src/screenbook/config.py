from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from screenbook.errors import ConfigError
from screenbook.frameworks import FrameworkInfo
from screenbook.naming import PARAMETER_STRATEGIES, NamingOptions
from screenbook.schemas import ParseWarning, SpreadWarning, WarningSummary

SPREAD_POLICIES = ("warn", "off", "error")
DEFAULT_ROUTES_PATTERN = "src/pages/**/*.{tsx,ts,jsx,js,vue}"
DEFAULT_META_PATTERN = "src/**/screen.meta.ts"

DEFAULT_CONFIG = """out_dir: .screenbook
routes_file: src/router/routes.tsx
routes_pattern: "src/pages/**/*.{tsx,ts,jsx,js,vue}"
meta_pattern: "src/**/screen.meta.ts"
ignore:
  - "**/node_modules/**"
  - "**/.git/**"
  - "**/dist/**"
  - "**/build/**"
  - "**/*.test.*"
  - "**/*.spec.*"
  - "**/__tests__/**"
naming:
  smart_parameter_naming: false
  parameter_mapping: {}
  unmapped_parameter_strategy: preserve
lint:
  spread_operator: warn
impact:
  max_depth: 3
api:
  client_packages: []
openapi: []
"""


@dataclass(slots=True)
class LintConfig:
    spread_operator: str = "warn"


@dataclass(slots=True)
class ImpactConfig:
    max_depth: int = 3


@dataclass(slots=True)
class ApiConfig:
    # packages whose named imports become dependsOn suggestions, e.g. "@api/client"
    client_packages: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ScreenbookConfig:
    out_dir: str
    routes_file: str | None
    routes_pattern: str
    meta_pattern: str
    ignore: list[str]
    naming: NamingOptions
    lint: LintConfig
    impact: ImpactConfig
    api: ApiConfig = field(default_factory=ApiConfig)
    openapi: list[str] = field(default_factory=list)

    @classmethod
    def default(cls) -> ScreenbookConfig:
        data = yaml.safe_load(DEFAULT_CONFIG)
        return cls.from_dict(data)

    @classmethod
    def from_path(cls, path: Path) -> ScreenbookConfig:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"{path}: cannot read config: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScreenbookConfig:
        naming_data = _section(data, "naming")
        mapping = _section(naming_data, "parameter_mapping", "naming.parameter_mapping")
        naming = NamingOptions(
            smart_parameter_naming=bool(naming_data.get("smart_parameter_naming", False)),
            parameter_mapping={str(key): str(value) for key, value in mapping.items()},
            unmapped_parameter_strategy=naming_data.get("unmapped_parameter_strategy", "preserve"),
        )
        spread_operator = _section(data, "lint").get("spread_operator", "warn")
        # YAML 1.1 reads a bare `off` as False
        lint = LintConfig(spread_operator="off" if spread_operator is False else str(spread_operator))
        impact = ImpactConfig(max_depth=_as_int(_section(data, "impact").get("max_depth", 3), "impact.max_depth"))
        api = ApiConfig(client_packages=_string_list(_section(data, "api"), "client_packages", "api.client_packages"))

        env_smart = os.getenv("SCREENBOOK_SMART_PARAMETER_NAMING", "").strip().lower()
        env_strategy = os.getenv("SCREENBOOK_UNMAPPED_PARAMETER_STRATEGY", "").strip().lower()
        env_spread = os.getenv("SCREENBOOK_SPREAD_OPERATOR", "").strip().lower()
        env_depth = os.getenv("SCREENBOOK_IMPACT_MAX_DEPTH", "").strip()
        env_clients = os.getenv("SCREENBOOK_API_CLIENT_PACKAGES", "").strip()

        if env_smart in {"1", "true", "yes", "on"}:
            naming.smart_parameter_naming = True
        elif env_smart in {"0", "false", "no", "off"}:
            naming.smart_parameter_naming = False
        if env_strategy:
            naming.unmapped_parameter_strategy = env_strategy
        if env_spread:
            lint.spread_operator = env_spread
        if env_depth:
            impact.max_depth = _as_int(env_depth, "SCREENBOOK_IMPACT_MAX_DEPTH")
        if env_clients:
            api.client_packages = [item.strip() for item in env_clients.split(",") if item.strip()]

        if naming.unmapped_parameter_strategy not in PARAMETER_STRATEGIES:
            raise ConfigError(
                f"Unknown unmapped_parameter_strategy {naming.unmapped_parameter_strategy!r}; "
                f"expected one of {', '.join(PARAMETER_STRATEGIES)}"
            )
        if lint.spread_operator not in SPREAD_POLICIES:
            raise ConfigError(
                f"Unknown lint.spread_operator {lint.spread_operator!r}; expected one of {', '.join(SPREAD_POLICIES)}"
            )
        if impact.max_depth < 0:
            raise ConfigError(f"impact.max_depth must be >= 0, got {impact.max_depth}")

        return cls(
            out_dir=data.get("out_dir", ".screenbook"),
            routes_file=data.get("routes_file"),
            routes_pattern=data.get("routes_pattern", DEFAULT_ROUTES_PATTERN),
            meta_pattern=data.get("meta_pattern", DEFAULT_META_PATTERN),
            ignore=_string_list(data, "ignore") or ["**/node_modules/**", "**/.git/**"],
            naming=naming,
            lint=lint,
            impact=impact,
            api=api,
            openapi=_string_list(data, "openapi"),
        )


def _section(data: dict[str, Any], key: str, name: str | None = None) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name or key} must be a mapping, got {type(value).__name__}")
    return value


def _string_list(data: dict[str, Any], key: str, name: str | None = None) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{name or key} must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def render_config(framework: FrameworkInfo | None = None) -> str:
    if framework is None:
        return DEFAULT_CONFIG
    text = DEFAULT_CONFIG.replace(
        f'routes_pattern: "{DEFAULT_ROUTES_PATTERN}"', f'routes_pattern: "{framework.routes_pattern}"'
    ).replace(f'meta_pattern: "{DEFAULT_META_PATTERN}"', f'meta_pattern: "{framework.meta_pattern}"')
    return f"# detected framework: {framework.name}\n{text}"


def ensure_config(path: Path, force: bool = False, framework: FrameworkInfo | None = None) -> bool:
    if path.exists() and not force:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_config(framework), encoding="utf-8")
    return True


def summarize_warnings(warnings: list[ParseWarning], spread_policy: str = "warn") -> WarningSummary:
    """Count warnings by kind under the given spread-operator policy.

    "off" suppresses spread warnings, "error" makes any unresolved one fatal.
    General warnings are always reported and never fail the run.
    """
    if spread_policy not in SPREAD_POLICIES:
        raise ConfigError(f"Unknown spread policy {spread_policy!r}")
    spreads = [item for item in warnings if isinstance(item, SpreadWarning)]
    resolved_count = sum(1 for item in spreads if item.resolved)
    general_count = len(warnings) - len(spreads)
    if spread_policy == "off":
        return WarningSummary(spread_count=0, general_count=general_count, suppressed_count=len(spreads))
    return WarningSummary(
        spread_count=len(spreads),
        resolved_spread_count=resolved_count,
        general_count=general_count,
        should_fail=spread_policy == "error" and len(spreads) > resolved_count,
    )
