from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

_CAMEL_RE = re.compile(r"_([a-z])")

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")


def _camel(key: str) -> str:
    return _CAMEL_RE.sub(lambda match: match.group(1).upper(), key)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(key): _camelize(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_camelize(item) for item in value]
    return value


class Serializable:
    def to_dict(self) -> dict[str, Any]:
        return _camelize(asdict(self))


@dataclass(slots=True)
class ParsedRoute(Serializable):
    path: str
    name: str | None = None
    component: str | None = None
    children: list[ParsedRoute] | None = None
    redirect: str | None = None


@dataclass(slots=True, frozen=True)
class FlatRoute(Serializable):
    full_path: str
    screen_id: str
    screen_title: str
    depth: int
    name: str | None = None
    component_path: str | None = None
    suggestions: tuple[str, ...] = ()


@dataclass(slots=True)
class SpreadWarning(Serializable):
    message: str
    line: int | None = None
    variable_name: str | None = None
    # true when the spread was followed to a local or imported route array
    resolved: bool = False
    reason: str | None = None
    kind: Literal["spread"] = field(default="spread", init=False)


@dataclass(slots=True)
class GeneralWarning(Serializable):
    message: str
    line: int | None = None
    kind: Literal["general"] = field(default="general", init=False)


ParseWarning = SpreadWarning | GeneralWarning


@dataclass(slots=True)
class ParseResult(Serializable):
    routes: list[ParsedRoute] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)


@dataclass(slots=True)
class WarningSummary(Serializable):
    spread_count: int = 0
    resolved_spread_count: int = 0
    general_count: int = 0
    suppressed_count: int = 0
    should_fail: bool = False

    @property
    def has_warnings(self) -> bool:
        return self.spread_count > 0 or self.general_count > 0


@dataclass(slots=True)
class Screen(Serializable):
    id: str
    title: str = ""
    route: str = ""
    owner: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    next: list[str] = field(default_factory=list)
    entry_points: list[str] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)
    allow_cycles: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Screen:
        return cls(
            id=str(data["id"]),
            title=data.get("title", data["id"]),
            route=data.get("route", ""),
            owner=list(data.get("owner", [])),
            tags=list(data.get("tags", [])),
            next=list(data.get("next", [])),
            entry_points=list(data.get("entryPoints", data.get("entry_points", []))),
            depends_on=list(data.get("dependsOn", data.get("depends_on", []))),
            allow_cycles=bool(data.get("allowCycles", data.get("allow_cycles", False))),
        )


@dataclass(slots=True)
class CycleInfo(Serializable):
    cycle: list[str]
    allowed: bool


@dataclass(slots=True)
class CycleDetectionResult(Serializable):
    cycles: list[CycleInfo] = field(default_factory=list)
    duplicate_ids: list[str] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    @property
    def disallowed_cycles(self) -> list[CycleInfo]:
        return [item for item in self.cycles if not item.allowed]


@dataclass(slots=True)
class TransitiveDependent(Serializable):
    screen: Screen
    path: list[str]


@dataclass(slots=True)
class ImpactResult(Serializable):
    api: str
    direct: list[Screen] = field(default_factory=list)
    transitive: list[TransitiveDependent] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.direct) + len(self.transitive)


@dataclass(slots=True)
class DetectedApiImport(Serializable):
    import_name: str
    package_name: str
    # "@api/client/getUsers"
    depends_on_name: str
    line: int


@dataclass(slots=True)
class ApiAnalysisResult(Serializable):
    imports: list[DetectedApiImport] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class OpenApiSpec(Serializable):
    source: str
    operation_ids: set[str] = field(default_factory=set)
    http_endpoints: set[str] = field(default_factory=set)
    normalized_to_original: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: dict[str, Any], source: str = "") -> OpenApiSpec:
        spec = cls(source=source)
        paths = document.get("paths") or {}
        for path, item in paths.items():
            if not isinstance(item, dict):
                continue
            for method in HTTP_METHODS:
                operation = item.get(method)
                if not isinstance(operation, dict):
                    continue
                operation_id = operation.get("operationId")
                if operation_id:
                    spec.operation_ids.add(operation_id)
                    spec.normalized_to_original[operation_id.lower()] = operation_id
                endpoint = f"{method.upper()} {path}"
                spec.http_endpoints.add(endpoint)
                spec.normalized_to_original[endpoint.lower()] = endpoint
        return spec

    def identifiers(self) -> list[str]:
        return sorted(self.operation_ids) + sorted(self.http_endpoints)


@dataclass(slots=True)
class DetectedNavigation(Serializable):
    path: str
    screen_id: str
    type: Literal["link", "router-push", "navigate", "redirect"]
    line: int


@dataclass(slots=True)
class NavigationResult(Serializable):
    navigations: list[DetectedNavigation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ReferenceIssue(Serializable):
    screen_id: str
    field: Literal["next", "entryPoints"]
    invalid_ref: str
    suggestion: str | None = None


@dataclass(slots=True)
class DependsOnIssue(Serializable):
    screen_id: str
    invalid_api: str
    suggestion: str | None = None


@dataclass(slots=True)
class ValidationResult(Serializable):
    errors: list[ReferenceIssue | DependsOnIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors
