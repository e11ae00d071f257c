from __future__ import annotations

import logging
from html.parser import HTMLParser
from pathlib import PurePosixPath
from typing import Literal

from screenbook.errors import RouteParseError
from screenbook.extractors.common import static_string
from screenbook.extractors.syntax import (
    ArrayLit,
    Call,
    ClassDecl,
    Expr,
    Identifier,
    JsxElement,
    Member,
    Module,
    ObjectLit,
    extract_vue_blocks,
    parse_module,
    unwrap_cast,
)
from screenbook.naming import path_to_screen_id
from screenbook.schemas import DetectedNavigation, NavigationResult

logger = logging.getLogger(__name__)

NavigationFramework = Literal["nextjs", "react-router", "vue-router", "angular"]
NavigationType = Literal["link", "router-push", "navigate", "redirect"]

NEXTJS_MARKERS = ("next/link", "next/navigation", "next/router")
REACT_ROUTER_MARKERS = ("react-router", "@remix-run/react", "useNavigate")
LINK_TAGS = {"nextjs": {"Link"}, "react-router": {"Link", "NavLink"}}
VUE_LINK_TAGS = {"routerlink", "router-link"}
VUE_TO_BINDINGS = {":to", "v-bind:to"}
EXTERNAL_PREFIXES = ("http://", "https://", "//", "#", "mailto:", "tel:")
MANUAL_HINT = "Add the target screen ID manually to the 'next' field in screen.meta.ts."
RELATIVE_HINT = (
    "Angular routerLink paths should start with '/' for absolute routing. "
    "Navigation will not be detected for this link."
)


def is_valid_internal_path(path: str) -> bool:
    if path.startswith(EXTERNAL_PREFIXES):
        return False
    return path.startswith("/")


def detect_navigation_framework(source: str, file_path: str = "") -> NavigationFramework:
    if PurePosixPath(file_path).suffix == ".vue" or "vue-router" in source:
        return "vue-router"
    if "@angular/router" in source or "@angular/core" in source:
        return "angular"
    if any(marker in source for marker in NEXTJS_MARKERS):
        return "nextjs"
    if any(marker in source for marker in REACT_ROUTER_MARKERS):
        return "react-router"
    return "nextjs"


def _navigation(path: str, kind: NavigationType, line: int) -> DetectedNavigation:
    return DetectedNavigation(path=path, screen_id=path_to_screen_id(path).screen_id, type=kind, line=line)


def _quoted_literal(expression: str) -> str | None:
    text = expression.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {"'", '"'}:
        return text[1:-1]
    if len(text) >= 2 and text[0] == text[-1] == "`" and "${" not in text:
        return text[1:-1]
    return None


def _first_array_item(expression: str) -> str:
    # "['/users', id]" -> "'/users'"
    body = expression.strip()[1:-1]
    quote: str | None = None
    for index, char in enumerate(body):
        if char in {"'", '"'}:
            if quote is None:
                quote = char
            elif quote == char:
                quote = None
        elif char == "," and quote is None:
            return body[:index].strip()
    return body.strip()


def deduplicate(navigations: list[DetectedNavigation]) -> list[DetectedNavigation]:
    seen: set[str] = set()
    unique: list[DetectedNavigation] = []
    for item in navigations:
        if item.screen_id in seen:
            continue
        seen.add(item.screen_id)
        unique.append(item)
    return unique


def merge_next(existing: list[str], detected: list[DetectedNavigation]) -> list[str]:
    merged = set(existing)
    merged.update(item.screen_id for item in detected)
    return sorted(merged)


class _ScriptScanner:
    def __init__(self, framework: NavigationFramework, warnings: list[str]) -> None:
        self.framework = framework
        self.warnings = warnings
        self.navigations: list[DetectedNavigation] = []

    def scan(self, module: Module) -> None:
        for element in module.find("jsx_element", "jsx_self_closing_element"):
            if isinstance(element, JsxElement):
                self._link(element)
        for call in module.find("call_expression"):
            if isinstance(call, Call):
                self._call(call)

    def _link(self, element: JsxElement) -> None:
        if element.tag_kind != "identifier" or element.tag not in LINK_TAGS.get(self.framework, set()):
            return
        attr_name = "href" if self.framework == "nextjs" else "to"
        attribute = element.attribute(attr_name)
        if attribute is None or attribute.value is None:
            return
        path = static_string(attribute.value)
        if path is None:
            self.warnings.append(f"Dynamic Link {attr_name} at line {element.line} cannot be statically analyzed")
            return
        if is_valid_internal_path(path):
            self.navigations.append(_navigation(path, "link", element.line))

    def _call(self, call: Call) -> None:
        kind = self._call_kind(call.callee)
        if kind is None or not call.args:
            return
        argument = unwrap_cast(call.args[0])
        if self.framework == "angular" and isinstance(argument, ArrayLit):
            # router.navigate(['/users', id])
            argument = argument.elements[0] if argument.elements else None
        path = static_string(argument)
        if path is None:
            self.warnings.append(f"Dynamic navigation path at line {call.line} cannot be statically analyzed")
            return
        if is_valid_internal_path(path):
            self.navigations.append(_navigation(path, kind, call.line))

    def _call_kind(self, callee: Expr) -> NavigationType | None:
        callee = unwrap_cast(callee)
        if isinstance(callee, Identifier):
            if callee.name == "navigate" and self.framework == "react-router":
                return "navigate"
            if callee.name == "redirect" and self.framework == "nextjs":
                return "redirect"
            return None
        if not isinstance(callee, Member):
            return None
        owner = unwrap_cast(callee.object)
        if isinstance(owner, Identifier):
            owner_name = owner.name
        elif isinstance(owner, Member):
            # this.router.navigate(...)
            owner_name = owner.property
        else:
            return None
        if owner_name != "router":
            return None
        if callee.property == "push" and self.framework in {"nextjs", "vue-router"}:
            return "router-push"
        if callee.property in {"navigate", "navigateByUrl"} and self.framework == "angular":
            return "navigate"
        return None


class _TemplateScanner(HTMLParser):
    """Collects RouterLink targets from Vue and Angular templates.

    HTMLParser lowercases tag and attribute names, so `RouterLink` arrives as
    `routerlink` and `[routerLink]` as `[routerlink]`.
    """

    def __init__(self, framework: NavigationFramework, line_offset: int, warnings: list[str]) -> None:
        super().__init__(convert_charrefs=True)
        self.framework = framework
        self.line_offset = line_offset
        self.warnings = warnings
        self.navigations: list[DetectedNavigation] = []

    def _line(self) -> int:
        return self.getpos()[0] + self.line_offset

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self.framework == "angular":
            self._angular(dict(attrs))
        elif tag in VUE_LINK_TAGS:
            self._vue(attrs)

    def _vue(self, attrs: list[tuple[str, str | None]]) -> None:
        line = self._line()
        for name, value in attrs:
            if name == "to":
                if value and is_valid_internal_path(value):
                    self.navigations.append(_navigation(value, "link", line))
                return
            if name in VUE_TO_BINDINGS:
                if not value:
                    self.warnings.append(f"Empty :to binding at line {line}. {MANUAL_HINT}")
                    return
                path = _quoted_literal(value)
                if path is None:
                    self.warnings.append(f"Dynamic :to binding at line {line} cannot be statically analyzed. {MANUAL_HINT}")
                elif is_valid_internal_path(path):
                    self.navigations.append(_navigation(path, "link", line))
                return

    def _angular(self, attrs: dict[str, str | None]) -> None:
        line = self._line()
        if "routerlink" in attrs:
            self._router_link_path(attrs["routerlink"] or "", "routerLink", line)
        if "[routerlink]" in attrs:
            expression = (attrs["[routerlink]"] or "").strip()
            if not expression:
                self.warnings.append(f"Empty [routerLink] binding at line ~{line}. {MANUAL_HINT}")
                return
            if expression.startswith("[") and expression.endswith("]"):
                expression = _first_array_item(expression)
                path = _quoted_literal(expression)
                if path is not None:
                    self._router_link_path(path, "[routerLink]", line)
                return
            path = _quoted_literal(expression)
            if path is None:
                self.warnings.append(
                    f"Dynamic [routerLink] binding at line ~{line} cannot be statically analyzed. {MANUAL_HINT}"
                )
                return
            self._router_link_path(path, "[routerLink]", line)

    def _router_link_path(self, path: str, label: str, line: int) -> None:
        if not path:
            return
        if is_valid_internal_path(path):
            self.navigations.append(_navigation(path, "link", line))
        elif not path.startswith("/") and "://" not in path:
            self.warnings.append(f'{label} at line ~{line} has relative path "{path}". {RELATIVE_HINT}')


def _scan_template(template: str, framework: NavigationFramework, line_offset: int, warnings: list[str]) -> list[DetectedNavigation]:
    scanner = _TemplateScanner(framework, line_offset, warnings)
    scanner.feed(template)
    scanner.close()
    return scanner.navigations


def _inline_templates(module: Module) -> list[tuple[str, int]]:
    # @Component({ template: `...` })
    templates: list[tuple[str, int]] = []
    for statement in module.statements:
        if not isinstance(statement, ClassDecl):
            continue
        for decorator in statement.decorators:
            if not (isinstance(decorator, Call) and isinstance(decorator.callee, Identifier)):
                continue
            if decorator.callee.name != "Component" or not decorator.args:
                continue
            metadata = unwrap_cast(decorator.args[0])
            template = metadata.get("template") if isinstance(metadata, ObjectLit) else None
            if template is None:
                continue
            text = static_string(template.value)
            if text is not None:
                templates.append((text, template.line - 1))
    return templates


def analyze_navigation(
    source: str,
    file_path: str,
    framework: NavigationFramework | None = None,
) -> NavigationResult:
    framework = framework or detect_navigation_framework(source, file_path)
    warnings: list[str] = []
    navigations: list[DetectedNavigation] = []
    scanner = _ScriptScanner(framework, warnings)

    try:
        if PurePosixPath(file_path).suffix == ".vue":
            blocks = extract_vue_blocks(source)
            if blocks.template is not None:
                navigations.extend(_scan_template(blocks.template, framework, blocks.template_line - 1, warnings))
            for script in blocks.scripts:
                scanner.scan(parse_module(script.content, file_path, script.dialect, script.line_offset))
        else:
            module = parse_module(source, file_path)
            if framework == "angular":
                for template, offset in _inline_templates(module):
                    navigations.extend(_scan_template(template, framework, offset, warnings))
            scanner.scan(module)
    except RouteParseError as exc:
        warnings.append(f"Syntax error during navigation analysis: {exc.reason}")

    navigations.extend(scanner.navigations)
    logger.debug("navigation %s (%s): %d targets", file_path, framework, len(navigations))
    return NavigationResult(navigations=deduplicate(navigations), warnings=warnings)
