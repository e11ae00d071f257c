from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from screenbook.errors import RouteParseError
from screenbook.extractors.syntax import (
    Arrow,
    ArrayLit,
    Call,
    Conditional,
    ExportDefault,
    Expr,
    Identifier,
    ImportCall,
    JsxElement,
    JsxFragment,
    Logical,
    Member,
    Module,
    ObjectLit,
    Property,
    Spread,
    StringLit,
    TemplateLit,
    describe,
    parse_module,
    unwrap_cast,
)
from screenbook.schemas import GeneralWarning, ParsedRoute, ParseResult, ParseWarning, SpreadWarning
from screenbook.utils import resolve_import_path

LAZY_WRAPPERS = {"lazy", "lazyRouteComponent", "defineAsyncComponent"}
MAX_IMPORT_DEPTH = 5
SCRIPT_EXTENSIONS = ("", ".ts", ".tsx", ".js", ".jsx")


def _at(line: int | None) -> str:
    return f" at line {line}" if line is not None else ""


def static_string(expr: Expr | None) -> str | None:
    expr = unwrap_cast(expr)
    if isinstance(expr, StringLit):
        return expr.value
    if isinstance(expr, TemplateLit):
        return expr.value
    return None


@dataclass(slots=True)
class ExtractionContext:
    """Per-file state shared by the route-table walkers.

    `imports` maps local binding names to resolved module references and is
    built once, before any route table is visited.
    """

    file_path: str
    imports: dict[str, str] = field(default_factory=dict)
    # imported bindings whose local name mentions "route": name -> (module path, exported name)
    route_imports: dict[str, tuple[str, str]] = field(default_factory=dict)
    variables: dict[str, Expr] = field(default_factory=dict)
    warnings: list[ParseWarning] = field(default_factory=list)
    depth: int = 0
    parsed_tables: list[tuple[ArrayLit, list[ParsedRoute]]] = field(default_factory=list)
    spread_tables: list[ArrayLit] = field(default_factory=list)
    expanding: list[ArrayLit] = field(default_factory=list)

    @classmethod
    def for_module(cls, module: Module, depth: int = 0) -> ExtractionContext:
        context = cls(file_path=module.file_path, depth=depth)
        for decl in module.imports():
            target = resolve_import_path(decl.source, module.file_path)
            relative = decl.source.startswith(".")
            if decl.default:
                context.imports[decl.default] = target
                if relative and "route" in decl.default.lower():
                    context.route_imports[decl.default] = (target, "default")
            if decl.namespace:
                context.imports[decl.namespace] = target
            for local, imported in decl.named:
                context.imports[local] = target if imported == "default" else f"{target}#{imported}"
                if relative and "route" in local.lower():
                    context.route_imports[local] = (target, imported)
        for declarator, _ in module.declarators():
            if declarator.name and declarator.value is not None:
                context.variables[declarator.name] = declarator.value
        return context

    def general(self, message: str, line: int | None = None) -> None:
        self.warnings.append(GeneralWarning(message=message, line=line))

    def spread(self, element: Spread, parse_table: TableParser | None = None) -> list[ParsedRoute]:
        """Record a spread warning and return the routes the spread could be resolved to."""
        argument = unwrap_cast(element.argument)
        if parse_table is None or argument is None:
            routes, reason = None, "Spread resolution is not available for this route table"
        else:
            routes, reason = self._resolve_spread(argument, parse_table)
        self.spread_warning(element, resolved=routes is not None, reason=reason)
        return routes or []

    def spread_warning(self, element: Spread, resolved: bool, reason: str | None = None) -> None:
        argument = unwrap_cast(element.argument)
        name = argument.name if isinstance(argument, Identifier) else None
        subject = f"Spread operator with variable '{name}'" if name else "Spread operator"
        outcome = "Routes were resolved statically." if resolved else "Routes from spread cannot be statically analyzed."
        self.warnings.append(
            SpreadWarning(
                message=f"{subject} detected{_at(element.line)}. {outcome}",
                line=element.line,
                variable_name=name,
                resolved=resolved,
                reason=None if resolved else reason,
            )
        )

    def table_routes(self, array: ArrayLit, parse_table: TableParser) -> list[ParsedRoute]:
        for item, routes in self.parsed_tables:
            if item is array:
                return routes
        self.expanding.append(array)
        try:
            routes = parse_table(array, self)
        finally:
            self.expanding.pop()
        self.parsed_tables.append((array, routes))
        return routes

    def _resolve_spread(self, argument: Expr, parse_table: TableParser) -> tuple[list[ParsedRoute] | None, str | None]:
        argument = unwrap_cast(argument)
        if isinstance(argument, ArrayLit):
            if any(item is argument for item in self.expanding):
                return None, "Circular spread of a route table"
            return self.table_routes(argument, parse_table), None
        if isinstance(argument, Identifier):
            return self._resolve_variable(argument.name, parse_table)
        if isinstance(argument, Conditional):
            # both branches: the runtime choice is unknown
            return self._collect([argument.consequent, argument.alternate], parse_table)
        if isinstance(argument, Logical):
            if argument.operator == "&&":
                return self._resolve_spread(argument.right, parse_table)
            if argument.operator == "||":
                return self._collect([argument.left, argument.right], parse_table)
            return None, f"Unsupported logical operator '{argument.operator}' in spread expression"
        if isinstance(argument, Call):
            return None, "Function call results cannot be statically resolved"
        return None, f"Unsupported spread pattern: {describe(argument)}"

    def _collect(self, branches: list[Expr], parse_table: TableParser) -> tuple[list[ParsedRoute] | None, str | None]:
        routes: list[ParsedRoute] = []
        resolved = False
        reasons: list[str] = []
        for branch in branches:
            branch_routes, reason = self._resolve_spread(branch, parse_table)
            if branch_routes is None:
                reasons.append(reason or describe(branch))
                continue
            resolved = True
            routes.extend(branch_routes)
        if not resolved:
            return None, "; ".join(reasons)
        return routes, None

    def _resolve_variable(self, name: str, parse_table: TableParser) -> tuple[list[ParsedRoute] | None, str | None]:
        array = self.local_array(self.variables.get(name))
        if array is not None:
            if any(item is array for item in self.expanding):
                return None, f"Circular spread of '{name}'"
            self.spread_tables.append(array)
            return self.table_routes(array, parse_table), None
        if name in self.route_imports:
            module_path, exported = self.route_imports[name]
            return self._imported_routes(name, module_path, exported, parse_table)
        if "route" not in name.lower():
            return None, f"Variable '{name}' not found. Only imports with 'route' in the name are tracked for resolution."
        return None, f"Variable '{name}' not found in local scope or imports"

    def _imported_routes(
        self,
        name: str,
        module_path: str,
        exported: str,
        parse_table: TableParser,
    ) -> tuple[list[ParsedRoute] | None, str | None]:
        if self.depth >= MAX_IMPORT_DEPTH:
            return None, f"Maximum import depth ({MAX_IMPORT_DEPTH}) reached while resolving '{name}' from '{module_path}'"
        candidates = [Path(f"{module_path}{suffix}") for suffix in SCRIPT_EXTENSIONS]
        found = next((item for item in candidates if item.is_file()), None)
        if found is None:
            tried = ", ".join(f"'{item.as_posix()}'" for item in candidates)
            return None, f"Could not find imported routes file for '{name}'. Tried: {tried}"
        try:
            module = parse_module(found.read_text(encoding="utf-8"), found.as_posix())
        except (OSError, UnicodeDecodeError) as exc:
            return None, f"Failed to read '{found.as_posix()}' while resolving '{name}': {exc}"
        except RouteParseError as exc:
            return None, f"{exc.reason} in imported routes file '{found.as_posix()}' while resolving '{name}'"

        nested = ExtractionContext.for_module(module, depth=self.depth + 1)
        nested.warnings = self.warnings
        array = _exported_array(module, nested, exported)
        if array is None:
            return None, f"Export '{exported}' not found in '{found.as_posix()}' as a route array"
        return nested.table_routes(array, parse_table), None

    def local_array(self, expr: Expr | None) -> ArrayLit | None:
        expr = unwrap_cast(expr)
        if isinstance(expr, Identifier):
            expr = unwrap_cast(self.variables.get(expr.name))
        return expr if isinstance(expr, ArrayLit) else None

    def path_value(self, prop: Property) -> str | None:
        value = static_string(prop.value)
        if value is None:
            self.general(
                f"Dynamic path value ({describe(prop.value)}){_at(prop.line)}. "
                "Only string literal paths can be statically analyzed.",
                prop.line,
            )
        return value

    def resolve_identifier(self, name: str) -> str:
        return self.imports.get(name, name)

    def import_target(self, expr: Expr | None) -> str | None:
        """Resolve `import('./x')` or `import('./x').then(m => m.X)`."""
        expr = unwrap_cast(expr)
        if isinstance(expr, ImportCall):
            source = static_string(expr.source)
            if source is None:
                self.general(
                    f"Dynamic import path{_at(expr.line)}. Only string literal import paths can be statically analyzed.",
                    expr.line,
                )
                return None
            return resolve_import_path(source, self.file_path)
        if (
            isinstance(expr, Call)
            and isinstance(expr.callee, Member)
            and expr.callee.property == "then"
            and isinstance(unwrap_cast(expr.callee.object), ImportCall)
        ):
            target = self.import_target(expr.callee.object)
            if target is None:
                return None
            export_name = _then_accessor(expr.args[0] if expr.args else None)
            if export_name and export_name != "default":
                return f"{target}#{export_name}"
            return target
        if expr is not None:
            self.general(
                f"Unrecognized import pattern ({describe(expr)}){_at(expr.line)}. "
                "Expected import('./path') optionally followed by .then(m => m.Name).",
                expr.line,
            )
        return None

    def lazy_target(self, expr: Expr) -> str | None:
        arrow = unwrap_cast(expr)
        if isinstance(arrow, Arrow) and arrow.body is not None:
            if _is_import_shape(arrow.body):
                return self.import_target(arrow.body)
        self.general(
            f"Unrecognized lazy pattern ({describe(expr)}){_at(expr.line)}. Expected arrow function with import().",
            expr.line,
        )
        return None

    def component(self, expr: Expr) -> str | None:
        value = unwrap_cast(expr)
        if value is None:
            return None
        if isinstance(value, Identifier):
            return self.resolve_identifier(value.name)
        if isinstance(value, JsxElement):
            return self.jsx_component(value)
        if isinstance(value, JsxFragment):
            self.general(
                f"JSX Fragment detected{_at(value.line)}. Cannot extract component name from fragments.",
                value.line,
            )
            return None
        if isinstance(value, Arrow):
            if value.body is None:
                self.general(
                    f"Arrow function with block body{_at(value.line)}. "
                    "Only concise arrow functions returning JSX directly can be analyzed.",
                    value.line,
                )
                return None
            if _is_import_shape(value.body):
                return self.import_target(value.body)
            if isinstance(unwrap_cast(value.body), JsxElement | JsxFragment):
                return self.component(value.body)
        if isinstance(value, Call) and isinstance(value.callee, Identifier) and value.callee.name in LAZY_WRAPPERS:
            if not value.args:
                self.general(
                    f"{value.callee.name} called without arguments{_at(value.line)}. "
                    "Expected arrow function with import().",
                    value.line,
                )
                return None
            return self.lazy_target(value.args[0])
        if isinstance(value, Conditional | Logical):
            self.general(
                f"Conditional component{_at(value.line)}. Only a single static component can be analyzed.",
                value.line,
            )
            return None
        self.general(
            f"Unrecognized component pattern ({describe(value)}){_at(value.line)}. "
            "Use an identifier, a lazy import or JSX with a single component.",
            value.line,
        )
        return None

    def jsx_component(self, element: JsxElement) -> str | None:
        if element.tag_kind == "identifier":
            return self.resolve_identifier(element.tag)
        label = "Namespaced" if element.tag_kind == "namespace" else "Member expression"
        self.general(
            f"{label} JSX component <{element.tag}>{_at(element.line)}. "
            "Only a single top-level component identifier can be analyzed.",
            element.line,
        )
        return None

    def result(self, routes: list[ParsedRoute], shapes: str) -> ParseResult:
        if not routes:
            self.general(f"No routes found. Supported patterns: {shapes}")
        return ParseResult(routes=routes, warnings=self.warnings)


def _is_import_shape(expr: Expr) -> bool:
    expr = unwrap_cast(expr)
    if isinstance(expr, ImportCall):
        return True
    return (
        isinstance(expr, Call)
        and isinstance(expr.callee, Member)
        and isinstance(unwrap_cast(expr.callee.object), ImportCall)
    )


def _then_accessor(expr: Expr | None) -> str | None:
    # m => m.Dashboard
    if isinstance(expr, Arrow) and len(expr.params) == 1 and isinstance(expr.body, Member):
        target = expr.body.object
        if isinstance(target, Identifier) and target.name == expr.params[0]:
            return expr.body.property
    return None


def finish_route(route: ParsedRoute, has_path: bool, index: bool = False) -> ParsedRoute | None:
    if route.redirect and not route.component and not route.children:
        return None
    if index:
        route.path = ""
        return route
    if has_path or route.redirect:
        return route
    if route.children:
        # pathless parent acts as a layout
        route.path = ""
        return route
    return None


def _exported_array(module: Module, context: ExtractionContext, exported: str) -> ArrayLit | None:
    if exported == "default":
        for statement in module.statements:
            if isinstance(statement, ExportDefault):
                return context.local_array(statement.value)
        return None
    # `export const x = [...]` and `const x = [...]; export { x }` both bind a top-level name
    for declarator, _ in module.declarators():
        if declarator.name == exported:
            return context.local_array(declarator.value)
    return None


@dataclass(slots=True)
class RouteTables:
    arrays: list[ArrayLit] = field(default_factory=list)

    def add(self, array: ArrayLit | None) -> None:
        # a table reached twice (`const routes = [...]` + `createX(routes)`) is walked once
        if array is None or any(item is array for item in self.arrays):
            return
        self.arrays.append(array)

    def parse(self, context: ExtractionContext, parse_table: TableParser) -> list[ParsedRoute]:
        parsed = [(array, context.table_routes(array, parse_table)) for array in self.arrays]
        routes: list[ParsedRoute] = []
        for array, table_routes in parsed:
            # a table spread into another one is reported where it is spread
            if any(item is array for item in context.spread_tables):
                continue
            routes.extend(table_routes)
        return routes


RouteObjectParser = Callable[[ObjectLit, ExtractionContext], ParsedRoute | None]
TableParser = Callable[[ArrayLit, ExtractionContext], list[ParsedRoute]]


def table_parser(parse_object: RouteObjectParser) -> TableParser:
    def parse_table(array: ArrayLit, context: ExtractionContext) -> list[ParsedRoute]:
        return parse_route_array(array, context, parse_object)

    return parse_table


def parse_route_array(
    array: ArrayLit,
    context: ExtractionContext,
    parse_object: RouteObjectParser,
) -> list[ParsedRoute]:
    routes: list[ParsedRoute] = []
    for element in array.elements:
        element = unwrap_cast(element)
        if isinstance(element, Spread):
            routes.extend(context.spread(element, table_parser(parse_object)))
            continue
        if not isinstance(element, ObjectLit):
            context.general(
                f"Non-object route element ({describe(element)}){_at(element.line)}. Skipping.",
                element.line,
            )
            continue
        route = parse_object(element, context)
        if route is not None:
            routes.append(route)
    return routes


def parse_children(
    prop: Property,
    context: ExtractionContext,
    parse_object: RouteObjectParser,
) -> list[ParsedRoute] | None:
    array = context.local_array(prop.value)
    if array is None:
        context.general(
            f"Dynamic children value ({describe(prop.value)}){_at(prop.line)}. "
            "Only inline arrays can be statically analyzed.",
            prop.line,
        )
        return None
    return parse_route_array(array, context, parse_object) or None
