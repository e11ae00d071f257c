from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from screenbook.extractors.common import ExtractionContext, finish_route, static_string
from screenbook.extractors.syntax import (
    Arrow,
    Call,
    ExportDefault,
    Expr,
    ExpressionStmt,
    Identifier,
    Member,
    ObjectLit,
    Spread,
    describe,
    parse_module,
    unwrap_cast,
)
from screenbook.schemas import ParsedRoute, ParseResult

ROUTE_FACTORY = "createRoute"
ROOT_FACTORIES = {"createRootRoute", "createRootRouteWithContext"}
SUPPORTED_SHAPES = "'createRootRoute()', 'createRoute()', and '.addChildren([...])'"

TRAILING_SPLAT_RE = re.compile(r"/\$$")
PARAM_RE = re.compile(r"\$([a-zA-Z_][a-zA-Z0-9_]*)")


def normalize_tanstack_path(path: str) -> str:
    """`/files/$` -> `/files/*`, `$` -> `*`, `$userId` -> `:userId`."""
    path = TRAILING_SPLAT_RE.sub("/*", path)
    if path == "$":
        path = "*"
    return PARAM_RE.sub(r":\1", path)


@dataclass(slots=True)
class RouteDefinition:
    variable_name: str
    is_root: bool
    line: int
    path: str | None = None
    name: str | None = None
    component: str | None = None
    parent_name: str | None = None
    # set by .addChildren([...]); None means "link through getParentRoute"
    children: list[str] | None = None
    # path was present but not a literal; the route and its subtree are skipped
    dynamic_path: bool = False


def _factory_options(call: Call) -> tuple[bool, Expr | None] | None:
    callee = unwrap_cast(call.callee)
    options = call.args[0] if call.args else None
    if isinstance(callee, Identifier):
        if callee.name in ROOT_FACTORIES:
            return True, options
        if callee.name == ROUTE_FACTORY:
            return False, options
        return None
    # createRootRouteWithContext<Context>()({...})
    if isinstance(callee, Call):
        inner = unwrap_cast(callee.callee)
        if isinstance(inner, Identifier) and inner.name == "createRootRouteWithContext":
            return True, options
    return None


def _parent_name(value: Expr, line: int, context: ExtractionContext) -> str | None:
    arrow = unwrap_cast(value)
    body = unwrap_cast(arrow.body) if isinstance(arrow, Arrow) else None
    if isinstance(body, Identifier):
        return body.name
    context.general(f"Dynamic getParentRoute at line {line}. Only static route references can be analyzed.", line)
    return None


def _route_definition(variable_name: str, value: Expr | None, context: ExtractionContext) -> RouteDefinition | None:
    value = unwrap_cast(value)
    if not isinstance(value, Call):
        return None

    lazy_arg: Expr | None = None
    callee = unwrap_cast(value.callee)
    # createRoute({...}).lazy(() => import('./about.lazy').then(d => d.Route))
    if isinstance(callee, Member) and callee.property == "lazy" and isinstance(unwrap_cast(callee.object), Call):
        lazy_arg = value.args[0] if value.args else None
        value = unwrap_cast(callee.object)

    factory = _factory_options(value)
    if factory is None:
        return None
    is_root, options = factory
    definition = RouteDefinition(variable_name=variable_name, is_root=is_root, line=value.line)

    options = unwrap_cast(options)
    if isinstance(options, ObjectLit):
        for prop in options.properties:
            if isinstance(prop, Spread):
                context.general(f"Object spread in route definition at line {prop.line} was ignored.", prop.line)
                continue
            if prop.key == "path":
                path = context.path_value(prop)
                if path is None:
                    definition.dynamic_path = True
                else:
                    definition.path = normalize_tanstack_path(path)
            elif prop.key == "id":
                definition.name = static_string(prop.value)
            elif prop.key == "component":
                definition.component = context.component(prop.value)
            elif prop.key == "getParentRoute":
                definition.parent_name = _parent_name(prop.value, prop.line, context)

    if lazy_arg is not None:
        target = context.lazy_target(lazy_arg)
        if target is not None:
            definition.component = target
    return definition


def _tree_expressions(value: Expr | None) -> Iterator[Expr]:
    value = unwrap_cast(value)
    if value is None:
        return
    yield value
    # createRouter({ routeTree: rootRoute.addChildren([...]) })
    if isinstance(value, Call) and isinstance(value.callee, Identifier) and value.callee.name == "createRouter":
        options = unwrap_cast(value.args[0]) if value.args else None
        if isinstance(options, ObjectLit):
            tree = options.get("routeTree")
            if tree is not None:
                yield unwrap_cast(tree.value)


def _link_children(
    expr: Expr | None,
    definitions: dict[str, RouteDefinition],
    context: ExtractionContext,
) -> str | None:
    """Record `parent.addChildren([...])` links and return the parent's variable name."""
    expr = unwrap_cast(expr)
    if not (isinstance(expr, Call) and isinstance(expr.callee, Member) and expr.callee.property == "addChildren"):
        return None

    owner = unwrap_cast(expr.callee.object)
    if isinstance(owner, Identifier):
        parent_name: str | None = owner.name
    else:
        # rootRoute.addChildren([...]).addChildren([...])
        parent_name = _link_children(owner, definitions, context)
    if parent_name is None:
        return None

    parent = definitions.get(parent_name)
    if parent is None:
        context.general(
            f'Parent route "{parent_name}" not found at line {expr.line}. '
            "Ensure it's defined with createRoute/createRootRoute.",
            expr.line,
        )
        return None

    array = context.local_array(expr.args[0] if expr.args else None)
    if array is None:
        context.general(
            f"Dynamic children value at line {expr.line}. Only inline arrays can be statically analyzed.",
            expr.line,
        )
        return parent_name

    children: list[str] = []
    for element in array.elements:
        element = unwrap_cast(element)
        if isinstance(element, Identifier):
            children.append(element.name)
        elif isinstance(element, Spread):
            children.extend(_spread_children(element, context))
        elif isinstance(element, Call):
            nested = _link_children(element, definitions, context)
            if nested is not None:
                children.append(nested)
        else:
            context.general(
                f"Unrecognized child route ({describe(element)}) at line {element.line}. "
                "Expected a route variable or a nested .addChildren([...]).",
                element.line,
            )
    parent.children = children
    return parent_name


def _spread_children(element: Spread, context: ExtractionContext) -> list[str]:
    """Child names from `...adminChildren` when it names a local array of route variables."""
    array = context.local_array(element.argument)
    if array is None:
        context.spread_warning(element, resolved=False, reason="Only local arrays of route variables can be resolved")
        return []
    names: list[str] = []
    for item in array.elements:
        item = unwrap_cast(item)
        if not isinstance(item, Identifier):
            context.spread_warning(
                element,
                resolved=False,
                reason=f"Spread array holds a {describe(item)} instead of route variables",
            )
            return []
        names.append(item.name)
    context.spread_warning(element, resolved=True)
    return names


class _TreeBuilder:
    def __init__(self, definitions: dict[str, RouteDefinition], context: ExtractionContext) -> None:
        self.definitions = definitions
        self.context = context

    def child_names(self, definition: RouteDefinition) -> list[str]:
        if definition.children is not None:
            return definition.children
        return [
            item.variable_name
            for item in self.definitions.values()
            if item.parent_name == definition.variable_name and not item.is_root
        ]

    def build(self, definition: RouteDefinition, ancestors: frozenset[str]) -> ParsedRoute | None:
        if definition.dynamic_path:
            return None
        if definition.variable_name in ancestors:
            self.context.general(
                f'Circular reference detected: route "{definition.variable_name}" references itself in the route tree.',
                definition.line,
            )
            return None
        ancestors = ancestors | {definition.variable_name}

        children: list[ParsedRoute] = []
        for child_name in self.child_names(definition):
            child = self.definitions.get(child_name)
            if child is None:
                self.context.general(f'Child route "{child_name}" not found. Ensure it\'s defined with createRoute.')
                continue
            built = self.build(child, ancestors)
            if built is not None:
                children.append(built)

        route = ParsedRoute(
            path=definition.path or "",
            name=definition.name,
            component=definition.component,
            children=children or None,
        )
        if definition.is_root:
            return route
        return finish_route(route, has_path=definition.path is not None)

    def top_level(self) -> list[ParsedRoute]:
        roots = [item for item in self.definitions.values() if item.is_root]
        routes: list[ParsedRoute] = []
        if roots:
            # the root route is a layout wrapper; its children are the real top level
            for root in roots:
                built = self.build(root, frozenset())
                if built is None:
                    continue
                if built.children:
                    routes.extend(built.children)
                elif root.path:
                    routes.append(built)
            return routes

        linked = {name for item in self.definitions.values() for name in (item.children or [])}
        for item in self.definitions.values():
            if item.parent_name is None and item.variable_name not in linked:
                built = self.build(item, frozenset())
                if built is not None:
                    routes.append(built)
        return routes


def extract_tanstack_routes(source: str, file_path: str) -> ParseResult:
    module = parse_module(source, file_path)
    context = ExtractionContext.for_module(module)

    definitions: dict[str, RouteDefinition] = {}
    for declarator, _ in module.declarators():
        if declarator.name is None:
            continue
        definition = _route_definition(declarator.name, declarator.value, context)
        if definition is not None:
            definitions[declarator.name] = definition

    # second pass: every route variable is known before addChildren links are resolved
    tree_values: list[Expr | None] = [declarator.value for declarator, _ in module.declarators()]
    for statement in module.statements:
        if isinstance(statement, ExportDefault):
            tree_values.append(statement.value)
        elif isinstance(statement, ExpressionStmt):
            tree_values.append(statement.expression)
    for value in tree_values:
        for expr in _tree_expressions(value):
            _link_children(expr, definitions, context)

    routes = _TreeBuilder(definitions, context).top_level()
    return context.result(routes, SUPPORTED_SHAPES)
