from __future__ import annotations

from screenbook.extractors.common import (
    ExtractionContext,
    RouteTables,
    finish_route,
    parse_children,
    static_string,
    table_parser,
)
from screenbook.extractors.syntax import (
    ArrayLit,
    BoolLit,
    Call,
    ExportDefault,
    Expr,
    Identifier,
    ObjectLit,
    Spread,
    TypeCast,
    parse_module,
    unwrap_cast,
)
from screenbook.schemas import ParsedRoute, ParseResult

ROUTER_FACTORY_NAMES = {"createBrowserRouter", "createHashRouter", "createMemoryRouter"}
ROUTE_TYPE_MARKER = "RouteObject"
SUPPORTED_SHAPES = (
    "'createBrowserRouter([...])', 'const routes = [...]', "
    "'export default [...]', and '[...] satisfies RouteObject[]'"
)


def _factory_table(value: Expr | None, context: ExtractionContext) -> ArrayLit | None:
    value = unwrap_cast(value)
    if isinstance(value, Call) and isinstance(value.callee, Identifier) and value.callee.name in ROUTER_FACTORY_NAMES:
        return context.local_array(value.args[0] if value.args else None)
    return None


def _is_typed_table(type_name: str | None, value: Expr | None) -> bool:
    if type_name and ROUTE_TYPE_MARKER in type_name:
        return True
    return isinstance(value, TypeCast) and ROUTE_TYPE_MARKER in value.type_name


def _parse_route_object(node: ObjectLit, context: ExtractionContext) -> ParsedRoute | None:
    route = ParsedRoute(path="")
    has_path = False
    is_index = False

    for prop in node.properties:
        if isinstance(prop, Spread):
            context.general(f"Object spread in route definition at line {prop.line} was ignored.", prop.line)
            continue
        key = prop.key
        if key == "path":
            path = context.path_value(prop)
            if path is None:
                return None
            route.path = path
            has_path = True
        elif key == "index":
            value = unwrap_cast(prop.value)
            is_index = isinstance(value, BoolLit) and value.value
        elif key == "id":
            route.name = static_string(prop.value)
        elif key in {"element", "Component"}:
            route.component = context.component(prop.value)
        elif key == "lazy":
            route.component = context.lazy_target(prop.value)
        elif key == "children":
            route.children = parse_children(prop, context, _parse_route_object)

    return finish_route(route, has_path, index=is_index)


def extract_react_routes(source: str, file_path: str) -> ParseResult:
    module = parse_module(source, file_path)
    context = ExtractionContext.for_module(module)
    tables = RouteTables()

    for declarator, _ in module.declarators():
        factory = _factory_table(declarator.value, context)
        if factory is not None:
            tables.add(factory)
        elif declarator.name == "routes" or _is_typed_table(declarator.type_name, declarator.value):
            tables.add(context.local_array(declarator.value))

    for statement in module.statements:
        if isinstance(statement, ExportDefault):
            tables.add(_factory_table(statement.value, context) or context.local_array(statement.value))

    routes = tables.parse(context, table_parser(_parse_route_object))
    return context.result(routes, SUPPORTED_SHAPES)
