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
    Call,
    ExportDefault,
    Expr,
    Identifier,
    ObjectLit,
    Property,
    Spread,
    TypeCast,
    describe,
    parse_module,
    unwrap_cast,
)
from screenbook.schemas import ParsedRoute, ParseResult

ROUTE_TYPE_MARKER = "RouteRecordRaw"
SUPPORTED_SHAPES = (
    "'createRouter({ routes: [...] })', 'const routes: RouteRecordRaw[] = [...]', and 'export default [...]'"
)


def _router_table(value: Expr | None, context: ExtractionContext) -> ArrayLit | None:
    value = unwrap_cast(value)
    if not (isinstance(value, Call) and isinstance(value.callee, Identifier) and value.callee.name == "createRouter"):
        return None
    options = unwrap_cast(value.args[0]) if value.args else None
    if not isinstance(options, ObjectLit):
        return None
    routes = options.get("routes")
    return context.local_array(routes.value) if routes is not None else None


def _is_route_table(name: str | None, type_name: str | None, value: Expr | None) -> bool:
    if name == "routes":
        return True
    if type_name and ROUTE_TYPE_MARKER in type_name:
        return True
    return isinstance(value, TypeCast) and ROUTE_TYPE_MARKER in value.type_name


def _redirect_value(prop: Property) -> str:
    value = static_string(prop.value)
    if value is not None:
        return value
    target = unwrap_cast(prop.value)
    if isinstance(target, ObjectLit):
        name = target.get("name") or target.get("path")
        resolved = static_string(name.value) if name is not None else None
        if resolved is not None:
            return resolved
    return f"[{describe(prop.value)}]"


def _named_views_default(prop: Property, context: ExtractionContext) -> str | None:
    views = unwrap_cast(prop.value)
    if isinstance(views, ObjectLit):
        default = views.get("default")
        if default is not None:
            return context.component(default.value)
    context.general(
        f"Named views without a 'default' entry at line {prop.line}. Component could not be determined.",
        prop.line,
    )
    return None


def _parse_route_object(node: ObjectLit, context: ExtractionContext) -> ParsedRoute | None:
    route = ParsedRoute(path="")
    has_path = False

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
        elif key == "name":
            route.name = static_string(prop.value)
        elif key == "redirect":
            route.redirect = _redirect_value(prop)
        elif key == "component":
            route.component = context.component(prop.value)
        elif key == "components":
            route.component = _named_views_default(prop, context)
        elif key == "children":
            route.children = parse_children(prop, context, _parse_route_object)

    return finish_route(route, has_path)


def extract_vue_routes(source: str, file_path: str) -> ParseResult:
    module = parse_module(source, file_path)
    context = ExtractionContext.for_module(module)
    tables = RouteTables()

    for declarator, _ in module.declarators():
        router = _router_table(declarator.value, context)
        if router is not None:
            tables.add(router)
        elif _is_route_table(declarator.name, declarator.type_name, declarator.value):
            tables.add(context.local_array(declarator.value))

    for statement in module.statements:
        if isinstance(statement, ExportDefault):
            tables.add(_router_table(statement.value, context) or context.local_array(statement.value))

    routes = tables.parse(context, table_parser(_parse_route_object))
    return context.result(routes, SUPPORTED_SHAPES)
