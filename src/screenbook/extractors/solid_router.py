from __future__ import annotations

from dataclasses import replace

from screenbook.extractors.common import (
    ExtractionContext,
    RouteTables,
    finish_route,
    static_string,
)
from screenbook.extractors.syntax import (
    ArrayLit,
    ExportDefault,
    Expr,
    ObjectLit,
    Property,
    Spread,
    TypeCast,
    describe,
    parse_module,
    unwrap_cast,
)
from screenbook.schemas import ParsedRoute, ParseResult

ROUTE_TYPE_MARKER = "RouteDefinition"
SUPPORTED_SHAPES = "'export const routes = [...]', 'export default [...]', and '[...] satisfies RouteDefinition[]'"


def _is_route_table(name: str | None, type_name: str | None, value: Expr | None) -> bool:
    if name == "routes":
        return True
    if type_name and ROUTE_TYPE_MARKER in type_name:
        return True
    return isinstance(value, TypeCast) and ROUTE_TYPE_MARKER in value.type_name


def _path_values(prop: Property, context: ExtractionContext) -> list[str] | None:
    # path: "/about" or path: ["/login", "/register"]
    value = unwrap_cast(prop.value)
    if isinstance(value, ArrayLit):
        paths: list[str] = []
        for item in value.elements:
            path = static_string(item)
            if path is None:
                context.general(
                    f"Dynamic path value ({describe(item)}) in path array at line {item.line}. "
                    "Only string literal paths can be statically analyzed.",
                    item.line,
                )
                continue
            paths.append(path)
        return paths or None
    path = context.path_value(prop)
    return [path] if path is not None else None


def _parse_route_objects(node: ObjectLit, context: ExtractionContext) -> list[ParsedRoute]:
    route = ParsedRoute(path="")
    paths: list[str] = []

    for prop in node.properties:
        if isinstance(prop, Spread):
            context.general(f"Object spread in route definition at line {prop.line} was ignored.", prop.line)
            continue
        key = prop.key
        if key == "path":
            values = _path_values(prop, context)
            if values is None:
                return []
            paths = values
        elif key == "component":
            route.component = context.component(prop.value)
        elif key == "children":
            array = context.local_array(prop.value)
            if array is None:
                context.general(
                    f"Dynamic children value ({describe(prop.value)}) at line {prop.line}. "
                    "Only inline arrays can be statically analyzed.",
                    prop.line,
                )
            else:
                route.children = _parse_table(array, context) or None

    if not paths:
        finished = finish_route(route, has_path=False)
        return [finished] if finished is not None else []

    routes: list[ParsedRoute] = []
    for path in paths:
        finished = finish_route(replace(route, path=path), has_path=True)
        if finished is not None:
            routes.append(finished)
    return routes


def _parse_table(array: ArrayLit, context: ExtractionContext) -> list[ParsedRoute]:
    routes: list[ParsedRoute] = []
    for element in array.elements:
        value = unwrap_cast(element)
        if isinstance(value, Spread):
            routes.extend(context.spread(value, _parse_table))
        elif isinstance(value, ObjectLit):
            routes.extend(_parse_route_objects(value, context))
        else:
            context.general(
                f"Non-object route element ({describe(element)}) at line {element.line}. Skipping.",
                element.line,
            )
    return routes


def extract_solid_routes(source: str, file_path: str) -> ParseResult:
    module = parse_module(source, file_path)
    context = ExtractionContext.for_module(module)
    tables = RouteTables()

    for declarator, _ in module.declarators():
        if _is_route_table(declarator.name, declarator.type_name, declarator.value):
            tables.add(context.local_array(declarator.value))

    for statement in module.statements:
        if isinstance(statement, ExportDefault):
            tables.add(context.local_array(statement.value))

    routes = tables.parse(context, _parse_table)
    return context.result(routes, SUPPORTED_SHAPES)
