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
    ClassDecl,
    ExportDefault,
    Expr,
    ExpressionStmt,
    Identifier,
    Member,
    ObjectLit,
    Spread,
    TypeCast,
    parse_module,
    unwrap_cast,
)
from screenbook.schemas import ParsedRoute, ParseResult

ROUTER_MODULE_METHODS = {"forRoot", "forChild"}
SUPPORTED_SHAPES = (
    "'const routes: Routes = [...]', 'export default [...]', "
    "'RouterModule.forRoot([...])', 'RouterModule.forChild([...])', and '@NgModule({ imports: [...] })'"
)


def _is_routes_type(type_name: str | None) -> bool:
    if not type_name:
        return False
    return type_name.strip() in {"Routes", "Route[]", "Array<Route>"}


def _router_module_table(value: Expr | None, context: ExtractionContext) -> ArrayLit | None:
    value = unwrap_cast(value)
    if not isinstance(value, Call):
        return None
    callee = value.callee
    if isinstance(callee, Member) and callee.property in ROUTER_MODULE_METHODS:
        owner = callee.object
        if isinstance(owner, Identifier) and owner.name == "RouterModule":
            return context.local_array(value.args[0] if value.args else None)
    if isinstance(callee, Identifier) and callee.name == "provideRouter":
        return context.local_array(value.args[0] if value.args else None)
    return None


def _ng_module_tables(decl: ClassDecl, context: ExtractionContext) -> list[ArrayLit]:
    tables: list[ArrayLit] = []
    for decorator in decl.decorators:
        if not (isinstance(decorator, Call) and isinstance(decorator.callee, Identifier)):
            continue
        if decorator.callee.name != "NgModule" or not decorator.args:
            continue
        metadata = unwrap_cast(decorator.args[0])
        if not isinstance(metadata, ObjectLit):
            continue
        imports = metadata.get("imports")
        imported = context.local_array(imports.value) if imports is not None else None
        if imported is None:
            continue
        for item in imported.elements:
            table = _router_module_table(item, context)
            if table is not None:
                tables.append(table)
    return tables


def _lazy_children(value: Expr, context: ExtractionContext) -> str | None:
    target = context.lazy_target(value)
    if target is None:
        return None
    module_path = target.split("#", 1)[0]
    return f"[lazy: {module_path}]"


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
        elif key == "component":
            route.component = context.component(prop.value)
        elif key == "loadComponent":
            route.component = context.lazy_target(prop.value)
        elif key == "loadChildren":
            route.component = _lazy_children(prop.value, context)
        elif key == "redirectTo":
            route.redirect = static_string(prop.value) or "[dynamic]"
        elif key == "title":
            route.name = static_string(prop.value)
        elif key == "children":
            route.children = parse_children(prop, context, _parse_route_object)

    return finish_route(route, has_path)


def extract_angular_routes(source: str, file_path: str) -> ParseResult:
    module = parse_module(source, file_path)
    context = ExtractionContext.for_module(module)
    tables = RouteTables()

    for declarator, _ in module.declarators():
        value = declarator.value
        if _is_routes_type(declarator.type_name):
            tables.add(context.local_array(value))
        elif isinstance(value, TypeCast) and _is_routes_type(value.type_name):
            tables.add(context.local_array(value))
        elif declarator.name and "route" in declarator.name.lower() and isinstance(unwrap_cast(value), ArrayLit):
            tables.add(context.local_array(value))

    for statement in module.statements:
        if isinstance(statement, ExportDefault):
            tables.add(context.local_array(statement.value))
        elif isinstance(statement, ClassDecl):
            for table in _ng_module_tables(statement, context):
                tables.add(table)
        elif isinstance(statement, ExpressionStmt):
            tables.add(_router_module_table(statement.expression, context))

    # provideRouter(routes) inside bootstrapApplication(...) providers
    for call in module.find("call_expression"):
        tables.add(_router_module_table(call, context))

    routes = tables.parse(context, table_parser(_parse_route_object))
    return context.result(routes, SUPPORTED_SHAPES)
