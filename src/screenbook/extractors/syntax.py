from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import cache
from pathlib import PurePosixPath
from typing import Literal

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from screenbook.errors import RouteParseError

logger = logging.getLogger(__name__)

Dialect = Literal["typescript", "tsx"]

TYPESCRIPT_SUFFIXES = {".ts", ".mts", ".cts"}
LOGICAL_OPERATORS = {"&&", "||", "??"}
TRANSPARENT_WRAPPERS = {"parenthesized_expression", "non_null_expression"}

SCRIPT_BLOCK_RE = re.compile(r"<script\b(?P<attrs>[^>]*)>(?P<body>.*?)</script\s*>", re.DOTALL | re.IGNORECASE)
SCRIPT_LANG_RE = re.compile(r"""\blang\s*=\s*["']?(?P<lang>\w+)""")
TEMPLATE_OPEN_RE = re.compile(r"<template\b[^>]*>", re.IGNORECASE)
TEMPLATE_CLOSE = "</template>"


# Expressions: one class per construct the extractors consume.


@dataclass(slots=True)
class Expr:
    line: int


@dataclass(slots=True)
class StringLit(Expr):
    value: str


@dataclass(slots=True)
class TemplateLit(Expr):
    # None when the template has ${...} substitutions
    value: str | None


@dataclass(slots=True)
class BoolLit(Expr):
    value: bool


@dataclass(slots=True)
class Identifier(Expr):
    name: str


@dataclass(slots=True)
class Member(Expr):
    object: Expr
    property: str


@dataclass(slots=True)
class Call(Expr):
    callee: Expr
    args: list[Expr]


@dataclass(slots=True)
class ImportCall(Expr):
    source: Expr | None


@dataclass(slots=True)
class Arrow(Expr):
    params: list[str]
    # None for block bodies
    body: Expr | None


@dataclass(slots=True)
class Spread(Expr):
    argument: Expr


@dataclass(slots=True)
class Property(Expr):
    # None for computed keys
    key: str | None
    value: Expr


@dataclass(slots=True)
class ObjectLit(Expr):
    properties: list[Property | Spread]

    def get(self, key: str) -> Property | None:
        for item in self.properties:
            if isinstance(item, Property) and item.key == key:
                return item
        return None


@dataclass(slots=True)
class ArrayLit(Expr):
    elements: list[Expr]


@dataclass(slots=True)
class JsxAttribute(Expr):
    name: str
    value: Expr | None


@dataclass(slots=True)
class JsxElement(Expr):
    tag: str
    tag_kind: Literal["identifier", "member", "namespace"]
    attributes: list[JsxAttribute]
    children: list[Expr]

    def attribute(self, name: str) -> JsxAttribute | None:
        for item in self.attributes:
            if item.name == name:
                return item
        return None


@dataclass(slots=True)
class JsxFragment(Expr):
    children: list[Expr]


@dataclass(slots=True)
class Conditional(Expr):
    test: Expr
    consequent: Expr
    alternate: Expr


@dataclass(slots=True)
class Logical(Expr):
    operator: str
    left: Expr
    right: Expr


@dataclass(slots=True)
class TypeCast(Expr):
    expression: Expr
    kind: Literal["as", "satisfies"]
    type_name: str


@dataclass(slots=True)
class Unsupported(Expr):
    kind: str


# Module-level statements.


@dataclass(slots=True)
class ImportDecl:
    line: int
    source: str
    default: str | None = None
    namespace: str | None = None
    # (local, imported)
    named: list[tuple[str, str]] = field(default_factory=list)
    # `import type {...}`
    type_only: bool = False
    # locals bound by `import { type X }`
    type_names: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Declarator:
    line: int
    name: str | None
    type_name: str | None
    value: Expr | None


@dataclass(slots=True)
class VariableDecl:
    line: int
    declarators: list[Declarator]
    exported: bool = False


@dataclass(slots=True)
class ExportDefault:
    line: int
    value: Expr


@dataclass(slots=True)
class ClassDecl:
    line: int
    name: str | None
    decorators: list[Expr]
    exported: bool = False


@dataclass(slots=True)
class ExpressionStmt:
    line: int
    expression: Expr


Statement = ImportDecl | VariableDecl | ExportDefault | ClassDecl | ExpressionStmt


@dataclass(slots=True)
class ScriptBlock:
    content: str
    line_offset: int
    dialect: Dialect


@dataclass(slots=True)
class VueBlocks:
    scripts: list[ScriptBlock]
    template: str | None = None
    template_line: int = 1


def describe(expr: Expr) -> str:
    if isinstance(expr, Unsupported):
        return expr.kind
    return type(expr).__name__


def unwrap_cast(expr: Expr | None) -> Expr | None:
    while isinstance(expr, TypeCast):
        expr = expr.expression
    return expr


def dialect_for_path(file_path: str) -> Dialect:
    if PurePosixPath(file_path).suffix.lower() in TYPESCRIPT_SUFFIXES:
        return "typescript"
    return "tsx"


@cache
def _language(dialect: Dialect) -> Language:
    if dialect == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    return Language(tree_sitter_typescript.language_tsx())


def _text(node: Node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


def _string_value(node: Node) -> str:
    raw = _text(node)
    if len(raw) >= 2 and raw[0] in {"'", '"', "`"} and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def _named(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def _first_error(node: Node) -> Node | None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


class _Lowerer:
    def __init__(self, line_offset: int = 0) -> None:
        self.line_offset = line_offset
        # one Expr per tree-sitter node, so a node reached twice compares by identity
        self._lowered: dict[int, Expr] = {}

    def line(self, node: Node) -> int:
        return node.start_point[0] + 1 + self.line_offset

    def expr(self, node: Node) -> Expr:
        lowered = self._lowered.get(node.id)
        if lowered is None:
            lowered = self._lowered[node.id] = self._lower(node)
        return lowered

    def _lower(self, node: Node) -> Expr:
        kind = node.type
        line = self.line(node)

        if kind in TRANSPARENT_WRAPPERS:
            inner = _named(node)
            return self.expr(inner[0]) if inner else Unsupported(line, kind)
        if kind == "string":
            return StringLit(line, _string_value(node))
        if kind == "template_string":
            if any(child.type == "template_substitution" for child in node.named_children):
                return TemplateLit(line, None)
            return TemplateLit(line, _string_value(node))
        if kind in {"true", "false"}:
            return BoolLit(line, kind == "true")
        if kind in {"identifier", "property_identifier", "shorthand_property_identifier", "type_identifier"}:
            return Identifier(line, _text(node))
        if kind == "member_expression":
            obj = node.child_by_field_name("object")
            prop = node.child_by_field_name("property")
            if obj is None or prop is None:
                return Unsupported(line, kind)
            return Member(line, self.expr(obj), _text(prop))
        if kind == "call_expression":
            return self._call(node, line)
        if kind == "arrow_function":
            return self._arrow(node, line)
        if kind == "object":
            return ObjectLit(line, self._properties(node))
        if kind == "array":
            return ArrayLit(line, [self.expr(child) for child in _named(node)])
        if kind == "spread_element":
            inner = _named(node)
            return Spread(line, self.expr(inner[0]) if inner else Unsupported(line, kind))
        if kind in {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}:
            return self._jsx(node, line)
        if kind == "ternary_expression":
            condition = node.child_by_field_name("condition")
            consequence = node.child_by_field_name("consequence")
            alternative = node.child_by_field_name("alternative")
            if condition is None or consequence is None or alternative is None:
                return Unsupported(line, kind)
            return Conditional(line, self.expr(condition), self.expr(consequence), self.expr(alternative))
        if kind == "binary_expression":
            operator = node.child_by_field_name("operator")
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if operator is not None and left is not None and right is not None:
                op = _text(operator)
                if op in LOGICAL_OPERATORS:
                    return Logical(line, op, self.expr(left), self.expr(right))
            return Unsupported(line, kind)
        if kind in {"as_expression", "satisfies_expression"}:
            parts = _named(node)
            if not parts:
                return Unsupported(line, kind)
            type_name = _text(parts[1]) if len(parts) > 1 else "const"
            cast_kind: Literal["as", "satisfies"] = "as" if kind == "as_expression" else "satisfies"
            return TypeCast(line, self.expr(parts[0]), cast_kind, type_name)
        return Unsupported(line, kind)

    def _call(self, node: Node, line: int) -> Expr:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        args = [self.expr(child) for child in _named(arguments)] if arguments is not None and arguments.type == "arguments" else []
        if function is None:
            return Unsupported(line, node.type)
        if function.type == "import":
            return ImportCall(line, args[0] if args else None)
        return Call(line, self.expr(function), args)

    def _arrow(self, node: Node, line: int) -> Arrow:
        params: list[str] = []
        single = node.child_by_field_name("parameter")
        if single is not None:
            params.append(_text(single))
        formal = node.child_by_field_name("parameters")
        if formal is not None:
            for child in _named(formal):
                pattern = child.child_by_field_name("pattern") if child.type != "identifier" else child
                params.append(_text(pattern) if pattern is not None else _text(child))
        body = node.child_by_field_name("body")
        if body is None or body.type == "statement_block":
            return Arrow(line, params, None)
        return Arrow(line, params, self.expr(body))

    def _properties(self, node: Node) -> list[Property | Spread]:
        properties: list[Property | Spread] = []
        for child in _named(node):
            line = self.line(child)
            if child.type == "pair":
                key = child.child_by_field_name("key")
                value = child.child_by_field_name("value")
                if value is None:
                    continue
                properties.append(Property(line, self._key(key), self.expr(value)))
            elif child.type == "shorthand_property_identifier":
                name = _text(child)
                properties.append(Property(line, name, Identifier(line, name)))
            elif child.type == "spread_element":
                inner = _named(child)
                properties.append(Spread(line, self.expr(inner[0]) if inner else Unsupported(line, child.type)))
            elif child.type == "method_definition":
                name = child.child_by_field_name("name")
                properties.append(Property(line, self._key(name), Unsupported(line, child.type)))
        return properties

    def _key(self, node: Node | None) -> str | None:
        if node is None or node.type == "computed_property_name":
            return None
        if node.type == "string":
            return _string_value(node)
        return _text(node)

    def _jsx(self, node: Node, line: int) -> Expr:
        if node.type == "jsx_fragment":
            return JsxFragment(line, self._jsx_children(node))
        opening = node if node.type == "jsx_self_closing_element" else node.child_by_field_name("open_tag")
        name = opening.child_by_field_name("name") if opening is not None else None
        if name is None:
            return JsxFragment(line, self._jsx_children(node))
        if name.type == "jsx_namespace_name":
            tag_kind: Literal["identifier", "member", "namespace"] = "namespace"
        elif name.type in {"member_expression", "nested_identifier"}:
            tag_kind = "member"
        else:
            tag_kind = "identifier"
        attributes = [self._jsx_attribute(child) for child in _named(opening) if child.type == "jsx_attribute"]
        children = self._jsx_children(node) if node.type == "jsx_element" else []
        return JsxElement(line, _text(name), tag_kind, attributes, children)

    def _jsx_children(self, node: Node) -> list[Expr]:
        return [
            self.expr(child)
            for child in _named(node)
            if child.type in {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
        ]

    def _jsx_attribute(self, node: Node) -> JsxAttribute:
        line = self.line(node)
        parts = _named(node)
        name = _text(parts[0]) if parts else ""
        value: Expr | None = None
        if len(parts) > 1:
            raw = parts[1]
            if raw.type == "jsx_expression":
                inner = _named(raw)
                value = self.expr(inner[0]) if inner else None
            else:
                value = self.expr(raw)
        return JsxAttribute(line, name, value)

    def statement(self, node: Node) -> Statement | None:
        kind = node.type
        line = self.line(node)
        if kind == "import_statement":
            return self._import(node, line)
        if kind in {"lexical_declaration", "variable_declaration"}:
            return VariableDecl(line, self._declarators(node))
        if kind == "class_declaration":
            return ClassDecl(line, self._class_name(node), self._decorators(node))
        if kind == "expression_statement":
            inner = _named(node)
            return ExpressionStmt(line, self.expr(inner[0])) if inner else None
        if kind == "export_statement":
            return self._export(node, line)
        return None

    def _import(self, node: Node, line: int) -> ImportDecl | None:
        source = node.child_by_field_name("source")
        if source is None:
            return None
        decl = ImportDecl(line, _string_value(source))
        decl.type_only = any(child.type == "type" for child in node.children)
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for child in clause.named_children:
                if child.type == "identifier":
                    decl.default = _text(child)
                elif child.type == "namespace_import":
                    names = [item for item in child.named_children if item.type == "identifier"]
                    if names:
                        decl.namespace = _text(names[0])
                elif child.type == "named_imports":
                    for spec in child.named_children:
                        if spec.type != "import_specifier":
                            continue
                        imported = spec.child_by_field_name("name")
                        alias = spec.child_by_field_name("alias")
                        if imported is None:
                            continue
                        local = _text(alias or imported)
                        if any(item.type == "type" for item in spec.children):
                            decl.type_names.append(local)
                        decl.named.append((local, _string_value(imported)))
        return decl

    def _declarators(self, node: Node) -> list[Declarator]:
        declarators: list[Declarator] = []
        for child in node.named_children:
            if child.type != "variable_declarator":
                continue
            name = child.child_by_field_name("name")
            annotation = child.child_by_field_name("type")
            value = child.child_by_field_name("value")
            declarators.append(
                Declarator(
                    line=self.line(child),
                    name=_text(name) if name is not None and name.type == "identifier" else None,
                    type_name=_text(annotation).lstrip(":").strip() if annotation is not None else None,
                    value=self.expr(value) if value is not None else None,
                )
            )
        return declarators

    def _decorators(self, *nodes: Node) -> list[Expr]:
        decorators: list[Expr] = []
        for node in nodes:
            for child in node.children:
                if child.type != "decorator":
                    continue
                inner = _named(child)
                if inner:
                    decorators.append(self.expr(inner[0]))
        return decorators

    def _class_name(self, node: Node) -> str | None:
        name = node.child_by_field_name("name")
        return _text(name) if name is not None else None

    def _export(self, node: Node, line: int) -> Statement | None:
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            if declaration.type in {"lexical_declaration", "variable_declaration"}:
                return VariableDecl(line, self._declarators(declaration), exported=True)
            if declaration.type == "class_declaration":
                return ClassDecl(
                    line,
                    self._class_name(declaration),
                    self._decorators(node, declaration),
                    exported=True,
                )
            return None
        value = node.child_by_field_name("value")
        if value is not None and any(child.type == "default" for child in node.children):
            if value.type == "class":
                return ClassDecl(line, self._class_name(value), self._decorators(node, value), exported=True)
            return ExportDefault(line, self.expr(value))
        return None


@dataclass(slots=True)
class Module:
    file_path: str
    statements: list[Statement]
    root: Node
    lowerer: _Lowerer

    def imports(self) -> Iterator[ImportDecl]:
        for statement in self.statements:
            if isinstance(statement, ImportDecl):
                yield statement

    def declarators(self) -> Iterator[tuple[Declarator, bool]]:
        for statement in self.statements:
            if isinstance(statement, VariableDecl):
                for declarator in statement.declarators:
                    yield declarator, statement.exported

    def find(self, *node_types: str) -> Iterator[Expr]:
        """Yield every expression of the given tree-sitter node types, in source order."""
        wanted = set(node_types)
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.type in wanted:
                yield self.lowerer.expr(node)
            stack.extend(reversed(node.children))


def parse_module(
    source: str,
    file_path: str,
    dialect: Dialect | None = None,
    line_offset: int = 0,
) -> Module:
    """Parse JS/TS source into module-level statements.

    Raises RouteParseError when the source does not conform to the grammar.
    """
    dialect = dialect or dialect_for_path(file_path)
    parser = Parser(_language(dialect))
    tree = parser.parse(source.encode("utf-8"))
    root = tree.root_node
    lowerer = _Lowerer(line_offset=line_offset)

    if root.has_error:
        broken = _first_error(root)
        line = lowerer.line(broken) if broken is not None else None
        where = f" at line {line}" if line is not None else ""
        raise RouteParseError(file_path, f"Syntax error{where}", line=line)

    statements: list[Statement] = []
    for child in root.named_children:
        statement = lowerer.statement(child)
        if statement is not None:
            statements.append(statement)
    logger.debug("parsed %s (%s): %d statements", file_path, dialect, len(statements))
    return Module(file_path=file_path, statements=statements, root=root, lowerer=lowerer)


def extract_vue_blocks(source: str) -> VueBlocks:
    scripts: list[ScriptBlock] = []
    for match in SCRIPT_BLOCK_RE.finditer(source):
        lang_match = SCRIPT_LANG_RE.search(match.group("attrs"))
        lang = lang_match.group("lang").lower() if lang_match else "js"
        offset = source.count("\n", 0, match.start("body"))
        scripts.append(
            ScriptBlock(
                content=match.group("body"),
                line_offset=offset,
                dialect="typescript" if lang == "ts" else "tsx",
            )
        )

    blocks = VueBlocks(scripts=scripts)
    opening = TEMPLATE_OPEN_RE.search(source)
    closing = source.rfind(TEMPLATE_CLOSE)
    if opening and closing > opening.end():
        blocks.template = source[opening.end() : closing]
        blocks.template_line = source.count("\n", 0, opening.end()) + 1
    return blocks
