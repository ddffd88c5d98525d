"""Tree-sitter powered language adapters."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_python
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .base import LanguageAdapter, ParseError
from ..models import SymbolEntry, SymbolKind

_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
_FUNCTION_VALUES = {
    "arrow_function",
    "function",
    "function_expression",
    "generator_function",
}
_VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}
_CLASS_MEMBERS = {"method_definition", "abstract_method_signature"}
_FIELD_MEMBERS = {"field_definition", "public_field_definition"}


class _TreeSitterAdapter(LanguageAdapter):
    """Shared parser caching and node helpers."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def _grammar(self, path: str) -> str:  # pragma: no cover - overridden
        raise NotImplementedError

    def _parse(self, path: str, source: bytes) -> Node:
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(path, f"source is not valid UTF-8 ({exc.reason})") from exc
        grammar = self._grammar(path)
        parser = self._parsers.get(grammar)
        if parser is None:
            parser = Parser(_load_language(grammar))
            self._parsers[grammar] = parser
        tree = parser.parse(source)
        root = tree.root_node
        if root.has_error:
            line, _ = _line_range(_first_error(root) or root)
            raise ParseError(path, f"syntax error near line {line}")
        return root

    @staticmethod
    def _node_text(node: Optional[Node], source: bytes) -> str:
        if node is None:
            return ""
        return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def _entry(
        self,
        kind: SymbolKind,
        name: str,
        node: Node,
        *,
        exported: Optional[str] = None,
        children: Optional[List[SymbolEntry]] = None,
    ) -> SymbolEntry:
        start, end = _line_range(node)
        return SymbolEntry(
            kind=kind,
            name=name,
            start_line=start,
            end_line=end,
            children=children or [],
            exported=exported,
        )


class JavaScriptAdapter(_TreeSitterAdapter):
    """Extract declarations from JavaScript and JSX sources."""

    languages = {
        ".js": "JavaScript",
        ".jsx": "React JSX",
        ".mjs": "JavaScript",
        ".cjs": "JavaScript",
    }

    def _grammar(self, path: str) -> str:
        return "javascript"

    def extract(self, path: str, source: bytes) -> List[SymbolEntry]:
        root = self._parse(path, source)
        return self._collect(root, source, top_level=True)

    def _collect(
        self,
        node: Node,
        source: bytes,
        *,
        top_level: bool,
        exported: Optional[str] = None,
    ) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for child in node.named_children:
            entries.extend(self._visit(child, source, top_level=top_level, exported=exported))
        return entries

    def _visit(
        self,
        node: Node,
        source: bytes,
        *,
        top_level: bool,
        exported: Optional[str] = None,
    ) -> List[SymbolEntry]:
        kind = node.type
        if kind == "export_statement":
            tag = "default" if any(c.type == "default" for c in node.children) else "named"
            target = node.child_by_field_name("declaration") or node.child_by_field_name("value")
            if target is None:
                return []
            return self._visit(target, source, top_level=top_level, exported=tag)

        if kind in _FUNCTION_DECLARATIONS or (exported and kind in _FUNCTION_VALUES):
            name = self._node_text(node.child_by_field_name("name"), source)
            nested = self._collect(node, source, top_level=False)
            if not name:
                return nested
            return [self._entry(SymbolKind.FUNCTION, name, node, exported=exported)] + nested

        if kind in _CLASS_DECLARATIONS or (exported and kind == "class"):
            return self._class(node, source, exported=exported)

        if kind in _VARIABLE_DECLARATIONS:
            return self._variables(node, source, top_level=top_level, exported=exported)

        named = self._named_declaration(node, source, exported=exported)
        if named is not None:
            return [named]

        return self._collect(node, source, top_level=False)

    def _class(self, node: Node, source: bytes, *, exported: Optional[str]) -> List[SymbolEntry]:
        name = self._node_text(node.child_by_field_name("name"), source)
        body = node.child_by_field_name("body")
        methods: List[SymbolEntry] = []
        nested: List[SymbolEntry] = []
        for member in body.named_children if body is not None else []:
            method_name = ""
            if member.type in _CLASS_MEMBERS:
                method_name = self._node_text(member.child_by_field_name("name"), source)
            elif member.type in _FIELD_MEMBERS:
                value = member.child_by_field_name("value")
                if value is not None and value.type in _FUNCTION_VALUES:
                    key = member.child_by_field_name("name") or member.child_by_field_name(
                        "property"
                    )
                    method_name = self._node_text(key, source)
            if method_name:
                methods.append(self._entry(SymbolKind.METHOD, method_name, member))
            nested.extend(self._collect(member, source, top_level=False))
        if not name:
            # Anonymous classes are skipped but their members may still hold declarations.
            return nested
        entry = self._entry(SymbolKind.CLASS, name, node, exported=exported, children=methods)
        return [entry] + nested

    def _variables(
        self,
        node: Node,
        source: bytes,
        *,
        top_level: bool,
        exported: Optional[str],
    ) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if (
                top_level
                and name_node is not None
                and name_node.type == "identifier"
                and value is not None
                and value.type in _FUNCTION_VALUES
            ):
                name = self._node_text(name_node, source)
                entries.append(self._entry(SymbolKind.VARIABLE, name, declarator, exported=exported))
            if value is not None:
                entries.extend(self._collect(value, source, top_level=False))
        return entries

    def _named_declaration(
        self, node: Node, source: bytes, *, exported: Optional[str]
    ) -> Optional[SymbolEntry]:
        return None


class TypeScriptAdapter(JavaScriptAdapter):
    """Extract declarations from TypeScript and TSX sources."""

    languages = {".ts": "TypeScript", ".tsx": "React TypeScript"}

    def _grammar(self, path: str) -> str:
        return "tsx" if path.lower().endswith(".tsx") else "typescript"

    def _named_declaration(
        self, node: Node, source: bytes, *, exported: Optional[str]
    ) -> Optional[SymbolEntry]:
        kind = {
            "interface_declaration": SymbolKind.INTERFACE,
            "type_alias_declaration": SymbolKind.TYPE,
            "enum_declaration": SymbolKind.ENUM,
        }.get(node.type)
        if kind is None:
            return None
        name = self._node_text(node.child_by_field_name("name"), source)
        if not name:
            return None
        children: List[SymbolEntry] = []
        if kind is SymbolKind.INTERFACE:
            body = node.child_by_field_name("body")
            for member in body.named_children if body is not None else []:
                if member.type != "method_signature":
                    continue
                member_name = self._node_text(member.child_by_field_name("name"), source)
                if member_name:
                    children.append(self._entry(SymbolKind.METHOD, member_name, member))
        return self._entry(kind, name, node, exported=exported, children=children)


class PythonAdapter(_TreeSitterAdapter):
    """Extract functions and classes from Python modules."""

    languages = {".py": "Python"}

    def _grammar(self, path: str) -> str:
        return "python"

    def extract(self, path: str, source: bytes) -> List[SymbolEntry]:
        root = self._parse(path, source)
        return self._collect(root, source, top_level=True)

    def _collect(self, node: Node, source: bytes, *, top_level: bool) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for child in node.named_children:
            target = child
            if child.type == "decorated_definition":
                target = child.child_by_field_name("definition") or child
            if target.type == "function_definition":
                name = self._node_text(target.child_by_field_name("name"), source)
                entries.append(self._entry(SymbolKind.FUNCTION, name, child))
                entries.extend(self._collect(target, source, top_level=False))
            elif target.type == "class_definition":
                entries.extend(self._class(child, target, source))
            elif top_level and child.type == "expression_statement":
                entries.extend(self._lambda_bindings(child, source))
            else:
                entries.extend(self._collect(child, source, top_level=False))
        return entries

    def _class(self, outer: Node, node: Node, source: bytes) -> List[SymbolEntry]:
        name = self._node_text(node.child_by_field_name("name"), source)
        body = node.child_by_field_name("body")
        methods: List[SymbolEntry] = []
        nested: List[SymbolEntry] = []
        for member in body.named_children if body is not None else []:
            target = member
            if member.type == "decorated_definition":
                target = member.child_by_field_name("definition") or member
            if target.type == "function_definition":
                method_name = self._node_text(target.child_by_field_name("name"), source)
                methods.append(self._entry(SymbolKind.METHOD, method_name, member))
                nested.extend(self._collect(target, source, top_level=False))
            else:
                nested.extend(self._collect(member, source, top_level=False))
        return [self._entry(SymbolKind.CLASS, name, outer, children=methods)] + nested

    def _lambda_bindings(self, node: Node, source: bytes) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for assignment in node.named_children:
            if assignment.type != "assignment":
                continue
            left = assignment.child_by_field_name("left")
            right = assignment.child_by_field_name("right")
            if left is None or right is None:
                continue
            if left.type == "identifier" and right.type == "lambda":
                entries.append(
                    self._entry(SymbolKind.VARIABLE, self._node_text(left, source), assignment)
                )
        return entries


def _line_range(node: Node) -> Tuple[int, int]:
    start = getattr(node, "start_point", None)
    end = getattr(node, "end_point", None)
    if start is None or end is None:
        return 1, 1
    return start[0] + 1, end[0] + 1


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


_GRAMMARS = {
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
    "python": tree_sitter_python.language,
}
_LANGUAGES: Dict[str, Language] = {}


def _load_language(grammar: str) -> Language:
    language = _LANGUAGES.get(grammar)
    if language is None:
        language = Language(_GRAMMARS[grammar]())
        _LANGUAGES[grammar] = language
    return language


__all__ = ["JavaScriptAdapter", "PythonAdapter", "TypeScriptAdapter"]
