"""Java source parser.

Extracts structural elements (package, imports, classes, interfaces,
methods, constructors, fields, enums, annotation types) from a Java
compilation unit with javalang. Line ranges come from the token stream:
each declaration spans from its first modifier/annotation token to its
closing brace or semicolon.

When javalang cannot parse the file, a line-based regex fallback still
extracts ``class`` and ``public`` method lines.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import javalang
from javalang import tree as jtree

from src.schemas.documents import CodeElement


logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "default"
NOT_APPLICABLE = "N/A"

# Declaration order used when printing modifier sets
MODIFIER_ORDER = (
    "public",
    "protected",
    "private",
    "abstract",
    "static",
    "final",
    "transient",
    "volatile",
    "synchronized",
    "native",
    "strictfp",
    "default",
    "sealed",
    "non-sealed",
)

_BOUNDARY_TOKENS = frozenset({";", "{", "}"})
_OPEN_TO_CLOSE = {"(": ")", "{": "}", "[": "]"}

FALLBACK_CLASS_PATTERN = re.compile(r".*class\s+([A-Za-z0-9_]+).*")
FALLBACK_METHOD_PATTERN = re.compile(r".*public\s+.*\s+[a-zA-Z_][a-zA-Z0-9_]*\s*\(.*\).*\{?")
FALLBACK_METHOD_NAME_PATTERN = re.compile(r".*public\s+.*\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*\(.*")


# =============================================================================
# Formatting helpers
# =============================================================================


def format_modifiers(modifiers: set[str] | list[str] | None) -> str:
    """Render modifiers as a bracketed list, e.g. ``[public, static]``."""
    if not modifiers:
        return "[]"
    rank = {name: index for index, name in enumerate(MODIFIER_ORDER)}
    ordered = sorted(modifiers, key=lambda m: (rank.get(m, len(rank)), m))
    return "[" + ", ".join(ordered) + "]"


def javadoc_content(documentation: str | None) -> str:
    """Strip the ``/**`` and ``*/`` delimiters from a Javadoc comment."""
    if not documentation:
        return ""
    text = documentation
    if text.startswith("/**"):
        text = text[3:]
    if text.endswith("*/"):
        text = text[:-2]
    return text


def _import_text(declaration: jtree.Import) -> str:
    static = "static " if declaration.static else ""
    wildcard = ".*" if declaration.wildcard else ""
    return f"import {static}{declaration.path}{wildcard};"


# =============================================================================
# Token spans
# =============================================================================


@dataclass
class _TokenSpans:
    """Token stream of one source file, used to locate declaration spans."""

    tokens: list
    lines: list[str]
    positions: dict[object, int]

    @classmethod
    def from_source(cls, source: str) -> _TokenSpans:
        tokens = list(javalang.tokenizer.tokenize(source))
        positions: dict[object, int] = {}
        for index, token in enumerate(tokens):
            positions.setdefault(token.position, index)
        return cls(tokens, source.splitlines(), positions)

    def index_at(self, position: object) -> int | None:
        if position is None:
            return None
        return self.positions.get(position)

    def find_name(self, name: str, start: int = 0) -> int | None:
        for index in range(start, len(self.tokens)):
            if self.tokens[index].value == name:
                return index
        return None

    def line(self, index: int) -> int:
        return self.tokens[index].position.line

    def text(self, start_line: int, end_line: int) -> str:
        return "\n".join(self.lines[start_line - 1:end_line])

    def declaration_start(self, anchor: int) -> int:
        """Walk back over modifiers and annotations to the previous boundary."""
        index = anchor
        while index > 0:
            previous = self.tokens[index - 1].value
            if previous in _BOUNDARY_TOKENS:
                break
            if previous == ")":
                index = self._matching_open(index - 1)
                continue
            index -= 1
        return index

    def _matching_open(self, close_index: int) -> int:
        depth = 0
        for index in range(close_index, -1, -1):
            value = self.tokens[index].value
            if value == ")":
                depth += 1
            elif value == "(":
                depth -= 1
                if depth == 0:
                    return index
        return 0

    def _matching_close(self, open_index: int) -> int:
        opener = self.tokens[open_index].value
        closer = _OPEN_TO_CLOSE[opener]
        depth = 0
        for index in range(open_index, len(self.tokens)):
            value = self.tokens[index].value
            if value == opener:
                depth += 1
            elif value == closer:
                depth -= 1
                if depth == 0:
                    return index
        return len(self.tokens) - 1

    def block_end(self, anchor: int) -> int:
        """End of a body-carrying declaration: its closing brace, or a bare ``;``."""
        index = anchor
        while index < len(self.tokens):
            value = self.tokens[index].value
            if value in ("(", "["):
                index = self._matching_close(index) + 1
                continue
            if value == "{":
                return self._matching_close(index)
            if value == ";":
                return index
            index += 1
        return len(self.tokens) - 1

    def statement_end(self, anchor: int) -> int:
        """End of a field declaration: the first ``;`` outside any brackets."""
        index = anchor
        while index < len(self.tokens):
            value = self.tokens[index].value
            if value in _OPEN_TO_CLOSE:
                index = self._matching_close(index) + 1
                continue
            if value == ";":
                return index
            index += 1
        return len(self.tokens) - 1


# =============================================================================
# Parser
# =============================================================================


class JavaSourceParser:
    """Turns Java source text into an ordered list of CodeElements.

    Element order:
    1. package (when declared)
    2. imports, as one element
    3. each class/interface followed by its methods, constructors and fields
    4. enums
    5. annotation type declarations
    """

    def parse(self, source: str, file_name: str = "") -> list[CodeElement]:
        try:
            compilation_unit = javalang.parse.parse(source)
            spans = _TokenSpans.from_source(source)
            elements = self._extract(compilation_unit, spans)
        except (javalang.parser.JavaSyntaxError, javalang.tokenizer.LexerError) as e:
            logger.warning("javalang could not parse %s, using fallback: %s", file_name, e)
            return self.parse_fallback(source)
        except (TypeError, AttributeError, IndexError, StopIteration) as e:
            logger.error("Error parsing Java code in %s: %s", file_name, e)
            return self.parse_fallback(source)

        return elements

    def _extract(self, unit: jtree.CompilationUnit, spans: _TokenSpans) -> list[CodeElement]:
        package_name = unit.package.name if unit.package else DEFAULT_PACKAGE
        elements: list[CodeElement] = []
        class_count = method_count = field_count = 0

        for _, node in unit:
            if not isinstance(node, (jtree.ClassDeclaration, jtree.InterfaceDeclaration)):
                continue
            class_count += 1
            elements.append(self._type_element(node, package_name, spans))
            body = node.body or []
            methods = [m for m in body if isinstance(m, jtree.MethodDeclaration)]
            constructors = [c for c in body if isinstance(c, jtree.ConstructorDeclaration)]
            fields = [f for f in body if isinstance(f, jtree.FieldDeclaration)]
            method_count += len(methods)
            field_count += len(fields)

            for method in methods:
                elements.append(self._member_element("method", method, node.name, package_name, spans))
            for constructor in constructors:
                elements.append(
                    self._member_element("constructor", constructor, node.name, package_name, spans)
                )
            for field in fields:
                elements.append(self._field_element(field, node.name, package_name, spans))

        for _, node in unit.filter(jtree.EnumDeclaration):
            elements.append(self._named_type_element("enum", node, package_name, spans))

        for _, node in unit.filter(jtree.AnnotationDeclaration):
            elements.append(self._named_type_element("annotation", node, package_name, spans))

        if package_name != DEFAULT_PACKAGE:
            elements.insert(0, self._package_element(package_name, spans))

        if unit.imports:
            position = 1 if package_name != DEFAULT_PACKAGE else 0
            elements.insert(position, self._imports_element(unit.imports, spans))

        logger.info(
            "Java parsing completed - Package: %s, Classes: %d, Methods: %d, Fields: %d",
            package_name,
            class_count,
            method_count,
            field_count,
        )
        return elements

    # -------------------------------------------------------------------------
    # Element builders
    # -------------------------------------------------------------------------

    def _span(self, node: jtree.Node, name: str, spans: _TokenSpans, field: bool = False) -> tuple[int, int]:
        anchor = spans.index_at(getattr(node, "position", None))
        if anchor is None:
            anchor = spans.find_name(name)
        if anchor is None:
            return 1, 1
        start = spans.declaration_start(anchor)
        end = spans.statement_end(anchor) if field else spans.block_end(anchor)
        return spans.line(start), spans.line(end)

    def _type_element(
        self,
        node: jtree.ClassDeclaration | jtree.InterfaceDeclaration,
        package_name: str,
        spans: _TokenSpans,
    ) -> CodeElement:
        element_type = "interface" if isinstance(node, jtree.InterfaceDeclaration) else "class"
        start, end = self._span(node, node.name, spans)
        return CodeElement(
            type=element_type,
            name=node.name,
            class_name=node.name,
            source=spans.text(start, end),
            start_line=start,
            end_line=end,
            javadoc=javadoc_content(node.documentation),
            package_name=package_name,
            modifiers=format_modifiers(node.modifiers),
        )

    def _member_element(
        self,
        element_type: str,
        node: jtree.MethodDeclaration | jtree.ConstructorDeclaration,
        class_name: str,
        package_name: str,
        spans: _TokenSpans,
    ) -> CodeElement:
        start, end = self._span(node, node.name, spans)
        return CodeElement(
            type=element_type,
            name=node.name,
            class_name=class_name,
            source=spans.text(start, end),
            start_line=start,
            end_line=end,
            javadoc=javadoc_content(node.documentation),
            package_name=package_name,
            modifiers=format_modifiers(node.modifiers),
        )

    def _field_element(
        self,
        node: jtree.FieldDeclaration,
        class_name: str,
        package_name: str,
        spans: _TokenSpans,
    ) -> CodeElement:
        names = [declarator.name for declarator in node.declarators]
        start, end = self._span(node, names[0] if names else "", spans, field=True)
        return CodeElement(
            type="field",
            name="[" + ", ".join(names) + "]",
            class_name=class_name,
            source=spans.text(start, end),
            start_line=start,
            end_line=end,
            javadoc=javadoc_content(node.documentation),
            package_name=package_name,
            modifiers=format_modifiers(node.modifiers),
        )

    def _named_type_element(
        self,
        element_type: str,
        node: jtree.EnumDeclaration | jtree.AnnotationDeclaration,
        package_name: str,
        spans: _TokenSpans,
    ) -> CodeElement:
        start, end = self._span(node, node.name, spans)
        return CodeElement(
            type=element_type,
            name=node.name,
            class_name=node.name,
            source=spans.text(start, end),
            start_line=start,
            end_line=end,
            javadoc=javadoc_content(node.documentation),
            package_name=package_name,
            modifiers="",
        )

    def _package_element(self, package_name: str, spans: _TokenSpans) -> CodeElement:
        anchor = spans.find_name("package")
        if anchor is None:
            start = end = 1
        else:
            start = spans.line(spans.declaration_start(anchor))
            end = spans.line(spans.statement_end(anchor))
        return CodeElement(
            type="package",
            name=package_name,
            class_name=NOT_APPLICABLE,
            source=spans.text(start, end),
            start_line=start,
            end_line=end,
            javadoc="",
            package_name=package_name,
            modifiers="",
        )

    def _imports_element(self, imports: list[jtree.Import], spans: _TokenSpans) -> CodeElement:
        import_indexes = [
            index for index, token in enumerate(spans.tokens) if token.value == "import"
        ]
        if import_indexes:
            start = spans.line(import_indexes[0])
            end = spans.line(spans.statement_end(import_indexes[-1]))
        else:
            start = end = 1
        return CodeElement(
            type="imports",
            name="imports",
            class_name=NOT_APPLICABLE,
            source="[" + ", ".join(_import_text(imp) for imp in imports) + "]",
            start_line=start,
            end_line=end,
            javadoc="",
            package_name=NOT_APPLICABLE,
            modifiers="",
        )

    # -------------------------------------------------------------------------
    # Fallback
    # -------------------------------------------------------------------------

    @staticmethod
    def parse_fallback(source: str) -> list[CodeElement]:
        """Line-based extraction used when the source does not parse."""
        elements: list[CodeElement] = []
        current_class = "UnknownClass"

        for number, raw_line in enumerate(source.split("\n"), start=1):
            line = raw_line.strip()
            if line.startswith("public class ") or line.startswith("class "):
                match = FALLBACK_CLASS_PATTERN.fullmatch(line)
                current_class = match.group(1) if match else line
                elements.append(
                    CodeElement("class", current_class, current_class, line, number, number)
                )
            elif FALLBACK_METHOD_PATTERN.fullmatch(line):
                match = FALLBACK_METHOD_NAME_PATTERN.fullmatch(line)
                method_name = match.group(1) if match else line
                elements.append(
                    CodeElement("method", method_name, current_class, line, number, number)
                )

        return elements


def parse_java_source(source: str, file_name: str = "") -> list[CodeElement]:
    """Parse Java source into CodeElements (see JavaSourceParser)."""
    return JavaSourceParser().parse(source, file_name)
