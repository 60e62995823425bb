"""
N-Quads Parser and Serializer.

N-Quads extends N-Triples with a fourth element: the graph name.
Each line contains: subject predicate object [graph] .

Grammar:
  nquadsDoc ::= quad? (EOL quad)* EOL?
  quad      ::= subject predicate object graphLabel? '.'
  graphLabel ::= IRIREF | BLANK_NODE_LABEL

Lines without a graph label are N-Triples and belong to the default graph.

Reference: https://www.w3.org/TR/n-quads/
"""

from __future__ import annotations

from io import StringIO, TextIOBase
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

from rdf_mongostore.models import Statement
from rdf_mongostore.terms import BlankNode, Literal, URI

_STRING_ESCAPES = {
    "t": "\t",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

_UCHAR_WIDTHS = {"u": 4, "U": 8}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_BNODE_STOP = " \t<\"."


class NQuadsSyntaxError(ValueError):
    """Raised for malformed N-Quads input."""

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        self.line_number = line_number
        self.line = line
        super().__init__(f"Error parsing line {line_number}: {message}\nLine: {line}")


class NQuadsParser:
    """
    Parser for N-Quads (and N-Triples) documents.

    Usage:
        parser = NQuadsParser()
        for statement in parser.parse(Path("data.nq")):
            ...
    """

    def __init__(self):
        self.line_number = 0

    def parse(self, source: Union[str, Path, TextIOBase, StringIO]) -> Iterator[Statement]:
        """
        Parse N-Quads content.

        Args:
            source: N-Quads content as string, file path, or text stream

        Yields:
            Statement objects, graph None for triples
        """
        if isinstance(source, Path):
            text = source.read_text(encoding="utf-8")
        elif isinstance(source, str):
            text = source
        else:
            text = source.read()

        return self.parse_lines(text.splitlines())

    def parse_lines(self, lines: Iterable[str]) -> Iterator[Statement]:
        for i, raw in enumerate(lines):
            self.line_number = i + 1
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            try:
                yield self._parse_quad_line(line)
            except (ValueError, IndexError) as e:
                if isinstance(e, NQuadsSyntaxError):
                    raise
                raise NQuadsSyntaxError(str(e), self.line_number, line) from e

    def _parse_quad_line(self, line: str) -> Statement:
        pos = 0

        subject, pos = self._parse_subject(line, pos)
        pos = self._skip_ws(line, pos)

        predicate, pos = self._parse_iri(line, pos)
        pos = self._skip_ws(line, pos)

        obj, pos = self._parse_object(line, pos)
        pos = self._skip_ws(line, pos)

        graph = None
        if pos < len(line) and line[pos] != ".":
            graph, pos = self._parse_subject(line, pos)
            pos = self._skip_ws(line, pos)

        if pos >= len(line) or line[pos] != ".":
            raise ValueError("Expected '.' at end of statement")
        rest = line[pos + 1:].strip()
        if rest and not rest.startswith("#"):
            raise ValueError(f"Unexpected content after '.': {rest!r}")

        return Statement(subject, predicate, obj, graph)

    @staticmethod
    def _skip_ws(line: str, pos: int) -> int:
        while pos < len(line) and line[pos] in " \t":
            pos += 1
        return pos

    def _parse_subject(self, line: str, pos: int) -> Tuple[Union[URI, BlankNode], int]:
        if line.startswith("<", pos):
            return self._parse_iri(line, pos)
        if line.startswith("_:", pos):
            return self._parse_blank_node(line, pos)
        raise ValueError(f"Expected IRI or blank node at column {pos + 1}")

    def _parse_object(self, line: str, pos: int) -> Tuple[Union[URI, BlankNode, Literal], int]:
        if line.startswith('"', pos):
            return self._parse_literal(line, pos)
        return self._parse_subject(line, pos)

    def _parse_iri(self, line: str, pos: int) -> Tuple[URI, int]:
        if not line.startswith("<", pos):
            raise ValueError(f"Expected IRI at column {pos + 1}")
        end = line.find(">", pos + 1)
        if end == -1:
            raise ValueError("Unterminated IRI")
        return URI(self._unescape(line[pos + 1:end], iri=True)), end + 1

    def _parse_blank_node(self, line: str, pos: int) -> Tuple[BlankNode, int]:
        start = pos + 2
        end = start
        while end < len(line) and line[end] not in _BNODE_STOP:
            end += 1
        # A trailing '.' belongs to the statement, not the label
        label = line[start:end]
        if not label:
            raise ValueError(f"Empty blank node label at column {pos + 1}")
        return BlankNode(label), end

    def _parse_literal(self, line: str, pos: int) -> Tuple[Literal, int]:
        end = pos + 1
        while end < len(line):
            if line[end] == "\\":
                end += 2
                continue
            if line[end] == '"':
                break
            end += 1
        else:
            raise ValueError("Unterminated literal")

        value = self._unescape(line[pos + 1:end])
        pos = end + 1

        if line.startswith("@", pos):
            start = pos + 1
            pos = start
            while pos < len(line) and (line[pos].isalnum() or line[pos] == "-"):
                pos += 1
            language = line[start:pos]
            if not language:
                raise ValueError("Empty language tag")
            return Literal(value, language=language), pos

        if line.startswith("^^", pos):
            datatype, pos = self._parse_iri(line, pos + 2)
            return Literal(value, datatype=datatype), pos

        return Literal(value), pos

    @staticmethod
    def _unescape(text: str, iri: bool = False) -> str:
        """Decode escapes; IRIs allow only \\u and \\U (UCHAR)."""
        if "\\" not in text:
            return text
        out: List[str] = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch != "\\":
                out.append(ch)
                i += 1
                continue
            code = text[i + 1]
            if code in _UCHAR_WIDTHS:
                width = _UCHAR_WIDTHS[code]
                digits = text[i + 2:i + 2 + width]
                if len(digits) != width or not all(c in _HEX_DIGITS for c in digits):
                    raise ValueError(f"Invalid escape sequence \\{code}{digits}")
                out.append(chr(int(digits, 16)))
                i += 2 + width
            elif not iri and code in _STRING_ESCAPES:
                out.append(_STRING_ESCAPES[code])
                i += 2
            else:
                raise ValueError(f"Invalid escape sequence \\{code}")
        return "".join(out)


class NQuadsSerializer:
    """
    Serializer for N-Quads format.

    Default-graph statements are written without a graph label.
    """

    def serialize(self, statements: Iterable[Statement]) -> str:
        return "".join(self.serialize_line(st) + "\n" for st in statements)

    def serialize_line(self, statement: Statement) -> str:
        return statement.n3()

    def write(self, statements: Iterable[Statement], path: Path) -> int:
        """Write statements to a file. Returns the number written."""
        count = 0
        with open(path, "w", encoding="utf-8") as f:
            for statement in statements:
                f.write(self.serialize_line(statement) + "\n")
                count += 1
        return count


def parse_nquads(source: Union[str, Path, TextIOBase, StringIO]) -> List[Statement]:
    """Parse N-Quads content into a list of statements."""
    return list(NQuadsParser().parse(source))


def serialize_nquads(statements: Iterable[Statement]) -> str:
    """Serialize statements as N-Quads text."""
    return NQuadsSerializer().serialize(statements)
