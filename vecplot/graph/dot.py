from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from vecplot.colors import Color, parse_color
from vecplot.errors import GraphParseError
from vecplot.graph.model import EdgeStyle, Graph, NodeShape, Subgraph


LOGGER = logging.getLogger(__name__)

_SHAPE_ALIASES = {
    "ellipse": NodeShape.ELLIPSE,
    "oval": NodeShape.ELLIPSE,
    "circle": NodeShape.CIRCLE,
    "box": NodeShape.BOX,
    "rect": NodeShape.BOX,
    "rectangle": NodeShape.BOX,
    "square": NodeShape.BOX,
    "diamond": NodeShape.DIAMOND,
    "mdiamond": NodeShape.MDIAMOND,
    "msquare": NodeShape.MSQUARE,
    "plaintext": NodeShape.PLAINTEXT,
    "plain": NodeShape.PLAINTEXT,
    "none": NodeShape.PLAINTEXT,
}
_DEFAULT_FILL = Color(211, 211, 211)

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>[ \t\r\f\v]+)
  | (?P<newline>\n)
  | (?P<line_comment>//[^\n]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<hash_comment>\#[^\n]*)
  | (?P<edge_op>->|--)
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<id>[A-Za-z_\x80-\uffff][A-Za-z_0-9\x80-\uffff]*|-?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?))
  | (?P<punct>[{}\[\];,=:])
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    line: int


@dataclass
class _Scope:
    node_defaults: dict[str, str] = field(default_factory=dict)
    edge_defaults: dict[str, str] = field(default_factory=dict)
    subgraph: Subgraph | None = None
    members: list[str] = field(default_factory=list)


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    line = 1
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            if source[pos] == '"':
                raise GraphParseError("unterminated quoted string", line=line)
            if source.startswith("/*", pos):
                raise GraphParseError("unterminated block comment", line=line)
            raise GraphParseError(f"unexpected character {source[pos]!r}", line=line)
        kind = match.lastgroup or ""
        text = match.group()
        if kind == "string":
            tokens.append(Token("id", _unquote(text), line))
        elif kind == "id":
            tokens.append(Token("id", text, line))
        elif kind in ("edge_op", "punct"):
            tokens.append(Token(text, text, line))
        elif kind == "hash_comment" and not _at_line_start(source, pos):
            raise GraphParseError("unexpected character '#'", line=line)
        line += text.count("\n")
        pos = match.end()
    return tokens


def parse_dot(source: str) -> Graph:
    """Parse DOT text into a Graph; nodes appear in first-mention order."""
    return _Parser(tokenize(source)).parse()


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._graph = Graph()
        self._scopes: list[_Scope] = []

    def parse(self) -> Graph:
        tok = self._next("'graph' or 'digraph'")
        if tok.kind == "id" and tok.value.lower() == "strict":
            tok = self._next("'graph' or 'digraph'")
        if tok.kind != "id" or tok.value.lower() not in ("graph", "digraph"):
            raise GraphParseError(f"expected 'graph' or 'digraph', got {tok.value!r}", line=tok.line)
        self._graph.directed = tok.value.lower() == "digraph"
        if self._peek_kind() == "id":
            self._graph.name = self._next("graph name").value
        self._expect("{")
        self._scopes.append(_Scope())
        self._statements()
        self._expect("}")
        self._scopes.pop()
        if self._pos < len(self._tokens):
            extra = self._tokens[self._pos]
            raise GraphParseError(f"unexpected content after closing brace: {extra.value!r}", line=extra.line)
        LOGGER.debug(
            "parsed %s with %d node(s), %d edge(s), %d subgraph(s)",
            "digraph" if self._graph.directed else "graph",
            len(self._graph),
            len(self._graph.edges),
            len(self._graph.subgraphs),
        )
        return self._graph

    def _statements(self) -> None:
        while True:
            kind = self._peek_kind()
            if kind is None:
                line = self._tokens[-1].line if self._tokens else 1
                raise GraphParseError("unexpected end of input, missing '}'", line=line)
            if kind == "}":
                return
            if kind == ";":
                self._pos += 1
                continue
            self._statement()

    def _statement(self) -> None:
        tok = self._tokens[self._pos]
        keyword = tok.value.lower() if tok.kind == "id" else None
        if keyword in ("graph", "node", "edge") and self._peek_kind(1) == "[":
            self._pos += 1
            attrs = self._attr_lists()
            scope = self._scopes[-1]
            if keyword == "node":
                scope.node_defaults.update(attrs)
            elif keyword == "edge":
                scope.edge_defaults.update(attrs)
            else:
                for key, value in attrs.items():
                    self._graph_attr(key, value, tok.line)
            return
        if tok.kind == "id" and self._peek_kind(1) == "=":
            self._pos += 2
            value = self._expect_id("attribute value")
            self._graph_attr(tok.value, value.value, tok.line)
            return

        operand = self._operand()
        if self._peek_kind() == "->" or self._peek_kind() == "--":
            self._edge_chain(operand)
            return
        if self._peek_kind() == "[":
            attrs = self._attr_lists()
            for node_id in operand:
                self._declare_node(node_id, attrs, tok.line)

    def _operand(self) -> list[str]:
        tok = self._tokens[self._pos] if self._pos < len(self._tokens) else None
        if tok is None:
            raise GraphParseError("unexpected end of input")
        if tok.kind == "{" or (tok.kind == "id" and tok.value.lower() == "subgraph"):
            return self._subgraph()
        if tok.kind != "id":
            raise GraphParseError(f"expected node id, got {tok.value!r}", line=tok.line)
        self._pos += 1
        if self._peek_kind() == ":":
            # ports are accepted and ignored
            self._pos += 1
            self._expect_id("port")
            if self._peek_kind() == ":":
                self._pos += 1
                self._expect_id("compass point")
        self._declare_node(tok.value, {}, tok.line)
        return [tok.value]

    def _edge_chain(self, first: list[str]) -> None:
        groups = [first]
        line = self._tokens[self._pos].line
        while self._peek_kind() in ("->", "--"):
            op = self._next("edge operator")
            if op.kind == "->" and not self._graph.directed:
                raise GraphParseError("'->' used in an undirected graph", line=op.line)
            if op.kind == "--" and self._graph.directed:
                raise GraphParseError("'--' used in a directed graph", line=op.line)
            if self._peek_kind() not in ("id", "{"):
                got = self._tokens[self._pos].value if self._pos < len(self._tokens) else "end of input"
                raise GraphParseError(f"expected node id after {op.value!r}, got {got!r}", line=op.line)
            groups.append(self._operand())
        attrs = dict(self._scopes[-1].edge_defaults)
        if self._peek_kind() == "[":
            attrs.update(self._attr_lists())
        label = attrs.get("label")
        style = _edge_style(attrs.get("style"), line)
        color = _color(attrs.get("color"), line)
        for sources, targets in zip(groups, groups[1:]):
            for source in sources:
                for target in targets:
                    self._graph.add_edge(source, target, label=label, style=style, color=color)

    def _subgraph(self) -> list[str]:
        name: str | None = None
        if self._peek_kind() == "id":
            self._pos += 1
            if self._peek_kind() == "id":
                name = self._next("subgraph name").value
        parent = self._scopes[-1]
        subgraph = Subgraph(id=name) if name is not None else None
        scope = _Scope(
            node_defaults=dict(parent.node_defaults),
            edge_defaults=dict(parent.edge_defaults),
            subgraph=subgraph,
        )
        self._expect("{")
        self._scopes.append(scope)
        self._statements()
        self._expect("}")
        self._scopes.pop()
        if subgraph is not None:
            subgraph.nodes = list(scope.members)
            self._graph.add_subgraph(subgraph)
        for node_id in scope.members:
            self._add_member(node_id)
        return list(scope.members)

    def _declare_node(self, node_id: str, attrs: dict[str, str], line: int) -> None:
        fresh = node_id not in self._graph
        merged = dict(self._scopes[-1].node_defaults) if fresh else {}
        merged.update(attrs)
        shape = _shape(merged.get("shape"), line)
        color = _color(merged.get("color"), line)
        fill = None
        if "style" in merged and "filled" in [s.strip() for s in merged["style"].split(",")]:
            fill = _color(merged.get("fillcolor"), line) or color or _DEFAULT_FILL
        elif "fillcolor" in merged:
            fill = _color(merged["fillcolor"], line)
        self._graph.add_node(node_id, label=merged.get("label"), shape=shape, color=color, fill=fill)
        self._add_member(node_id)

    def _add_member(self, node_id: str) -> None:
        scope = self._scopes[-1]
        if node_id not in scope.members:
            scope.members.append(node_id)

    def _graph_attr(self, key: str, value: str, line: int) -> None:
        scope = self._scopes[-1]
        sub = scope.subgraph
        if len(self._scopes) > 1:
            if sub is None:
                return
            if key == "label":
                sub.label = value
            elif key == "style":
                sub.filled = "filled" in [s.strip() for s in value.split(",")]
            elif key == "color":
                sub.color = _color(value, line)
            elif key == "fillcolor":
                sub.fill = _color(value, line)
            else:
                LOGGER.debug("ignoring subgraph attribute %s=%s (line %d)", key, value, line)
            return
        if key == "label":
            self._graph.label = value
        elif key == "rankdir":
            if value.upper() not in ("TB", "BT", "LR", "RL"):
                raise GraphParseError(f"invalid rankdir: {value!r}", line=line)
            self._graph.rankdir = value.upper()
        elif key == "layout":
            self._graph.layout = value
        else:
            LOGGER.debug("ignoring graph attribute %s=%s (line %d)", key, value, line)

    def _attr_lists(self) -> dict[str, str]:
        attrs: dict[str, str] = {}
        while self._peek_kind() == "[":
            open_tok = self._next("'['")
            while True:
                kind = self._peek_kind()
                if kind is None:
                    raise GraphParseError("unterminated attribute list", line=open_tok.line)
                if kind == "]":
                    self._pos += 1
                    break
                if kind in (",", ";"):
                    self._pos += 1
                    continue
                key = self._expect_id("attribute name")
                if self._peek_kind() == "=":
                    self._pos += 1
                    attrs[key.value] = self._expect_id("attribute value").value
                else:
                    attrs[key.value] = "true"
        return attrs

    def _peek_kind(self, offset: int = 0) -> str | None:
        idx = self._pos + offset
        if idx >= len(self._tokens):
            return None
        return self._tokens[idx].kind

    def _next(self, expected: str) -> Token:
        if self._pos >= len(self._tokens):
            line = self._tokens[-1].line if self._tokens else 1
            raise GraphParseError(f"unexpected end of input, expected {expected}", line=line)
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, kind: str) -> Token:
        tok = self._next(repr(kind))
        if tok.kind != kind:
            raise GraphParseError(f"expected {kind!r}, got {tok.value!r}", line=tok.line)
        return tok

    def _expect_id(self, what: str) -> Token:
        tok = self._next(what)
        if tok.kind != "id":
            raise GraphParseError(f"expected {what}, got {tok.value!r}", line=tok.line)
        return tok


def _shape(value: str | None, line: int) -> NodeShape | None:
    if value is None:
        return None
    shape = _SHAPE_ALIASES.get(value.lower())
    if shape is None:
        LOGGER.warning("unknown node shape %r on line %d, using ellipse", value, line)
        return NodeShape.ELLIPSE
    return shape


def _edge_style(value: str | None, line: int) -> EdgeStyle:
    if value is None:
        return EdgeStyle.SOLID
    try:
        return EdgeStyle(value.lower())
    except ValueError:
        LOGGER.warning("unknown edge style %r on line %d, using solid", value, line)
        return EdgeStyle.SOLID


def _color(value: str | None, line: int) -> Color | None:
    if value is None:
        return None
    try:
        return parse_color(value)
    except ValueError:
        LOGGER.warning("unknown color %r on line %d, ignoring", value, line)
        return None


def _unquote(text: str) -> str:
    return re.sub(r'\\(["\\])', r"\1", text[1:-1]).replace("\\n", "\n")


def _at_line_start(source: str, pos: int) -> bool:
    start = source.rfind("\n", 0, pos) + 1
    return source[start:pos].strip() == ""
