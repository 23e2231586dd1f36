"""Tree-sitter parsing of Rust source files."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

import tree_sitter_rust
from tree_sitter import Language, Node, Parser, Tree

from .errors import SourceParseError
from .logging import get_logger
from .models import SourceFile

RUST_LANGUAGE = Language(tree_sitter_rust.language())

logger = get_logger("parsing")


@dataclass
class ParsedModule:
    """A source file together with its syntax tree."""

    source: SourceFile
    tree: Tree
    source_bytes: bytes

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


class RustParser:
    """Parses Rust sources; each thread gets its own tree-sitter parser."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(RUST_LANGUAGE)
            self._local.parser = parser
        return parser

    def parse_text(self, text: str, source: SourceFile) -> ParsedModule:
        source_bytes = text.encode("utf-8")
        tree = self._parser().parse(source_bytes)
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s; affected items will be skipped", source.path)
        return ParsedModule(source=source, tree=tree, source_bytes=source_bytes)

    def parse_file(self, root: Path, source: SourceFile) -> ParsedModule:
        path = Path(root) / source.path
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise SourceParseError(f"{source.path} is not valid UTF-8: {exc}") from exc
        return self.parse_text(text, source)


__all__ = ["ParsedModule", "RUST_LANGUAGE", "RustParser"]
