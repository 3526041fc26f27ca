"""Tree-sitter parser for JavaScript sources."""
from dataclasses import dataclass
from pathlib import Path
from typing import List
from tree_sitter import Language, Parser, Tree
import tree_sitter_javascript as tsjavascript


@dataclass(frozen=True)
class SyntaxProblem:
    """One syntax error reported by the parser."""
    file: str
    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: {self.message}"


class LanguageParser:
    """JavaScript parser using the tree-sitter v0.22+ API."""

    SUPPORTED_EXTENSIONS = ('.js', '.jsx', '.mjs', '.cjs')

    _language = None

    def __init__(self):
        self.parser = self._create_parser()

    @classmethod
    def _create_parser(cls) -> Parser:
        """Factory method using Parser(Language(capsule)) syntax.

        The Language object is shared; each LanguageParser owns its Parser,
        so one parser per worker thread is safe.
        """
        if cls._language is None:
            cls._language = Language(tsjavascript.language())
        return Parser(cls._language)

    def parse_source(self, source_code: bytes) -> Tree:
        """Parse in-memory source.

        Args:
            source_code: UTF-8 encoded JavaScript

        Returns:
            Parsed Tree (always produced; check syntax_errors for failures)
        """
        return self.parser.parse(source_code)

    @staticmethod
    def syntax_errors(tree: Tree, file_name: str) -> List[SyntaxProblem]:
        """Collect every ERROR and MISSING node of a parsed tree.

        Args:
            tree: Parsed tree
            file_name: Name used in the reported problems

        Returns:
            Problems in source order; empty when the parse succeeded
        """
        root = tree.root_node
        if not root.has_error:
            return []

        problems = []
        stack = [root]
        while stack:
            node = stack.pop()
            row, column = node.start_point[0], node.start_point[1]
            if node.is_missing:
                problems.append(SyntaxProblem(
                    file_name, row + 1, column + 1, f"missing '{node.type}'"
                ))
            elif node.type == 'ERROR':
                snippet = node.text.decode('utf-8', errors='replace').split('\n', 1)[0][:40]
                problems.append(SyntaxProblem(
                    file_name, row + 1, column + 1, f"syntax error near {snippet!r}"
                ))
                # Nested errors inside an ERROR node add nothing useful
                continue
            if node.has_error:
                stack.extend(reversed(node.children))

        if not problems:
            problems.append(SyntaxProblem(file_name, 1, 1, "syntax error"))

        problems.sort(key=lambda p: (p.line, p.column))
        return problems

    @classmethod
    def is_supported(cls, file_path: str | Path) -> bool:
        """Check whether a path has a JavaScript extension."""
        return Path(file_path).suffix.lower() in cls.SUPPORTED_EXTENSIONS
