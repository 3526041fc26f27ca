"""Shared helpers for parsing JavaScript snippets in tests."""
from pathlib import Path
from typing import List, Tuple

import pytest

from forbidden_function.analyzer.checker import AnalysisRun, ForbiddenSet
from forbidden_function.analyzer.engine import parse_to_tree, SourceFile
from forbidden_function.analyzer.nodes import Node, Token
from forbidden_function.analyzer.walker import TreeWalker

FIXTURES_DIR = Path(__file__).parent / 'fixtures'


def build(code: str, name: str = 'test.js') -> Node:
    """Parse a snippet into a Node tree, failing the test on syntax errors."""
    root, problems = parse_to_tree(SourceFile(name, code))
    assert not problems, f"unexpected syntax errors: {problems}"
    return root


def find_all(root: Node, kind: Token) -> List[Node]:
    return [node for node in root.iter_preorder() if node.kind is kind]


def find_first(root: Node, kind: Token) -> Node:
    nodes = find_all(root, kind)
    assert nodes, f"no {kind.name} node in tree:\n{root.to_string_tree()}"
    return nodes[0]


def parse_nodes(code: str, kind: Token, name: str = 'test.js') -> Tuple[Node, List[Node]]:
    """Parse a snippet and return its root with every node of kind.

    Nodes only hold a weak reference to their parent, so callers keep the
    root bound for as long as they look upward from a returned node.
    """
    root = build(code, name)
    return root, find_all(root, kind)


def parse_node(code: str, kind: Token, name: str = 'test.js') -> Tuple[Node, Node]:
    """Parse a snippet and return its root with the first node of kind."""
    root = build(code, name)
    return root, find_first(root, kind)


def walk(code: str, forbidden=(), dedupe: bool = False, name: str = 'test.js') -> AnalysisRun:
    """Walk a snippet with a fresh run and return it."""
    run = AnalysisRun(ForbiddenSet(forbidden), dedupe=dedupe)
    return TreeWalker(run).walk(build(code, name))


@pytest.fixture
def funcs_file(tmp_path):
    """Write a forbidden-name file and return its path."""
    def _write(*names: str, file_name: str = 'forbidden.txt') -> Path:
        path = tmp_path / file_name
        path.write_text("\n".join(names) + "\n", encoding='utf-8')
        return path
    return _write
