"""Depth-first walk that feeds every call site to an AnalysisRun."""
from .checker import AnalysisRun
from .nodes import ASSIGNMENT_TOKENS, CALL_TOKENS, Node, Token
from .resolver import declared_function_name, resolve_assignment, resolve_call


class TreeWalker:
    """Visits every node below a root and registers the names it calls.

    Classification happens before a node's children are visited, and the
    children are always visited: a call nested in an argument, an assigned
    value or a property chain is found on its own even if the resolver
    already looked at it from the enclosing call.
    """

    def __init__(self, run: AnalysisRun):
        self.run = run

    def walk(self, root: Node) -> AnalysisRun:
        """Walk all descendants of root (root itself is not classified).

        Uses an explicit stack so long '+' chains and deeply nested
        callbacks do not hit the recursion limit; visiting order is the
        same as a recursive pre-order walk.
        """
        stack = list(reversed(root.children))
        while stack:
            node = stack.pop()
            self.visit(node)
            stack.extend(reversed(node.children))
        return self.run

    def visit(self, node: Node):
        """Classify a single node."""
        if node.kind is Token.VAR:
            if node.first_child is not None and node.first_child.kind is Token.NAME:
                self.run.declare_var(node)
        elif node.kind in CALL_TOKENS:
            for target in resolve_call(node):
                self.run.register_target(target)
        elif node.kind in ASSIGNMENT_TOKENS:
            for target in resolve_assignment(node):
                self.run.register_target(target)
        elif node.kind is Token.FUNCTION:
            name = declared_function_name(node)
            if name:
                self.run.declare_function(name, node)
