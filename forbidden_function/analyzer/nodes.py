"""Read-only JavaScript syntax tree used by the call checker.

The tree builder turns tree-sitter's concrete syntax tree into these nodes.
Each node owns its children; the parent link is a weak reference used only
for lookups (sibling access, declared-function naming).
"""
import weakref
from enum import Enum
from typing import Iterator, List, Optional

from ..errors import MalformedTreeError


class Token(Enum):
    """Closed set of node kinds the analyzer distinguishes."""
    SCRIPT = "script"
    BLOCK = "block"
    EXPR_RESULT = "expr_result"
    NAME = "name"
    STRING = "string"
    NUMBER = "number"
    TEMPLATE = "template"
    CALL = "call"
    NEW = "new"
    GETPROP = "getprop"
    GETELEM = "getelem"
    ADD = "add"
    ASSIGN = "="
    ASSIGN_BITOR = "|="
    ASSIGN_BITXOR = "^="
    ASSIGN_BITAND = "&="
    ASSIGN_LSH = "<<="
    ASSIGN_RSH = ">>="
    ASSIGN_URSH = ">>>="
    ASSIGN_ADD = "+="
    ASSIGN_SUB = "-="
    ASSIGN_MUL = "*="
    ASSIGN_DIV = "/="
    ASSIGN_MOD = "%="
    ASSIGN_EXPONENT = "**="
    ASSIGN_AND = "&&="
    ASSIGN_OR = "||="
    ASSIGN_COALESCE = "??="
    VAR = "var"
    FUNCTION = "function"
    PARAM_LIST = "param_list"
    OBJECTLIT = "objectlit"
    STRING_KEY = "string_key"
    OTHER = "other"


ASSIGNMENT_TOKENS = frozenset({
    Token.ASSIGN,
    Token.ASSIGN_BITOR,
    Token.ASSIGN_BITXOR,
    Token.ASSIGN_BITAND,
    Token.ASSIGN_LSH,
    Token.ASSIGN_RSH,
    Token.ASSIGN_URSH,
    Token.ASSIGN_ADD,
    Token.ASSIGN_SUB,
    Token.ASSIGN_MUL,
    Token.ASSIGN_DIV,
    Token.ASSIGN_MOD,
    Token.ASSIGN_EXPONENT,
    Token.ASSIGN_AND,
    Token.ASSIGN_OR,
    Token.ASSIGN_COALESCE,
})

CALL_TOKENS = frozenset({Token.CALL, Token.NEW})


def assignment_token(operator: str) -> Optional[Token]:
    """Map an assignment operator ('=', '+=', ...) to its Token."""
    try:
        token = Token(operator)
    except ValueError:
        return None
    return token if token in ASSIGNMENT_TOKENS else None


class Node:
    """A node of the analyzed syntax tree.

    Attributes:
        kind: Token describing the node
        file: Source file the node came from
        line: 1-based source line
        string: Identifier text (NAME), decoded value (STRING), key (STRING_KEY)
        number: Numeric value (NUMBER)
        source_type: Original tree-sitter node type, kept for OTHER nodes
    """

    __slots__ = ('kind', 'file', 'line', 'string', 'number', 'source_type',
                 'children', '_parent', '_index', '__weakref__')

    def __init__(self, kind: Token, file: str = "", line: int = 1,
                 string: Optional[str] = None, number: Optional[float] = None,
                 source_type: Optional[str] = None):
        self.kind = kind
        self.file = file
        self.line = line
        self.string = string
        self.number = number
        self.source_type = source_type
        self.children: List['Node'] = []
        self._parent = None
        self._index = -1

    def add_child(self, child: 'Node') -> 'Node':
        """Append child, taking ownership of it.

        Raises:
            MalformedTreeError: If child already belongs to another node
        """
        if child._parent is not None and child._parent() is not None:
            raise MalformedTreeError("node already has a parent", child)
        child._parent = weakref.ref(self)
        child._index = len(self.children)
        self.children.append(child)
        return self

    @property
    def parent(self) -> Optional['Node']:
        return self._parent() if self._parent is not None else None

    @property
    def first_child(self) -> Optional['Node']:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> Optional['Node']:
        return self.children[-1] if self.children else None

    @property
    def next_sibling(self) -> Optional['Node']:
        """The node immediately after this one in its parent's children."""
        parent = self.parent
        if parent is None:
            return None
        index = self._index + 1
        return parent.children[index] if index < len(parent.children) else None

    @property
    def child_count(self) -> int:
        return len(self.children)

    def get_string(self) -> str:
        """Return the string payload.

        Raises:
            MalformedTreeError: If this node carries no string
        """
        if self.string is None:
            raise MalformedTreeError("expected a node with a string payload", self)
        return self.string

    def iter_preorder(self) -> Iterator['Node']:
        """Yield this node and all descendants, parents before children."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def _label(self) -> str:
        label = self.kind.name
        if self.kind is Token.OTHER and self.source_type:
            label += f" ({self.source_type})"
        if self.kind is Token.NUMBER:
            label += f" {self.number!r}"
        elif self.string is not None:
            label += f" {self.string!r}"
        return f"{label} [line {self.line}]"

    def to_string_tree(self) -> str:
        """Render the subtree as an indented listing, one node per line."""
        lines = []
        stack = [(self, 0)]
        while stack:
            node, depth = stack.pop()
            lines.append("    " * depth + node._label())
            stack.extend((child, depth + 1) for child in reversed(node.children))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Node({self._label()})"
