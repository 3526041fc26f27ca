"""Conversion of tree-sitter JavaScript trees into analyzer Nodes.

Shapes produced (children in order):
    CALL      [callee, arg...]          NEW     [constructor, arg...]
    GETPROP   [object, STRING prop]     GETELEM [object, key]
    ADD       [left, right]             ASSIGN* [left, right]
    VAR       [NAME name [init]...]     FUNCTION [NAME name, PARAM_LIST, body]
    OBJECTLIT [STRING_KEY key [value]...]
Parentheses are unwrapped; comments and punctuation are dropped.
"""
import re
from typing import Callable, Dict, List, Optional, Tuple, Union

from tree_sitter import Node as TSNode, Tree

from .nodes import Node, Token, assignment_token

# Named tree-sitter nodes that carry no meaning for the analysis
_SKIPPED = frozenset({'comment', 'html_comment', 'optional_chain', 'hash_bang_line'})

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v'}
_LINE_CONTINUATIONS = ('\n', '\r\n', '\r', '\u2028', '\u2029')
_SURROGATE_PAIR_RE = re.compile("[\ud800-\udbff][\udc00-\udfff]")


def _unescape(match: re.Match) -> str:
    seq = match.group(1)
    if seq in _LINE_CONTINUATIONS:
        return ''
    if seq.startswith('u{'):
        code = int(seq[2:-1], 16)
        return chr(code) if code <= 0x10FFFF else seq
    if len(seq) == 5 and seq[0] == 'u':
        return chr(int(seq[1:], 16))
    if len(seq) == 3 and seq[0] == 'x':
        return chr(int(seq[1:], 16))
    if seq[0] in '01234567':
        return chr(int(seq, 8))
    return _SIMPLE_ESCAPES.get(seq, seq)


def _join_surrogates(match: re.Match) -> str:
    high, low = match.group(0)
    return chr(0x10000 + ((ord(high) - 0xD800) << 10) + (ord(low) - 0xDC00))


def join_surrogate_pairs(text: str) -> str:
    """Replace each UTF-16 high/low surrogate pair in text with its code point."""
    return _SURROGATE_PAIR_RE.sub(_join_surrogates, text)


def decode_string_literal(raw: str) -> str:
    """Decode a quoted JavaScript string literal ('...' or "...") to its value.

    Escaped UTF-16 surrogate pairs such as \\uD83D\\uDE00 become one code
    point; a surrogate without its partner is kept as is.
    """
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in '"\'':
        raw = raw[1:-1]
    return join_surrogate_pairs(_ESCAPE_RE.sub(_unescape, raw))


def parse_number_literal(raw: str) -> Optional[float]:
    """Parse a JavaScript numeric literal, returning None if it is not one."""
    text = raw.replace('_', '').lower()
    if text.endswith('n'):
        text = text[:-1]
    try:
        if text.startswith(('0x', '0o', '0b')):
            return float(int(text, 0))
        if len(text) > 1 and text[0] == '0' and text.isdigit() and set(text) <= set('01234567'):
            # Legacy octal like 017
            return float(int(text, 8))
        return float(text)
    except (ValueError, OverflowError):
        return None


class _Pending:
    """A Node built ahead of time whose children still need converting."""

    __slots__ = ('node', 'children')

    def __init__(self, node: Node, children: List['_Item'] = None):
        self.node = node
        self.children = children or []


_Item = Union[TSNode, _Pending]


class TreeBuilder:
    """Builds the analyzer's Node tree from a tree-sitter tree."""

    def __init__(self, file_name: str):
        """
        Args:
            file_name: Name stamped on every Node (used in violation reports)
        """
        self.file_name = file_name
        self._handlers: Dict[str, Callable[[TSNode], Tuple[Node, List[_Item]]]] = {
            'program': self._script,
            'statement_block': self._block,
            'class_body': self._block,
            'expression_statement': self._expression_statement,
            'identifier': self._identifier,
            'shorthand_property_identifier_pattern': self._identifier,
            'property_identifier': self._property_identifier,
            'private_property_identifier': self._property_identifier,
            'string': self._string,
            'number': self._number,
            'template_string': self._template,
            'call_expression': self._call,
            'new_expression': self._new,
            'member_expression': self._member,
            'subscript_expression': self._subscript,
            'binary_expression': self._binary,
            'assignment_expression': self._assignment,
            'augmented_assignment_expression': self._augmented_assignment,
            'variable_declaration': self._declaration,
            'lexical_declaration': self._declaration,
            'function_declaration': self._function,
            'function_expression': self._function,
            'function': self._function,
            'generator_function_declaration': self._function,
            'generator_function': self._function,
            'arrow_function': self._function,
            'method_definition': self._method,
            'object': self._object,
            'pair': self._pair,
            'shorthand_property_identifier': self._shorthand_property,
        }

    def build(self, tree: Union[Tree, TSNode]) -> Node:
        """Convert a whole tree (or a subtree) into Nodes.

        Args:
            tree: tree-sitter Tree or Node

        Returns:
            Root Node of the converted tree
        """
        ts_root = tree.root_node if isinstance(tree, Tree) else tree
        root = None
        stack: List[Tuple[_Item, Optional[Node]]] = [(ts_root, None)]

        while stack:
            item, parent = stack.pop()

            if isinstance(item, _Pending):
                node, pending = item.node, item.children
            else:
                item = self._unwrap(item)
                if item.type in _SKIPPED:
                    continue
                handler = self._handlers.get(item.type, self._other)
                node, pending = handler(item)

            if parent is None:
                root = node
            else:
                parent.add_child(node)

            stack.extend((child, node) for child in reversed(pending) if child is not None)

        return root

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _make(self, kind: Token, ts: TSNode, **payload) -> Node:
        return Node(kind, self.file_name, ts.start_point[0] + 1, **payload)

    @staticmethod
    def _text(ts: TSNode) -> str:
        return ts.text.decode('utf-8')

    @staticmethod
    def _named(ts: Optional[TSNode]) -> List[TSNode]:
        if ts is None:
            return []
        return [child for child in ts.named_children if child.type not in _SKIPPED]

    def _unwrap(self, ts: TSNode) -> TSNode:
        while ts.type == 'parenthesized_expression':
            inner = self._named(ts)
            if len(inner) != 1:
                break
            ts = inner[0]
        return ts

    def _arguments(self, args: Optional[TSNode]) -> List[_Item]:
        if args is None:
            return []
        if args.type == 'arguments':
            return self._named(args)
        # Tagged template: the template string is the only argument
        return [args]

    def _key_text(self, key: TSNode) -> Optional[str]:
        """Literal text of an object/class key, or None for computed keys."""
        if key.type in ('property_identifier', 'private_property_identifier', 'identifier'):
            return self._text(key)
        if key.type == 'string':
            return decode_string_literal(self._text(key))
        if key.type == 'number':
            return self._text(key)
        return None

    # ------------------------------------------------------------------
    # Handlers: each returns the new Node and the items to convert under it
    # ------------------------------------------------------------------

    def _other(self, ts: TSNode):
        return self._make(Token.OTHER, ts, source_type=ts.type), self._named(ts)

    def _script(self, ts: TSNode):
        return self._make(Token.SCRIPT, ts), self._named(ts)

    def _block(self, ts: TSNode):
        return self._make(Token.BLOCK, ts), self._named(ts)

    def _expression_statement(self, ts: TSNode):
        return self._make(Token.EXPR_RESULT, ts), self._named(ts)

    def _identifier(self, ts: TSNode):
        return self._make(Token.NAME, ts, string=self._text(ts)), []

    def _property_identifier(self, ts: TSNode):
        return self._make(Token.STRING, ts, string=self._text(ts)), []

    def _string(self, ts: TSNode):
        return self._make(Token.STRING, ts, string=decode_string_literal(self._text(ts))), []

    def _number(self, ts: TSNode):
        value = parse_number_literal(self._text(ts))
        if value is None:
            return self._other(ts)
        return self._make(Token.NUMBER, ts, number=value), []

    def _template(self, ts: TSNode):
        return self._make(Token.TEMPLATE, ts), self._named(ts)

    def _call(self, ts: TSNode):
        callee = ts.child_by_field_name('function')
        args = ts.child_by_field_name('arguments')
        return self._make(Token.CALL, ts), [callee] + self._arguments(args)

    def _new(self, ts: TSNode):
        constructor = ts.child_by_field_name('constructor')
        args = ts.child_by_field_name('arguments')
        return self._make(Token.NEW, ts), [constructor] + self._arguments(args)

    def _member(self, ts: TSNode):
        obj = ts.child_by_field_name('object')
        prop = ts.child_by_field_name('property')
        pending: List[_Item] = [obj]
        if prop is not None:
            pending.append(_Pending(self._make(Token.STRING, prop, string=self._text(prop))))
        return self._make(Token.GETPROP, ts), pending

    def _subscript(self, ts: TSNode):
        obj = ts.child_by_field_name('object')
        index = ts.child_by_field_name('index')
        return self._make(Token.GETELEM, ts), [obj, index]

    def _binary(self, ts: TSNode):
        operator = ts.child_by_field_name('operator')
        op = operator.type if operator is not None else ''
        operands = [ts.child_by_field_name('left'), ts.child_by_field_name('right')]
        if op == '+':
            return self._make(Token.ADD, ts), operands
        return self._make(Token.OTHER, ts, source_type=ts.type, string=op), operands

    def _assignment(self, ts: TSNode):
        operands = [ts.child_by_field_name('left'), ts.child_by_field_name('right')]
        return self._make(Token.ASSIGN, ts), operands

    def _augmented_assignment(self, ts: TSNode):
        operator = ts.child_by_field_name('operator')
        op = operator.type if operator is not None else ''
        operands = [ts.child_by_field_name('left'), ts.child_by_field_name('right')]
        token = assignment_token(op)
        if token is None:
            return self._make(Token.OTHER, ts, source_type=ts.type, string=op), operands
        return self._make(token, ts), operands

    def _declaration(self, ts: TSNode):
        keyword = ts.children[0].type if ts.children else 'var'
        pending: List[_Item] = []
        for declarator in self._named(ts):
            if declarator.type != 'variable_declarator':
                pending.append(declarator)
                continue
            name = declarator.child_by_field_name('name')
            value = declarator.child_by_field_name('value')
            if name is not None and name.type == 'identifier':
                name_node = self._make(Token.NAME, name, string=self._text(name))
                pending.append(_Pending(name_node, [value]))
            else:
                # Destructuring: {a, b} = value
                destructuring = self._make(Token.OTHER, declarator, source_type=declarator.type)
                pending.append(_Pending(destructuring, [name, value]))
        return self._make(Token.VAR, ts, string=keyword), pending

    def _function_parts(self, ts: TSNode, name: str) -> Tuple[Node, List[_Item]]:
        params = ts.child_by_field_name('parameters') or ts.child_by_field_name('parameter')
        body = ts.child_by_field_name('body')

        line_source = params if params is not None else ts
        param_list = self._make(Token.PARAM_LIST, line_source)
        if params is None:
            param_items = []
        elif params.type == 'formal_parameters':
            param_items = self._named(params)
        else:
            param_items = [params]

        pending: List[_Item] = [
            _Pending(self._make(Token.NAME, ts, string=name)),
            _Pending(param_list, param_items),
            body,
        ]
        return self._make(Token.FUNCTION, ts), pending

    def _function(self, ts: TSNode):
        name = ts.child_by_field_name('name')
        return self._function_parts(ts, self._text(name) if name is not None else "")

    def _method(self, ts: TSNode):
        name = ts.child_by_field_name('name')
        function = _Pending(*self._function_parts(ts, ""))
        key = self._key_text(name) if name is not None else None
        if key is None:
            return self._make(Token.OTHER, ts, source_type=ts.type), [name, function]
        return self._make(Token.STRING_KEY, ts, string=key), [function]

    def _object(self, ts: TSNode):
        return self._make(Token.OBJECTLIT, ts), self._named(ts)

    def _pair(self, ts: TSNode):
        key = ts.child_by_field_name('key')
        value = ts.child_by_field_name('value')
        text = self._key_text(key) if key is not None else None
        if text is None:
            return self._make(Token.OTHER, ts, source_type=ts.type), [key, value]
        return self._make(Token.STRING_KEY, ts, string=text), [value]

    def _shorthand_property(self, ts: TSNode):
        text = self._text(ts)
        value = _Pending(self._make(Token.NAME, ts, string=text))
        return self._make(Token.STRING_KEY, ts, string=text), [value]
