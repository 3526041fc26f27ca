"""Static evaluation of constant string expressions.

Only three shapes are understood: a string literal, a number literal and
a chain of '+' over those. Anything else is "not statically resolvable"
and evaluates to None.
"""
import math
from collections import deque
from typing import Optional

from ..errors import MalformedTreeError
from .nodes import Node, Token
from .tree_builder import join_surrogate_pairs


def canonical_number(value: float) -> str:
    """Format a number literal the way it reads as a property key.

    Integral values print without a fractional part (5.0 -> "5");
    everything else uses the default decimal form (1.5 -> "1.5").
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == int(value):
        return str(int(value))
    return repr(value)


def literal_string(node: Node) -> Optional[str]:
    """Text of a single STRING or NUMBER literal, else None."""
    if node.kind is Token.STRING:
        return node.get_string()
    if node.kind is Token.NUMBER:
        if node.number is None:
            raise MalformedTreeError("number literal without a value", node)
        return canonical_number(node.number)
    return None


def evaluate_string(node: Node) -> Optional[str]:
    """Resolve an expression to a constant string.

    A left-associated chain such as "a" + "b" + "c" is walked down its
    left spine; the right operand of each '+' is prepended as the walk
    goes deeper, so fragments come out in source order.

    Args:
        node: Expression subtree

    Returns:
        The resolved string, or None when it cannot be determined statically

    Raises:
        MalformedTreeError: If an ADD node does not have two operands
    """
    fragments = deque()
    current = node

    while current.kind is Token.ADD:
        if current.child_count != 2:
            raise MalformedTreeError("'+' expression needs two operands", current)
        left, right = current.children
        right_text = evaluate_string(right) if right.kind is Token.ADD else literal_string(right)
        if right_text is None:
            return None
        fragments.appendleft(right_text)
        current = left

    head = literal_string(current)
    if head is None:
        return None
    fragments.appendleft(head)
    return join_surrogate_pairs("".join(fragments))


def computed_key(getelem: Node) -> Optional[str]:
    """Resolve the key of obj[key] to a property name.

    Only string keys count: obj["x"] and obj["a" + 1] resolve, a bare
    numeric index such as obj[0] does not.

    Raises:
        MalformedTreeError: If getelem is not a two-child GETELEM
    """
    if getelem.kind is not Token.GETELEM or getelem.child_count != 2:
        raise MalformedTreeError("expected obj[key] with two children", getelem)

    key = getelem.children[1]
    if key.kind not in (Token.STRING, Token.ADD):
        return None
    return evaluate_string(key)
