"""Name resolution for calls, assignments and declared functions.

Every function here is pure: it inspects a subtree and returns the names it
should be attributed to. Registering those names is the walker's job.
"""
from typing import List, Optional

from ..errors import MalformedTreeError
from .checker import CallTarget
from .evaluator import computed_key
from .nodes import ASSIGNMENT_TOKENS, CALL_TOKENS, Node, Token

# Values that can make a table entry callable: t["k"] = h, o.f, o["f"], function(){}
_CALLABLE_VALUES = frozenset({Token.NAME, Token.GETPROP, Token.GETELEM, Token.FUNCTION})


def resolve_call(call: Node) -> List[CallTarget]:
    """Names referenced by a CALL or NEW node.

    - foo()           -> foo
    - a.b.c()         -> every property segment, see resolve_property_chain
    - obj["x"]()      -> x, when the key is a constant string
    - obj[f()]()      -> nothing

    Raises:
        MalformedTreeError: If the node has no callee
    """
    if call.kind is Token.GETPROP:
        return resolve_property_chain(call)

    if call.kind not in CALL_TOKENS:
        raise MalformedTreeError("expected a call or new expression", call)

    callee = call.first_child
    if callee is None:
        raise MalformedTreeError("call without a callee", call)

    if callee.kind is Token.GETPROP:
        return resolve_property_chain(callee)

    if callee.kind is Token.NAME:
        return [CallTarget(callee.get_string(), callee)]

    if callee.kind is Token.GETELEM:
        name = computed_key(callee)
        if name is not None:
            return [CallTarget(name, call)]

    return []


def resolve_property_chain(getprop: Node) -> List[CallTarget]:
    """Names along a property access used as a callee.

    The property name is always taken. When the object is itself a call
    (foo().bar()), the property is taken a second time along with the inner
    callee if that is a plain name; $(selector).hide() yields hide, hide, $.
    A nested property object is resolved recursively and a plain-name object
    is taken as well, so a.b.c() yields c, b, a. A property access that
    directly follows this one among its siblings is resolved too.

    Raises:
        MalformedTreeError: If getprop is not [object, property]
    """
    if getprop.kind is not Token.GETPROP or getprop.child_count != 2:
        raise MalformedTreeError("property access needs an object and a property", getprop)

    obj, prop = getprop.children
    targets: List[CallTarget] = []

    if prop.kind is Token.STRING:
        targets.append(CallTarget(prop.get_string(), getprop))

    if obj.kind is Token.CALL:
        targets.append(CallTarget(prop.get_string(), getprop))
        inner_callee = obj.first_child
        if inner_callee is None:
            raise MalformedTreeError("call without a callee", obj)
        if inner_callee.kind is Token.NAME:
            targets.append(CallTarget(inner_callee.get_string(), getprop))
    elif obj.kind is Token.GETPROP:
        targets.extend(resolve_property_chain(obj))
    elif obj.kind is Token.NAME:
        # Root of the chain: jQuery.ajax() also references jQuery
        targets.append(CallTarget(obj.get_string(), getprop))

    sibling = getprop.next_sibling
    if sibling is not None and sibling.kind is Token.GETPROP:
        targets.extend(resolve_property_chain(sibling))

    return targets


def resolve_assignment(assign: Node) -> List[CallTarget]:
    """Names an assignment makes callable under another binding.

    - x = y           -> y (the assigned name may be called through x)
    - t["k"] = o.f    -> f (the value's trailing property name)
    - t["a"+"b"] = h  -> h and ab (a dispatch-table entry keyed by a constant)
    - t["n"] += 1     -> nothing (only a callable value makes the key a call name)
    - x = 5           -> nothing

    Raises:
        MalformedTreeError: If the node is not an assignment
    """
    if assign.kind not in ASSIGNMENT_TOKENS:
        raise MalformedTreeError("expected an assignment", assign)

    if assign.child_count < 2:
        return []

    target, value = assign.first_child, assign.last_child
    targets: List[CallTarget] = []

    if value.kind is Token.NAME:
        targets.append(CallTarget(value.get_string(), assign))
    elif (target.kind is Token.GETELEM and value.last_child is not None
            and value.last_child.kind is Token.STRING):
        targets.append(CallTarget(value.last_child.get_string(), assign))

    if target.kind is Token.GETELEM and value.kind in _CALLABLE_VALUES:
        key = computed_key(target)
        if key is not None:
            targets.append(CallTarget(key, assign))

    return targets


def declared_function_name(function: Node) -> Optional[str]:
    """Name under which a function definition can be called.

    - myObj.f = function(){}          -> f
    - jQuery.fn["inner" + x] = ...    -> None (key is not constant)
    - myVar = function(){}            -> None (global variables are too broad)
    - { f: function(){} }, f() {}     -> f
    - var f = function(){}            -> f
    - function f(){}                  -> f

    Raises:
        MalformedTreeError: If the node is not a FUNCTION with a name child
    """
    if function.kind is not Token.FUNCTION:
        raise MalformedTreeError("expected a function", function)

    parent = function.parent
    if parent is not None:
        if parent.kind in ASSIGNMENT_TOKENS and parent.child_count == 2:
            target = parent.first_child
            if target.kind is Token.NAME:
                return None
            if target.kind is Token.GETELEM:
                return computed_key(target)
            if target.kind is Token.GETPROP:
                return target.last_child.get_string()
            return None

        if parent.kind is Token.STRING_KEY:
            return parent.get_string()

        if parent.kind is Token.NAME and parent.parent is not None and parent.parent.kind is Token.VAR:
            return parent.get_string()

    name = function.first_child
    if name is None or name.kind is not Token.NAME:
        raise MalformedTreeError("function without a name node", function)
    return name.get_string() or None
