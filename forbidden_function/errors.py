"""Exception types raised by Forbidden Function.

Parse failures are not exceptions: they are reported per file on
FileResult.parse_errors. An unresolvable call name is not an error either;
the evaluator simply returns None.
"""


class ForbiddenFunctionError(Exception):
    """Base class for all Forbidden Function errors."""


class ConfigurationError(ForbiddenFunctionError):
    """The run cannot start: missing name file, bad option, bad flag file."""


class MalformedTreeError(ForbiddenFunctionError):
    """A Node tree broke the shape contract the resolver depends on.

    This is a programming error in the tree builder (or in a hand-built
    tree), never a property of the analyzed JavaScript, so it is allowed
    to abort the whole run.
    """

    def __init__(self, message: str, node=None):
        self.node = node
        if node is not None:
            message = f"{message} at {node.file}:{node.line} ({node.kind.name})"
        super().__init__(message)
