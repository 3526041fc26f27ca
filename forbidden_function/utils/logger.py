"""Logging setup and terminal-safe text for Forbidden Function.

Library modules only call logging.getLogger(__name__); the CLI calls
configure_logging() once to route the "forbidden_function" hierarchy
through Rich. Unicode that a non-UTF-8 terminal cannot show is replaced
with ASCII fallbacks.
"""
import re
import sys
import locale
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "forbidden_function"

# Unicode to ASCII icon mapping for terminals without UTF-8
ICON_MAP = {
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '✘': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '←': '<-',
    '⇒': '=>',
    '│': '|',
    '─': '-',
    '└': '+',
    '├': '+',
    '…': '...',
    '•': '*',
}

# Unpaired UTF-16 surrogates, e.g. decoded from a '\uD83D' escape
_LONE_SURROGATE_RE = re.compile("[\ud800-\udfff]")


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    encoding = locale.getpreferredencoding(False)
    if encoding:
        return encoding.lower()

    return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def escape_surrogates(text: str) -> str:
    """Write lone surrogates as \\uXXXX so the text can be encoded for output."""
    return _LONE_SURROGATE_RE.sub(lambda m: f"\\u{ord(m.group(0)):04x}", text)


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Lone surrogates are always escaped since no terminal encoding accepts them.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    text = escape_surrogates(text)
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)

    return sanitized


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> logging.Logger:
    """Attach a RichHandler to the package logger.

    Calling this again replaces the previous handler instead of stacking
    a second one.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console: Console to render on (defaults to a stderr SafeConsole)

    Returns:
        The configured package logger
    """
    if console is None:
        from .safe_console import SafeConsole
        console = SafeConsole(stderr=True)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
