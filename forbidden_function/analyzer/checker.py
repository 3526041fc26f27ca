"""Forbidden-name set, violations and the per-run analysis context."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from ..errors import ConfigurationError
from .nodes import Node
from .registry import CallRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Violation:
    """One call of a forbidden name."""
    file: str
    line: int
    name: str

    def __str__(self) -> str:
        return f"{self.file}: line {self.line}, calling forbidden function {self.name}"


@dataclass(frozen=True)
class CallTarget:
    """A name resolved for a node, plus the node reported as its location."""
    name: str
    site: Node


class ForbiddenSet:
    """Immutable set of names that must never be called."""

    def __init__(self, names: Iterable[str] = ()):
        self._names = frozenset(name.strip() for name in names if name and name.strip())

    @classmethod
    def from_files(cls, paths: Iterable[str | Path], charset: str = "UTF-8") -> 'ForbiddenSet':
        """Load names from newline-delimited files, one name per line.

        Blank lines and lines starting with '#' are ignored.

        Args:
            paths: Name files to read
            charset: Encoding of the files

        Returns:
            ForbiddenSet holding the union of all files

        Raises:
            ConfigurationError: If a file is missing or unreadable
        """
        names: List[str] = []
        for path in paths:
            path = Path(path)
            try:
                text = path.read_text(encoding=charset)
            except (OSError, UnicodeDecodeError, LookupError) as e:
                raise ConfigurationError(f"Cannot read forbidden function file {path}: {e}") from e

            for line in text.splitlines():
                line = line.strip()
                if line and not line.startswith('#'):
                    names.append(line)
            logger.info("Loaded forbidden function names from %s", path)

        return cls(names)

    @property
    def names(self) -> frozenset:
        return self._names

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self):
        return iter(sorted(self._names))

    def __repr__(self) -> str:
        return f"ForbiddenSet({sorted(self._names)!r})"


class AnalysisRun:
    """State accumulated while walking one or more files.

    Holds the Call Registry, the violation list, and the declared variables
    and functions seen along the way. Each worker owns its own run.
    """

    def __init__(self, forbidden: ForbiddenSet, dedupe: bool = False):
        """
        Args:
            forbidden: Names whose calls are violations
            dedupe: Report each (file, line, name) only once
        """
        self.forbidden = forbidden
        self.dedupe = dedupe
        self.registry = CallRegistry()
        self.violations: List[Violation] = []
        self.declared_vars: List[Node] = []
        self.declared_functions: List[Tuple[str, str, int]] = []
        self._seen: Set[Violation] = set()

    def register(self, name: str, site: Node) -> Optional[Violation]:
        """Record a resolved call name and check it against the forbidden set.

        Every call counts toward the registry. Each call of a forbidden name
        adds a violation, even when the same line already produced one,
        unless the run deduplicates.

        Returns:
            The new Violation, or None
        """
        self.registry.record(name)
        logger.debug("call %s at %s:%d", name, site.file, site.line)

        if name not in self.forbidden:
            return None

        violation = Violation(site.file, site.line, name)
        if self.dedupe:
            if violation in self._seen:
                return None
            self._seen.add(violation)
        self.violations.append(violation)
        return violation

    def register_target(self, target: CallTarget) -> Optional[Violation]:
        return self.register(target.name, target.site)

    def declare_var(self, var: Node):
        self.declared_vars.append(var)

    def declare_function(self, name: str, site: Node):
        self.declared_functions.append((name, site.file, site.line))

