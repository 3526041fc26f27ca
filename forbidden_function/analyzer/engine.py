"""Per-file and batch forbidden-call analysis.

Each file goes parse -> build -> walk in isolation with its own
AnalysisRun, so files can be checked on worker threads; the results are
concatenated in input order and the call registries summed.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import ConfigurationError
from .checker import AnalysisRun, ForbiddenSet, Violation
from .nodes import Node
from .parser import LanguageParser, SyntaxProblem
from .registry import CallRegistry
from .tree_builder import TreeBuilder
from .walker import TreeWalker

logger = logging.getLogger(__name__)


@dataclass
class SourceFile:
    """A JavaScript source to check."""
    name: str
    content: str

    @classmethod
    def from_path(cls, path: str | Path, charset: str = "UTF-8", name: str = None) -> 'SourceFile':
        """Read a source file from disk.

        Raises:
            ConfigurationError: If the file cannot be read with charset
        """
        path = Path(path)
        try:
            content = path.read_text(encoding=charset)
        except (OSError, UnicodeDecodeError, LookupError) as e:
            raise ConfigurationError(f"Cannot read source file {path}: {e}") from e
        return cls(name or str(path), content)

    def __str__(self) -> str:
        return f"SourceFile: {self.name}"


@dataclass
class FileResult:
    """Outcome of checking one file."""
    file: str
    violations: List[Violation] = field(default_factory=list)
    registry: CallRegistry = field(default_factory=CallRegistry)
    parse_errors: List[SyntaxProblem] = field(default_factory=list)
    declared_functions: List[Tuple[str, str, int]] = field(default_factory=list)

    @property
    def parse_failed(self) -> bool:
        return bool(self.parse_errors)


@dataclass
class AnalysisResult:
    """Merged outcome of a batch."""
    files: List[FileResult] = field(default_factory=list)

    @property
    def violations(self) -> List[Violation]:
        return [violation for result in self.files for violation in result.violations]

    @property
    def registry(self) -> CallRegistry:
        return CallRegistry.merged(result.registry for result in self.files)

    @property
    def parse_failures(self) -> List[FileResult]:
        return [result for result in self.files if result.parse_failed]

    @property
    def declared_functions(self) -> List[Tuple[str, str, int]]:
        return [entry for result in self.files for entry in result.declared_functions]


def parse_to_tree(source: SourceFile, parser: LanguageParser = None) -> Tuple[Optional[Node], List[SyntaxProblem]]:
    """Parse a source and convert it to a Node tree.

    Returns:
        (tree, []) on success, (None, problems) if the source has syntax errors
    """
    parser = parser or LanguageParser()
    tree = parser.parse_source(source.content.encode('utf-8'))
    problems = parser.syntax_errors(tree, source.name)
    if problems:
        return None, problems
    return TreeBuilder(source.name).build(tree), []


class ForbiddenFunction:
    """Checks JavaScript sources for calls to forbidden names."""

    def __init__(self, forbidden: ForbiddenSet, dedupe: bool = False):
        """
        Args:
            forbidden: Names that must not be called
            dedupe: Collapse repeated (file, line, name) violations
        """
        self.forbidden = forbidden
        self.dedupe = dedupe
        self._files: List[SourceFile] = []

    def add_source_file(self, source: SourceFile):
        self._files.append(source)
        logger.info("Adding main file: %s", source.name)

    @staticmethod
    def validate(source: SourceFile) -> List[SyntaxProblem]:
        """Parse a source only to report its syntax errors."""
        parser = LanguageParser()
        tree = parser.parse_source(source.content.encode('utf-8'))
        return parser.syntax_errors(tree, source.name)

    def check_file(self, source: SourceFile) -> FileResult:
        """Parse, walk and collect violations for one source.

        A source with syntax errors is not walked; its result carries the
        problems and no violations.
        """
        root, problems = parse_to_tree(source)
        if problems:
            logger.warning("Skipping %s: %d syntax error(s)", source.name, len(problems))
            return FileResult(source.name, parse_errors=problems)

        logger.info("starting process... %s", source.name)
        run = TreeWalker(AnalysisRun(self.forbidden, dedupe=self.dedupe)).walk(root)
        logger.info("Done processing %s: %d call name(s), %d violation(s)",
                    source.name, len(run.registry), len(run.violations))
        logger.debug("calls in %s: %r", source.name, run.registry)

        return FileResult(
            source.name,
            violations=run.violations,
            registry=run.registry,
            declared_functions=run.declared_functions,
        )

    def check(self, jobs: int = 1) -> AnalysisResult:
        """Check every added file.

        Args:
            jobs: Number of worker threads

        Returns:
            AnalysisResult with per-file results in the order files were added
        """
        if jobs <= 1 or len(self._files) <= 1:
            return AnalysisResult([self.check_file(source) for source in self._files])

        with ThreadPoolExecutor(max_workers=jobs) as pool:
            return AnalysisResult(list(pool.map(self.check_file, self._files)))
