"""Forbidden Function CLI - fail the build when JavaScript calls forbidden names."""
import shlex
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from .analyzer.checker import ForbiddenSet
from .analyzer.engine import AnalysisResult, ForbiddenFunction, SourceFile, parse_to_tree
from .analyzer.parser import LanguageParser
from .config import LOG_LEVELS, __version__, get_config
from .errors import ConfigurationError
from .utils.logger import configure_logging, sanitize_for_terminal
from .utils.safe_console import SafeConsole

app = typer.Typer(
    name="forbidden-function",
    help="Detect calls to forbidden functions in JavaScript sources",
    add_completion=False
)
console = SafeConsole()
err_console = SafeConsole(stderr=True)

EXIT_VIOLATIONS = 1
EXIT_ERROR = 2

# Directories never searched when a directory is given as input
EXCLUDED_DIRS = {
    'node_modules', 'bower_components', '.git', 'dist', 'build', 'vendor',
}


def collect_sources(paths: List[Path]) -> List[Path]:
    """Expand directories into the JavaScript files beneath them.

    Files given explicitly are kept whatever their extension.

    Raises:
        ConfigurationError: If a path does not exist
    """
    files: List[Path] = []
    for path in paths:
        if path.is_dir():
            found = [
                candidate for candidate in sorted(path.rglob('*'))
                if candidate.is_file()
                and LanguageParser.is_supported(candidate)
                and not any(part in EXCLUDED_DIRS for part in candidate.relative_to(path).parts)
            ]
            files.extend(found)
        elif path.exists():
            files.append(path)
        else:
            raise ConfigurationError(f"Source path does not exist: {path}")
    return files


def expand_flagfile(argv: List[str], charset: str = "UTF-8") -> List[str]:
    """Splice the arguments of a --flagfile into the command line.

    The file holds whitespace-separated arguments (shell quoting allowed)
    and is read with charset. It may not name another flag file.

    Raises:
        ConfigurationError: If the file is unreadable or nests --flagfile
    """
    expanded: List[str] = []
    index = 0
    while index < len(argv):
        arg = argv[index]
        if arg == '--flagfile' or arg.startswith('--flagfile='):
            if arg == '--flagfile':
                if index + 1 >= len(argv):
                    raise ConfigurationError("--flagfile needs a file name")
                flag_path = Path(argv[index + 1])
                index += 2
            else:
                flag_path = Path(arg.split('=', 1)[1])
                index += 1

            try:
                tokens = shlex.split(flag_path.read_text(encoding=charset))
            except (OSError, UnicodeDecodeError, LookupError, ValueError) as e:
                raise ConfigurationError(f"Cannot read flag file {flag_path}: {e}") from e
            if any(token == '--flagfile' or token.startswith('--flagfile=') for token in tokens):
                raise ConfigurationError("Arguments in the flag file cannot contain --flagfile option.")
            expanded.extend(tokens)
            continue

        expanded.append(arg)
        index += 1
    return expanded


def _print_calls(result: AnalysisResult):
    table = Table(title="Resolved Calls", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Count", justify="right", style="yellow")
    for call in result.registry:
        table.add_row(escape(sanitize_for_terminal(call.name)), str(call.count))
    console.print(table)


def _print_functions(result: AnalysisResult):
    table = Table(title="Declared Functions", show_header=True, header_style="bold magenta")
    table.add_column("Function", style="cyan")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Line", style="green", justify="right")
    for name, file, line in result.declared_functions:
        table.add_row(escape(sanitize_for_terminal(name)), escape(file), str(line))
    console.print(table)


@app.command()
def check(
    paths: List[Path] = typer.Argument(..., help="JavaScript files or directories to check"),
    funcs: Optional[List[Path]] = typer.Option(None, "--funcs", "-f", help="File listing forbidden function names, one per line. May be repeated"),
    charset: Optional[str] = typer.Option(None, "--charset", help="Charset of the source and name files (default UTF-8)"),
    validate: bool = typer.Option(True, "--validate/--no-validate", help="Parse every file first and stop if any has syntax errors. With --no-validate, broken files are skipped and reported"),
    print_tree: bool = typer.Option(False, "--print-tree", help="Print the syntax tree of every file before checking"),
    logging_level: Optional[str] = typer.Option(None, "--logging-level", help=f"Progress logging level ({', '.join(LOG_LEVELS)})"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Number of files checked in parallel"),
    dedupe: bool = typer.Option(False, "--dedupe", help="Report each forbidden call once per file and line"),
    show_calls: bool = typer.Option(False, "--show-calls", help="Print every resolved call name with its count"),
    show_functions: bool = typer.Option(False, "--show-functions", help="Print the declared function names found"),
):
    """Check JavaScript sources for calls to forbidden functions.

    Extra arguments can be read from a file with --flagfile PATH.
    Exits 1 when a forbidden call is found and 2 on syntax or configuration errors.
    """
    try:
        config = get_config()
        charset = charset or config.charset
        level = (logging_level or config.log_level).upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown logging level {logging_level!r}")
        configure_logging(level, err_console)

        name_files = funcs or config.funcs_files
        if not name_files:
            raise ConfigurationError("No forbidden function file given (use --funcs or FORBIDDEN_FUNCTION_FUNCS)")
        forbidden = ForbiddenSet.from_files(name_files, charset)

        sources = [SourceFile.from_path(path, charset) for path in collect_sources(paths)]
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(EXIT_ERROR)

    checker = ForbiddenFunction(forbidden, dedupe=dedupe)

    if validate:
        problems = [problem for source in sources for problem in checker.validate(source)]
        if problems:
            for problem in problems:
                err_console.print(escape(str(problem)), highlight=False, soft_wrap=True)
            err_console.print(f"[bold red]{len(problems)} syntax error(s); nothing was checked[/bold red]")
            raise typer.Exit(EXIT_ERROR)

    if print_tree:
        for source in sources:
            root, _ = parse_to_tree(source)
            if root is not None:
                console.print(f"[bold blue]Tree for {escape(source.name)}:[/bold blue]")
                console.print(root.to_string_tree(), markup=False, highlight=False, soft_wrap=True)

    for source in sources:
        checker.add_source_file(source)

    result = checker.check(jobs=jobs or config.jobs)

    for failed in result.parse_failures:
        for problem in failed.parse_errors:
            err_console.print(escape(str(problem)), highlight=False, soft_wrap=True)

    for violation in result.violations:
        console.print(str(violation), markup=False, highlight=False, soft_wrap=True)

    if show_calls:
        _print_calls(result)
    if show_functions:
        _print_functions(result)

    if result.violations:
        err_console.print(f"[bold red]{len(result.violations)} forbidden call(s) found[/bold red]")
        raise typer.Exit(EXIT_VIOLATIONS)
    if result.parse_failures:
        err_console.print(f"[bold yellow]{len(result.parse_failures)} file(s) could not be parsed[/bold yellow]")
        raise typer.Exit(EXIT_ERROR)

    err_console.print(f"[bold green]No forbidden calls in {len(sources)} file(s)[/bold green]")


@app.command()
def version():
    """Print the version and exit."""
    console.print(f"forbidden-function {__version__}")


def _charset_option(argv: List[str]) -> Optional[str]:
    """Value of --charset on the raw command line, if given."""
    for index, arg in enumerate(argv):
        if arg == '--charset' and index + 1 < len(argv):
            return argv[index + 1]
        if arg.startswith('--charset='):
            return arg.split('=', 1)[1]
    return None


def run(argv: Optional[List[str]] = None):
    """Console-script entry point: expand --flagfile, then dispatch to typer.

    The flag file is read with --charset (or the configured charset). When
    it leaves the command line without a subcommand, check is assumed.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    if not any(arg == '--flagfile' or arg.startswith('--flagfile=') for arg in argv):
        app(args=argv, prog_name="forbidden-function")
        return

    try:
        expanded = expand_flagfile(argv, _charset_option(argv) or get_config().charset)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        raise SystemExit(EXIT_ERROR)

    commands = {command.name or command.callback.__name__ for command in app.registered_commands}
    if expanded and expanded[0] not in commands:
        expanded.insert(0, 'check')
    app(args=expanded, prog_name="forbidden-function")


if __name__ == "__main__":
    run()
