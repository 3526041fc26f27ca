"""Tests for per-file and batch analysis."""
import pytest

from forbidden_function.analyzer.checker import ForbiddenSet
from forbidden_function.analyzer.engine import ForbiddenFunction, SourceFile, parse_to_tree
from forbidden_function.errors import ConfigurationError

from conftest import FIXTURES_DIR

JS_DIR = FIXTURES_DIR / 'js'

FORBIDDEN = ForbiddenSet({"$", "jQuery", "eval", "setTimeout", "onLoad"})


def fixture_source(name: str) -> SourceFile:
    return SourceFile.from_path(JS_DIR / name, name=name)


class TestCheckFile:

    def test_fixture_violations(self):
        result = ForbiddenFunction(FORBIDDEN).check_file(fixture_source('jquery_usage.js'))
        assert not result.parse_failed
        assert [(v.name, v.line) for v in result.violations] == [
            ("$", 2), ("$", 2), ("jQuery", 3), ("onLoad", 6), ("eval", 9),
        ]
        assert result.registry.get("init").count == 1
        assert [name for name, _, _ in result.declared_functions] == ["init"]

    def test_clean_file(self):
        result = ForbiddenFunction(FORBIDDEN).check_file(fixture_source('clean.js'))
        assert result.violations == []
        assert set(result.registry.as_dict()) == {"log", "console", "greet"}

    def test_syntax_error_is_a_parse_failure(self):
        result = ForbiddenFunction(FORBIDDEN).check_file(fixture_source('broken.js'))
        assert result.parse_failed
        assert result.violations == []
        assert len(result.registry) == 0
        assert all(problem.file == 'broken.js' for problem in result.parse_errors)

    def test_escaped_surrogate_pair_matches_utf8_name(self, funcs_file):
        forbidden = ForbiddenSet.from_files([funcs_file("\U0001F600")])
        source = SourceFile("emoji.js", r"o['\uD83D\uDE00']();")
        result = ForbiddenFunction(forbidden).check_file(source)
        assert [v.name for v in result.violations] == ["\U0001F600"]

    def test_validate(self):
        assert ForbiddenFunction.validate(fixture_source('clean.js')) == []
        problems = ForbiddenFunction.validate(SourceFile("bad.js", "var = ;"))
        assert problems and problems[0].line == 1

    def test_parse_to_tree(self):
        root, problems = parse_to_tree(SourceFile("ok.js", "foo();"))
        assert problems == [] and root.file == "ok.js"
        root, problems = parse_to_tree(SourceFile("bad.js", "foo(;"))
        assert root is None and problems


class TestBatch:

    def make_checker(self, **kwargs):
        checker = ForbiddenFunction(FORBIDDEN, **kwargs)
        for name in ['jquery_usage.js', 'broken.js', 'clean.js']:
            checker.add_source_file(fixture_source(name))
        return checker

    def test_parse_failure_does_not_stop_the_batch(self):
        result = self.make_checker().check()
        assert [r.file for r in result.files] == ['jquery_usage.js', 'broken.js', 'clean.js']
        assert [r.file for r in result.parse_failures] == ['broken.js']
        assert len(result.violations) == 5

    @pytest.mark.parametrize("jobs", [2, 4])
    def test_parallel_matches_serial(self, jobs):
        serial = self.make_checker().check(jobs=1)
        parallel = self.make_checker().check(jobs=jobs)
        assert parallel.violations == serial.violations
        assert parallel.registry.as_dict() == serial.registry.as_dict()
        assert [r.file for r in parallel.files] == [r.file for r in serial.files]

    def test_registries_are_summed(self):
        checker = ForbiddenFunction(ForbiddenSet())
        checker.add_source_file(SourceFile("a.js", "foo(); bar();"))
        checker.add_source_file(SourceFile("b.js", "foo();"))
        assert checker.check(jobs=2).registry.as_dict() == {"foo": 2, "bar": 1}

    def test_dedupe(self):
        checker = ForbiddenFunction(ForbiddenSet({"$"}), dedupe=True)
        checker.add_source_file(SourceFile("a.js", "$('x').hide();"))
        assert len(checker.check().violations) == 1

    def test_empty_batch(self):
        result = ForbiddenFunction(FORBIDDEN).check(jobs=3)
        assert result.files == [] and result.violations == []


class TestSourceFile:

    def test_missing_source_is_a_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            SourceFile.from_path(tmp_path / 'nope.js')

    def test_default_name_is_the_path(self):
        source = SourceFile.from_path(JS_DIR / 'clean.js')
        assert source.name == str(JS_DIR / 'clean.js')
