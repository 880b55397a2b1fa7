"""Tests for the phpdecl CLI, config, and error rendering."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from phpdecl.cli import main
from phpdecl.config import find_config, load_config
from phpdecl.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    ParseError,
    Severity,
)
from phpdecl.parser import parse_file
from phpdecl.source import Span
from tests.helpers import GOOD_PHP


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def good_file(tmp_path):
    path = tmp_path / "User.php"
    path.write_text(GOOD_PHP)
    return path


@pytest.fixture
def tmp_project(php_tree):
    """A php_tree with a phpdecl.toml at its root."""
    (php_tree / "phpdecl.toml").write_text(
        '[scan]\npaths = ["src"]\nextensions = ["php", "inc"]\nexclude = ["vendor"]\n'
        "[output]\ncolor = false\n"
    )
    return php_tree


# --- CLI tests ---


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "check" in result.output
        assert "tokens" in result.output
        assert "view" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_tokens(self, runner, good_file):
        result = runner.invoke(main, ["tokens", str(good_file)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "1:1 OPEN_TAG '<?php'"
        assert "2:1 NAMESPACE 'namespace'" in lines
        assert lines[-1].split()[1] == "EOF"

    def test_view(self, runner, good_file):
        result = runner.invoke(main, ["view", str(good_file)])
        assert result.exit_code == 0
        assert "Namespace" in result.output
        assert "name: 'App'" in result.output
        assert "name: 'User'" in result.output
        assert "type: string" in result.output
        assert "return_type: int" in result.output
        assert "visibility: public" in result.output

    def test_view_syntax_error(self, runner, php_tree):
        result = runner.invoke(main, ["view", str(php_tree / "src" / "Broken.php")])
        assert result.exit_code == 1
        assert "error[E200]" in result.output

    def test_view_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["view", str(tmp_path / "nope.php")])
        assert result.exit_code != 0

    def test_check_good_file(self, runner, good_file):
        result = runner.invoke(main, ["check", str(good_file)])
        assert result.exit_code == 0
        assert "checked 1 file(s), 0 failed" in result.output

    def test_check_directory_reports_failures(self, runner, php_tree):
        result = runner.invoke(main, ["check", "--no-color", str(php_tree / "src")])
        assert result.exit_code == 1
        assert "checked 2 file(s), 1 failed" in result.output
        assert "error[E200]: unexpected COMMA (',')" in result.output
        assert "Broken.php:2:" in result.output

    def test_check_empty_directory(self, runner, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(main, ["check", str(empty)])
        assert result.exit_code == 0
        assert "no PHP files found" in result.output

    def test_check_uses_config_paths(self, runner, tmp_project, monkeypatch):
        (tmp_project / "src" / "extra.inc").write_text("<?php function helper() {}")
        (tmp_project / "outside.php").write_text("<?php class Outside extends A, B {}")
        monkeypatch.chdir(tmp_project)
        result = runner.invoke(main, ["check"])
        assert result.exit_code == 1
        assert "checked 3 file(s), 1 failed" in result.output
        assert "\033[" not in result.output

    def test_verbose_logging(self, runner, good_file):
        result = runner.invoke(main, ["-vv", "check", str(good_file)])
        assert result.exit_code == 0
        assert "parsed" in result.output


# --- Config tests ---


class TestConfig:
    def test_load_config(self, tmp_project):
        config = load_config(tmp_project / "phpdecl.toml")
        assert config.root == tmp_project
        assert config.scan.paths == ["src"]
        assert config.scan.extensions == [".php", ".inc"]
        assert config.scan.exclude == ["vendor"]
        assert config.output.color is False

    def test_defaults(self, tmp_path):
        path = tmp_path / "phpdecl.toml"
        path.write_text("")
        config = load_config(path)
        assert config.scan.paths == ["."]
        assert config.scan.extensions == [".php"]
        assert config.scan.exclude == [".git", "vendor"]
        assert config.output.color is True

    def test_find_config_walks_up(self, tmp_project):
        nested = tmp_project / "src" / "deep"
        nested.mkdir()
        assert find_config(nested) == (tmp_project / "phpdecl.toml").resolve()

    def test_find_config_from_file(self, tmp_project):
        found = find_config(tmp_project / "src" / "User.php")
        assert found == (tmp_project / "phpdecl.toml").resolve()

    def test_find_config_missing(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "exists", lambda self: False)
        with pytest.raises(FileNotFoundError):
            find_config(tmp_path)


# --- Error rendering tests ---


class TestDiagnosticRenderer:
    def test_render_with_source_line(self, tmp_path):
        path = tmp_path / "bad.php"
        path.write_text("<?php\nclass A extends B, C {}\n")
        with pytest.raises(ParseError) as exc:
            parse_file(path)
        output = DiagnosticRenderer(color=False).render(exc.value.diagnostics[0])
        lines = output.splitlines()
        assert lines[0] == "error[E200]: unexpected COMMA (',')"
        assert lines[1].endswith("bad.php:2:18")
        assert "class A extends B, C {}" in output
        assert " " * 17 + "^" in output
        assert lines[-1].endswith("= note: expected LBRACE")

    def test_label_message_follows_carets(self, tmp_path):
        path = tmp_path / "a.php"
        path.write_text("<?php\n$x = 1;\n")
        diag = Diagnostic(
            Severity.ERROR, "E100", "odd",
            labels=[DiagnosticLabel(Span(str(path), 2, 1, 2, 2), "this one")],
        )
        output = DiagnosticRenderer(color=False).render(diag)
        assert "2 | $x = 1;" in output
        assert "| ^^ this one" in output

    def test_render_without_source(self):
        diag = Diagnostic(
            severity=Severity.WARNING,
            code="E100",
            message="something odd",
            labels=[DiagnosticLabel(Span("missing.php", 3, 1, 3, 4), "here")],
            notes=["a note"],
        )
        output = DiagnosticRenderer(color=False).render(diag)
        assert output.startswith("warning[E100]: something odd")
        assert "--> missing.php:3:1" in output
        assert "here" in output
        assert "= note: a note" in output

    def test_render_with_color(self):
        diag = Diagnostic(Severity.ERROR, "E200", "boom")
        output = DiagnosticRenderer(color=True).render(diag)
        assert "\033[1;31m" in output

    def test_compile_error_message(self):
        err = CompileError([Diagnostic(Severity.ERROR, "E100", "bad char")])
        assert str(err) == "1 error(s): bad char"
