"""phpdecl command line interface."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from phpdecl import __version__
from phpdecl.batch import collect_files, parse_many
from phpdecl.config import PhpdeclConfig, find_config, load_config
from phpdecl.errors import CompileError, DiagnosticRenderer
from phpdecl.lexer import Lexer
from phpdecl.parser import Parser
from phpdecl.source import read_source
from phpdecl.types import Type, format_type

_log = logging.getLogger("phpdecl")


def _configure_logging(verbosity: int) -> None:
    """0 → WARNING, 1 → INFO, 2+ → DEBUG."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    _log.setLevel(level)
    _log.handlers[:] = [handler]


def _load_project_config(path: Path) -> PhpdeclConfig:
    try:
        config_path = find_config(path)
    except FileNotFoundError:
        return PhpdeclConfig()
    _log.info("using %s", config_path)
    return load_config(config_path)


def _report(error: CompileError, color: bool) -> None:
    renderer = DiagnosticRenderer(color=color)
    for diag in error.diagnostics:
        click.echo(renderer.render(diag), err=True)


@click.group()
@click.version_option(__version__, prog_name="phpdecl")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity.")
def main(verbose: int) -> None:
    """Extract typed declarations from PHP source files."""
    _configure_logging(verbose)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def tokens(file: str) -> None:
    """Print the token stream of a PHP file."""
    try:
        toks = Lexer(read_source(Path(file)), file).lex()
    except CompileError as e:
        _report(e, color=True)
        raise SystemExit(1)
    for tok in toks:
        click.echo(f"{tok.span.start_line}:{tok.span.start_col} {tok.kind.name} {tok.value!r}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def view(file: str) -> None:
    """View the declaration tree of a PHP file."""
    try:
        toks = Lexer(read_source(Path(file)), file).lex()
        namespaces = Parser(toks, file).parse()
    except CompileError as e:
        _report(e, color=True)
        raise SystemExit(1)

    for ns in namespaces:
        _dump_tree(ns, 0)


@main.command()
@click.argument("path", required=False, type=click.Path(exists=True))
@click.option("--color/--no-color", default=None, help="Colorize diagnostics.")
def check(path: str | None, color: bool | None) -> None:
    """Parse every PHP file under PATH and report the ones that fail."""
    start = Path(path) if path else Path.cwd()
    config = _load_project_config(start)
    if color is None:
        color = config.output.color

    if path is None and config.root is not None:
        roots = [config.root / p for p in config.scan.paths]
    else:
        roots = [start]

    files = [f for root in roots for f in collect_files(root, config.scan)]
    if not files:
        click.echo("warning: no PHP files found", err=True)
        return

    failed = 0
    for result in parse_many(files):
        if result.error is not None:
            failed += 1
            _report(result.error, color)
    click.echo(f"checked {len(files)} file(s), {failed} failed")
    if failed:
        raise SystemExit(1)


def _dump_tree(node: object, depth: int) -> None:
    """Print a readable declaration tree dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name in ("span", "doc"):
                continue
            value = getattr(node, field_name)
            if isinstance(value, Type):
                click.echo(f"{indent}  {field_name}: {format_type(value)}")
            elif isinstance(value, list):
                if value and hasattr(value[0], "__dataclass_fields__"):
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_tree(item, depth + 2)
                elif value:
                    click.echo(f"{indent}  {field_name}: {value!r}")
            elif hasattr(value, "value") and not isinstance(value, (str, bool)):
                click.echo(f"{indent}  {field_name}: {value.value}")
            elif value is not None and value is not False:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
