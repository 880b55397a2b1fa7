"""Shared test helpers for the phpdecl test suite."""

from __future__ import annotations

from phpdecl.ast_nodes import Class, Namespace
from phpdecl.lexer import Lexer
from phpdecl.parser import Parser


def parse(source: str) -> list[Namespace]:
    """Lex and parse PHP source, return the namespaces."""
    tokens = Lexer(source, "test.php").lex()
    return Parser(tokens, "test.php").parse()


def parse_ns(source: str) -> Namespace:
    """Parse source that declares exactly one namespace."""
    namespaces = parse(source)
    assert len(namespaces) == 1, [ns.name for ns in namespaces]
    return namespaces[0]


def parse_class(source: str) -> Class:
    """Parse `<?php` + source and return its first class."""
    ns = parse_ns("<?php\n" + source)
    assert ns.classes, "no class declared"
    return ns.classes[0]


GOOD_PHP = """<?php
namespace App;

/** A user. */
class User
{
    /** @var string */
    public $name;

    public function id(): int { return 1; }
}
"""

BAD_PHP = """<?php
class Broken extends A, B {}
"""
