"""Token kinds and token representation for the PHP lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from phpdecl.source import Span


class TokenKind(Enum):
    # Markup
    INLINE_HTML = auto()
    OPEN_TAG = auto()
    CLOSE_TAG = auto()

    # Declaration keywords
    NAMESPACE = auto()
    USE = auto()
    CLASS = auto()
    INTERFACE = auto()
    TRAIT = auto()
    FUNCTION = auto()
    CONST = auto()
    VAR = auto()

    # Modifiers
    STATIC = auto()
    PUBLIC = auto()
    PROTECTED = auto()
    PRIVATE = auto()
    FINAL = auto()
    ABSTRACT = auto()
    READONLY = auto()

    # Other keywords
    EXTENDS = auto()
    IMPLEMENTS = auto()
    AS = auto()
    INSTEADOF = auto()
    NEW = auto()
    ARRAY = auto()
    CALLABLE = auto()

    # Literals and names
    STRING = auto()
    VARIABLE = auto()
    DOC_COMMENT = auto()
    CONSTANT_STRING = auto()
    NUMBER = auto()
    START_HEREDOC = auto()
    HEREDOC_BODY = auto()
    END_HEREDOC = auto()

    # Punctuation
    NS_SEPARATOR = auto()
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    SEMICOLON = auto()
    EQUAL = auto()
    ELLIPSIS = auto()
    DOUBLE_COLON = auto()
    COLON = auto()
    QUESTION = auto()
    AMPERSAND = auto()
    OBJECT_OPERATOR = auto()
    OPERATOR = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span

    def __str__(self) -> str:
        return f"{self.kind.name}({self.value!r}) at {self.span}"


KEYWORDS: dict[str, TokenKind] = {
    "namespace": TokenKind.NAMESPACE,
    "use": TokenKind.USE,
    "class": TokenKind.CLASS,
    "interface": TokenKind.INTERFACE,
    "trait": TokenKind.TRAIT,
    "function": TokenKind.FUNCTION,
    "const": TokenKind.CONST,
    "var": TokenKind.VAR,
    "static": TokenKind.STATIC,
    "public": TokenKind.PUBLIC,
    "protected": TokenKind.PROTECTED,
    "private": TokenKind.PRIVATE,
    "final": TokenKind.FINAL,
    "abstract": TokenKind.ABSTRACT,
    "readonly": TokenKind.READONLY,
    "extends": TokenKind.EXTENDS,
    "implements": TokenKind.IMPLEMENTS,
    "as": TokenKind.AS,
    "insteadof": TokenKind.INSTEADOF,
    "new": TokenKind.NEW,
    "array": TokenKind.ARRAY,
    "callable": TokenKind.CALLABLE,
}

# A word following one of these is a member or declaration name, never a keyword.
NAME_CONTEXT: frozenset[TokenKind] = frozenset({
    TokenKind.FUNCTION,
    TokenKind.CONST,
    TokenKind.DOUBLE_COLON,
    TokenKind.OBJECT_OPERATOR,
})

VISIBILITY_KINDS: frozenset[TokenKind] = frozenset({
    TokenKind.PUBLIC,
    TokenKind.PROTECTED,
    TokenKind.PRIVATE,
})

MODIFIER_KINDS: frozenset[TokenKind] = VISIBILITY_KINDS | {
    TokenKind.DOC_COMMENT,
    TokenKind.STATIC,
    TokenKind.FINAL,
    TokenKind.ABSTRACT,
    TokenKind.READONLY,
    TokenKind.VAR,
}
