"""Parse context: active namespace and pending declaration modifiers."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from phpdecl.ast_nodes import Namespace, Visibility
from phpdecl.errors import ParseError
from phpdecl.source import Span
from phpdecl.tokens import Token, TokenKind

_VISIBILITY: dict[TokenKind, Visibility] = {
    TokenKind.PUBLIC: Visibility.PUBLIC,
    TokenKind.VAR: Visibility.PUBLIC,
    TokenKind.PROTECTED: Visibility.PROTECTED,
    TokenKind.PRIVATE: Visibility.PRIVATE,
}


@dataclass
class Modifiers:
    """Pending modifier tokens folded into declaration fields."""

    doc: str | None = None
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    is_final: bool = False
    is_abstract: bool = False
    is_readonly: bool = False
    is_interface: bool = False
    is_trait: bool = False


def fold_modifiers(tokens: tuple[Token, ...], allowed: frozenset[TokenKind]) -> Modifiers:
    """Fold drained modifier tokens; a token the declaration can't take is fatal."""
    mods = Modifiers()
    for tok in tokens:
        if tok.kind not in allowed:
            raise ParseError(tok)
        match tok.kind:
            case TokenKind.DOC_COMMENT:
                mods.doc = tok.value
            case TokenKind.STATIC:
                mods.is_static = True
            case TokenKind.FINAL:
                mods.is_final = True
            case TokenKind.ABSTRACT:
                mods.is_abstract = True
            case TokenKind.READONLY:
                mods.is_readonly = True
            case TokenKind.INTERFACE:
                mods.is_interface = True
            case TokenKind.TRAIT:
                mods.is_trait = True
            case _:
                mods.visibility = _VISIBILITY[tok.kind]
    return mods


class ParseContext:
    """Mutable state for a single parse call.

    Holds the namespaces built so far, the active one, and the FIFO of
    modifier tokens read ahead of the declaration they belong to.
    """

    def __init__(self) -> None:
        self.namespaces: list[Namespace] = []
        self._current: Namespace | None = None
        self._pending: deque[Token] = deque()

    @property
    def current(self) -> Namespace:
        """The active namespace, creating the implicit global one on demand."""
        if self._current is None:
            self._current = Namespace("")
            self.namespaces.append(self._current)
        return self._current

    def enter_namespace(self, name: str, span: Span | None = None) -> Namespace:
        ns = Namespace(name, span=span)
        self.namespaces.append(ns)
        self._current = ns
        return ns

    # ── Pending modifiers ────────────────────────────────────────

    def store(self, token: Token) -> None:
        self._pending.append(token)

    def take_pending(self) -> tuple[Token, ...]:
        """Drain the pending queue; it is always empty afterwards."""
        tokens = tuple(self._pending)
        self._pending.clear()
        return tokens

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def drop_docs(self) -> None:
        """Drain pending tokens that have no declaration to attach to.

        Stray doc comments are discarded; any other modifier is an error.
        """
        for tok in self.take_pending():
            if tok.kind != TokenKind.DOC_COMMENT:
                raise ParseError(tok)
