"""Token stream with single-token pushback and region skipping."""

from __future__ import annotations

from phpdecl.errors import ParseError
from phpdecl.source import Span
from phpdecl.tokens import Token, TokenKind

_OPENERS: dict[TokenKind, TokenKind] = {
    TokenKind.RBRACE: TokenKind.LBRACE,
    TokenKind.RPAREN: TokenKind.LPAREN,
    TokenKind.RBRACKET: TokenKind.LBRACKET,
    TokenKind.END_HEREDOC: TokenKind.START_HEREDOC,
}

_VALUE_OPENERS = frozenset({TokenKind.LPAREN, TokenKind.LBRACKET, TokenKind.LBRACE})
_VALUE_CLOSERS = frozenset({TokenKind.RPAREN, TokenKind.RBRACKET, TokenKind.RBRACE})
_VALUE_SEPARATORS = frozenset({TokenKind.COMMA, TokenKind.SEMICOLON})


class TokenStream:
    """Sequential reader over a lexed token list.

    The list always ends with an EOF token; reading past it raises
    ParseError on that EOF token. Only the most recent ``next()`` can be
    undone with ``back()``.
    """

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            last = tokens[-1].span if tokens else Span(filename, 1, 1, 1, 1)
            eof_span = Span(last.file, last.end_line, last.end_col, last.end_line, last.end_col)
            tokens = [*tokens, Token(TokenKind.EOF, "", eof_span)]
        self.tokens = tokens
        self.pos = 0
        self._can_back = False

    def next(self) -> Token:
        if self.pos >= len(self.tokens):
            raise ParseError(self.tokens[-1], "more input")
        tok = self.tokens[self.pos]
        self.pos += 1
        self._can_back = True
        return tok

    def back(self) -> None:
        if not self._can_back:
            raise RuntimeError("token stream supports a single token of pushback")
        self.pos -= 1
        self._can_back = False

    def peek(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]

    def at_end(self) -> bool:
        return self.peek().kind == TokenKind.EOF

    def expect(self, *kinds: TokenKind) -> Token:
        tok = self.next()
        if tok.kind not in kinds:
            raise ParseError(tok, " or ".join(k.name for k in kinds))
        return tok

    def skip_to(self, kind: TokenKind) -> Token:
        """Advance until a token of *kind* has been consumed; return it."""
        while True:
            tok = self.next()
            if tok.kind == kind:
                return tok
            if tok.kind == TokenKind.EOF:
                raise ParseError(tok, kind.name)

    def skip_balanced_to(self, kind: TokenKind, *, opened: bool = False) -> Token:
        """Skip one balanced region closed by *kind*.

        With ``opened`` the opening token was already consumed; otherwise
        everything up to and including the first complete region is skipped.
        """
        opener = _OPENERS[kind]
        depth = 1 if opened else 0
        while True:
            tok = self.next()
            if tok.kind == opener:
                depth += 1
            elif tok.kind == kind:
                depth -= 1
                if depth <= 0:
                    return tok
            elif tok.kind == TokenKind.EOF:
                raise ParseError(tok, kind.name)

    def skip_value(self) -> list[Token]:
        """Skip one literal or expression, stopping before its separator."""
        skipped: list[Token] = []
        depth = 0
        while True:
            tok = self.next()
            if tok.kind == TokenKind.EOF:
                raise ParseError(tok, "a value")
            if tok.kind in _VALUE_OPENERS:
                depth += 1
            elif tok.kind in _VALUE_CLOSERS:
                if depth == 0:
                    self.back()
                    return skipped
                depth -= 1
            elif tok.kind in _VALUE_SEPARATORS and depth == 0:
                self.back()
                return skipped
            skipped.append(tok)
