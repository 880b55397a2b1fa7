"""Lexer for PHP source files.

Produces the token stream the declaration parser consumes. Whitespace and
ordinary comments are dropped; documentation comments, heredocs and inline
markup are kept as tokens so the parser can attach or skip them.
"""

from __future__ import annotations

from phpdecl.errors import LEX_ERROR, CompileError, Diagnostic, DiagnosticLabel, Severity
from phpdecl.source import Span
from phpdecl.tokens import KEYWORDS, NAME_CONTEXT, Token, TokenKind

_THREE_CHAR_OPS: dict[str, TokenKind] = {
    "...": TokenKind.ELLIPSIS,
    "?->": TokenKind.OBJECT_OPERATOR,
    "===": TokenKind.OPERATOR,
    "!==": TokenKind.OPERATOR,
    "<=>": TokenKind.OPERATOR,
    "**=": TokenKind.OPERATOR,
    "??=": TokenKind.OPERATOR,
    "<<=": TokenKind.OPERATOR,
    ">>=": TokenKind.OPERATOR,
}

_TWO_CHAR_OPS: dict[str, TokenKind] = {
    "::": TokenKind.DOUBLE_COLON,
    "->": TokenKind.OBJECT_OPERATOR,
    **{op: TokenKind.OPERATOR for op in (
        "=>", "==", "!=", "<>", "<=", ">=", "&&", "||", "++", "--",
        "+=", "-=", "*=", "/=", ".=", "%=", "&=", "|=", "^=",
        "<<", ">>", "??", "**",
    )},
}

_SINGLE_CHAR_OPS: dict[str, TokenKind] = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
    "=": TokenKind.EQUAL,
    "?": TokenKind.QUESTION,
    ":": TokenKind.COLON,
    "&": TokenKind.AMPERSAND,
    "\\": TokenKind.NS_SEPARATOR,
}


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_" or ord(ch) >= 0x80


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or ord(ch) >= 0x80


class Lexer:
    """Tokenizes PHP source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.in_php = False
        self.prev_token: Token | None = None
        self.tokens: list[Token] = []
        self.diagnostics: list[Diagnostic] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while self.pos < len(self.source):
            if not self.in_php:
                self._lex_inline_html()
                continue
            self._skip_whitespace()
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            if self._starts("?>"):
                self._lex_close_tag()
            elif self._starts("/**") and self._peek(3) in " \t\r\n":
                self._lex_doc_comment()
            elif self._starts("/*"):
                self._skip_block_comment()
            elif self._starts("#["):
                self._skip_attribute()
            elif self._starts("//") or ch == "#":
                self._skip_line_comment()
            elif self._starts("<<<"):
                self._lex_heredoc()
            elif ch == "$" and _is_ident_start(self._peek(1) or " "):
                self._lex_variable()
            elif ch in "'\"`":
                self._lex_string(ch)
            elif ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
                self._lex_number()
            elif _is_ident_start(ch):
                self._lex_identifier()
            else:
                self._lex_operator_or_punct()

        self._emit(TokenKind.EOF, "", self.line, self.col)

        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ""

    def _starts(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _advance_to(self, end: int) -> str:
        """Consume up to (not including) index *end*, returning the text."""
        start = self.pos
        while self.pos < end:
            self._advance()
        return self.source[start:end]

    def _emit(self, kind: TokenKind, value: str, start_line: int, start_col: int) -> Token:
        end_col = self.col - 1 if self.col > 1 else 1
        span = Span(self.filename, start_line, start_col, self.line, end_col)
        tok = Token(kind, value, span)
        self.tokens.append(tok)
        self.prev_token = tok
        return tok

    def _error(self, message: str, line: int, col: int) -> None:
        span = Span(self.filename, line, col, line, col)
        self.diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                code=LEX_ERROR,
                message=message,
                labels=[DiagnosticLabel(span=span, message="")],
            )
        )

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] in " \t\r\n\f\v":
            self._advance()

    # ── Markup and tags ──────────────────────────────────────────

    def _find_open_tag(self) -> tuple[int, int]:
        """Return (index, length) of the next open tag, or (-1, 0)."""
        idx = self.source.find("<?", self.pos)
        while idx != -1:
            if self.source[idx + 2:idx + 5].lower() == "php":
                return idx, 5
            nxt = self.source[idx + 2:idx + 3]
            if nxt == "=":
                return idx, 3
            if nxt in ("", " ", "\t", "\r", "\n"):
                return idx, 2
            idx = self.source.find("<?", idx + 2)
        return -1, 0

    def _lex_inline_html(self) -> None:
        start_line, start_col = self.line, self.col
        idx, length = self._find_open_tag()
        end = idx if idx != -1 else len(self.source)
        if end > self.pos:
            html = self._advance_to(end)
            self._emit(TokenKind.INLINE_HTML, html, start_line, start_col)
        if idx == -1:
            return
        start_line, start_col = self.line, self.col
        tag = self._advance_to(idx + length)
        self._emit(TokenKind.OPEN_TAG, tag, start_line, start_col)
        self.in_php = True

    def _lex_close_tag(self) -> None:
        start_line, start_col = self.line, self.col
        self._advance()
        self._advance()
        self._emit(TokenKind.CLOSE_TAG, "?>", start_line, start_col)
        # A single newline directly after the close tag belongs to it
        if self._starts("\r\n"):
            self._advance()
            self._advance()
        elif self._starts("\n"):
            self._advance()
        self.in_php = False

    # ── Comments ─────────────────────────────────────────────────

    def _lex_doc_comment(self) -> None:
        start_line, start_col = self.line, self.col
        end = self.source.find("*/", self.pos + 3)
        if end == -1:
            self._error("unterminated doc comment", start_line, start_col)
            self._advance_to(len(self.source))
            return
        text = self._advance_to(end + 2)
        self._emit(TokenKind.DOC_COMMENT, text, start_line, start_col)

    def _skip_block_comment(self) -> None:
        start_line, start_col = self.line, self.col
        end = self.source.find("*/", self.pos + 2)
        if end == -1:
            self._error("unterminated comment", start_line, start_col)
            self._advance_to(len(self.source))
            return
        self._advance_to(end + 2)

    def _skip_line_comment(self) -> None:
        # A line comment ends at the newline or at a close tag
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            if self._starts("?>"):
                return
            self._advance()

    def _skip_attribute(self) -> None:
        """Skip a ``#[...]`` attribute group; brackets nest, strings are opaque."""
        start_line, start_col = self.line, self.col
        self._advance_to(self.pos + 2)
        depth = 1
        while self.pos < len(self.source):
            ch = self._advance()
            if ch in ("'", '"'):
                while self.pos < len(self.source) and self.source[self.pos] != ch:
                    if self.source[self.pos] == "\\" and self.pos + 1 < len(self.source):
                        self._advance()
                    self._advance()
                if self.pos < len(self.source):
                    self._advance()  # closing quote
            elif ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    return
        self._error("unterminated attribute", start_line, start_col)

    # ── Strings ──────────────────────────────────────────────────

    def _lex_string(self, quote: str) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        self._advance()  # opening quote
        while self.pos < len(self.source) and self.source[self.pos] != quote:
            if self.source[self.pos] == "\\" and self.pos + 1 < len(self.source):
                self._advance()
            self._advance()
        if self.pos >= len(self.source):
            self._error("unterminated string literal", start_line, start_col)
            return
        self._advance()  # closing quote
        self._emit(TokenKind.CONSTANT_STRING, self.source[start:self.pos], start_line, start_col)

    def _lex_heredoc(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        self._advance_to(self.pos + 3)
        while self._peek() in (" ", "\t"):
            self._advance()
        quote = self._peek() if self._peek() in ("'", '"') else ""
        if quote:
            self._advance()
        label_start = self.pos
        while self.pos < len(self.source) and _is_ident_char(self.source[self.pos]):
            self._advance()
        label = self.source[label_start:self.pos]
        if quote and self._peek() == quote:
            self._advance()
        if not label or self._peek() not in ("\n", "\r"):
            self._error("malformed heredoc start", start_line, start_col)
            return
        if self._peek() == "\r":
            self._advance()
        self._advance()  # newline
        self._emit(TokenKind.START_HEREDOC, self.source[start:self.pos], start_line, start_col)

        body_line, body_col = self.line, self.col
        body_start = self.pos
        while self.pos < len(self.source):
            # The closing label may be indented (PHP 7.3+)
            j = self.pos
            while j < len(self.source) and self.source[j] in (" ", "\t"):
                j += 1
            after = j + len(label)
            if (self.source.startswith(label, j)
                    and (after >= len(self.source) or not _is_ident_char(self.source[after]))):
                body = self.source[body_start:self.pos]
                if body:
                    self._emit(TokenKind.HEREDOC_BODY, body, body_line, body_col)
                self._advance_to(j)
                end_line, end_col = self.line, self.col
                self._advance_to(after)
                self._emit(TokenKind.END_HEREDOC, label, end_line, end_col)
                return
            newline = self.source.find("\n", self.pos)
            if newline == -1:
                break
            self._advance_to(newline + 1)
        self._error(f"unterminated heredoc '{label}'", start_line, start_col)
        self._advance_to(len(self.source))

    # ── Numbers, names and variables ─────────────────────────────

    def _lex_number(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        if self._starts("0x") or self._starts("0X") or self._starts("0b") or self._starts("0B"):
            self._advance()
            self._advance()
            while self.pos < len(self.source) and (self.source[self.pos].isalnum()
                                                    or self.source[self.pos] == "_"):
                self._advance()
        else:
            while self._peek().isdigit() or self._peek() == "_":
                self._advance()
            if self._peek() == "." and self._peek(1).isdigit():
                self._advance()
                while self._peek().isdigit() or self._peek() == "_":
                    self._advance()
            if self._peek() in ("e", "E") and (
                self._peek(1).isdigit()
                or (self._peek(1) in ("+", "-") and self._peek(2).isdigit())
            ):
                self._advance()
                self._advance()
                while self._peek().isdigit():
                    self._advance()
        self._emit(TokenKind.NUMBER, self.source[start:self.pos], start_line, start_col)

    def _lex_variable(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        self._advance()  # $
        while self.pos < len(self.source) and _is_ident_char(self.source[self.pos]):
            self._advance()
        self._emit(TokenKind.VARIABLE, self.source[start:self.pos], start_line, start_col)

    def _lex_identifier(self) -> None:
        start_line, start_col = self.line, self.col
        start = self.pos
        while self.pos < len(self.source) and _is_ident_char(self.source[self.pos]):
            self._advance()
        word = self.source[start:self.pos]
        self._emit(self._classify_identifier(word), word, start_line, start_col)

    def _classify_identifier(self, word: str) -> TokenKind:
        if self.prev_token is not None and self.prev_token.kind in NAME_CONTEXT:
            return TokenKind.STRING
        kind = KEYWORDS.get(word.lower())
        if kind is None:
            return TokenKind.STRING
        # `namespace\Foo` is a relative name, not a declaration
        if kind == TokenKind.NAMESPACE and self._peek() == "\\":
            return TokenKind.STRING
        return kind

    # ── Operators and Punctuation ────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        start_line, start_col = self.line, self.col
        for width, table in ((3, _THREE_CHAR_OPS), (2, _TWO_CHAR_OPS), (1, _SINGLE_CHAR_OPS)):
            text = self.source[self.pos:self.pos + width]
            if text in table:
                self._advance_to(self.pos + width)
                self._emit(table[text], text, start_line, start_col)
                return
        ch = self._advance()
        self._emit(TokenKind.OPERATOR, ch, start_line, start_col)


def tokenize(source: str, filename: str = "<stdin>") -> list[Token]:
    """Convenience wrapper: lex *source* into a token list ending with EOF."""
    return Lexer(source, filename).lex()
