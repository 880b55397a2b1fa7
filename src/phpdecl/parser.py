"""Declaration parser for PHP token streams.

Recursive descent over namespaces, imports and class-like declarations.
Function bodies, default values and heredocs are skipped as balanced
regions; only declarations and their types end up in the tree. The first
token the active rule cannot handle aborts the whole parse with a
ParseError.
"""

from __future__ import annotations

from pathlib import Path

from phpdecl.ast_nodes import (
    Class,
    ClassImport,
    Constant,
    ConstantImport,
    Function,
    FunctionImport,
    Namespace,
    TraitAlias,
    TraitPrecedence,
    TraitUse,
    Use,
    Variable,
    Visibility,
)
from phpdecl.context import Modifiers, ParseContext, fold_modifiers
from phpdecl.doctypes import param_type, refine, return_type, var_type
from phpdecl.errors import ParseError
from phpdecl.lexer import Lexer
from phpdecl.source import read_source
from phpdecl.stream import TokenStream
from phpdecl.tokens import MODIFIER_KINDS, VISIBILITY_KINDS, Token, TokenKind
from phpdecl.types import CALLABLE, UNKNOWN, ArrayType, ClassType, Type, map_type

_K = TokenKind

_CLASS_MODIFIERS = frozenset({
    _K.DOC_COMMENT, _K.FINAL, _K.ABSTRACT, _K.READONLY, _K.INTERFACE, _K.TRAIT,
})
_METHOD_MODIFIERS = frozenset({
    _K.DOC_COMMENT, _K.PUBLIC, _K.PROTECTED, _K.PRIVATE, _K.STATIC, _K.FINAL, _K.ABSTRACT,
})
_FIELD_MODIFIERS = frozenset({
    _K.DOC_COMMENT, _K.PUBLIC, _K.PROTECTED, _K.PRIVATE, _K.STATIC, _K.READONLY, _K.VAR,
})
_CONST_MODIFIERS = frozenset({_K.DOC_COMMENT, _K.PUBLIC, _K.PROTECTED, _K.PRIVATE, _K.FINAL})
_DOC_ONLY = frozenset({_K.DOC_COMMENT})

_TYPE_START = frozenset({
    _K.QUESTION, _K.LPAREN, _K.STRING, _K.NS_SEPARATOR, _K.ARRAY, _K.CALLABLE,
})
_TYPE_MEMBER_START = _TYPE_START | {_K.STATIC}
_MARKUP = frozenset({_K.INLINE_HTML, _K.OPEN_TAG, _K.CLOSE_TAG})

_VISIBILITY: dict[TokenKind, Visibility] = {
    _K.PUBLIC: Visibility.PUBLIC,
    _K.PROTECTED: Visibility.PROTECTED,
    _K.PRIVATE: Visibility.PRIVATE,
}


class Parser:
    """Parses a PHP token list into a list of namespaces."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.filename = filename
        self.stream = TokenStream(tokens, filename)
        self.ctx = ParseContext()

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> list[Namespace]:
        """Parse the entire token stream."""
        stream = self.stream
        while True:
            tok = stream.next()
            kind = tok.kind
            if kind == _K.EOF:
                break
            if kind in _MARKUP:
                continue
            if kind == _K.NAMESPACE:
                self._parse_namespace(tok)
            elif kind == _K.USE:
                self.ctx.drop_docs()
                self._parse_use()
            elif kind in (_K.DOC_COMMENT, _K.FINAL, _K.ABSTRACT, _K.READONLY):
                self.ctx.store(tok)
            elif kind in (_K.INTERFACE, _K.TRAIT):
                self.ctx.store(tok)
                self._parse_class(tok)
            elif kind == _K.CLASS:
                self._parse_class(tok)
            elif kind == _K.FUNCTION:
                self._parse_top_function(tok)
            elif kind == _K.CONST:
                self._parse_constants(self.ctx.current.constants, _DOC_ONLY)
            elif kind == _K.START_HEREDOC:
                self.ctx.take_pending()
                stream.skip_to(_K.END_HEREDOC)
            elif kind == _K.NEW:
                self.ctx.take_pending()
                self._skip_anonymous_class()
            elif kind == _K.STRING and tok.value.lower() == "enum":
                self.ctx.take_pending()
                self._skip_enum()
            else:
                # Statements and expressions carry no declarations
                self.ctx.take_pending()
        self.ctx.drop_docs()
        return self.ctx.namespaces

    def _parse_namespace(self, start: Token) -> None:
        self.ctx.drop_docs()
        tok = self.stream.next()
        name = ""
        if tok.kind in (_K.STRING, _K.NS_SEPARATOR):
            self.stream.back()
            name = self._parse_type_path()
            self.stream.expect(_K.LBRACE, _K.SEMICOLON)
        elif tok.kind != _K.LBRACE:
            raise ParseError(tok, "a namespace name")
        self.ctx.enter_namespace(name, start.span)

    def _skip_anonymous_class(self) -> None:
        tok = self.stream.next()
        if tok.kind != _K.CLASS:
            self.stream.back()
            return
        tok = self.stream.next()
        if tok.kind == _K.LPAREN:
            self.stream.skip_balanced_to(_K.RPAREN, opened=True)
        else:
            self.stream.back()
        self.stream.skip_balanced_to(_K.RBRACE)

    def _skip_enum(self) -> None:
        tok = self.stream.next()
        if tok.kind != _K.STRING:
            self.stream.back()
            return
        self.stream.skip_balanced_to(_K.RBRACE)

    # ── Names ────────────────────────────────────────────────────

    def _parse_type_path(self, *, group: bool = False) -> str:
        """Parse ``[\\]Name(\\Name)*``.

        With ``group`` a separator followed by ``{`` ends the path; the
        brace is consumed and the returned path keeps its trailing ``\\``.
        """
        parts: list[str] = []
        tok = self.stream.next()
        if tok.kind == _K.NS_SEPARATOR:
            parts.append("\\")
            tok = self.stream.next()
        while True:
            if tok.kind != _K.STRING:
                raise ParseError(tok, "a name")
            parts.append(tok.value)
            tok = self.stream.next()
            if tok.kind != _K.NS_SEPARATOR:
                self.stream.back()
                return "".join(parts)
            parts.append("\\")
            tok = self.stream.next()
            if group and tok.kind == _K.LBRACE:
                return "".join(parts)

    def _parse_name_list(self) -> list[str]:
        names = [self._parse_type_path()]
        while True:
            tok = self.stream.next()
            if tok.kind != _K.COMMA:
                self.stream.back()
                return names
            names.append(self._parse_type_path())

    def _parse_alias(self) -> str | None:
        tok = self.stream.next()
        if tok.kind != _K.AS:
            self.stream.back()
            return None
        return self.stream.expect(_K.STRING).value

    # ── Imports ──────────────────────────────────────────────────

    def _parse_use(self) -> None:
        kind = self._parse_import_kind() or _K.CLASS
        uses = self.ctx.current.uses
        while True:
            path = self._parse_type_path(group=True)
            if path.endswith("\\"):
                self._parse_group_use(path.lstrip("\\"), kind, uses)
            else:
                uses.append(_make_import(kind, path.lstrip("\\"), self._parse_alias()))
            tok = self.stream.expect(_K.COMMA, _K.SEMICOLON)
            if tok.kind == _K.SEMICOLON:
                return

    def _parse_import_kind(self) -> TokenKind | None:
        tok = self.stream.next()
        if tok.kind in (_K.FUNCTION, _K.CONST):
            return tok.kind
        self.stream.back()
        return None

    def _parse_group_use(self, prefix: str, kind: TokenKind, uses: list[Use]) -> None:
        """Parse the ``{...}`` of ``use A\\{B, function c, D as E}``."""
        while True:
            tok = self.stream.next()
            if tok.kind == _K.RBRACE:
                return
            self.stream.back()
            entry_kind = self._parse_import_kind() or kind
            path = prefix + self._parse_type_path()
            uses.append(_make_import(entry_kind, path, self._parse_alias()))
            tok = self.stream.expect(_K.COMMA, _K.RBRACE)
            if tok.kind == _K.RBRACE:
                return

    # ── Classes, interfaces and traits ───────────────────────────

    def _parse_class(self, start: Token) -> None:
        mods = fold_modifiers(self.ctx.take_pending(), _CLASS_MODIFIERS)
        name_tok = self.stream.expect(_K.STRING)
        cls = Class(
            name=name_tok.value,
            is_interface=mods.is_interface,
            is_trait=mods.is_trait,
            is_abstract=mods.is_abstract,
            is_final=mods.is_final,
            is_readonly=mods.is_readonly,
            doc=mods.doc,
            span=start.span,
        )

        tok = self.stream.next()
        if tok.kind == _K.EXTENDS and not cls.is_trait:
            if cls.is_interface:
                cls.interfaces = self._parse_name_list()
            else:
                cls.parent = self._parse_type_path()
            tok = self.stream.next()
        if tok.kind == _K.IMPLEMENTS and not (cls.is_interface or cls.is_trait):
            cls.interfaces = self._parse_name_list()
            tok = self.stream.next()
        if tok.kind != _K.LBRACE:
            raise ParseError(tok, "LBRACE")

        self._parse_class_body(cls)
        self.ctx.current.classes.append(cls)

    def _parse_class_body(self, cls: Class) -> None:
        while True:
            tok = self.stream.next()
            kind = tok.kind
            if kind == _K.RBRACE:
                self.ctx.drop_docs()
                return
            if kind in MODIFIER_KINDS:
                self.ctx.store(tok)
            elif kind == _K.USE:
                self.ctx.drop_docs()
                cls.uses.append(self._parse_trait_use())
            elif kind == _K.FUNCTION:
                mods = fold_modifiers(self.ctx.take_pending(), _METHOD_MODIFIERS)
                cls.functions.append(self._parse_function(tok, mods))
            elif kind == _K.CONST:
                self._parse_constants(cls.constants, _CONST_MODIFIERS)
            elif kind == _K.VARIABLE:
                self.stream.back()
                self._parse_fields(cls, UNKNOWN)
            elif kind in _TYPE_START:
                self.stream.back()
                self._parse_fields(cls, self._parse_inline_type())
            else:
                raise ParseError(tok, "a class member")

    def _parse_fields(self, cls: Class, inline: Type) -> None:
        """Parse ``$a [= value], $b ...;`` sharing one set of modifiers."""
        mods = fold_modifiers(self.ctx.take_pending(), _FIELD_MODIFIERS)
        while True:
            var_tok = self.stream.expect(_K.VARIABLE)
            name = var_tok.value[1:]
            var = Variable(
                name=name,
                type=refine(inline, var_type(mods.doc, name)),
                visibility=mods.visibility,
                is_static=mods.is_static,
                is_readonly=mods.is_readonly,
                doc=mods.doc,
                span=var_tok.span,
            )
            tok = self.stream.next()
            if tok.kind == _K.EQUAL:
                self.stream.skip_value()
                var.is_optional = True
                tok = self.stream.next()
            cls.variables.append(var)
            if tok.kind == _K.SEMICOLON:
                return
            if tok.kind != _K.COMMA:
                raise ParseError(tok, "COMMA or SEMICOLON")

    def _parse_constants(self, target: list[Constant], allowed: frozenset[TokenKind]) -> None:
        """Parse ``NAME [= value], ...;``; only a doc ``@var`` gives the type."""
        mods = fold_modifiers(self.ctx.take_pending(), allowed)
        while True:
            name_tok = self.stream.expect(_K.STRING)
            tok = self.stream.next()
            if tok.kind == _K.STRING:
                # `const int NAME`: the first word was a type
                name_tok = tok
                tok = self.stream.next()
            if tok.kind == _K.EQUAL:
                self.stream.skip_value()
                tok = self.stream.next()
            target.append(Constant(
                name=name_tok.value,
                type=var_type(mods.doc, name_tok.value),
                visibility=mods.visibility,
                doc=mods.doc,
                span=name_tok.span,
            ))
            if tok.kind == _K.SEMICOLON:
                return
            if tok.kind != _K.COMMA:
                raise ParseError(tok, "COMMA or SEMICOLON")

    # ── Trait composition ────────────────────────────────────────

    def _parse_trait_use(self) -> TraitUse:
        use = TraitUse(traits=self._parse_name_list())
        tok = self.stream.expect(_K.SEMICOLON, _K.LBRACE)
        if tok.kind == _K.SEMICOLON:
            return use
        while True:
            tok = self.stream.next()
            if tok.kind == _K.RBRACE:
                return use
            self.stream.back()
            self._parse_trait_rule(use)

    def _parse_trait_rule(self, use: TraitUse) -> None:
        path = self._parse_type_path()
        tok = self.stream.next()
        trait: str | None = None
        method = path
        if tok.kind == _K.DOUBLE_COLON:
            trait = path
            method = self.stream.expect(_K.STRING).value
            tok = self.stream.next()
        elif tok.kind != _K.AS:
            raise ParseError(tok, "DOUBLE_COLON or AS")

        if tok.kind == _K.INSTEADOF and trait is not None:
            excluded = self._parse_name_list()
            self.stream.expect(_K.SEMICOLON)
            use.precedences.append(TraitPrecedence(trait, method, excluded))
            return
        if tok.kind != _K.AS:
            raise ParseError(tok, "AS")

        alias = TraitAlias(trait, method)
        while True:
            tok = self.stream.next()
            if tok.kind in _VISIBILITY:
                alias.visibility = _VISIBILITY[tok.kind]
            elif tok.kind == _K.STRING:
                alias.name = tok.value
            elif tok.kind == _K.SEMICOLON:
                break
            else:
                raise ParseError(tok, "an alias name or SEMICOLON")
        use.aliases.append(alias)

    # ── Functions ────────────────────────────────────────────────

    def _parse_top_function(self, start: Token) -> None:
        tok = self.stream.next()
        by_ref = tok.kind == _K.AMPERSAND
        if by_ref:
            tok = self.stream.next()
        if tok.kind == _K.LPAREN:
            # Closure: skip its arguments, `use` clause, return type and body
            self.ctx.take_pending()
            self.stream.skip_balanced_to(_K.RPAREN, opened=True)
            self.stream.skip_balanced_to(_K.RBRACE)
            return
        self.stream.back()
        mods = fold_modifiers(self.ctx.take_pending(), _DOC_ONLY)
        fn = self._parse_function(start, mods, by_ref=by_ref)
        self.ctx.current.functions.append(fn)

    def _parse_function(self, start: Token, mods: Modifiers, *, by_ref: bool = False) -> Function:
        tok = self.stream.next()
        if tok.kind == _K.AMPERSAND:
            by_ref = True
            tok = self.stream.next()
        if tok.kind != _K.STRING:
            raise ParseError(tok, "a function name")
        fn = Function(
            name=tok.value,
            visibility=mods.visibility,
            is_static=mods.is_static,
            is_abstract=mods.is_abstract,
            is_final=mods.is_final,
            returns_reference=by_ref,
            doc=mods.doc,
            span=start.span,
        )
        self.stream.expect(_K.LPAREN)
        fn.arguments = self._parse_arguments(mods.doc)
        fn.return_type = refine(self._parse_function_tail(), return_type(mods.doc))
        return fn

    def _parse_arguments(self, doc: str | None) -> list[Variable]:
        args: list[Variable] = []
        while True:
            tok = self.stream.next()
            if tok.kind == _K.RPAREN:
                return args
            if tok.kind == _K.COMMA:
                continue
            self.stream.back()
            args.append(self._parse_argument(doc))

    def _parse_argument(self, doc: str | None) -> Variable:
        tok = self.stream.next()
        is_readonly = False
        while tok.kind in VISIBILITY_KINDS or tok.kind == _K.READONLY:
            # constructor promotion; the property itself is not recorded
            is_readonly = is_readonly or tok.kind == _K.READONLY
            tok = self.stream.next()
        inline: Type = UNKNOWN
        if tok.kind in _TYPE_START:
            self.stream.back()
            inline = self._parse_inline_type()
            tok = self.stream.next()
        by_ref = tok.kind == _K.AMPERSAND
        if by_ref:
            tok = self.stream.next()
        is_rest = tok.kind == _K.ELLIPSIS
        if is_rest:
            tok = self.stream.next()
        if tok.kind != _K.VARIABLE:
            raise ParseError(tok, "VARIABLE")

        name = tok.value[1:]
        var = Variable(
            name=name,
            type=refine(inline, param_type(doc, name)),
            is_rest=is_rest,
            is_reference=by_ref,
            is_readonly=is_readonly,
            span=tok.span,
        )
        tok = self.stream.next()
        if tok.kind == _K.EQUAL:
            self.stream.skip_value()
            var.is_optional = True
        else:
            self.stream.back()
        return var

    def _parse_function_tail(self) -> Type:
        """Parse the optional return type and the body or ``;``."""
        ret: Type = UNKNOWN
        tok = self.stream.next()
        if tok.kind == _K.COLON:
            ret = self._parse_inline_type()
            tok = self.stream.next()
        elif tok.kind not in (_K.LBRACE, _K.SEMICOLON):
            # return type written without its colon
            self.stream.back()
            ret = self._parse_inline_type()
            tok = self.stream.next()
        if tok.kind == _K.LBRACE:
            self.stream.skip_balanced_to(_K.RBRACE, opened=True)
        elif tok.kind != _K.SEMICOLON:
            raise ParseError(tok, "LBRACE or SEMICOLON")
        return ret

    def _parse_inline_type(self) -> Type:
        """Parse an inline type; unions and intersections resolve to Unknown."""
        first = self._parse_type_member()
        members = 1
        while True:
            tok = self.stream.next()
            if tok.kind == _K.OPERATOR and tok.value == "|":
                pass
            elif tok.kind == _K.AMPERSAND and self.stream.peek().kind in _TYPE_MEMBER_START:
                # `A&B`, as opposed to a by-reference `&$x`
                pass
            else:
                self.stream.back()
                break
            self._parse_type_member()
            members += 1
        return first if members == 1 else UNKNOWN

    def _parse_type_member(self) -> Type:
        tok = self.stream.next()
        if tok.kind == _K.QUESTION:
            # nullability is not part of the type lattice
            tok = self.stream.next()
        if tok.kind == _K.LPAREN:
            # `(A&B)` group of a disjunctive normal form type
            self.stream.skip_balanced_to(_K.RPAREN, opened=True)
            return UNKNOWN
        if tok.kind == _K.ARRAY:
            return ArrayType(UNKNOWN)
        if tok.kind == _K.CALLABLE:
            return CALLABLE
        if tok.kind == _K.STATIC:
            return ClassType("static")
        if tok.kind in (_K.STRING, _K.NS_SEPARATOR):
            self.stream.back()
            return map_type(self._parse_type_path())
        raise ParseError(tok, "a type")


def _make_import(kind: TokenKind, path: str, alias: str | None) -> Use:
    if kind == _K.FUNCTION:
        return FunctionImport(path, alias)
    if kind == _K.CONST:
        return ConstantImport(path, alias)
    return ClassImport(path, alias)


# ── Entry points ─────────────────────────────────────────────────


def parse_tokens(tokens: list[Token], filename: str = "<stdin>") -> list[Namespace]:
    return Parser(tokens, filename).parse()


def parse_source(source: str, filename: str = "<stdin>") -> list[Namespace]:
    """Lex and parse PHP source text."""
    return Parser(Lexer(source, filename).lex(), filename).parse()


def parse_file(path: Path) -> list[Namespace]:
    return parse_source(read_source(path), str(path))
