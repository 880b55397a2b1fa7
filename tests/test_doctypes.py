"""Tests for documentation-comment type extraction."""

from __future__ import annotations

from phpdecl.doctypes import (
    normalize_generic,
    param_type,
    refine,
    resolve_annotation,
    return_type,
    var_type,
)
from phpdecl.types import INT, STRING, UNKNOWN, VOID, ArrayType, ClassType, ObjectType


def doc(*lines: str) -> str:
    """Helper: build a multi-line doc comment."""
    body = "\n".join(f" * {line}" for line in lines)
    return f"/**\n{body}\n */"


class TestNormalizeGeneric:
    def test_numeric_index_dropped(self):
        assert normalize_generic("array<int,Foo>") == ("array<Foo>", 14)

    def test_numeric_index_any_case(self):
        assert normalize_generic("array<INT, Foo>")[0] == "array<Foo>"

    def test_associative_becomes_object(self):
        assert normalize_generic("array<string, Foo>") == ("object<string,Foo>", 18)

    def test_object_kept(self):
        assert normalize_generic("object<string,Bar>")[0] == "object<string,Bar>"

    def test_no_index(self):
        assert normalize_generic("array<Foo>")[0] == "array<Foo>"

    def test_one_level_of_nesting(self):
        text = "array<string, array<int, Foo>>"
        assert normalize_generic(text) == ("object<string,array<Foo>>", len(text))

    def test_stops_after_closing_bracket(self):
        assert normalize_generic("array<Foo> $items the list") == ("array<Foo>", 10)

    def test_unbalanced_is_mixed(self):
        assert normalize_generic("array<Foo")[0] == "mixed"


class TestResolveAnnotation:
    def test_union_collapses_to_unknown(self):
        assert resolve_annotation("int|string") == UNKNOWN
        assert resolve_annotation("Foo|null") == UNKNOWN

    def test_nullable_prefix(self):
        assert resolve_annotation("?Foo") == ClassType("Foo")

    def test_inline_comment_terminator(self):
        assert resolve_annotation("int*/") == INT


class TestVarTag:
    def test_single_line(self):
        assert var_type("/** @var int */") == INT

    def test_multi_line_with_description(self):
        assert var_type(doc("Ids of the members.", "@var int[] list of ids")) == ArrayType(INT)

    def test_generic(self):
        assert var_type(doc("@var array<int, Foo>")) == ArrayType(ClassType("Foo"))
        assert var_type(doc("@var array<string,Foo>")) == ObjectType(STRING, ClassType("Foo"))

    def test_union(self):
        assert var_type(doc("@var int|string")) == UNKNOWN

    def test_generic_in_union(self):
        assert var_type(doc("@var array<int,Foo>|null")) == UNKNOWN

    def test_missing_tag(self):
        assert var_type(None) == UNKNOWN
        assert var_type(doc("Just words.")) == UNKNOWN
        assert var_type(doc("@var")) == UNKNOWN

    def test_named_tag_preferred(self):
        d = doc("@var int $a", "@var string $b")
        assert var_type(d, "b") == STRING
        assert var_type(d, "a") == INT
        assert var_type(d, "c") == UNKNOWN

    def test_tag_naming_other_variable_ignored(self):
        assert var_type(doc("@var int $other"), "x") == UNKNOWN
        assert var_type(doc("@var int $other", "@var string"), "x") == STRING
        assert var_type(doc("@var int $other")) == INT

    def test_name_before_type(self):
        assert var_type(doc("@var $count int")) == INT

    def test_other_tags_ignored(self):
        assert var_type(doc("@variable Foo", "@return int")) == UNKNOWN


class TestParamTag:
    def test_matches_argument_name(self):
        d = doc("@param string $x", "@param int $y")
        assert param_type(d, "x") == STRING
        assert param_type(d, "y") == INT

    def test_word_boundary(self):
        assert param_type(doc("@param string $xy"), "x") == UNKNOWN

    def test_generic_type_token(self):
        d = doc("@param array<string, Bar> $map keyed by name")
        assert param_type(d, "map") == ObjectType(STRING, ClassType("Bar"))

    def test_variadic_and_reference(self):
        assert param_type(doc("@param int ...$nums"), "nums") == INT
        assert param_type(doc("@param array &$out"), "out") == ArrayType(UNKNOWN)

    def test_union(self):
        assert param_type(doc("@param int|null $x"), "x") == UNKNOWN


class TestReturnTag:
    def test_return(self):
        assert return_type(doc("@return void")) == VOID
        assert return_type(doc("@return Foo[] all of them")) == ArrayType(ClassType("Foo"))

    def test_missing(self):
        assert return_type(doc("@param int $x")) == UNKNOWN


class TestRefine:
    def test_inline_wins(self):
        assert refine(INT, STRING) == INT

    def test_doc_fills_unknown(self):
        assert refine(UNKNOWN, STRING) == STRING

    def test_array_of_unknown_is_not_unknown(self):
        assert refine(ArrayType(UNKNOWN), ArrayType(INT)) == ArrayType(UNKNOWN)
