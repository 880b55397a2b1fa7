"""Type annotations extracted from documentation comments.

Doc comments are scanned line by line for ``@var``, ``@param`` and
``@return`` tags. Pseudo-generic annotations such as ``array<int, Foo>``
are normalized before mapping; union annotations collapse to Unknown.
"""

from __future__ import annotations

import re

from phpdecl.types import UNKNOWN, Type, is_unknown, map_type

_GENERIC_START = re.compile(r"(?:array|object)<", re.IGNORECASE)
_TAG = re.compile(r"@(var|param|return)\b[ \t]*(.*)$")
_VAR_NAME = re.compile(r"^\s*\$(\w+)")


def normalize_generic(text: str) -> tuple[str, int]:
    """Normalize a pseudo-generic annotation starting at ``array``/``object``.

    Returns the normalized type string and the number of characters of
    *text* consumed. A numeric index (``array<int,V>``) is dropped and any
    other index turns the array into ``object<K,V>``. Only one level of
    nested generics is supported.
    """
    keyword = 5 if text[:5].lower() == "array" else 6
    built = text[:keyword]
    segment = ""
    seg_start = len(built)
    depth = 0
    i = keyword
    while i < len(text):
        ch = text[i]
        if depth == 0 and ch != "<":
            break
        i += 1
        if ch == "<":
            depth += 1
            built += ch
            segment = ""
            seg_start = len(built)
        elif ch == ",":
            prefix = built[:seg_start]
            if prefix.lower().endswith("array<"):
                if segment.lower() == "int":
                    built = prefix
                else:
                    built = prefix[:-6] + "object<" + built[seg_start:] + ","
            else:
                built += ","
            segment = ""
            seg_start = len(built)
        elif ch == ">":
            depth -= 1
            built += ch
            segment = ""
            if depth == 0:
                break
        elif not ch.isspace():
            built += ch
            segment += ch
    if depth != 0:
        return "mixed", i
    return built, i


def _split_type(rest: str) -> tuple[str, str]:
    """Split tag text into its type token and the remaining text."""
    rest = rest.strip()
    if _GENERIC_START.match(rest):
        type_text, consumed = normalize_generic(rest)
        remainder = rest[consumed:]
        if remainder.startswith("|"):
            # union with a generic member
            return "mixed", remainder.lstrip("|")
        return type_text, remainder
    parts = rest.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


def resolve_annotation(type_text: str) -> Type:
    """Map a raw annotation, collapsing unions of two or more types."""
    type_text = type_text.strip()
    if type_text.endswith("*/"):
        type_text = type_text[:-2]
    members = [m for m in type_text.split("|") if m]
    if len(members) >= 2:
        return UNKNOWN
    if not members:
        return UNKNOWN
    member = members[0].lstrip("?")
    if member.startswith("$"):
        return UNKNOWN
    return map_type(member)


def _tag_lines(doc: str | None, tag: str):
    if not doc:
        return
    for line in doc.splitlines():
        m = _TAG.search(line)
        if m and m.group(1) == tag:
            yield m.group(2)


def var_type(doc: str | None, name: str | None = None) -> Type:
    """Type from the ``@var`` tag naming *name*, else the first unnamed one.

    Tags that name a different variable never apply to *name*.
    """
    first: str | None = None
    for rest in _tag_lines(doc, "var"):
        type_text, remainder = _split_type(rest)
        if type_text.startswith("$"):
            # `@var $name Type` ordering
            var_name = type_text
            type_text, _ = _split_type(remainder)
            remainder = var_name
        named = _VAR_NAME.match(remainder)
        if name is not None and named:
            if named.group(1) == name:
                return resolve_annotation(type_text)
            # the tag documents some other variable
            continue
        if first is None:
            first = type_text
    if first is None:
        return UNKNOWN
    return resolve_annotation(first)


def return_type(doc: str | None) -> Type:
    for rest in _tag_lines(doc, "return"):
        type_text, _ = _split_type(rest)
        return resolve_annotation(type_text)
    return UNKNOWN


def param_type(doc: str | None, name: str) -> Type:
    """Type of argument *name* (without ``$``) from its ``@param`` tag."""
    target = re.compile(r"^\s*&?\s*(?:\.\.\.)?\$" + re.escape(name) + r"\b")
    for rest in _tag_lines(doc, "param"):
        type_text, remainder = _split_type(rest)
        if target.match(remainder):
            return resolve_annotation(type_text)
    return UNKNOWN


def refine(current: Type, documented: Type) -> Type:
    """Keep an inline type; fall back to the documented one only if unknown."""
    return documented if is_unknown(current) else current
