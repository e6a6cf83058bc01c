"""Identifier transforms for generated Swift code.

Wire names are split into words on underscores only, then rejoined:

  lower_camel("user_name")   -> "userName"     (members, parameters)
  lower_camel("firstName")   -> "firstname"
  upper_camel("user_name")   -> "UserName"     (type and file stems)
  method_name GET /users/{id}          -> "getUsers"
  method_name POST /orders             -> "createOrders"
  use_case_name DELETE /orders/{id}    -> "DeleteOrders"

The camel forms are applied verbatim. Characters Swift does not accept in an
identifier are removed afterwards by ``escape_identifier``, and keywords are
backtick-quoted by ``swift_identifier``.
"""

from __future__ import annotations

import re

from api_scaffold.parser.models import Operation

# HTTP method -> method-name prefix; other verbs use the verb itself
VERB_PREFIXES: dict[str, str] = {
    "get": "get",
    "post": "create",
    "put": "update",
    "delete": "delete",
}

FALLBACK_RESOURCE = "root"

SWIFT_KEYWORDS = frozenset({
    "associatedtype", "class", "deinit", "enum", "extension", "fileprivate",
    "func", "import", "init", "inout", "internal", "let", "open", "operator",
    "private", "protocol", "public", "static", "struct", "subscript",
    "typealias", "var", "break", "case", "continue", "default", "defer", "do",
    "else", "fallthrough", "for", "guard", "if", "in", "repeat", "return",
    "switch", "where", "while", "as", "catch", "false", "is", "nil",
    "rethrows", "super", "self", "Self", "throw", "throws", "true", "try",
    "Any", "Type",
})

_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]")
_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")


def split_words(name: str) -> list[str]:
    """Split a wire name on underscores; empty words are kept."""
    return name.split("_")


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def lower_camel(name: str) -> str:
    """First word lowercased, remaining words capitalized."""
    words = split_words(name)
    return words[0].lower() + "".join(capitalize(word) for word in words[1:])


def upper_camel(name: str) -> str:
    """Every word capitalized."""
    return "".join(capitalize(word) for word in split_words(name))


def title_case(name: str) -> str:
    """Type-name stem for a display name such as a tag or path segment.

    Any run of non-alphanumerics separates words; each word gets an upper-case
    first letter and keeps the rest ("pet store" -> "PetStore",
    "PetStore" -> "PetStore").
    """
    return "".join(word[:1].upper() + word[1:] for word in _SEPARATORS.split(name) if word)


def escape_identifier(name: str) -> str:
    """Drop characters an identifier cannot hold; prefix ``_`` to a leading digit or an empty result."""
    name = _NON_IDENTIFIER.sub("", name)
    if not name or name[0].isdigit():
        return f"_{name}"
    return name


def type_identifier(name: str) -> str:
    """Swift type name for a component schema.

    Names that are already identifiers are kept verbatim ("UserDTO" stays
    "UserDTO"); anything else is title-cased and escaped.
    """
    if name.isidentifier() and name.isascii():
        return escape_identifier(name)
    return escape_identifier(title_case(name) or "Model")


def swift_identifier(name: str) -> str:
    """Make ``name`` usable as a Swift declaration name."""
    name = escape_identifier(name)
    if name in SWIFT_KEYWORDS:
        return f"`{name}`"
    return name


def path_segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def is_path_parameter(segment: str) -> bool:
    return segment.startswith("{")


def resource_segment(path: str) -> str:
    """Last path segment that is not a ``{parameter}``."""
    for segment in reversed(path_segments(path)):
        if not is_path_parameter(segment):
            return segment
    return FALLBACK_RESOURCE


def path_parameter_suffix(path: str) -> str:
    """``/users/{id}/posts/{post_id}`` -> ``ByIdAndPostId``; empty without parameters."""
    names = [upper_camel(segment.strip("{}")) for segment in path_segments(path) if is_path_parameter(segment)]
    names = [name for name in names if name]
    return escape_identifier("By" + "And".join(names)) if names else ""


def method_name(path: str, method: str, operation: Operation) -> str:
    """Service method name for an operation, before keyword quoting."""
    if operation.operation_id:
        return escape_identifier(lower_camel(operation.operation_id))
    prefix = VERB_PREFIXES.get(method.lower(), method.lower())
    return escape_identifier(prefix + upper_camel(resource_segment(path)))


def use_case_name(path: str, method: str, operation: Operation) -> str:
    """PascalCase Verb+Resource, or the capitalized operationId."""
    if operation.operation_id:
        return escape_identifier(upper_camel(operation.operation_id))
    prefix = VERB_PREFIXES.get(method.lower(), method.lower())
    return escape_identifier(capitalize(prefix) + upper_camel(resource_segment(path)))
