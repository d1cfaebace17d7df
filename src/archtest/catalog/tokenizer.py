"""PHP token stream built from the tree-sitter-php grammar."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node as TSNode

# Subtrees emitted as one opaque literal token; nothing inside them is
# ever seen by the declaration scanner.
_OPAQUE_TYPES: frozenset[str] = frozenset(
    {
        "comment",
        "string",
        "encapsed_string",
        "heredoc",
        "nowdoc",
        "shell_command_expression",
        "text",
        "attribute_list",
    }
)

# Identifier nodes.  Grammar releases differ on whether qualified names
# are split into ``name`` leaves, so the compound forms are accepted too.
_NAME_TYPES: frozenset[str] = frozenset({"name", "namespace_name", "qualified_name"})

# Token kinds.
NAME = "name"
KEYWORD = "keyword"
PUNCT = "punct"
LITERAL = "literal"
OTHER = "other"


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    ``value`` is the normalised form the scanner compares against: the
    lowercase keyword for keywords (PHP keywords are case-insensitive),
    the punctuation itself for punctuation, and the raw text otherwise.
    """

    kind: str
    value: str
    text: str
    line: int


@dataclass(frozen=True)
class LangConfig:
    """Tree-sitter configuration for the scanned language."""

    language: Language
    extensions: frozenset[str]


_LANG_CACHE: dict[str, LangConfig] = {}


def _load_php() -> LangConfig:
    import tree_sitter_php as tsphp

    return LangConfig(
        language=Language(tsphp.language_php()),
        extensions=frozenset({".php"}),
    )


def get_lang_config() -> LangConfig:
    """Return the (cached) PHP grammar configuration."""
    config = _LANG_CACHE.get("php")
    if config is None:
        config = _load_php()
        _LANG_CACHE["php"] = config
    return config


def clear_cache() -> None:
    """Clear the language config cache (useful for testing)."""
    _LANG_CACHE.clear()


def _classify(node: TSNode) -> Token:
    text = node.text.decode("utf-8", errors="replace") if node.text else ""
    line = node.start_point.row + 1

    if node.type in _OPAQUE_TYPES:
        return Token(LITERAL, node.type, text, line)
    if node.type in _NAME_TYPES:
        return Token(NAME, text, text, line)
    if not node.is_named:
        if node.type.isalpha() or node.type.startswith("__"):
            return Token(KEYWORD, node.type.lower(), text, line)
        return Token(PUNCT, node.type, text, line)
    # Named leaves such as modifiers without an anonymous child.
    if node.type.endswith("_modifier"):
        return Token(KEYWORD, text.lower(), text, line)
    return Token(OTHER, node.type, text, line)


def _walk_leaves(root: TSNode) -> Iterator[TSNode]:
    """Yield leaves (and opaque subtrees) in document order without recursion."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in _OPAQUE_TYPES or node.child_count == 0:
            if node is not root:
                yield node
            continue
        stack.extend(reversed(node.children))


def tokenize(content: str) -> list[Token]:
    """Tokenize PHP source text into a flat list of tokens.

    Whitespace is not represented.  Tree-sitter recovers from syntax
    errors, so malformed input still yields the tokens it could parse.
    """
    if not content.strip():
        return []
    parser = Parser(get_lang_config().language)
    tree = parser.parse(content.encode("utf-8"))
    return [_classify(node) for node in _walk_leaves(tree.root_node)]
