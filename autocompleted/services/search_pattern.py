# autocompleted/services/search_pattern.py
# Responsibility: Converts a canonical key into a LIKE pattern for the prefix lookup.

from typing import Iterator

# Tag search syntax uses '*' as its wildcard, PostgreSQL LIKE uses '%'.
DATASET_WILDCARD = "*"
BACKEND_WILDCARD = "%"
ESCAPE_CHAR = "\\"


def to_search_pattern(key: str) -> str:
    """
    Builds the prefix-anchored pattern used with ``LIKE ... ESCAPE '\\'``.

    Order matters:
    1. Escape backend metacharacters ('\\', '%', '_') and mark '*' in the
       key as a literal dataset wildcard ('\\*').
    2. Append the dataset wildcard to request prefix matching.
    3. Translate unescaped dataset wildcards into backend wildcards.
    4. Restore escaped dataset wildcards as plain '*' (literal in LIKE).

    Example:
        >>> to_search_pattern("blue_eyes")
        'blue\\\\_eyes%'
    """
    pattern = _escape_content(key)
    pattern = pattern + DATASET_WILDCARD
    pattern = _translate_wildcards(pattern)
    return _restore_literal_wildcards(pattern)


def _escape_content(key: str) -> str:
    escaped = key.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2)
    escaped = escaped.replace("%", ESCAPE_CHAR + "%").replace("_", ESCAPE_CHAR + "_")
    return escaped.replace(DATASET_WILDCARD, ESCAPE_CHAR + DATASET_WILDCARD)


def _translate_wildcards(pattern: str) -> str:
    return "".join(
        BACKEND_WILDCARD if token == DATASET_WILDCARD else token
        for token in _tokens(pattern)
    )


def _restore_literal_wildcards(pattern: str) -> str:
    return "".join(
        DATASET_WILDCARD if token == ESCAPE_CHAR + DATASET_WILDCARD else token
        for token in _tokens(pattern)
    )


def _tokens(pattern: str) -> Iterator[str]:
    """Yields single characters, keeping escape sequences ('\\x') together."""
    chars = iter(pattern)
    for ch in chars:
        if ch == ESCAPE_CHAR:
            yield ch + next(chars, "")
        else:
            yield ch
