import re

from autocompleted.services.search_pattern import to_search_pattern


def like_matches(pattern: str, value: str) -> bool:
    """Minimal stand-in for PostgreSQL `value LIKE pattern ESCAPE '\\'`."""
    regex = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            regex.append(re.escape(next(chars, "")))
        elif ch == "%":
            regex.append(".*")
        elif ch == "_":
            regex.append(".")
        else:
            regex.append(re.escape(ch))
    return re.fullmatch("".join(regex), value, flags=re.DOTALL) is not None


def test_plain_key_becomes_prefix_pattern():
    assert to_search_pattern("cat") == "cat%"
    assert like_matches(to_search_pattern("cat"), "cat_ears")
    assert not like_matches(to_search_pattern("cat"), "bobcat")


def test_backend_metacharacters_are_escaped():
    # '_' must not match an arbitrary character
    pattern = to_search_pattern("a_b")
    assert pattern == "a\\_b%"
    assert like_matches(pattern, "a_bc")
    assert not like_matches(pattern, "axbc")

    # '%' must not match an arbitrary run of characters
    pattern = to_search_pattern("100%")
    assert pattern == "100\\%%"
    assert like_matches(pattern, "100%_orange_juice")
    assert not like_matches(pattern, "1000")


def test_literal_dataset_wildcard_is_preserved():
    pattern = to_search_pattern("a*b")
    assert pattern == "a*b%"
    assert like_matches(pattern, "a*bc")
    assert not like_matches(pattern, "axxbc")


def test_backslash_is_literal():
    pattern = to_search_pattern("\\o/")
    assert like_matches(pattern, "\\o/_(meme)")
    assert not like_matches(pattern, "o/")

    # A trailing backslash must not swallow the prefix wildcard
    pattern = to_search_pattern("ab\\")
    assert pattern.endswith("%")
    assert like_matches(pattern, "ab\\cd")


def test_empty_key_matches_everything():
    assert to_search_pattern("") == "%"
