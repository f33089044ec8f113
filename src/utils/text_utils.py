"""
Text normalization helpers shared by the heuristics.
"""


def normalize_text(text: str) -> str:
    """Lower-case *text* for substring matching. ``None`` becomes ``""``."""
    return (text or "").lower()


def is_blank(text: str | None) -> bool:
    return not (text or "").strip()


def split_words(text: str) -> list[str]:
    """Split on any run of whitespace, dropping empty tokens."""
    return (text or "").split()


def contains_any(haystack: str, needles) -> bool:
    """
    True if any of *needles* occurs in *haystack* (both lower-cased).

    Args:
        haystack: Text to search in.
        needles: Iterable of substrings.
    """
    normalized = normalize_text(haystack)
    return any(normalize_text(n) in normalized for n in needles if n)
