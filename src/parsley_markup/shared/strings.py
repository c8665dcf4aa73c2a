"""Whitespace helpers used by the tokenizer and the attribute parser.

Every function takes an optional ``start``/``end`` range over its input
(same meaning as slice bounds). Empty and all-whitespace ranges are valid and
produce empty results.
"""

from typing import Iterable, List, Optional, Tuple


def _slice(text: str, start: int, end: Optional[int]) -> str:
    return text[start:end]


def last_non_space(text: str, start: int = 0, end: Optional[int] = None) -> int:
    """Return the index of the last non-whitespace character in the range.

    Returns -1 when the range holds only whitespace.
    """
    stop = len(text) if end is None else min(end, len(text))
    for index in range(stop - 1, start - 1, -1):
        if not text[index].isspace():
            return index
    return -1


def strip(text: str, start: int = 0, end: Optional[int] = None) -> str:
    """Trim leading and trailing whitespace over a range."""
    return _slice(text, start, end).strip()


def split(text: str, start: int = 0, end: Optional[int] = None) -> List[str]:
    """Split a range into its whitespace-delimited tokens."""
    return _slice(text, start, end).split()


def condense(text: str, start: int = 0, end: Optional[int] = None) -> str:
    """Collapse every internal whitespace run to a single space.

    Leading and trailing whitespace is kept as one space each, so
    ``strip(condense(s))`` is the usual way to normalise a text run. A range
    holding only whitespace condenses to the empty string.
    """
    chunk = _slice(text, start, end)
    words = chunk.split()
    if not words:
        return ""
    condensed = " ".join(words)
    if chunk[0].isspace():
        condensed = " " + condensed
    if chunk[-1].isspace():
        condensed += " "
    return condensed


def join(tokens: Iterable[str]) -> str:
    """Inverse of :func:`split`: join tokens with single spaces."""
    return " ".join(tokens)


def split_one(text: str, start: int = 0, end: Optional[int] = None) -> str:
    """Return only the first whitespace-delimited token of a range."""
    first, _ = split_first(text, start, end)
    return first


def split_first(text: str, start: int = 0, end: Optional[int] = None) -> Tuple[str, str]:
    """Split a range into its first word and the stripped remainder."""
    parts = _slice(text, start, end).split(None, 1)
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1].strip()
