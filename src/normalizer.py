"""Text canonicalisation shared by queries and knowledge-base fields."""

import re

# Anything that is not a letter, digit or whitespace; ``\w`` admits "_", so it
# is listed explicitly.
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lower-case *text*, turn punctuation into spaces and squeeze whitespace.

    ``normalize("Can't  breathe!")`` gives ``"can t breathe"``. The result is
    stable under a second application.
    """
    if not text:
        return ""
    spaced = _PUNCTUATION_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", spaced).strip()


def tokenize(text: str) -> list[str]:
    """Normalise *text* and split it into words; never yields empty tokens."""
    return normalize(text).split()
