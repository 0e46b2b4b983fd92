"""Edit distance and fuzzy matching over normalised strings."""

from rapidfuzz.distance import Levenshtein

from normalizer import normalize

DEFAULT_THRESHOLD = 0.8


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance; insertion, deletion and substitution cost 1."""
    return Levenshtein.distance(a, b)


def similarity_ratio(a: str, b: str) -> float:
    """``(max_len - distance) / max_len``; two empty strings are identical."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein(a, b)) / max_len


def fuzzy_match(text: str, target: str, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """True when the normalised strings contain one another or are close enough.

    Containment wins regardless of *threshold*; otherwise the similarity
    ratio of the normalised forms must reach *threshold*.
    """
    norm_text = normalize(text)
    norm_target = normalize(target)
    if norm_target in norm_text or norm_text in norm_target:
        return True
    return similarity_ratio(norm_text, norm_target) >= threshold
