"""Edit-distance based text similarity."""


def levenshtein_distance(a: str, b: str) -> int:
    """
    Minimum number of single-character insertions, deletions and
    substitutions turning `a` into `b`. Case-sensitive.
    """
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    # Two rolling rows over the shorter string
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """
    Case-insensitive similarity in [0, 1].

    (longest length - edit distance) / longest length; two empty strings
    are identical.
    """
    a, b = a.lower(), b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def to_percent(value: float) -> int:
    """Similarity as an integer percentage, rounding halves up."""
    return int(value * 100 + 0.5)
