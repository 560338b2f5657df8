"""
Best-streak selection: the strongest contiguous run of "good" films.
"""

from models import ConfigurationError, StreakCandidate

# Biased averages closer than this are treated as equal
AVERAGE_TIE_EPSILON = 1e-9


def build_good_flags(scores, good_threshold, origin_grace):
    """
    Mark each film as good or not.

    The first film gets an easier bar: its threshold is lowered by
    `origin_grace`. Unknown scores are never good.
    """
    flags = []
    for i, value in enumerate(scores):
        threshold = good_threshold - (origin_grace if i == 0 else 0)
        flags.append(value is not None and value >= threshold)
    return flags


def find_good_blocks(good_flags):
    """Maximal runs of consecutive good films as inclusive (start, end) pairs."""
    blocks = []
    start = None
    for i, good in enumerate(good_flags):
        if good and start is None:
            start = i
        elif not good and start is not None:
            blocks.append((start, i - 1))
            start = None
    if start is not None:
        blocks.append((start, len(good_flags) - 1))
    return blocks


def average_known(scores, start, end):
    values = [v for v in scores[start:end + 1] if v is not None]
    if not values:
        return None
    return sum(values) / len(values)


def biased_average(candidate, origin_bias_amount):
    """Ranking value of a candidate: its average, plus the bias when it starts the franchise."""
    if candidate.average is None:
        return float("-inf")
    return candidate.average + (origin_bias_amount if candidate.start == 0 else 0.0)


def compare_streaks(a, b, origin_bias_amount=0.0):
    """
    Order two candidate streaks.

    Longer wins; then the higher biased average; then the earlier start.

    Returns:
        1 if a ranks above b, -1 if below, 0 if they are the same streak
    """
    if a.length != b.length:
        return 1 if a.length > b.length else -1

    avg_a = biased_average(a, origin_bias_amount)
    avg_b = biased_average(b, origin_bias_amount)
    if not (avg_a == avg_b or abs(avg_a - avg_b) < AVERAGE_TIE_EPSILON):
        return 1 if avg_a > avg_b else -1

    if a.start != b.start:
        return 1 if a.start < b.start else -1
    return 0


def select_best_streak(scores, good_flags, min_streak_length=1, origin_bias_amount=0.0):
    """
    Pick the best run of good films.

    Args:
        scores: Ordered list of optional scores
        good_flags: Per-film good classification (same length as scores)
        min_streak_length: Blocks shorter than this are never considered
        origin_bias_amount: Ranking bonus for a block starting at index 0

    Returns:
        The winning StreakCandidate (with its unbiased average) or None
    """
    if min_streak_length < 1:
        raise ConfigurationError("min_streak_length", f"must be at least 1, got {min_streak_length}")

    best = None
    for start, end in find_good_blocks(good_flags):
        candidate = StreakCandidate(start, end, average_known(scores, start, end))
        if candidate.length < min_streak_length:
            continue
        if best is None or compare_streaks(candidate, best, origin_bias_amount) > 0:
            best = candidate
    return best
