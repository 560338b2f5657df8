"""
Peak and fall-off detection over a franchise's ordered scores.
"""

from models import ConfigurationError, RunAnalysis


def find_peak(scores):
    """
    Locate the highest known score.

    Args:
        scores: Ordered list of optional scores

    Returns:
        Tuple of (peak_index, peak_value), or (None, None) when nothing is known.
        Ties resolve to the earliest index.
    """
    peak_index, peak_value = None, None
    for i, value in enumerate(scores):
        if value is not None and (peak_value is None or value > peak_value):
            peak_index, peak_value = i, value
    return peak_index, peak_value


def adjacent_drop(scores, i, adj_drop):
    prev, cur = scores[i - 1], scores[i]
    return prev is not None and cur is not None and prev - cur >= adj_drop


def cumulative_drop(scores, i, peak_value, cum_drop):
    cur = scores[i]
    return cur is not None and peak_value - cur >= cum_drop


def rolling_average_low(scores, i, window_size, window_avg_thresh):
    """
    True when the `window_size` films ending at i average below the threshold.

    A window that starts before the first film, or that holds any unknown
    score, never trips.
    """
    start = i - window_size + 1
    if start < 0:
        return False
    window = scores[start:i + 1]
    if any(v is None for v in window):
        return False
    return sum(window) / window_size < window_avg_thresh


def detect_fall(scores, peak_index, peak_value, adj_drop, cum_drop, window_size, window_avg_thresh):
    """First index after the peak where any decay condition trips, else None."""
    for i in range(peak_index + 1, len(scores)):
        if (adjacent_drop(scores, i, adj_drop)
                or cumulative_drop(scores, i, peak_value, cum_drop)
                or rolling_average_low(scores, i, window_size, window_avg_thresh)):
            return i
    return None


def analyze_run(scores, adj_drop=10, cum_drop=18, window_size=2, window_avg_thresh=65):
    """
    Find where a franchise peaked and where it fell off.

    Args:
        scores: Ordered list of optional 0-100 scores
        adj_drop: Drop between neighbours that counts as a fall
        cum_drop: Drop from the peak that counts as a fall
        window_size: Films in the rolling average window
        window_avg_thresh: Rolling average below this counts as a fall

    Returns:
        RunAnalysis(peak_index, fall_index, good_run_length)
    """
    if window_size < 1:
        raise ConfigurationError("window_size", f"must be at least 1, got {window_size}")

    peak_index, peak_value = find_peak(scores)
    if peak_index is None:
        return RunAnalysis(None, None, 0)

    fall_index = detect_fall(scores, peak_index, peak_value, adj_drop, cum_drop,
                             window_size, window_avg_thresh)
    good_run_length = len(scores) if fall_index is None else fall_index
    return RunAnalysis(peak_index, fall_index, good_run_length)
