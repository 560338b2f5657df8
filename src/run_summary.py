"""
Per-franchise analysis: order the films, score them, and summarise the run.
"""

from datetime import date

from models import AnalysisConfig, RunResult
from run_analysis import analyze_run
from score_fusion import fuse_scores
from streak_selection import build_good_flags, select_best_streak
from utils import FIRST_N_FILMS


def sequence_key(movie):
    """Release date ascending with unknown dates last, then title."""
    release = movie.release_date
    return (release is None, release or date.max, movie.title or "")


def order_sequence(movies):
    return sorted(movies, key=sequence_key)


def average_first_n(scores, n):
    """Mean of the known scores among the first n; None when none are known."""
    if n <= 0 or not scores:
        return None
    values = [v for v in scores[:n] if v is not None]
    if not values:
        return None
    return sum(values) / len(values)


def summarize_run(collection_id, collection_name, sequence, scores, analysis,
                  good_flags, streak, good_threshold):
    """
    Reshape the detector and selector outputs into one RunResult.

    Args:
        collection_id: Franchise id
        collection_name: Franchise name
        sequence: Ordered films
        scores: Fused scores aligned with `sequence`
        analysis: RunAnalysis from the peak/fall detector
        good_flags: Per-film good classification
        streak: Winning StreakCandidate or None
        good_threshold: Base threshold reported alongside the run

    Returns:
        RunResult
    """
    peak, fall = analysis.peak_index, analysis.fall_index

    cliff = None
    if peak is not None and fall is not None:
        if scores[peak] is not None and scores[fall] is not None:
            cliff = scores[peak] - scores[fall]

    return RunResult(
        collection_id=collection_id,
        collection_name=collection_name,
        film_count=len(sequence),
        good_run_length=analysis.good_run_length,
        peak_index=peak,
        peak_title=sequence[peak].title if peak is not None else None,
        fall_index=fall,
        fall_title=sequence[fall].title if fall is not None else None,
        cliff_drop=cliff,
        avg_first_n=average_first_n(scores, min(FIRST_N_FILMS, len(scores))),
        avg_all=average_first_n(scores, len(scores)),
        has_missing_ratings=any(v is None for v in scores),
        streak_start=streak.start if streak else None,
        streak_end=streak.end if streak else None,
        streak_avg=streak.average if streak else None,
        good_indices=[i for i, good in enumerate(good_flags) if good],
        good_threshold=good_threshold,
    )


def analyze_franchise(collection_id, collection_name, movies, config=None):
    """
    Run the full analysis for one franchise.

    Args:
        collection_id: Franchise id
        collection_name: Franchise name
        movies: Films of the franchise in any order
        config: AnalysisConfig (defaults when omitted)

    Returns:
        Tuple of (RunResult, ordered sequence, fused scores)
    """
    config = (config or AnalysisConfig()).validate()

    sequence = order_sequence(movies)
    scores = fuse_scores(sequence, config)

    analysis = analyze_run(scores, config.adj_drop, config.cum_drop,
                           config.window_size, config.window_avg_thresh)
    good_flags = build_good_flags(scores, config.good_threshold, config.origin_grace)
    streak = select_best_streak(scores, good_flags, config.min_streak_length,
                                config.origin_bias_amount)

    result = summarize_run(collection_id, collection_name, sequence, scores,
                           analysis, good_flags, streak, config.good_threshold)
    return result, sequence, scores


def group_by_franchise(movies):
    """Group films by (collection_id, collection_name), keeping first-seen order."""
    groups = {}
    for movie in movies:
        groups.setdefault((movie.collection_id, movie.collection_name), []).append(movie)
    return groups


def build_runs(movies, config=None):
    """
    Analyse every franchise present in a flat list of films.

    Returns:
        List of RunResult, one per franchise, in order of first appearance
    """
    config = (config or AnalysisConfig()).validate()
    runs = []
    for (collection_id, collection_name), group in group_by_franchise(movies).items():
        result, _, _ = analyze_franchise(collection_id, collection_name, group, config)
        runs.append(result)
    return runs
