"""
Franchise grouping, aggregate scoring and filtering.
"""

import math
from datetime import date

from models import FranchiseAgg, FranchiseMovie
from run_summary import order_sequence
from utils import is_future_release, parse_release_date


def franchise_score(sum_popularity, avg_vote_weighted, total_vote_count):
    """Ranking score for a franchise: popularity and vote volume on a log scale."""
    return (0.5 * math.log10(1 + sum_popularity)
            + 0.3 * avg_vote_weighted
            + 0.2 * math.log10(1 + total_vote_count))


def rescore_franchises(franchises, members):
    """
    Recompute every franchise aggregate from its current members.

    Args:
        franchises: Dictionary of collection_id -> FranchiseAgg (updated in place)
        members: List of MemberRow

    Returns:
        The same dictionary
    """
    by_collection = {}
    for m in members:
        by_collection.setdefault(m.collection_id, []).append(m)

    for agg in franchises.values():
        ms = by_collection.get(agg.collection_id, [])
        agg.movie_count = len(ms)
        agg.sum_popularity = sum(m.popularity for m in ms)
        agg.total_vote_count = sum(m.vote_count for m in ms)
        agg.weighted_vote_sum = sum(m.vote_average * m.vote_count for m in ms)
        agg.max_popularity = max((m.popularity for m in ms), default=0.0)
        agg.avg_vote_weighted = (agg.weighted_vote_sum / agg.total_vote_count
                                 if agg.total_vote_count > 0 else 0.0)
        agg.score = franchise_score(agg.sum_popularity, agg.avg_vote_weighted, agg.total_vote_count)
    return franchises


def ensure_franchise(franchises, collection_id, name):
    """Get or create the aggregate for a collection."""
    agg = franchises.get(collection_id)
    if agg is None:
        agg = FranchiseAgg(collection_id=collection_id, name=name)
        franchises[collection_id] = agg
    return agg


def exclude_future_releases(members, today=None):
    """
    Drop films that are not out yet (future or unknown release date).

    Returns:
        Tuple of (released members, number removed)
    """
    released = [m for m in members if not is_future_release(m.release_date, today)]
    return released, len(members) - len(released)


def select_franchises(franchises, members, min_movies):
    """
    Keep franchises with at least `min_movies` films.

    Returns:
        Tuple of (franchises sorted by score then popularity, their members)
    """
    allowed = {cid for cid, agg in franchises.items() if agg.movie_count >= min_movies}
    kept = sorted(
        (agg for cid, agg in franchises.items() if cid in allowed),
        key=lambda agg: (-agg.score, -agg.sum_popularity, agg.collection_id),
    )
    kept_members = [m for m in members if m.collection_id in allowed]
    return kept, kept_members


def join_ratings(members, ratings=None):
    """
    Combine TMDb members with external ratings into analysable films.

    Ratings are matched on (collection_id, tmdb_id) first, then on tmdb_id
    alone since cached rating rows may not carry a collection.

    Args:
        members: List of MemberRow
        ratings: List of MovieRatingRow (optional)

    Returns:
        List of FranchiseMovie
    """
    by_key, by_tmdb = {}, {}
    for r in ratings or []:
        by_key.setdefault((r.collection_id, r.tmdb_id), r)
        by_tmdb.setdefault(r.tmdb_id, r)

    joined = []
    for m in members:
        r = by_key.get((m.collection_id, m.tmdb_id)) or by_tmdb.get(m.tmdb_id)
        joined.append(FranchiseMovie(
            collection_id=m.collection_id,
            collection_name=m.collection_name,
            tmdb_id=m.tmdb_id,
            title=m.title,
            release_date=parse_release_date(m.release_date),
            imdb_id=m.imdb_id,
            popularity=m.popularity,
            tmdb_vote_average=m.vote_average,
            tmdb_vote_count=m.vote_count,
            imdb_rating100=r.imdb_rating100 if r else None,
            imdb_votes=r.imdb_votes if r else None,
            rt_critic_pct=r.rt_critic_pct if r else None,
            rt_audience_pct=r.rt_audience_pct if r else None,
            omdb_error=r.error if r else None,
            poster_path=m.poster_path,
        ))
    return joined


def upcoming_by_franchise(all_members, released_ids, today=None):
    """
    Unreleased films per collection, ordered by release date then title.

    Args:
        all_members: Every known MemberRow, released or not
        released_ids: TMDb ids already part of the analysed sequences
    """
    upcoming = {}
    for m in all_members:
        if m.tmdb_id in released_ids or not is_future_release(m.release_date, today):
            continue
        upcoming.setdefault(m.collection_id, []).append(m)

    for films in upcoming.values():
        films.sort(key=lambda m: (parse_release_date(m.release_date) or date.max, m.title))
    return upcoming


def debug_franchise_sequences(movies, limit=5):
    """Print the first few franchises and their film order."""
    print("🔍 FRANCHISE ORDER DEBUG:")
    groups = {}
    for m in movies:
        groups.setdefault(m.collection_name, []).append(m)
    for name in list(groups)[:limit]:
        ordered = order_sequence(groups[name])
        print(f"- {name} → {' | '.join(x.title for x in ordered)}")
