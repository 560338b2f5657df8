"""
CSV persistence for franchises, members, ratings and franchise runs.
"""

import os
from datetime import date

import pandas as pd

from models import FranchiseAgg, MemberRow, MovieRatingRow, RunResult

# File constants
FRANCHISES_FILE = "franchises.csv"
MEMBERS_FILE = "franchise_members.csv"
RATINGS_FILE = "movie_ratings.csv"
RUNS_FILE = "franchise_runs.csv"

FRANCHISE_COLUMNS = [
    "collection_id", "collection_name", "movie_count", "sum_popularity",
    "total_vote_count", "avg_vote_weighted", "score", "max_popularity",
]

MEMBER_COLUMNS = [
    "collection_id", "collection_name", "movie_tmdb_id", "title", "release_date",
    "popularity", "vote_average", "vote_count", "imdb_id", "poster_path",
]

RATING_COLUMNS = [
    "collection_id", "collection_name", "movie_tmdb_id", "imdb_id", "title",
    "release_date", "imdb_rating_100", "imdb_votes", "tmdb_vote_avg_x10",
    "tmdb_vote_count", "rt_critic_pct", "rt_audience_pct", "omdb_error", "poster_path",
]

RUN_COLUMNS = [
    "collection_id", "collection_name", "film_count", "good_run_len", "peak_index",
    "peak_title", "fall_index", "fall_title", "cliff_drop", "avg_first_n", "avg_all",
    "missing_ratings", "streak_start", "streak_end", "streak_len", "streak_avg",
    "good_indices", "good_thresh",
]


def format_number(value, digits=2):
    """Render a number with at most `digits` decimals; None becomes an empty cell."""
    if value is None:
        return ""
    text = f"{value:.{digits}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _optional_int(value):
    return "" if value is None else str(value)


def to_int(value, default=0):
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def to_optional_int(value):
    return to_int(value, None)


def to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_optional_float(value):
    return to_float(value, None)


def _write(rows, columns, path):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    pd.DataFrame(rows, columns=columns).to_csv(path, index=False, encoding="utf-8")


def _read(path):
    """Read a CSV as text cells; empty cells stay empty strings."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
    return df.to_dict(orient="records")


def save_franchises(franchises, path):
    rows = [[
        f.collection_id, f.name, f.movie_count, repr(float(f.sum_popularity)),
        f.total_vote_count, format_number(f.avg_vote_weighted, 3),
        format_number(f.score, 6), repr(float(f.max_popularity)),
    ] for f in franchises]
    _write(rows, FRANCHISE_COLUMNS, path)


def load_franchises(path):
    franchises = []
    for row in _read(path):
        sum_popularity = to_float(row.get("sum_popularity"))
        total_votes = to_int(row.get("total_vote_count"))
        avg_weighted = to_float(row.get("avg_vote_weighted"))
        franchises.append(FranchiseAgg(
            collection_id=to_int(row.get("collection_id")),
            name=row.get("collection_name", ""),
            movie_count=to_int(row.get("movie_count")),
            sum_popularity=sum_popularity,
            total_vote_count=total_votes,
            weighted_vote_sum=avg_weighted * total_votes,
            avg_vote_weighted=avg_weighted,
            score=to_float(row.get("score")),
            max_popularity=to_float(row.get("max_popularity")),
        ))
    return franchises


def save_members(members, path):
    ordered = sorted(members, key=lambda m: (m.collection_id, m.release_date or "9999-12-31"))
    rows = [[
        m.collection_id, m.collection_name, m.tmdb_id, m.title, m.release_date or "",
        repr(float(m.popularity)), format_number(m.vote_average, 3), m.vote_count,
        m.imdb_id, m.poster_path or "",
    ] for m in ordered]
    _write(rows, MEMBER_COLUMNS, path)


def load_members(path):
    return [MemberRow(
        collection_id=to_int(row.get("collection_id")),
        collection_name=row.get("collection_name", ""),
        tmdb_id=to_int(row.get("movie_tmdb_id")),
        title=row.get("title", ""),
        release_date=row.get("release_date") or None,
        popularity=to_float(row.get("popularity")),
        vote_average=to_float(row.get("vote_average")),
        vote_count=to_int(row.get("vote_count")),
        imdb_id=row.get("imdb_id", ""),
        poster_path=row.get("poster_path") or None,
    ) for row in _read(path)]


def save_movie_ratings(movies, path):
    """
    Write the joined films with every rating signal.

    Args:
        movies: List of FranchiseMovie
        path: Destination CSV
    """
    ordered = sorted(movies, key=lambda m: (m.collection_id, m.release_date or date.max))
    rows = [[
        m.collection_id, m.collection_name, m.tmdb_id, m.imdb_id, m.title,
        m.release_date.isoformat() if m.release_date else "",
        format_number(m.imdb_rating100), _optional_int(m.imdb_votes),
        format_number(m.tmdb_vote_average * 10.0), m.tmdb_vote_count,
        format_number(m.rt_critic_pct), format_number(m.rt_audience_pct),
        m.omdb_error or "", m.poster_path or "",
    ] for m in ordered]
    _write(rows, RATING_COLUMNS, path)


def load_movie_ratings(path):
    return [MovieRatingRow(
        collection_id=to_int(row.get("collection_id")),
        tmdb_id=to_int(row.get("movie_tmdb_id")),
        imdb_id=row.get("imdb_id", ""),
        imdb_rating100=to_optional_float(row.get("imdb_rating_100")),
        imdb_votes=to_optional_int(row.get("imdb_votes")),
        error=row.get("omdb_error") or None,
        rt_critic_pct=to_optional_float(row.get("rt_critic_pct")),
        rt_audience_pct=to_optional_float(row.get("rt_audience_pct")),
    ) for row in _read(path)]


def run_to_row(run):
    return [
        run.collection_id, run.collection_name, run.film_count, run.good_run_length,
        _optional_int(run.peak_index), run.peak_title or "",
        _optional_int(run.fall_index), run.fall_title or "",
        format_number(run.cliff_drop), format_number(run.avg_first_n), format_number(run.avg_all),
        "1" if run.has_missing_ratings else "0",
        _optional_int(run.streak_start), _optional_int(run.streak_end), run.streak_length,
        format_number(run.streak_avg), run.good_indices_csv, format_number(run.good_threshold),
    ]


def save_runs(runs, path):
    ordered = sorted(runs, key=lambda r: r.collection_id)
    _write([run_to_row(r) for r in ordered], RUN_COLUMNS, path)


def load_runs(path):
    """
    Read franchise_runs.csv back into RunResult records.

    Optional numeric fields come back as None when their cell is empty.
    """
    runs = []
    for row in _read(path):
        good = [to_int(tok) for tok in (row.get("good_indices") or "").split(";") if tok.strip()]
        runs.append(RunResult(
            collection_id=to_int(row.get("collection_id")),
            collection_name=row.get("collection_name", ""),
            film_count=to_int(row.get("film_count")),
            good_run_length=to_int(row.get("good_run_len")),
            peak_index=to_optional_int(row.get("peak_index")),
            peak_title=row.get("peak_title") or None,
            fall_index=to_optional_int(row.get("fall_index")),
            fall_title=row.get("fall_title") or None,
            cliff_drop=to_optional_float(row.get("cliff_drop")),
            avg_first_n=to_optional_float(row.get("avg_first_n")),
            avg_all=to_optional_float(row.get("avg_all")),
            has_missing_ratings=row.get("missing_ratings") == "1",
            streak_start=to_optional_int(row.get("streak_start")),
            streak_end=to_optional_int(row.get("streak_end")),
            streak_avg=to_optional_float(row.get("streak_avg")),
            good_indices=good,
            good_threshold=to_float(row.get("good_thresh")),
        ))
    return runs


def output_paths(output_dir):
    """Paths of every CSV the pipeline reads or writes."""
    return {
        "franchises": os.path.join(output_dir, FRANCHISES_FILE),
        "members": os.path.join(output_dir, MEMBERS_FILE),
        "ratings": os.path.join(output_dir, RATINGS_FILE),
        "runs": os.path.join(output_dir, RUNS_FILE),
    }
