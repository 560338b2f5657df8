"""
OMDb ratings lookup (IMDb rating and votes, Rotten Tomatoes critic score).
"""

import re
import time

import requests

from models import MovieRatingRow
from utils import OMDB_API_BASE, parse_release_date


def parse_omdb_payload(tmdb_id, payload, imdb_id_hint=None):
    """
    Turn an OMDb response body into a rating row.

    Args:
        tmdb_id: TMDb id of the film being rated
        payload: Decoded OMDb JSON
        imdb_id_hint: IMDb id used for the query, if any

    Returns:
        Tuple of (MovieRatingRow, error message or None)
    """
    imdb_id = payload.get("imdbID") or imdb_id_hint or ""

    if str(payload.get("Response", "")).lower() == "false":
        error = payload.get("Error") or "Error"
        return MovieRatingRow(collection_id=0, tmdb_id=tmdb_id, imdb_id=imdb_id, error=error), error

    imdb100 = None
    try:
        imdb10 = float(payload.get("imdbRating"))
        if imdb10 > 0:
            imdb100 = imdb10 * 10.0
    except (TypeError, ValueError):
        pass

    imdb_votes = None
    digits = re.sub(r"\D", "", str(payload.get("imdbVotes") or ""))
    if digits:
        imdb_votes = int(digits)

    rt_critic = None
    for rating in payload.get("Ratings") or []:
        source = rating.get("Source") or ""
        value = (rating.get("Value") or "").strip()
        if "rotten tomatoes" in source.lower() and value.endswith("%"):
            try:
                rt_critic = float(value.rstrip("%"))
            except ValueError:
                pass

    # Audience score is not exposed by OMDb
    row = MovieRatingRow(
        collection_id=0,
        tmdb_id=tmdb_id,
        imdb_id=imdb_id,
        imdb_rating100=imdb100,
        imdb_votes=imdb_votes,
        rt_critic_pct=rt_critic,
    )
    return row, None


def query_omdb(member, api_key):
    """
    Fetch ratings for one member, by IMDb id when known, else by title and year.

    Returns:
        Tuple of (MovieRatingRow, error message or None)
    """
    params = {"apikey": api_key}
    if member.imdb_id:
        params["i"] = member.imdb_id
    else:
        params["t"] = member.title
        params["type"] = "movie"
        release = parse_release_date(member.release_date)
        if release:
            params["y"] = release.year

    try:
        response = requests.get(OMDB_API_BASE, params=params, timeout=30)
        row, error = parse_omdb_payload(member.tmdb_id, response.json(), member.imdb_id or None)
    except (requests.RequestException, ValueError) as e:
        error = f"{type(e).__name__}: {e}"
        row = MovieRatingRow(collection_id=0, tmdb_id=member.tmdb_id, imdb_id=member.imdb_id, error=error)

    row.collection_id = member.collection_id
    return row, error


def fetch_ratings(members, api_key, delay_ms=150, existing=None):
    """
    Fetch ratings for every member, skipping films with usable cached ratings.

    Args:
        members: List of MemberRow
        api_key: OMDb API key
        delay_ms: Pause between requests
        existing: Previously saved MovieRatingRow list

    Returns:
        List of MovieRatingRow with exactly one row per member tmdb id
    """
    by_tmdb, by_imdb = {}, {}
    for r in existing or []:
        if r.tmdb_id and r.tmdb_id not in by_tmdb:
            by_tmdb[r.tmdb_id] = r
        if r.imdb_id and r.imdb_id.lower() not in by_imdb:
            by_imdb[r.imdb_id.lower()] = r

    to_fetch = []
    for m in members:
        cached = by_tmdb.get(m.tmdb_id)
        if cached and cached.has_usable_ratings():
            continue
        cached = by_imdb.get(m.imdb_id.lower()) if m.imdb_id else None
        if cached and cached.has_usable_ratings():
            by_tmdb[m.tmdb_id] = cached
            continue
        to_fetch.append(m)

    print(f"🍅 OMDb cache: {len(by_tmdb)} existing rows; will fetch {len(to_fetch)} missing.")

    rows = {}
    for m in members:
        cached = by_tmdb.get(m.tmdb_id)
        if cached:
            rows[m.tmdb_id] = MovieRatingRow(
                collection_id=m.collection_id,
                tmdb_id=m.tmdb_id,
                imdb_id=cached.imdb_id,
                imdb_rating100=cached.imdb_rating100,
                imdb_votes=cached.imdb_votes,
                rt_critic_pct=cached.rt_critic_pct,
                rt_audience_pct=cached.rt_audience_pct,
            )

    for i, m in enumerate(to_fetch, start=1):
        row, error = query_omdb(m, api_key)
        rows[m.tmdb_id] = row

        if error and "request limit" in error.lower():
            print("🍅 OMDb request limit reached; keeping partial results.")
            break

        if delay_ms > 0:
            time.sleep(delay_ms / 1000.0)
        if i % 25 == 0:
            print(f"🍅 {i}/{len(to_fetch)} fetched...")

    for m in members:
        if m.tmdb_id not in rows:
            rows[m.tmdb_id] = MovieRatingRow(
                collection_id=m.collection_id, tmdb_id=m.tmdb_id, imdb_id=m.imdb_id, error="no-data"
            )

    return list(rows.values())
