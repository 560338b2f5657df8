"""
TMDb data acquisition: discover movies, resolve their collections, fill gaps.
"""

import time

import requests

from franchise_detection import ensure_franchise, rescore_franchises
from models import MemberRow
from utils import TMDB_API_BASE, parse_release_date

MAX_RETRIES = 4
INITIAL_BACKOFF_MS = 500
MAX_BACKOFF_MS = 8000


def _sleep_ms(ms):
    if ms > 0:
        time.sleep(ms / 1000.0)


def _retry_after_ms(response, default_ms):
    value = response.headers.get("Retry-After") if response is not None else None
    try:
        return int(float(value) * 1000)
    except (TypeError, ValueError):
        return default_ms


def get_json(path, api_key, params=None, max_retries=MAX_RETRIES):
    """
    GET a TMDb endpoint with rate-limit handling.

    Args:
        path: Endpoint path, e.g. 'movie/603'
        api_key: TMDb API key
        params: Extra query parameters
        max_retries: Attempts before giving up

    Returns:
        Decoded JSON dictionary, or None when every attempt failed
    """
    url = f"{TMDB_API_BASE}/{path}"
    query = dict(params or {})
    query["api_key"] = api_key
    delay = INITIAL_BACKOFF_MS

    for _ in range(max_retries):
        try:
            response = requests.get(url, params=query, headers={"Accept": "application/json"}, timeout=30)
        except requests.RequestException as e:
            print(f"  ⚠️ Network error: {e}. Backing off {delay} ms...")
            _sleep_ms(delay)
            delay = min(delay * 2, MAX_BACKOFF_MS)
            continue

        if response.status_code == 429:
            wait = _retry_after_ms(response, delay)
            print(f"  ⏳ Rate-limited. Retrying after {wait} ms...")
            _sleep_ms(wait)
            delay = min(delay * 2, MAX_BACKOFF_MS)
            continue

        if response.status_code == 200:
            try:
                return response.json()
            except ValueError as e:
                print(f"  ⚠️ Bad JSON from {path}: {e}")
                return None

        print(f"  ⚠️ HTTP {response.status_code}. Backing off {delay} ms...")
        _sleep_ms(delay)
        delay = min(delay * 2, MAX_BACKOFF_MS)

    return None


def discover_movies(api_key, page, vote_count_min):
    return get_json("discover/movie", api_key, {
        "sort_by": "popularity.desc",
        "vote_count.gte": vote_count_min,
        "page": page,
    })


def get_movie_details(api_key, movie_id):
    return get_json(f"movie/{movie_id}", api_key, {"append_to_response": "external_ids"})


def get_collection(api_key, collection_id):
    return get_json(f"collection/{collection_id}", api_key)


def _imdb_id(details):
    external = (details or {}).get("external_ids") or {}
    return external.get("imdb_id") or ""


def member_from_details(collection_id, collection_name, brief, details):
    """
    Build a MemberRow from a discover/collection entry plus its details.

    Popularity and votes come from the brief listing; title, date, IMDb id
    and poster prefer the details payload.
    """
    details = details or {}
    return MemberRow(
        collection_id=collection_id,
        collection_name=collection_name,
        tmdb_id=details.get("id") or brief.get("id"),
        title=details.get("title") or brief.get("title") or "",
        release_date=details.get("release_date") or brief.get("release_date"),
        popularity=float(brief.get("popularity") or 0.0),
        vote_average=float(brief.get("vote_average") or 0.0),
        vote_count=int(brief.get("vote_count") or 0),
        imdb_id=_imdb_id(details),
        poster_path=details.get("poster_path") or brief.get("poster_path"),
    )


def heartbeat(page, item_idx, total_pages, details_calls, started, lap_started, lap_calls):
    """Print crawl throughput and a rough ETA."""
    now = time.monotonic()
    lap_seconds = max(0.1, now - lap_started)
    rate = lap_calls / lap_seconds
    done = min(1.0, (page - 1 + item_idx / 20.0) / total_pages) if total_pages > 0 else 0.0
    elapsed = now - started
    eta = elapsed * (1 - done) / done if done > 0.001 else 0.0
    print(f"  💓 Details: {details_calls} | Page {page}/{total_pages} item {item_idx} | "
          f"{rate:.1f} req/s | Elapsed {elapsed:.0f}s | ETA ~{eta:.0f}s")


def crawl_franchises(api_key, pages, vote_count_min, sleep_ms):
    """
    Walk TMDb discover pages and collect every movie that belongs to a collection.

    Args:
        api_key: TMDb API key
        pages: Maximum number of discover pages
        vote_count_min: Minimum TMDb vote count for discovered movies
        sleep_ms: Pause between calls

    Returns:
        Tuple of (dictionary of collection_id -> FranchiseAgg, list of MemberRow)
    """
    franchises = {}
    members = []
    seen = set()
    details_calls = 0
    started = lap_started = time.monotonic()
    lap_calls = 0

    print("📡 Discovering movies & collecting collections...")
    for page in range(1, pages + 1):
        discover = discover_movies(api_key, page, vote_count_min)
        results = (discover or {}).get("results") or []
        if not results:
            print(f"📡 Page {page}: empty; stopping.")
            break

        total_pages = int(discover.get("total_pages") or 0)
        print(f"📡 Page {page}/{total_pages} | {len(results)} items")

        for idx, brief in enumerate(results, start=1):
            movie_id = brief.get("id")
            if movie_id is None or movie_id in seen:
                continue
            seen.add(movie_id)

            details = get_movie_details(api_key, movie_id)
            details_calls += 1
            lap_calls += 1

            collection = (details or {}).get("belongs_to_collection")
            if collection:
                agg = ensure_franchise(franchises, collection["id"], collection.get("name") or "")
                members.append(member_from_details(agg.collection_id, agg.name, brief, details))

            if details_calls % 10 == 0:
                heartbeat(page, idx, total_pages, details_calls, started, lap_started, lap_calls)
                lap_started, lap_calls = time.monotonic(), 0
            _sleep_ms(sleep_ms)

        print(f"📡 Page {page} complete | Collections: {len(franchises)} | Members: {len(members)}")
        _sleep_ms(sleep_ms)
        if total_pages > 0 and page >= total_pages:
            break

    print(f"✅ Crawl finished in {time.monotonic() - started:.0f}s. Details: {details_calls}, "
          f"Collections: {len(franchises)}, Members: {len(members)}")
    rescore_franchises(franchises, members)
    return franchises, members


def fill_missing_collection_parts(api_key, franchises, members, sleep_ms, fill_limit=None):
    """
    Add collection parts the crawl never discovered.

    Franchises are visited largest first; new parts are appended to
    `members` in release order.

    Returns:
        Number of members added
    """
    have = {}
    for m in members:
        have.setdefault(m.collection_id, set()).add(m.tmdb_id)

    added = 0
    ordered = sorted(franchises.values(), key=lambda f: (-f.movie_count, f.collection_id))
    for processed, agg in enumerate(ordered, start=1):
        collection = get_collection(api_key, agg.collection_id)
        parts = (collection or {}).get("parts") or []
        if not parts:
            _sleep_ms(sleep_ms)
            continue

        known_ids = have.setdefault(agg.collection_id, set())
        parts = sorted(parts, key=lambda p: (parse_release_date(p.get("release_date")) is None,
                                             p.get("release_date") or "",
                                             p.get("title") or ""))
        for part in parts:
            if part.get("id") in known_ids:
                continue

            details = get_movie_details(api_key, part["id"])
            members.append(member_from_details(agg.collection_id, agg.name, part, details))
            known_ids.add(part["id"])
            added += 1

            if added % 10 == 0:
                print(f"  🧩 Added {added} movies... (collection {processed}/{len(ordered)})")
            if fill_limit is not None and added >= fill_limit:
                print(f"  🧩 Hit fill limit ({fill_limit}). Stopping.")
                return added
            _sleep_ms(sleep_ms)

        _sleep_ms(sleep_ms)

    return added
