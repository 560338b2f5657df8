"""
Command-line pipeline: crawl TMDb franchises, gather ratings, analyse every run.
"""

import argparse
import os
import sys

from franchise_detection import (
    debug_franchise_sequences, exclude_future_releases, join_ratings,
    rescore_franchises, select_franchises
)
from models import AnalysisConfig, ConfigurationError
from omdb_client import fetch_ratings
from persistence import (
    load_franchises, load_members, load_movie_ratings, output_paths,
    save_franchises, save_members, save_movie_ratings, save_runs
)
from run_summary import build_runs
from score_fusion import FusionPolicy
from tmdb_client import crawl_franchises, fill_missing_collection_parts
from utils import DEFAULT_ANALYSIS_SETTINGS, DEFAULT_PIPELINE_SETTINGS, get_api_key


def build_parser():
    a = DEFAULT_ANALYSIS_SETTINGS
    p = DEFAULT_PIPELINE_SETTINGS
    parser = argparse.ArgumentParser(
        prog="franchise-falloff",
        description="Find where film franchises peak, fall off, and their best run of good films.",
    )

    crawl = parser.add_argument_group("crawl")
    crawl.add_argument("--reuse", action="store_true", help="Load franchises/members from the output CSVs when present")
    crawl.add_argument("--report-only", action="store_true", help="Rebuild runs from cached CSVs without any API calls")
    crawl.add_argument("--no-fill", action="store_true", help="Skip filling missing collection parts")
    crawl.add_argument("--fill-limit", type=int, default=None)
    crawl.add_argument("--pages", type=int, default=p["pages"])
    crawl.add_argument("--vote-count-min", type=int, default=p["vote_count_min"])
    crawl.add_argument("--min-movies", type=int, default=p["min_movies"])
    crawl.add_argument("--sleep-ms", type=int, default=p["sleep_ms"])
    crawl.add_argument("--include-future", action="store_true", help="Keep unreleased films in the analysis")
    crawl.add_argument("--no-ratings", action="store_true", help="Do not query OMDb")
    crawl.add_argument("--omdb-delay-ms", type=int, default=p["omdb_delay_ms"])
    crawl.add_argument("--output-dir", default=p["output_dir"])
    crawl.add_argument("--debug", action="store_true", help="Print the film order of the first franchises")

    analysis = parser.add_argument_group("analysis")
    analysis.add_argument("--rating-source", choices=FusionPolicy.names(), default=FusionPolicy.AUTO.value)
    analysis.add_argument("--min-imdb-votes", type=int, default=a["min_votes_gate"])
    analysis.add_argument("--blend-alpha", type=float, default=a["blend_weight"])
    analysis.add_argument("--fall-adj", type=float, default=a["adj_drop"])
    analysis.add_argument("--fall-cum", type=float, default=a["cum_drop"])
    analysis.add_argument("--fall-k", type=int, default=a["window_size"])
    analysis.add_argument("--fall-thresh", type=float, default=a["window_avg_thresh"])
    analysis.add_argument("--good-threshold", type=float, default=a["good_threshold"])
    analysis.add_argument("--first-film-grace", type=float, default=a["origin_grace"])
    analysis.add_argument("--min-streak-len", type=int, default=a["min_streak_length"])
    analysis.add_argument("--origin-bias", type=float, default=a["origin_bias_amount"],
                          help="Ranking bonus for streaks starting with the first film")
    analysis.add_argument("--no-prefer-origin", action="store_true", help="Same as --origin-bias 0")
    return parser


def config_from_args(args):
    """Build and validate the analysis configuration from parsed arguments."""
    return AnalysisConfig(
        fusion_policy=FusionPolicy.from_name(args.rating_source),
        min_votes_gate=args.min_imdb_votes,
        blend_weight=args.blend_alpha,
        adj_drop=args.fall_adj,
        cum_drop=args.fall_cum,
        window_size=args.fall_k,
        window_avg_thresh=args.fall_thresh,
        good_threshold=args.good_threshold,
        origin_grace=args.first_film_grace,
        min_streak_length=args.min_streak_len,
        origin_bias_amount=0.0 if args.no_prefer_origin else args.origin_bias,
    ).validate()


def _cached_base(paths):
    return os.path.exists(paths["franchises"]) and os.path.exists(paths["members"])


def load_base(paths):
    franchises = {f.collection_id: f for f in load_franchises(paths["franchises"])}
    members = load_members(paths["members"])
    return franchises, members


def gather_base(args, paths, tmdb_key):
    """
    Load or crawl the franchise/member base tables.

    Returns:
        Tuple of (franchises dictionary, members list)
    """
    if args.report_only:
        if not _cached_base(paths):
            raise RuntimeError(
                f"Missing {paths['franchises']} or {paths['members']}. Run a TMDb crawl once to generate them."
            )
        print("📂 Rebuilding from cached TMDb CSVs only.")
        return load_base(paths)

    if args.reuse and _cached_base(paths):
        franchises, members = load_base(paths)
        print(f"📂 Loaded {len(franchises)} franchises, {len(members)} members.")
    else:
        if args.reuse:
            print("📂 CSVs not found; falling back to TMDb crawl.")
        if not tmdb_key:
            raise RuntimeError("TMDb crawl requested. Set TMDB_API_KEY or run with --report-only.")
        franchises, members = crawl_franchises(tmdb_key, args.pages, args.vote_count_min, args.sleep_ms)
        save_franchises(franchises.values(), paths["franchises"])
        save_members(members, paths["members"])
        print(f"💾 Wrote {paths['franchises']}, {paths['members']}")

    if not args.no_fill and tmdb_key:
        print("🧩 Checking TMDb collection parts for missing movies...")
        added = fill_missing_collection_parts(tmdb_key, franchises, members, args.sleep_ms, args.fill_limit)
        print(f"🧩 Added {added} missing movies.")
        rescore_franchises(franchises, members)
        save_franchises(franchises.values(), paths["franchises"])
        save_members(members, paths["members"])
        print("💾 Updated base CSVs after fill.")
    else:
        print("🧩 Fill skipped (either --no-fill set or no TMDB_API_KEY).")

    return franchises, members


def gather_ratings(args, paths, members, config, omdb_key):
    """Cached ratings, topped up from OMDb when the rating source needs them."""
    existing = load_movie_ratings(paths["ratings"]) if os.path.exists(paths["ratings"]) else []
    if args.report_only or args.no_ratings or config.fusion_policy is FusionPolicy.TMDB:
        return existing
    if not omdb_key:
        print("🍅 No OMDB_API_KEY; using cached ratings only.")
        return existing
    return fetch_ratings(members, omdb_key, args.omdb_delay_ms, existing)


def run(args):
    config = config_from_args(args)
    paths = output_paths(args.output_dir)
    os.makedirs(args.output_dir, exist_ok=True)

    print(f"⚙️  report-only={'yes' if args.report_only else 'no'} reuse={'yes' if args.reuse else 'no'} "
          f"no-fill={'yes' if args.no_fill else 'no'}")
    print(f"⚙️  source={config.fusion_policy.value}, minImdbVotes={config.min_votes_gate}, "
          f"blendAlpha={config.blend_weight}, no-ratings={'yes' if args.no_ratings else 'no'}")
    print(f"⚙️  good-threshold={config.good_threshold}, first-film-grace={config.origin_grace}, "
          f"min-streak-len={config.min_streak_length}, origin-bias={config.origin_bias_amount}")

    tmdb_key = get_api_key("TMDB_API_KEY")
    omdb_key = get_api_key("OMDB_API_KEY")

    franchises, members = gather_base(args, paths, tmdb_key)

    if not args.include_future:
        members, removed = exclude_future_releases(members)
        if removed:
            print(f"🗓️  Excluded {removed} unreleased films (future/unknown dates).")
    rescore_franchises(franchises, members)

    kept, kept_members = select_franchises(franchises, members, args.min_movies)
    print(f"🎬 {len(kept)} franchises with at least {args.min_movies} released films.")

    ratings = gather_ratings(args, paths, kept_members, config, omdb_key)
    joined = join_ratings(kept_members, ratings)
    if args.debug:
        debug_franchise_sequences(joined)

    runs = build_runs(joined, config)

    save_movie_ratings(joined, paths["ratings"])
    save_runs(runs, paths["runs"])
    print(f"💾 Wrote {paths['ratings']}, {paths['runs']}")
    print(f"✅ Done. {len(runs)} franchise runs in {args.output_dir}/ (view with: streamlit run main_app.py)")
    return runs


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1
    except RuntimeError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
