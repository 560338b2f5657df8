"""
Utility functions and constants for the franchise fall-off analysis.
"""

import os
from datetime import date, datetime, timezone

# Default analysis knobs (see AnalysisConfig)
DEFAULT_ANALYSIS_SETTINGS = {
    "min_votes_gate": 5000,
    "blend_weight": 0.7,
    "adj_drop": 10,
    "cum_drop": 18,
    "window_size": 2,
    "window_avg_thresh": 65,
    "good_threshold": 70,
    "origin_grace": 8,
    "min_streak_length": 1,
    "origin_bias_amount": 1.0,
}

# Crawl defaults
DEFAULT_PIPELINE_SETTINGS = {
    "pages": 100,
    "vote_count_min": 100,
    "min_movies": 2,
    "sleep_ms": 250,
    "omdb_delay_ms": 150,
    "output_dir": "out",
}

TMDB_API_BASE = "https://api.themoviedb.org/3"
OMDB_API_BASE = "https://www.omdbapi.com/"
TMDB_MOVIE_PAGE = "https://www.themoviedb.org/movie/{tmdb_id}"
POSTER_BASE_URL = "https://image.tmdb.org/t/p/w342"

# Number of leading films averaged for the "first N" summary
FIRST_N_FILMS = 3


class ConfigurationError(ValueError):
    """Raised when an analysis parameter cannot be used; `parameter` names it."""

    def __init__(self, parameter, message):
        super().__init__(f"{parameter}: {message}")
        self.parameter = parameter


def parse_release_date(value):
    """
    Parse a TMDb-style release date.

    Args:
        value: 'YYYY-MM-DD' string, date/datetime, or empty

    Returns:
        datetime.date or None when missing or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def is_future_release(value, today=None):
    """
    Check whether a release date lies strictly after today.

    Unknown dates count as future so that unreleased films stay out of the
    analysis unless explicitly included.
    """
    release = parse_release_date(value)
    if release is None:
        return True
    today = today or datetime.now(timezone.utc).date()
    return release > today


def get_api_key(name, secrets=None):
    """Look up an API key in the given secrets mapping, then in the environment."""
    if secrets is not None:
        try:
            if name in secrets and secrets[name]:
                return secrets[name]
        except (KeyError, AttributeError):
            pass
    value = os.environ.get(name, "")
    return value or None


def poster_url(poster_path, base_url=POSTER_BASE_URL):
    if not poster_path:
        return None
    if poster_path.lower().startswith("http"):
        return poster_path
    return f"{base_url}{poster_path}"
