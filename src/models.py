"""
Data records shared by the franchise analysis core and its collaborators.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from score_fusion import FusionPolicy
from utils import DEFAULT_ANALYSIS_SETTINGS, ConfigurationError


@dataclass
class AnalysisConfig:
    fusion_policy: FusionPolicy = FusionPolicy.AUTO
    min_votes_gate: int = DEFAULT_ANALYSIS_SETTINGS["min_votes_gate"]
    blend_weight: float = DEFAULT_ANALYSIS_SETTINGS["blend_weight"]
    adj_drop: float = DEFAULT_ANALYSIS_SETTINGS["adj_drop"]
    cum_drop: float = DEFAULT_ANALYSIS_SETTINGS["cum_drop"]
    window_size: int = DEFAULT_ANALYSIS_SETTINGS["window_size"]
    window_avg_thresh: float = DEFAULT_ANALYSIS_SETTINGS["window_avg_thresh"]
    good_threshold: float = DEFAULT_ANALYSIS_SETTINGS["good_threshold"]
    origin_grace: float = DEFAULT_ANALYSIS_SETTINGS["origin_grace"]
    min_streak_length: int = DEFAULT_ANALYSIS_SETTINGS["min_streak_length"]
    origin_bias_amount: float = DEFAULT_ANALYSIS_SETTINGS["origin_bias_amount"]

    def validate(self):
        """
        Check the parameters the analysis cannot run without.

        Returns:
            The config itself, so calls can be chained.

        Raises:
            ConfigurationError: naming the first offending parameter.
        """
        if not 0.0 <= self.blend_weight <= 1.0:
            raise ConfigurationError("blend_weight", f"must be within [0, 1], got {self.blend_weight}")
        if self.window_size < 1:
            raise ConfigurationError("window_size", f"must be at least 1, got {self.window_size}")
        if self.min_streak_length < 1:
            raise ConfigurationError("min_streak_length", f"must be at least 1, got {self.min_streak_length}")
        return self


@dataclass
class MemberRow:
    """One TMDb movie known to belong to a collection."""
    collection_id: int
    collection_name: str
    tmdb_id: int
    title: str
    release_date: Optional[str] = None
    popularity: float = 0.0
    vote_average: float = 0.0
    vote_count: int = 0
    imdb_id: str = ""
    poster_path: Optional[str] = None


@dataclass
class FranchiseAgg:
    collection_id: int
    name: str
    movie_count: int = 0
    sum_popularity: float = 0.0
    total_vote_count: int = 0
    weighted_vote_sum: float = 0.0
    avg_vote_weighted: float = 0.0
    max_popularity: float = 0.0
    score: float = 0.0


@dataclass
class MovieRatingRow:
    """External ratings for one movie (IMDb via OMDb, optional Rotten Tomatoes)."""
    collection_id: int
    tmdb_id: int
    imdb_id: str = ""
    imdb_rating100: Optional[float] = None
    imdb_votes: Optional[int] = None
    error: Optional[str] = None
    rt_critic_pct: Optional[float] = None
    rt_audience_pct: Optional[float] = None

    def has_usable_ratings(self):
        return (
            self.rt_critic_pct is not None
            or self.rt_audience_pct is not None
            or self.imdb_rating100 is not None
            or (self.imdb_votes is not None and self.imdb_votes > 0)
        )


@dataclass
class FranchiseMovie:
    """
    A released film with every quality signal the fuser may use.

    Each signal is independently optional; None means unknown, never zero.
    """
    collection_id: int
    collection_name: str
    tmdb_id: int
    title: str
    release_date: Optional[date] = None
    imdb_id: str = ""
    popularity: float = 0.0
    tmdb_vote_average: float = 0.0
    tmdb_vote_count: int = 0
    imdb_rating100: Optional[float] = None
    imdb_votes: Optional[int] = None
    rt_critic_pct: Optional[float] = None
    rt_audience_pct: Optional[float] = None
    omdb_error: Optional[str] = None
    poster_path: Optional[str] = None


@dataclass(frozen=True)
class RunAnalysis:
    peak_index: Optional[int]
    fall_index: Optional[int]
    good_run_length: int


@dataclass(frozen=True)
class StreakCandidate:
    start: int
    end: int
    average: Optional[float]

    @property
    def length(self):
        return self.end - self.start + 1


@dataclass
class RunResult:
    """Per-franchise analysis output; every index refers to the ordered sequence."""
    collection_id: int
    collection_name: str
    film_count: int
    good_run_length: int
    peak_index: Optional[int] = None
    peak_title: Optional[str] = None
    fall_index: Optional[int] = None
    fall_title: Optional[str] = None
    cliff_drop: Optional[float] = None
    avg_first_n: Optional[float] = None
    avg_all: Optional[float] = None
    has_missing_ratings: bool = False
    streak_start: Optional[int] = None
    streak_end: Optional[int] = None
    streak_avg: Optional[float] = None
    good_indices: List[int] = field(default_factory=list)
    good_threshold: float = DEFAULT_ANALYSIS_SETTINGS["good_threshold"]

    @property
    def streak_length(self):
        if self.streak_start is None or self.streak_end is None:
            return 0
        return self.streak_end - self.streak_start + 1

    @property
    def good_indices_csv(self):
        return ";".join(str(i) for i in self.good_indices)
