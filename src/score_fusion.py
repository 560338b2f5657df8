"""
Score fusion: collapse a film's independent rating signals into one 0-100 score.
"""

import math
from enum import Enum

from utils import ConfigurationError


class FusionPolicy(Enum):
    """Rule for turning a film's rating signals into a single score."""
    RT_ONLY = "rt_only"
    RT_AUDIENCE_ONLY = "rt_audience_only"
    RT = "rt"
    RT_AUDIENCE = "rt_audience"
    BLENDED_RT_TMDB = "blended_rt_tmdb"
    BLENDED_RT_IMDB = "blended_rt_imdb"
    IMDB = "imdb"
    TMDB = "tmdb"
    BLENDED = "blended"
    AUTO = "auto"

    @classmethod
    def from_name(cls, name):
        """
        Resolve a policy name as written on the command line or in a CSV.

        Blank and unrecognised names fall back to AUTO.
        """
        if isinstance(name, cls):
            return name
        key = (name or "").strip().lower()
        for policy in cls:
            if policy.value == key:
                return policy
        return cls.AUTO

    @classmethod
    def names(cls):
        return [policy.value for policy in cls]


def known(value):
    """Return value as a float, or None when missing or not finite."""
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def first_known(*candidates):
    """First candidate that is a usable number, else None."""
    for candidate in candidates:
        value = known(candidate)
        if value is not None:
            return value
    return None


def blend(a, b, weight):
    """
    Weighted blend of two optional scores.

    Args:
        a: First score (weighted by `weight`)
        b: Second score (weighted by 1 - weight)
        weight: Blend weight in [0, 1]

    Returns:
        The blend when both are known, the known one otherwise, or None
    """
    a, b = known(a), known(b)
    if a is not None and b is not None:
        return a * weight + b * (1 - weight)
    return a if a is not None else b


def extract_signals(movie, min_votes_gate):
    """
    Pull the four 0-100 signals off a film record.

    IMDb counts only once it has at least `min_votes_gate` votes; TMDb's
    vote average (0-10) counts only when positive.
    """
    imdb_votes = getattr(movie, "imdb_votes", None)
    imdb100 = None
    if imdb_votes is not None and imdb_votes >= min_votes_gate:
        imdb100 = known(getattr(movie, "imdb_rating100", None))

    tmdb_average = known(getattr(movie, "tmdb_vote_average", None))
    tmdb100 = tmdb_average * 10.0 if tmdb_average is not None and tmdb_average > 0 else None

    return {
        "rt_critic": known(getattr(movie, "rt_critic_pct", None)),
        "rt_audience": known(getattr(movie, "rt_audience_pct", None)),
        "imdb": imdb100,
        "tmdb": tmdb100,
    }


def fuse_score(movie, policy=FusionPolicy.AUTO, min_votes_gate=5000, blend_weight=0.7):
    """
    Compute a film's single comparable score.

    Args:
        movie: Object exposing the rating attributes of FranchiseMovie
        policy: FusionPolicy (or its name)
        min_votes_gate: Minimum IMDb votes for the IMDb rating to count
        blend_weight: Weight of the first signal in blended policies

    Returns:
        Float in the 0-100 range, or None when the policy finds nothing

    Raises:
        ConfigurationError: If blend_weight lies outside [0, 1]
    """
    if not 0.0 <= blend_weight <= 1.0:
        raise ConfigurationError("blend_weight", f"must be within [0, 1], got {blend_weight}")

    policy = FusionPolicy.from_name(policy)
    s = extract_signals(movie, min_votes_gate)
    rt, rt_aud, imdb, tmdb = s["rt_critic"], s["rt_audience"], s["imdb"], s["tmdb"]

    if policy is FusionPolicy.RT_ONLY:
        score = rt
    elif policy is FusionPolicy.RT_AUDIENCE_ONLY:
        score = rt_aud
    elif policy is FusionPolicy.RT:
        score = first_known(rt, tmdb, imdb)
    elif policy is FusionPolicy.RT_AUDIENCE:
        score = first_known(rt_aud, tmdb, imdb)
    elif policy is FusionPolicy.BLENDED_RT_TMDB:
        score = blend(first_known(rt, tmdb), first_known(tmdb, rt), blend_weight)
    elif policy is FusionPolicy.BLENDED_RT_IMDB:
        score = blend(first_known(rt, imdb), first_known(imdb, rt), blend_weight)
    elif policy is FusionPolicy.IMDB:
        score = imdb
    elif policy is FusionPolicy.TMDB:
        score = tmdb
    elif policy is FusionPolicy.BLENDED:
        score = blend(first_known(imdb, tmdb), first_known(tmdb, imdb), blend_weight)
    elif policy is FusionPolicy.AUTO:
        score = first_known(rt, imdb, tmdb)
    else:
        raise ValueError(f"Unhandled fusion policy: {policy}")

    return known(score)


def fuse_scores(movies, config):
    """Fuse every film of an ordered sequence with one configuration."""
    return [
        fuse_score(m, config.fusion_policy, config.min_votes_gate, config.blend_weight)
        for m in movies
    ]
