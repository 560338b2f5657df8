"""
Unit tests for score fusion and rating policies.
"""

import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from models import AnalysisConfig, ConfigurationError, FranchiseMovie
from score_fusion import (
    FusionPolicy,
    blend,
    extract_signals,
    first_known,
    fuse_score,
    fuse_scores,
    known
)


def make_movie(rt=None, rt_aud=None, imdb=None, imdb_votes=None, tmdb_avg=0.0, title="Film"):
    return FranchiseMovie(
        collection_id=1,
        collection_name="Test Collection",
        tmdb_id=100,
        title=title,
        imdb_rating100=imdb,
        imdb_votes=imdb_votes,
        tmdb_vote_average=tmdb_avg,
        rt_critic_pct=rt,
        rt_audience_pct=rt_aud,
    )


class TestCombinators(unittest.TestCase):

    def test_known_rejects_missing_and_non_finite(self):
        self.assertIsNone(known(None))
        self.assertIsNone(known(float("nan")))
        self.assertIsNone(known(float("inf")))
        self.assertIsNone(known("abc"))
        self.assertEqual(known(72), 72.0)

    def test_first_known_priority(self):
        self.assertEqual(first_known(None, 60.0, 50.0), 60.0)
        self.assertEqual(first_known(float("nan"), None, 50.0), 50.0)
        self.assertIsNone(first_known(None, None))
        self.assertIsNone(first_known())

    def test_blend(self):
        """Blend of two known values; single known value passes through."""
        self.assertAlmostEqual(blend(80.0, 60.0, 0.7), 74.0)
        self.assertEqual(blend(80.0, None, 0.7), 80.0)
        self.assertEqual(blend(None, 60.0, 0.7), 60.0)
        self.assertIsNone(blend(None, None, 0.7))


class TestSignals(unittest.TestCase):

    def test_imdb_gated_by_votes(self):
        movie = make_movie(imdb=81.0, imdb_votes=4999)
        self.assertIsNone(extract_signals(movie, 5000)["imdb"])

        movie = make_movie(imdb=81.0, imdb_votes=5000)
        self.assertEqual(extract_signals(movie, 5000)["imdb"], 81.0)

    def test_imdb_unknown_votes_never_passes_gate(self):
        movie = make_movie(imdb=81.0, imdb_votes=None)
        self.assertIsNone(extract_signals(movie, 0)["imdb"])

    def test_tmdb_scaled_and_zero_is_unknown(self):
        self.assertEqual(extract_signals(make_movie(tmdb_avg=7.2), 5000)["tmdb"], 72.0)
        self.assertIsNone(extract_signals(make_movie(tmdb_avg=0.0), 5000)["tmdb"])


class TestFusionPolicies(unittest.TestCase):

    def setUp(self):
        self.full = make_movie(rt=90.0, rt_aud=85.0, imdb=78.0, imdb_votes=100000, tmdb_avg=7.0)
        self.tmdb_only = make_movie(tmdb_avg=6.5)

    def test_blend_scenario(self):
        """Two known signals blend as 80*0.7 + 60*0.3."""
        movie = make_movie(imdb=80.0, imdb_votes=100000, tmdb_avg=6.0)
        self.assertAlmostEqual(fuse_score(movie, FusionPolicy.BLENDED, 5000, 0.7), 74.0)

    def test_single_source_policies(self):
        cases = [
            (FusionPolicy.RT_ONLY, 90.0),
            (FusionPolicy.RT_AUDIENCE_ONLY, 85.0),
            (FusionPolicy.IMDB, 78.0),
            (FusionPolicy.TMDB, 70.0),
        ]
        for policy, expected in cases:
            with self.subTest(policy=policy):
                self.assertAlmostEqual(fuse_score(self.full, policy), expected)

    def test_strict_policies_do_not_fall_back(self):
        for policy in (FusionPolicy.RT_ONLY, FusionPolicy.RT_AUDIENCE_ONLY, FusionPolicy.IMDB):
            with self.subTest(policy=policy):
                self.assertIsNone(fuse_score(self.tmdb_only, policy))

    def test_fallback_policies(self):
        self.assertAlmostEqual(fuse_score(self.tmdb_only, FusionPolicy.RT), 65.0)
        self.assertAlmostEqual(fuse_score(self.tmdb_only, FusionPolicy.RT_AUDIENCE), 65.0)
        self.assertAlmostEqual(fuse_score(self.tmdb_only, FusionPolicy.AUTO), 65.0)

    def test_auto_prefers_critics_then_imdb(self):
        self.assertAlmostEqual(fuse_score(self.full, FusionPolicy.AUTO), 90.0)
        no_rt = make_movie(imdb=78.0, imdb_votes=100000, tmdb_avg=7.0)
        self.assertAlmostEqual(fuse_score(no_rt, FusionPolicy.AUTO), 78.0)

    def test_rt_falls_back_to_tmdb_before_imdb(self):
        movie = make_movie(imdb=78.0, imdb_votes=100000, tmdb_avg=7.0)
        self.assertAlmostEqual(fuse_score(movie, FusionPolicy.RT), 70.0)

    def test_blended_rt_policies(self):
        self.assertAlmostEqual(fuse_score(self.full, FusionPolicy.BLENDED_RT_TMDB, blend_weight=0.5), 80.0)
        self.assertAlmostEqual(fuse_score(self.full, FusionPolicy.BLENDED_RT_IMDB, blend_weight=0.5), 84.0)

    def test_blend_weight_outside_unit_interval_rejected(self):
        movie = make_movie(rt=80.0, tmdb_avg=6.0)
        for weight in (1.5, -0.1):
            with self.subTest(weight=weight):
                with self.assertRaises(ConfigurationError) as ctx:
                    fuse_score(movie, FusionPolicy.BLENDED_RT_TMDB, 5000, weight)
                self.assertEqual(ctx.exception.parameter, "blend_weight")

    def test_blend_weight_bounds_accepted(self):
        movie = make_movie(rt=80.0, tmdb_avg=6.0)
        self.assertAlmostEqual(fuse_score(movie, FusionPolicy.BLENDED_RT_TMDB, 5000, 1.0), 80.0)
        self.assertAlmostEqual(fuse_score(movie, FusionPolicy.BLENDED_RT_TMDB, 5000, 0.0), 60.0)

    def test_blended_with_one_side_missing(self):
        self.assertAlmostEqual(fuse_score(self.tmdb_only, FusionPolicy.BLENDED), 65.0)
        self.assertIsNone(fuse_score(make_movie(), FusionPolicy.BLENDED))

    def test_nothing_known_is_none_for_every_policy(self):
        empty = make_movie()
        for policy in FusionPolicy:
            with self.subTest(policy=policy):
                self.assertIsNone(fuse_score(empty, policy))

    def test_nan_signal_is_unknown(self):
        movie = make_movie(rt=float("nan"), tmdb_avg=6.0)
        self.assertAlmostEqual(fuse_score(movie, FusionPolicy.RT), 60.0)
        self.assertIsNone(fuse_score(movie, FusionPolicy.RT_ONLY))

    def test_policy_by_name(self):
        self.assertAlmostEqual(fuse_score(self.full, "imdb"), 78.0)

    def test_fuse_scores_uses_config(self):
        config = AnalysisConfig(fusion_policy=FusionPolicy.TMDB)
        scores = fuse_scores([self.full, self.tmdb_only, make_movie()], config)
        self.assertEqual(len(scores), 3)
        self.assertAlmostEqual(scores[0], 70.0)
        self.assertAlmostEqual(scores[1], 65.0)
        self.assertIsNone(scores[2])


class TestFusionPolicyNames(unittest.TestCase):

    def test_from_name(self):
        self.assertIs(FusionPolicy.from_name("blended_rt_imdb"), FusionPolicy.BLENDED_RT_IMDB)
        self.assertIs(FusionPolicy.from_name("  IMDB "), FusionPolicy.IMDB)
        self.assertIs(FusionPolicy.from_name(FusionPolicy.TMDB), FusionPolicy.TMDB)

    def test_unknown_name_falls_back_to_auto(self):
        self.assertIs(FusionPolicy.from_name("metacritic"), FusionPolicy.AUTO)
        self.assertIs(FusionPolicy.from_name(""), FusionPolicy.AUTO)
        self.assertIs(FusionPolicy.from_name(None), FusionPolicy.AUTO)

    def test_names_cover_every_policy(self):
        names = FusionPolicy.names()
        self.assertEqual(len(names), 10)
        self.assertIn("auto", names)
        self.assertIn("blended_rt_tmdb", names)


if __name__ == '__main__':
    unittest.main()
