"""
Unit tests for the command-line pipeline.
"""

import unittest
from unittest.mock import patch
import sys
import os
import shutil
import tempfile

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from models import FranchiseAgg, MemberRow, MovieRatingRow
from persistence import load_movie_ratings, load_runs, output_paths, save_franchises, save_members
from pipeline import build_parser, config_from_args, main
from score_fusion import FusionPolicy

NO_KEYS = {"TMDB_API_KEY": "", "OMDB_API_KEY": ""}


def saga_members():
    return [
        MemberRow(10, "Saga Collection", 1, "One", "2000-01-01", 40.0, 9.0, 5000, "tt1"),
        MemberRow(10, "Saga Collection", 2, "Two", "2002-01-01", 30.0, 8.5, 4000, "tt2"),
        MemberRow(10, "Saga Collection", 3, "Three", "2004-01-01", 20.0, 6.0, 3000, "tt3"),
        MemberRow(10, "Saga Collection", 4, "Four", "2006-01-01", 10.0, 5.5, 2000, "tt4"),
        MemberRow(20, "Solo Collection", 5, "Only", "2010-01-01", 5.0, 7.0, 100, "tt5"),
        MemberRow(10, "Saga Collection", 6, "Five", "2999-01-01", 1.0, 0.0, 0, ""),
    ]


class TestArguments(unittest.TestCase):

    def test_defaults(self):
        args = build_parser().parse_args([])
        config = config_from_args(args)

        self.assertEqual(args.output_dir, "out")
        self.assertEqual(args.min_movies, 2)
        self.assertIs(config.fusion_policy, FusionPolicy.AUTO)
        self.assertEqual(config.window_size, 2)
        self.assertEqual(config.origin_bias_amount, 1.0)

    def test_analysis_options(self):
        args = build_parser().parse_args([
            "--rating-source", "blended", "--blend-alpha", "0.4", "--fall-k", "3",
            "--good-threshold", "75", "--min-streak-len", "2", "--no-prefer-origin",
        ])
        config = config_from_args(args)

        self.assertIs(config.fusion_policy, FusionPolicy.BLENDED)
        self.assertEqual(config.blend_weight, 0.4)
        self.assertEqual(config.window_size, 3)
        self.assertEqual(config.good_threshold, 75)
        self.assertEqual(config.min_streak_length, 2)
        self.assertEqual(config.origin_bias_amount, 0.0)

    def test_unknown_rating_source_rejected(self):
        with patch('sys.stderr'):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(["--rating-source", "metacritic"])


@patch('builtins.print')
class TestMain(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.out = os.path.join(self.temp_dir, "out")
        self.paths = output_paths(self.out)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def seed_base_csvs(self):
        franchises = {10: FranchiseAgg(10, "Saga Collection"), 20: FranchiseAgg(20, "Solo Collection")}
        save_franchises(franchises.values(), self.paths["franchises"])
        save_members(saga_members(), self.paths["members"])

    def test_invalid_configuration_exits_with_error(self, mock_print):
        self.assertEqual(main(["--blend-alpha", "1.5", "--output-dir", self.out]), 1)
        self.assertFalse(os.path.exists(self.paths["runs"]))

    def test_report_only_requires_cached_csvs(self, mock_print):
        self.assertEqual(main(["--report-only", "--output-dir", self.out]), 1)

    def test_crawl_requires_tmdb_key(self, mock_print):
        with patch.dict(os.environ, NO_KEYS):
            self.assertEqual(main(["--output-dir", self.out]), 1)

    def test_report_only_rebuilds_runs(self, mock_print):
        self.seed_base_csvs()

        with patch.dict(os.environ, NO_KEYS):
            code = main(["--report-only", "--rating-source", "tmdb", "--output-dir", self.out])

        self.assertEqual(code, 0)
        runs = load_runs(self.paths["runs"])
        self.assertEqual(len(runs), 1)
        saga = runs[0]
        self.assertEqual(saga.collection_id, 10)
        self.assertEqual(saga.film_count, 4)
        self.assertEqual((saga.peak_index, saga.fall_index, saga.good_run_length), (0, 2, 2))
        self.assertEqual(saga.fall_title, "Three")
        self.assertEqual((saga.streak_start, saga.streak_end), (0, 1))

        ratings = load_movie_ratings(self.paths["ratings"])
        self.assertEqual(sorted(r.tmdb_id for r in ratings), [1, 2, 3, 4])

    @patch('pipeline.fetch_ratings')
    @patch('pipeline.fill_missing_collection_parts')
    @patch('pipeline.crawl_franchises')
    def test_crawl_fill_and_ratings(self, mock_crawl, mock_fill, mock_fetch, mock_print):
        members = saga_members()
        franchises = {10: FranchiseAgg(10, "Saga Collection"), 20: FranchiseAgg(20, "Solo Collection")}
        mock_crawl.return_value = (franchises, members)
        mock_fill.return_value = 0
        mock_fetch.side_effect = lambda ms, key, delay, existing: [
            MovieRatingRow(m.collection_id, m.tmdb_id, m.imdb_id, imdb_rating100=80.0, imdb_votes=100000)
            for m in ms
        ]

        with patch.dict(os.environ, {"TMDB_API_KEY": "tmdb", "OMDB_API_KEY": "omdb"}):
            code = main(["--pages", "2", "--sleep-ms", "0", "--rating-source", "imdb", "--output-dir", self.out])

        self.assertEqual(code, 0)
        mock_crawl.assert_called_once_with("tmdb", 2, 100, 0)
        mock_fill.assert_called_once()
        fetched_ids = [m.tmdb_id for m in mock_fetch.call_args.args[0]]
        self.assertEqual(sorted(fetched_ids), [1, 2, 3, 4])

        for key in ("franchises", "members", "ratings", "runs"):
            self.assertTrue(os.path.exists(self.paths[key]))

        saga = load_runs(self.paths["runs"])[0]
        self.assertIsNone(saga.fall_index)
        self.assertEqual(saga.good_run_length, 4)

    @patch('pipeline.fetch_ratings')
    def test_no_ratings_skips_omdb(self, mock_fetch, mock_print):
        self.seed_base_csvs()

        with patch.dict(os.environ, {"TMDB_API_KEY": "", "OMDB_API_KEY": "omdb"}):
            code = main(["--reuse", "--no-ratings", "--output-dir", self.out])

        self.assertEqual(code, 0)
        mock_fetch.assert_not_called()


if __name__ == '__main__':
    unittest.main()
