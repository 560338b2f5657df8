"""
Unit tests for utility functions and constants.
"""

import unittest
from unittest.mock import patch
import sys
import os
from datetime import date, datetime

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from models import AnalysisConfig
from utils import (
    DEFAULT_ANALYSIS_SETTINGS,
    DEFAULT_PIPELINE_SETTINGS,
    POSTER_BASE_URL,
    get_api_key,
    is_future_release,
    parse_release_date,
    poster_url
)


class TestUtilsConstants(unittest.TestCase):
    """Test utility constants and configurations."""

    def test_analysis_defaults(self):
        expected = {
            "min_votes_gate": 5000, "blend_weight": 0.7, "adj_drop": 10, "cum_drop": 18,
            "window_size": 2, "window_avg_thresh": 65, "good_threshold": 70,
            "origin_grace": 8, "min_streak_length": 1, "origin_bias_amount": 1.0,
        }
        self.assertEqual(DEFAULT_ANALYSIS_SETTINGS, expected)

    def test_config_uses_defaults(self):
        config = AnalysisConfig()
        self.assertEqual(config.good_threshold, DEFAULT_ANALYSIS_SETTINGS["good_threshold"])
        self.assertEqual(config.window_size, DEFAULT_ANALYSIS_SETTINGS["window_size"])
        self.assertIs(config.validate(), config)

    def test_pipeline_defaults(self):
        for key in ("pages", "vote_count_min", "min_movies", "sleep_ms", "omdb_delay_ms", "output_dir"):
            self.assertIn(key, DEFAULT_PIPELINE_SETTINGS)
        self.assertGreaterEqual(DEFAULT_PIPELINE_SETTINGS["min_movies"], 1)


class TestReleaseDates(unittest.TestCase):

    def test_parse_release_date(self):
        test_cases = [
            ("2001-12-19", date(2001, 12, 19)),
            ("2001-12-19T00:00:00Z", date(2001, 12, 19)),
            (date(1999, 3, 31), date(1999, 3, 31)),
            (datetime(2010, 7, 16, 20, 30), date(2010, 7, 16)),
            ("", None),
            ("   ", None),
            (None, None),
            ("not a date", None),
            ("2001-13-45", None),
        ]
        for value, expected in test_cases:
            with self.subTest(value=value):
                self.assertEqual(parse_release_date(value), expected)

    def test_is_future_release(self):
        today = date(2024, 6, 1)
        self.assertFalse(is_future_release("2024-06-01", today))
        self.assertFalse(is_future_release("1977-05-25", today))
        self.assertTrue(is_future_release("2024-06-02", today))
        self.assertTrue(is_future_release(None, today))
        self.assertTrue(is_future_release("TBA", today))


class TestHelpers(unittest.TestCase):

    def test_get_api_key_prefers_secrets(self):
        with patch.dict(os.environ, {"TMDB_API_KEY": "from-env"}):
            self.assertEqual(get_api_key("TMDB_API_KEY", {"TMDB_API_KEY": "from-secrets"}), "from-secrets")
            self.assertEqual(get_api_key("TMDB_API_KEY", {}), "from-env")
            self.assertEqual(get_api_key("TMDB_API_KEY"), "from-env")

    def test_get_api_key_missing(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(get_api_key("OMDB_API_KEY"))
        with patch.dict(os.environ, {"OMDB_API_KEY": ""}):
            self.assertIsNone(get_api_key("OMDB_API_KEY"))

    def test_poster_url(self):
        self.assertEqual(poster_url("/abc.jpg"), f"{POSTER_BASE_URL}/abc.jpg")
        self.assertEqual(poster_url("https://example.org/p.jpg"), "https://example.org/p.jpg")
        self.assertIsNone(poster_url(None))
        self.assertIsNone(poster_url(""))


if __name__ == '__main__':
    unittest.main()
