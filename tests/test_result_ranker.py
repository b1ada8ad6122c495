"""Unit tests for top-K result ranking."""

import unittest
import sys
import os

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_classifier.services.exceptions import RankError
from image_classifier.services.result_ranker import ResultRanker, rank_results


class TestRankResults(unittest.TestCase):
    """Test cases for rank_results."""

    def test_top_two(self):
        result = rank_results([10, 200, 50], ["cat", "dog", "fish"], k=2)
        self.assertEqual([r.as_tuple() for r in result], [("dog", 200), ("fish", 50)])
        self.assertEqual([r.index for r in result], [1, 2])

    def test_default_k_is_three(self):
        result = rank_results([1, 2, 3, 4, 5], list("abcde"))
        self.assertEqual([r.label for r in result], ["e", "d", "c"])

    def test_k_larger_than_labels(self):
        result = rank_results([3, 1], ["a", "b"], k=10)
        self.assertEqual(len(result), 2)

    def test_ties_keep_label_order(self):
        result = rank_results([7, 9, 7, 9], ["a", "b", "c", "d"], k=4)
        self.assertEqual([r.label for r in result], ["b", "d", "a", "c"])

    def test_inputs_not_mutated(self):
        scores = [5, 1, 9]
        labels = ["x", "y", "z"]
        rank_results(scores, labels, k=2)
        self.assertEqual(scores, [5, 1, 9])
        self.assertEqual(labels, ["x", "y", "z"])

    def test_numpy_scores(self):
        scores = np.array([0, 255, 128], dtype=np.uint8)
        result = rank_results(scores, ("a", "b", "c"), k=1)
        self.assertEqual(result[0].label, "b")
        self.assertEqual(result[0].confidence, 255)
        self.assertIsInstance(result[0].confidence, int)
        self.assertAlmostEqual(result[0].probability, 1.0)

    def test_min_confidence(self):
        result = rank_results([10, 200, 50], ["cat", "dog", "fish"], k=3, min_confidence=50)
        self.assertEqual([r.label for r in result], ["dog", "fish"])

    def test_errors(self):
        with self.assertRaises(RankError):
            rank_results([], ["a"])
        with self.assertRaises(RankError):
            rank_results([1], [])
        with self.assertRaises(RankError):
            rank_results([1, 2], ["a"])
        with self.assertRaises(RankError):
            rank_results([1], ["a"], k=0)


class TestResultRanker(unittest.TestCase):
    """Test cases for the ResultRanker wrapper."""

    def test_call(self):
        ranker = ResultRanker(top_k=1)
        result = ranker([1, 3, 2], ["a", "b", "c"])
        self.assertEqual([r.label for r in result], ["b"])

    def test_invalid_top_k(self):
        with self.assertRaises(ValueError):
            ResultRanker(top_k=0)


if __name__ == '__main__':
    unittest.main()
