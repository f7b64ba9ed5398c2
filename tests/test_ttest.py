"""Tests for evidence_gate.stats.ttest — Welch's t-test and Cohen's d."""

from __future__ import annotations

import json
import math
import unittest

from evidence_gate.stats.ttest import WelchResult, effect_size_label, welch_ttest

GROUP_A = [100, 102, 98, 104, 96, 101, 99, 103, 97, 100]
GROUP_B = [120, 122, 118, 124, 116, 121, 119, 123, 117, 120]


class TestEffectSizeLabel(unittest.TestCase):
    """Tests for effect_size_label()."""

    def test_labels(self) -> None:
        """Each band maps to its Cohen label regardless of sign."""
        self.assertEqual(effect_size_label(0.1), "negligible")
        self.assertEqual(effect_size_label(-0.1), "negligible")
        self.assertEqual(effect_size_label(0.3), "small")
        self.assertEqual(effect_size_label(-0.4), "small")
        self.assertEqual(effect_size_label(0.6), "medium")
        self.assertEqual(effect_size_label(-0.7), "medium")
        self.assertEqual(effect_size_label(1.0), "large")
        self.assertEqual(effect_size_label(-1.5), "large")

    def test_boundaries(self) -> None:
        """Band edges belong to the larger label."""
        self.assertEqual(effect_size_label(0.2), "small")
        self.assertEqual(effect_size_label(0.5), "medium")
        self.assertEqual(effect_size_label(0.8), "large")
        self.assertEqual(effect_size_label(float("inf")), "large")


class TestWelchTTest(unittest.TestCase):
    """Tests for welch_ttest()."""

    def test_clearly_different(self) -> None:
        """Groups 20 apart with small spread are significant and large."""
        result = welch_ttest(GROUP_A, GROUP_B)
        self.assertIsInstance(result, WelchResult)
        self.assertTrue(result.significant)
        self.assertLess(result.p_value, 0.001)
        self.assertGreater(abs(result.effect_size), 0.8)
        self.assertEqual(result.effect_size_label, "large")

    def test_direction(self) -> None:
        """Sample A lower than B gives a negative difference, t and d."""
        result = welch_ttest(GROUP_A, GROUP_B)
        self.assertAlmostEqual(result.mean_diff, -20.0)
        self.assertLess(result.t, 0)
        self.assertLess(result.effect_size, 0)

    def test_same_population(self) -> None:
        """Samples from the same population are not significant."""
        b = [101, 99, 103, 97, 100, 102, 98, 104, 96, 101]
        result = welch_ttest(GROUP_A, b)
        self.assertFalse(result.significant)
        self.assertGreater(result.p_value, 0.05)

    def test_unequal_variances_reduce_df(self) -> None:
        """All variance in one sample drops df to that sample's n - 1."""
        a = [100.0] * 10
        b = [80, 90, 100, 110, 120, 85, 95, 105, 115, 100]
        result = welch_ttest(a, b)
        self.assertLess(result.df, 18)
        self.assertAlmostEqual(result.df, 9.0)

    def test_equal_variances_df(self) -> None:
        """Equal sizes and variances give the pooled df n1 + n2 - 2."""
        a = [1.0, 2.0, 3.0, 4.0, 5.0]
        b = [11.0, 12.0, 13.0, 14.0, 15.0]
        self.assertAlmostEqual(welch_ttest(a, b).df, 8.0)

    def test_known_t(self) -> None:
        """mean diff -10, variances 2.5 each, n=5: t = -10 / sqrt(1) = -10."""
        result = welch_ttest([1.0, 2.0, 3.0, 4.0, 5.0], [11.0, 12.0, 13.0, 14.0, 15.0])
        self.assertAlmostEqual(result.t, -10.0)
        self.assertAlmostEqual(result.effect_size, -10.0 / math.sqrt(2.5))

    def test_ci_contains_mean_diff(self) -> None:
        """The confidence interval brackets the mean difference."""
        a = [10, 12, 11, 13, 9, 11, 10, 12, 11, 10]
        b = [15, 17, 16, 18, 14, 16, 15, 17, 16, 15]
        result = welch_ttest(a, b)
        lower, upper = result.ci95
        self.assertLessEqual(lower, result.mean_diff)
        self.assertGreaterEqual(upper, result.mean_diff)

    def test_ci_contains_mean_diff_many_pairs(self) -> None:
        """The interval brackets the difference for uneven sizes and signs."""
        pairs = [
            ([1.0, 5.0, 2.0], [3.0, 3.5, 9.0, 1.0]),
            ([0.1, 0.2, 0.15, 0.4], [0.3, 0.35, 0.2]),
            (GROUP_A, GROUP_B),
            ([-5.0, -3.0, -4.0, -6.0], [-5.5, -2.0, -4.5]),
        ]
        for a, b in pairs:
            result = welch_ttest(a, b)
            self.assertLessEqual(result.ci95[0], result.mean_diff)
            self.assertGreaterEqual(result.ci95[1], result.mean_diff)

    def test_ci_excludes_zero_when_significant(self) -> None:
        """A significant negative difference has an interval below zero."""
        result = welch_ttest(GROUP_A, GROUP_B)
        self.assertLess(result.ci95[1], 0)

    def test_alpha_controls_significance(self) -> None:
        """Alpha changes the decision but not the p-value."""
        a = [100, 102, 98, 104, 96, 101, 99, 103, 97, 100]
        b = [102, 104, 100, 106, 98, 103, 101, 105, 99, 102]
        lenient = welch_ttest(a, b, alpha=0.5)
        strict = welch_ttest(a, b, alpha=0.001)
        self.assertEqual(lenient.p_value, strict.p_value)
        self.assertTrue(lenient.significant)
        self.assertFalse(strict.significant)

    def test_identical_constant_samples(self) -> None:
        """Equal constant samples give t = 0 and p = 1."""
        result = welch_ttest([5.0, 5.0, 5.0], [5.0, 5.0, 5.0])
        self.assertEqual(result.t, 0.0)
        self.assertEqual(result.p_value, 1.0)
        self.assertFalse(result.significant)
        self.assertEqual(result.effect_size, 0.0)
        self.assertEqual(result.ci95, (0.0, 0.0))

    def test_different_constant_samples(self) -> None:
        """Different constant samples give infinite t and p = 0."""
        result = welch_ttest([5.0, 5.0, 5.0], [3.0, 3.0, 3.0])
        self.assertEqual(result.t, float("inf"))
        self.assertEqual(result.p_value, 0.0)
        self.assertTrue(result.significant)
        self.assertEqual(result.effect_size, float("inf"))
        self.assertEqual(result.ci95, (2.0, 2.0))

    def test_tiny_variances(self) -> None:
        """Values near 1e-160 give the same df, t and p as the unscaled data."""
        a = [1.0, 2.0, 3.0]
        b = [4.0, 5.0, 7.0]
        unscaled = welch_ttest(a, b)
        tiny = welch_ttest([v * 1e-160 for v in a], [v * 1e-160 for v in b])
        self.assertTrue(math.isfinite(tiny.df))
        self.assertAlmostEqual(tiny.df, unscaled.df, delta=0.05)
        self.assertAlmostEqual(tiny.t, unscaled.t, delta=0.05)
        self.assertAlmostEqual(tiny.p_value, unscaled.p_value, delta=0.01)

    def test_scale_invariant_df(self) -> None:
        """Rescaling both samples leaves the Welch-Satterthwaite df unchanged."""
        a = [10.0, 12.0, 11.0, 13.0, 9.0]
        b = [11.0, 13.5, 12.0, 14.0, 10.0, 12.5, 15.0]
        base = welch_ttest(a, b)
        scaled = welch_ttest([v * 1000 for v in a], [v * 1000 for v in b])
        self.assertAlmostEqual(base.df, scaled.df, places=9)

    def test_p_value_in_unit_interval(self) -> None:
        """Identical samples give p = 1 without exceeding it."""
        result = welch_ttest([1.0, 2.0, 3.0], [1.0, 2.0, 3.0])
        self.assertAlmostEqual(result.p_value, 1.0)
        self.assertLessEqual(result.p_value, 1.0)

    def test_to_dict_is_json(self) -> None:
        """Infinite t serializes as a string."""
        d = welch_ttest([5.0, 5.0, 5.0], [3.0, 3.0, 3.0]).to_dict()
        self.assertEqual(d["t"], "inf")
        self.assertEqual(len(d["ci95"]), 2)
        json.dumps(d, allow_nan=False)

    def test_scipy_agreement(self) -> None:
        """t and p match scipy.stats.ttest_ind(equal_var=False)."""
        try:
            from scipy.stats import ttest_ind
        except ImportError:
            self.skipTest("scipy not available")

        a = [10.0, 12.0, 11.0, 13.0, 9.0, 11.0, 10.0, 12.0, 11.0, 10.0]
        b = [11.0, 13.5, 12.0, 14.0, 10.0, 12.5, 12.0, 13.0, 11.0, 12.0, 15.0]
        ours = welch_ttest(a, b)
        ref = ttest_ind(a, b, equal_var=False)
        self.assertAlmostEqual(ours.t, float(ref.statistic), places=8)
        self.assertAlmostEqual(ours.p_value, float(ref.pvalue), places=6)


if __name__ == "__main__":
    unittest.main()
