"""Tests for evidence_gate.cli — Click CLI entry point."""

from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from evidence_gate.cli import main, parse_sample

BASELINE = "100 102 98 101 99 103 97 100 101 99"
SHIFTED = "150 152 148 151 149 153 147 150 151 149"
SAME = "101 99 103 100 98 102 100 99 101 100"


def _reset_logging() -> None:
    logger = logging.getLogger("evidence_gate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class CliTestCase(unittest.TestCase):
    """Base class: temp dir for sample files, logging reset after each test."""

    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        self.runner = CliRunner()

    def tearDown(self) -> None:
        _reset_logging()

    def write(self, name: str, text: str) -> str:
        path = self.tmp / name
        path.write_text(text, encoding="utf-8")
        return str(path)


# ---------------------------------------------------------------------------
# Sample parsing
# ---------------------------------------------------------------------------


class TestParseSample(unittest.TestCase):
    """Tests for parse_sample()."""

    def test_json_array(self) -> None:
        self.assertEqual(parse_sample("[1, 2.5, 3]"), [1.0, 2.5, 3.0])

    def test_separated_numbers(self) -> None:
        self.assertEqual(parse_sample("1,2 3\n4\t5, 6"), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    def test_blank(self) -> None:
        self.assertEqual(parse_sample("  \n"), [])

    def test_rejects_text(self) -> None:
        with self.assertRaises(ValueError):
            parse_sample("1 two 3")

    def test_rejects_non_finite(self) -> None:
        with self.assertRaises(ValueError):
            parse_sample("1 nan 3")
        with self.assertRaises(ValueError):
            parse_sample("1 inf")

    def test_rejects_bad_json(self) -> None:
        for text in ("[1, 2", "[true, 1]", '[1, "x"]', "[[1]]"):
            with self.assertRaises(ValueError):
                parse_sample(text)

    def test_rejects_json_object(self) -> None:
        with self.assertRaises(ValueError):
            parse_sample('{"a": 1}')


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------


class TestMain(unittest.TestCase):
    """Tests for the top-level group."""

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("compare", "diagnose", "outliers", "normality"):
            self.assertIn(command, result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)

    def test_compare_help(self) -> None:
        result = CliRunner().invoke(main, ["compare", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--threshold", result.output)
        self.assertIn("--profile", result.output)
        self.assertIn("--json", result.output)


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


class TestCompare(CliTestCase):
    """Tests for the compare command."""

    def test_significant_exits_zero(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(main, ["compare", a, b, "--threshold", "10"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("SIGNIFICANT", result.output)
        self.assertIn("Gates", result.output)
        self.assertIn("VERDICT: Significant difference.", result.output)

    def test_not_significant_exits_one(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SAME)
        result = self.runner.invoke(main, ["compare", a, b, "--threshold", "10"])
        self.assertEqual(result.exit_code, 1, result.output)
        self.assertIn("NOT-SIGNIFICANT", result.output)

    def test_insufficient_data_exits_two(self) -> None:
        a = self.write("a.txt", "1 2")
        b = self.write("b.txt", "3 4")
        result = self.runner.invoke(main, ["compare", a, b, "--threshold", "1", "-q"])
        self.assertEqual(result.exit_code, 2, result.output)
        self.assertIn("Cannot perform comparison", result.output)

    def test_json_output(self) -> None:
        a = self.write("a.json", "[100, 102, 98, 101, 99, 103, 97, 100, 101, 99]")
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(
            main,
            ["compare", a, b, "--threshold", "10", "--labels", "main,feature", "--json", "-q"],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["verdict"], "significant")
        self.assertEqual(data["config"]["labels"], ["main", "feature"])
        self.assertEqual(len(data["gates"]), 3)
        self.assertTrue(data["interpretation"].startswith("main is"))

    def test_stdin(self) -> None:
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(
            main, ["compare", "-", b, "--threshold", "10", "--json", "-q"], input=BASELINE
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(json.loads(result.output)["evidence"]["mean_a"], 100.0)

    def test_missing_threshold(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(main, ["compare", a, b])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("practical_threshold is required", result.output)

    def test_invalid_alpha(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(main, ["compare", a, b, "--threshold", "10", "--alpha", "2"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("Invalid configuration", result.output)

    def test_bad_sample_file(self) -> None:
        a = self.write("a.txt", "1 two 3")
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(main, ["compare", a, b, "--threshold", "10"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("not a number", result.output)

    def test_missing_sample_file(self) -> None:
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(
            main, ["compare", str(self.tmp / "nope.txt"), b, "--threshold", "10"]
        )
        self.assertEqual(result.exit_code, 2)
        self.assertIn("File not found", result.output)

    def test_bad_labels(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        result = self.runner.invoke(
            main, ["compare", a, b, "--threshold", "10", "--labels", "only-one"]
        )
        self.assertEqual(result.exit_code, 2)
        self.assertIn("two comma-separated labels", result.output)

    def test_profile(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        profile = self.write(
            "profile.yaml",
            "practical_threshold: 10\nalpha: 0.01\nlabels: [main, feature]\n",
        )
        result = self.runner.invoke(main, ["compare", a, b, "--profile", profile, "--json", "-q"])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["config"]["alpha"], 0.01)
        self.assertEqual(data["config"]["labels"], ["main", "feature"])

    def test_cli_overrides_profile(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        profile = self.write("profile.yaml", "practical_threshold: 10\n")
        result = self.runner.invoke(
            main,
            ["compare", a, b, "--profile", profile, "--threshold", "100", "--json", "-q"],
        )
        self.assertEqual(result.exit_code, 1, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["config"]["practical_threshold"], 100.0)
        self.assertEqual(data["gates"][-1]["name"], "practical")

    def test_profile_unknown_key(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        profile = self.write("profile.yaml", "practical_threshold: 10\niterations: 3\n")
        result = self.runner.invoke(main, ["compare", a, b, "--profile", profile])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("iterations", result.output)

    def test_log_file(self) -> None:
        a = self.write("a.txt", BASELINE)
        b = self.write("b.txt", SHIFTED)
        log_file = self.tmp / "compare.log"
        result = self.runner.invoke(
            main, ["compare", a, b, "--threshold", "10", "-q", "--log-file", str(log_file)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        _reset_logging()  # flush and close the file handler
        self.assertIn("Gate practical", log_file.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Single-sample commands
# ---------------------------------------------------------------------------


class TestDiagnose(CliTestCase):
    """Tests for the diagnose command."""

    def test_text(self) -> None:
        path = self.write("s.txt", "1 2 3 4 5 6 7 8 9 10")
        result = self.runner.invoke(main, ["diagnose", path, "--label", "main"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Diagnostics: main", result.output)
        self.assertIn("Recommendation: proceed", result.output)

    def test_json(self) -> None:
        path = self.write("s.txt", "100 101 99 102 98 100 101 99 100 500")
        result = self.runner.invoke(main, ["diagnose", path, "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["sample"]["outliers"]["count"], 1)

    def test_outlier_threshold_must_be_positive(self) -> None:
        path = self.write("s.txt", "1 2 3")
        result = self.runner.invoke(main, ["diagnose", path, "--outlier-threshold", "0"])
        self.assertEqual(result.exit_code, 2)


class TestOutliers(CliTestCase):
    """Tests for the outliers command."""

    def test_zscore_default(self) -> None:
        path = self.write("s.txt", "100 101 99 102 98 100 101 99 100 500")
        result = self.runner.invoke(main, ["outliers", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("z-score: 1 outlier(s)", result.output)
        self.assertIn("500.000", result.output)

    def test_iqr_json(self) -> None:
        path = self.write("s.txt", "1 2 3 4 5 6 7 8 9 1000")
        result = self.runner.invoke(main, ["outliers", path, "--method", "iqr", "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["values"], [1000.0])
        self.assertEqual(data["upper_fence"], 14.5)

    def test_combined(self) -> None:
        path = self.write("s.txt", "10 11 12 13 100")
        result = self.runner.invoke(main, ["outliers", path, "--method", "combined"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Recommended method: iqr", result.output)

    def test_invalid_method(self) -> None:
        path = self.write("s.txt", "1 2 3")
        result = self.runner.invoke(main, ["outliers", path, "--method", "grubbs"])
        self.assertEqual(result.exit_code, 2)


class TestNormality(CliTestCase):
    """Tests for the normality command."""

    def test_text(self) -> None:
        path = self.write("s.txt", "1 2 3 4 5 6 7 8 9 10")
        result = self.runner.invoke(main, ["normality", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Shapiro-Wilk (n=10)", result.output)
        self.assertIn("-> normal", result.output)

    def test_json(self) -> None:
        path = self.write("s.txt", "[1, 1, 1, 1, 1, 1, 1, 1, 1, 100]")
        result = self.runner.invoke(main, ["normality", path, "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertFalse(data["is_normal"])
        self.assertEqual(data["n"], 10)


if __name__ == "__main__":
    unittest.main()
