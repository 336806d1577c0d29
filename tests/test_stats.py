import unittest
from datetime import datetime, timedelta, timezone

from hrquiz.engine.models import Result
from hrquiz.stats.stats import (
    format_history,
    format_summary,
    format_timer,
    history_frame,
    percentage_trend,
    summarize_history,
)


def make_result(i: int, correct: int, total: int = 4, category: str = "ops", reason: str = "manual") -> Result:
    pct = (200 * correct + total) // (2 * total)
    return Result(
        session_id=f"s{i}",
        correct=correct,
        total=total,
        percentage=pct,
        passed=pct >= 60,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(days=i),
        duration_ms=125000,
        question_count=total,
        category=category,
        submission_reason=reason,
    )


class FormatTests(unittest.TestCase):
    def test_format_timer(self) -> None:
        self.assertEqual(format_timer(600), "10:00")
        self.assertEqual(format_timer(59), "00:59")
        self.assertEqual(format_timer(61), "01:01")
        self.assertEqual(format_timer(-3), "00:00")

    def test_format_summary(self) -> None:
        text = format_summary(make_result(0, 3))
        self.assertIn("Score: 75% (good)", text)
        self.assertIn("Correct: 3/4", text)
        self.assertIn("Status: PASSED", text)
        self.assertIn("Time taken: 02:05", text)
        self.assertNotIn("automatically", text)
        self.assertIn("automatically", format_summary(make_result(0, 1, reason="expired")))


class HistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.results = [
            make_result(0, 1, category="ops"),
            make_result(1, 3, category="ops"),
            make_result(2, 4, category="hr"),
        ]

    def test_history_frame(self) -> None:
        df = history_frame(self.results)
        self.assertEqual(df["attempt"].tolist(), [1, 2, 3])
        self.assertEqual(df["percentage"].tolist(), [25, 75, 100])
        self.assertIn("attempt", history_frame([]).columns)

    def test_summarize(self) -> None:
        summary = summarize_history(self.results)
        self.assertEqual(summary["attempts"], 3)
        self.assertEqual(summary["passed"], 2)
        self.assertAlmostEqual(summary["pass_rate"], 0.6667)
        self.assertAlmostEqual(summary["mean_percentage"], 66.67)
        self.assertEqual(summary["best_percentage"], 100)
        self.assertEqual(summary["by_category"]["ops"], {"attempts": 2, "mean_percentage": 50.0})
        self.assertEqual(summary["by_category"]["hr"], {"attempts": 1, "mean_percentage": 100.0})

    def test_summarize_empty(self) -> None:
        self.assertEqual(summarize_history([])["attempts"], 0)
        self.assertEqual(format_history([]), "No attempts recorded yet.")

    def test_trend(self) -> None:
        df = percentage_trend(history_frame(self.results), span=1)
        self.assertEqual([round(float(v), 1) for v in df["percentage_smooth"]], [25.0, 75.0, 100.0])
        smooth = percentage_trend(history_frame(self.results), span=5)["percentage_smooth"].tolist()
        self.assertEqual(round(float(smooth[0]), 1), 25.0)
        self.assertLess(smooth[2], 100.0)
        with self.assertRaises(ValueError):
            percentage_trend(history_frame(self.results), span=0)

    def test_format_history(self) -> None:
        text = format_history(self.results)
        self.assertIn("Attempts: 3  Passed: 2", text)
        self.assertIn("ops: 2 attempt(s)", text)
        self.assertIn("2024-01-03 00:00", text)


if __name__ == "__main__":
    unittest.main()
