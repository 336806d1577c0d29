from __future__ import annotations

"""Result formatting and history statistics."""

from typing import Any, Dict, Sequence

import pandas as pd

from ..engine.models import Result


def format_timer(seconds: int) -> str:
    """Render a countdown as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def format_summary(result: Result) -> str:
    """Return a human-readable summary of one result."""
    status = "PASSED" if result.passed else "FAILED"
    lines = [
        f"Score: {result.percentage}% ({result.grade})",
        f"Correct: {result.correct}/{result.total}",
        f"Status: {status} (pass mark {result.pass_percentage}%)",
        f"Time taken: {format_timer(result.duration_ms // 1000)}",
    ]
    if result.submission_reason == "expired":
        lines.append("Submitted automatically when time ran out.")
    return "\n".join(lines)


def history_frame(results: Sequence[Result]) -> pd.DataFrame:
    """Results as a DataFrame in attempt order, with an ``attempt`` index column."""
    cols = list(Result.model_fields.keys())
    if not results:
        return pd.DataFrame({c: pd.Series(dtype="object") for c in cols}).assign(attempt=pd.Series(dtype="int64"))
    df = pd.DataFrame([r.model_dump() for r in results])
    df["attempt"] = range(1, len(df) + 1)
    return df


def summarize_history(results: Sequence[Result]) -> Dict[str, Any]:
    """Aggregate attempts: counts, pass rate, mean/best percentage, per category."""
    if not results:
        return {
            "attempts": 0,
            "passed": 0,
            "pass_rate": 0.0,
            "mean_percentage": 0.0,
            "best_percentage": 0,
            "by_category": {},
        }
    df = history_frame(results)
    by_cat = (
        df.groupby("category", sort=True)["percentage"]
        .agg(["count", "mean"])
        .rename(columns={"count": "attempts", "mean": "mean_percentage"})
    )
    return {
        "attempts": int(len(df)),
        "passed": int(df["passed"].sum()),
        "pass_rate": round(float(df["passed"].mean()), 4),
        "mean_percentage": round(float(df["percentage"].mean()), 2),
        "best_percentage": int(df["percentage"].max()),
        "by_category": {
            str(cat): {"attempts": int(row["attempts"]), "mean_percentage": round(float(row["mean_percentage"]), 2)}
            for cat, row in by_cat.iterrows()
        },
    }


def percentage_trend(df: pd.DataFrame, span: int = 5) -> pd.DataFrame:
    """EWMA-smoothed percentage over attempts, added as ``percentage_smooth``."""
    if span < 1:
        raise ValueError("span must be >= 1")
    g = df.sort_values("attempt").copy()
    g["percentage_smooth"] = g["percentage"].astype("float64").ewm(span=span).mean().astype("float32")
    return g


def format_history(results: Sequence[Result]) -> str:
    summary = summarize_history(results)
    if not summary["attempts"]:
        return "No attempts recorded yet."
    lines = [
        f"Attempts: {summary['attempts']}  Passed: {summary['passed']}  Pass rate: {summary['pass_rate'] * 100:.0f}%",
        f"Mean score: {summary['mean_percentage']:.1f}%  Best: {summary['best_percentage']}%",
    ]
    for cat, stats in summary["by_category"].items():
        lines.append(f"  {cat}: {stats['attempts']} attempt(s), mean {stats['mean_percentage']:.1f}%")
    for r in results:
        lines.append(
            f"{r.timestamp:%Y-%m-%d %H:%M}  {r.category:<10} {r.correct}/{r.total} {r.percentage:>3}%"
            f"  {'pass' if r.passed else 'fail'}  {r.submission_reason}"
        )
    return "\n".join(lines)
