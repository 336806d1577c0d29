from __future__ import annotations

"""Schema constants for the Parquet-backed results table."""

import pandas as pd
from pandas.api.types import CategoricalDtype

from ..engine.models import CATEGORY_FILTERS, SUBMISSION_REASONS

# --- Constants ---

RESULT_COLUMNS = [
    "session_id",
    "user_id",
    "correct",
    "total",
    "percentage",
    "passed",
    "timestamp",
    "duration_ms",
    "question_count",
    "category",
    "submission_reason",
    "pass_percentage",
]


def _cat_dtype(categories) -> CategoricalDtype:
    return CategoricalDtype(categories=sorted(categories), ordered=False)


DTYPES = {
    "session_id": "string",
    "user_id": "string",
    "correct": "UInt16",
    "total": "UInt16",
    "percentage": "UInt8",
    "passed": "boolean",
    # timezone-aware UTC timestamps
    "timestamp": pd.DatetimeTZDtype(tz="UTC"),
    "duration_ms": "UInt64",
    "question_count": "UInt16",
    "category": _cat_dtype(CATEGORY_FILTERS),
    "submission_reason": _cat_dtype(SUBMISSION_REASONS),
    "pass_percentage": "UInt8",
}
