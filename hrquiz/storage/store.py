from __future__ import annotations

"""Parquet-backed results log using pandas + pyarrow.

Unit of data: one row per submitted session.
"""

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd
import pyarrow  # noqa: F401  (parquet engine)

from ..engine.errors import PersistenceError
from ..engine.models import Result
from .schema import DTYPES, RESULT_COLUMNS

logger = logging.getLogger(__name__)

DATA_FILE = "results.parquet"


def _empty_df() -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in DTYPES.items()})


def _fix_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    for col, dt in DTYPES.items():
        if col not in df.columns:
            df[col] = pd.Series(pd.NA, index=df.index)
        df[col] = df[col].astype(dt)
    return df[RESULT_COLUMNS]


def init_store(data_dir: Path) -> None:
    """Ensure the data directory and an empty Parquet file with the right schema exist."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / DATA_FILE
    if not path.exists():
        _empty_df().to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def validate_records(records: list[Result]) -> pd.DataFrame:
    """Validate results and return them as a DataFrame with the table's dtypes."""
    if not isinstance(records, list):
        raise TypeError("records must be a list[Result]")
    rows = [r if isinstance(r, Result) else Result.model_validate(r) for r in records]
    if not rows:
        return _empty_df()
    df = pd.DataFrame([r.model_dump() for r in rows])
    return _fix_dtypes(df)


def append_results(df_new: pd.DataFrame, data_dir: Path) -> None:
    """Append rows to the results table.

    Reads the existing table, concatenates and writes back. Rows are never
    rewritten or deduplicated; the table is a plain history.
    """
    path = Path(data_dir) / DATA_FILE
    if path.exists():
        df_old = _fix_dtypes(pd.read_parquet(path, engine="pyarrow"))
    else:
        df_old = _empty_df()
    df_new = _fix_dtypes(df_new.copy())
    if df_old.empty:
        combined = df_new
    else:
        combined = pd.concat([df_old, df_new], ignore_index=True)
    combined = _fix_dtypes(combined)
    combined.to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def load_all(data_dir: Path) -> pd.DataFrame:
    """Load the full results table in insertion order."""
    path = Path(data_dir) / DATA_FILE
    if not path.exists():
        return _empty_df()
    return _fix_dtypes(pd.read_parquet(path, engine="pyarrow"))


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    """Export a DataFrame to line-delimited JSON (NDJSON) for quick inspection."""
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")


def _row_to_result(row: dict) -> Result:
    data = {}
    for k, v in row.items():
        if v is pd.NA or (not isinstance(v, str) and pd.isna(v)):
            continue
        if isinstance(v, pd.Timestamp):
            v = v.to_pydatetime()
        elif hasattr(v, "item"):
            # numpy scalars from the masked integer/boolean columns
            v = v.item()
        data[k] = v
    return Result.model_validate(data)


class ParquetResultsLog:
    def __init__(self, data_dir: str | Path, user_id: Optional[str] = None) -> None:
        self.data_dir = Path(data_dir)
        self.user_id = user_id

    def append(self, result: Result) -> None:
        try:
            init_store(self.data_dir)
            append_results(validate_records([result]), self.data_dir)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot append to results table in {self.data_dir}: {e}") from e
        logger.debug("Appended result %s to %s", result.session_id, self.data_dir / DATA_FILE)

    def frame(self) -> pd.DataFrame:
        try:
            df = load_all(self.data_dir)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read results table in {self.data_dir}: {e}") from e
        if self.user_id is not None:
            df = df[df["user_id"].eq(self.user_id).fillna(False)].reset_index(drop=True)
        return df

    def list(self) -> List[Result]:
        df = self.frame()
        return [_row_to_result(row) for row in df.astype(object).to_dict(orient="records")]
