from .schema import DTYPES, RESULT_COLUMNS
from .store import (
    ParquetResultsLog,
    init_store,
    validate_records,
    append_results,
    load_all,
    export_ndjson,
)

__all__ = [
    "DTYPES",
    "RESULT_COLUMNS",
    "ParquetResultsLog",
    "init_store",
    "validate_records",
    "append_results",
    "load_all",
    "export_ndjson",
]
