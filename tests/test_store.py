import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from hrquiz.engine.errors import PersistenceError
from hrquiz.engine.models import Result
from hrquiz.storage.schema import DTYPES, RESULT_COLUMNS
from hrquiz.storage.store import (
    DATA_FILE,
    ParquetResultsLog,
    append_results,
    export_ndjson,
    init_store,
    load_all,
    validate_records,
)


def make_result(session_id: str, user_id=None, reason: str = "manual") -> Result:
    return Result(
        session_id=session_id,
        user_id=user_id,
        correct=1,
        total=3,
        percentage=33,
        passed=False,
        timestamp=datetime(2024, 2, 2, 10, 15, tzinfo=timezone.utc),
        duration_ms=45000,
        question_count=3,
        category="ops",
        submission_reason=reason,
    )


class StoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name) / "data"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_init_store_creates_empty_table(self) -> None:
        init_store(self.dir)
        self.assertTrue((self.dir / DATA_FILE).exists())
        df = load_all(self.dir)
        self.assertEqual(list(df.columns), RESULT_COLUMNS)
        self.assertEqual(len(df), 0)

    def test_load_without_file_is_empty(self) -> None:
        self.assertEqual(len(load_all(self.dir)), 0)

    def test_validate_records_applies_dtypes(self) -> None:
        df = validate_records([make_result("a")])
        self.assertEqual(list(df.columns), RESULT_COLUMNS)
        self.assertEqual(str(df["correct"].dtype), "UInt16")
        self.assertEqual(str(df["passed"].dtype), "boolean")
        self.assertIsInstance(df["timestamp"].dtype, pd.DatetimeTZDtype)
        self.assertEqual(df["category"].dtype, DTYPES["category"])

    def test_validate_records_rejects_non_list(self) -> None:
        with self.assertRaises(TypeError):
            validate_records(make_result("a"))

    def test_append_keeps_history_order(self) -> None:
        init_store(self.dir)
        append_results(validate_records([make_result("a")]), self.dir)
        append_results(validate_records([make_result("b"), make_result("c")]), self.dir)
        df = load_all(self.dir)
        self.assertEqual(df["session_id"].tolist(), ["a", "b", "c"])

    def test_export_ndjson(self) -> None:
        init_store(self.dir)
        append_results(validate_records([make_result("a")]), self.dir)
        out = Path(self._tmp.name) / "out" / "results.ndjson"
        export_ndjson(load_all(self.dir), out)
        rows = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["session_id"], "a")


class ParquetResultsLogTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name) / "data"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_round_trip(self) -> None:
        log = ParquetResultsLog(self.dir)
        log.append(make_result("a", reason="expired"))
        log.append(make_result("b", user_id="u1"))
        results = ParquetResultsLog(self.dir).list()
        self.assertEqual([r.session_id for r in results], ["a", "b"])
        self.assertEqual(results[0], make_result("a", reason="expired"))
        self.assertIsNone(results[0].user_id)
        self.assertEqual(results[1].user_id, "u1")

    def test_user_filter(self) -> None:
        ParquetResultsLog(self.dir).append(make_result("a"))
        ParquetResultsLog(self.dir).append(make_result("b", user_id="u1"))
        ParquetResultsLog(self.dir).append(make_result("c", user_id="u2"))
        self.assertEqual([r.session_id for r in ParquetResultsLog(self.dir, user_id="u1").list()], ["b"])
        self.assertEqual(len(ParquetResultsLog(self.dir, user_id="u1").frame()), 1)

    def test_unwritable_directory_raises_persistence_error(self) -> None:
        blocker = Path(self._tmp.name) / "blocker"
        blocker.write_text("", encoding="utf-8")
        with self.assertRaises(PersistenceError):
            ParquetResultsLog(blocker / "data").append(make_result("a"))


if __name__ == "__main__":
    unittest.main()
