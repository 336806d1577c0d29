import tempfile
import unittest
from pathlib import Path

from hrquiz.config.config import load_config, make_results_log, session_config, validate_config
from hrquiz.engine.errors import ConfigurationError
from hrquiz.engine.models import SessionConfig
from hrquiz.results.results_log import InMemoryResultsLog, JsonResultsLog
from hrquiz.storage.store import ParquetResultsLog


class LoadConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_package_defaults(self) -> None:
        cfg = validate_config(load_config())
        self.assertEqual(cfg["session"], {"category": "all", "questions": 10, "time_limit_minutes": 10})
        self.assertEqual(cfg["scoring"]["pass_percentage"], 60)
        self.assertEqual(cfg["results"]["backend"], "json")
        self.assertEqual(cfg["logging"]["level"], "WARNING")

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_config(str(self.dir / "nope.yml"))

    def test_invalid_yaml_and_non_mapping(self) -> None:
        bad = self.dir / "bad.yml"
        bad.write_text("session: [unclosed", encoding="utf-8")
        with self.assertRaises(ConfigurationError):
            load_config(str(bad))
        bad.write_text("- just\n- a list\n", encoding="utf-8")
        with self.assertRaises(ConfigurationError):
            load_config(str(bad))

    def test_empty_file_gets_defaults(self) -> None:
        empty = self.dir / "empty.yml"
        empty.write_text("", encoding="utf-8")
        cfg = validate_config(load_config(str(empty)))
        self.assertEqual(cfg["session"]["time_limit_minutes"], 10)
        self.assertEqual(cfg["timer"]["interval_s"], 1.0)


class ValidateConfigTests(unittest.TestCase):
    def test_invalid_values_fall_back_with_warning(self) -> None:
        raw = {
            "session": {"category": "finance", "questions": -2, "time_limit_minutes": "soon"},
            "scoring": {"pass_percentage": 140, "warning_seconds": 0},
            "timer": {"interval_s": "fast"},
            "results": {"backend": "mongo"},
            "logging": {"level": "chatty"},
        }
        with self.assertLogs("hrquiz.config.config", level="WARNING") as logs:
            cfg = validate_config(raw)
        self.assertEqual(cfg["session"], {"category": "all", "questions": 10, "time_limit_minutes": 10})
        self.assertEqual(cfg["scoring"], {"pass_percentage": 60, "warning_seconds": 60})
        self.assertEqual(cfg["timer"]["interval_s"], 1.0)
        self.assertEqual(cfg["results"]["backend"], "json")
        self.assertEqual(cfg["logging"]["level"], "WARNING")
        self.assertGreaterEqual(len(logs.output), 8)

    def test_questions_all_and_numeric_strings(self) -> None:
        cfg = validate_config({"session": {"questions": "ALL", "time_limit_minutes": "5"}})
        self.assertEqual(cfg["session"]["questions"], "all")
        self.assertEqual(cfg["session"]["time_limit_minutes"], 5)
        cfg = validate_config({"session": {"questions": "3"}})
        self.assertEqual(cfg["session"]["questions"], 3)

    def test_non_mapping_sections_are_replaced(self) -> None:
        cfg = validate_config({"session": "oops", "logging": None})
        self.assertEqual(cfg["session"]["category"], "all")
        self.assertEqual(cfg["logging"]["level"], "WARNING")

    def test_results_path_defaults_follow_backend(self) -> None:
        self.assertEqual(validate_config({})["results"]["path"], "./data/results.json")
        self.assertEqual(validate_config({"results": {"backend": "parquet"}})["results"]["path"], "./data")
        self.assertEqual(validate_config({"results": {"backend": "parquet", "path": None}})["results"]["path"], "./data")
        self.assertEqual(validate_config({"results": {"backend": "parquet", "path": "/tmp/pq"}})["results"]["path"], "/tmp/pq")
        self.assertEqual(validate_config(load_config())["results"]["path"], "./data/results.json")

    def test_lowercase_log_level_is_normalised(self) -> None:
        self.assertEqual(validate_config({"logging": {"level": "debug"}})["logging"]["level"], "DEBUG")


class SessionConfigTests(unittest.TestCase):
    def test_from_validated_config(self) -> None:
        cfg = validate_config({"session": {"category": "ops", "questions": 4, "time_limit_minutes": 3}})
        self.assertEqual(session_config(cfg), SessionConfig("ops", 4, 3))

    def test_from_dict_accepts_digit_strings(self) -> None:
        self.assertEqual(SessionConfig.from_dict({"questions": " 7 "}).question_count, 7)
        self.assertEqual(SessionConfig.from_dict({}).question_count, "all")

    def test_resolve_count(self) -> None:
        self.assertEqual(SessionConfig("all", "all", 1).resolve_count(9), 9)
        self.assertEqual(SessionConfig("all", 20, 1).resolve_count(9), 9)
        self.assertEqual(SessionConfig("all", 3, 1).resolve_count(9), 3)

    def test_validate(self) -> None:
        SessionConfig("hr", 1, 1).validate()
        for bad in (SessionConfig("all", True, 1), SessionConfig("all", 1, 2.5), SessionConfig("all", 1, -1)):
            with self.assertRaises(ConfigurationError):
                bad.validate()


class MakeResultsLogTests(unittest.TestCase):
    def test_backends(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cfg = validate_config({"results": {"backend": "memory", "user_id": "u9"}})
            log = make_results_log(cfg)
            self.assertIsInstance(log, InMemoryResultsLog)
            self.assertEqual(log.user_id, "u9")

            cfg = validate_config({"results": {"backend": "json", "path": f"{tmp}/r.json"}})
            log = make_results_log(cfg)
            self.assertIsInstance(log, JsonResultsLog)
            self.assertEqual(log.path, Path(tmp) / "r.json")

            cfg = validate_config({"results": {"backend": "parquet", "path": f"{tmp}/pq"}})
            log = make_results_log(cfg)
            self.assertIsInstance(log, ParquetResultsLog)
            self.assertEqual(log.data_dir, Path(tmp) / "pq")

            log = make_results_log(validate_config({"results": {"backend": "parquet"}}))
            self.assertEqual(log.data_dir, Path("data"))


if __name__ == "__main__":
    unittest.main()
