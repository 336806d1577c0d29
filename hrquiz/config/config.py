from __future__ import annotations

"""Configuration loading and validation for hrquiz.

This module loads YAML configuration, applies defaults, and validates
that enumerations and numbers are sane before the engine sees them.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..engine.errors import ConfigurationError
from ..engine.models import CATEGORY_FILTERS, SessionConfig

logger = logging.getLogger(__name__)

ALLOWED_RESULTS_BACKENDS = {"json", "parquet", "memory"}
ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
# json stores one file, parquet a directory of tables
DEFAULT_RESULTS_PATHS = {"json": "./data/results.json", "parquet": "./data", "memory": None}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(Path(__file__).with_name("defaults.yml"))


def _positive_int(section: Dict[str, Any], key: str, default: int) -> None:
    value = section.get(key, default)
    try:
        ivalue = int(value)
    except (TypeError, ValueError):
        ivalue = 0
    if isinstance(value, bool) or ivalue <= 0:
        logger.warning("Invalid %s %r, using %s", key, value, default)
        ivalue = default
    section[key] = ivalue


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Unsupported enum values and non-positive numbers fall back to their
    default with a warning.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    # Shallow defaults for missing sections
    for name in ("session", "scoring", "timer", "bank", "results", "logging"):
        if not isinstance(cfg.get(name), dict):
            cfg[name] = {}

    session = cfg["session"]
    scoring = cfg["scoring"]
    timer = cfg["timer"]
    results = cfg["results"]
    log_cfg = cfg["logging"]

    session.setdefault("category", "all")
    session.setdefault("questions", 10)
    session.setdefault("time_limit_minutes", 10)
    scoring.setdefault("pass_percentage", 60)
    scoring.setdefault("warning_seconds", 60)
    timer.setdefault("interval_s", 1.0)
    cfg["bank"].setdefault("path", "./data/questions.json")
    results.setdefault("backend", "json")
    results.setdefault("user_id", None)
    log_cfg.setdefault("level", "WARNING")

    # Enum validations
    if session["category"] not in CATEGORY_FILTERS:
        logger.warning("Unsupported category %r, using 'all'", session["category"])
        session["category"] = "all"

    if str(session["questions"]).strip().lower() == "all":
        session["questions"] = "all"
    else:
        _positive_int(session, "questions", 10)
    _positive_int(session, "time_limit_minutes", 10)

    pct = scoring.get("pass_percentage")
    if isinstance(pct, bool) or not isinstance(pct, int) or not 0 <= pct <= 100:
        logger.warning("Invalid pass_percentage %r, using 60", pct)
        scoring["pass_percentage"] = 60
    _positive_int(scoring, "warning_seconds", 60)

    try:
        interval = float(timer["interval_s"])
    except (TypeError, ValueError):
        interval = 0.0
    if interval <= 0:
        logger.warning("Invalid timer interval %r, using 1.0", timer["interval_s"])
        interval = 1.0
    timer["interval_s"] = interval

    if results["backend"] not in ALLOWED_RESULTS_BACKENDS:
        logger.warning("Unsupported results backend %r, using 'json'", results["backend"])
        results["backend"] = "json"
    if not results.get("path"):
        results["path"] = DEFAULT_RESULTS_PATHS[results["backend"]]

    level = str(log_cfg["level"]).upper()
    if level not in ALLOWED_LOG_LEVELS:
        logger.warning("Unsupported log level %r, using WARNING", log_cfg["level"])
        level = "WARNING"
    log_cfg["level"] = level

    return cfg


def session_config(cfg: Dict[str, Any]) -> SessionConfig:
    return SessionConfig.from_dict(cfg.get("session", {}))


def make_results_log(cfg: Dict[str, Any]):
    """Build the ResultsLog selected by ``results.backend``."""
    results = cfg.get("results", {})
    backend = results.get("backend", "json")
    user_id = results.get("user_id")
    if backend == "memory":
        from ..results.results_log import InMemoryResultsLog

        return InMemoryResultsLog(user_id=user_id)
    if backend == "parquet":
        from ..storage.store import ParquetResultsLog

        # The parquet backend treats the path as a directory
        return ParquetResultsLog(Path(results.get("path") or DEFAULT_RESULTS_PATHS["parquet"]), user_id=user_id)
    from ..results.results_log import JsonResultsLog

    return JsonResultsLog(Path(results.get("path") or DEFAULT_RESULTS_PATHS["json"]), user_id=user_id)
