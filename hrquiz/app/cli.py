from __future__ import annotations

"""CLI for hrquiz: run timed assessments, inspect history, manage the bank."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .. import __version__
from ..bank.question_bank import JsonQuestionBank
from ..config.config import load_config, make_results_log, session_config, validate_config
from ..engine.errors import QuizError
from ..engine.models import CATEGORY_FILTERS, SessionConfig, SessionState, SessionView
from ..engine.timer import ThreadingScheduler
from ..results.review import format_review
from ..stats.stats import format_history, format_summary, format_timer
from ..util.randomness import make_rng
from .events import EventBus
from .session_engine import SessionEngine


HELP_TEXT = (
    "Commands: a-d answer | n next | p previous | g <num> go to | pause | resume | "
    "s submit | h help"
)


def _render_question(view: SessionView) -> str:
    q = view.question
    if q is None:
        return ""
    lines = [
        "",
        f"Question {view.current_index + 1} of {view.question_count} [{q.category}]"
        f"   time left {format_timer(view.remaining_seconds)}{' (!)' if view.time_warning else ''}",
        q.text,
    ]
    for i, opt in enumerate(q.options):
        mark = "x" if view.chosen_index == i else " "
        lines.append(f"  [{mark}] {chr(ord('a') + i)}. {opt}")
    return "\n".join(lines)


def _run_exam(engine: SessionEngine, ask: Callable[[str], str], inform: Callable[[str], None]) -> None:
    inform(HELP_TEXT)
    inform(_render_question(engine.view()))
    while engine.state in (SessionState.RUNNING, SessionState.PAUSED):
        raw = ask("> ").strip().lower()
        # The clock may have run out while we were waiting for input
        if engine.state not in (SessionState.RUNNING, SessionState.PAUSED):
            break
        try:
            if raw in ("h", "help", "?"):
                inform(HELP_TEXT)
                continue
            if raw == "pause":
                engine.pause()
                inform("Paused. Type 'resume' to continue.")
                continue
            if raw == "resume":
                view = engine.resume()
            elif raw == "n":
                view = engine.navigate(+1)
            elif raw == "p":
                view = engine.navigate(-1)
            elif raw.startswith("g "):
                view = engine.go_to(int(raw[2:].strip()) - 1)
            elif len(raw) == 1 and "a" <= raw <= "d":
                view = engine.answer_current(ord(raw) - ord("a"))
            elif raw == "s":
                engine.submit()
                break
            else:
                inform(f"Unknown command {raw!r}. {HELP_TEXT}")
                continue
        except ValueError:
            inform("Expected a question number, e.g. 'g 3'.")
            continue
        except QuizError as e:
            inform(str(e))
            continue
        inform(_render_question(view))


def _after_exam(engine: SessionEngine, ask: Callable[[str], str], inform: Callable[[str], None]) -> None:
    result = engine.result
    if result is None:
        return
    inform("\nResults:")
    inform(format_summary(result))
    if engine.persistence_error is not None:
        inform(f"WARNING: result was not saved: {engine.persistence_error}")
    try:
        wants_review = ask("Review answers? [y/N] ").strip().lower() in ("y", "r")
    except EOFError:
        wants_review = False
    if wants_review:
        inform(format_review(engine.review()))
        engine.close_review()


def _build_engine(cfg: Dict[str, Any], *, threaded: bool = True) -> SessionEngine:
    bank = JsonQuestionBank(Path(cfg["bank"]["path"]))
    events = EventBus()
    events.subscribe("expired", lambda _sid: print("\nTime is up! Your answers were submitted. Press Enter."))
    return SessionEngine.from_config(
        cfg,
        bank,
        make_results_log(cfg),
        scheduler=ThreadingScheduler() if threaded else None,
        rng=make_rng(),
        events=events,
    )


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="hrquiz")
    p.add_argument("--version", action="version", version=f"hrquiz {__version__}")
    p.add_argument("--config", default=None, help="Path to YAML config")
    p.add_argument("--log-level", default=None, help="Override logging level")
    sub = p.add_subparsers(dest="cmd", required=True)

    rp = sub.add_parser("run", help="Take a timed assessment")
    rp.add_argument("--category", choices=CATEGORY_FILTERS, default=None)
    rp.add_argument("--questions", default=None, help="Number of questions or 'all'")
    rp.add_argument("--minutes", type=int, default=None, help="Time limit in minutes")
    rp.add_argument("--explain", action="store_true")

    sub.add_parser("history", help="Show past attempts")

    bp = sub.add_parser("bank", help="Manage the question bank")
    bank_sub = bp.add_subparsers(dest="bank_cmd", required=True)
    bank_sub.add_parser("list")
    bank_sub.add_parser("seed-demo")
    bank_sub.add_parser("clear")
    ip = bank_sub.add_parser("import")
    ip.add_argument("file")
    ep = bank_sub.add_parser("export")
    ep.add_argument("file")

    args = p.parse_args(argv)

    try:
        cfg = validate_config(load_config(args.config))
    except QuizError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(
        level=(args.log_level or cfg["logging"]["level"]).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.cmd == "run":
            return _cmd_run(cfg, args)
        if args.cmd == "history":
            print(format_history(make_results_log(cfg).list()))
            return 0
        if args.cmd == "bank":
            return _cmd_bank(cfg, args)
    except QuizError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_run(
    cfg: Dict[str, Any],
    args: argparse.Namespace,
    ask: Optional[Callable[[str], str]] = None,
    *,
    threaded: bool = True,
) -> int:
    if args.explain:
        from .explain import enable as explain_enable

        explain_enable(True)
    session = dict(cfg["session"])
    if args.category is not None:
        session["category"] = args.category
    if args.questions is not None:
        session["questions"] = args.questions
    if args.minutes is not None:
        session["time_limit_minutes"] = args.minutes
    config: SessionConfig = session_config({"session": session})

    ask = ask or input
    engine = _build_engine(cfg, threaded=threaded)
    view = engine.start(config)
    print(f"Starting assessment: {view.question_count} question(s), {config.time_limit_minutes} minute(s).")
    try:
        _run_exam(engine, ask, print)
    except (KeyboardInterrupt, EOFError):
        if engine.state in (SessionState.RUNNING, SessionState.PAUSED):
            print("\nSubmitting current answers.")
            engine.submit()
    _after_exam(engine, ask, print)
    return 0


def _cmd_bank(cfg: Dict[str, Any], args: argparse.Namespace) -> int:
    bank = JsonQuestionBank(Path(cfg["bank"]["path"]))
    if args.bank_cmd == "list":
        questions = bank.list_questions("all")
        if not questions:
            print("No questions yet. Run 'hrquiz bank seed-demo' to add some.")
        for q in questions:
            print(f"{q.id}  [{q.category}] {q.text}")
        counts = bank.counts_by_category()
        print(", ".join(f"{k}: {v}" for k, v in counts.items()))
    elif args.bank_cmd == "seed-demo":
        print(f"Added {len(bank.seed_demo())} demo question(s).")
    elif args.bank_cmd == "clear":
        bank.clear()
        print("All questions deleted.")
    elif args.bank_cmd == "import":
        print(f"Imported {len(bank.import_file(args.file))} question(s).")
    elif args.bank_cmd == "export":
        print(f"Exported {bank.export_file(args.file)} question(s) to {args.file}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
