"""mirabs CLI — command-line interface for the abstract interpreter.

Commands:
  mirabs analyze <crate.json>                  — Summarize and interpret every function
  mirabs state <crate.json> --function NAME    — Interpret one body and print its state

The input is a crate dump: the frontend's bodies serialized as JSON
(see mirabs.mir.body.Crate).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from mirabs import __version__
from mirabs.analysis import analyze_crate
from mirabs.config import MirabsConfig, load_config
from mirabs.domains import AbstractValue, value_from_json
from mirabs.errors import AnalysisError, AnalysisFailure, InvalidArgumentError
from mirabs.formatters import format_report
from mirabs.interpreter import BodyInterpreter, interpret_intervals
from mirabs.mir.body import Crate, load_crate


def _setup(args: argparse.Namespace) -> MirabsConfig:
    config = load_config(getattr(args, "config", None))
    level = logging.DEBUG if getattr(args, "verbose", False) else config.logging_level()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    return config


def _load(path: str) -> Crate | None:
    try:
        return load_crate(path)
    except OSError as e:
        print(json.dumps({"error": f"Cannot read {path}: {e.strerror}"}))
    except AnalysisError as e:
        print(e.to_json())
    return None


def _parse_args(text: str) -> list[AbstractValue]:
    data = json.loads(text)
    if not isinstance(data, list):
        raise InvalidArgumentError(
            "--args must be a JSON list of abstract values", {"args": text},
        )
    return [value_from_json(v) for v in data]


def cmd_analyze(args: argparse.Namespace) -> int:
    """Analyze every selected function of a crate dump."""
    config = _setup(args)
    if args.format:
        config.format = args.format
    if args.no_overflow:
        config.check_overflow = False
    if args.parallel:
        config.parallel = True

    crate = _load(args.file)
    if crate is None:
        return 2

    report = analyze_crate(crate, config)
    print(format_report(report, config.format))
    return 0 if not report.failed else 1


def cmd_state(args: argparse.Namespace) -> int:
    """Interpret one function body and print the final abstract state.

    Arguments default to the top values of the declared argument types.
    """
    _setup(args)
    crate = _load(args.file)
    if crate is None:
        return 2

    try:
        body = crate.function(args.function).body
        if args.args is not None:
            arg_values = _parse_args(args.args)
        else:
            arg_values = interpret_intervals(body).arguments
        interpreter = BodyInterpreter(body)
        state = interpreter.interpret(arg_values)
    except json.JSONDecodeError as e:
        print(json.dumps({"error": f"--args is not valid JSON: {e}"}))
        return 2
    except AnalysisError as e:
        print(e.to_json())
        return 1

    print(json.dumps({f"_{k}": v.to_json() for k, v in sorted(state.items())}, indent=2))
    if interpreter.errors:
        print(AnalysisFailure(interpreter.errors).to_json(), file=sys.stderr)
        return 1
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="mirabs",
        description="mirabs — abstract interpretation of MIR function bodies",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # analyze
    p_analyze = subparsers.add_parser("analyze", help="Summarize and interpret every function")
    p_analyze.add_argument("file", help="Crate dump (.json)")
    p_analyze.add_argument("--format", choices=["pretty", "summary", "json"], help="Output format")
    p_analyze.add_argument("--config", help="Path to a .mirabsrc.yml / .json file")
    p_analyze.add_argument("--no-overflow", action="store_true", dest="no_overflow",
                           help="Skip overflow diagnostics for checked arithmetic")
    p_analyze.add_argument("--parallel", action="store_true", help="Analyze functions in a process pool")
    p_analyze.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p_analyze.set_defaults(func=cmd_analyze)

    # state
    p_state = subparsers.add_parser("state", help="Interpret one body and print its abstract state")
    p_state.add_argument("file", help="Crate dump (.json)")
    p_state.add_argument("--function", required=True, help="Function name")
    p_state.add_argument("--args", help='Argument values as JSON, e.g. \'[{"int": [3, 3]}]\'')
    p_state.add_argument("--config", help="Path to a .mirabsrc.yml / .json file")
    p_state.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p_state.set_defaults(func=cmd_state)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
