"""Crate-level analysis driver.

Runs every local function of a crate through the eligibility gate, summary
construction and body interpretation, and collects one report per function.
A function that fails is reported and skipped; it never stops the run.

Usage:
    from mirabs.analysis import analyze_crate
    report = analyze_crate(load_crate("dump.json"), load_config())
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from multiprocessing import Pool, cpu_count
from typing import Any, Dict, List, Optional, Tuple

from mirabs.config import MirabsConfig
from mirabs.domains import AbstractFunction
from mirabs.errors import AnalysisError, InterpreterError
from mirabs.interpreter import BodyInterpreter, State, can_interpret, interpret_intervals
from mirabs.mir.body import Crate, FunctionItem
from mirabs.overflow import OverflowDiagnostic, check_overflows

logger = logging.getLogger(__name__)


@dataclass
class FunctionReport:
    """Outcome of analyzing one function.

    `errors` hold the failure that stopped the analysis; `statement_errors`
    hold per-statement failures from body interpretation, which do not.
    """
    name: str
    summary: Optional[AbstractFunction] = None
    state: Optional[State] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    statement_errors: List[Dict[str, Any]] = field(default_factory=list)
    diagnostics: List[OverflowDiagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.summary is not None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"function": self.name, "ok": self.ok}
        if self.summary is not None:
            d["summary"] = self.summary.to_dict()
        if self.state is not None:
            d["state"] = {f"_{local}": v.to_json() for local, v in sorted(self.state.items())}
        if self.errors:
            d["errors"] = self.errors
        if self.statement_errors:
            d["statement_errors"] = self.statement_errors
        if self.diagnostics:
            d["diagnostics"] = [diag.to_dict() for diag in self.diagnostics]
        return d


@dataclass
class CrateReport:
    crate: str
    functions: List[FunctionReport] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def summaries(self) -> Dict[str, AbstractFunction]:
        return {f.name: f.summary for f in self.functions if f.summary is not None}

    @property
    def failed(self) -> List[FunctionReport]:
        return [f for f in self.functions if not f.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "crate": self.crate,
            "analyzed": len(self.functions),
            "succeeded": len(self.functions) - len(self.failed),
            "failed": len(self.failed),
            "skipped": self.skipped,
            "duration_ms": self.duration_ms,
            "functions": [f.to_dict() for f in self.functions],
        }


def analyze_function(item: FunctionItem, config: Optional[MirabsConfig] = None) -> FunctionReport:
    """Analyze a single function.

    Ineligible functions fail with an interpreter error. Otherwise the
    summary is built from the declared types and the body is interpreted
    with the summary's argument values as its inputs.
    """
    config = config or MirabsConfig()
    report = FunctionReport(name=item.name)
    body = item.body
    logger.debug("Checking function: %s", item.name)

    if not can_interpret(body.locals):
        error = InterpreterError(
            f"Function '{item.name}' has locals the interpreter cannot represent",
            {"locals": [str(decl.ty) for decl in body.locals]},
        )
        report.errors.append(error.to_dict())
        return report

    try:
        arg_types, return_type = body.fn_types()
        logger.debug("Argument types: %s", [str(t) for t in arg_types])
        logger.debug("Return type: %s", return_type)

        summary = interpret_intervals(body)
        logger.debug("Abstract function: %s", summary)

        interpreter = BodyInterpreter(body)
        state = interpreter.interpret(summary.arguments)
        logger.debug("State: %s", {f"_{k}": str(v) for k, v in state.items()})
    except AnalysisError as e:
        report.errors.append(e.to_dict())
        return report

    report.summary = summary
    report.state = state
    report.statement_errors = [e.to_dict() for e in interpreter.errors]
    if config.check_overflow:
        report.diagnostics = check_overflows(
            interpreter.checked_ops, item.name, config.solver_timeout_ms,
        )
    return report


# ---------------------------------------------------------------------------
# Worker function (must be top-level for pickling)
# ---------------------------------------------------------------------------

def _analyze_single_function(args: Tuple[FunctionItem, MirabsConfig]) -> FunctionReport:
    item, config = args
    return analyze_function(item, config)


def analyze_crate(crate: Crate, config: Optional[MirabsConfig] = None) -> CrateReport:
    """Analyze every function of a crate selected by the config.

    Functions are independent, so with `parallel` enabled they are analyzed
    in a process pool.
    """
    config = config or MirabsConfig()
    start = time.time()
    result = CrateReport(crate=crate.name)

    items = []
    for item in crate.functions:
        if config.should_analyze(item.name):
            items.append(item)
        else:
            result.skipped.append(item.name)

    workers = config.parallel_workers
    if workers <= 0:
        workers = min(cpu_count(), len(items), 8)  # Cap at 8 workers
    workers = max(1, workers)

    work_items = [(item, config) for item in items]
    if not config.parallel or workers == 1 or len(items) <= 2:
        # Sequential for small sets (avoid multiprocessing overhead)
        result.functions = [_analyze_single_function(w) for w in work_items]
    else:
        with Pool(processes=workers) as pool:
            result.functions = pool.map(_analyze_single_function, work_items)

    for report in result.functions:
        if not report.ok:
            logger.info("Analysis of %s failed: %s", report.name,
                        "; ".join(e["message"] for e in report.errors))

    result.duration_ms = round((time.time() - start) * 1000, 1)
    return result
