"""mirabs Configuration — project-level .mirabsrc.yml support.

Loads configuration from .mirabsrc.yml (or .mirabsrc.yaml, .mirabsrc.json)
in the project root. Allows teams to configure:
  - Which functions to analyze (fnmatch patterns over function names)
  - Whether checked arithmetic gets overflow diagnostics
  - Output format, log level and parallelism

Example .mirabsrc.yml:
    log_level: info
    format: json
    include:
      - "checked_*"
    exclude:
      - "*_test"
    check_overflow: true
    solver_timeout_ms: 5000
    parallel: true
"""

from __future__ import annotations

import fnmatch
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class MirabsConfig:
    """Project-level mirabs configuration."""
    log_level: str = "warning"
    # Output: "pretty", "summary", "json"
    format: str = "pretty"
    # Function name patterns
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    # Overflow diagnostics
    check_overflow: bool = True
    solver_timeout_ms: int = 10000
    # Per-function parallelism
    parallel: bool = False
    parallel_workers: int = 0  # 0 = auto (cpu_count)

    def should_analyze(self, function_name: str) -> bool:
        """Check a function name against the include and exclude patterns."""
        if self.include and not any(fnmatch.fnmatch(function_name, p) for p in self.include):
            return False
        return not any(fnmatch.fnmatch(function_name, p) for p in self.exclude)

    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.WARNING)


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".mirabsrc.yml",
    ".mirabsrc.yaml",
    ".mirabsrc.json",
    "mirabs.config.yml",
    "mirabs.config.json",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> MirabsConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, or it cannot be read, returns defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return MirabsConfig()

    try:
        with open(path, "r") as f:
            content = f.read()
    except OSError as e:
        logger.warning("Could not read config %s: %s", path, e)
        return MirabsConfig()

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("Could not parse config %s: %s", path, e)
        return MirabsConfig()

    if not isinstance(data, dict):
        return MirabsConfig()
    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> MirabsConfig:
    """Convert a parsed dict to MirabsConfig."""
    config = MirabsConfig()

    if "log_level" in data:
        config.log_level = str(data["log_level"])
    if "format" in data:
        config.format = str(data["format"])
    if "include" in data and isinstance(data["include"], list):
        config.include = [str(p) for p in data["include"]]
    if "exclude" in data and isinstance(data["exclude"], list):
        config.exclude = [str(p) for p in data["exclude"]]
    if "check_overflow" in data:
        config.check_overflow = bool(data["check_overflow"])
    if "solver_timeout_ms" in data:
        config.solver_timeout_ms = int(data["solver_timeout_ms"])
    if "parallel" in data:
        config.parallel = bool(data["parallel"])
    if "parallel_workers" in data:
        config.parallel_workers = int(data["parallel_workers"])

    return config
