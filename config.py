"""Configuration loading for the revised simplex runner."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from simplex import (
    DEFAULT_OPTIMALITY_TOLERANCE,
    DEFAULT_PIVOT_TOLERANCE,
    DEFAULT_REFACTOR_EVERY,
    RevisedSimplexSolver,
)


@dataclass
class ProblemConfig:
    path: Optional[Path] = None


@dataclass
class SolverConfig:
    max_iterations: int = 10_000
    pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE
    optimality_tolerance: float = DEFAULT_OPTIMALITY_TOLERANCE
    refactor_every: int = DEFAULT_REFACTOR_EVERY

    def build(self, *, trace: bool = False) -> RevisedSimplexSolver:
        return RevisedSimplexSolver(
            max_iterations=self.max_iterations,
            pivot_tolerance=self.pivot_tolerance,
            optimality_tolerance=self.optimality_tolerance,
            refactor_every=self.refactor_every,
            trace=trace,
        )


@dataclass
class RunConfig:
    trace: bool = False
    log_level: str = "INFO"
    repeats: int = 5


@dataclass
class Config:
    problem: ProblemConfig = field(default_factory=ProblemConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    run: RunConfig = field(default_factory=RunConfig)
    base_path: Path = field(default_factory=Path.cwd)


def _log_level(name: str) -> str:
    level = str(name).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"unknown log level: {name}")
    return level


def load_config(path: str | Path) -> Config:
    cfg_path = Path(path).expanduser().resolve()
    with cfg_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"config root must be a mapping: {cfg_path}")

    base = cfg_path.parent

    problem_raw = raw.get("problem") or {}
    solver_raw = raw.get("solver") or {}
    run_raw = raw.get("run") or {}

    problem_path = problem_raw.get("path")
    problem = ProblemConfig(
        path=(base / problem_path).resolve() if problem_path else None,
    )

    solver = SolverConfig(
        max_iterations=int(solver_raw.get("max_iterations", 10_000)),
        pivot_tolerance=float(solver_raw.get("pivot_tolerance", DEFAULT_PIVOT_TOLERANCE)),
        optimality_tolerance=float(
            solver_raw.get("optimality_tolerance", DEFAULT_OPTIMALITY_TOLERANCE)
        ),
        refactor_every=int(solver_raw.get("refactor_every", DEFAULT_REFACTOR_EVERY)),
    )
    if solver.max_iterations < 0:
        raise ValueError("solver.max_iterations must be non-negative")
    if solver.pivot_tolerance <= 0:
        raise ValueError("solver.pivot_tolerance must be positive")
    if solver.optimality_tolerance < 0:
        raise ValueError("solver.optimality_tolerance must be non-negative")
    if solver.refactor_every < 0:
        raise ValueError("solver.refactor_every must be non-negative")

    run = RunConfig(
        trace=bool(run_raw.get("trace", False)),
        log_level=_log_level(run_raw.get("log_level", "INFO")),
        repeats=int(run_raw.get("repeats", 5)),
    )
    if run.repeats <= 0:
        raise ValueError("run.repeats must be positive")

    return Config(problem=problem, solver=solver, run=run, base_path=base)
