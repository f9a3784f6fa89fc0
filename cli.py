"""Command-line interface for the revised simplex solver."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from config import Config, load_config
from instances import ProblemInstance, load_instance, random_instance, save_instance
from plots.metrics import generate_plots
from runner.bench import run_benchmark, summarize
from simplex import StandardFormProblem, Status
from solver.lp_solver import LPSolverError, solve_reference
from telemetry.writer import write_history, write_result

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Revised primal simplex solver")
    parser.add_argument("--config", help="Path to YAML configuration file.")
    parser.add_argument("--log-level", help="Override run.log_level from the config.")
    sub = parser.add_subparsers(dest="command", required=True)

    solve = sub.add_parser("solve", help="Solve a single problem instance.")
    solve.add_argument("--problem", help="Problem instance (.json or .npz).")
    solve.add_argument("--out", help="Output directory for result, trace and plots.")
    solve.add_argument("--max-iterations", type=int, help="Pivot budget override.")
    solve.add_argument(
        "--check",
        action="store_true",
        help="Compare against the SciPy reference solver and the stored solution.",
    )

    bench = sub.add_parser("bench", help="Time repeated solves of one instance.")
    source = bench.add_mutually_exclusive_group(required=True)
    source.add_argument("--problem", help="Problem instance (.json or .npz).")
    source.add_argument("--random", metavar="MxN", help="Random instance with M rows, N structural columns.")
    bench.add_argument("--seed", type=int, default=0)
    bench.add_argument("--repeats", type=int, help="Number of repeats (default run.repeats).")
    bench.add_argument("--out", help="Output directory for bench.jsonl.")

    generate = sub.add_parser("generate", help="Write a random feasible instance.")
    generate.add_argument("m", type=int)
    generate.add_argument("n", type=int)
    generate.add_argument("--out", required=True, help="Destination JSON file.")
    generate.add_argument("--seed", type=int, default=0)

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config) if args.config else Config()
    logging.basicConfig(
        level=(args.log_level or cfg.run.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "solve":
        return _solve(args, cfg)
    if args.command == "bench":
        return _bench(args, cfg)
    if args.command == "generate":
        instance = random_instance(args.m, args.n, rng=np.random.default_rng(args.seed))
        save_instance(instance, args.out)
        print(f"wrote {args.m}x{args.m + args.n} instance to {args.out}")
        return 0
    raise ValueError(f"unknown command: {args.command}")


def _resolve_instance(path: Optional[str], cfg: Config) -> ProblemInstance:
    if path:
        return load_instance(path)
    if cfg.problem.path is None:
        raise ValueError("no problem given; pass --problem or set problem.path")
    return load_instance(cfg.problem.path)


def _solve(args: argparse.Namespace, cfg: Config) -> int:
    instance = _resolve_instance(args.problem, cfg)
    if args.max_iterations is not None:
        cfg.solver.max_iterations = args.max_iterations
    out_dir = Path(args.out) if args.out else None
    solver = cfg.solver.build(trace=cfg.run.trace or out_dir is not None)

    result = solver.solve(StandardFormProblem(A=instance.A, b=instance.b, c=instance.c))
    print(f"status: {result.status.value}")
    print(f"pivots: {result.iterations}")
    print(f"basis: {result.basis}")
    if result.objective is not None:
        print(f"objective: {result.objective:.10g}")

    payload = result.to_dict()
    ok = result.status is Status.OPTIMAL
    if args.check:
        ok = _check(instance, result.objective, result.basis, result.status, payload) and ok

    if out_dir is not None:
        write_result(out_dir / "result.json", payload)
        write_history(out_dir / "trace.jsonl", (rec.to_dict() for rec in result.trace))
        generate_plots(result.trace, out_dir / "plots")
    return 0 if ok else 1


def _check(
    instance: ProblemInstance,
    objective: Optional[float],
    basis: Sequence[int],
    status: Status,
    payload: dict,
) -> bool:
    ok = True
    try:
        reference = solve_reference(instance.c, instance.A, instance.b)
    except LPSolverError as exc:
        logger.warning("reference solver failed: %s", exc)
        payload["reference"] = {"status": "error", "message": str(exc)}
        return False
    payload["reference"] = {"status": reference.status, "objective": reference.objective}
    print(f"reference: {reference.status} {reference.objective:.10g}")
    if status is Status.OPTIMAL and objective is not None:
        if not np.isclose(objective, reference.objective, rtol=1e-6, atol=1e-6):
            logger.warning(
                "objective %.10g differs from reference %.10g", objective, reference.objective
            )
            ok = False
    elif status is Status.UNBOUNDED and reference.status != "unbounded":
        logger.warning("reference solver reports %s, not unbounded", reference.status)
        ok = False
    if instance.sol is not None and sorted(basis) != sorted(instance.sol):
        logger.warning("basis %s differs from stored solution %s", sorted(basis), sorted(instance.sol))
        ok = False
    return ok


def _bench(args: argparse.Namespace, cfg: Config) -> int:
    if args.random:
        try:
            m_str, n_str = args.random.lower().split("x")
            m, n = int(m_str), int(n_str)
        except ValueError as exc:
            raise ValueError(f"--random expects MxN, got {args.random!r}") from exc
        instance = random_instance(m, n, rng=np.random.default_rng(args.seed))
    else:
        instance = _resolve_instance(args.problem, cfg)

    repeats = args.repeats if args.repeats is not None else cfg.run.repeats
    records = run_benchmark(instance, cfg.solver.build(), repeats)
    stats = summarize(records)
    m, n = instance.shape
    print(
        f"{m}x{n}: {records[0].status} after {records[0].iterations} pivots; "
        f"min {stats['min']:.6f}s mean {stats['mean']:.6f}s max {stats['max']:.6f}s "
        f"over {stats['repeats']} repeats"
    )
    if args.out:
        write_history(Path(args.out) / "bench.jsonl", (rec.to_dict() for rec in records))
    return 0


if __name__ == "__main__":
    sys.exit(main())
