from pathlib import Path
import json
import sys

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import cli
from config import Config, SolverConfig, load_config
from instances import ProblemInstance, load_instance, random_instance, save_instance
from plots.metrics import generate_plots
from runner.bench import run_benchmark, summarize
from simplex import PivotRecord, RevisedSimplexSolver, StandardFormProblem, Status
from solver.lp_solver import solve_reference
from telemetry.writer import write_history

DATA = Path(__file__).resolve().parent / "data"


def test_load_instance_decodes_triplets_and_nested_lists():
    instance = load_instance(DATA / "small_example.json")
    assert instance.shape == (3, 7)
    np.testing.assert_allclose(instance.b, [10.0, 12.0, 25.0])
    np.testing.assert_allclose(instance.c, [1.0, 1.0, 1.0, 1.0, 0.0, 0.0, 0.0])
    np.testing.assert_allclose(instance.A[1], [10.0, 0.0, 3.0, 1.0, 0.0, 1.0, 0.0])
    assert instance.sol == [1, 5, 6]


def test_column_major_matrix_triplet(tmp_path):
    payload = {
        "A": [[1.0, 4.0, 2.0, 5.0, 3.0, 6.0], 2, 3],
        "b": [1.0, 2.0],
        "c": [[7.0, 8.0, 9.0], None, 3],
    }
    path = tmp_path / "triplet.json"
    path.write_text(json.dumps(payload))
    instance = load_instance(path)
    np.testing.assert_allclose(instance.A, [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    np.testing.assert_allclose(instance.c, [7.0, 8.0, 9.0])
    assert instance.sol is None


def test_instance_rejects_mismatched_shapes(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"a": [[1.0, 0.0]], "b": [1.0, 2.0], "c": [1.0, 0.0]}))
    with pytest.raises(ValueError):
        load_instance(path)
    path.write_text(json.dumps({"a": [[1.0, 0.0]], "c": [1.0, 0.0]}))
    with pytest.raises(ValueError):
        load_instance(path)


def test_save_and_npz_instances(tmp_path):
    instance = random_instance(3, 4, rng=np.random.default_rng(1))
    save_instance(instance, tmp_path / "inst.json")
    loaded = load_instance(tmp_path / "inst.json")
    np.testing.assert_allclose(loaded.A, instance.A)

    np.savez(tmp_path / "inst.npz", A=instance.A, b=instance.b, c=instance.c, sol=[4, 5, 6])
    archived = load_instance(tmp_path / "inst.npz")
    np.testing.assert_allclose(archived.c, instance.c)
    assert archived.sol == [4, 5, 6]

    with pytest.raises(ValueError):
        ProblemInstance(A=instance.A, b=instance.b, c=instance.c, sol=[1])


def test_random_instance_has_slack_basis():
    instance = random_instance(4, 6, rng=np.random.default_rng(0))
    assert instance.shape == (4, 10)
    np.testing.assert_allclose(instance.A[:, 6:], np.eye(4))
    assert np.all(instance.b > 0)
    result = RevisedSimplexSolver().solve(
        StandardFormProblem(A=instance.A, b=instance.b, c=instance.c)
    )
    assert result.status is Status.OPTIMAL
    reference = solve_reference(instance.c, instance.A, instance.b)
    assert result.objective == pytest.approx(reference.objective, rel=1e-6)


def test_reference_solver_validates_shapes():
    with pytest.raises(ValueError):
        solve_reference(np.ones(3), np.ones((2, 2)), np.ones(2))
    with pytest.raises(ValueError):
        solve_reference(np.ones(2), np.ones((2, 2)), np.ones(3))


def test_load_config_resolves_problem_path():
    cfg = load_config(DATA / "small_example.yaml")
    assert cfg.problem.path == (DATA / "small_example.json").resolve()
    assert cfg.solver.refactor_every == 2
    assert cfg.solver.pivot_tolerance == pytest.approx(1e-5)
    assert cfg.run.trace is True
    assert cfg.run.log_level == "DEBUG"
    assert cfg.run.repeats == 3

    solver = cfg.solver.build(trace=True)
    instance = load_instance(cfg.problem.path)
    result = solver.solve(StandardFormProblem(A=instance.A, b=instance.b, c=instance.c))
    assert sorted(result.basis) == instance.sol
    assert len(result.trace) == result.iterations


def test_load_config_defaults_and_validation(tmp_path):
    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    cfg = load_config(empty)
    assert cfg.problem.path is None
    assert cfg.solver == SolverConfig()

    bad = tmp_path / "bad.yaml"
    bad.write_text("solver:\n  pivot_tolerance: 0\n")
    with pytest.raises(ValueError):
        load_config(bad)

    bad.write_text("run:\n  log_level: chatty\n")
    with pytest.raises(ValueError):
        load_config(bad)


def test_write_history_emits_json_lines(tmp_path):
    records = [
        PivotRecord(iteration=1, entering=0, leaving=5, row=1, objective=1.2, residual=0.0),
        PivotRecord(iteration=2, entering=1, leaving=4, row=0, objective=4.4, residual=1e-16),
    ]
    target = tmp_path / "nested" / "trace.jsonl"
    assert write_history(target, (rec.to_dict() for rec in records)) == 2
    lines = target.read_text().splitlines()
    assert json.loads(lines[1])["leaving"] == 4


def test_generate_plots_writes_files(tmp_path):
    records = [
        PivotRecord(iteration=i, entering=i, leaving=i + 3, row=0, objective=float(i), residual=0.0)
        for i in range(1, 4)
    ]
    written = generate_plots(records, tmp_path / "plots")
    assert [path.name for path in written] == ["objective.png", "inverse_residual.png"]
    assert all(path.exists() for path in written)
    assert generate_plots([], tmp_path / "none") == []


def test_benchmark_is_deterministic():
    instance = load_instance(DATA / "small_example.json")
    records = run_benchmark(instance, RevisedSimplexSolver(), repeats=3)
    assert [rec.repeat for rec in records] == [0, 1, 2]
    assert all(rec.basis == [1, 5, 6] for rec in records)
    stats = summarize(records)
    assert stats["repeats"] == 3
    assert stats["min"] <= stats["mean"] <= stats["max"]
    with pytest.raises(ValueError):
        run_benchmark(instance, RevisedSimplexSolver(), repeats=0)


def test_cli_solve_writes_outputs(tmp_path, capsys):
    code = cli.main(
        ["solve", "--problem", str(DATA / "small_example.json"), "--check", "--out", str(tmp_path)]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "status: optimal" in out
    assert "basis: [1, 5, 6]" in out
    payload = json.loads((tmp_path / "result.json").read_text())
    assert payload["status"] == "optimal"
    assert payload["reference"]["objective"] == pytest.approx(5.0)
    assert len((tmp_path / "trace.jsonl").read_text().splitlines()) == payload["iterations"]
    assert (tmp_path / "plots" / "objective.png").exists()


def test_cli_solve_budget_exhaustion_exits_nonzero(capsys):
    code = cli.main(
        ["--config", str(DATA / "small_example.yaml"), "solve", "--max-iterations", "0"]
    )
    assert code == 1
    assert "status: iteration_limit" in capsys.readouterr().out


def test_cli_generate_and_bench(tmp_path, capsys):
    target = tmp_path / "random.json"
    assert cli.main(["generate", "3", "5", "--out", str(target), "--seed", "4"]) == 0
    assert load_instance(target).shape == (3, 8)
    assert cli.main(["bench", "--problem", str(target), "--repeats", "2", "--out", str(tmp_path)]) == 0
    assert len((tmp_path / "bench.jsonl").read_text().splitlines()) == 2
    assert cli.main(["bench", "--random", "4x6", "--repeats", "1"]) == 0
    assert "over 1 repeats" in capsys.readouterr().out


def test_default_config_has_no_problem():
    with pytest.raises(ValueError):
        cli._resolve_instance(None, Config())
