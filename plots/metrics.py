"""Plotting utilities for pivot traces."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from simplex import PivotRecord


def generate_plots(trace: Iterable[PivotRecord], out_dir: str | Path) -> list[Path]:
    records = list(trace)
    if not records:
        return []
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    it = np.array([rec.iteration for rec in records], dtype=float)
    objective = np.array([rec.objective for rec in records], dtype=float)
    residual = np.array([rec.residual for rec in records], dtype=float)
    written: list[Path] = []

    plt.figure(figsize=(6, 4))
    plt.step(it, objective, where="post", label="c^T x")
    plt.xlabel("pivot")
    plt.ylabel("objective")
    plt.legend()
    plt.tight_layout()
    target = out_path / "objective.png"
    plt.savefig(target, dpi=150)
    plt.close()
    written.append(target)

    plt.figure(figsize=(6, 4))
    # Exact inverses produce zero residuals, which log scale cannot show.
    plt.semilogy(it, np.maximum(residual, np.finfo(float).tiny), label="max |B^-1 B - I|")
    plt.xlabel("pivot")
    plt.ylabel("inverse residual")
    plt.legend()
    plt.tight_layout()
    target = out_path / "inverse_residual.png"
    plt.savefig(target, dpi=150)
    plt.close()
    written.append(target)

    return written
