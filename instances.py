"""Loading, saving and generating standard-form problem instances."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import numpy as np


@dataclass(frozen=True)
class ProblemInstance:
    A: np.ndarray
    b: np.ndarray
    c: np.ndarray
    sol: Optional[List[int]] = None

    def __post_init__(self) -> None:
        if self.A.ndim != 2:
            raise ValueError("A must be a 2-D array")
        m, n = self.A.shape
        if self.b.shape != (m,):
            raise ValueError(f"b has shape {self.b.shape}, expected ({m},)")
        if self.c.shape != (n,):
            raise ValueError(f"c has shape {self.c.shape}, expected ({n},)")
        if self.sol is not None and len(self.sol) != m:
            raise ValueError(f"sol lists {len(self.sol)} indices, expected {m}")

    @property
    def shape(self) -> tuple[int, int]:
        return self.A.shape

    def to_dict(self) -> dict:
        payload = {"a": self.A.tolist(), "b": self.b.tolist(), "c": self.c.tolist()}
        if self.sol is not None:
            payload["sol"] = list(self.sol)
        return payload

    @classmethod
    def from_dict(cls, payload: dict) -> ProblemInstance:
        try:
            raw_a = _lookup(payload, "a")
            raw_b = _lookup(payload, "b")
            raw_c = _lookup(payload, "c")
        except KeyError as exc:
            raise ValueError(f"problem instance is missing {exc.args[0]!r}") from exc
        A = _decode_array(raw_a)
        if A.ndim == 1:
            A = A.reshape(1, -1)
        b = _decode_array(raw_b).reshape(-1)
        c = _decode_array(raw_c).reshape(-1)
        sol = payload.get("sol")
        return cls(
            A=A,
            b=b,
            c=c,
            sol=[int(idx) for idx in sol] if sol is not None else None,
        )


def _lookup(payload: dict, key: str) -> Any:
    if key in payload:
        return payload[key]
    return payload[key.upper()]


def _is_triplet(raw: Any) -> bool:
    return (
        isinstance(raw, list)
        and len(raw) == 3
        and isinstance(raw[0], list)
        and all(dim is None or isinstance(dim, int) for dim in raw[1:])
    )


def _decode_array(raw: Any) -> np.ndarray:
    """Decode nested lists or a column-major ``[data, nrows, ncols]`` triplet."""
    if not _is_triplet(raw):
        return np.asarray(raw, dtype=float)
    data = np.asarray(raw[0], dtype=float)
    nrows, ncols = raw[1], raw[2]
    if nrows is None and ncols is None:
        raise ValueError("triplet encoding needs at least one dimension")
    if nrows is None:
        nrows = data.size // ncols if ncols else 1
    if ncols is None:
        ncols = data.size // nrows if nrows else 1
    if nrows * ncols != data.size:
        raise ValueError(f"triplet data has {data.size} values, expected {nrows}x{ncols}")
    return data.reshape((nrows, ncols), order="F")


def load_instance(path: str | Path) -> ProblemInstance:
    source = Path(path).expanduser()
    if not source.exists():
        raise FileNotFoundError(source)
    if source.suffix == ".json":
        with source.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError("problem JSON must be an object")
        return ProblemInstance.from_dict(payload)
    if source.suffix == ".npz":
        with np.load(source) as archive:
            sol = archive["sol"].astype(int).tolist() if "sol" in archive.files else None
            return ProblemInstance(
                A=np.asarray(archive["A"], dtype=float),
                b=np.asarray(archive["b"], dtype=float).reshape(-1),
                c=np.asarray(archive["c"], dtype=float).reshape(-1),
                sol=sol,
            )
    raise ValueError(f"unsupported problem file type: {source}")


def save_instance(instance: ProblemInstance, path: str | Path) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(instance.to_dict(), indent=2))


def random_instance(
    m: int,
    n_structural: int,
    *,
    rng: Optional[np.random.Generator] = None,
) -> ProblemInstance:
    """Feasible instance whose trailing ``m`` columns are an identity slack block."""
    if m <= 0 or n_structural <= 0:
        raise ValueError("instance dimensions must be positive")
    if rng is None:
        rng = np.random.default_rng()
    structural = rng.uniform(0.0, 10.0, size=(m, n_structural))
    A = np.hstack([structural, np.eye(m)])
    b = rng.uniform(1.0, 100.0, size=m)
    c = np.concatenate([rng.uniform(0.1, 5.0, size=n_structural), np.zeros(m)])
    return ProblemInstance(A=A, b=b, c=c)
