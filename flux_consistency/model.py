"""Constraint-based flux model container.

A flux model is the usual COBRA-style description of a metabolic network:

    S v (csense) b          balance rows, csense in {E, L, G}
    C v (dsense) d          optional extra constraint block
    lb <= v <= ub           box bounds per reaction

Shapes:
  S: (m, n)   sparse
  C: (k, n)   sparse or None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
import scipy.sparse as sp


_SENSES = ("E", "L", "G")


def _as_sense(sense, n_rows: int, default: str, name: str) -> NDArray[np.str_]:
    if sense is None:
        return np.full(n_rows, default, dtype="<U1")
    out = np.asarray([str(s).upper() for s in sense], dtype="<U1")
    if out.shape != (n_rows,):
        raise ValueError(f"{name} must have shape ({n_rows},), got {out.shape}")
    bad = sorted(set(out.tolist()) - set(_SENSES))
    if bad:
        raise ValueError(f"{name} entries must be one of {_SENSES}, got {bad}")
    return out


@dataclass(frozen=True)
class FluxModel:
    """Stoichiometry, bounds and optional extra constraints of a network.

    All arrays are coerced on construction: matrices to CSR, vectors to
    float64. `b` defaults to zeros (steady state), `csense` to all equalities
    and `dsense` to all `L` (C v <= d).
    """

    S: sp.spmatrix
    lb: NDArray[np.float64]
    ub: NDArray[np.float64]
    b: NDArray[np.float64] | None = None
    csense: Sequence[str] | None = None
    rxns: Sequence[str] | None = None
    C: sp.spmatrix | None = None
    d: NDArray[np.float64] | None = None
    dsense: Sequence[str] | None = None

    def __post_init__(self):
        S = sp.csr_matrix(self.S, dtype=float)
        m, n = S.shape
        object.__setattr__(self, "S", S)

        lb = np.asarray(self.lb, dtype=float).reshape(-1)
        ub = np.asarray(self.ub, dtype=float).reshape(-1)
        if lb.shape != (n,) or ub.shape != (n,):
            raise ValueError(f"lb and ub must have shape ({n},)")
        # unbounded directions make LP3 and the single checks report UNBOUNDED
        if not (np.all(np.isfinite(lb)) and np.all(np.isfinite(ub))):
            bad = np.flatnonzero(~(np.isfinite(lb) & np.isfinite(ub))).tolist()
            raise ValueError(f"non-finite bounds for reactions {bad}; use a large finite bound")
        if np.any(lb > ub):
            bad = np.flatnonzero(lb > ub).tolist()
            raise ValueError(f"lb > ub for reactions {bad}")
        object.__setattr__(self, "lb", lb)
        object.__setattr__(self, "ub", ub)

        b = np.zeros(m) if self.b is None else np.asarray(self.b, dtype=float).reshape(-1)
        if b.shape != (m,):
            raise ValueError(f"b must have shape ({m},)")
        object.__setattr__(self, "b", b)
        object.__setattr__(self, "csense", _as_sense(self.csense, m, "E", "csense"))

        if self.rxns is None:
            rxns = [f"R{j + 1}" for j in range(n)]
        else:
            rxns = [str(r) for r in self.rxns]
            if len(rxns) != n:
                raise ValueError(f"rxns has {len(rxns)} entries but S has {n} columns")
        object.__setattr__(self, "rxns", tuple(rxns))

        if self.C is None:
            if self.d is not None or self.dsense is not None:
                raise ValueError("d / dsense given without C")
            return
        C = sp.csr_matrix(self.C, dtype=float)
        k = C.shape[0]
        if C.shape[1] != n:
            raise ValueError(f"C has {C.shape[1]} columns but S has {n}")
        d = np.zeros(k) if self.d is None else np.asarray(self.d, dtype=float).reshape(-1)
        if d.shape != (k,):
            raise ValueError(f"d must have shape ({k},)")
        object.__setattr__(self, "C", C)
        object.__setattr__(self, "d", d)
        object.__setattr__(self, "dsense", _as_sense(self.dsense, k, "L", "dsense"))

    @property
    def n_reactions(self) -> int:
        return int(self.S.shape[1])

    @property
    def n_constraints(self) -> int:
        return int(self.S.shape[0])

    @property
    def has_extra_constraints(self) -> bool:
        return self.C is not None and self.C.shape[0] > 0

    @property
    def forward_only(self) -> NDArray[np.bool_]:
        return self.lb >= 0

    @property
    def reverse_only(self) -> NDArray[np.bool_]:
        return (self.lb < 0) & (self.ub <= 0)

    def restrict(self, columns: Sequence[int]) -> "FluxModel":
        """Sub-model over the given reaction columns (all rows kept)."""
        cols = np.asarray(sorted(int(j) for j in columns), dtype=int)
        if cols.size and (cols[0] < 0 or cols[-1] >= self.n_reactions):
            raise ValueError("column index out of range")
        return FluxModel(
            S=self.S[:, cols],
            lb=self.lb[cols],
            ub=self.ub[cols],
            b=self.b,
            csense=self.csense,
            rxns=[self.rxns[j] for j in cols],
            C=None if self.C is None else self.C[:, cols],
            d=self.d,
            dsense=self.dsense,
        )
