"""Linear programs built from flux models, solved with SciPy/HiGHS.

We use a single canonical LP structure:

    minimize    osense * c^T x
    subject to  A x (csense) b,   csense in {E, L, G}
                lb <= x <= ub

The first `n_balance` rows of A come from the stoichiometric block S of the
model; any remaining rows come from the extra constraint block C.

The structure is immutable. Sign flips of reaction columns (reorientation)
produce a new LP, so a base LP can always be recovered.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

import numpy as np
from numpy.typing import NDArray
import scipy.sparse as sp
from scipy.optimize import linprog

from .model import FluxModel


class LPStatus(Enum):
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    FAILED = "failed"  # iteration/time limit or numerical trouble


# scipy.optimize.linprog status codes
_LINPROG_STATUS = {
    0: LPStatus.OPTIMAL,
    2: LPStatus.INFEASIBLE,
    3: LPStatus.UNBOUNDED,
}


@dataclass(frozen=True)
class SolverParams:
    """Options passed to HiGHS through scipy.optimize.linprog."""

    feasibility_tol: float = 1e-7
    optimality_tol: float = 1e-7
    presolve: bool = True
    time_limit: float | None = None

    def feasibility_tolerance(self) -> float:
        return float(self.feasibility_tol)

    def linprog_options(self) -> dict:
        opts = {
            "primal_feasibility_tolerance": self.feasibility_tol,
            "dual_feasibility_tolerance": self.optimality_tol,
            "presolve": self.presolve,
        }
        if self.time_limit is not None:
            opts["time_limit"] = self.time_limit
        return opts


DEFAULT_PARAMS = SolverParams()


@dataclass(frozen=True)
class LPSolution:
    status: LPStatus
    x: NDArray[np.float64] | None = None
    objective: float | None = None
    # HiGHS via linprog has no warm start; kept so callers can thread it
    basis: object | None = None

    @property
    def ok(self) -> bool:
        return self.status is LPStatus.OPTIMAL


@dataclass(frozen=True)
class LinearProgram:
    A: sp.csr_matrix
    b: NDArray[np.float64]
    csense: NDArray[np.str_]
    lb: NDArray[np.float64]
    ub: NDArray[np.float64]
    c: NDArray[np.float64]
    osense: int = 1
    n_balance: int | None = None

    def __post_init__(self):
        A = sp.csr_matrix(self.A, dtype=float)
        m, n = A.shape
        object.__setattr__(self, "A", A)
        for name, size in (("b", m), ("lb", n), ("ub", n), ("c", n)):
            arr = np.asarray(getattr(self, name), dtype=float).reshape(-1)
            if arr.shape != (size,):
                raise ValueError(f"{name} must have shape ({size},), got {arr.shape}")
            object.__setattr__(self, name, arr)
        csense = np.asarray(self.csense, dtype="<U1").reshape(-1)
        if csense.shape != (m,):
            raise ValueError(f"csense must have shape ({m},)")
        object.__setattr__(self, "csense", csense)
        if self.osense not in (1, -1):
            raise ValueError("osense must be +1 (minimize) or -1 (maximize)")
        if self.n_balance is None:
            object.__setattr__(self, "n_balance", m)

    @property
    def n_rows(self) -> int:
        return int(self.A.shape[0])

    @property
    def n_cols(self) -> int:
        return int(self.A.shape[1])

    def with_objective(self, c: NDArray[np.float64], osense: int = 1) -> "LinearProgram":
        return replace(self, c=np.asarray(c, dtype=float), osense=osense)

    def balance_block(self) -> "LinearProgram":
        """The LP without the extra constraint rows."""
        k = int(self.n_balance)
        if k == self.n_rows:
            return self
        return replace(self, A=self.A[:k], b=self.b[:k], csense=self.csense[:k], n_balance=k)

    def reoriented(self, flip: NDArray[np.bool_]) -> "LinearProgram":
        """Negate the flagged columns; bounds are swapped and negated.

        For a flipped column the substitution v_j -> -v_j maps the feasible
        set onto itself, so solutions map back by multiplying with the signs.
        """
        flip = np.asarray(flip, dtype=bool)
        if flip.shape != (self.n_cols,):
            raise ValueError(f"flip mask must have shape ({self.n_cols},)")
        if not np.any(flip):
            return self
        signs = np.where(flip, -1.0, 1.0)
        A = sp.csr_matrix(self.A @ sp.diags(signs))
        lb = np.where(flip, -self.ub, self.lb)
        ub = np.where(flip, -self.lb, self.ub)
        return replace(self, A=A, lb=lb, ub=ub, c=self.c * signs)


def build_lp(model: FluxModel) -> LinearProgram:
    """Stack S over C into one LP with a zero objective."""
    A = model.S
    b = model.b
    csense = np.asarray(model.csense)
    if model.has_extra_constraints:
        A = sp.vstack([model.S, model.C], format="csr")
        b = np.concatenate([model.b, model.d])
        csense = np.concatenate([csense, np.asarray(model.dsense)])
    return LinearProgram(
        A=A,
        b=b,
        csense=csense,
        lb=model.lb.copy(),
        ub=model.ub.copy(),
        c=np.zeros(model.n_reactions),
        osense=1,
        n_balance=model.n_constraints,
    )


def _split_rows(lp: LinearProgram):
    """Translate (A, b, csense) into linprog's A_eq/b_eq and A_ub/b_ub."""
    eq = lp.csense == "E"
    le = lp.csense == "L"
    ge = lp.csense == "G"

    A_eq = lp.A[eq] if np.any(eq) else None
    b_eq = lp.b[eq] if np.any(eq) else None

    blocks = []
    rhs = []
    if np.any(le):
        blocks.append(lp.A[le])
        rhs.append(lp.b[le])
    if np.any(ge):
        # G rows: A x >= b  <=>  -A x <= -b
        blocks.append(-lp.A[ge])
        rhs.append(-lp.b[ge])
    A_ub = sp.vstack(blocks, format="csr") if blocks else None
    b_ub = np.concatenate(rhs) if rhs else None
    return A_eq, b_eq, A_ub, b_ub


def solve_lp(
    lp: LinearProgram,
    objective: NDArray[np.float64] | None = None,
    *,
    osense: int | None = None,
    params: SolverParams | None = None,
    basis: object | None = None,
) -> LPSolution:
    """Solve an LP with HiGHS.

    Args:
        lp: the linear program
        objective: optional objective vector overriding lp.c
        osense: +1 minimize, -1 maximize (default lp.osense)
        params: solver options
        basis: warm-start token (accepted, cold start is always used)

    Returns:
        LPSolution; x is only set when the status is OPTIMAL.
    """
    params = DEFAULT_PARAMS if params is None else params
    c = lp.c if objective is None else np.asarray(objective, dtype=float)
    sense = lp.osense if osense is None else osense
    if c.shape != (lp.n_cols,):
        raise ValueError(f"objective must have shape ({lp.n_cols},)")

    A_eq, b_eq, A_ub, b_ub = _split_rows(lp)
    res = linprog(
        sense * c,
        A_ub=A_ub, b_ub=b_ub,
        A_eq=A_eq, b_eq=b_eq,
        bounds=np.column_stack([lp.lb, lp.ub]),
        method="highs",
        options=params.linprog_options(),
    )

    status = _LINPROG_STATUS.get(res.status, LPStatus.FAILED)
    if status is not LPStatus.OPTIMAL or res.x is None:
        return LPSolution(status=status if status is not LPStatus.OPTIMAL else LPStatus.FAILED)
    return LPSolution(
        status=status,
        x=np.asarray(res.x, dtype=float),
        objective=float(sense * res.fun),
    )
