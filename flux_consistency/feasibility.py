"""Single-reaction flux checks.

Both checks decide one reaction j at a time by pushing v_j away from zero:

- maximize_reaction_lp (LP3): maximize v_j over the full working LP.
- check_single_reaction: over the balance rows only, push v_j in every
  direction its bounds allow
      lb_j >= 0          maximize v_j
      ub_j <= 0          minimize v_j
      otherwise          maximize v_j, and minimize only if the maximum is 0
"""

from __future__ import annotations

import numpy as np

from .lp import LinearProgram, LPSolution, SolverParams, solve_lp
from .utils import ZERO_FLUX_TOL


def _unit(n: int, j: int, value: float) -> np.ndarray:
    c = np.zeros(n)
    c[j] = value
    return c


def _check_index(j: int, n: int) -> int:
    j = int(j)
    if not 0 <= j < n:
        raise ValueError(f"reaction index {j} out of range for {n} reactions")
    return j


def maximize_reaction_lp(
    j: int,
    lp: LinearProgram,
    *,
    params: SolverParams | None = None,
    basis: object | None = None,
) -> LPSolution:
    """LP3: maximize the forward flux of reaction j."""
    j = _check_index(j, lp.n_cols)
    return solve_lp(lp, _unit(lp.n_cols, j, 1.0), osense=-1, params=params, basis=basis)


def check_single_reaction(
    j: int,
    lp: LinearProgram,
    *,
    params: SolverParams | None = None,
    zero_tol: float = ZERO_FLUX_TOL,
) -> LPSolution:
    """Test whether reaction j can carry flux in a permitted direction.

    Returns the solution of the last solve performed; its x is None when that
    solve was infeasible or unbounded.
    """
    bal = lp.balance_block()
    n = bal.n_cols
    j = _check_index(j, n)

    # c_j = -1 under minimization <=> maximize v_j
    if bal.lb[j] >= 0:
        return solve_lp(bal, _unit(n, j, -1.0), osense=1, params=params)
    if bal.ub[j] <= 0:
        return solve_lp(bal, _unit(n, j, 1.0), osense=1, params=params)

    sol = solve_lp(bal, _unit(n, j, -1.0), osense=1, params=params)
    if not sol.ok or abs(sol.x[j]) > zero_tol:
        return sol
    return solve_lp(bal, _unit(n, j, 1.0), osense=1, params=params)
