"""Cardinality maximization: make as many reactions in J carry flux as possible.

Two maximizers are provided.

LP7 (convex, Vlassis et al. 2014):

    maximize    sum_{j in J} z_j
    subject to  A v (csense) b,   lb <= v <= ub
                z_j <= v_j,  0 <= z_j <= epsilon      for j in J

  Only forward flux is rewarded. For a set of irreversible reactions the
  optimum puts z_j = epsilon on every reaction that can carry flux, so the
  support of v is exactly the consistent part of J.

DCA (nonconvex):
  maximize |{j in J : |v_j| >= epsilon}| through the saturating surrogate

    score(v) = sum_j rho_j min(|v_j| / epsilon, 1)
             = sum_j rho_j |v_j|/epsilon - sum_j rho_j max(|v_j|/epsilon - 1, 0)

  written as a difference of convex functions. Each round linearizes the
  concave part at the current v (subgradient v_bar = rho sign(v) / epsilon)
  and solves

    minimize    sum_{j in J} t_j - v_bar^T v
    subject to  S v (csense) b,   lb <= v <= ub
                t_j >= v_j/epsilon,  t_j >= -v_j/epsilon
                1 <= t_j <= max(1, |lb_j|/epsilon, |ub_j|/epsilon)

  This reaches a stationary point only, so the support it returns is sound
  but not necessarily maximal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
import scipy.sparse as sp

from .lp import LinearProgram, LPSolution, LPStatus, SolverParams, solve_lp
from .utils import DCA_MAX_ITERATIONS


LOGGER = logging.getLogger(__name__)


def cardinality_score(
    v: NDArray[np.float64],
    weights: NDArray[np.float64],
    epsilon: float,
) -> float:
    """sum_j weights_j * min(|v_j| / epsilon, 1)."""
    v = np.asarray(v, dtype=float)
    return float(np.asarray(weights, dtype=float) @ np.minimum(np.abs(v) / epsilon, 1.0))


def _selector(J: NDArray[np.int64], n: int, value: float) -> sp.csr_matrix:
    """(|J|, n) matrix with `value` at (k, J[k])."""
    nj = len(J)
    return sp.csr_matrix((np.full(nj, value), (np.arange(nj), J)), shape=(nj, n))


@dataclass(frozen=True)
class CardinalitySolution:
    status: LPStatus
    v: NDArray[np.float64] | None = None
    iterations: int = 0
    score: float | None = None

    @property
    def ok(self) -> bool:
        return self.status is LPStatus.OPTIMAL


def dca_subproblem(J: NDArray[np.int64], lp: LinearProgram, epsilon: float) -> LinearProgram:
    """Auxiliary LP over (v, t) shared by every DCA round.

    Only the balance block of `lp` is used; extra constraint rows are ignored.
    """
    bal = lp.balance_block()
    m, n = bal.A.shape
    nj = len(J)

    Ij = _selector(J, n, 1.0 / epsilon)
    eye = sp.identity(nj, format="csr")
    A = sp.vstack([
        sp.hstack([bal.A, sp.csr_matrix((m, nj))]),
        sp.hstack([Ij, -eye]),   #  v_j/eps - t_j <= 0
        sp.hstack([-Ij, -eye]),  # -v_j/eps - t_j <= 0
    ], format="csr")
    b = np.concatenate([bal.b, np.zeros(2 * nj)])
    csense = np.concatenate([bal.csense, np.full(2 * nj, "L", dtype="<U1")])

    t_ub = np.maximum(1.0, np.maximum(np.abs(bal.lb[J]), np.abs(bal.ub[J])) / epsilon)
    lb = np.concatenate([bal.lb, np.ones(nj)])
    ub = np.concatenate([bal.ub, t_ub])

    return LinearProgram(
        A=A, b=b, csense=csense, lb=lb, ub=ub,
        c=np.concatenate([np.zeros(n), np.ones(nj)]),
        osense=1,
    )


def maximize_cardinality_dca(
    J: Sequence[int],
    lp: LinearProgram,
    epsilon: float,
    *,
    params: SolverParams | None = None,
    max_iterations: int = DCA_MAX_ITERATIONS,
    print_level: int = 0,
) -> CardinalitySolution:
    """Approximately maximize the number of reactions in J with |v_j| >= epsilon.

    Args:
        J: candidate reaction indices (non-empty)
        lp: working LP (reaction columns only)
        epsilon: flux threshold
        max_iterations: cap on DCA rounds
        print_level: >= 3 logs every round

    Returns:
        CardinalitySolution; on an infeasible/unbounded round no flux vector
        is returned and the status of that round is reported.
    """
    J = np.asarray(sorted(int(j) for j in J), dtype=np.int64)
    if J.size == 0:
        raise ValueError("J must not be empty")
    n = lp.n_cols
    nj = J.size

    v = np.zeros(n)
    v[J] = 1.0
    rho = np.zeros(n)
    rho[J] = 1.0
    score_old = cardinality_score(v, rho, epsilon)
    score_new = score_old

    sub = dca_subproblem(J, lp, epsilon)
    basis = None

    iteration = 0
    for iteration in range(1, max_iterations + 1):
        v_old = v
        v_bar = rho * np.sign(v) / epsilon

        sol = solve_lp(sub, np.concatenate([-v_bar, np.ones(nj)]), params=params, basis=basis)
        basis = sol.basis
        if not sol.ok:
            if print_level > 2:
                LOGGER.debug("DCA round %d: subproblem %s", iteration, sol.status.value)
            return CardinalitySolution(status=sol.status, iterations=iteration)

        v = sol.x[:n]
        error_v = float(np.linalg.norm(v - v_old))
        score_new = cardinality_score(v, rho, epsilon)
        error_score = abs(score_new - score_old)
        if print_level > 2:
            LOGGER.debug(
                "DCA round %d: score=%g, stopping error=%g",
                iteration, score_new, min(error_v, error_score),
            )
        if error_v < epsilon or error_score < epsilon:
            break
        score_old = score_new

    return CardinalitySolution(status=LPStatus.OPTIMAL, v=v, iterations=iteration, score=score_new)


def maximize_cardinality_lp(
    J: Sequence[int],
    lp: LinearProgram,
    epsilon: float,
    *,
    params: SolverParams | None = None,
    basis: object | None = None,
) -> LPSolution:
    """LP7: reward forward flux up to epsilon on every reaction in J.

    Uses the full working LP, extra constraint rows included.
    The returned solution's x holds the reaction fluxes only.
    """
    J = np.asarray(sorted(int(j) for j in J), dtype=np.int64)
    m, n = lp.A.shape
    nj = J.size
    if nj == 0:
        return solve_lp(lp, np.zeros(n), osense=1, params=params, basis=basis)

    A = sp.vstack([
        sp.hstack([lp.A, sp.csr_matrix((m, nj))]),
        sp.hstack([_selector(J, n, -1.0), sp.identity(nj, format="csr")]),  # z_j - v_j <= 0
    ], format="csr")
    aux = LinearProgram(
        A=A,
        b=np.concatenate([lp.b, np.zeros(nj)]),
        csense=np.concatenate([lp.csense, np.full(nj, "L", dtype="<U1")]),
        lb=np.concatenate([lp.lb, np.zeros(nj)]),
        ub=np.concatenate([lp.ub, np.full(nj, float(epsilon))]),
        c=np.concatenate([np.zeros(n), np.ones(nj)]),
        osense=-1,
    )
    sol = solve_lp(aux, params=params, basis=basis)
    if not sol.ok:
        return sol
    return replace(sol, x=sol.x[:n])
