"""Test the cardinality score, the DCA maximizer and LP7."""

from __future__ import annotations

import numpy as np
import pytest

import flux_consistency.cardinality as cardinality_module
from flux_consistency.cardinality import (
    cardinality_score,
    dca_subproblem,
    maximize_cardinality_dca,
    maximize_cardinality_lp,
)
from flux_consistency.lp import LPSolution, LPStatus, build_lp
from flux_consistency.model import FluxModel
from flux_consistency.networks import dead_end, linear_pathway, reverse_forced
from flux_consistency.utils import DCA_MAX_ITERATIONS, flux_support


EPS = 1e-4


def test_score_saturates():
    v = np.array([0.0, 0.5 * EPS, 2.0 * EPS, -3.0 * EPS])
    w = np.array([1.0, 1.0, 1.0, 0.0])
    assert abs(cardinality_score(v, w, EPS) - 1.5) < 1e-12

    # negative fluxes count by magnitude
    assert abs(cardinality_score(-v, np.ones(4), EPS) - 2.5) < 1e-12


def test_dca_subproblem_layout():
    lp = build_lp(linear_pathway())
    sub = dca_subproblem(np.array([0, 2]), lp, EPS)

    # 2 balance rows (A, B) + 2 rows per candidate; v (3) + t (2) columns
    assert sub.A.shape == (2 + 4, 3 + 2)
    assert sub.csense.tolist() == ["E", "E", "L", "L", "L", "L"]
    assert np.allclose(sub.lb[3:], 1.0)
    assert np.allclose(sub.ub[3:], 10.0 / EPS)


class TestDCA:

    def test_pathway_all_supported(self):
        lp = build_lp(linear_pathway())
        sol = maximize_cardinality_dca([0, 1, 2], lp, EPS)

        assert sol.status is LPStatus.OPTIMAL
        assert flux_support(sol.v, EPS) == {0, 1, 2}
        assert 1 <= sol.iterations <= DCA_MAX_ITERATIONS
        assert abs(sol.score - 3.0) < 1e-6

    def test_dead_end_not_supported(self):
        lp = build_lp(dead_end())
        sol = maximize_cardinality_dca([0, 1, 2, 3], lp, EPS)

        assert sol.ok
        assert flux_support(sol.v, EPS) == {0, 1, 2}
        assert abs(sol.v[3]) < 1e-7

    def test_reverse_forced(self):
        lp = build_lp(reverse_forced())
        sol = maximize_cardinality_dca([0], lp, EPS)

        assert sol.ok
        assert abs(sol.v[0] + 1.0) < 1e-7

    def test_infeasible_returns_no_flux(self):
        model = FluxModel(S=np.array([[1.0]]), b=[20.0], lb=[0.0], ub=[10.0])
        sol = maximize_cardinality_dca([0], build_lp(model), EPS)

        assert sol.status is LPStatus.INFEASIBLE
        assert sol.v is None
        assert sol.iterations == 1

    def test_extra_block_is_ignored(self):
        # C v <= d would make the full LP infeasible
        model = FluxModel(
            S=linear_pathway().S, lb=np.zeros(3), ub=np.full(3, 10.0),
            C=np.array([[1.0, 0.0, 0.0]]), d=[-1.0],
        )
        sol = maximize_cardinality_dca([0, 1, 2], build_lp(model), EPS)
        assert sol.ok
        assert flux_support(sol.v, EPS) == {0, 1, 2}

    def test_empty_candidate_set(self):
        with pytest.raises(ValueError):
            maximize_cardinality_dca([], build_lp(linear_pathway()), EPS)


class TestLP7:

    def test_pathway_all_supported(self):
        sol = maximize_cardinality_lp([0, 1, 2], build_lp(linear_pathway()), EPS)

        assert sol.ok
        assert sol.x.shape == (3,)
        assert np.all(sol.x >= 0.99 * EPS)
        assert abs(sol.objective - 3 * EPS) < 1e-9

    def test_dead_end(self):
        sol = maximize_cardinality_lp([0, 1, 2, 3], build_lp(dead_end()), EPS)
        assert flux_support(sol.x, EPS) == {0, 1, 2}

    def test_respects_extra_block(self):
        model = FluxModel(
            S=linear_pathway().S, lb=np.zeros(3), ub=np.full(3, 10.0),
            C=np.array([[0.0, 1.0, 0.0]]), d=[0.0],
        )
        sol = maximize_cardinality_lp([0, 1, 2], build_lp(model), EPS)
        assert sol.ok
        assert flux_support(sol.x, EPS) == set()

    def test_empty_candidate_set_is_feasibility_solve(self):
        sol = maximize_cardinality_lp([], build_lp(reverse_forced()), EPS)
        assert sol.ok
        assert abs(sol.x[0] + 1.0) < 1e-7


def _alternating_solver(calls):
    """Stub solve_lp whose outputs never meet either DCA stopping rule.

    The flux vector alternates between one and two supported reactions, so
    both the flux change and the score change stay at 1 every round.
    """
    outputs = [
        np.array([1.0, 0.0, 0.0, 1.0, 1.0]),
        np.array([1.0, 1.0, 0.0, 1.0, 1.0]),
    ]

    def solve(sub, objective, **kwargs):
        x = outputs[len(calls) % 2]
        calls.append(objective)
        return LPSolution(status=LPStatus.OPTIMAL, x=x.copy(), objective=0.0)

    return solve


class TestDCARoundCap:

    def test_stops_after_max_rounds(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cardinality_module, "solve_lp", _alternating_solver(calls))
        sol = maximize_cardinality_dca([0, 1], build_lp(linear_pathway()), EPS)

        assert DCA_MAX_ITERATIONS == 10
        assert len(calls) == 10
        assert sol.iterations == 10
        assert sol.status is LPStatus.OPTIMAL
        assert np.allclose(sol.v, [1.0, 1.0, 0.0])

    def test_custom_cap(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cardinality_module, "solve_lp", _alternating_solver(calls))
        sol = maximize_cardinality_dca([0, 1], build_lp(linear_pathway()), EPS, max_iterations=3)

        assert len(calls) == 3
        assert sol.iterations == 3
