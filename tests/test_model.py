"""Test FluxModel validation, defaults and column restriction."""

from __future__ import annotations

import numpy as np
import pytest
import scipy.sparse as sp

from flux_consistency.model import FluxModel
from flux_consistency.networks import dead_end, toy_network


def test_defaults():
    model = FluxModel(S=np.array([[1.0, -1.0]]), lb=[0, 0], ub=[10, 10])

    assert sp.issparse(model.S)
    assert model.b.tolist() == [0.0]
    assert model.csense.tolist() == ["E"]
    assert model.rxns == ("R1", "R2")
    assert not model.has_extra_constraints
    assert model.n_reactions == 2
    assert model.n_constraints == 1


def test_extra_block_defaults_to_less_equal():
    model = FluxModel(
        S=np.array([[1.0, -1.0]]), lb=[0, 0], ub=[10, 10],
        C=np.array([[1.0, 0.0]]), d=[5.0],
    )
    assert model.has_extra_constraints
    assert model.dsense.tolist() == ["L"]


def test_direction_masks():
    model = toy_network()
    # EX_D is the only reverse-only reaction
    assert np.flatnonzero(model.reverse_only).tolist() == [5]
    assert np.flatnonzero(model.forward_only).tolist() == [0, 1, 3, 4, 6]


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(lb=[0, 5], ub=[10, 1]),                       # lb > ub
        dict(lb=[0, 0, 0], ub=[10, 10, 10]),                # wrong length
        dict(lb=[0, 0], ub=[10, 10], csense=["X"]),         # bad sense
        dict(lb=[0, 0], ub=[10, 10], b=[0.0, 1.0]),         # wrong b
        dict(lb=[0, 0], ub=[10, 10], rxns=["only_one"]),    # wrong ids
        dict(lb=[0, 0], ub=[10, 10], d=[1.0]),              # d without C
        dict(lb=[-np.inf, 0], ub=[np.inf, 10]),             # free reaction
        dict(lb=[0, 0], ub=[10, np.nan]),                   # nan bound
    ],
)
def test_invalid_models(kwargs):
    with pytest.raises(ValueError):
        FluxModel(S=np.array([[1.0, -1.0]]), **kwargs)


def test_restrict_keeps_rows_and_ids():
    model = dead_end()
    sub = model.restrict([2, 0, 1])

    assert sub.rxns == ("EX_A", "R1", "EX_B")
    assert sub.S.shape == (3, 3)
    assert np.allclose(sub.S.toarray(), model.S.toarray()[:, :3])
    assert np.allclose(sub.ub, [10, 10, 10])


def test_restrict_out_of_range():
    with pytest.raises(ValueError):
        dead_end().restrict([0, 7])
