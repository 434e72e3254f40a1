"""Test orientation normalization, XOR composition of the flip layers and
the mapping of fluxes back to the caller's orientation."""

from __future__ import annotations

import numpy as np
import pytest

from flux_consistency.lp import build_lp
from flux_consistency.networks import toy_network
from flux_consistency.orientation import Orientation, flip_columns, normalize_orientation


def test_normalize_flips_reverse_only():
    model = toy_network()
    base, working, orientation = normalize_orientation(model)

    assert np.flatnonzero(orientation.initial).tolist() == [5]
    assert not orientation.loop.any()
    assert orientation.signs.tolist() == [1, 1, 1, 1, 1, -1, 1, 1, 1, 1]

    # no reverse-only reaction is left in the working LP
    assert not np.any((working.lb < 0) & (working.ub <= 0))
    assert (working.lb[5], working.ub[5]) == (0.0, 10.0)
    assert np.allclose(working.A.toarray()[:, 5], -base.A.toarray()[:, 5])
    # base LP is the caller's orientation
    assert np.allclose(base.A.toarray(), build_lp(model).A.toarray())


def test_layers_compose_by_xor():
    o = Orientation(initial=[True, False, True], loop=[False, False, False])
    o = flip_columns(o, [0, 1])

    assert o.loop.tolist() == [True, True, False]
    assert o.flipped.tolist() == [False, True, True]
    assert o.signs.tolist() == [1, -1, -1]

    o = flip_columns(o, [1])
    assert o.signs.tolist() == [1, 1, -1]


def test_to_original_and_apply():
    model = toy_network()
    base, _, orientation = normalize_orientation(model)
    orientation = flip_columns(orientation, [2])
    working = orientation.apply(base)

    # a working-orientation flux maps back to a solution of the base LP
    # R2 runs B -> C (negative in the base orientation), EX_D consumes D
    #             EX_A R1  R2  EX_C R3  EX_D R5  R6  R7  R8
    v = np.array([3.0, 2.0, 2.0, 2.0, 1.0, 1.0, 0.0, 0.0, 0.0, 0.0])
    assert np.allclose(working.A @ v, 0.0)

    w = orientation.to_original(v)
    assert w[2] == -2.0 and w[5] == -1.0
    assert np.allclose(base.A @ w, 0.0)


def test_layers_must_match():
    with pytest.raises(ValueError):
        Orientation(initial=[True], loop=[False, False])
