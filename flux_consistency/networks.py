"""Small flux models with known consistency.

  linear_pathway      -> A -> B ->               all consistent
  dead_end            linear pathway + A -> C    C has no consumer: blocked
  reverse_forced      one reversible reaction forced to v = -1
  toy_network         mixture of everything below

toy_network
  Internal species: A, B, C, D, E, F, G, H

  Reactions (bounds):
    0) EX_A:  -> A            [0, 10]
    1) R1:    A -> B          [0, 10]
    2) R2:    C <-> B         [-10, 10]   only usable as B -> C
    3) EX_C:  C ->            [0, 10]
    4) R3:    A -> D          [0, 10]
    5) EX_D:  -> D            [-10, 0]    reverse only (D is consumed)
    6) R5:    E -> A          [0, 10]     E has no source: blocked
    7) R6:    F <-> G         [-10, 10]   reversible cycle with R7
    8) R7:    G <-> F         [-10, 10]
    9) R8:    F <-> H         [-10, 10]   H has no other reaction: blocked
"""

from __future__ import annotations

import numpy as np
import scipy.sparse as sp

from .model import FluxModel


def linear_pathway() -> FluxModel:
    S = np.array([
        [1, -1,  0],  # A
        [0,  1, -1],  # B
    ], dtype=float)
    return FluxModel(
        S=sp.csr_matrix(S),
        lb=np.zeros(3),
        ub=np.full(3, 10.0),
        rxns=["EX_A", "R1", "EX_B"],
    )


def dead_end() -> FluxModel:
    S = np.array([
        [1, -1,  0, -1],  # A
        [0,  1, -1,  0],  # B
        [0,  0,  0,  1],  # C
    ], dtype=float)
    return FluxModel(
        S=sp.csr_matrix(S),
        lb=np.zeros(4),
        ub=np.full(4, 10.0),
        rxns=["EX_A", "R1", "EX_B", "R_dead"],
    )


def reverse_forced() -> FluxModel:
    # v = -1 is the only feasible flux
    return FluxModel(
        S=sp.csr_matrix(np.array([[1.0]])),
        b=np.array([-1.0]),
        lb=np.array([-10.0]),
        ub=np.array([10.0]),
        rxns=["R_rev"],
    )


TOY_CONSISTENT = ("EX_A", "R1", "R2", "EX_C", "R3", "EX_D", "R6", "R7")
TOY_INCONSISTENT = ("R5", "R8")


def toy_network() -> FluxModel:
    #   EX_A R1 R2 EX_C R3 EX_D R5 R6 R7 R8
    S = np.array([
        [1, -1,  0,  0, -1,  0,  1,  0,  0,  0],  # A
        [0,  1,  1,  0,  0,  0,  0,  0,  0,  0],  # B
        [0,  0, -1, -1,  0,  0,  0,  0,  0,  0],  # C
        [0,  0,  0,  0,  1,  1,  0,  0,  0,  0],  # D
        [0,  0,  0,  0,  0,  0, -1,  0,  0,  0],  # E
        [0,  0,  0,  0,  0,  0,  0, -1,  1, -1],  # F
        [0,  0,  0,  0,  0,  0,  0,  1, -1,  0],  # G
        [0,  0,  0,  0,  0,  0,  0,  0,  0,  1],  # H
    ], dtype=float)
    lb = np.array([0, 0, -10, 0, 0, -10, 0, -10, -10, -10], dtype=float)
    ub = np.array([10, 10, 10, 10, 10, 0, 10, 10, 10, 10], dtype=float)
    return FluxModel(
        S=sp.csr_matrix(S),
        lb=lb,
        ub=ub,
        rxns=["EX_A", "R1", "R2", "EX_C", "R3", "EX_D", "R5", "R6", "R7", "R8"],
    )
