"""Flux consistency (FASTCC) for constraint-based metabolic models.

Core contract:
- inputs: FluxModel (S, b, csense, lb, ub, optional C/d/dsense), epsilon
- workflow: normalize orientation -> probe (LP7 / DCA, LP3 / single checks)
  -> consistent reactions, orientation, witness fluxes

Reference: Vlassis, Pacheco & Sauter (2014), PLoS Comput Biol 10(1): e1003424.
"""

from .model import FluxModel
from .lp import LinearProgram, LPSolution, LPStatus, SolverParams, build_lp, solve_lp
from .orientation import Orientation, flip_columns, normalize_orientation
from .cardinality import cardinality_score, maximize_cardinality_dca, maximize_cardinality_lp
from .feasibility import check_single_reaction, maximize_reaction_lp
from .fastcc import FastccResult, FastccStep, fastcc
from .utils import ConfigurationError, NumericalWarning
