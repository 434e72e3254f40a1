"""Shared utilities for flux consistency computations.

This module provides common pieces used across the package:
- Tolerance constants for floating point comparisons
- Error / warning types
- Support extraction (which reactions carry flux)
- Residual norms of equality constraints
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
from numpy.typing import NDArray
import scipy.sparse as sp


# =============================================================================
# Tolerance constants
# =============================================================================
FLOAT_TOL = 1e-12

# a flux counts as nonzero when |v_j| >= SUPPORT_FRACTION * epsilon
SUPPORT_FRACTION = 0.99

# witness residuals are accepted up to RESIDUAL_FACTOR * feasibility tolerance
RESIDUAL_FACTOR = 1.1

# default epsilon = DEFAULT_EPSILON_FACTOR * feasibility tolerance
DEFAULT_EPSILON_FACTOR = 100.0

DCA_MAX_ITERATIONS = 10

# an LP optimum |v_j| below this counts as exactly zero
ZERO_FLUX_TOL = 1e-9


# =============================================================================
# Errors and warnings
# =============================================================================
class ConfigurationError(ValueError):
    """Raised when the requested tolerances cannot work with the LP solver."""


class NumericalWarning(UserWarning):
    """Witness fluxes violate the original constraints beyond tolerance."""


# =============================================================================
# Support and residuals
# =============================================================================
def flux_support(
    v: NDArray[np.float64] | None,
    epsilon: float,
    *,
    fraction: float = SUPPORT_FRACTION,
) -> set[int]:
    """Indices j with |v_j| >= fraction * epsilon.

    A missing flux vector (failed solve) has empty support.
    """
    if v is None:
        return set()
    v = np.asarray(v, dtype=float)
    return {int(j) for j in np.flatnonzero(np.abs(v) >= fraction * epsilon)}


def index_array(indices: Iterable[int]) -> NDArray[np.int64]:
    """Sorted int array from any iterable of indices."""
    return np.asarray(sorted(int(j) for j in indices), dtype=np.int64)


def equality_residual(
    A: sp.spmatrix,
    b: NDArray[np.float64],
    csense: NDArray[np.str_],
    v: NDArray[np.float64],
) -> float:
    """Infinity norm of A_E v - b_E over the equality rows.

    v may be a single vector (n,) or a matrix (n, k) of column vectors.
    """
    eq = np.asarray(csense) == "E"
    if not np.any(eq):
        return 0.0
    A_E = sp.csr_matrix(A)[eq]
    b_E = np.asarray(b, dtype=float)[eq]
    v = np.asarray(v, dtype=float)
    if v.ndim == 1:
        r = A_E @ v - b_E
    else:
        if v.shape[1] == 0:
            return 0.0
        r = A_E @ v - b_E[:, None]
    return float(np.max(np.abs(r))) if r.size else 0.0
