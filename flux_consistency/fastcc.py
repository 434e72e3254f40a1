"""FASTCC: find the flux consistent part of a constraint-based model.

A reaction j is flux consistent if some feasible flux vector has
|v_j| >= epsilon. The algorithm (Vlassis, Pacheco & Sauter 2014):

1) flip reverse-only reactions so every irreversible reaction runs forward
2) LP7 on the irreversible reactions; those without support are inconsistent
3) repeatedly probe the remaining reactions
     - all at once (batch) with LP7 or the DCA maximizer
     - if a batch probe finds nothing, flip the reversible candidates and
       retry once; if that also fails, fall back to one reaction at a time
     - a single reaction that finds nothing in either direction is
       inconsistent
4) map witnesses back to the caller's orientation and check them against
   the original constraints

Method "original" probes with LP7 / LP3, "nonconvex" with the DCA
cardinality maximizer / single-reaction checker.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from .cardinality import maximize_cardinality_dca, maximize_cardinality_lp
from .feasibility import check_single_reaction, maximize_reaction_lp
from .lp import DEFAULT_PARAMS, LinearProgram, SolverParams
from .model import FluxModel
from .orientation import Orientation, flip_columns, normalize_orientation
from .utils import (
    DEFAULT_EPSILON_FACTOR,
    RESIDUAL_FACTOR,
    SUPPORT_FRACTION,
    ConfigurationError,
    NumericalWarning,
    equality_residual,
    flux_support,
    index_array,
)


LOGGER = logging.getLogger(__name__)

METHODS = ("original", "nonconvex")


@dataclass(frozen=True)
class FastccStep:
    """One pass of the probing loop."""

    mode: str          # "batch" or "singleton"
    probe_size: int    # |Ji|
    n_consistent: int  # |Consistent| after the probe
    n_remaining: int   # |Remaining| after the probe
    flipped: int       # reactions flipped for the next probe


@dataclass(frozen=True)
class FastccResult:
    consistent: NDArray[np.int64]
    inconsistent: NDArray[np.int64]
    orientation: NDArray[np.int64]   # (n,) +1/-1, -1: witnessed in reverse
    layers: Orientation
    witnesses: NDArray[np.float64] | None  # (n, k) in original orientation
    steps: list[FastccStep]
    reaction_ids: tuple[str, ...]
    epsilon: float

    @property
    def n_reactions(self) -> int:
        return len(self.reaction_ids)

    @property
    def consistent_mask(self) -> NDArray[np.bool_]:
        mask = np.zeros(self.n_reactions, dtype=bool)
        mask[self.consistent] = True
        return mask

    @property
    def consistent_reactions(self) -> list[str]:
        return [self.reaction_ids[j] for j in self.consistent]

    @property
    def inconsistent_reactions(self) -> list[str]:
        return [self.reaction_ids[j] for j in self.inconsistent]

    @property
    def is_fully_consistent(self) -> bool:
        return len(self.consistent) == self.n_reactions


@dataclass
class _ConsistencyState:
    base: LinearProgram
    lp: LinearProgram
    orientation: Orientation
    forward_only: frozenset[int]
    feasibility_tol: float
    keep_witnesses: bool
    consistent: set[int] = field(default_factory=set)
    inconsistent: set[int] = field(default_factory=set)
    remaining: set[int] = field(default_factory=set)
    tried_flip: bool = False
    singleton: bool = False
    basis: object | None = None
    witnesses: list[NDArray[np.float64]] = field(default_factory=list)

    def flip(self, columns) -> None:
        self.orientation = flip_columns(self.orientation, columns)
        self.lp = self.orientation.apply(self.base)

    def absorb(self, v: NDArray[np.float64] | None, support: set[int]) -> bool:
        """Add the support of v to Consistent; True if Consistent grew."""
        new = support - self.consistent
        if not new:
            return False
        self.consistent |= new

        if self.keep_witnesses:
            w = self.orientation.to_original(v)
            resid = equality_residual(self.base.A, self.base.b, self.base.csense, w)
            if resid > RESIDUAL_FACTOR * self.feasibility_tol:
                LOGGER.warning(
                    "witness %d violates S*v = b: ||S*v - b|| = %g > %g",
                    len(self.witnesses) + 1, resid, RESIDUAL_FACTOR * self.feasibility_tol,
                )
            self.witnesses.append(w)

        # record the direction each new reaction was witnessed in
        reverse = [j for j in new if v[j] < 0 and j not in self.forward_only]
        if reverse:
            self.flip(reverse)
        return True


def _probe(
    state: _ConsistencyState,
    Ji: set[int],
    method: str,
    epsilon: float,
    params: SolverParams,
    print_level: int,
) -> NDArray[np.float64] | None:
    if method == "original":
        if state.singleton:
            sol = maximize_reaction_lp(min(Ji), state.lp, params=params, basis=state.basis)
        else:
            sol = maximize_cardinality_lp(Ji, state.lp, epsilon, params=params, basis=state.basis)
        state.basis = sol.basis
        v = sol.x
        status = sol.status
    else:
        if state.singleton:
            sol = check_single_reaction(min(Ji), state.lp, params=params)
            v = sol.x
        else:
            sol = maximize_cardinality_dca(
                Ji, state.lp, epsilon, params=params, print_level=print_level
            )
            v = sol.v
        status = sol.status

    if v is None and print_level > 1:
        LOGGER.debug("probe of %d reaction(s) returned %s", len(Ji), status.value)
    return v


def fastcc(
    model: FluxModel,
    epsilon: float | None = None,
    *,
    print_level: int = 1,
    return_witnesses: bool = False,
    method: str = "original",
    params: SolverParams | None = None,
) -> FastccResult:
    """Compute the flux consistent reactions of a model.

    Args:
        model: flux model (S, b, csense, lb, ub, optional C, d, dsense)
        epsilon: smallest flux considered nonzero
            (default: 100 x solver feasibility tolerance)
        print_level: 0 silent, 1 summary, 2 debug, 3 per reaction / DCA round
        return_witnesses: if True, collect one witness flux vector per
            growth of the consistent set
        method: "original" (LP7/LP3) or "nonconvex" (DCA / single checks)
        params: LP solver options

    Returns:
        FastccResult

    Raises:
        ConfigurationError: epsilon below the solver feasibility tolerance
        ValueError: unknown method
    """
    params = DEFAULT_PARAMS if params is None else params
    if method not in METHODS:
        raise ValueError(f"method must be one of {METHODS}, got {method!r}")

    feas_tol = params.feasibility_tolerance()
    if epsilon is None:
        epsilon = DEFAULT_EPSILON_FACTOR * feas_tol
    elif epsilon < feas_tol:
        raise ConfigurationError(
            f"fastcc will not work with epsilon = {epsilon:g} < feasibility tolerance = {feas_tol:g}"
        )
    epsilon = float(epsilon)

    if method == "nonconvex" and model.has_extra_constraints:
        warnings.warn(
            "the nonconvex method ignores the extra constraint block (C, d) of the model",
            UserWarning,
            stacklevel=2,
        )

    n = model.n_reactions
    base, working, orientation = normalize_orientation(model)
    forward_only = frozenset(int(j) for j in np.flatnonzero(working.lb >= 0))
    all_vars = set(range(n))

    state = _ConsistencyState(
        base=base,
        lp=working,
        orientation=orientation,
        forward_only=forward_only,
        feasibility_tol=feas_tol,
        keep_witnesses=return_witnesses,
    )

    if print_level > 0:
        LOGGER.info("%6d\tTotal reactions", n)
        LOGGER.info("%6d\tReversible reactions", n - len(forward_only))
        LOGGER.info("%6d\tIrreversible reactions", len(forward_only))

    # irreversible reactions: LP7 is exact, no flipping needed
    sol = maximize_cardinality_lp(forward_only, state.lp, epsilon, params=params)
    state.basis = sol.basis
    state.absorb(sol.x, flux_support(sol.x, epsilon))
    state.inconsistent = set(forward_only - state.consistent)
    state.remaining = all_vars - state.consistent - state.inconsistent
    if print_level > 1:
        LOGGER.debug("%6d\tFlux consistent reactions, without flipping", len(state.consistent))
        LOGGER.debug("%6d\tFlux inconsistent irreversible reactions", len(state.inconsistent))
        LOGGER.debug("%6d\tReactions left to probe", len(state.remaining))

    steps: list[FastccStep] = []
    while state.remaining:
        Ji = {min(state.remaining)} if state.singleton else set(state.remaining)
        mode = "singleton" if state.singleton else "batch"

        v = _probe(state, Ji, method, epsilon, params, print_level)
        if state.absorb(v, flux_support(v, epsilon)) and print_level > 1:
            LOGGER.debug("%6d\tFlux consistent reactions", len(state.consistent))
        state.remaining -= state.consistent

        flipped = 0
        if Ji & state.consistent:
            state.tried_flip = False
            if print_level > 1:
                LOGGER.debug("%6d\tReactions left to probe", len(state.remaining))
        else:
            flippable = Ji - forward_only
            if state.tried_flip or not flippable:
                state.tried_flip = False
                if state.singleton:
                    state.remaining -= Ji
                    state.inconsistent |= Ji
                    if print_level > 2:
                        LOGGER.debug("%s\tis flux inconsistent", model.rxns[min(Ji)])
                else:
                    state.singleton = True
                    if print_level > 1:
                        LOGGER.debug("switching to one reaction at a time")
            else:
                state.flip(flippable)
                state.tried_flip = True
                flipped = len(flippable)
                if print_level > 2:
                    LOGGER.debug("%6d\treversible reaction(s) flipped", flipped)

        steps.append(FastccStep(
            mode=mode,
            probe_size=len(Ji),
            n_consistent=len(state.consistent),
            n_remaining=len(state.remaining),
            flipped=flipped,
        ))

    witnesses = None
    if return_witnesses:
        witnesses = (
            np.column_stack(state.witnesses) if state.witnesses else np.zeros((n, 0))
        )
        k = witnesses.shape[1]
        resid = equality_residual(base.A, base.b, base.csense, witnesses)
        if k and resid > RESIDUAL_FACTOR * feas_tol * k:
            if print_level > 0:
                LOGGER.info("%g = feasibility tolerance", feas_tol)
                LOGGER.info("%g = ||S*V - b||", resid)
            warnings.warn("flux consistency numerically challenged", NumericalWarning, stacklevel=2)
        elif print_level > 0:
            n_witnessed = int(np.sum(np.any(np.abs(witnesses) >= SUPPORT_FRACTION * epsilon, axis=1)))
            LOGGER.info("%10d = flux consistent reactions in witnesses", n_witnessed)
            if print_level > 1:
                LOGGER.debug("%10g = ||S*V - b||", resid)

    if print_level > 0:
        LOGGER.info("%6d\tFlux consistent reactions", len(state.consistent))
        if len(state.consistent) == n:
            LOGGER.info("the input model is entirely flux consistent")

    return FastccResult(
        consistent=index_array(state.consistent),
        inconsistent=index_array(all_vars - state.consistent),
        orientation=state.orientation.signs,
        layers=state.orientation,
        witnesses=witnesses,
        steps=steps,
        reaction_ids=tuple(model.rxns),
        epsilon=epsilon,
    )
