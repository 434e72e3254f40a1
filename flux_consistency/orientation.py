"""Reaction orientation bookkeeping.

Every reaction column of the working LP may be flipped relative to the
model the caller passed in. Two independent layers are tracked:

  initial: reverse-only reactions (lb < 0, ub <= 0) flipped once so that
           every irreversible reaction runs forward
  loop:    flips applied while probing ("try the other direction")

The net flip is initial XOR loop, so a flux v solved in the working
orientation maps back to the caller's convention as

    v_orig = signs * v,   signs = where(initial ^ loop, -1, +1)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np
from numpy.typing import NDArray

from .lp import LinearProgram, build_lp
from .model import FluxModel


@dataclass(frozen=True)
class Orientation:
    initial: NDArray[np.bool_]  # (n,) True = flipped by normalization
    loop: NDArray[np.bool_]     # (n,) True = flipped while probing

    def __post_init__(self):
        initial = np.asarray(self.initial, dtype=bool).copy()
        loop = np.asarray(self.loop, dtype=bool).copy()
        if initial.shape != loop.shape:
            raise ValueError("orientation layers must have the same shape")
        object.__setattr__(self, "initial", initial)
        object.__setattr__(self, "loop", loop)

    @classmethod
    def identity(cls, n: int) -> "Orientation":
        return cls(initial=np.zeros(n, dtype=bool), loop=np.zeros(n, dtype=bool))

    @property
    def flipped(self) -> NDArray[np.bool_]:
        return self.initial ^ self.loop

    @property
    def signs(self) -> NDArray[np.int64]:
        """Net sign (+1/-1) per reaction relative to the original model."""
        return np.where(self.flipped, -1, 1).astype(np.int64)

    def to_original(self, v: NDArray[np.float64]) -> NDArray[np.float64]:
        """Express a working-orientation flux in the original orientation."""
        return np.asarray(v, dtype=float) * self.signs

    def apply(self, base: LinearProgram) -> LinearProgram:
        """Working LP = base LP with the net flips applied."""
        return base.reoriented(self.flipped)


def normalize_orientation(model: FluxModel) -> tuple[LinearProgram, LinearProgram, Orientation]:
    """Build the LP and flip every reverse-only reaction forward.

    Returns:
        (base_lp, working_lp, orientation) where base_lp is in the caller's
        orientation and working_lp has no reverse-only reactions left.
    """
    base = build_lp(model)
    n = model.n_reactions
    orientation = Orientation(initial=model.reverse_only, loop=np.zeros(n, dtype=bool))
    return base, orientation.apply(base), orientation


def flip_columns(orientation: Orientation, columns: Iterable[int]) -> Orientation:
    """Toggle the loop layer of the given reaction columns."""
    cols = np.asarray(sorted(int(j) for j in columns), dtype=int)
    loop = orientation.loop.copy()
    loop[cols] = ~loop[cols]
    return Orientation(initial=orientation.initial, loop=loop)
