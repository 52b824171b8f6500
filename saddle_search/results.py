"""
Result records returned by the saddle search controllers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np

from saddle_search.iteration_log import IterationLog


class TerminationStatus(str, Enum):
    CONVERGED = "converged"
    BUDGET_EXHAUSTED = "budget_exhausted"
    UNSTABLE = "unstable"
    LINESEARCH_FAILED = "linesearch_failed"
    STEP_UNDERFLOW = "step_underflow"


@dataclass
class DimerResults:
    """
    Final state of a dimer-type run.

    `x`: final position
    `v`: final unit direction (unit norm under the last preconditioner)
    `log`: iteration history
    `status`: why the run stopped
    `nit`: number of iterations executed
    """

    x: np.ndarray
    v: np.ndarray
    log: IterationLog
    status: TerminationStatus
    nit: int

    @property
    def converged(self) -> bool:
        return self.status is TerminationStatus.CONVERGED

    def __iter__(self):
        # allows `x, v, log = results`
        return iter((self.x, self.v, self.log))


@dataclass
class ODEResults:
    """Accepted trajectory of an adaptive ODE run."""

    t: List[float]
    x: List[np.ndarray]
    log: IterationLog
    status: TerminationStatus
    nit: int
    h: float = field(default=float("nan"))

    @property
    def converged(self) -> bool:
        return self.status is TerminationStatus.CONVERGED

    @property
    def final(self) -> np.ndarray:
        return self.x[-1]

    def __iter__(self):
        return iter((self.t, self.x, self.log))
