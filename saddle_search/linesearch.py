from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from numpy.typing import NDArray


@dataclass
class LineSearchResult:
    """
    `step`: accepted step size, NaN if the search failed
    `n_evals`: number of merit evaluations performed by the search
    `info`: free-form diagnostics
    """

    step: float
    n_evals: int
    info: dict = field(default_factory=dict)

    def __iter__(self):
        return iter((self.step, self.n_evals, self.info))


@dataclass
class LineSearch(ABC):
    @abstractmethod
    def search(
        self,
        merit: Callable[[NDArray], float],
        value0: float,
        slope0: float,
        point: NDArray,
        direction: NDArray,
        step: float,
    ) -> LineSearchResult:
        """
        merit: scalar function of a trial point
        value0: merit(point)
        slope0: directional derivative of the merit along `direction` at `point`
        step: initial trial step
        """
        ...


@dataclass
class StaticLineSearch(LineSearch):
    """Accepts the trial step as is."""

    def search(self, merit, value0, slope0, point, direction, step):
        return LineSearchResult(step=float(step), n_evals=0)


@dataclass
class Backtracking(LineSearch):
    """
    Armijo backtracking with safeguarded quadratic interpolation.

    `c1`: sufficient decrease parameter
    `mindecfact`, `maxdecfact`: bounds on the reduction factor per trial
    `minstep`: the search fails once the step drops below this
    `maxiter`: maximum number of merit evaluations
    """

    c1: float = 0.2
    mindecfact: float = 0.1
    maxdecfact: float = 0.5
    minstep: float = 1e-8
    maxiter: int = 20

    def search(self, merit, value0, slope0, point, direction, step):
        if slope0 >= 0:
            return LineSearchResult(step=np.nan, n_evals=0, info={"reason": "not a descent direction"})

        alpha = float(step)
        n_evals = 0
        while n_evals < self.maxiter:
            if alpha < self.minstep:
                break
            value = merit(point + alpha * direction)
            n_evals += 1

            if not np.isfinite(value):
                alpha *= self.mindecfact
                continue
            if value <= value0 + self.c1 * alpha * slope0:
                return LineSearchResult(step=alpha, n_evals=n_evals, info={"value": value})

            # minimiser of the quadratic through value0, slope0 and value
            curv = value - value0 - slope0 * alpha
            alpha_q = -slope0 * alpha**2 / (2 * curv)
            alpha = min(max(alpha_q, self.mindecfact * alpha), self.maxdecfact * alpha)

        return LineSearchResult(step=np.nan, n_evals=n_evals, info={"reason": "step too small"})
