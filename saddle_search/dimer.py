"""
Dimer method with Barzilai-Borwein step sizes and an optional line search.

The method combines ideas from

[ZDZ] L. Zhang, Q. Du, Z. Zheng, Optimization-based Shrinking Dimer Method
for Finding Transition States, SIAM J. Sci. Comput. 38(1), A528-A544 (2016)

[GOP] N. Gould, C. Ortner, D. Packwood, A dimer-type saddle search algorithm
with preconditioning and linesearch, Math. Comp. 85 (2016)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from saddle_search.errors import ConfigurationError, NumericalInstabilityError
from saddle_search.events import EventSink, IterationEvent, emit
from saddle_search.iteration_log import DimerLog
from saddle_search.linesearch import LineSearch, StaticLineSearch
from saddle_search.precon import IdentityPrecon, Preconditioner, PreconSMW
from saddle_search.results import DimerResults, TerminationStatus
from saddle_search.stepsize import bb_step

logger = logging.getLogger(__name__)

EnergyFunction = Callable[[NDArray], float]
GradientFunction = Callable[[NDArray], NDArray]


def dimer_forces(dE: GradientFunction, x: NDArray, v: NDArray, dimer_length: float) -> Tuple[NDArray, NDArray]:
    """
    Evaluates the gradient at both walkers x -/+ dimer_length/2 v.

    Returns the midpoint gradient dE0 and the finite-difference
    curvature-times-direction Hv. Costs two gradient evaluations.
    """
    dEm = np.asarray(dE(x - 0.5 * dimer_length * v), dtype=float)
    dEp = np.asarray(dE(x + 0.5 * dimer_length * v), dtype=float)
    Hv = (dEp - dEm) / dimer_length
    dE0 = 0.5 * (dEp + dEm)
    return dE0, Hv


def translation_direction(P: Preconditioner, v: NDArray, dE0: NDArray) -> NDArray:
    # preconditioned descent with the component along v reversed
    return -P.solve(dE0) + 2.0 * np.dot(v, dE0) * v


def rotation_direction(P: Preconditioner, v: NDArray, Hv: NDArray, lam: float, precon_rot: bool) -> NDArray:
    if precon_rot:
        return -(P.solve(Hv) - lam * v)
    return -Hv + lam * P.apply(v)


def localmerit(
    y: NDArray,
    x: NDArray,
    v: NDArray,
    dE0: NDArray,
    lam: float,
    E: EnergyFunction,
    P: Preconditioner,
) -> float:
    """
    Energy at the trial point `y` with the local quadratic model along `v`
    (around the dimer midpoint `x`) subtracted twice, so that the merit has
    a minimum where E has a saddle along `v`.
    """
    s = P.dot(v, y - x)
    return E(y) - 2.0 * (np.dot(v, dE0) * s + 0.5 * lam * s**2)


def rayleigh(
    w: NDArray,
    x: NDArray,
    dimer_length: float,
    E0: float,
    E: EnergyFunction,
    P: Preconditioner,
) -> float:
    """finite-difference Rayleigh quotient of the Hessian at x along w"""
    w = w / P.norm(w)
    h = 0.5 * dimer_length
    return (E(x + h * w) - 2.0 * E0 + E(x - h * w)) / h**2


@dataclass
class BBDimer:
    """
    `a0_trans`: initial translation step
    `a0_rot`: initial rotation step
    `linesearch`: line search strategy applied to both steps

    `tol_trans`: translation residual tolerance
    `tol_rot`: rotation residual tolerance
    `maxnumdE`: maximum number of gradient evaluations
    `dimer_length`: distance between the two walkers
    `precon`: preconditioner, refreshed each iteration by `precon.prepare(x)`
    `verbose`: 0 silent, 1 termination messages, 2 every iteration
    `precon_rot`: whether to precondition the rotation step
    `rescale_v`: whether to apply a Newton-type rescaling in the v direction
    """

    a0_trans: float
    a0_rot: float
    linesearch: LineSearch = field(default_factory=StaticLineSearch)
    tol_trans: float = 1e-5
    tol_rot: float = 1e-2
    maxnumdE: int = 2000
    dimer_length: float = 1e-3
    precon: Preconditioner = field(default_factory=IdentityPrecon)
    verbose: int = 1
    precon_rot: bool = False
    rescale_v: bool = False

    def __post_init__(self):
        if self.dimer_length <= 0:
            raise ConfigurationError(msg=f"dimer_length must be positive, got {self.dimer_length}")
        if self.maxnumdE < 0:
            raise ConfigurationError(msg=f"maxnumdE must be non-negative, got {self.maxnumdE}")

    def _search(self, merit, value0, P, point, p, step) -> Tuple[float, int]:
        """returns the step and the number of extra merit evaluations"""
        if not np.any(p):
            # nothing to move along
            return 0.0, 0
        if np.isnan(step):
            return np.nan, 0
        result = self.linesearch.search(merit, value0, -P.dot(p, p), point, p, step)
        return result.step, result.n_evals

    def _finish(self, status, x, v, log, nit, msg):
        if self.verbose >= 1:
            logger.info(msg)
        return DimerResults(x=x, v=v, log=log, status=status, nit=nit)

    def run(
        self,
        E: EnergyFunction,
        dE: GradientFunction,
        x0: NDArray,
        v0: NDArray,
        callback: Optional[EventSink] = None,
    ) -> DimerResults:
        x = np.array(x0, dtype=float)
        v = np.array(v0, dtype=float)
        P0 = self.precon
        numE, numdE = 0, 0
        log = DimerLog()
        beta, gamma = np.nan, np.nan
        dx = dv = p_trans_old = p_rot_old = None

        # every iteration costs two gradient evaluations, so the budget check
        # always fires by the last pass of this loop
        for nit in range(1, self.maxnumdE // 2 + 2):
            if np.isnan(x).any() or np.isnan(v).any():
                raise NumericalInstabilityError(
                    msg="BBDimer has encountered NaNs. This can happen with BB type step size "
                    "selection, which is fast but sometimes unstable. Try different initial "
                    "conditions or a different saddle search method.",
                    log=log,
                )

            P0 = P0.prepare(x)
            v = v / P0.norm(v)
            dE0, Hv = dimer_forces(dE, x, v, self.dimer_length)
            numdE += 2

            if self.rescale_v:
                P = PreconSMW(P0, v, abs(np.dot(Hv, v)) - 1.0)
                v = v / P.norm(v)
            else:
                P = P0

            res_trans = float(np.linalg.norm(dE0, np.inf))
            lam = float(np.dot(v, Hv))
            q_rot = -Hv + lam * P.apply(v)
            res_rot = float(np.linalg.norm(q_rot, np.inf))
            log.append(numE, numdE, res_trans, res_rot)
            emit(
                IterationEvent(
                    source="BBDimer",
                    nit=nit,
                    numE=numE,
                    numdE=numdE,
                    residuals=(res_trans, res_rot),
                    info={"lambda": lam, "beta": beta, "gamma": gamma},
                ),
                callback,
                logger,
                self.verbose,
            )

            if res_trans <= self.tol_trans and res_rot <= self.tol_rot:
                return self._finish(
                    TerminationStatus.CONVERGED, x, v, log, nit,
                    f"BBDimer terminates successfully after {nit} iterations",
                )
            if numdE > self.maxnumdE:
                return self._finish(
                    TerminationStatus.BUDGET_EXHAUSTED, x, v, log, nit,
                    f"BBDimer terminates unsuccessfully due to numdE > {self.maxnumdE}",
                )

            p_trans = translation_direction(P, v, dE0)
            p_rot = rotation_direction(P, v, Hv, lam, True) if self.precon_rot else q_rot

            if nit == 1:
                beta, gamma = self.a0_trans, self.a0_rot
            else:
                beta = bb_step(dx, p_trans - p_trans_old, P)
                gamma = bb_step(dv, p_rot - p_rot_old, P)

            E0 = E(x)
            numE += 1

            def merit_trans(y):
                return localmerit(y, x, v, dE0, lam, E, P)

            def merit_rot(w):
                return rayleigh(w, x, self.dimer_length, E0, E, P)

            # the translation merit at x is E0 itself
            beta, n_ls = self._search(merit_trans, E0, P, x, p_trans, beta)
            numE += n_ls

            # each rotation merit evaluation costs two energy evaluations
            R0 = merit_rot(v)
            numE += 2
            gamma, n_ls = self._search(merit_rot, R0, P, v, p_rot, gamma)
            numE += 2 * n_ls

            if np.isnan(beta) or np.isnan(gamma):
                return self._finish(
                    TerminationStatus.LINESEARCH_FAILED, x, v, log, nit,
                    "BBDimer terminates unsuccessfully due to unsuccessful linesearch",
                )

            dx = beta * p_trans
            dv = gamma * p_rot
            x = x + dx
            v = v + dv
            p_trans_old = p_trans.copy()
            p_rot_old = p_rot.copy()

        return self._finish(
            TerminationStatus.BUDGET_EXHAUSTED, x, v, log, nit,
            f"BBDimer terminates unsuccessfully due to numdE > {self.maxnumdE}",
        )
