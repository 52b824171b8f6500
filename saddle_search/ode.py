"""
Adaptive time-stepping for x' = F(t, x), used as a relaxation driver.

The right-hand side oracle has the signature `f(t, x, nit) -> (F, R)` where
`R` is a scalar residual. Integration stops once `R <= tol_res`, which makes
the integrators double as optimisers.

All variants share the driver loop in `ODESolver.odesolve`; they differ in
how a trial step is taken, when it is accepted and how the next step size
is chosen.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from saddle_search.errors import ConfigurationError
from saddle_search.events import EventSink, IterationEvent, emit
from saddle_search.iteration_log import IterationLog, ODELog
from saddle_search.results import ODEResults, TerminationStatus

logger = logging.getLogger(__name__)

RHSFunction = Callable[[float, NDArray, int], Tuple[NDArray, float]]

EPS = np.finfo(float).eps
REALMIN = np.finfo(float).tiny


def _identity(x):
    return x


def _error_norm(e: NDArray, x: NDArray, xnew: NDArray, threshold: float) -> float:
    scale = np.maximum(np.maximum(np.abs(x), np.abs(xnew)), threshold)
    return float(np.linalg.norm(e / scale, np.inf)) + REALMIN


def _finite_or_inf(h: float) -> float:
    return float(h) if np.isfinite(h) else np.inf


@dataclass
class StepAttempt:
    tnew: float
    xnew: NDArray
    Fnew: NDArray
    Rnew: float
    err: float
    n_evals: int


@dataclass
class ODESolver(ABC):
    """Base class for adaptive ODE integrators"""

    redistribute_first: ClassVar[bool] = False

    def validate(self) -> None:
        if self.atol <= 0 or self.rtol <= 0:
            raise ConfigurationError(msg="atol and rtol must be positive", obj=self)

    def __post_init__(self):
        self.validate()

    @abstractmethod
    def initial_step(self, x: NDArray, Fn: NDArray, rtol: float) -> float: ...

    @abstractmethod
    def attempt(self, f: RHSFunction, t: float, x: NDArray, Fn: NDArray, h: float, nit: int, g) -> StepAttempt: ...

    @abstractmethod
    def accept(self, Rn: float, trial: StepAttempt, h: float, rtol: float) -> bool: ...

    @abstractmethod
    def next_step(self, h: float, Fn: NDArray, trial: StepAttempt, accepted: bool, rtol: float) -> Tuple[float, dict]: ...

    @abstractmethod
    def min_step(self, t: float) -> float: ...

    def adapt_tolerance(self, F: NDArray) -> float:
        return self.rtol

    def diverged(self, Rn: float, R0: float) -> bool:
        return False

    @property
    def name(self) -> str:
        return type(self).__name__

    def _emit(self, event, callback):
        emit(event, callback, logger, self.verbose)

    def _finish(self, status, tout, xout, log, nit, h, msg, level=logging.INFO):
        if self.verbose >= 1:
            logger.log(level, msg)
        return ODEResults(t=tout, x=xout, log=log, status=status, nit=nit, h=h)

    def odesolve(
        self,
        f: RHSFunction,
        x0: NDArray,
        dim: int = 1,
        log: Optional[IterationLog] = None,
        redistribute: Optional[Callable[[NDArray], NDArray]] = None,
        tol_res: float = 1e-4,
        maxnit: int = 100,
        callback: Optional[EventSink] = None,
    ) -> ODEResults:
        """
        Integrates x' = F from `x0` until the residual drops below `tol_res`.

        `dim`: gradient evaluations charged per right-hand side evaluation
        `log`: log to append to (a fresh `ODELog` by default)
        `redistribute`: projection applied to the state, e.g. to re-impose a constraint
        `callback`: receives an `IterationEvent` per accepted or rejected step
        """
        self.validate()
        g = redistribute or _identity
        log = log if log is not None else ODELog()

        t = 0.0
        x = np.array(x0, dtype=float)
        if self.redistribute_first:
            x = g(x)
        numE, numdE = 0, 0

        Fn, Rn = f(t, x, 0)
        numdE += dim
        R0 = Rn
        tout, xout = [t], [x]
        log.append(numE, numdE, Rn)
        self._emit(IterationEvent(source=self.name, nit=0, numE=numE, numdE=numdE, residuals=(Rn,)), callback)
        if Rn <= tol_res:
            return self._finish(
                TerminationStatus.CONVERGED, tout, xout, log, 0, np.nan,
                f"{self.name} terminates successfully after 0 iterations",
            )

        rtol = self.adapt_tolerance(Fn)
        h = self.initial_step(x, Fn, rtol)
        if not np.isfinite(h):
            return self._finish(
                TerminationStatus.STEP_UNDERFLOW, tout, xout, log, 0, h,
                f"{self.name}: initial step size {h} is not finite",
                level=logging.WARNING,
            )
        h = max(h, self.min_step(t))

        for nit in range(1, maxnit + 1):
            trial = self.attempt(f, t, x, Fn, h, nit, g)
            numdE += dim * trial.n_evals

            accepted = self.accept(Rn, trial, h, rtol)
            h_next, info = self.next_step(h, Fn, trial, accepted, rtol)

            if accepted:
                t, Fn, Rn = trial.tnew, trial.Fnew, trial.Rnew
                x = trial.xnew if self.redistribute_first else g(trial.xnew)
                tout.append(t)
                xout.append(x)
                log.append(numE, numdE, Rn)
                self._emit(
                    IterationEvent(
                        source=self.name, nit=nit, numE=numE, numdE=numdE, residuals=(Rn,),
                        step=h, next_step=h_next, info=info,
                    ),
                    callback,
                )
                if Rn <= tol_res:
                    return self._finish(
                        TerminationStatus.CONVERGED, tout, xout, log, nit, h_next,
                        f"{self.name} terminates successfully after {nit} iterations",
                    )
                if self.diverged(Rn, R0):
                    return self._finish(
                        TerminationStatus.UNSTABLE, tout, xout, log, nit, h_next,
                        f"{self.name} terminates unsuccessfully: residual {Rn:1.2e} exceeds "
                        f"the divergence bound",
                        level=logging.WARNING,
                    )
                rtol = self.adapt_tolerance(Fn)
            else:
                self._emit(
                    IterationEvent(
                        source=self.name, nit=nit, numE=numE, numdE=numdE, residuals=(trial.Rnew,),
                        accepted=False, step=h, next_step=h_next, info=dict(info, residual_old=Rn),
                    ),
                    callback,
                )

            h = h_next
            if not np.isfinite(h) or abs(h) <= self.min_step(t):
                return self._finish(
                    TerminationStatus.STEP_UNDERFLOW, tout, xout, log, nit, h,
                    f"{self.name}: step size {h} too small at t = {t}",
                    level=logging.WARNING,
                )

        return self._finish(
            TerminationStatus.BUDGET_EXHAUSTED, tout, xout, log, maxnit, h,
            f"{self.name} terminates unsuccessfully after {maxnit} iterations",
        )


def _euler_attempt(f, t, x, Fn, h, nit, g, threshold, project=False) -> StepAttempt:
    tnew = t + h
    xnew = x + h * Fn
    if project:
        xnew = g(xnew)
    Fnew, Rnew = f(tnew, xnew, nit)
    # difference between the Euler step and the trapezoidal step
    e = 0.5 * h * (Fnew - Fn)
    err = _error_norm(e, x, xnew, threshold)
    return StepAttempt(tnew=tnew, xnew=xnew, Fnew=Fnew, Rnew=Rnew, err=err, n_evals=1)


@dataclass
class EmbeddedRungeKutta(ODESolver):
    """
    Classical error-per-step control: accept iff err <= rtol, then rescale
    h by min(5, safety * (rtol/err)^exponent).
    """

    exponent: ClassVar[float] = 0.5
    safety: ClassVar[float] = 0.5

    def adapt_tolerance(self, F):
        if self.adapt_rtol:
            return min(self.rtol * np.linalg.norm(F, np.inf), self.rtol)
        return self.rtol

    @property
    def threshold(self) -> float:
        return self.atol / self.rtol

    def initial_step(self, x, Fn, rtol):
        r = np.linalg.norm(Fn / np.maximum(np.abs(x), self.threshold), np.inf) + REALMIN
        return self.safety * rtol**self.exponent / r

    def accept(self, Rn, trial, h, rtol):
        return trial.err <= rtol

    def next_step(self, h, Fn, trial, accepted, rtol):
        if np.isfinite(trial.err):
            factor = min(5.0, self.safety * (rtol / trial.err) ** self.exponent)
        else:
            factor = 0.1
        return h * factor, {"err": trial.err}

    def min_step(self, t):
        return 16 * EPS * abs(t)


@dataclass
class ODE12(EmbeddedRungeKutta):
    """Explicit Euler with a trapezoidal error estimate."""

    atol: float = 1e-6
    rtol: float = 1e-3
    adapt_rtol: bool = True
    verbose: int = 1

    def attempt(self, f, t, x, Fn, h, nit, g):
        return _euler_attempt(f, t, x, Fn, h, nit, g, self.threshold)


@dataclass
class ODE23(EmbeddedRungeKutta):
    """Bogacki-Shampine 3(2) pair."""

    exponent: ClassVar[float] = 1.0 / 3.0
    safety: ClassVar[float] = 0.8

    atol: float = 1e-6
    rtol: float = 1e-3
    adapt_rtol: bool = False
    verbose: int = 1

    def attempt(self, f, t, x, Fn, h, nit, g):
        s1 = Fn
        s2, _ = f(t + 0.5 * h, x + 0.5 * h * s1, nit)
        s3, _ = f(t + 0.75 * h, x + 0.75 * h * s2, nit)
        tnew = t + h
        xnew = x + h * (2 * s1 + 3 * s2 + 4 * s3) / 9
        s4, Rnew = f(tnew, xnew, nit)

        e = h * (-5 * s1 + 6 * s2 + 8 * s3 - 9 * s4) / 72
        err = _error_norm(e, x, xnew, self.threshold)
        return StepAttempt(tnew=tnew, xnew=xnew, Fnew=s4, Rnew=Rnew, err=err, n_evals=3)


@dataclass
class ODE12r(ODESolver):
    """
    Residual-driven Euler stepping.

    A step is accepted if the residual contracts sufficiently,
    R_new <= R_old (1 - C1 h), or if it grows moderately while the
    embedded error estimate is within tolerance, R_new <= C2 R_old and
    err <= rtol. The next step size combines the error estimate with an
    extrapolation from the change of F along the step.

    `atol`, `rtol`: error control parameters
    `C1`: sufficient contraction parameter
    `C2`: residual growth control (inf means no control)
    `hmin`: minimal allowed step size
    `maxF`: terminate if R_n > maxF * R_0
    `extrapolate`: 1: F(x + hF).F ~ 0, 2: F(x + hF).F_new ~ 0, 3: min |F(x + hF)|
    """

    redistribute_first: ClassVar[bool] = True

    atol: float = 1e-1
    rtol: float = 1e-1
    C1: float = 1e-2
    C2: float = 2.0
    hmin: float = 1e-10
    maxF: float = 1e3
    extrapolate: int = 3
    verbose: int = 1

    def validate(self):
        super().validate()
        if self.extrapolate not in (1, 2, 3):
            raise ConfigurationError(msg=f"invalid `extrapolate` parameter {self.extrapolate}", obj=self)
        if self.hmin <= 0:
            raise ConfigurationError(msg="hmin must be positive", obj=self)

    @property
    def threshold(self) -> float:
        return self.atol / self.rtol

    def initial_step(self, x, Fn, rtol):
        r = np.linalg.norm(Fn / np.maximum(np.abs(x), self.threshold), np.inf) + REALMIN
        return 0.5 * rtol**0.5 / r

    def attempt(self, f, t, x, Fn, h, nit, g):
        return _euler_attempt(f, t, x, Fn, h, nit, g, self.threshold, project=True)

    def accept(self, Rn, trial, h, rtol):
        contraction = trial.Rnew <= Rn * (1 - self.C1 * h)
        moderate_growth = trial.Rnew <= Rn * self.C2 and trial.err <= rtol
        return contraction or moderate_growth

    def extrapolated_step(self, h: float, Fn: NDArray, Fnew: NDArray) -> float:
        y = Fn - Fnew
        with np.errstate(divide="ignore", invalid="ignore"):
            if self.extrapolate == 1:
                h_ls = h * np.dot(Fn, Fn) / np.dot(Fn, y)
            elif self.extrapolate == 2:
                h_ls = h * np.dot(Fn, Fnew) / (np.dot(Fn, y) + 1e-10)
            else:
                h_ls = h * np.dot(Fn, y) / (np.dot(y, y) + 1e-10)
        if np.isnan(h_ls) or h_ls < self.hmin:
            return np.inf
        return float(h_ls)

    def next_step(self, h, Fn, trial, accepted, rtol):
        h_ls = self.extrapolated_step(h, Fn, trial.Fnew)
        with np.errstate(divide="ignore", invalid="ignore"):
            h_err = _finite_or_inf(h * 0.5 * np.sqrt(rtol / trial.err))
        if accepted:
            h_new = max(0.25 * h, min(4 * h, h_err, h_ls))
        else:
            h_new = max(0.1 * h, min(0.25 * h, h_err, h_ls))
        return h_new, {"err": trial.err, "h_err": h_err, "h_ls": h_ls}

    def min_step(self, t):
        return self.hmin

    def diverged(self, Rn, R0):
        return Rn > self.maxF * R0
