from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from saddle_search.dimer import (
    EnergyFunction,
    GradientFunction,
    dimer_forces,
    rotation_direction,
    translation_direction,
)
from saddle_search.errors import ConfigurationError
from saddle_search.events import EventSink
from saddle_search.iteration_log import ODELog
from saddle_search.ode import ODE12r, ODESolver
from saddle_search.precon import IdentityPrecon, Preconditioner
from saddle_search.results import DimerResults


@dataclass
class ODEDimer:
    """
    Dimer method as a continuous-time relaxation: the translation and
    rotation search directions form the right-hand side of an ODE for the
    stacked state [x; v], integrated by an adaptive `ODESolver`.

    `solver`: integrator (ODE12r by default)
    `tol_res`: tolerance on max(translation residual, rotation residual)
    `maxnit`: maximum number of integrator steps
    `dimer_length`: distance between the two walkers
    `precon`: preconditioner, refreshed by `precon.prepare(x)`; must depend on x only
    `precon_rot`: whether to precondition the rotation direction
    """

    solver: ODESolver = field(default_factory=ODE12r)
    tol_res: float = 1e-5
    maxnit: int = 1000
    dimer_length: float = 1e-3
    precon: Preconditioner = field(default_factory=IdentityPrecon)
    precon_rot: bool = False

    def __post_init__(self):
        if self.dimer_length <= 0:
            raise ConfigurationError(msg=f"dimer_length must be positive, got {self.dimer_length}")

    def run(
        self,
        E: EnergyFunction,
        dE: GradientFunction,
        x0: NDArray,
        v0: NDArray,
        callback: Optional[EventSink] = None,
    ) -> DimerResults:
        x0 = np.asarray(x0, dtype=float)
        n = len(x0)
        # the projection and the right-hand side see the same x, refresh once
        prepared = {}

        def precon_at(x):
            if "x" not in prepared or not np.array_equal(prepared["x"], x):
                prepared["x"] = x.copy()
                prepared["P"] = self.precon.prepare(x)
            return prepared["P"]

        def normalise(z):
            x, v = z[:n], z[n:]
            P = precon_at(x)
            return np.concatenate([x, v / P.norm(v)])

        def forces(t, z, nit):
            x, v = z[:n], z[n:]
            P = precon_at(x)
            v = v / P.norm(v)
            dE0, Hv = dimer_forces(dE, x, v, self.dimer_length)
            lam = float(np.dot(v, Hv))
            F_trans = translation_direction(P, v, dE0)
            F_rot = rotation_direction(P, v, Hv, lam, self.precon_rot)
            res_trans = np.linalg.norm(dE0, np.inf)
            res_rot = np.linalg.norm(-Hv + lam * P.apply(v), np.inf)
            return np.concatenate([F_trans, F_rot]), float(max(res_trans, res_rot))

        z0 = np.concatenate([x0, np.asarray(v0, dtype=float)])
        results = self.solver.odesolve(
            forces,
            z0,
            dim=2,
            log=ODELog(),
            redistribute=normalise,
            tol_res=self.tol_res,
            maxnit=self.maxnit,
            callback=callback,
        )
        z = normalise(results.final)
        return DimerResults(x=z[:n], v=z[n:], log=results.log, status=results.status, nit=results.nit)
