from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional, Union

import toml

from saddle_search.dimer import BBDimer
from saddle_search.errors import ConfigurationError
from saddle_search.linesearch import Backtracking, StaticLineSearch
from saddle_search.ode import ODE12, ODE12r, ODE23, ODESolver
from saddle_search.odedimer import ODEDimer

LINESEARCHES = {"static": StaticLineSearch, "backtracking": Backtracking}
ODE_SOLVERS = {"ode12": ODE12, "ode23": ODE23, "ode12r": ODE12r}


def _from_table(cls, table: dict, where: str):
    unknown = set(table) - {f.name for f in fields(cls)}
    if unknown:
        raise ConfigurationError(msg=f"unknown entries in {where}: {sorted(unknown)}")
    return cls(**table)


@dataclass
class DimerInputs:
    """
    Object containing inputs for the BB dimer.
    `a0_trans`: initial translation step

    `a0_rot`: initial rotation step

    `tol_trans`: translation residual tolerance (default: 1e-5)

    `tol_rot`: rotation residual tolerance (default: 1e-2)

    `maxnumdE`: gradient evaluation budget (default: 2000)

    `dimer_length`: distance between the two walkers (default: 1e-3)

    `linesearch`: 'static' or 'backtracking' (default: 'static')

    `precon_rot`: whether to precondition the rotation step

    `rescale_v`: whether to rescale v with the curvature estimate

    `verbose`: 0 silent, 1 termination messages, 2 every iteration
    """

    a0_trans: float = 1e-3
    a0_rot: float = 1e-3
    tol_trans: float = 1e-5
    tol_rot: float = 1e-2
    maxnumdE: int = 2000
    dimer_length: float = 1e-3
    linesearch: str = "static"
    precon_rot: bool = False
    rescale_v: bool = False
    verbose: int = 1

    def copy(self) -> DimerInputs:
        return DimerInputs(**self.__dict__)

    def make_dimer(self) -> BBDimer:
        if self.linesearch not in LINESEARCHES:
            raise ConfigurationError(msg=f"unknown linesearch '{self.linesearch}'", obj=self)
        kwds = self.__dict__.copy()
        kwds["linesearch"] = LINESEARCHES[self.linesearch]()
        return BBDimer(**kwds)


@dataclass
class ODEInputs:
    """
    Object containing inputs for the ODE driven dimer.
    `solver`: 'ode12', 'ode23' or 'ode12r' (default: 'ode12r')

    `tol_res`: residual tolerance (default: 1e-5)

    `maxnit`: maximum number of integrator steps (default: 1000)

    `dimer_length`: distance between the two walkers (default: 1e-3)

    `solver_kwds`: keyword arguments for the integrator, e.g. rtol, C1, extrapolate
    """

    solver: str = "ode12r"
    tol_res: float = 1e-5
    maxnit: int = 1000
    dimer_length: float = 1e-3
    precon_rot: bool = False
    verbose: int = 1
    solver_kwds: dict = field(default_factory=dict)

    def copy(self) -> ODEInputs:
        return ODEInputs(**{**self.__dict__, "solver_kwds": dict(self.solver_kwds)})

    def make_solver(self) -> ODESolver:
        if self.solver not in ODE_SOLVERS:
            raise ConfigurationError(msg=f"unknown ODE solver '{self.solver}'", obj=self)
        # entries in solver_kwds take precedence over the verbose field
        kwds = {"verbose": self.verbose, **self.solver_kwds}
        return _from_table(ODE_SOLVERS[self.solver], kwds, f"solver_kwds for {self.solver}")

    def make_dimer(self) -> ODEDimer:
        return ODEDimer(
            solver=self.make_solver(),
            tol_res=self.tol_res,
            maxnit=self.maxnit,
            dimer_length=self.dimer_length,
            precon_rot=self.precon_rot,
        )


@dataclass
class RunInputs:
    """
    Object collecting everything needed to launch a saddle search.
    `engine_name`: analytic surface to search on (see saddle_search.engines.ENGINES)

    `method`: 'bbdimer' or 'odedimer'
    """

    engine_name: str = "muller-brown"
    method: str = "bbdimer"
    dimer_inputs: DimerInputs = field(default_factory=DimerInputs)
    ode_inputs: ODEInputs = field(default_factory=ODEInputs)

    def __post_init__(self):
        if isinstance(self.dimer_inputs, dict):
            self.dimer_inputs = _from_table(DimerInputs, self.dimer_inputs, "dimer_inputs")
        if isinstance(self.ode_inputs, dict):
            self.ode_inputs = _from_table(ODEInputs, self.ode_inputs, "ode_inputs")
        if self.method not in ("bbdimer", "odedimer"):
            raise ConfigurationError(msg=f"unknown method '{self.method}'", obj=self)

    @classmethod
    def open(cls, fp: Union[Path, str]) -> RunInputs:
        data = toml.load(Path(fp))
        return _from_table(cls, data, str(fp))

    def save(self, fp: Union[Path, str]) -> None:
        with open(fp, "w") as f:
            toml.dump(asdict(self), f)

    def make_method(self, verbose: Optional[int] = None):
        inputs = self.dimer_inputs if self.method == "bbdimer" else self.ode_inputs
        if verbose is not None:
            inputs = inputs.copy()
            inputs.verbose = verbose
        return inputs.make_dimer()
