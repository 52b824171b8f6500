from saddle_search.dimer import BBDimer
from saddle_search.errors import ConfigurationError, NumericalInstabilityError
from saddle_search.events import IterationEvent
from saddle_search.iteration_log import DimerLog, IterationLog, ODELog
from saddle_search.linesearch import Backtracking, LineSearch, StaticLineSearch
from saddle_search.ode import ODE12, ODE12r, ODE23, ODESolver
from saddle_search.odedimer import ODEDimer
from saddle_search.precon import IdentityPrecon, MatrixPrecon, Preconditioner, PreconSMW
from saddle_search.results import DimerResults, ODEResults, TerminationStatus

__all__ = [
    "BBDimer",
    "ODEDimer",
    "ODE12",
    "ODE23",
    "ODE12r",
    "ODESolver",
    "LineSearch",
    "StaticLineSearch",
    "Backtracking",
    "Preconditioner",
    "IdentityPrecon",
    "MatrixPrecon",
    "PreconSMW",
    "IterationLog",
    "DimerLog",
    "ODELog",
    "IterationEvent",
    "DimerResults",
    "ODEResults",
    "TerminationStatus",
    "ConfigurationError",
    "NumericalInstabilityError",
]
