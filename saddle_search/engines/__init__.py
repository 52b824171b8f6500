from saddle_search.engines.engine import Engine
from saddle_search.engines.mullerbrown import MullerBrown
from saddle_search.engines.quadratic import QuadraticSaddle
from saddle_search.engines.threewell import ThreeWellPotential

ENGINES = {
    "quadratic": QuadraticSaddle,
    "muller-brown": MullerBrown,
    "three-well": ThreeWellPotential,
}

__all__ = ["Engine", "MullerBrown", "QuadraticSaddle", "ThreeWellPotential", "ENGINES"]
