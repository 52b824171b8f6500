from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from saddle_search.engines.engine import Engine


@dataclass
class ThreeWellPotential(Engine):
    """Himmelblau surface: four minima, e.g. at (3, 2), separated by index-1 saddles."""

    def _en_func(self, xy: np.array) -> float:
        """
        computes energy from xy point
        """
        x, y = xy
        return (x**2 + y - 11) ** 2 + (x + y**2 - 7) ** 2

    def _grad_func(self, xy: np.array) -> NDArray:
        """
        computes gradient from xy point
        """
        x, y = xy
        dx = 2 * (x**2 + y - 11) * (2 * x) + 2 * (x + y**2 - 7)
        dy = 2 * (x**2 + y - 11) + 2 * (x + y**2 - 7) * (2 * y)
        return np.array([dx, dy])
