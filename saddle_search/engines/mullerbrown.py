from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from saddle_search.engines.engine import Engine

# K. Mueller and L. D. Brown, Theoret. Chim. Acta 53, 75 (1979)
A = np.array([-200.0, -100.0, -170.0, 15.0])
a = np.array([-1.0, -1.0, -6.5, 0.7])
b = np.array([0.0, 0.0, 11.0, 0.6])
c = np.array([-10.0, -10.0, -6.5, 0.7])
X0 = np.array([1.0, 0.0, -0.5, -1.0])
Y0 = np.array([0.0, 0.5, 1.5, 1.0])


@dataclass
class MullerBrown(Engine):
    """Mueller-Brown surface. `scale` multiplies the energy."""

    scale: float = 1.0

    def _terms(self, xy):
        x, y = xy
        dx = x - X0
        dy = y - Y0
        return dx, dy, A * np.exp(a * dx**2 + b * dx * dy + c * dy**2)

    def _en_func(self, xy):
        _, _, terms = self._terms(xy)
        return self.scale * np.sum(terms)

    def _grad_func(self, xy):
        dx, dy, terms = self._terms(xy)
        gx = np.sum(terms * (2 * a * dx + b * dy))
        gy = np.sum(terms * (b * dx + 2 * c * dy))
        return self.scale * np.array([gx, gy])
