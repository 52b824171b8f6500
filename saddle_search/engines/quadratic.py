from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from saddle_search.engines.engine import Engine


@dataclass
class QuadraticSaddle(Engine):
    """
    E(x) = 1/2 sum_i h_i x_i^2. The default curvatures (1, -1) give a
    saddle at the origin with its unstable direction along x_2.
    """

    curvatures: NDArray = field(default_factory=lambda: np.array([1.0, -1.0]))

    def __post_init__(self):
        self.curvatures = np.asarray(self.curvatures, dtype=float)

    def _en_func(self, x):
        return 0.5 * np.dot(self.curvatures * x, x)

    def _grad_func(self, x):
        return self.curvatures * x
