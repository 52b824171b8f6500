from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass
class Engine(ABC):
    """Energy and gradient oracle for a point in configuration space."""

    @abstractmethod
    def _en_func(self, x: NDArray) -> float:
        """
        computes energy at point x
        """
        ...

    @abstractmethod
    def _grad_func(self, x: NDArray) -> NDArray:
        """
        computes gradient at point x
        """
        ...

    def energy(self, x: NDArray) -> float:
        return float(self._en_func(np.asarray(x, dtype=float)))

    def gradient(self, x: NDArray) -> NDArray:
        return np.asarray(self._grad_func(np.asarray(x, dtype=float)), dtype=float)
