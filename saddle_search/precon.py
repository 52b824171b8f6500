"""
Preconditioners: linear operators P(x) defining the metric in which the
search directions are measured.

A preconditioner is refreshed once per iteration through `prepare(x)`, which
returns the operator to use for that iteration. Nothing else mutates it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import cho_factor, cho_solve


class Preconditioner(ABC):
    @abstractmethod
    def apply(self, v: NDArray) -> NDArray:
        """returns P v"""
        ...

    @abstractmethod
    def solve(self, r: NDArray) -> NDArray:
        """returns P \\ r"""
        ...

    def dot(self, a: NDArray, b: NDArray) -> float:
        return float(np.dot(a, self.apply(b)))

    def norm(self, v: NDArray) -> float:
        return float(np.sqrt(self.dot(v, v)))

    def prepare(self, x: NDArray) -> Preconditioner:
        return self


@dataclass
class IdentityPrecon(Preconditioner):
    def apply(self, v):
        return np.asarray(v, dtype=float).copy()

    def solve(self, r):
        return np.asarray(r, dtype=float).copy()

    def dot(self, a, b):
        return float(np.dot(a, b))


@dataclass
class MatrixPrecon(Preconditioner):
    """
    Symmetric positive definite matrix preconditioner.

    `matrix`: the current operator
    `update`: optional function x -> matrix used by `prepare`
    """

    matrix: NDArray
    update: Optional[Callable[[NDArray], NDArray]] = None
    _factor: tuple = field(init=False, repr=False, default=None)

    def __post_init__(self):
        self.matrix = np.asarray(self.matrix, dtype=float)
        self._factor = cho_factor(self.matrix)

    def apply(self, v):
        return self.matrix @ v

    def solve(self, r):
        return cho_solve(self._factor, r)

    def prepare(self, x):
        if self.update is None:
            return self
        return MatrixPrecon(matrix=self.update(x), update=self.update)


class PreconSMW(Preconditioner):
    """
    Rank-one modification P = P0 + alpha (P0 v)(P0 v)^T of a preconditioner
    with `v` of unit P0-norm. Solves use the Sherman-Morrison-Woodbury formula.
    """

    def __init__(self, P0: Preconditioner, v: NDArray, alpha: float):
        self.P0 = P0
        self.v = np.asarray(v, dtype=float)
        self.Pv = P0.apply(self.v)
        self.alpha = float(alpha)

    def apply(self, w):
        return self.P0.apply(w) + self.alpha * np.dot(self.Pv, w) * self.Pv

    def solve(self, r):
        denom = 1.0 + self.alpha * np.dot(self.Pv, self.v)
        return self.P0.solve(r) - (self.alpha * np.dot(self.v, r) / denom) * self.v
