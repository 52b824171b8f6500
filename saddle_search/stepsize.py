import numpy as np
from numpy.typing import NDArray

from saddle_search.precon import Preconditioner


def bb_step(dx: NDArray, dp: NDArray, P: Preconditioner) -> float:
    """
    Barzilai-Borwein step |<dx, P, dp> / <dp, P, dp>| from the change `dx` of
    the iterate and the change `dp` of the search direction.

    Returns NaN when the secant is degenerate, i.e. <dp, P, dp> = 0.
    """
    denom = P.dot(dp, dp)
    if not denom > 0:
        return np.nan
    return abs(P.dot(dx, dp) / denom)
