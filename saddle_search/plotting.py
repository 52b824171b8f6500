from __future__ import annotations

from typing import Optional

import matplotlib.pyplot as plt

from saddle_search.iteration_log import IterationLog


def plot_log(log: IterationLog, ax: Optional[plt.Axes] = None, fs: int = 14, s: int = 6):
    """
    Semilog plot of every residual column of `log` against the number of
    gradient evaluations.
    """
    if ax is None:
        f, ax = plt.subplots(figsize=(1.16 * s, s))
    else:
        f = ax.figure

    for name in log.residual_columns:
        ax.semilogy(log.numdE, getattr(log, name), "o-", markersize=3, label=name)

    ax.set_xlabel("gradient evaluations", fontsize=fs)
    ax.set_ylabel("residual", fontsize=fs)
    ax.legend(fontsize=fs)
    return f, ax
