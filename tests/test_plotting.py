import matplotlib

matplotlib.use("Agg")

from saddle_search.iteration_log import DimerLog, ODELog  # noqa: E402
from saddle_search.plotting import plot_log  # noqa: E402


def test_plot_log_draws_one_line_per_residual():
    log = DimerLog()
    log.append(0, 2, 1.0, 0.5)
    log.append(3, 4, 0.1, 0.05)

    fig, ax = plot_log(log)

    assert len(ax.get_lines()) == 2
    assert ax.get_xlabel() == "gradient evaluations"


def test_plot_log_on_given_axes():
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots()
    log = ODELog()
    log.append(0, 1, 1.0)

    f, a = plot_log(log, ax=ax)

    assert a is ax
    assert f is fig
    assert len(ax.get_lines()) == 1
