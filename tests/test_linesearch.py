import numpy as np

from saddle_search.linesearch import Backtracking, StaticLineSearch


def _quadratic(y):
    return 0.5 * float(np.dot(y, y))


def test_static_linesearch_accepts_trial_step():
    step, n_evals, info = StaticLineSearch().search(
        _quadratic, 0.5, -1.0, np.array([1.0]), np.array([-1.0]), 0.3
    )
    assert step == 0.3
    assert n_evals == 0
    assert info == {}


def test_backtracking_interpolates_to_minimiser():
    x = np.array([1.0])
    p = np.array([-1.0])

    result = Backtracking().search(_quadratic, _quadratic(x), -1.0, x, p, 4.0)

    # the quadratic model through phi(0), phi'(0), phi(4) is exact
    np.testing.assert_allclose(result.step, 1.0)
    assert result.n_evals == 2


def test_backtracking_accepts_good_initial_step():
    x = np.array([1.0, -1.0])
    p = -x
    result = Backtracking().search(_quadratic, _quadratic(x), -2.0, x, p, 0.5)
    assert result.step == 0.5
    assert result.n_evals == 1


def test_backtracking_rejects_ascent_direction():
    x = np.array([1.0])
    result = Backtracking().search(_quadratic, 0.5, 1.0, x, np.array([1.0]), 1.0)
    assert np.isnan(result.step)
    assert result.n_evals == 0


def test_backtracking_fails_gracefully():
    ls = Backtracking(maxiter=5)
    calls = []

    def merit(y):
        calls.append(y)
        return np.inf

    result = ls.search(merit, 0.0, -1.0, np.array([0.0]), np.array([1.0]), 1.0)

    assert np.isnan(result.step)
    assert result.n_evals == len(calls)
    assert result.n_evals <= ls.maxiter
