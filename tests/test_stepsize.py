import numpy as np

from saddle_search.precon import IdentityPrecon, MatrixPrecon
from saddle_search.stepsize import bb_step


def test_bb_step_known_value():
    step = bb_step(np.array([1.0, 0.0]), np.array([-2.0, 0.0]), IdentityPrecon())
    np.testing.assert_allclose(step, 0.5)


def test_bb_step_is_finite_and_non_negative():
    rng = np.random.default_rng(0)
    P = MatrixPrecon(matrix=np.diag([1.0, 2.0, 3.0]))
    for _ in range(20):
        dx, dp = rng.normal(size=3), rng.normal(size=3)
        step = bb_step(dx, dp, P)
        assert np.isfinite(step)
        assert step >= 0.0


def test_bb_step_scale_invariant_in_precon():
    dx = np.array([0.3, -0.2])
    dp = np.array([-0.5, 0.1])
    np.testing.assert_allclose(
        bb_step(dx, dp, MatrixPrecon(matrix=2.0 * np.eye(2))),
        bb_step(dx, dp, IdentityPrecon()),
    )


def test_bb_step_degenerate_secant_is_nan():
    assert np.isnan(bb_step(np.ones(2), np.zeros(2), IdentityPrecon()))
