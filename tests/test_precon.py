import numpy as np

from saddle_search.precon import IdentityPrecon, MatrixPrecon, PreconSMW


def _spd_matrix():
    return np.array([[4.0, 1.0, 0.0], [1.0, 3.0, 0.5], [0.0, 0.5, 2.0]])


def test_identity_precon_is_euclidean():
    P = IdentityPrecon()
    a = np.array([1.0, -2.0, 3.0])
    b = np.array([0.5, 0.5, 1.0])

    assert P.dot(a, b) == np.dot(a, b)
    np.testing.assert_allclose(P.norm(a), np.linalg.norm(a))
    np.testing.assert_array_equal(P.solve(a), a)
    np.testing.assert_array_equal(P.apply(a), a)
    assert P.prepare(a) is P


def test_matrix_precon_solve_inverts_apply():
    P = MatrixPrecon(matrix=_spd_matrix())
    r = np.array([1.0, 2.0, -1.0])

    np.testing.assert_allclose(P.apply(P.solve(r)), r, atol=1e-12)
    np.testing.assert_allclose(P.dot(r, r), r @ _spd_matrix() @ r)


def test_matrix_precon_prepare_uses_update():
    P = MatrixPrecon(matrix=np.eye(2), update=lambda x: np.diag(1.0 + x**2))

    assert P.prepare(np.zeros(2)) is not P
    P1 = P.prepare(np.array([1.0, 2.0]))
    np.testing.assert_allclose(P1.matrix, np.diag([2.0, 5.0]))
    np.testing.assert_allclose(P1.solve(np.array([2.0, 5.0])), np.ones(2))

    assert MatrixPrecon(matrix=np.eye(2)).prepare(np.ones(2)).update is None


def test_smw_precon_is_rank_one_update():
    P0 = MatrixPrecon(matrix=_spd_matrix())
    v = np.array([1.0, 0.0, 1.0])
    v = v / P0.norm(v)
    alpha = 0.7
    P = PreconSMW(P0, v, alpha)

    Pv = _spd_matrix() @ v
    dense = _spd_matrix() + alpha * np.outer(Pv, Pv)
    w = np.array([0.3, -1.0, 2.0])

    np.testing.assert_allclose(P.apply(w), dense @ w, atol=1e-12)
    np.testing.assert_allclose(P.solve(w), np.linalg.solve(dense, w), atol=1e-12)
    np.testing.assert_allclose(P.dot(v, v), 1.0 + alpha, atol=1e-12)
