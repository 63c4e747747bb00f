import numpy as np
import pytest
import scipy.sparse as sp

from wordembed.svd import svd_embeddings

# Unit tests: dense and truncated SVD paths, singular value order, sign convention.


def test_dense_path_on_diagonal_matrix():
    M = np.diag([1.0, 3.0, 2.0])
    vectors, s = svd_embeddings(M, dim=3, eig_power=1.0)
    np.testing.assert_allclose(s, [3.0, 2.0, 1.0])
    # Rows are words; component k sits on the word with the k-th largest singular value
    expected = np.zeros((3, 3))
    expected[1, 0], expected[2, 1], expected[0, 2] = 3.0, 2.0, 1.0
    np.testing.assert_allclose(vectors, expected, atol=1e-12)


def test_truncated_path_matches_full_svd():
    rng = np.random.default_rng(0)
    dense = rng.random((30, 30)) * (rng.random((30, 30)) < 0.3)
    M = sp.csr_matrix(dense)
    vectors, s = svd_embeddings(M, dim=4, eig_power=0.0, seed=1)
    s_full = np.linalg.svd(dense, compute_uv=False)
    assert vectors.shape == (30, 4)
    np.testing.assert_allclose(s, s_full[:4], rtol=1e-6)
    assert np.all(np.diff(s) <= 0)
    # eig_power=0 leaves orthonormal left singular vectors
    np.testing.assert_allclose(vectors.T @ vectors, np.eye(4), atol=1e-8)


def test_signs_do_not_depend_on_seed():
    rng = np.random.default_rng(1)
    M = sp.csr_matrix(rng.random((25, 25)))
    v1, _ = svd_embeddings(M, dim=3, seed=0)
    v2, _ = svd_embeddings(M, dim=3, seed=123)
    np.testing.assert_allclose(v1, v2, atol=1e-6)
    top = np.argmax(np.abs(v1), axis=0)
    assert np.all(v1[top, np.arange(3)] > 0)


def test_add_context_on_symmetric_matrix():
    M = np.diag([4.0, 1.0])
    vectors, _ = svd_embeddings(M, dim=2, eig_power=0.5, add_context=True)
    np.testing.assert_allclose(vectors, [[4.0, 0.0], [0.0, 2.0]], atol=1e-12)


def test_dim_larger_than_matrix_returns_all_components():
    vectors, s = svd_embeddings(np.eye(3), dim=10)
    assert vectors.shape == (3, 3)
    assert s.shape == (3,)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        svd_embeddings(np.eye(3), dim=0)
    with pytest.raises(ValueError):
        svd_embeddings(np.ones((3, 4)), dim=2, add_context=True)


def test_all_zero_matrix_raises_value_error():
    with pytest.raises(ValueError, match="empty"):
        svd_embeddings(sp.csr_matrix((6, 6)), dim=2, seed=0)
    with pytest.raises(ValueError, match="empty"):
        svd_embeddings(np.zeros((3, 3)), dim=5)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
