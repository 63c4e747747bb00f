from typing import Optional, Tuple

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import svds

# Count-based embeddings: truncated SVD of a (P)PMI matrix, W = U * S^p (Levy et al.).


def _fix_signs(U: np.ndarray, Vt: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Flip each singular pair so the largest-magnitude entry of its left vector is positive."""
    idx = np.argmax(np.abs(U), axis=0)
    signs = np.sign(U[idx, np.arange(U.shape[1])])
    signs[signs == 0] = 1.0
    return U * signs, Vt * signs[:, np.newaxis]


def svd_embeddings(
    M,
    dim: int,
    eig_power: float = 0.5,
    add_context: bool = False,
    seed: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Factorize M (dense or sparse, shape (V, C)) into dim-dimensional word vectors.

    Uses scipy's ARPACK svds when dim < min(M.shape), else a full numpy SVD truncated to dim.
    Singular values are returned in descending order and signs are made deterministic.

    Args:
        M: Matrix to factorize, e.g. a PPMI matrix.
        dim: Number of singular components to keep.
        eig_power: Exponent p on singular values in U * S^p; 0.5 is symmetric, 1.0 is the
            classic truncated SVD, 0.0 drops them. Defaults to 0.5.
        add_context: Also add the context vectors V * S^p (w + c). Defaults to False.
        seed: Seed for the ARPACK start vector. Defaults to None.

    Returns:
        Tuple (vectors, singular_values) with shapes (V, k) and (k,), k = min(dim, min(M.shape)).

    Raises:
        ValueError: If dim < 1, M is all zeros, or add_context is set for a non-square M.
    """
    if dim < 1:
        raise ValueError(f"dim must be >= 1, got {dim}")
    if add_context and M.shape[0] != M.shape[1]:
        raise ValueError("add_context needs a square (word x context) matrix")
    nonzero = M.count_nonzero() if sp.issparse(M) else np.count_nonzero(M)
    if nonzero == 0:
        # ARPACK cannot start from an all-zero operator
        raise ValueError("Matrix to factorize is empty (all zeros)")
    n_min = min(M.shape)
    if dim < n_min:
        A = sp.csr_matrix(M, dtype=np.float64)
        v0 = np.random.default_rng(seed).standard_normal(n_min)
        U, s, Vt = svds(A, k=dim, v0=v0)
        # svds returns ascending singular values
        order = np.argsort(-s)
        U, s, Vt = U[:, order], s[order], Vt[order]
    else:
        A = M.toarray() if sp.issparse(M) else np.asarray(M, dtype=np.float64)
        U, s, Vt = np.linalg.svd(A, full_matrices=False)
    U, Vt = _fix_signs(U, Vt)
    weights = np.power(s, eig_power)
    vectors = U * weights
    if add_context:
        vectors = vectors + Vt.T * weights
    return vectors, s
