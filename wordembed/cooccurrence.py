from typing import List, Optional, Tuple

import numpy as np
import scipy.sparse as sp

from wordembed.data import Corpus

# Window co-occurrence counts and their unigram-normalized form (PMI / PPMI), as sparse
# (V, V) matrices. Pairs that never co-occur are structural zeros.

WEIGHTINGS = ("uniform", "harmonic")


def cooccurrence_matrix(
    corpus: Corpus,
    window_size: int = 2,
    weighting: str = "uniform",
    subsample: bool = False,
    seed: Optional[int] = None,
) -> sp.csr_matrix:
    """Count symmetric co-occurrences of words within window_size of each other.

    Each unordered pair of positions (i, i + d) with 1 <= d <= window_size in the same
    document adds its weight to both C[a, b] and C[b, a]. Uniform weight is 1; harmonic
    weight is 1 / d (as in GloVe).

    Args:
        corpus: Corpus to count over.
        window_size: Half-window size. Defaults to 2.
        weighting: "uniform" or "harmonic". Defaults to "uniform".
        subsample: Whether to subsample frequent words first. Defaults to False.
        seed: Random seed for subsampling. Defaults to None.

    Returns:
        CSR matrix of shape (V, V), dtype float64.

    Raises:
        ValueError: If window_size < 1 or weighting is unknown.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")
    if weighting not in WEIGHTINGS:
        raise ValueError(f"weighting must be one of {WEIGHTINGS}, got {weighting!r}")
    V = corpus.vocab_size
    ids, _, ends = corpus.token_view(subsample, np.random.default_rng(seed))
    n = len(ids)
    rows, cols, vals = [], [], []
    positions = np.arange(n)
    # One vectorized pass per distance d; ends[] stops pairs at document boundaries.
    for d in range(1, window_size + 1):
        left = positions[(positions + d) < ends]
        right = left + d
        w = 1.0 if weighting == "uniform" else 1.0 / d
        weight = np.full(len(left), w, dtype=np.float64)
        rows.extend([ids[left], ids[right]])
        cols.extend([ids[right], ids[left]])
        vals.extend([weight, weight])
    r = np.concatenate(rows)
    c = np.concatenate(cols)
    v = np.concatenate(vals)
    # Duplicate (r, c) entries are summed on conversion.
    return sp.coo_matrix((v, (r, c)), shape=(V, V)).tocsr()


def joint_probabilities(C: sp.spmatrix) -> sp.csr_matrix:
    """Normalize co-occurrence counts to joint probabilities p(w, c) = C / C.sum()."""
    C = sp.csr_matrix(C, dtype=np.float64, copy=True)
    total = C.sum()
    if total <= 0:
        raise ValueError("Co-occurrence matrix is empty")
    return C / total


def _marginals(C: sp.csr_matrix, cds: float) -> Tuple[np.ndarray, np.ndarray, float]:
    total = float(C.sum())
    if total <= 0:
        raise ValueError("Co-occurrence matrix is empty")
    row = np.asarray(C.sum(axis=1)).ravel() / total
    col = np.power(np.asarray(C.sum(axis=0)).ravel(), cds)
    col = col / col.sum()
    return row, col, total


def pmi_matrix(
    C: sp.spmatrix,
    positive: bool = True,
    cds: float = 1.0,
    shift: float = 1.0,
) -> sp.csr_matrix:
    """Pointwise mutual information of the nonzero cells of a co-occurrence matrix.

    PMI(w, c) = log(p(w, c) / (p(w) * p_cds(c))) - log(shift), where p(w) is the row marginal
    and p_cds(c) is proportional to the column marginal raised to cds (context distribution
    smoothing, 0.75 in Levy et al.). Cells with zero count stay zero.

    Args:
        C: Co-occurrence counts, shape (V, V).
        positive: Clip negative values to 0 (PPMI). Defaults to True.
        cds: Context distribution smoothing exponent. Defaults to 1.0 (no smoothing).
        shift: Shift k of SPPMI; log(k) is subtracted. Defaults to 1.0 (no shift).

    Returns:
        CSR matrix of shape (V, V).

    Raises:
        ValueError: If C has no positive mass or shift <= 0.
    """
    if shift <= 0:
        raise ValueError(f"shift must be > 0, got {shift}")
    C = sp.csr_matrix(C, dtype=np.float64, copy=True)
    C.eliminate_zeros()
    p_w, p_c, total = _marginals(C, cds)
    M = C.tocoo()
    p_wc = M.data / total
    pmi = np.log(p_wc / (p_w[M.row] * p_c[M.col])) - np.log(shift)
    if positive:
        pmi = np.maximum(pmi, 0.0)
    out = sp.csr_matrix((pmi, (M.row, M.col)), shape=C.shape)
    out.eliminate_zeros()
    return out


def pair_table(
    C: sp.spmatrix,
    id_to_word: List[str],
    top: Optional[int] = None,
    cds: float = 1.0,
) -> List[Tuple[str, str, float, float, float]]:
    """Word-pair view of a symmetric co-occurrence matrix, most frequent pairs first.

    Only the upper triangle (including the diagonal) is listed since C[a, b] == C[b, a].

    Args:
        C: Co-occurrence counts, shape (V, V).
        id_to_word: List of words by id.
        top: Keep only the first top rows. Defaults to None (all).
        cds: Context distribution smoothing for the PMI column. Defaults to 1.0.

    Returns:
        List of (word, context, count, probability, pmi) tuples.
    """
    C = sp.csr_matrix(C, dtype=np.float64, copy=True)
    C.eliminate_zeros()
    p_w, p_c, total = _marginals(C, cds)
    M = sp.triu(C).tocoo()
    order = np.lexsort((M.col, M.row, -M.data))
    if top is not None:
        order = order[:top]
    rows = []
    for k in order:
        i, j, count = int(M.row[k]), int(M.col[k]), float(M.data[k])
        prob = count / total
        pmi = float(np.log(prob / (p_w[i] * p_c[j])))
        rows.append((id_to_word[i], id_to_word[j], count, prob, pmi))
    return rows
