import numpy as np
import pytest
import scipy.sparse as sp

from wordembed.cooccurrence import cooccurrence_matrix, joint_probabilities, pair_table, pmi_matrix
from wordembed.data import Corpus

# Unit tests: window counts, document boundaries, probabilities, PMI/PPMI, pair table.


def _abca() -> Corpus:
    return Corpus(np.array([0, 1, 2, 0]), np.array([2.0, 1.0, 1.0]))


def test_counts_window_one():
    C = cooccurrence_matrix(_abca(), window_size=1)
    np.testing.assert_array_equal(C.toarray(), [[0, 1, 1], [1, 0, 1], [1, 1, 0]])


def test_counts_window_two_uniform_and_harmonic():
    C = cooccurrence_matrix(_abca(), window_size=2)
    np.testing.assert_array_equal(C.toarray(), [[0, 2, 2], [2, 0, 1], [2, 1, 0]])
    H = cooccurrence_matrix(_abca(), window_size=2, weighting="harmonic")
    np.testing.assert_allclose(H.toarray(), [[0, 1.5, 1.5], [1.5, 0, 1], [1.5, 1, 0]])


def test_counts_are_symmetric():
    rng = np.random.default_rng(3)
    word_ids = rng.integers(0, 8, size=200)
    corpus = Corpus(word_ids, np.bincount(word_ids, minlength=8).astype(float))
    C = cooccurrence_matrix(corpus, window_size=3).toarray()
    np.testing.assert_array_equal(C, C.T)
    # every token pair within distance 3 is counted twice (once per direction)
    assert C.sum() == 2 * (3 * 200 - 6)


def test_counts_stop_at_document_boundaries():
    corpus = Corpus(np.array([0, 1, 2, 0]), np.ones(3), doc_ids=np.array([0, 0, 1, 1]))
    C = cooccurrence_matrix(corpus, window_size=3).toarray()
    assert C[0, 1] == 1 and C[0, 2] == 1
    assert C[1, 2] == 0


def test_invalid_arguments():
    with pytest.raises(ValueError):
        cooccurrence_matrix(_abca(), window_size=0)
    with pytest.raises(ValueError):
        cooccurrence_matrix(_abca(), weighting="linear")


def test_joint_probabilities_sum_to_one():
    P = joint_probabilities(cooccurrence_matrix(_abca(), window_size=2))
    assert np.isclose(P.sum(), 1.0)
    with pytest.raises(ValueError):
        joint_probabilities(sp.csr_matrix((3, 3)))


def test_pmi_of_perfectly_paired_words():
    C = sp.csr_matrix(np.array([[0.0, 2.0], [2.0, 0.0]]))
    M = pmi_matrix(C)
    np.testing.assert_allclose(M.toarray(), [[0, np.log(2)], [np.log(2), 0]])
    shifted = pmi_matrix(C, shift=2.0)
    assert shifted.nnz == 0  # log 2 - log 2 is clipped away


def test_ppmi_clips_negative_association():
    C = sp.csr_matrix(np.array([[10.0, 1.0], [1.0, 10.0]]))
    ppmi = pmi_matrix(C, positive=True).toarray()
    raw = pmi_matrix(C, positive=False).toarray()
    assert ppmi[0, 1] == 0.0
    assert np.isclose(raw[0, 1], np.log((1 / 22) / 0.25))
    assert np.isclose(ppmi[0, 0], np.log((10 / 22) / 0.25))


def test_context_smoothing_changes_rare_context_weight():
    C = sp.csr_matrix(np.array([[0.0, 9.0, 1.0], [9.0, 0.0, 0.0], [1.0, 0.0, 0.0]]))
    plain = pmi_matrix(C, positive=False, cds=1.0).toarray()
    smooth = pmi_matrix(C, positive=False, cds=0.75).toarray()
    # Smoothing raises the probability of rare contexts, lowering their PMI
    assert smooth[0, 2] < plain[0, 2]


def test_pmi_rejects_bad_input():
    with pytest.raises(ValueError):
        pmi_matrix(sp.csr_matrix((2, 2)))
    with pytest.raises(ValueError):
        pmi_matrix(sp.csr_matrix(np.eye(2)), shift=0.0)


def test_pair_table_upper_triangle_sorted_by_count():
    C = cooccurrence_matrix(_abca(), window_size=2)
    rows = pair_table(C, ["a", "b", "c"])
    assert [(w, c) for w, c, *_ in rows] == [("a", "b"), ("a", "c"), ("b", "c")]
    assert [r[2] for r in rows] == [2.0, 2.0, 1.0]
    assert np.isclose(rows[0][3], 2.0 / 10.0)
    assert len(pair_table(C, ["a", "b", "c"], top=1)) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
