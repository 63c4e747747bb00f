from typing import Iterator, List, Optional, Tuple

import numpy as np

# Corpus windows and training batches: subsampling (sqrt(t/f) capped at 1), unigram^0.75
# negatives, skip-gram pairs and CBOW context windows. Windows never cross documents.


def _segment_bounds(doc_ids: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Per-position start/end (exclusive) of the document each token belongs to.

    Args:
        doc_ids: 1D array of document labels, one per token, grouped contiguously.

    Returns:
        Tuple (starts, ends), each the same length as doc_ids.
    """
    n = len(doc_ids)
    change = np.flatnonzero(np.diff(doc_ids)) + 1
    starts = np.concatenate(([0], change)).astype(np.int64)
    ends = np.concatenate((change, [n])).astype(np.int64)
    lengths = ends - starts
    return np.repeat(starts, lengths), np.repeat(ends, lengths)


class Corpus:
    """Tokenized corpus as word indices; supports subsampling and window iteration.

    Attributes:
        word_ids (np.ndarray): 1D array of vocabulary indices for the full corpus.
        counts (np.ndarray): 1D array of length vocab_size; counts[i] is count of word i.
        doc_ids (np.ndarray): 1D array, document label of each token (same length as word_ids).
        subsample_t (float): Subsampling threshold (Mikolov: sqrt(t/f) capped at 1).
        n_tokens (int): Length of corpus (len(word_ids)).
    """

    def __init__(
        self,
        word_ids: np.ndarray,
        counts: np.ndarray,
        subsample_t: float = 1e-5,
        doc_ids: Optional[np.ndarray] = None,
    ):
        """Initialize corpus from token ids and vocabulary counts.

        Args:
            word_ids: 1D array of vocabulary indices for the whole corpus.
            counts: 1D array of length vocab_size; counts[i] = count of word i.
            subsample_t: Subsampling threshold; typical 1e-5. Lower = more drop. Defaults to 1e-5.
            doc_ids: Document label per token. Defaults to None (one document).

        Raises:
            ValueError: If doc_ids does not match word_ids in length.
        """
        self.word_ids = np.asarray(word_ids, dtype=np.int64)
        self.counts = np.asarray(counts, dtype=np.float64)
        self.subsample_t = subsample_t
        self.n_tokens = len(self.word_ids)
        if doc_ids is None:
            doc_ids = np.zeros(self.n_tokens, dtype=np.int64)
        self.doc_ids = np.asarray(doc_ids, dtype=np.int64)
        if len(self.doc_ids) != self.n_tokens:
            raise ValueError("doc_ids must have one entry per token")

    @property
    def vocab_size(self) -> int:
        return len(self.counts)

    @property
    def n_docs(self) -> int:
        if self.n_tokens == 0:
            return 0
        return int(np.count_nonzero(np.diff(self.doc_ids))) + 1

    def subsample(self, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """Probabilistic subsampling of frequent words (Mikolov et al.: P(keep) = sqrt(t/f) cap 1).

        Args:
            rng: Random generator for reproducibility. Defaults to None (new default_rng).

        Returns:
            Indices of kept tokens (positions in corpus), not word ids.
        """
        if rng is None:
            rng = np.random.default_rng()
        total_count = self.counts.sum()
        if total_count <= 0:
            return np.arange(self.n_tokens)
        freqs = self.counts[self.word_ids] / total_count
        keep_prob = np.sqrt(self.subsample_t / np.clip(freqs, 1e-12, None))
        keep_prob = np.minimum(keep_prob, 1.0)
        r = rng.random(self.n_tokens)
        return np.where(r < keep_prob)[0]

    def token_view(
        self, subsample: bool = False, rng: Optional[np.random.Generator] = None
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Token stream used for windowing, with discarded tokens removed.

        Args:
            subsample: Whether to drop frequent tokens first. Defaults to False.
            rng: Random generator for subsampling. Defaults to None.

        Returns:
            Tuple (ids, starts, ends): word ids of the stream and, per position, the
            bounds of its document within the stream.
        """
        if subsample:
            kept = np.sort(self.subsample(rng))
        else:
            kept = np.arange(self.n_tokens)
        ids = self.word_ids[kept]
        starts, ends = _segment_bounds(self.doc_ids[kept])
        return ids, starts, ends

    def iter_windows(
        self,
        window_size: int,
        subsample: bool = True,
        seed: Optional[int] = None,
        dynamic_window: bool = False,
    ) -> Iterator[Tuple[int, np.ndarray]]:
        """Yield (center_word_id, context_word_ids) for every position of the stream.

        Symmetric window: context in [center - w, center + w], excluding center, clipped to the
        center's document. With dynamic_window, w is drawn uniformly from [1, window_size] per
        position (word2vec's reduced window).

        Args:
            window_size: Half-window size (each side).
            subsample: Whether to subsample before iterating. Defaults to True.
            seed: Random seed for subsampling and window shrinking. Defaults to None.
            dynamic_window: Whether to shrink windows at random. Defaults to False.

        Yields:
            Tuples (center_id, context_ids); context_ids may be empty for one-token documents.

        Raises:
            ValueError: If window_size < 1.
        """
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        rng = np.random.default_rng(seed)
        ids, starts, ends = self.token_view(subsample, rng)
        for idx in range(len(ids)):
            w = int(rng.integers(1, window_size + 1)) if dynamic_window else window_size
            lo = max(starts[idx], idx - w)
            hi = min(ends[idx], idx + w + 1)
            context = np.concatenate((ids[lo:idx], ids[idx + 1 : hi]))
            yield int(ids[idx]), context

    def iter_skipgram_pairs(
        self,
        window_size: int,
        subsample: bool = True,
        seed: Optional[int] = None,
        dynamic_window: bool = False,
    ) -> Iterator[Tuple[int, int]]:
        """Yield (center_word_id, context_word_id) pairs from the corpus windows.

        Args:
            window_size: Half-window size (each side).
            subsample: Whether to subsample before iterating. Defaults to True.
            seed: Random seed for subsampling. Defaults to None.
            dynamic_window: Whether to shrink windows at random. Defaults to False.

        Yields:
            Tuples (center_id, context_id).
        """
        for center, context in self.iter_windows(
            window_size, subsample=subsample, seed=seed, dynamic_window=dynamic_window
        ):
            for c in context:
                yield center, int(c)


def negative_sampling_distribution(counts: np.ndarray, power: float = 0.75) -> np.ndarray:
    """Unigram distribution raised to power and normalized (Mikolov et al.: power=0.75).

    Args:
        counts: 1D array of vocabulary counts.
        power: Exponent for counts; 0.75 is standard. Defaults to 0.75.

    Returns:
        1D array of probabilities (sum 1), same length as counts.
    """
    probs = np.power(np.maximum(counts, 1e-10), power)
    probs /= probs.sum()
    return probs


def sample_negatives(
    rng: np.random.Generator,
    neg_probs: np.ndarray,
    num_negatives: int,
    exclude: List[np.ndarray],
) -> np.ndarray:
    """Draw (B, K) negatives from neg_probs, redrawing any that hit an excluded id of its row.

    Args:
        rng: Random generator.
        neg_probs: 1D probability distribution over vocab.
        num_negatives: Number of negatives per row (K).
        exclude: Arrays of shape (B,); row i must not contain exclude[j][i] for any j.

    Returns:
        Array of word ids, shape (B, K).

    Raises:
        ValueError: If the vocabulary is too small to leave any valid negative.
    """
    V = len(neg_probs)
    if V < 3:
        raise ValueError(f"negative sampling needs at least 3 vocabulary words, got {V}")
    n = len(exclude[0])
    negs = rng.choice(V, size=(n, num_negatives), p=neg_probs)
    for i in range(n):
        banned = [e[i] for e in exclude]
        bad = np.isin(negs[i], banned)
        while np.any(bad):
            negs[i, bad] = rng.choice(V, size=bad.sum(), p=neg_probs)
            bad = np.isin(negs[i], banned)
    return negs


def skipgram_batches(
    corpus: Corpus,
    batch_size: int,
    window_size: int,
    num_negatives: int,
    neg_probs: np.ndarray,
    subsample: bool = True,
    seed: Optional[int] = None,
    dynamic_window: bool = False,
) -> Iterator[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
    """Yield batches of (center, context_pos, context_neg) for skip-gram training.

    Negatives are sampled from neg_probs; center and positive are never used as negatives.

    Args:
        corpus: Corpus instance to iterate over.
        batch_size: Number of (center, context) pairs per batch.
        window_size: Window size for iter_skipgram_pairs.
        num_negatives: Number of negative samples per positive (K).
        neg_probs: 1D probability distribution over vocab for negative sampling.
        subsample: Whether to subsample corpus. Defaults to True.
        seed: Random seed. Defaults to None.
        dynamic_window: Whether to shrink windows at random. Defaults to False.

    Yields:
        Tuples (center, context_pos, context_neg) with shapes (B,), (B,), (B, K).
    """
    rng = np.random.default_rng(seed)
    centers: List[int] = []
    positives: List[int] = []

    def _flush():
        centers_arr = np.array(centers, dtype=np.int64)
        pos_arr = np.array(positives, dtype=np.int64)
        negs = sample_negatives(rng, neg_probs, num_negatives, [centers_arr, pos_arr])
        return centers_arr, pos_arr, negs

    pairs = corpus.iter_skipgram_pairs(
        window_size, subsample=subsample, seed=seed, dynamic_window=dynamic_window
    )
    for c, p in pairs:
        centers.append(c)
        positives.append(p)
        if len(centers) >= batch_size:
            yield _flush()
            centers = []
            positives = []
    if centers:
        yield _flush()


def cbow_batches(
    corpus: Corpus,
    batch_size: int,
    window_size: int,
    num_negatives: int,
    neg_probs: np.ndarray,
    subsample: bool = True,
    seed: Optional[int] = None,
    dynamic_window: bool = False,
) -> Iterator[Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]]:
    """Yield batches of (context, mask, target, negatives) for CBOW training.

    Context rows are padded to 2 * window_size with id 0; mask is 1.0 on real context slots.
    Positions without any context word are skipped. Negatives never equal the target.

    Args:
        corpus: Corpus instance to iterate over.
        batch_size: Number of windows per batch.
        window_size: Half-window size.
        num_negatives: Number of negative samples per target (K).
        neg_probs: 1D probability distribution over vocab for negative sampling.
        subsample: Whether to subsample corpus. Defaults to True.
        seed: Random seed. Defaults to None.
        dynamic_window: Whether to shrink windows at random. Defaults to False.

    Yields:
        Tuples (context, mask, target, negatives) with shapes (B, 2W), (B, 2W), (B,), (B, K).
    """
    rng = np.random.default_rng(seed)
    width = 2 * window_size
    rows: List[np.ndarray] = []
    targets: List[int] = []

    def _flush():
        n = len(rows)
        context = np.zeros((n, width), dtype=np.int64)
        mask = np.zeros((n, width), dtype=np.float32)
        for i, row in enumerate(rows):
            context[i, : len(row)] = row
            mask[i, : len(row)] = 1.0
        target = np.array(targets, dtype=np.int64)
        negs = sample_negatives(rng, neg_probs, num_negatives, [target])
        return context, mask, target, negs

    windows = corpus.iter_windows(
        window_size, subsample=subsample, seed=seed, dynamic_window=dynamic_window
    )
    for center, context in windows:
        if len(context) == 0:
            continue
        rows.append(context)
        targets.append(center)
        if len(rows) >= batch_size:
            yield _flush()
            rows = []
            targets = []
    if rows:
        yield _flush()
