from typing import List, Optional, Tuple

import numpy as np

from wordembed.cooccurrence import cooccurrence_matrix, pmi_matrix
from wordembed.data import Corpus
from wordembed.model import CBOWNegSampling, CooccurrenceRegression, SkipGramNegSampling
from wordembed.svd import svd_embeddings
from wordembed.train import train, train_cooccurrence

# One call from Corpus to (V, D) vectors for each method: count-based (PPMI + SVD) or neural.

METHODS = ("svd", "skipgram", "cbow", "glove")

# Repeated so small runs still get enough steps for a visible loss curve
DEMO_TEXT = (
    "the quick brown fox jumps over the lazy dog "
    "the dog and the fox are animals quick animals jump over lazy dogs "
    "brown foxes and lazy dogs the quick brown fox runs the lazy dog sleeps "
) * 8


def build_embeddings(
    method: str,
    corpus: Corpus,
    *,
    dim: int = 50,
    window_size: int = 2,
    epochs: int = 5,
    lr: Optional[float] = None,
    batch_size: int = 128,
    num_negatives: int = 5,
    use_adagrad: bool = True,
    use_lr_decay: bool = True,
    subsample: bool = True,
    dynamic_window: bool = False,
    eig_power: float = 0.5,
    cds: float = 0.75,
    shift: float = 1.0,
    weighting: str = "uniform",
    seed: int = 42,
    log_every: int = 100,
) -> Tuple[np.ndarray, List[dict]]:
    """Compute word vectors for corpus with the given method.

    svd: PPMI of window counts, then truncated SVD (no training, history is empty).
    skipgram / cbow: negative-sampling models trained on corpus windows.
    glove: CooccurrenceRegression fitted to harmonic-weighted window counts.

    Args:
        method: One of METHODS.
        corpus: Corpus to learn from.
        dim: Embedding dimension. Defaults to 50.
        window_size: Half-window size. Defaults to 2.
        epochs: Training epochs for neural methods. Defaults to 5.
        lr: Learning rate; None picks 0.025 (skipgram/cbow) or 0.05 (glove). Defaults to None.
        batch_size: Training batch size. Defaults to 128.
        num_negatives: Negatives per example (skipgram/cbow). Defaults to 5.
        use_adagrad: Adagrad instead of SGD (skipgram/cbow). Defaults to True.
        use_lr_decay: Linear LR decay (skipgram/cbow). Defaults to True.
        subsample: Subsample frequent words (skipgram/cbow). Defaults to True.
        dynamic_window: Randomly shrink windows (skipgram/cbow). Defaults to False.
        eig_power: Singular value exponent (svd). Defaults to 0.5.
        cds: Context distribution smoothing (svd). Defaults to 0.75.
        shift: PMI shift k (svd). Defaults to 1.0.
        weighting: Co-occurrence weighting for svd ("uniform" or "harmonic"). Defaults to "uniform".
        seed: Random seed. Defaults to 42.
        log_every: Training log interval in steps. Defaults to 100.

    Returns:
        Tuple (vectors, history); vectors has shape (V, D') with D' <= dim for svd.

    Raises:
        ValueError: If method is unknown.
    """
    if method not in METHODS:
        raise ValueError(f"method must be one of {METHODS}, got {method!r}")
    V = corpus.vocab_size
    if method == "svd":
        C = cooccurrence_matrix(corpus, window_size=window_size, weighting=weighting)
        M = pmi_matrix(C, positive=True, cds=cds, shift=shift)
        vectors, _ = svd_embeddings(M, dim, eig_power=eig_power, seed=seed)
        return vectors, []
    if method == "glove":
        C = cooccurrence_matrix(corpus, window_size=window_size, weighting="harmonic")
        model = CooccurrenceRegression(V, dim, seed=seed)
        history = train_cooccurrence(
            model,
            C,
            num_epochs=epochs,
            batch_size=batch_size,
            lr=0.05 if lr is None else lr,
            seed=seed,
            log_every=log_every,
        )
        return model.embeddings(), history
    model_cls = SkipGramNegSampling if method == "skipgram" else CBOWNegSampling
    model = model_cls(V, dim, seed=seed)
    history = train(
        model,
        corpus,
        num_epochs=epochs,
        batch_size=batch_size,
        window_size=window_size,
        num_negatives=num_negatives,
        lr=0.025 if lr is None else lr,
        use_adagrad=use_adagrad,
        use_lr_decay=use_lr_decay,
        subsample=subsample,
        dynamic_window=dynamic_window,
        seed=seed,
        log_every=log_every,
    )
    return model.embeddings(), history
