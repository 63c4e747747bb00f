from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import spearmanr

# Evaluation: k-NN neighbours, analogy (a - b + c ≈ ?), word-similarity correlation.


def l2_normalize(X: np.ndarray, axis: int = -1) -> np.ndarray:
    """L2-normalize array along the given axis (zero vectors get divisor 1).

    Args:
        X: Input array.
        axis: Axis along which to normalize. Defaults to -1.

    Returns:
        Normalized array, same shape as X.
    """
    norm = np.linalg.norm(X, axis=axis, keepdims=True)
    norm = np.where(norm > 0, norm, 1.0)
    return X / norm


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity between two vectors (flattened).

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Scalar in [-1, 1] (plus small epsilon in denominator).
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b) + 1e-10))


def nearest(
    embeddings: np.ndarray,
    word2id: Dict[str, int],
    id_to_word: List[str],
    word: str,
    k: int = 5,
) -> Optional[List[Tuple[str, float]]]:
    """Return the k nearest words to word by cosine similarity, excluding word itself.

    Args:
        embeddings: (V, D) embedding matrix.
        word2id: Mapping word -> id.
        id_to_word: List of words by id.
        word: Query word.
        k: Number of neighbours. Defaults to 5.

    Returns:
        List of (word, similarity) pairs, most similar first, or None if word is not in vocab.
    """
    if word not in word2id:
        return None
    E = l2_normalize(embeddings, axis=1)
    i = word2id[word]
    sims = np.dot(E, E[i])
    sims[i] = -2.0  # exclude self
    top = np.argsort(-sims, kind="stable")[: min(k, len(sims) - 1)]
    return [(id_to_word[j], float(sims[j])) for j in top]


def print_nearest(
    embeddings: np.ndarray,
    word2id: Dict[str, int],
    id_to_word: List[str],
    k: int = 5,
    query_words: Optional[List[str]] = None,
) -> None:
    """Print k nearest neighbours (cosine) for given or default query words.

    Args:
        embeddings: (V, D) embedding matrix.
        word2id: Mapping word -> id.
        id_to_word: List of words by id.
        k: Number of neighbours to show. Defaults to 5.
        query_words: Words to query; if None, use first 3 vocab words. Defaults to None.
    """
    if query_words is None:
        query_words = id_to_word[:3]
    for w in query_words:
        neighbours = nearest(embeddings, word2id, id_to_word, w, k=k)
        if neighbours is None:
            print(f"  '{w}' not in vocabulary")
            continue
        nn_str = ", ".join(f"{nw}({s:.3f})" for nw, s in neighbours)
        print(f"  '{w}' -> {nn_str}")


def analogy(
    embeddings: np.ndarray,
    word2id: Dict[str, int],
    id_to_word: List[str],
    a: str,
    b: str,
    c: str,
    k: int = 1,
) -> Optional[List[str]]:
    """Solve "b is to a as c is to ?" via vector offset a - b + c; return k nearest.

    Query words a, b, c are excluded from the candidates (3CosAdd on unit vectors).

    Args:
        embeddings: (V, D) embedding matrix.
        word2id: Mapping word -> id.
        id_to_word: List of words by id.
        a: Word added (e.g. "king").
        b: Word subtracted (e.g. "man").
        c: Word added (e.g. "woman").
        k: Number of nearest neighbours to return. Defaults to 1.

    Returns:
        List of k nearest word strings, or None if any of a, b, c not in vocab.
    """
    for w in (a, b, c):
        if w not in word2id:
            return None
    ia, ib, ic = word2id[a], word2id[b], word2id[c]
    E = l2_normalize(embeddings, axis=1)
    vec = l2_normalize(E[ia] - E[ib] + E[ic])
    sims = np.dot(E, vec)
    for idx in (ia, ib, ic):
        sims[idx] = -np.inf
    nearest_ids = np.argsort(-sims, kind="stable")[:k]
    return [id_to_word[j] for j in nearest_ids if np.isfinite(sims[j])]


# Small built-in set (no download). Expand or load from file for full evaluation.
DEFAULT_ANALOGIES = [
    ("king", "man", "woman", "queen"),
    ("paris", "france", "germany", "berlin"),
    ("big", "biggest", "small", "smallest"),
    ("run", "running", "walk", "walking"),
]


def run_analogy_eval(
    embeddings: np.ndarray,
    word2id: Dict[str, int],
    id_to_word: List[str],
    analogies: Optional[Sequence[Tuple[str, str, str, str]]] = None,
) -> Tuple[int, int]:
    """Run analogy evaluation on (a, b, c, expected_d) quadruples; print and return accuracy.

    Args:
        embeddings: (V, D) embedding matrix.
        word2id: Mapping word -> id.
        id_to_word: List of words by id.
        analogies: List of (a, b, c, expected) tuples. Defaults to DEFAULT_ANALOGIES.

    Returns:
        Tuple (correct_count, total_count) for analogies where a, b, c, expected are in vocab.
    """
    if analogies is None:
        analogies = DEFAULT_ANALOGIES
    correct = 0
    total = 0
    for a, b, c, expected in analogies:
        if expected not in word2id:
            continue
        preds = analogy(embeddings, word2id, id_to_word, a, b, c, k=1)
        if not preds:
            continue
        total += 1
        if preds[0].lower() == expected.lower():
            correct += 1
        print(f"  {a} - {b} + {c} = {preds[0]} (expected {expected})")
    if total > 0:
        print(f"Analogy accuracy: {correct}/{total} = {100.0 * correct / total:.1f}%")
    else:
        print("  (no analogies in vocab; train on a larger corpus e.g. text8 for king/queen etc.)")
    return correct, total


def word_similarity_eval(
    embeddings: np.ndarray,
    word2id: Dict[str, int],
    triples: Sequence[Tuple[str, str, float]],
) -> Tuple[float, int]:
    """Spearman correlation between human scores and cosine similarity (WordSim-353 style).

    Args:
        embeddings: (V, D) embedding matrix.
        word2id: Mapping word -> id.
        triples: (word1, word2, human_score) rows; rows with OOV words are skipped.

    Returns:
        Tuple (rho, n_used); rho is nan when fewer than 2 rows are usable.
    """
    model_scores, gold = [], []
    for w1, w2, score in triples:
        if w1 in word2id and w2 in word2id:
            model_scores.append(cosine_similarity(embeddings[word2id[w1]], embeddings[word2id[w2]]))
            gold.append(float(score))
    if len(gold) < 2:
        return float("nan"), len(gold)
    rho, _ = spearmanr(gold, model_scores)
    return float(rho), len(gold)
