import os
from typing import Dict, List, Tuple

import numpy as np

# word2vec text format: header "V D", then one "word v1 ... vD" line per word.


def save_word2vec_format(path: str, vectors: np.ndarray, id_to_word: List[str]) -> str:
    """Write vectors in word2vec text format; returns path.

    Raises:
        ValueError: If the number of rows and words differ, or a word contains whitespace.
    """
    V, D = vectors.shape
    if V != len(id_to_word):
        raise ValueError(f"{V} vectors but {len(id_to_word)} words")
    for word in id_to_word:
        if not word or word.split() != [word]:
            raise ValueError(f"Cannot write word with whitespace: {word!r}")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"{V} {D}\n")
        for word, vec in zip(id_to_word, vectors):
            f.write(word + " " + " ".join(f"{x:.6f}" for x in vec) + "\n")
    return path


def load_word2vec_format(path: str) -> Tuple[np.ndarray, List[str], Dict[str, int]]:
    """Read a word2vec text file.

    Returns:
        Tuple (vectors, id_to_word, word2id).

    Raises:
        ValueError: If the header is malformed or a row has the wrong dimension.
    """
    with open(path, encoding="utf-8") as f:
        header = f.readline().split()
        if len(header) != 2:
            raise ValueError(f"Bad header in {path}: {header}")
        V, D = int(header[0]), int(header[1])
        vectors = np.zeros((V, D), dtype=np.float64)
        id_to_word = []
        for i, line in enumerate(f):
            if i >= V:
                break
            parts = line.rstrip("\n").split(" ")
            if len(parts) != D + 1:
                raise ValueError(f"Line {i + 2} of {path} has {len(parts) - 1} values, expected {D}")
            id_to_word.append(parts[0])
            vectors[i] = np.array(parts[1:], dtype=np.float64)
    if len(id_to_word) != V:
        raise ValueError(f"{path} declares {V} words but has {len(id_to_word)}")
    return vectors, id_to_word, {w: i for i, w in enumerate(id_to_word)}
