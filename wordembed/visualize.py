import argparse
import json
import os
from typing import List, Optional

import numpy as np

from wordembed.corpus_utils import build_corpus_from_file, build_corpus_from_text
from wordembed.pipeline import DEMO_TEXT, METHODS, build_embeddings

# Figures: loss curve and 2D PCA of embeddings. Run: python -m wordembed.visualize


def pca_2d(X: np.ndarray) -> np.ndarray:
    """Project rows of X onto first 2 principal components (NumPy SVD).

    Fewer than 2 components (e.g. 1-dim vectors) are zero-padded.

    Args:
        X: Array of shape (n_samples, n_features).

    Returns:
        Array of shape (n_samples, 2).
    """
    X_centered = X - X.mean(axis=0)
    _, _, Vt = np.linalg.svd(X_centered, full_matrices=False)
    coords = X_centered @ Vt[:2].T
    if coords.shape[1] < 2:
        coords = np.hstack([coords, np.zeros((coords.shape[0], 2 - coords.shape[1]))])
    return coords.astype(np.float64)


def plot_loss_curve(history: List[dict], path: str, title: str = "Training loss") -> str:
    """Save a step/loss line plot of a training history to path (PNG)."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    steps = [h["step"] for h in history]
    losses = [h["loss"] for h in history]
    plt.figure(figsize=(6, 4))
    if len(steps) == 0:
        plt.text(0.5, 0.5, "No steps logged", ha="center", va="center")
    else:
        kwargs = {"color": "C0"}
        if len(steps) <= 20:
            kwargs["marker"] = "o"
            kwargs["markersize"] = 4
        plt.plot(steps, losses, **kwargs)
    plt.xlabel("Step")
    plt.ylabel("Loss")
    plt.title(title)
    plt.tight_layout()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    plt.savefig(path, dpi=120)
    plt.close()
    return path


def plot_embeddings(
    vectors: np.ndarray,
    id_to_word: List[str],
    path: str,
    max_labels: int = 50,
    title: str = "Word embeddings (PCA)",
) -> str:
    """Scatter the 2D PCA projection of vectors and label the first max_labels words."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    coords = pca_2d(vectors)
    plt.figure(figsize=(8, 6))
    plt.scatter(coords[:, 0], coords[:, 1], alpha=0.7, s=20)
    for i in range(min(max_labels, len(id_to_word))):
        plt.annotate(id_to_word[i], (coords[i, 0], coords[i, 1]), fontsize=7, alpha=0.9)
    plt.xlabel("PC1")
    plt.ylabel("PC2")
    plt.title(title)
    plt.tight_layout()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    plt.savefig(path, dpi=120)
    plt.close()
    return path


def main(argv: Optional[List[str]] = None) -> None:
    """Train embeddings, save loss curve, loss history and PCA figure to save_dir."""
    ap = argparse.ArgumentParser()
    ap.add_argument("--save_dir", type=str, default="wordembed/figures")
    ap.add_argument("--method", choices=METHODS, default="skipgram")
    ap.add_argument("--text", type=str, default=None)
    ap.add_argument("--file", type=str, default=None)
    ap.add_argument("--epochs", type=int, default=5)
    ap.add_argument("--dim", type=int, default=32)
    ap.add_argument("--window", type=int, default=3)
    ap.add_argument("--seed", type=int, default=42)
    args = ap.parse_args(argv)

    if args.file and os.path.isfile(args.file):
        corpus, id_to_word, word2id = build_corpus_from_file(args.file, min_count=2)
    else:
        corpus, id_to_word, word2id = build_corpus_from_text(args.text or DEMO_TEXT, min_count=1)

    vectors, history = build_embeddings(
        args.method,
        corpus,
        dim=args.dim,
        window_size=args.window,
        epochs=args.epochs,
        batch_size=min(32, max(1, corpus.n_tokens // 5)),
        subsample=False,  # keep all pairs so we get enough steps for a visible loss curve
        seed=args.seed,
        log_every=1,
    )

    os.makedirs(args.save_dir, exist_ok=True)
    if history:
        loss_path = plot_loss_curve(
            history, os.path.join(args.save_dir, "loss_curve.png"), title=f"{args.method} loss"
        )
        print(f"Saved {loss_path}")
        with open(os.path.join(args.save_dir, "loss_history.json"), "w") as f:
            json.dump(history, f, indent=0)
    emb_path = plot_embeddings(
        vectors,
        id_to_word,
        os.path.join(args.save_dir, f"embeddings_pca_{args.method}.png"),
        title=f"{args.method} embeddings (PCA)",
    )
    print(f"Saved {emb_path}")


if __name__ == "__main__":
    main()
