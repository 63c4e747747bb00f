from typing import Optional

import numpy as np
import scipy.sparse as sp
import torch

from wordembed.data import Corpus, cbow_batches, negative_sampling_distribution, skipgram_batches
from wordembed.model import CBOWNegSampling, CooccurrenceRegression

# Training loops: Adagrad or SGD, optional linear LR decay (Mikolov et al.).


def _make_optimizer(model: torch.nn.Module, lr: float, use_adagrad: bool):
    if use_adagrad:
        return torch.optim.Adagrad(model.parameters(), lr=lr)
    return torch.optim.SGD(model.parameters(), lr=lr)


def _set_lr(optimizer, lr: float) -> None:
    for group in optimizer.param_groups:
        group["lr"] = lr


def train(
    model: torch.nn.Module,
    corpus: Corpus,
    *,
    num_epochs: int = 1,
    batch_size: int = 128,
    window_size: int = 5,
    num_negatives: int = 5,
    lr: float = 0.025,
    lr_min_ratio: float = 0.0001,
    use_adagrad: bool = True,
    use_lr_decay: bool = True,
    subsample: bool = True,
    dynamic_window: bool = False,
    seed: Optional[int] = None,
    log_every: int = 1000,
) -> list:
    """Train a skip-gram or CBOW model with Adagrad (default) or SGD.

    CBOWNegSampling models get context-window batches; anything else gets skip-gram pairs.
    LR decays from lr to lr * lr_min_ratio over the run when use_lr_decay is True.

    Args:
        model: SkipGramNegSampling or CBOWNegSampling instance (modified in place).
        corpus: Corpus to train on.
        num_epochs: Number of passes over the corpus. Defaults to 1.
        batch_size: Training examples per batch. Defaults to 128.
        window_size: Context window size. Defaults to 5.
        num_negatives: Number of negative samples per positive. Defaults to 5.
        lr: Initial learning rate. Defaults to 0.025.
        lr_min_ratio: Minimum LR as fraction of initial (for decay). Defaults to 0.0001.
        use_adagrad: Whether to use Adagrad. Defaults to True.
        use_lr_decay: Whether to apply linear LR decay. Defaults to True.
        subsample: Whether to subsample corpus. Defaults to True.
        dynamic_window: Whether to shrink windows at random. Defaults to False.
        seed: Random seed. Defaults to None.
        log_every: Log and record history every this many steps. Defaults to 1000.

    Returns:
        List of dicts with keys "step", "loss", "lr" for plotting.
    """
    is_cbow = isinstance(model, CBOWNegSampling)
    make_batches = cbow_batches if is_cbow else skipgram_batches
    rng = np.random.default_rng(seed)
    neg_probs = negative_sampling_distribution(corpus.counts)
    optimizer = _make_optimizer(model, lr, use_adagrad)
    model.train()

    # Approximate examples per epoch for the LR schedule: one per token for CBOW,
    # one per (center, context) pair for skip-gram.
    per_epoch = corpus.n_tokens * (1 if is_cbow else max(1, 2 * window_size))
    if subsample:
        per_epoch = per_epoch * 0.5
    total_examples = int(per_epoch * num_epochs)
    steps_per_epoch_est = max(1, int(per_epoch / batch_size))
    print(
        f"Training {'CBOW' if is_cbow else 'skip-gram'}: {num_epochs} epochs, "
        f"~{steps_per_epoch_est * num_epochs} steps total (est. ~{steps_per_epoch_est} steps/epoch)"
    )

    history = []
    step = 0
    examples_seen = 0
    loss_value, lr_current = 0.0, lr
    for epoch in range(num_epochs):
        print(f"Epoch {epoch + 1}/{num_epochs}")
        batch_gen = make_batches(
            corpus,
            batch_size,
            window_size,
            num_negatives,
            neg_probs,
            subsample=subsample,
            seed=int(rng.integers(0, 2**31)) if seed is not None else None,
            dynamic_window=dynamic_window,
        )
        for batch in batch_gen:
            tensors = [torch.from_numpy(a) for a in batch]
            B = tensors[0].shape[0]
            if use_lr_decay and total_examples > 0:
                lr_current = lr * max(lr_min_ratio, 1.0 - examples_seen / (total_examples + 1))
            else:
                lr_current = lr
            _set_lr(optimizer, lr_current)
            loss = model(*tensors)
            optimizer.zero_grad()
            loss.backward()
            optimizer.step()
            loss_value = loss.item()
            examples_seen += B
            step += 1
            if step % log_every == 0:
                history.append({"step": step, "loss": loss_value, "lr": lr_current})
                print(f"step {step} loss {loss_value:.4f} lr {lr_current:.6f}")
    # Ensure we have at least the final step for plotting (avoids empty loss curve)
    if step > 0 and (not history or history[-1]["step"] != step):
        history.append({"step": step, "loss": loss_value, "lr": lr_current})
    return history


def train_cooccurrence(
    model: CooccurrenceRegression,
    C: sp.spmatrix,
    *,
    num_epochs: int = 25,
    batch_size: int = 512,
    lr: float = 0.05,
    seed: Optional[int] = None,
    log_every: int = 100,
) -> list:
    """Fit a CooccurrenceRegression model to the nonzero cells of C with Adagrad.

    Cells are shuffled every epoch. The reported loss is the mean over the last batch.

    Args:
        model: CooccurrenceRegression instance (modified in place).
        C: Co-occurrence counts, shape (V, V).
        num_epochs: Number of passes over the nonzero cells. Defaults to 25.
        batch_size: Cells per batch. Defaults to 512.
        lr: Adagrad learning rate. Defaults to 0.05.
        seed: Random seed for shuffling. Defaults to None.
        log_every: Log and record history every this many steps. Defaults to 100.

    Returns:
        List of dicts with keys "step", "loss", "lr".

    Raises:
        ValueError: If C has no positive cells.
    """
    M = sp.coo_matrix(C)
    keep = M.data > 0
    rows = torch.from_numpy(M.row[keep].astype(np.int64))
    cols = torch.from_numpy(M.col[keep].astype(np.int64))
    counts = torch.from_numpy(M.data[keep].astype(np.float64))
    n = len(rows)
    if n == 0:
        raise ValueError("Co-occurrence matrix has no positive cells")
    rng = np.random.default_rng(seed)
    optimizer = torch.optim.Adagrad(model.parameters(), lr=lr)
    model.train()
    print(f"Training co-occurrence model: {num_epochs} epochs, {n} nonzero cells")

    history = []
    step = 0
    loss_value = 0.0
    for epoch in range(num_epochs):
        order = torch.from_numpy(rng.permutation(n))
        for start in range(0, n, batch_size):
            idx = order[start : start + batch_size]
            loss = model(rows[idx], cols[idx], counts[idx])
            optimizer.zero_grad()
            loss.backward()
            optimizer.step()
            loss_value = loss.item()
            step += 1
            if step % log_every == 0:
                history.append({"step": step, "loss": loss_value, "lr": lr})
                print(f"step {step} loss {loss_value:.4f} lr {lr:.6f}")
    if step > 0 and (not history or history[-1]["step"] != step):
        history.append({"step": step, "loss": loss_value, "lr": lr})
    return history
