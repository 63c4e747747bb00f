import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

# Neural embedding models: skip-gram and CBOW with negative sampling, and a GloVe-style
# regression on log co-occurrence counts. Each exposes embeddings() as a (V, D) numpy array.


def _init_embedding(emb: nn.Embedding, rng: np.random.Generator, std: float = 0.01) -> None:
    """Fill an embedding table with small normal values drawn from a numpy generator."""
    values = rng.standard_normal(tuple(emb.weight.shape)) * std
    with torch.no_grad():
        emb.weight.copy_(torch.from_numpy(values).to(emb.weight.dtype))


def negative_sampling_loss(
    hidden: torch.Tensor, u_pos: torch.Tensor, u_neg: torch.Tensor
) -> torch.Tensor:
    """Mean of -log(sigmoid(u_pos . h)) - sum_k log(sigmoid(-u_neg_k . h)) over the batch.

    Args:
        hidden: Center (or averaged context) vectors, shape (B, D).
        u_pos: Output vectors of the positives, shape (B, D).
        u_neg: Output vectors of the negatives, shape (B, K, D).

    Returns:
        Scalar loss tensor.
    """
    score_pos = torch.sum(u_pos * hidden, dim=1)  # (B,)
    score_neg = torch.bmm(u_neg, hidden.unsqueeze(2)).squeeze(2)  # (B, K)
    loss = -F.logsigmoid(score_pos) - F.logsigmoid(-score_neg).sum(dim=1)
    return loss.mean()


class SkipGramNegSampling(nn.Module):
    """Skip-gram with negative sampling: predict context words from the center word.

    Score for (center, context) is W_out[context] . W_in[center].

    Attributes:
        W_in (nn.Embedding): Input/center embeddings, shape (V, D).
        W_out (nn.Embedding): Output/context embeddings, shape (V, D).
        V (int): Vocabulary size.
        D (int): Embedding dimension.
    """

    def __init__(self, vocab_size: int, dim: int, seed: int = 42):
        """Initialize embedding tables with small random values.

        Args:
            vocab_size: Vocabulary size V.
            dim: Embedding dimension D.
            seed: Random seed for reproducibility. Defaults to 42.
        """
        super().__init__()
        rng = np.random.default_rng(seed)
        self.W_in = nn.Embedding(vocab_size, dim)
        self.W_out = nn.Embedding(vocab_size, dim)
        # Small init so sigmoid isn't saturated
        _init_embedding(self.W_in, rng)
        _init_embedding(self.W_out, rng)
        self.V = vocab_size
        self.D = dim

    def forward(
        self,
        center: torch.Tensor,
        context_pos: torch.Tensor,
        context_neg: torch.Tensor,
    ) -> torch.Tensor:
        """Mean negative-sampling loss for a batch.

        Args:
            center: Center word ids, shape (B,).
            context_pos: Positive context word ids, shape (B,).
            context_neg: Negative context word ids, shape (B, K).

        Returns:
            Scalar loss tensor.
        """
        return negative_sampling_loss(
            self.W_in(center), self.W_out(context_pos), self.W_out(context_neg)
        )

    def embeddings(self) -> np.ndarray:
        return self.W_in.weight.detach().cpu().numpy().astype(np.float64)


class CBOWNegSampling(nn.Module):
    """Continuous bag-of-words with negative sampling: predict the center word from context.

    The hidden vector is the mean of the input vectors of the (masked) context slots.

    Attributes:
        W_in (nn.Embedding): Context word embeddings, shape (V, D).
        W_out (nn.Embedding): Target word embeddings, shape (V, D).
        V (int): Vocabulary size.
        D (int): Embedding dimension.
    """

    def __init__(self, vocab_size: int, dim: int, seed: int = 42):
        super().__init__()
        rng = np.random.default_rng(seed)
        self.W_in = nn.Embedding(vocab_size, dim)
        self.W_out = nn.Embedding(vocab_size, dim)
        _init_embedding(self.W_in, rng)
        _init_embedding(self.W_out, rng)
        self.V = vocab_size
        self.D = dim

    def forward(
        self,
        context: torch.Tensor,
        mask: torch.Tensor,
        target: torch.Tensor,
        negatives: torch.Tensor,
    ) -> torch.Tensor:
        """Mean negative-sampling loss for a batch of context windows.

        Args:
            context: Context word ids, shape (B, 2W), padded.
            mask: 1.0 for real context slots, 0.0 for padding, shape (B, 2W).
            target: Center word ids, shape (B,).
            negatives: Negative word ids, shape (B, K).

        Returns:
            Scalar loss tensor.
        """
        mask = mask.to(self.W_in.weight.dtype)
        summed = (self.W_in(context) * mask.unsqueeze(2)).sum(dim=1)  # (B, D)
        hidden = summed / mask.sum(dim=1, keepdim=True).clamp(min=1.0)
        return negative_sampling_loss(hidden, self.W_out(target), self.W_out(negatives))

    def embeddings(self) -> np.ndarray:
        return self.W_in.weight.detach().cpu().numpy().astype(np.float64)


class CooccurrenceRegression(nn.Module):
    """GloVe-style model: w_i . c_j + b_i + b~_j regresses log X_ij, weighted by f(X_ij).

    f(x) = min(1, (x / x_max)^alpha) damps rare pairs and caps frequent ones.

    Attributes:
        W (nn.Embedding): Word vectors, shape (V, D).
        C (nn.Embedding): Context vectors, shape (V, D).
        b (nn.Embedding): Word biases, shape (V, 1).
        b_ctx (nn.Embedding): Context biases, shape (V, 1).
    """

    def __init__(
        self,
        vocab_size: int,
        dim: int,
        seed: int = 42,
        x_max: float = 100.0,
        alpha: float = 0.75,
    ):
        super().__init__()
        rng = np.random.default_rng(seed)
        self.W = nn.Embedding(vocab_size, dim)
        self.C = nn.Embedding(vocab_size, dim)
        self.b = nn.Embedding(vocab_size, 1)
        self.b_ctx = nn.Embedding(vocab_size, 1)
        # GloVe reference init: uniform in [-0.5/D, 0.5/D]; biases start at zero
        bound = 0.5 / dim
        with torch.no_grad():
            self.W.weight.copy_(torch.from_numpy(rng.uniform(-bound, bound, (vocab_size, dim))))
            self.C.weight.copy_(torch.from_numpy(rng.uniform(-bound, bound, (vocab_size, dim))))
            self.b.weight.zero_()
            self.b_ctx.weight.zero_()
        self.V = vocab_size
        self.D = dim
        self.x_max = x_max
        self.alpha = alpha

    def weighting(self, counts: torch.Tensor) -> torch.Tensor:
        return torch.clamp((counts / self.x_max) ** self.alpha, max=1.0)

    def forward(self, rows: torch.Tensor, cols: torch.Tensor, counts: torch.Tensor) -> torch.Tensor:
        """Mean weighted squared error over a batch of nonzero cells.

        Args:
            rows: Word ids, shape (B,).
            cols: Context ids, shape (B,).
            counts: Co-occurrence values X_ij > 0, shape (B,).

        Returns:
            Scalar loss tensor.
        """
        counts = counts.to(self.W.weight.dtype)
        pred = (self.W(rows) * self.C(cols)).sum(dim=1)
        pred = pred + self.b(rows).squeeze(1) + self.b_ctx(cols).squeeze(1)
        err = pred - torch.log(counts)
        return (self.weighting(counts) * err**2).mean()

    def embeddings(self) -> np.ndarray:
        """Word plus context vectors (W + C), the usual GloVe output."""
        return (self.W.weight + self.C.weight).detach().cpu().numpy().astype(np.float64)
