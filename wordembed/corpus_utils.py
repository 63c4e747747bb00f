import csv
import re
import sys
from collections import Counter
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from wordembed.data import Corpus
from wordembed.download import fetch_url

try:
    from datasets import load_dataset
except ImportError:
    load_dataset = None

# Document table -> tokens -> vocabulary -> Corpus. Documents come from a CSV (path or URL),
# a HuggingFace dataset, or raw text. Out-of-vocabulary tokens are dropped from the stream.


class Document(NamedTuple):
    """One row of the document table."""

    doc_id: str
    text: str


def _raise_csv_field_limit() -> None:
    """Lift csv's 128 KB per-field cap to the largest value the platform accepts."""
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return
        except OverflowError:
            limit //= 10


def tokenize_simple(text: str) -> List[str]:
    """Lowercase and split on non-alphanumeric; keep only letter/digit sequences.

    Args:
        text: Raw input string.

    Returns:
        List of token strings.
    """
    return re.findall(r"[a-z0-9]+", text.lower())


def read_documents(
    source: str,
    id_field: str = "id",
    text_field: str = "text",
    max_docs: Optional[int] = None,
) -> List[Document]:
    """Read a CSV document table from a local path or an http(s) URL.

    Remote files are downloaded once and cached (see download.fetch_url). Rows with empty
    text are skipped; an empty id falls back to the row number.

    Args:
        source: Path or URL of the CSV file.
        id_field: Column holding the document identifier. Defaults to "id".
        text_field: Column holding the document text. Defaults to "text".
        max_docs: Maximum number of documents to return. Defaults to None (all).

    Returns:
        List of Document records in file order.

    Raises:
        ValueError: If the id or text column is missing.
    """
    path = fetch_url(source) if source.startswith(("http://", "https://")) else source
    docs = []
    _raise_csv_field_limit()
    # utf-8-sig: a leading BOM must not become part of the first header
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        fields = reader.fieldnames or []
        for name in (id_field, text_field):
            if name not in fields:
                raise ValueError(f"Column '{name}' not in {source} (columns: {fields})")
        for row_num, row in enumerate(reader):
            if max_docs is not None and len(docs) >= max_docs:
                break
            text = (row.get(text_field) or "").strip()
            if not text:
                continue
            doc_id = (row.get(id_field) or "").strip() or str(row_num)
            docs.append(Document(doc_id, text))
    return docs


def load_hf_documents(
    name: str,
    config: Optional[str] = None,
    split: str = "train",
    text_field: str = "text",
    max_examples: Optional[int] = None,
    cache_dir: Optional[str] = None,
) -> List[Document]:
    """Load a HuggingFace dataset as a document table (non-empty rows, "=" headers skipped).

    Args:
        name: Dataset path, e.g. "Salesforce/wikitext".
        config: Dataset config, e.g. "wikitext-2-raw-v1". Defaults to None.
        split: Dataset split. Defaults to "train".
        text_field: Field holding the text. Defaults to "text".
        max_examples: Maximum number of rows to read. Defaults to None (all).
        cache_dir: HuggingFace cache directory. Defaults to None.

    Returns:
        List of Document records; doc_id is the row index in the split.

    Raises:
        ImportError: If datasets is not installed.
    """
    if load_dataset is None:
        raise ImportError("pip install datasets")
    dataset = load_dataset(name, config, split=split, cache_dir=cache_dir)
    docs = []
    for i, ex in enumerate(dataset):
        if max_examples and i >= max_examples:
            break
        t = (ex.get(text_field) or "").strip()
        if t and not t.startswith("="):
            docs.append(Document(str(i), t))
    return docs


def build_vocab(
    token_lists: Sequence[Sequence[str]],
    min_count: int = 1,
    max_vocab: Optional[int] = None,
) -> Tuple[List[str], Dict[str, int], np.ndarray]:
    """Count tokens and keep those with count >= min_count, most frequent first.

    Ties keep first-occurrence order (Counter.most_common is stable).

    Args:
        token_lists: Token sequences (one per document).
        min_count: Minimum count to include a token. Defaults to 1.
        max_vocab: Maximum vocabulary size (by frequency). Defaults to None (no cap).

    Returns:
        Tuple (id_to_word, word2id, counts); counts has shape (V,).
    """
    cnt: Counter = Counter()
    for tokens in token_lists:
        cnt.update(tokens)
    kept = [w for w, c in cnt.most_common() if c >= min_count]
    if max_vocab is not None:
        kept = kept[:max_vocab]
    word2id = {w: i for i, w in enumerate(kept)}
    counts = np.array([cnt[w] for w in kept], dtype=np.float64)
    return kept, word2id, counts


def build_corpus_from_tokens(
    token_lists: Sequence[Sequence[str]],
    min_count: int = 1,
    max_vocab: Optional[int] = None,
    subsample_t: float = 1e-5,
) -> Tuple[Corpus, List[str], Dict[str, int]]:
    """Build a Corpus from token sequences, one sequence per document.

    Args:
        token_lists: Token sequences (one per document).
        min_count: Minimum token count for vocabulary. Defaults to 1.
        max_vocab: Maximum vocabulary size. Defaults to None.
        subsample_t: Subsampling threshold for Corpus. Defaults to 1e-5.

    Returns:
        Tuple of (corpus, id_to_word, word2id).

    Raises:
        ValueError: If there are no tokens, or none survive min_count.
    """
    if not any(len(t) for t in token_lists):
        raise ValueError("No tokens in documents")
    id_to_word, word2id, counts = build_vocab(token_lists, min_count, max_vocab)
    if not id_to_word:
        raise ValueError(f"No token occurs at least min_count={min_count} times")
    word_ids: List[int] = []
    doc_ids: List[int] = []
    for d, tokens in enumerate(token_lists):
        ids = [word2id[w] for w in tokens if w in word2id]
        word_ids.extend(ids)
        doc_ids.extend([d] * len(ids))
    corpus = Corpus(
        np.array(word_ids, dtype=np.int64),
        counts,
        subsample_t=subsample_t,
        doc_ids=np.array(doc_ids, dtype=np.int64),
    )
    return corpus, id_to_word, word2id


def build_corpus_from_documents(
    docs: Sequence[Document],
    min_count: int = 1,
    max_vocab: Optional[int] = None,
    subsample_t: float = 1e-5,
) -> Tuple[Corpus, List[str], Dict[str, int]]:
    """Tokenize each document and build a Corpus whose windows stay within documents."""
    return build_corpus_from_tokens(
        [tokenize_simple(d.text) for d in docs],
        min_count=min_count,
        max_vocab=max_vocab,
        subsample_t=subsample_t,
    )


def build_corpus_from_text(
    text: str,
    min_count: int = 2,
    max_vocab: Optional[int] = None,
    subsample_t: float = 1e-5,
) -> Tuple[Corpus, List[str], Dict[str, int]]:
    """Tokenize text (treated as a single document), build vocabulary, and return a Corpus.

    Args:
        text: Raw text (any format; tokenized by regex).
        min_count: Minimum token count to include in vocabulary. Defaults to 2.
        max_vocab: Maximum vocabulary size (by frequency). Defaults to None (no cap).
        subsample_t: Subsampling threshold for Corpus. Defaults to 1e-5.

    Returns:
        Tuple of (corpus, id_to_word, word2id).

    Raises:
        ValueError: If text yields no tokens.
    """
    return build_corpus_from_tokens(
        [tokenize_simple(text)],
        min_count=min_count,
        max_vocab=max_vocab,
        subsample_t=subsample_t,
    )


def build_corpus_from_file(
    path: str,
    min_count: int = 2,
    max_vocab: Optional[int] = None,
    subsample_t: float = 1e-5,
) -> Tuple[Corpus, List[str], Dict[str, int]]:
    """Build a Corpus from a text file, one document per non-blank line."""
    with open(path, encoding="utf-8") as f:
        lines = [line for line in f if line.strip()]
    return build_corpus_from_tokens(
        [tokenize_simple(line) for line in lines],
        min_count=min_count,
        max_vocab=max_vocab,
        subsample_t=subsample_t,
    )
