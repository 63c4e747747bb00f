from wordembed.cooccurrence import cooccurrence_matrix, pair_table, pmi_matrix
from wordembed.corpus_utils import Document, build_corpus_from_documents, read_documents
from wordembed.data import Corpus, cbow_batches, skipgram_batches
from wordembed.model import CBOWNegSampling, CooccurrenceRegression, SkipGramNegSampling
from wordembed.pipeline import build_embeddings
from wordembed.svd import svd_embeddings
from wordembed.train import train, train_cooccurrence

# Word embeddings four ways: PPMI + SVD, skip-gram, CBOW and a GloVe-style co-occurrence model.

__all__ = [
    "CBOWNegSampling",
    "CooccurrenceRegression",
    "Corpus",
    "Document",
    "SkipGramNegSampling",
    "build_corpus_from_documents",
    "build_embeddings",
    "cbow_batches",
    "cooccurrence_matrix",
    "pair_table",
    "pmi_matrix",
    "read_documents",
    "skipgram_batches",
    "svd_embeddings",
    "train",
    "train_cooccurrence",
]
