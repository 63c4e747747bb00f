import argparse
import os
from typing import List, Optional

from wordembed.cooccurrence import cooccurrence_matrix, pair_table
from wordembed.corpus_utils import (
    build_corpus_from_documents,
    build_corpus_from_file,
    build_corpus_from_text,
    load_hf_documents,
    read_documents,
)
from wordembed.eval import print_nearest, run_analogy_eval
from wordembed.export import save_word2vec_format
from wordembed.pipeline import DEMO_TEXT, METHODS, build_embeddings
from wordembed.visualize import plot_embeddings, plot_loss_curve

# Entry point: learn embeddings from a document table, file or string, then inspect them.
# Usage: python -m wordembed.run [--method svd|skipgram|cbow|glove] [--csv path-or-url]


def load_corpus(args: argparse.Namespace):
    """Build (corpus, id_to_word, word2id) from whichever source flag was given."""
    if args.csv:
        docs = read_documents(
            args.csv, id_field=args.id_field, text_field=args.text_field, max_docs=args.max_docs
        )
        print(f"Loaded {len(docs)} documents from {args.csv}")
        return build_corpus_from_documents(
            docs, min_count=args.min_count, max_vocab=args.max_vocab, subsample_t=args.subsample_t
        )
    if args.hf_dataset:
        docs = load_hf_documents(
            args.hf_dataset,
            config=args.hf_config,
            text_field=args.text_field,
            max_examples=args.max_docs,
        )
        print(f"Loaded {len(docs)} documents from {args.hf_dataset}")
        return build_corpus_from_documents(
            docs, min_count=args.min_count, max_vocab=args.max_vocab, subsample_t=args.subsample_t
        )
    if args.file:
        return build_corpus_from_file(
            args.file, min_count=args.min_count, max_vocab=args.max_vocab, subsample_t=args.subsample_t
        )
    return build_corpus_from_text(
        args.text or DEMO_TEXT,
        min_count=args.min_count,
        max_vocab=args.max_vocab,
        subsample_t=args.subsample_t,
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Learn and inspect word embeddings")
    src = ap.add_mutually_exclusive_group()
    src.add_argument("--text", type=str, default=None, help="Train on this string")
    src.add_argument("--file", type=str, default=None, help="Train on file (one document per line)")
    src.add_argument("--csv", type=str, default=None, help="CSV document table (path or URL)")
    src.add_argument("--hf-dataset", type=str, default=None, help="HuggingFace dataset name")
    ap.add_argument("--hf-config", type=str, default=None)
    ap.add_argument("--id-field", type=str, default="id")
    ap.add_argument("--text-field", type=str, default="text")
    ap.add_argument("--max-docs", type=int, default=None)
    ap.add_argument("--method", choices=METHODS, default="svd")
    ap.add_argument(
        "--epochs",
        type=int,
        default=10,
        help="For large corpora (e.g. text8) use 1-2 for a quicker run",
    )
    ap.add_argument("--dim", type=int, default=50)
    ap.add_argument("--lr", type=float, default=None)
    ap.add_argument("--batch-size", type=int, default=32)
    ap.add_argument("--window", type=int, default=2)
    ap.add_argument("--negatives", type=int, default=5)
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--no-adagrad", action="store_true", help="Use vanilla SGD")
    ap.add_argument(
        "--no-lr-decay", action="store_true", help="Disable linear LR decay (Mikolov-style)"
    )
    ap.add_argument("--no-subsample", action="store_true", help="Keep every token")
    ap.add_argument("--dynamic-window", action="store_true", help="Randomly shrink windows")
    ap.add_argument("--subsample-t", type=float, default=1e-3)
    ap.add_argument("--min-count", type=int, default=1)
    ap.add_argument("--max-vocab", type=int, default=None)
    ap.add_argument("--eig-power", type=float, default=0.5)
    ap.add_argument("--cds", type=float, default=0.75)
    ap.add_argument("--weighting", choices=["uniform", "harmonic"], default="uniform")
    ap.add_argument("--top-pairs", type=int, default=10, help="Co-occurrence pairs to print")
    ap.add_argument("--query", nargs="*", default=None, help="Words to show neighbours for")
    ap.add_argument("--save", type=str, default=None, help="Write vectors (word2vec text format)")
    ap.add_argument("--plot-dir", type=str, default=None, help="Write loss/PCA figures here")
    return ap


def main(argv: Optional[List[str]] = None):
    """Learn embeddings with the chosen method; print neighbours and analogy evaluation."""
    args = build_parser().parse_args(argv)

    corpus, id_to_word, word2id = load_corpus(args)
    print(f"Vocab size {len(id_to_word)}, corpus tokens {corpus.n_tokens}, documents {corpus.n_docs}")

    if args.top_pairs > 0 or args.method in ("svd", "glove"):
        C = cooccurrence_matrix(corpus, window_size=args.window, weighting=args.weighting)
        if C.nnz == 0:
            if args.method in ("svd", "glove"):
                raise SystemExit(
                    "No co-occurring pairs (every document has a single token); "
                    f"--method {args.method} needs at least one"
                )
            print("No co-occurring pairs (every document has a single token)")
        elif args.top_pairs > 0:
            print("Top co-occurring pairs (word, context, count, p, pmi):")
            for w, c, count, p, pmi in pair_table(C, id_to_word, top=args.top_pairs, cds=args.cds):
                print(f"  {w:>12s} {c:<12s} {count:8.1f} {p:.5f} {pmi:+.3f}")

    vectors, history = build_embeddings(
        args.method,
        corpus,
        dim=args.dim,
        window_size=args.window,
        epochs=args.epochs,
        lr=args.lr,
        batch_size=min(args.batch_size, max(1, corpus.n_tokens // 10)),
        num_negatives=args.negatives,
        use_adagrad=not args.no_adagrad,
        use_lr_decay=not args.no_lr_decay,
        subsample=not args.no_subsample,
        dynamic_window=args.dynamic_window,
        eig_power=args.eig_power,
        cds=args.cds,
        weighting=args.weighting,
        seed=args.seed,
        log_every=50,
    )
    print(f"Embeddings: {vectors.shape[0]} x {vectors.shape[1]} ({args.method})")

    print_nearest(vectors, word2id, id_to_word, k=5, query_words=args.query)
    print("Analogy (a - b + c = ?):")
    run_analogy_eval(vectors, word2id, id_to_word)

    if args.save:
        save_word2vec_format(args.save, vectors, id_to_word)
        print(f"Saved vectors to {args.save}")
    if args.plot_dir:
        if history:
            loss_path = plot_loss_curve(history, os.path.join(args.plot_dir, "loss_curve.png"))
            print(f"Saved {loss_path}")
        emb_path = plot_embeddings(
            vectors, id_to_word, os.path.join(args.plot_dir, f"embeddings_pca_{args.method}.png")
        )
        print(f"Saved {emb_path}")
    return vectors, id_to_word, word2id


if __name__ == "__main__":
    main()
