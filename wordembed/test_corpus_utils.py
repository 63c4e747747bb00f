import os
import zipfile

import numpy as np
import pytest

from wordembed import corpus_utils, download
from wordembed.corpus_utils import (
    Document,
    build_corpus_from_documents,
    build_corpus_from_file,
    build_corpus_from_text,
    build_vocab,
    load_hf_documents,
    read_documents,
    tokenize_simple,
)
from wordembed.download import cache_path_for, download_text8, fetch_url

# Unit tests: tokenization, vocabulary, document tables (CSV, URL, HuggingFace), caching.


def test_tokenize_simple():
    assert tokenize_simple("Hello, World! It's 42x") == ["hello", "world", "it", "s", "42x"]
    assert tokenize_simple("  ...  ") == []


def test_build_vocab_orders_by_count_then_first_seen():
    id_to_word, word2id, counts = build_vocab([["b", "a", "b"], ["c", "a", "d"]])
    assert id_to_word == ["b", "a", "c", "d"]
    assert word2id["c"] == 2
    np.testing.assert_array_equal(counts, [2, 2, 1, 1])


def test_build_vocab_min_count_and_max_vocab():
    id_to_word, _, _ = build_vocab([["x", "y", "y", "z", "z", "z"]], min_count=2, max_vocab=1)
    assert id_to_word == ["z"]


def test_out_of_vocabulary_tokens_are_dropped():
    corpus, id_to_word, word2id = build_corpus_from_text("a b a c a b", min_count=2)
    assert id_to_word == ["a", "b"]
    np.testing.assert_array_equal(corpus.word_ids, [0, 1, 0, 0, 1])
    assert corpus.n_tokens == 5
    assert "c" not in word2id


def test_documents_keep_their_boundaries():
    docs = [Document("d1", "red fish"), Document("d2", "blue fish")]
    corpus, id_to_word, _ = build_corpus_from_documents(docs)
    assert id_to_word == ["fish", "red", "blue"]
    np.testing.assert_array_equal(corpus.doc_ids, [0, 0, 1, 1])
    assert corpus.n_docs == 2
    pairs = list(corpus.iter_skipgram_pairs(5, subsample=False))
    assert (0, 2) in pairs and (1, 2) not in pairs


def test_empty_input_raises():
    with pytest.raises(ValueError):
        build_corpus_from_text("!!! ???")
    with pytest.raises(ValueError):
        build_corpus_from_text("one two three", min_count=2)


def test_build_corpus_from_file_one_document_per_line(tmp_path):
    path = tmp_path / "corpus.txt"
    path.write_text("the cat\n\nthe dog\n")
    corpus, id_to_word, _ = build_corpus_from_file(str(path), min_count=1)
    assert corpus.n_docs == 2
    assert id_to_word[0] == "the"


def _write_csv(path, rows):
    lines = ["id,text"] + [f'{i},"{t}"' for i, t in rows]
    path.write_text("\n".join(lines) + "\n")


def test_read_documents_csv(tmp_path):
    path = tmp_path / "docs.csv"
    _write_csv(path, [("a1", "Word embeddings, dense vectors"), ("a2", ""), ("", "no id here")])
    docs = read_documents(str(path))
    assert docs == [Document("a1", "Word embeddings, dense vectors"), Document("2", "no id here")]
    assert len(read_documents(str(path), max_docs=1)) == 1


def test_read_documents_custom_and_missing_columns(tmp_path):
    path = tmp_path / "docs.csv"
    path.write_text("doc,body\n7,hello there\n")
    assert read_documents(str(path), id_field="doc", text_field="body") == [
        Document("7", "hello there")
    ]
    with pytest.raises(ValueError):
        read_documents(str(path))


def test_read_documents_from_url_uses_download(tmp_path, monkeypatch):
    path = tmp_path / "remote.csv"
    _write_csv(path, [("1", "from the web")])
    seen = []

    def fake_fetch(url):
        seen.append(url)
        return str(path)

    monkeypatch.setattr(corpus_utils, "fetch_url", fake_fetch)
    docs = read_documents("https://example.com/docs.csv")
    assert seen == ["https://example.com/docs.csv"]
    assert docs == [Document("1", "from the web")]


def test_load_hf_documents(monkeypatch):
    rows = [{"text": " = Heading = "}, {"text": ""}, {"text": "Body line"}, {"text": "More"}]
    calls = []

    def fake_load_dataset(name, config, split, cache_dir):
        calls.append((name, config, split))
        return rows

    monkeypatch.setattr(corpus_utils, "load_dataset", fake_load_dataset)
    docs = load_hf_documents("Salesforce/wikitext", "wikitext-2-raw-v1", max_examples=3)
    assert calls == [("Salesforce/wikitext", "wikitext-2-raw-v1", "train")]
    assert docs == [Document("2", "Body line")]
    # no cap by default
    assert len(load_hf_documents("Salesforce/wikitext")) == 2


def test_load_hf_documents_without_datasets(monkeypatch):
    monkeypatch.setattr(corpus_utils, "load_dataset", None)
    with pytest.raises(ImportError):
        load_hf_documents("anything")


def test_cache_path_for_is_stable_and_unzipped(tmp_path):
    p1 = cache_path_for("http://example.com/data/text8.zip", str(tmp_path))
    p2 = cache_path_for("http://example.com/data/text8.zip", str(tmp_path))
    p3 = cache_path_for("http://example.org/data/text8.zip", str(tmp_path))
    assert p1 == p2 != p3
    assert p1.endswith("-text8")
    assert os.path.dirname(p1) == str(tmp_path)


def test_fetch_url_reuses_existing_file(tmp_path):
    target = tmp_path / "cached.csv"
    target.write_text("id,text\n")
    # .invalid never resolves, so this only passes if no request is made
    assert fetch_url("http://example.invalid/cached.csv", str(target)) == str(target)


def test_read_documents_with_byte_order_mark(tmp_path):
    path = tmp_path / "excel.csv"
    path.write_bytes(b"\xef\xbb\xbfid,text\n1,hello world\n")
    assert read_documents(str(path)) == [Document("1", "hello world")]


def test_read_documents_long_field(tmp_path):
    path = tmp_path / "long.csv"
    long_text = ("word " * 30000).strip()
    _write_csv(path, [("big", long_text)])
    (doc,) = read_documents(str(path))
    assert doc.doc_id == "big"
    assert len(doc.text) == len(long_text)


def test_fetch_url_unzips_archive(tmp_path):
    archive = tmp_path / "corpus.zip"
    with zipfile.ZipFile(archive, "w") as z:
        z.writestr("corpus.txt", "anarchism originated as a term")
    out = fetch_url(archive.as_uri(), str(tmp_path / "out" / "corpus.txt"), max_chars=9)
    with open(out) as f:
        assert f.read() == "anarchism"


def test_fetch_url_empty_archive_raises(tmp_path):
    archive = tmp_path / "empty.zip"
    with zipfile.ZipFile(archive, "w"):
        pass
    with pytest.raises(RuntimeError):
        fetch_url(archive.as_uri(), str(tmp_path / "never.txt"))
    assert not os.path.exists(tmp_path / "never.txt")


def test_download_text8_writes_extracted_text(tmp_path, monkeypatch):
    archive = tmp_path / "text8.zip"
    with zipfile.ZipFile(archive, "w") as z:
        z.writestr("text8", " anarchism originated as a term of abuse")
    monkeypatch.setattr(download, "TEXT8_URL", archive.as_uri())
    out = download_text8(str(tmp_path / "text8.txt"))
    with open(out) as f:
        assert f.read() == " anarchism originated as a term of abuse"


def test_download_cli_flags(tmp_path, capsys):
    src = tmp_path / "plain.txt"
    src.write_text("some remote text")
    target = tmp_path / "copy.txt"
    download.main([src.as_uri(), "--out", str(target), "--max-chars", "4"])
    assert target.read_text() == "some"
    assert "Wrote" in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
