# tests/test_store.py
"""Document store: persistence, soft failures, build-on-demand."""

import json

from district_assistant.documents import FALLBACK_ID, Document, fallback_document
from district_assistant.store import DocumentStore


def test_save_then_load(tmp_path, documents):
    store = DocumentStore(tmp_path)
    store.save(documents)

    assert store.path == tmp_path / "rag_documents.json"
    assert DocumentStore(tmp_path).load() == documents


def test_save_overwrites_previous_corpus(tmp_path, documents):
    store = DocumentStore(tmp_path)
    store.save(documents)
    store.save(documents[:2])
    assert DocumentStore(tmp_path).load() == documents[:2]


def test_load_missing_corpus_is_empty(tmp_path):
    assert DocumentStore(tmp_path).load() == []


def test_load_corrupt_corpus_is_empty(tmp_path, caplog):
    (tmp_path / "rag_documents.json").write_text("[{broken")
    assert DocumentStore(tmp_path).load() == []
    assert "Failed to load documents" in caplog.text


def test_load_non_list_corpus_is_empty(tmp_path):
    (tmp_path / "rag_documents.json").write_text(json.dumps({"id": "x"}))
    assert DocumentStore(tmp_path).load() == []


def test_missing_fields_are_treated_as_absent(tmp_path):
    (tmp_path / "rag_documents.json").write_text(json.dumps([{"id": "x"}, "junk"]))
    docs = DocumentStore(tmp_path).load()
    assert docs == [Document(id="x", text="", metadata={})]
    assert docs[0].dataset is None


def test_save_failure_is_logged_not_raised(tmp_path, documents, caplog):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    store = DocumentStore(blocker)

    store.save(documents)

    assert "Failed to persist documents" in caplog.text
    assert store.documents == documents


def test_load_or_build_builds_once(tmp_path, documents):
    calls = []

    def builder():
        calls.append(1)
        return documents

    first = DocumentStore(tmp_path).load_or_build(builder)
    second = DocumentStore(tmp_path).load_or_build(builder)

    assert first == second == documents
    assert len(calls) == 1


def test_rebuild_replaces_cache(tmp_path, documents):
    store = DocumentStore(tmp_path)
    store.save(documents)

    rebuilt = store.rebuild(lambda: documents[:1])

    assert rebuilt == documents[:1]
    assert store.documents == documents[:1]
    assert DocumentStore(tmp_path).load() == documents[:1]


def test_fallback_corpus_is_not_cached(tmp_path, documents):
    store = DocumentStore(tmp_path)
    built = store.load_or_build(lambda: [fallback_document()])

    assert [d.id for d in built] == [FALLBACK_ID]
    assert not store.path.exists()
    assert DocumentStore(tmp_path).load_or_build(lambda: documents) == documents


def test_cached_fallback_corpus_is_rebuilt(tmp_path, documents):
    DocumentStore(tmp_path).save([fallback_document()])

    rebuilt = DocumentStore(tmp_path).load_or_build(lambda: documents)

    assert rebuilt == documents
    assert DocumentStore(tmp_path).load() == documents
