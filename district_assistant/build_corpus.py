"""
district_assistant/build_corpus.py

Builds the assistant's document corpus from the aggregate files and caches
it for the chat app:
      artifacts/rag_documents.json   (the corpus)
      artifacts/corpus_summary.json  (documents per dataset/breakdown)

Run (default)
-------------
python -m district_assistant.build_corpus

Run (custom)
------------
python -m district_assistant.build_corpus --data-dir data --artifact-dir artifacts --rebuild
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from district_assistant.documents import DATA_DIR, Document, build_documents, load_aggregates
from district_assistant.store import ARTIFACT_DIR, DocumentStore


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the district assistant corpus.")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=str(DATA_DIR),
        help="Directory holding the six aggregate JSON files.",
    )
    parser.add_argument(
        "--artifact-dir",
        type=str,
        default=str(ARTIFACT_DIR),
        help="Directory where the corpus is cached.",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Rebuild even if a cached corpus exists.",
    )
    return parser.parse_args(argv)


def summarize_corpus(documents: List[Document]) -> pd.DataFrame:
    """
    Count documents per dataset and breakdown.
    Documents without a dataset (the fallback document) are grouped under "-".
    """
    frame = pd.DataFrame(
        [
            {"dataset": doc.dataset or "-", "breakdown": doc.breakdown or "-"}
            for doc in documents
        ],
        columns=["dataset", "breakdown"],
    )
    return (
        frame.groupby(["dataset", "breakdown"], sort=True)
        .size()
        .reset_index(name="documents")
    )


def build_summary(documents: List[Document], data_dir: Path) -> Dict:
    table = summarize_corpus(documents)
    return {
        "data_dir": str(data_dir),
        "n_documents": int(len(documents)),
        "datasets": sorted(table["dataset"].unique().tolist()),
        "by_breakdown": [
            {"dataset": row.dataset, "breakdown": row.breakdown, "documents": int(row.documents)}
            for row in table.itertuples(index=False)
        ],
    }


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    data_dir = Path(args.data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(
            f"Aggregate data not found at {data_dir}. "
            f"Generate it first: python -m district_assistant.make_synthetic_data"
        )

    store = DocumentStore(Path(args.artifact_dir))

    def builder() -> List[Document]:
        return build_documents(load_aggregates(data_dir))

    if args.rebuild:
        documents = store.rebuild(builder)
    else:
        documents = store.load_or_build(builder)

    summary = build_summary(documents, data_dir)
    store.root.mkdir(parents=True, exist_ok=True)
    summary_path = store.root / "corpus_summary.json"
    summary_path.write_text(json.dumps(summary, indent=2))

    print("Corpus ready.")
    print(f"Saved corpus to: {store.path.resolve()}")
    print(summarize_corpus(documents).to_string(index=False))
    print(f"Documents={summary['n_documents']} | Datasets={', '.join(summary['datasets'])}")


if __name__ == "__main__":
    main()
