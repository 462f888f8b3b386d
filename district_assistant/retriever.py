"""
district_assistant/retriever.py

Lookups over the corpus: narrowing by metadata, keyword scoring for the
fallback path, and the pieces the dataset overview answer is composed of.

Lookups take the document list explicitly and never modify it.
"""

from __future__ import annotations

import json
import re
from typing import List, Optional, Sequence

from district_assistant.data_dictionary import (
    BREAKDOWN_NAMES,
    DATASET_OVERVIEWS,
    DATASETS,
    GENERIC_OVERVIEW,
    NOT_FOUND_NAMES,
)
from district_assistant.documents import Document

MAX_ANSWER_CHARS = 500
FOUR_DIGIT_YEAR = re.compile(r"^\d{4}$")


def dataset_docs(documents: Sequence[Document], dataset: str) -> List[Document]:
    return [d for d in documents if d.dataset == dataset]


def _label_matches(candidates: Sequence[Document], label: str) -> List[Document]:
    """Exact (case-insensitive) label matches, else documents whose id ends in ":<label>"."""
    wanted = str(label).lower()
    exact = [d for d in candidates if str(d.label or "").lower() == wanted]
    if exact:
        return exact
    return [d for d in candidates if d.id.lower().endswith(f":{wanted}")]


def find_best_doc(
    documents: Sequence[Document],
    dataset: Optional[str],
    breakdown: Optional[str],
    label: Optional[str],
) -> Optional[Document]:
    """
    Narrow by dataset, then breakdown, then label.

    With a label, only an exact (case-insensitive) label match or an id
    ending in ":<label>" counts. When the dataset is unknown the label must
    pick out a single document. Without a label, a document is returned
    only when a single candidate is left; several candidates are never
    guessed.
    """
    candidates = list(documents)
    if dataset:
        candidates = [d for d in candidates if d.dataset == dataset]
    if breakdown:
        candidates = [d for d in candidates if d.breakdown == breakdown]

    if label:
        matches = _label_matches(candidates, label)
        if not matches or (dataset is None and len(matches) > 1):
            return None
        return matches[0]

    if len(candidates) == 1:
        return candidates[0]
    return None


def label_datasets(documents: Sequence[Document], breakdown: Optional[str], label: str) -> List[str]:
    """Datasets, in corpus order, holding a document for this breakdown and label."""
    candidates = [d for d in documents if not breakdown or d.breakdown == breakdown]
    found = []
    for doc in _label_matches(candidates, label):
        if doc.dataset and doc.dataset not in found:
            found.append(doc.dataset)
    return found


def candidate_labels(documents: Sequence[Document], dataset: str, breakdown: str) -> List[str]:
    return [
        str(d.label)
        for d in documents
        if d.dataset == dataset and d.breakdown == breakdown and d.label is not None
    ]


def not_found_message(dataset: Optional[str], breakdown: Optional[str], label: str) -> str:
    name = NOT_FOUND_NAMES.get(breakdown, breakdown or "item")
    return f'No {dataset or "dataset"} record found for {name} "{label}".'


def keyword_search(documents: Sequence[Document], query: str, k: int = 5) -> List[Document]:
    """
    Rank documents by term overlap with the query.

    +1 per query term found in the text or metadata, +2 when the query names
    the document's dataset, +1 when it names the breakdown. Documents that
    score zero are dropped.
    """
    q = (query or "").lower().strip()
    if not q:
        return []
    terms = q.split()

    scored = []
    for doc in documents:
        hay = f"{doc.text}\n{json.dumps(doc.metadata)}".lower()
        score = sum(1 for term in terms if term in hay)
        if doc.dataset and doc.dataset in q:
            score += 2
        if doc.breakdown and doc.breakdown in q:
            score += 1
        if score > 0:
            scored.append((score, doc))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [doc for _, doc in scored[:k]]


def summarize(doc: Document) -> str:
    if doc.text:
        return doc.text[:MAX_ANSWER_CHARS]
    return "Relevant data found."


# ---------------------------------------------------------------------
# Dataset overview pieces
# ---------------------------------------------------------------------

def dataset_overview(dataset: str) -> str:
    return DATASET_OVERVIEWS.get(dataset, GENERIC_OVERVIEW)


def friendly_breakdown(breakdown: str) -> str:
    return BREAKDOWN_NAMES.get(breakdown, breakdown)


def list_available_breakdowns(documents: Sequence[Document], dataset: str) -> str:
    names = sorted({friendly_breakdown(d.breakdown) for d in dataset_docs(documents, dataset) if d.breakdown})
    if not names:
        return f"No breakdown information available for {dataset}."
    return f"Available in {dataset}: {', '.join(names)}."


def overall_summary(documents: Sequence[Document], dataset: str) -> Optional[str]:
    docs = dataset_docs(documents, dataset)
    for doc in docs:
        if doc.breakdown == "overall":
            return doc.text
    return docs[0].text if docs else None


def years_available_line(documents: Sequence[Document], dataset: str) -> str:
    year_docs = [d for d in dataset_docs(documents, dataset) if d.breakdown == "year"]
    if not year_docs:
        return ""

    labels = [str(d.label) for d in year_docs if d.label]
    if not labels:
        # Single-document breakdowns (staff) list their years in metadata.
        labels = []
        for doc in year_docs:
            for year in doc.metadata.get("years") or []:
                if str(year) not in labels:
                    labels.append(str(year))
    if not labels:
        return ""

    if all(FOUR_DIGIT_YEAR.match(label) for label in labels):
        years = sorted(int(label) for label in labels)
        span = f"{years[0]}–{years[-1]}" if len(years) > 1 else str(years[0])
        return f"Years available: {span}."
    return f"Years available: {', '.join(sorted(labels))}."


def list_all_datasets() -> str:
    return f"Datasets available: {', '.join(DATASETS)}."
