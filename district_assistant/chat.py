"""
district_assistant/chat.py

The conversational entry point. One `DistrictChat` per conversation holds
the session (last dataset/breakdown/label) and a bounded message history;
the corpus itself comes from a shared `DocumentStore`.

Each message is resolved in a fixed order:
  1) meta questions (site goal, developer, mentor, list of datasets)
  2) dataset overview
  3) year-by-year trend
  4) targeted lookup by dataset/breakdown/label
  5) "no record found" when a named label does not exist
  6) keyword fallback
"""

from __future__ import annotations

import logging
import re
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional

from district_assistant import retriever
from district_assistant.data_dictionary import SITE_META
from district_assistant.documents import Document
from district_assistant.query import ParsedQuery, Session, parse_query
from district_assistant.store import DocumentStore

logger = logging.getLogger(__name__)

MEMORY_LIMIT = 20
DEFAULT_TREND_DATASET = "attendance"

CLARIFY_MESSAGE = (
    "Please ask a question about graduation, GPA, demographics, FRP, staff, or attendance."
)
NOTHING_FOUND_MESSAGE = (
    "I could not find relevant data in the knowledge base. "
    "Try asking about graduation, GPA, demographics, FRP, staff, or attendance."
)
ERROR_MESSAGE = "Sorry, I ran into a problem answering that. Please try rephrasing the question."

ALL_DATA_PATTERNS = (
    re.compile(r"(?:what|wat)\s+(?:data|datasets)\s+(?:are|is)\s+(?:available|there)"),
    re.compile(r"(?:what|wat)\s+(?:data|datasets)\s+(?:do you|u)\s+have"),
    re.compile(r"\b(?:list|show|all)\s+(?:data|datasets)\b"),
    re.compile(r"(?:data|datasets).*available"),
    re.compile(r"\bavailable\s+(?:data|datasets)\b"),
    re.compile(r"\b(?:tell me|about)\b.*\bdata\b"),
)
GOAL_PATTERNS = (
    re.compile(r"(?:what is|what's|whats|wats|describe).*\b(?:goal|purpose|vision)"),
    re.compile(r"\b(?:goal|purpose|vision)\b"),
    re.compile(r"project goal"),
)
MENTOR_PATTERNS = (re.compile(r"(?:about|who is)\s*(?:the\s+)?(?:erich|mentor|kummerfeld)"),)
DEVELOPER_PATTERNS = (
    re.compile(r"(?:about|who is)\s*(?:anirudh|me)\b"),
    re.compile(r"about the developer|about author|who built"),
)
FILTERS_PATTERN = re.compile(
    r"\b(?:filters?|breakdowns?|dimensions?|categories)\b"
)


@dataclass(frozen=True)
class MemoryEntry:
    role: str
    content: str
    timestamp: float


def _matches(patterns, text: str) -> bool:
    return any(p.search(text) for p in patterns)


def _mentor_answer() -> str:
    mentor = SITE_META["mentor"]
    link = f"\nMore: {mentor['homepage']}" if mentor.get("homepage") else ""
    return f"{mentor['name']}: {mentor['summary']}{link}"


def _developer_answer() -> str:
    dev = SITE_META["developer"]
    links = " | ".join(
        part
        for part in (
            dev.get("portfolio") and f"Portfolio: {dev['portfolio']}",
            dev.get("github") and f"GitHub: {dev['github']}",
        )
        if part
    )
    return f"{dev['name']}: {dev['summary']}" + (f"\n{links}" if links else "")


class DistrictChat:
    """
    A single conversation over the district corpus.

    Conversations do not share state with each other; only the store is
    shared, and it is read-only from here. Given a `builder`, an empty store
    is built (and cached) the first time the corpus is needed.
    """

    def __init__(
        self,
        store: DocumentStore,
        memory_limit: int = MEMORY_LIMIT,
        builder: Optional[Callable[[], List[Document]]] = None,
    ):
        self.store = store
        self.builder = builder
        self.session = Session()
        self.memory: Deque[MemoryEntry] = deque(maxlen=memory_limit)

    @property
    def documents(self) -> List[Document]:
        documents = self.store.documents
        if not documents and self.builder is not None:
            documents = self.store.load_or_build(self.builder)
        return documents

    # -----------------------------------------------------------------
    # Memory
    # -----------------------------------------------------------------

    def add_to_memory(self, role: str, content: str) -> None:
        self.memory.append(MemoryEntry(role=role, content=content, timestamp=time.time()))

    def clear_memory(self) -> None:
        """Forget the conversation, including the remembered dataset/breakdown/label."""
        self.memory.clear()
        self.session.clear()

    def recent_context(self, n: int = 6) -> str:
        return "\n".join(f"{m.role}: {m.content}" for m in list(self.memory)[-n:])

    # -----------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------

    def generate_response(self, user_message) -> str:
        query = str(user_message or "").strip()
        self.add_to_memory("user", query)
        try:
            answer = self._answer(query)
        except Exception:
            logger.exception("Failed to answer %r", query)
            answer = ERROR_MESSAGE
        self.add_to_memory("assistant", answer)
        return answer

    def _answer(self, query: str) -> str:
        parsed = parse_query(query, self.session)
        if parsed.is_empty:
            return CLARIFY_MESSAGE

        meta = self._meta_answer(parsed)
        if meta is not None:
            return meta

        if parsed.dataset_in_query and not parsed.breakdown_in_query and not parsed.wants_trend:
            return self._overview(parsed)

        if parsed.wants_trend:
            return self._trend(parsed)

        return self._lookup(parsed)

    # -----------------------------------------------------------------
    # Resolution steps
    # -----------------------------------------------------------------

    def _meta_answer(self, parsed: ParsedQuery):
        text = parsed.text
        if _matches(GOAL_PATTERNS, text):
            return SITE_META["goal"]
        # Mentor first so "about me" never shadows a mentor question.
        if _matches(MENTOR_PATTERNS, text):
            return _mentor_answer()
        if _matches(DEVELOPER_PATTERNS, text):
            return _developer_answer()
        if not parsed.dataset_in_query and _matches(ALL_DATA_PATTERNS, text):
            return retriever.list_all_datasets()
        return None

    def _overview(self, parsed: ParsedQuery) -> str:
        dataset = parsed.dataset
        docs = self.documents
        if FILTERS_PATTERN.search(parsed.text):
            self.session.update(dataset, None)
            return retriever.list_available_breakdowns(docs, dataset)

        # Staff's overall document is about tenure, which reads oddly as a summary.
        summary = None if dataset == "staff" else retriever.overall_summary(docs, dataset)
        parts = [
            retriever.dataset_overview(dataset),
            summary,
            retriever.years_available_line(docs, dataset),
            retriever.list_available_breakdowns(docs, dataset),
        ]
        self.session.update(dataset, "overall")
        return "\n".join(part for part in parts if part)

    def _trend(self, parsed: ParsedQuery) -> str:
        dataset = parsed.dataset or DEFAULT_TREND_DATASET
        year_docs = [d for d in retriever.dataset_docs(self.documents, dataset) if d.breakdown == "year"]
        if not year_docs:
            return f"No year-wise records available for {dataset}."

        prefix = ""
        previous = self.session
        if parsed.refers_previous and previous.label and previous.breakdown not in (None, "overall"):
            prefix = (
                f"Note: Year-wise data is available only at overall level for {dataset}, "
                f'not for {previous.breakdown} "{previous.label}".\n'
            )

        ordered = sorted(year_docs, key=lambda d: str(d.label or ""))
        self.session.update(dataset, "year")
        return prefix + "\n".join(d.text for d in ordered)

    def _lookup(self, parsed: ParsedQuery) -> str:
        docs = self.documents
        dataset, breakdown, label = parsed.dataset, parsed.breakdown, parsed.label

        targeted = retriever.find_best_doc(docs, dataset, breakdown, label)
        if targeted is not None:
            self._remember(targeted)
            return targeted.text or "No text available."

        if dataset and breakdown and label:
            return retriever.not_found_message(dataset, breakdown, label)

        if label and not dataset:
            datasets = retriever.label_datasets(docs, breakdown, label)
            if len(datasets) > 1:
                return f'"{label}" appears in {", ".join(datasets)}. Which dataset do you mean?'

        if dataset and parsed.breakdown_in_query and not label:
            labels = retriever.candidate_labels(docs, dataset, breakdown)
            if len(labels) > 1:
                self.session.update(dataset, breakdown)
                name = retriever.friendly_breakdown(breakdown)
                return (
                    f"The {dataset} data by {name} has {len(labels)} records: {', '.join(labels)}. "
                    f'Which one do you mean? Put it in quotes, e.g. "{labels[0]}".'
                )

        results = retriever.keyword_search(docs, parsed.text, k=5)
        if dataset:
            results = [d for d in results if d.dataset == dataset]
            if not results:
                return f"No matching records found in {dataset} for this request."
        if not results:
            return NOTHING_FOUND_MESSAGE

        best = results[0]
        self._remember(best)
        return retriever.summarize(best)

    def _remember(self, doc: Document) -> None:
        self.session.update(
            doc.dataset or self.session.dataset,
            doc.breakdown or self.session.breakdown,
            doc.label,
        )
