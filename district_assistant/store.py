"""
district_assistant/store.py

Purpose
-------
Caches the built corpus on disk so the assistant does not rebuild it for
every conversation.

Artifacts written to artifacts/:
  - rag_documents.json : JSON array of {id, text, metadata}

There is no schema version. Readers treat missing fields as absent, so new
metadata fields can be added without invalidating an existing cache.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, List, Optional

from district_assistant.documents import Document, is_fallback_only

logger = logging.getLogger(__name__)

# Default folder where the corpus is cached.
ARTIFACT_DIR = Path("artifacts")
STORAGE_KEY = "rag_documents"


class DocumentStore:
    """
    Owns the corpus. Everything else reads `documents` and never mutates it.

    Construct one at startup and pass it to each conversation.
    """

    def __init__(self, root: Path = ARTIFACT_DIR, key: str = STORAGE_KEY):
        self.root = Path(root)
        self.key = key
        self._documents: Optional[List[Document]] = None

    @property
    def path(self) -> Path:
        return self.root / f"{self.key}.json"

    @property
    def documents(self) -> List[Document]:
        if self._documents is None:
            self._documents = self.load()
        return self._documents

    def save(self, documents: List[Document]) -> None:
        """Persist the corpus, replacing any previous one. Failures are logged."""
        self._documents = list(documents)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            payload = [doc.to_dict() for doc in self._documents]
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to persist documents to %s: %s", self.path, exc)

    def load(self) -> List[Document]:
        """
        Return the last saved corpus, or [] if there is none or it cannot
        be decoded. Never raises.
        """
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Failed to load documents from %s: %s", self.path, exc)
            return []

        if not isinstance(raw, list):
            logger.error("Cached corpus at %s is not a list; ignoring it", self.path)
            return []

        return [Document.from_dict(item) for item in raw if isinstance(item, dict)]

    def load_or_build(self, builder: Callable[[], List[Document]]) -> List[Document]:
        """
        Load the cached corpus; build and save it once if the cache is empty.

        A fallback-only corpus counts as empty and is never saved, so the
        real corpus is built as soon as the aggregate data is readable.
        """
        documents = self.load()
        if is_fallback_only(documents):
            logger.warning("Cached corpus at %s is the fallback document; rebuilding", self.path)
            documents = []
        if not documents:
            logger.info("No cached corpus at %s; building it", self.path)
            documents = builder()
            if is_fallback_only(documents):
                logger.warning("Only the fallback document was built; not caching it")
            else:
                self.save(documents)
        self._documents = documents
        return documents

    def rebuild(self, builder: Callable[[], List[Document]]) -> List[Document]:
        documents = builder()
        self.save(documents)
        return self._documents
