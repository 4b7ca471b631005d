from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence

import tantivy

from src.catalog.errors import IndexWriteError, QueryError
from src.catalog.models import TAG_SEPARATOR, Item, SearchHit

logger = logging.getLogger(__name__)

MAX_RESULTS = 10
SOURCE_FIELD = "source"
TAGS_FIELD = "tags"


def build_schema() -> tantivy.Schema:
    """Two stored fields: ``source`` kept as one raw token, ``tags`` tokenized."""
    builder = tantivy.SchemaBuilder()
    builder.add_text_field(SOURCE_FIELD, stored=True, tokenizer_name="raw")
    builder.add_text_field(TAGS_FIELD, stored=True)
    return builder.build()


class SearchIndex:
    """In-memory BM25 index over one catalog snapshot at a time.

    Writers are serialized by an internal lock and replace the whole corpus in
    a single commit. Readers never lock: each search works on one searcher,
    which is a point-in-time view of the committed segments, so a query sees
    either the previous corpus or the new one, never a mix.
    """

    def __init__(self, *, heap_size: int = 50_000_000) -> None:
        self.schema = build_schema()
        self.heap_size = heap_size
        self._index = tantivy.Index(self.schema)
        self._write_lock = threading.Lock()
        self._writer: Optional[tantivy.IndexWriter] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of rebuilds committed so far."""
        return self._generation

    @property
    def num_docs(self) -> int:
        return self._index.searcher().num_docs

    def _get_writer(self) -> tantivy.IndexWriter:
        # One indexing thread keeps a rebuild in a single segment, in input order.
        if self._writer is None:
            self._writer = self._index.writer(heap_size=self.heap_size, num_threads=1)
        return self._writer

    def rebuild(self, items: Sequence[Item]) -> None:
        with self._write_lock:
            try:
                writer = self._get_writer()
            except Exception as e:
                raise IndexWriteError(f"Could not open index writer: {e}") from e

            try:
                writer.delete_all_documents()
                for item in items:
                    doc = tantivy.Document()
                    doc.add_text(SOURCE_FIELD, item.source)
                    doc.add_text(TAGS_FIELD, item.keywords(TAG_SEPARATOR))
                    writer.add_document(doc)
                writer.commit()
            except Exception as e:
                self._rollback(writer)
                raise IndexWriteError(
                    f"Index rebuild failed: {e}", details={"items": len(items)}
                ) from e

            self._index.reload()
            self._generation += 1
        logger.info("Index rebuilt: generation=%d documents=%d", self._generation, len(items))

    def _rollback(self, writer: tantivy.IndexWriter) -> None:
        try:
            writer.rollback()
        except Exception:
            logger.exception("Index writer rollback failed")

    def search(self, query: str, limit: int = MAX_RESULTS) -> List[SearchHit]:
        """Return up to ``limit`` (at most 10) hits by descending relevance.

        The query goes through tantivy's query parser over both fields. The
        whole stripped query is also tried as an exact ``source``, so pasting
        a URL finds its item even though the parser rejects the ``:``.
        """
        text = (query or "").strip()
        if not text:
            raise QueryError("Query is empty")
        limit = max(1, min(limit, MAX_RESULTS))

        searcher = self._index.searcher()
        exact = tantivy.Query.term_query(self.schema, SOURCE_FIELD, text)
        try:
            parsed = self._index.parse_query(text, [SOURCE_FIELD, TAGS_FIELD])
        except ValueError as e:
            hits = self._collect(searcher, exact, limit)
            if hits:
                return hits
            raise QueryError(f"Could not parse query {text!r}: {e}", details={"query": text}) from e

        combined = tantivy.Query.boolean_query(
            [(tantivy.Occur.Should, exact), (tantivy.Occur.Should, parsed)]
        )
        return self._collect(searcher, combined, limit)

    def _collect(self, searcher: tantivy.Searcher, query: tantivy.Query, limit: int) -> List[SearchHit]:
        result = searcher.search(query, limit)
        # Equal scores keep insertion order of the last rebuild.
        ranked = sorted(
            result.hits, key=lambda hit: (-hit[0], hit[1].segment_ord, hit[1].doc)
        )
        hits: List[SearchHit] = []
        for score, address in ranked:
            doc = searcher.doc(address)
            source = doc.get_first(SOURCE_FIELD)
            tags = doc.get_first(TAGS_FIELD)
            if source is None:
                continue
            hits.append(SearchHit(source=source, tags=tags or "", score=float(score)))
        return hits
