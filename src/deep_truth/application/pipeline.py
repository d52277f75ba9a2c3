"""
Article pipeline – single responsibility: orchestrate resume → prompt → model → extract → persist.
Depends only on port interfaces (SOLID – Dependency Inversion).
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from deep_truth.application.checkpoint import CheckpointStore
from deep_truth.application.extractor import OutputExtractor
from deep_truth.application.prompts import PromptBuilder
from deep_truth.application.retriever import MAX_ATTEMPTS, RETRY_DELAY_SECONDS, ResponseRetriever
from deep_truth.domain.errors import ArticleContentDefect, ExtractionError, InvalidInput
from deep_truth.domain.events import EventKind, PipelineEvent
from deep_truth.domain.models import AggregateEntry, Mode, Payload, ProcessingRecord
from deep_truth.ports.interfaces import IModelBackend, IPipelineObserver, NullObserver

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    IDLE = "idle"
    RESUMING = "resuming"
    ITERATING = "iterating"
    SKIPPED = "skipped"
    PERSISTED = "persisted"
    COMPLETED = "completed"
    ABORTED = "aborted"


class ExtractionErrorPolicy(str, Enum):
    ABORT = "abort"
    SKIP = "skip"


def accumulate(current_answer: Optional[str], payload: Payload) -> Optional[str]:
    """Fold one article's text payload into the running answer."""
    if isinstance(payload, str) and payload.strip():
        return payload
    return current_answer


def article_text(article: Any, index: int) -> str:
    """Return the article text, or raise ArticleContentDefect."""
    if not isinstance(article, Mapping):
        raise ArticleContentDefect(index)
    text = article.get("text")
    if not text or not isinstance(text, str):
        metadata = article.get("metadata") or {}
        raise ArticleContentDefect(index, metadata.get("articleTitle") if isinstance(metadata, Mapping) else None)
    return text


class ArticlePipeline:
    """
    Runs one query over an ordered article list, one article at a time.
    All collaborators are injected; the backend is only ever seen through IModelBackend.
    """

    def __init__(
        self,
        *,
        user_query: str,
        backend: IModelBackend,
        store: CheckpointStore,
        mode: Mode = Mode.JSON,
        continue_from_article: bool = True,
        observer: Optional[IPipelineObserver] = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_SECONDS,
        on_extraction_error: ExtractionErrorPolicy = ExtractionErrorPolicy.ABORT,
        retriever: Optional[ResponseRetriever] = None,
        extractor: Optional[OutputExtractor] = None,
    ):
        self.mode = Mode(mode)
        self._prompts = PromptBuilder(user_query, self.mode)
        self.user_query = self._prompts.user_query
        self._store = store
        self._observer = observer or NullObserver()
        self._retriever = retriever or ResponseRetriever(
            backend,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            observer=self._observer,
        )
        self._extractor = extractor or OutputExtractor(observer=self._observer)
        self.continue_from_article = continue_from_article
        self.on_extraction_error = ExtractionErrorPolicy(on_extraction_error)
        self.status = RunStatus.IDLE
        self.processed_articles = 0
        self.total_articles = 0

    async def run(self, articles: Sequence[Mapping[str, Any]]) -> Dict[str, AggregateEntry]:
        """Process every article not yet recorded; return the aggregate."""
        if not isinstance(articles, (list, tuple)) or len(articles) == 0:
            raise InvalidInput("Input must be a non-empty list of article objects")

        self.total_articles = len(articles)
        self.status = RunStatus.RESUMING
        self._store.prepare(fresh=not self.continue_from_article)
        start = self._store.resume_index()
        current_answer = self._store.latest_text_payload() if self.mode is Mode.TEXT else None
        self.processed_articles = start

        logger.info(
            'Starting Deep Truth analysis on %d articles for query: "%s" (resuming at %d)',
            self.total_articles, self.user_query, start,
        )
        self._observer.notify(PipelineEvent(
            EventKind.RUN_STARTED,
            index=start,
            detail={"total": self.total_articles, "mode": self.mode.value},
        ))

        index = start
        try:
            for index in range(start, self.total_articles):
                self.status = RunStatus.ITERATING
                current_answer = await self._process(index, articles[index], current_answer)
                self.processed_articles = index + 1
        except Exception as exc:
            self.status = RunStatus.ABORTED
            self._store.rebuild_aggregate()
            logger.error("Error in Deep Truth analysis at article %d: %s", index, exc)
            self._observer.notify(PipelineEvent(
                EventKind.RUN_ABORTED,
                index=index,
                detail={"error": str(exc), "error_type": type(exc).__name__},
            ))
            raise

        aggregate = self._store.rebuild_aggregate()
        self.status = RunStatus.COMPLETED
        logger.info("Deep Truth analysis complete! %d results in %s", len(aggregate), self._store.aggregate_path)
        self._observer.notify(PipelineEvent(
            EventKind.RUN_COMPLETED,
            detail={"total": self.total_articles, "results": len(aggregate)},
        ))
        return aggregate

    def run_sync(self, articles: Sequence[Mapping[str, Any]]) -> Dict[str, AggregateEntry]:
        return asyncio.run(self.run(articles))

    async def _process(
        self,
        index: int,
        article: Mapping[str, Any],
        current_answer: Optional[str],
    ) -> Optional[str]:
        try:
            text = article_text(article, index)
        except ArticleContentDefect as exc:
            self._skip(index, exc)
            return current_answer

        metadata = article.get("metadata")
        if not isinstance(metadata, Mapping):
            metadata = {}
        prompt = self._prompts.build(metadata, text, current_answer)
        response = await self._retriever.retrieve(prompt, index=index)
        try:
            payload = self._extractor.extract(response, self.mode, index=index)
        except ExtractionError as exc:
            if self.on_extraction_error is not ExtractionErrorPolicy.SKIP:
                raise
            self._skip(index, exc)
            return current_answer

        record: ProcessingRecord = {
            "index": index,
            "userQuery": self.user_query,
            "response": payload,
            "processedArticle": {
                "text": text,
                "title": metadata.get("articleTitle"),
                "url": metadata.get("url"),
            },
            "prompt": prompt,
        }
        self._store.persist_record(record)
        self.status = RunStatus.PERSISTED
        logger.info("Processed %d/%d articles", index + 1, self.total_articles)
        self._observer.notify(PipelineEvent(
            EventKind.ARTICLE_PERSISTED,
            index=index,
            detail={"processed": index + 1, "total": self.total_articles},
        ))
        return accumulate(current_answer, payload)

    def _skip(self, index: int, reason: Exception) -> None:
        self.status = RunStatus.SKIPPED
        logger.warning("Skipping article %d: %s", index, reason)
        self._store.persist_skip(index, str(reason), type(reason).__name__)
        self._observer.notify(PipelineEvent(
            EventKind.ARTICLE_SKIPPED,
            index=index,
            detail={"reason": str(reason), "error_type": type(reason).__name__},
        ))


def summarize_aggregate(aggregate: Dict[str, AggregateEntry]) -> List[str]:
    """Human-readable lines for the CLI's final report."""
    lines = []
    for key in sorted(aggregate, key=int):
        entry = aggregate[key]
        response = entry.get("response")
        count = len(response) if isinstance(response, (list, dict)) else len(str(response))
        unit = "items" if isinstance(response, (list, dict)) else "chars"
        lines.append(f"[{key}] {entry.get('url') or 'N/A'} ({count} {unit})")
    return lines
