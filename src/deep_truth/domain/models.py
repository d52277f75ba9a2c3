"""Domain models – plain dicts on the wire, typed here for readers."""

from enum import Enum
from typing import Any, Dict, List, TypedDict, Union


class Mode(str, Enum):
    """Operating mode of a run."""
    JSON = "json"  # extraction: list of {"paragraph": ...} per article
    TEXT = "text"  # accumulation: one growing answer across articles


class ArticleMetadata(TypedDict, total=False):
    """Crawler metadata. Extra keys are allowed and rendered into prompts."""
    url: str
    articleTitle: str
    author: str


class Article(TypedDict, total=False):
    """One input document, as produced by the crawler (one JSONL line)."""
    text: str
    metadata: ArticleMetadata


class Paragraph(TypedDict):
    paragraph: str


Payload = Union[str, List[Paragraph], List[Any], Dict[str, Any]]


class ProcessedArticle(TypedDict):
    text: str
    title: str
    url: str


class ProcessingRecord(TypedDict):
    """Written once to <index>.json and never touched again."""
    index: int
    userQuery: str
    response: Payload
    processedArticle: ProcessedArticle
    prompt: str


class AggregateEntry(TypedDict):
    response: Payload
    url: str


def is_empty_payload(payload: Any) -> bool:
    """Empty string, empty list/dict or None count as 'nothing extracted'."""
    if payload is None:
        return True
    if isinstance(payload, str):
        return not payload.strip()
    if isinstance(payload, (list, dict)):
        return len(payload) == 0
    return False
