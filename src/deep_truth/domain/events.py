"""Structured pipeline events sent to an IPipelineObserver."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EventKind(str, Enum):
    RUN_STARTED = "run_started"
    ATTEMPT_FAILED = "attempt_failed"
    RESPONSE_RECEIVED = "response_received"
    NO_DELIMITERS = "no_delimiters"
    ARTICLE_SKIPPED = "article_skipped"
    ARTICLE_PERSISTED = "article_persisted"
    RUN_COMPLETED = "run_completed"
    RUN_ABORTED = "run_aborted"


@dataclass
class PipelineEvent:
    kind: EventKind
    index: Optional[int] = None
    attempt: Optional[int] = None
    detail: Dict[str, Any] = field(default_factory=dict)
