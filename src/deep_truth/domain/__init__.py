"""Domain models, errors and events."""

from deep_truth.domain.errors import (
    ArticleContentDefect,
    CheckpointError,
    DeepTruthError,
    ExtractionError,
    InvalidInput,
    ModelInvocationError,
)
from deep_truth.domain.events import EventKind, PipelineEvent
from deep_truth.domain.models import (
    AggregateEntry,
    Article,
    ArticleMetadata,
    Mode,
    Payload,
    ProcessingRecord,
    is_empty_payload,
)

__all__ = [
    "AggregateEntry",
    "Article",
    "ArticleContentDefect",
    "ArticleMetadata",
    "CheckpointError",
    "DeepTruthError",
    "EventKind",
    "ExtractionError",
    "InvalidInput",
    "Mode",
    "ModelInvocationError",
    "Payload",
    "PipelineEvent",
    "ProcessingRecord",
    "is_empty_payload",
]
