"""Application layer – pipeline orchestration and its steps."""

from deep_truth.application.checkpoint import CheckpointStore
from deep_truth.application.extractor import OutputExtractor
from deep_truth.application.pipeline import ArticlePipeline, ExtractionErrorPolicy, RunStatus, accumulate
from deep_truth.application.prompts import PromptBuilder
from deep_truth.application.retriever import ResponseRetriever

__all__ = [
    "ArticlePipeline",
    "CheckpointStore",
    "ExtractionErrorPolicy",
    "OutputExtractor",
    "PromptBuilder",
    "ResponseRetriever",
    "RunStatus",
    "accumulate",
]
