"""
Port interfaces (SOLID – Dependency Inversion).
Implement these in adapters; the application layer depends only on these abstractions.
A new model provider implements IModelBackend and is injected into the pipeline.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from deep_truth.domain.events import PipelineEvent


class IModelBackend(ABC):
    """Generative model: prompt in, stream of text fragments out."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logs."""
        pass

    @abstractmethod
    def invoke(self, prompt: str) -> AsyncIterator[str]:
        """
        Stream the model's answer as text fragments.
        May raise while opening the stream or at any point during iteration.
        Non-streaming providers yield a single fragment.
        """
        pass


class IPipelineObserver(ABC):
    """Receives structured events (attempts, progress, outcome) from a run."""

    @abstractmethod
    def notify(self, event: PipelineEvent) -> None:
        pass


class NullObserver(IPipelineObserver):
    """Drops every event."""

    def notify(self, event: PipelineEvent) -> None:
        return None
