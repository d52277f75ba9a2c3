"""IPipelineObserver adapters."""

import logging
from typing import List

from deep_truth.domain.events import EventKind, PipelineEvent
from deep_truth.ports.interfaces import IPipelineObserver


class LoggingObserver(IPipelineObserver):
    """
    Writes each event as one key=value DEBUG line on the 'deep_truth.events' logger.
    Failures and skips already reach WARNING through the pipeline's module loggers.
    """

    def __init__(self, logger: logging.Logger = None):
        self._logger = logger or logging.getLogger("deep_truth.events")

    def notify(self, event: PipelineEvent) -> None:
        fields = [f"event={event.kind.value}"]
        if event.index is not None:
            fields.append(f"index={event.index}")
        if event.attempt is not None:
            fields.append(f"attempt={event.attempt}")
        fields.extend(f"{key}={value}" for key, value in event.detail.items() if key != "excerpt")
        self._logger.debug(" ".join(fields))


class RecordingObserver(IPipelineObserver):
    """Keeps every event in memory (tests, notebooks)."""

    def __init__(self):
        self.events: List[PipelineEvent] = []

    def notify(self, event: PipelineEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> List[PipelineEvent]:
        return [e for e in self.events if e.kind == kind]
